import re

from .errors import ExpressionError, UnknownVariableError

EXPR_PATTERN = re.compile(r"(.+)(==|!=|<=|>=|<|>)(.+)")
INT_PATTERN = re.compile(r"[+-]?\d+")

OPERATORS = {
    "==": lambda lhs, rhs: lhs == rhs,
    "!=": lambda lhs, rhs: lhs != rhs,
    "<=": lambda lhs, rhs: lhs <= rhs,
    ">=": lambda lhs, rhs: lhs >= rhs,
    "<": lambda lhs, rhs: lhs < rhs,
    ">": lambda lhs, rhs: lhs > rhs,
}


def resolve(operand, variables):
    """Integer literal first, then a variable lookup."""
    if INT_PATTERN.fullmatch(operand):
        return int(operand)
    if operand in variables:
        return variables[operand]
    raise UnknownVariableError(operand)


def evaluate(expression, variables):
    """Evaluates an `if` condition.

    `||` binds weakest, then `&&`, then a single comparison. There are no
    parentheses and no unary operators; every operand is an integer literal
    or the name of a variable.
    """
    expression = expression.strip()

    parts = expression.split("||")
    if len(parts) > 1:
        return any(evaluate(part, variables) for part in parts)

    parts = expression.split("&&")
    if len(parts) > 1:
        return all(evaluate(part, variables) for part in parts)

    match = EXPR_PATTERN.fullmatch(expression)
    if not match:
        raise ExpressionError(f"Invalid expression: {expression}")
    lhs = resolve(match.group(1).strip(), variables)
    rhs = resolve(match.group(3).strip(), variables)
    return OPERATORS[match.group(2)](lhs, rhs)


def is_defined(name, variables):
    # ifdef only checks presence, a value of 0 still counts
    return name.strip() in variables
