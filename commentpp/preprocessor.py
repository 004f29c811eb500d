import logging
import os
import re
from dataclasses import dataclass, field

from .errors import ExpressionError, ParserError, PreprocessorError
from .expression import evaluate, is_defined

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    result: bool
    indent: int


class DirectiveStack:
    """Open if/ifdef/else blocks, innermost last."""

    def __init__(self):
        self.frames = []

    def __len__(self):
        return len(self.frames)

    def push(self, frame):
        self.frames.append(frame)

    def peek(self):
        if not self.frames:
            raise IndexError("peek on empty directive stack")
        return self.frames[-1]

    def pop(self):
        if not self.frames:
            raise IndexError("pop on empty directive stack")
        return self.frames.pop()

    @property
    def active(self):
        return all(frame.result for frame in self.frames)


@dataclass
class ConversionResult:
    lines: list
    diagnostics: list = field(default_factory=list)

    @property
    def failed(self):
        return bool(self.diagnostics)


def indentation(line):
    return len(line) - len(line.lstrip(" "))


def line_ending(line):
    # A CRLF file split on "\n" leaves the "\r" on every line
    return "\r" if line.endswith("\r") else ""


def passthrough(lines):
    return [(line, []) for line in lines]


class CommentPreprocessor:
    def __init__(self, variables):
        self.variables = variables

    def condition(self, expression, file_name, line_no):
        try:
            return evaluate(expression, self.variables)
        except ExpressionError as e:
            raise ParserError(f"{e} in line {line_no} of {file_name}", file_name, line_no) from e

    def convert_source(self, kws, lines, remapped, file_name):
        """Runs the directive state machine over one file.

        `lines` is the original text, `remapped` the index-aligned
        (text, errors) records from a remapper, or None to use `lines` as is.
        Directives are matched against the remapped text. Disabled lines are
        rewritten from the original text and their remap errors dropped.
        """
        if remapped is None:
            remapped = passthrough(lines)
        if len(remapped) != len(lines):
            raise PreprocessorError(
                f"Remapped {file_name} has {len(remapped)} lines, expected {len(lines)}")

        stack = DirectiveStack()
        output = []
        diagnostics = []
        eval_prefix = re.compile(re.escape(kws.eval) + " ?")

        for n, (original_line, (line, errors)) in enumerate(zip(lines, remapped), 1):
            ignore_errors = False
            trimmed = line.strip()

            if trimmed.startswith(kws.if_):
                result = self.condition(trimmed[len(kws.if_):], file_name, n)
                stack.push(Frame(result, indentation(line)))
                mapped = line
            elif trimmed.startswith(kws.else_):
                if not stack:
                    raise ParserError(f"Unexpected else in line {n} of {file_name}", file_name, n)
                stack.push(Frame(not stack.pop().result, indentation(line)))
                mapped = line
            elif trimmed.startswith(kws.ifdef):
                result = is_defined(trimmed[len(kws.ifdef):], self.variables)
                stack.push(Frame(result, indentation(line)))
                mapped = line
            elif trimmed.startswith(kws.endif):
                if not stack:
                    raise ParserError(f"Unexpected endif in line {n} of {file_name}", file_name, n)
                stack.pop()
                mapped = line
            elif stack.active:
                if trimmed.startswith(kws.eval):
                    mapped = eval_prefix.sub("", line, count=1)
                    if not mapped.strip():
                        mapped = line_ending(line)
                else:
                    mapped = line
            else:
                curr_indent = stack.peek().indent
                if not trimmed:
                    mapped = " " * curr_indent + kws.eval + line_ending(line)
                    ignore_errors = True
                elif not trimmed.startswith(kws.eval) and curr_indent <= indentation(line):
                    # Keep the un-remapped text: remapping is only reliable on
                    # code that compiles, and this block is about to stop compiling.
                    mapped = " " * curr_indent + kws.eval + " " + original_line[curr_indent:]
                    ignore_errors = True
                else:
                    mapped = line

            if errors and not ignore_errors:
                for message in errors:
                    diagnostics.append(f"{file_name}:{n}: {message}")
            output.append(mapped)

        if stack:
            raise ParserError(f"Missing endif in {file_name}", file_name)

        return ConversionResult(output, diagnostics)

    def convert_file(self, kws, in_file, out_file, remap=None, file_name=None):
        file_name = file_name or str(in_file)
        with open(in_file, "r", encoding="utf-8", newline="") as f:
            try:
                lines = f.read().split("\n")
            except UnicodeDecodeError as e:
                raise PreprocessorError(f"Cannot read {in_file} as UTF-8: {e}") from e

        remapped = remap(lines) if remap else None
        try:
            result = self.convert_source(kws, lines, remapped, file_name)
        except PreprocessorError:
            raise
        except Exception as e:
            raise PreprocessorError(f"Failed to convert file {in_file}") from e

        parent = os.path.dirname(out_file)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(out_file, "w", encoding="utf-8", newline="") as f:
            f.write("\n".join(result.lines))
        logger.debug(f"Converted {file_name} -> {out_file}")
        return result
