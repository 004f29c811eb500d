class PreprocessorError(Exception):
    """Base class for everything the preprocessor raises on purpose."""


class ParserError(PreprocessorError):
    """Unbalanced directives or a bad condition. Aborts the current file."""

    def __init__(self, message, file=None, line=None):
        super().__init__(message)
        self.file = file
        self.line = line


class ExpressionError(PreprocessorError):
    pass


class UnknownVariableError(ExpressionError):
    def __init__(self, name):
        super().__init__(f"Unknown variable: {name}")
        self.name = name


class RemapFailedError(PreprocessorError):
    pass


class ConfigError(PreprocessorError):
    pass


class MappingError(PreprocessorError):
    pass
