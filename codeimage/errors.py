"""Exceptions raised by the visualizer and classifier stages."""


class CodeImageError(Exception):
    pass


class MissingFileError(CodeImageError, FileNotFoundError):
    """A required model, image, label or source path does not exist."""

    def __init__(self, path, message=None):
        self.path = str(path)
        super().__init__(message or f"File '{self.path}' not found.")


class DimensionMismatchError(CodeImageError):
    def __init__(self, name, actual, expected):
        self.name = name
        self.actual = actual
        self.expected = expected
        super().__init__(
            f"The input dimension for {name} is {actual} which is not the expected size of {expected}."
        )


class DegenerateInputError(CodeImageError, ValueError):
    pass


class TokenizeError(CodeImageError):
    def __init__(self, source, reason):
        self.source = str(source)
        self.reason = reason
        super().__init__(f"Could not tokenize {self.source}: {reason}")


class LayoutError(CodeImageError):
    pass


class LabelLookupError(CodeImageError):
    pass


class EvaluationError(CodeImageError):
    """Wraps a failure raised by the model evaluator."""
