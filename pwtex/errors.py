"""Exceptions raised while normalizing and rendering expressions."""


class UnknownNameError(LookupError):
    """Strict mode met a symbol or function name that is not known."""

    def __init__(self, name: str, function: bool = False):
        kind = "function" if function else "function or variable"
        super().__init__(f'The {kind} "{name}" does not exist.')
        self.name = name
        self.function = function


class MalformedExpressionError(ValueError):
    """The tree has a shape the renderer cannot process."""


class ArityError(MalformedExpressionError):
    """A known function was called with the wrong number of arguments."""

    def __init__(self, name: str, expected: int, got: int):
        super().__init__(f"{name} expects {expected} argument(s), got {got}")
        self.name = name
        self.expected = expected
        self.got = got


class UnsupportedSyntaxError(MalformedExpressionError):
    """The input text uses syntax with no expression-tree equivalent."""
