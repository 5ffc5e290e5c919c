from typing import Optional
from anubhav.types import ErrorVal


class AnubhavError(Exception):
    """Exception type used to propagate Anubhav runtime errors."""
    def __init__(self, err: ErrorVal):
        super().__init__(f"{err.name}: {err.message}")
        self.err = err


class ParseError(AnubhavError):
    """Raised by the parser; always fatal before any statement runs."""
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        if line is not None:
            message = f"{message} at {line}:{column}"
        super().__init__(ErrorVal('ParseError', message))
        self.line = line
        self.column = column


def fail(name: str, message: str) -> AnubhavError:
    """Build an AnubhavError ready to be raised."""
    return AnubhavError(ErrorVal(name, message))
