"""Typed rejections raised by the edit engine.

Every error carries an ErrorKind so callers (the executor, the CLI, a
persistence layer) can branch on the failure class without parsing
messages. All edit errors subclass ValueError, the same way manifest
validation failures do.
"""

from enum import Enum


class ErrorKind(str, Enum):
    MALFORMED = "Malformed"
    NOT_FOUND = "NotFound"
    OUT_OF_BOUNDS = "OutOfBounds"
    INVALID_RANGE = "InvalidRange"
    EMPTY_HISTORY = "EmptyHistory"


class EditError(ValueError):
    """Base class for rejected edits. The composition is never touched."""

    kind = ErrorKind.MALFORMED

    def __init__(self, message: str, suggestions: list[str] | None = None):
        super().__init__(message)
        self.suggestions = suggestions or []


class MalformedPlanError(EditError):
    kind = ErrorKind.MALFORMED


class ElementNotFoundError(EditError):
    kind = ErrorKind.NOT_FOUND


class OutOfBoundsError(EditError):
    kind = ErrorKind.OUT_OF_BOUNDS


class InvalidRangeError(EditError):
    kind = ErrorKind.INVALID_RANGE


class HistoryError(EditError):
    kind = ErrorKind.EMPTY_HISTORY


class CompileError(ValueError):
    """Fatal compile failure: the document cannot be turned into a program."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        msg = f"Cannot compile composition, {len(self.problems)} problem(s):\n"
        for p in self.problems:
            msg += f"  - {p}\n"
        super().__init__(msg)
