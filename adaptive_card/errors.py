"""
errors.py

Exception taxonomy for the adaptive card runtime.

Only InteractionInvalid (and CardValidationError, when the caller asks for
it) escapes to callers. Path, expression and template errors are caught by
the template engine and turned into Issue diagnostics for the offending leaf.
"""

from typing import Any, List, Optional


class CardError(Exception):
    """Base class for adaptive card runtime errors."""


class PathSyntaxError(CardError):
    """Raised when a binding path is syntactically invalid (not merely absent)."""

    def __init__(self, path: str, detail: str = "invalid path syntax"):
        super().__init__(f"{detail}: {path!r}")
        self.path = path


class ExpressionError(CardError):
    """Base class for ${...} expression failures."""


class ExpressionParseError(ExpressionError):
    """Malformed expression text. `offset` is the character position of the failure."""

    def __init__(self, message: str, offset: int = 0, text: Optional[str] = None):
        super().__init__(f"{message} (at offset {offset})")
        self.offset = offset
        self.text = text


class ExpressionTypeError(ExpressionError):
    """Operator applied to an operand of the wrong type (e.g. non-boolean ternary condition)."""


class TemplateError(CardError):
    """Malformed or disallowed {{...}} template block."""

    def __init__(self, message: str, offset: int = 0):
        super().__init__(f"{message} (at offset {offset})")
        self.offset = offset


class MissingPathWarning(UserWarning):
    """
    A placeholder referenced a path that no namespace resolves.

    Never raised during rendering; surfaced as an Issue with code
    'missing-path' and severity 'warning'.
    """


class InteractionInvalid(CardError):
    """Interaction event cannot be translated (unknown type, missing ids)."""


class CardValidationError(CardError):
    """Raised by the runtime in ValidationMode.ERROR when error-severity issues exist."""

    def __init__(self, issues: List[Any]):
        codes = ", ".join(sorted({issue.code for issue in issues}))
        super().__init__(f"card failed validation: {codes}")
        self.issues = issues
