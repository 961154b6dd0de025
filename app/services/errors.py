"""
Error types raised by the post services.

Every error carries a machine-readable ``kind`` next to its message so the
HTTP layer can surface both.
"""

from typing import Optional


class PostError(Exception):
    """Base class for all post service errors."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class ValidationError(PostError):
    """Caller-supplied data violates a constraint."""

    kind = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class InvariantViolationError(ValidationError):
    """A write would break the status/published_at rule.

    Signals a bug in the post store rather than bad input.
    """

    kind = "invariant_violation"


class NotFoundError(PostError):
    """Referenced post does not exist."""

    kind = "not_found"


class ConflictError(PostError):
    """Uniqueness violation that survived the single retry."""

    kind = "conflict"


class FetchError(PostError):
    """The store was unreachable or failed unexpectedly."""

    kind = "fetch_error"
