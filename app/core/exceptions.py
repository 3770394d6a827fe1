"""Domain errors raised by the document services.

Handlers in app.main translate these to HTTP responses; the core never
returns error values.
"""
from typing import Optional, Sequence


class DocumentError(Exception):
    """Base class for invoice/quotation errors."""

    code = "DOCUMENT_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(DocumentError):
    """A field is missing or malformed for the requested operation."""

    code = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason

    def to_dict(self) -> dict:
        return {"code": self.code, "field": self.field, "message": self.reason}


class IllegalTransitionError(DocumentError):
    """Requested status is not reachable from the current status."""

    code = "ILLEGAL_TRANSITION"

    def __init__(self, current: str, requested: str, allowed: Sequence[str] = ()):
        self.current = current
        self.requested = requested
        self.allowed = list(allowed)
        if not self.allowed:
            message = f"Document in '{current}' status cannot change status. This is a terminal state."
        else:
            message = (
                f"Cannot change status from '{current}' to '{requested}'. "
                f"Allowed transitions: {', '.join(self.allowed)}"
            )
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["allowed"] = self.allowed
        return data


class DocumentLockedError(DocumentError):
    """Document content can no longer be edited in its current status."""

    code = "DOCUMENT_LOCKED"


class AccessDeniedError(DocumentError):
    """Acting user does not own the document."""

    code = "ACCESS_DENIED"


class DocumentNotFoundError(DocumentError):
    code = "NOT_FOUND"

    def __init__(self, kind: str, document_id: Optional[object] = None):
        super().__init__(f"{kind.capitalize()} not found")
        self.kind = kind
        self.document_id = document_id


class PersistenceError(DocumentError):
    """Storage failure. Surfaced as-is, never retried here."""

    code = "PERSISTENCE_ERROR"


class AuthenticationError(DocumentError):
    """Bad credentials or an unusable token."""

    code = "AUTHENTICATION_FAILED"
