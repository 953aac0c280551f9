"""
highroller.errors — Typed Error Taxonomy
=========================================

Every service operation either returns its success value or raises one of
the errors below.  Each error carries:

* ``code``    — stable machine-readable identifier (``"insufficient_funds"``)
* ``message`` — human-readable text, safe to show to the caller
* ``status_code`` — the HTTP status the API layer maps it to

The API installs a single exception handler for :class:`HighrollerError`,
so routes never translate errors by hand.
"""

from __future__ import annotations


class HighrollerError(Exception):
    """Base class for all business and storage failures."""

    status_code: int = 400
    default_code: str = "error"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        self.code = code or self.default_code
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.code, "message": self.message}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} code={self.code!r} message={self.message!r}>"


class ValidationError(HighrollerError):
    """Missing or malformed input (non-numeric amount, missing id, …)."""
    status_code = 400
    default_code = "validation_error"
    default_message = "Invalid input"


class NotFoundError(HighrollerError):
    """Account, item or session absent."""
    status_code = 404
    default_code = "not_found"
    default_message = "Not found"


class ConflictError(HighrollerError):
    """Duplicate username / cosmetic name, self-friend."""
    status_code = 409
    default_code = "conflict"
    default_message = "Conflict"


class AuthError(HighrollerError):
    """Missing/invalid/expired/revoked token or wrong credentials."""
    status_code = 401
    default_code = "unauthorized"
    default_message = "Not authenticated"


class ForbiddenError(AuthError):
    """Authenticated, but not allowed to perform the action."""
    status_code = 403
    default_code = "forbidden"
    default_message = "Not allowed"


class InsufficientFundsError(HighrollerError):
    """The operation would take a balance below zero."""
    status_code = 400
    default_code = "insufficient_funds"
    default_message = "Not enough balance"


class OwnershipError(HighrollerError):
    """Not owned / already owned / category does not fit the slot."""
    status_code = 400
    default_code = "ownership_error"
    default_message = "Ownership rule violated"


class StorageError(HighrollerError):
    """Transient I/O failure from the database."""
    status_code = 503
    default_code = "storage_error"
    default_message = "Storage temporarily unavailable"


# ---------------------------------------------------------------------------
# Canonical messages
# ---------------------------------------------------------------------------
WRONG_CREDENTIALS = "Wrong username or password"


def account_not_found() -> NotFoundError:
    return NotFoundError("User not found", code="account_not_found")


def item_not_found() -> NotFoundError:
    return NotFoundError("Item not found", code="item_not_found")


def invalid_amount(message: str = "Amount must be a positive number") -> ValidationError:
    return ValidationError(message, code="invalid_amount")


def invalid_parameter(name: str) -> ValidationError:
    return ValidationError(f"Invalid {name} parameter", code="invalid_parameter")
