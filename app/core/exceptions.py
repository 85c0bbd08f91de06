"""
Application exception hierarchy.

Every failure the messaging core can report falls into one of a small number
of kinds. Each kind is an exception class carrying a default error code and
the HTTP status the API layer answers with:

    NotFoundError          404  conversation/message/user/reference absent
    PermissionDeniedError  403  non-participant, or non-sender deleting
    ValidationError        400  malformed payload, bad group size, empty field
    ConflictError          409  state conflict (double delete)
    ExternalServiceError   502  a collaborator (media storage) failed

Services normally report expected failures as ServiceResult values; helpers
deeper down raise these exceptions and the service boundary converts them
with ServiceResult.from_exception(). Views never inspect exception types
directly, they look the error code up with kind_for_code().

Usage:
    from core.exceptions import NotFoundError, ValidationError

    if not text:
        raise ValidationError("Text is required", error_code="TEXT_REQUIRED")

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
        status_code: HTTP status used when the error reaches the API
    """

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and (if present) details keys
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for malformed message payloads, group sizes outside the allowed
    bounds and empty required fields.
    """

    default_error_code: str = "VALIDATION_ERROR"
    status_code: int = 400


class NotFoundError(BaseApplicationError):
    """Raised when a conversation, message, user or referenced entity is absent."""

    default_error_code: str = "NOT_FOUND"
    status_code: int = 404


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller may not perform an operation.

    Authentication itself is handled by DRF / the socket middleware; this is
    for authorization failures such as acting on a conversation the caller
    is not a participant of.
    """

    default_error_code: str = "PERMISSION_DENIED"
    status_code: int = 403


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with the current resource state.

    Example:
        if message.is_tombstone:
            raise ConflictError("Message already deleted", error_code="ALREADY_DELETED")
    """

    default_error_code: str = "CONFLICT"
    status_code: int = 409


class ExternalServiceError(BaseApplicationError):
    """
    Raised when a collaborator call fails.

    Log the original error for debugging but don't expose internal details
    to clients.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    status_code: int = 502


# =============================================================================
# Error code registry
# =============================================================================

_CODE_KINDS: dict[str, type[BaseApplicationError]] = {}


def register_error_codes(
    kind: type[BaseApplicationError], *codes: str
) -> None:
    """
    Declare which exception kind a set of ServiceResult error codes belongs to.

    Apps register their codes once at import time so the API layer can turn
    any failed ServiceResult into the right HTTP status.
    """
    for code in codes:
        _CODE_KINDS[code] = kind


def kind_for_code(error_code: str | None) -> type[BaseApplicationError]:
    """
    Return the exception kind registered for an error code.

    Codes that were never registered but match a kind's default code resolve
    to that kind; anything else is treated as a validation failure.
    """
    if error_code in _CODE_KINDS:
        return _CODE_KINDS[error_code]
    for kind in (
        ValidationError,
        NotFoundError,
        PermissionDeniedError,
        ConflictError,
        ExternalServiceError,
    ):
        if kind.default_error_code == error_code:
            return kind
    return ValidationError
