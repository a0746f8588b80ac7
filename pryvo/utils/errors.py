"""Custom exceptions for the Pryvo backend."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Transport-independent failure categories."""

    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    QUOTA_EXCEEDED = "quota_exceeded"
    PRECONDITION_FAILED = "precondition_failed"
    PREMIUM_REQUIRED = "premium_required"
    EXPIRED = "expired"
    UNAVAILABLE = "unavailable"
    VALIDATION = "validation"
    INTERNAL = "internal"


class PryvoError(Exception):
    """Base exception for all Pryvo errors."""

    kind: ErrorKind = ErrorKind.INTERNAL
    default_status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the error with a message and optional details.

        Args:
            message (str): Error message describing what went wrong.
            status_code (Optional[int]): HTTP status code associated with the error.
                Defaults to the class's `default_status_code`.
            details (Optional[Dict[str, Any]]): Additional context or debug information.
        """
        self.message = message
        self.status_code = status_code if status_code is not None else self.default_status_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(PryvoError):
    """Raised when there's an issue with the application configuration."""


class ValidationError(PryvoError):
    """Raised when data validation fails."""

    kind = ErrorKind.VALIDATION
    default_status_code = 400


# Not found


class NotFoundError(PryvoError):
    """Raised when a requested resource is not found."""

    kind = ErrorKind.NOT_FOUND
    default_status_code = 404


class ProfileNotFoundError(NotFoundError):
    """Raised when a user has no profile."""


class MatchNotFoundError(NotFoundError):
    """Raised when a match does not exist."""


class MessageNotFoundError(NotFoundError):
    """Raised when a message does not exist."""


class CommentNotFoundError(NotFoundError):
    """Raised when a profile comment does not exist."""


class NothingToUndoError(NotFoundError):
    """Raised when a user has no swipe left to undo."""


# Forbidden


class ForbiddenError(PryvoError):
    """Raised when the caller may not perform the operation."""

    kind = ErrorKind.FORBIDDEN
    default_status_code = 403


class AccessDeniedError(ForbiddenError):
    """Raised when a user is not a member of the match they address."""


class BlockedError(ForbiddenError):
    """Raised when a block exists between two users."""


# Conflict


class ConflictError(PryvoError):
    """Raised when a uniqueness rule would be violated."""

    kind = ErrorKind.CONFLICT
    default_status_code = 409


class BoostAlreadyActiveError(ConflictError):
    """Raised when a user already has a boost in flight."""


# Quota


class QuotaExceededError(PryvoError):
    """Raised when a per-user quota is exhausted."""

    kind = ErrorKind.QUOTA_EXCEEDED
    default_status_code = 429


class DailyLimitReachedError(QuotaExceededError):
    """Raised when the daily like quota is used up."""


# Preconditions


class PreconditionFailedError(PryvoError):
    """Raised when the request is well-formed but not applicable to the current state."""

    kind = ErrorKind.PRECONDITION_FAILED
    default_status_code = 400


class ChatDisabledError(PreconditionFailedError):
    """Raised when chat has been disabled for a match."""


class ReceiverMismatchError(PreconditionFailedError):
    """Raised when the receiver is not the other member of the match."""


class InvalidMatchIdError(PreconditionFailedError):
    """Raised when a match id is malformed."""


class EmptyMessageError(PreconditionFailedError):
    """Raised when a message has neither text nor media."""


# Premium


class PremiumRequiredError(PryvoError):
    """Raised when a premium-only feature is used without a subscription."""

    kind = ErrorKind.PREMIUM_REQUIRED
    default_status_code = 403


# Expired


class ExpiredError(PryvoError):
    """Raised when a time-boxed action is attempted too late."""

    kind = ErrorKind.EXPIRED
    default_status_code = 410


class WindowExpiredError(ExpiredError):
    """Raised when the undo window has passed."""


# Unavailable


class UnavailableError(PryvoError):
    """Raised when a dependency is temporarily unavailable."""

    kind = ErrorKind.UNAVAILABLE
    default_status_code = 503


class DatabaseError(UnavailableError):
    """Raised when there's an issue with the database operations."""


class ExternalServiceError(UnavailableError):
    """Raised when an external service (push gateway, Redis, etc.) fails."""

    def __init__(self, message: str, service: str, details: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the external service error.

        Args:
            message (str): Error message.
            service (str): Name of the external service.
            details (Optional[Dict[str, Any]]): Additional details.
        """
        error_details = details or {}
        error_details["service"] = service
        super().__init__(message, 502, error_details)
