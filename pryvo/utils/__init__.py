"""Utils package for the Pryvo backend."""

from pryvo.utils.cache import RedisCache
from pryvo.utils.errors import (
    AccessDeniedError,
    BlockedError,
    BoostAlreadyActiveError,
    ChatDisabledError,
    ConfigurationError,
    ConflictError,
    DailyLimitReachedError,
    DatabaseError,
    EmptyMessageError,
    ErrorKind,
    ExternalServiceError,
    ForbiddenError,
    InvalidMatchIdError,
    MatchNotFoundError,
    NotFoundError,
    NothingToUndoError,
    PremiumRequiredError,
    ProfileNotFoundError,
    PryvoError,
    ReceiverMismatchError,
    ValidationError,
    WindowExpiredError,
)
from pryvo.utils.geo import distance_km, haversine_distance
from pryvo.utils.logging import configure_logging, get_logger, log_error

__all__ = [
    "AccessDeniedError",
    "BlockedError",
    "BoostAlreadyActiveError",
    "ChatDisabledError",
    "ConfigurationError",
    "ConflictError",
    "DailyLimitReachedError",
    "DatabaseError",
    "EmptyMessageError",
    "ErrorKind",
    "ExternalServiceError",
    "ForbiddenError",
    "InvalidMatchIdError",
    "MatchNotFoundError",
    "NotFoundError",
    "NothingToUndoError",
    "PremiumRequiredError",
    "ProfileNotFoundError",
    "PryvoError",
    "ReceiverMismatchError",
    "RedisCache",
    "ValidationError",
    "WindowExpiredError",
    "configure_logging",
    "distance_km",
    "get_logger",
    "haversine_distance",
    "log_error",
]
