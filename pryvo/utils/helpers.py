"""Small shared helpers: clocks, identifiers, day keys."""

import uuid
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Get current UTC time (naive), the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    """Generate a primary key for a new row."""
    return uuid.uuid4().hex


def is_valid_id(value: object) -> bool:
    """True when `value` looks like an id produced by `new_id` (32 hex chars)."""
    if not isinstance(value, str) or len(value) != 32:
        return False
    try:
        uuid.UUID(hex=value)
    except ValueError:
        return False
    return True


def day_key(moment: datetime) -> str:
    """Calendar-day bucket (UTC, YYYY-MM-DD) used by daily quotas."""
    return moment.strftime("%Y-%m-%d")


def ordered_pair(a: str, b: str) -> tuple[str, str]:
    """Canonical ordering for an unordered pair of user ids."""
    return (a, b) if a <= b else (b, a)
