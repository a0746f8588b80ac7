"""Atomic write primitives shared by the stores."""

from typing import Any, Dict, Optional, Sequence, Type

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from pryvo.database.schema import Base, DailyCounterDB
from pryvo.utils.errors import ConfigurationError


def _dialect(session: AsyncSession) -> str:
    bind = session.bind
    if bind is None:
        raise ConfigurationError("Session is not bound to an engine")
    return bind.dialect.name


async def insert_ignore(
    session: AsyncSession,
    model: Type[Base],
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
) -> bool:
    """
    INSERT ... ON CONFLICT DO NOTHING.

    Args:
        session (AsyncSession): Session inside an open transaction.
        model (Type[Base]): Mapped table to insert into.
        values (Dict[str, Any]): Column values for the new row.
        conflict_columns (Sequence[str]): Columns of the unique constraint that
            decides whether the row already exists.

    Returns:
        bool: True if a row was inserted, False if one already existed.
    """
    dialect = _dialect(session)
    if dialect == "postgresql":
        stmt = postgresql.insert(model).values(**values).on_conflict_do_nothing(index_elements=list(conflict_columns))
    elif dialect == "sqlite":
        stmt = sqlite.insert(model).values(**values).on_conflict_do_nothing(index_elements=list(conflict_columns))
    else:
        raise ConfigurationError(f"Unsupported database dialect: {dialect}")

    result = await session.execute(stmt)
    return bool(result.rowcount)


async def read_daily_count(session: AsyncSession, user_id: str, kind: str, day: str) -> int:
    result = await session.execute(
        select(DailyCounterDB.count).where(
            DailyCounterDB.user_id == user_id,
            DailyCounterDB.kind == kind,
            DailyCounterDB.day == day,
        )
    )
    count: Optional[int] = result.scalar_one_or_none()
    return count or 0


async def consume_daily_quota(session: AsyncSession, user_id: str, kind: str, day: str, limit: int) -> Optional[int]:
    """
    Take one unit from a user's daily allowance.

    The check and the increment are a single conditional UPDATE, so two
    concurrent callers can never push the counter past `limit`.

    Returns:
        Optional[int]: Units left after this one, or None if the allowance was
            already used up. The caller must roll back on None.
    """
    await insert_ignore(
        session,
        DailyCounterDB,
        {"user_id": user_id, "kind": kind, "day": day, "count": 0},
        ("user_id", "kind", "day"),
    )
    result = await session.execute(
        update(DailyCounterDB)
        .where(
            DailyCounterDB.user_id == user_id,
            DailyCounterDB.kind == kind,
            DailyCounterDB.day == day,
            DailyCounterDB.count < limit,
        )
        .values(count=DailyCounterDB.count + 1)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        return None
    return limit - await read_daily_count(session, user_id, kind, day)
