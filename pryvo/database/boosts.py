"""Boost persistence."""

from datetime import datetime
from typing import Iterable, List, Optional, Set

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from pryvo.database.schema import BoostDB
from pryvo.models.boost import Boost


def _current(now: datetime) -> ColumnElement[bool]:
    return (BoostDB.is_active.is_(True)) & (BoostDB.start_time <= now) & (BoostDB.end_time >= now)


async def get_current(session: AsyncSession, user_id: str, now: datetime) -> Optional[Boost]:
    result = await session.execute(
        select(BoostDB).where(BoostDB.user_id == user_id, _current(now)).order_by(BoostDB.end_time.desc()).limit(1)
    )
    row = result.scalar_one_or_none()
    return Boost.model_validate(row) if row else None


async def boosted_among(session: AsyncSession, user_ids: Iterable[str], now: datetime) -> Set[str]:
    """Which of `user_ids` have a current boost. One query for the whole batch."""
    ids = list(user_ids)
    if not ids:
        return set()
    result = await session.execute(select(BoostDB.user_id).where(BoostDB.user_id.in_(ids), _current(now)))
    return {user_id for (user_id,) in result}


async def deactivate_lapsed_for_user(session: AsyncSession, user_id: str, now: datetime) -> int:
    result = await session.execute(
        update(BoostDB)
        .where(BoostDB.user_id == user_id, BoostDB.is_active.is_(True), BoostDB.end_time < now)
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def insert_boost(session: AsyncSession, boost: Boost) -> Boost:
    """
    Insert an active boost.

    Raises:
        sqlalchemy.exc.IntegrityError: If the user already has an active row.
    """
    session.add(
        BoostDB(
            id=boost.id,
            user_id=boost.user_id,
            start_time=boost.start_time,
            end_time=boost.end_time,
            duration_minutes=boost.duration_minutes,
            is_active=True,
            created_at=boost.created_at,
        )
    )
    await session.flush()
    return boost


async def list_for_user(session: AsyncSession, user_id: str, limit: int = 20) -> List[Boost]:
    result = await session.execute(
        select(BoostDB).where(BoostDB.user_id == user_id).order_by(BoostDB.start_time.desc()).limit(limit)
    )
    return [Boost.model_validate(row) for row in result.scalars()]


async def expire_lapsed(session: AsyncSession, now: datetime) -> int:
    """Flip `is_active` off for every boost whose end time has passed."""
    result = await session.execute(
        update(BoostDB)
        .where(BoostDB.is_active.is_(True), BoostDB.end_time < now)
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0
