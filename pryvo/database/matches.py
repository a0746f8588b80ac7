"""Match persistence."""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pryvo.database.schema import MatchDB
from pryvo.database.statements import insert_ignore
from pryvo.models.match import Match, MatchOrigin, MatchStatus
from pryvo.utils.errors import DatabaseError
from pryvo.utils.helpers import ordered_pair


async def get_match(session: AsyncSession, match_id: str) -> Optional[Match]:
    row = await session.get(MatchDB, match_id)
    return Match.model_validate(row) if row else None


async def find_by_pair(session: AsyncSession, user_a: str, user_b: str) -> Optional[Match]:
    low, high = ordered_pair(user_a, user_b)
    result = await session.execute(select(MatchDB).where(MatchDB.user_low == low, MatchDB.user_high == high))
    row = result.scalar_one_or_none()
    return Match.model_validate(row) if row else None


async def find_or_create(
    session: AsyncSession,
    match_id: str,
    user_a: str,
    user_b: str,
    created_at: datetime,
    initiated_by: MatchOrigin = MatchOrigin.LIKE,
    comment_id: Optional[str] = None,
) -> Tuple[Match, bool]:
    """
    Return the match for the pair, creating it if needed.

    The unique (user_low, user_high) constraint arbitrates concurrent callers:
    exactly one insert wins, everyone else reads the winner's row.

    Returns:
        Tuple[Match, bool]: The match and whether this call created it.
    """
    low, high = ordered_pair(user_a, user_b)
    created = await insert_ignore(
        session,
        MatchDB,
        {
            "id": match_id,
            "user_low": low,
            "user_high": high,
            "chat_enabled": True,
            "call_enabled": True,
            "status": "active",
            "initiated_by": initiated_by.value,
            "comment_id": comment_id,
            "created_at": created_at,
        },
        ("user_low", "user_high"),
    )
    match = await find_by_pair(session, low, high)
    if match is None:
        raise DatabaseError("Match vanished after insert", details={"user_low": low, "user_high": high})
    return match, created


async def list_for_user(session: AsyncSession, user_id: str, chat_enabled_only: bool = False) -> List[Match]:
    query = select(MatchDB).where(or_(MatchDB.user_low == user_id, MatchDB.user_high == user_id))
    if chat_enabled_only:
        query = query.where(MatchDB.chat_enabled.is_(True))
    result = await session.execute(query.order_by(MatchDB.created_at.desc()))
    return [Match.model_validate(row) for row in result.scalars()]


async def mark_unmatched(session: AsyncSession, match_id: str) -> bool:
    result = await session.execute(
        update(MatchDB)
        .where(MatchDB.id == match_id)
        .values(chat_enabled=False, call_enabled=False, status=MatchStatus.UNMATCHED.value)
        .execution_options(synchronize_session=False)
    )
    return bool(result.rowcount)


async def set_chat_for_pair(session: AsyncSession, user_a: str, user_b: str, enabled: bool) -> bool:
    """Switch chat for the pair's match. An unmatched pair is never switched back on."""
    low, high = ordered_pair(user_a, user_b)
    query = update(MatchDB).where(MatchDB.user_low == low, MatchDB.user_high == high)
    if enabled:
        query = query.where(or_(MatchDB.status.is_(None), MatchDB.status != MatchStatus.UNMATCHED.value))
    result = await session.execute(
        query
        .values(chat_enabled=enabled, call_enabled=enabled)
        .execution_options(synchronize_session=False)
    )
    return bool(result.rowcount)

