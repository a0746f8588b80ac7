"""Push token persistence."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pryvo.database.schema import NotificationTokenDB


async def save_token(
    session: AsyncSession, token_id: str, user_id: str, token: str, platform: Optional[str], now: datetime
) -> None:
    """Register `token` for `user_id`, moving it over if another user held it."""
    result = await session.execute(select(NotificationTokenDB).where(NotificationTokenDB.token == token))
    row = result.scalar_one_or_none()
    if row is None:
        session.add(NotificationTokenDB(id=token_id, user_id=user_id, token=token, platform=platform, created_at=now))
    else:
        row.user_id = user_id
        row.platform = platform
    await session.flush()


async def tokens_for_user(session: AsyncSession, user_id: str) -> List[str]:
    result = await session.execute(select(NotificationTokenDB.token).where(NotificationTokenDB.user_id == user_id))
    return [token for (token,) in result]


async def delete_tokens(session: AsyncSession, tokens: List[str]) -> int:
    if not tokens:
        return 0
    result = await session.execute(delete(NotificationTokenDB).where(NotificationTokenDB.token.in_(tokens)))
    return result.rowcount or 0
