"""Subscription persistence."""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pryvo.database.schema import SubscriptionDB


async def has_active_subscription(session: AsyncSession, user_id: str, now: datetime) -> bool:
    result = await session.execute(
        select(SubscriptionDB.user_id).where(
            SubscriptionDB.user_id == user_id,
            SubscriptionDB.is_active.is_(True),
            or_(SubscriptionDB.expires_at.is_(None), SubscriptionDB.expires_at > now),
        )
    )
    return result.first() is not None


async def upsert_subscription(
    session: AsyncSession, user_id: str, plan: str, expires_at: Optional[datetime], now: datetime
) -> None:
    row = await session.get(SubscriptionDB, user_id)
    if row is None:
        session.add(
            SubscriptionDB(
                user_id=user_id, plan=plan, is_active=True, expires_at=expires_at, created_at=now, updated_at=now
            )
        )
    else:
        row.plan = plan
        row.is_active = True
        row.expires_at = expires_at
        row.updated_at = now
    await session.flush()


async def cancel_subscription(session: AsyncSession, user_id: str, now: datetime) -> bool:
    row = await session.get(SubscriptionDB, user_id)
    if row is None or not row.is_active:
        return False
    row.is_active = False
    row.updated_at = now
    await session.flush()
    return True
