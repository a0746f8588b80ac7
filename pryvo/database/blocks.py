"""Block persistence."""

from datetime import datetime
from typing import List, Optional, Set

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pryvo.database.schema import BlockDB
from pryvo.database.statements import insert_ignore
from pryvo.models.block import Block


async def create_block(
    session: AsyncSession, block_id: str, blocker_id: str, blocked_id: str, created_at: datetime, reason: Optional[str]
) -> bool:
    return await insert_ignore(
        session,
        BlockDB,
        {"id": block_id, "blocker_id": blocker_id, "blocked_id": blocked_id, "reason": reason, "created_at": created_at},
        ("blocker_id", "blocked_id"),
    )


async def delete_block(session: AsyncSession, blocker_id: str, blocked_id: str) -> bool:
    result = await session.execute(
        delete(BlockDB).where(BlockDB.blocker_id == blocker_id, BlockDB.blocked_id == blocked_id)
    )
    return bool(result.rowcount)


async def exists(session: AsyncSession, user_a: str, user_b: str) -> bool:
    """True if either user has blocked the other."""
    result = await session.execute(
        select(BlockDB.id)
        .where(
            or_(
                (BlockDB.blocker_id == user_a) & (BlockDB.blocked_id == user_b),
                (BlockDB.blocker_id == user_b) & (BlockDB.blocked_id == user_a),
            )
        )
        .limit(1)
    )
    return result.first() is not None


async def list_blocked(session: AsyncSession, blocker_id: str) -> List[Block]:
    result = await session.execute(
        select(BlockDB).where(BlockDB.blocker_id == blocker_id).order_by(BlockDB.created_at.desc())
    )
    return [Block.model_validate(row) for row in result.scalars()]


async def blocked_either_way(session: AsyncSession, user_id: str) -> Set[str]:
    """Users `user_id` has blocked plus users who have blocked `user_id`."""
    result = await session.execute(
        select(BlockDB.blocker_id, BlockDB.blocked_id).where(
            or_(BlockDB.blocker_id == user_id, BlockDB.blocked_id == user_id)
        )
    )
    others: Set[str] = set()
    for blocker_id, blocked_id in result:
        others.add(blocked_id if blocker_id == user_id else blocker_id)
    return others
