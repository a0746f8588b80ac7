"""Like and pass persistence."""

from datetime import datetime
from typing import Any, Dict, Optional, Set, Union

from sqlalchemy import delete, func, select, union_all
from sqlalchemy.ext.asyncio import AsyncSession

from pryvo.database.schema import LikeDB, PassDB
from pryvo.database.statements import insert_ignore
from pryvo.models.swipe import Like, Pass, SwipeAction


async def record_like(
    session: AsyncSession,
    like_id: str,
    sender_id: str,
    receiver_id: str,
    created_at: datetime,
    liked_content: Optional[Dict[str, Any]] = None,
) -> bool:
    """Insert a like edge. Returns False if the edge already existed."""
    return await insert_ignore(
        session,
        LikeDB,
        {
            "id": like_id,
            "sender_id": sender_id,
            "receiver_id": receiver_id,
            "liked_content": liked_content,
            "created_at": created_at,
        },
        ("sender_id", "receiver_id"),
    )


async def record_pass(session: AsyncSession, pass_id: str, user_id: str, passed_user_id: str, created_at: datetime) -> bool:
    """Insert a pass edge. Returns False if the edge already existed."""
    return await insert_ignore(
        session,
        PassDB,
        {"id": pass_id, "user_id": user_id, "passed_user_id": passed_user_id, "created_at": created_at},
        ("user_id", "passed_user_id"),
    )


async def find_like(session: AsyncSession, sender_id: str, receiver_id: str) -> Optional[Like]:
    result = await session.execute(
        select(LikeDB).where(LikeDB.sender_id == sender_id, LikeDB.receiver_id == receiver_id)
    )
    row = result.scalar_one_or_none()
    return Like.model_validate(row) if row else None


async def find_pass(session: AsyncSession, user_id: str, passed_user_id: str) -> Optional[Pass]:
    result = await session.execute(
        select(PassDB).where(PassDB.user_id == user_id, PassDB.passed_user_id == passed_user_id)
    )
    row = result.scalar_one_or_none()
    return Pass.model_validate(row) if row else None


async def find_latest_swipe(session: AsyncSession, user_id: str) -> Optional[Union[Like, Pass]]:
    """The user's single most recent like or pass, whichever is newer."""
    like = (
        await session.execute(
            select(LikeDB).where(LikeDB.sender_id == user_id).order_by(LikeDB.created_at.desc()).limit(1)
        )
    ).scalar_one_or_none()
    pass_ = (
        await session.execute(
            select(PassDB).where(PassDB.user_id == user_id).order_by(PassDB.created_at.desc()).limit(1)
        )
    ).scalar_one_or_none()

    if like is None and pass_ is None:
        return None
    if pass_ is None or (like is not None and like.created_at >= pass_.created_at):
        return Like.model_validate(like)
    return Pass.model_validate(pass_)


async def delete_swipe(session: AsyncSession, action: SwipeAction, swipe_id: str) -> bool:
    """Delete one like or pass by id. Returns False if it was already gone."""
    model = LikeDB if action == SwipeAction.LIKE else PassDB
    result = await session.execute(delete(model).where(model.id == swipe_id))
    return bool(result.rowcount)


async def delete_passes(session: AsyncSession, user_id: str) -> int:
    result = await session.execute(delete(PassDB).where(PassDB.user_id == user_id))
    return result.rowcount or 0


async def swiped_user_ids(session: AsyncSession, user_id: str) -> Set[str]:
    """Everyone `user_id` has liked or passed on."""
    liked = select(LikeDB.receiver_id.label("target_id")).where(LikeDB.sender_id == user_id)
    passed = select(PassDB.passed_user_id.label("target_id")).where(PassDB.user_id == user_id)
    result = await session.execute(union_all(liked, passed))
    return {target_id for (target_id,) in result}


async def count_likes_received(session: AsyncSession, user_id: str) -> int:
    result = await session.execute(select(func.count()).select_from(LikeDB).where(LikeDB.receiver_id == user_id))
    return result.scalar_one()
