"""Profile comment persistence."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pryvo.database.schema import ProfileCommentDB
from pryvo.models.comment import CommentStatus, ProfileComment


async def insert_comment(session: AsyncSession, comment: ProfileComment) -> ProfileComment:
    """
    Insert a pending comment.

    Raises:
        sqlalchemy.exc.IntegrityError: If a pending comment already exists for the pair.
    """
    session.add(
        ProfileCommentDB(
            id=comment.id,
            sender_id=comment.sender_id,
            receiver_id=comment.receiver_id,
            comment=comment.comment,
            target_content=comment.target_content.model_dump(mode="json"),
            status=comment.status.value,
            is_read=comment.is_read,
            created_at=comment.created_at,
            expires_at=comment.expires_at,
        )
    )
    await session.flush()
    return comment


async def get_comment(session: AsyncSession, comment_id: str) -> Optional[ProfileComment]:
    row = await session.get(ProfileCommentDB, comment_id)
    return ProfileComment.model_validate(row) if row else None


async def expire_pending_for_pair(session: AsyncSession, sender_id: str, receiver_id: str, now: datetime) -> int:
    """Mark lapsed pending comments for the pair as expired so a new one can be sent."""
    result = await session.execute(
        update(ProfileCommentDB)
        .where(
            ProfileCommentDB.sender_id == sender_id,
            ProfileCommentDB.receiver_id == receiver_id,
            ProfileCommentDB.status == CommentStatus.PENDING.value,
            ProfileCommentDB.expires_at < now,
        )
        .values(status=CommentStatus.EXPIRED.value)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def resolve_comment(session: AsyncSession, comment_id: str, status: CommentStatus, now: datetime) -> bool:
    """Move a pending comment to `status`. False if it was no longer pending."""
    result = await session.execute(
        update(ProfileCommentDB)
        .where(ProfileCommentDB.id == comment_id, ProfileCommentDB.status == CommentStatus.PENDING.value)
        .values(status=status.value, responded_at=now, is_read=True)
        .execution_options(synchronize_session=False)
    )
    return bool(result.rowcount)


async def list_received(session: AsyncSession, receiver_id: str, now: datetime) -> List[ProfileComment]:
    result = await session.execute(
        select(ProfileCommentDB)
        .where(
            ProfileCommentDB.receiver_id == receiver_id,
            ProfileCommentDB.status == CommentStatus.PENDING.value,
            ProfileCommentDB.expires_at >= now,
        )
        .order_by(ProfileCommentDB.created_at.desc())
    )
    return [ProfileComment.model_validate(row) for row in result.scalars()]
