"""Message persistence.

Status updates are conditional on the current status, so a row can only move
forward through sent -> delivered -> seen no matter how calls interleave.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pryvo.database.schema import MessageDB
from pryvo.models.message import Message, MessageStatus


async def create_message(session: AsyncSession, message: Message) -> Message:
    session.add(
        MessageDB(
            id=message.id,
            match_id=message.match_id,
            sender_id=message.sender_id,
            receiver_id=message.receiver_id,
            text=message.text,
            media_url=message.media_url,
            media_type=message.media_type.value if message.media_type else None,
            status=message.status.value,
            created_at=message.created_at,
        )
    )
    await session.flush()
    return message


async def get_message(session: AsyncSession, message_id: str) -> Optional[Message]:
    row = await session.get(MessageDB, message_id)
    return Message.model_validate(row) if row else None


async def list_by_match(
    session: AsyncSession, match_id: str, limit: Optional[int] = None, before: Optional[datetime] = None
) -> List[Message]:
    """Messages in a match, oldest first. `limit` keeps the newest `limit` rows."""
    query = select(MessageDB).where(MessageDB.match_id == match_id)
    if before is not None:
        query = query.where(MessageDB.created_at < before)
    query = query.order_by(MessageDB.created_at.desc(), MessageDB.id.desc())
    if limit is not None:
        query = query.limit(limit)
    result = await session.execute(query)
    rows = list(result.scalars())
    rows.reverse()
    return [Message.model_validate(row) for row in rows]


async def mark_delivered(session: AsyncSession, message_id: str) -> bool:
    """Advance one message from sent to delivered. False if it had already moved on."""
    result = await session.execute(
        update(MessageDB)
        .where(MessageDB.id == message_id, MessageDB.status == MessageStatus.SENT.value)
        .values(status=MessageStatus.DELIVERED.value)
        .execution_options(synchronize_session=False)
    )
    return bool(result.rowcount)


async def mark_match_delivered(session: AsyncSession, match_id: str, receiver_id: str) -> List[str]:
    """Advance every sent message to `receiver_id` in a match; returns the ids moved."""
    result = await session.execute(
        select(MessageDB.id).where(
            MessageDB.match_id == match_id,
            MessageDB.receiver_id == receiver_id,
            MessageDB.status == MessageStatus.SENT.value,
        )
    )
    ids = [message_id for (message_id,) in result]
    if not ids:
        return []
    await session.execute(
        update(MessageDB)
        .where(MessageDB.id.in_(ids), MessageDB.status == MessageStatus.SENT.value)
        .values(status=MessageStatus.DELIVERED.value)
        .execution_options(synchronize_session=False)
    )
    return ids


async def mark_seen(session: AsyncSession, match_id: str, receiver_id: str, seen_at: datetime) -> int:
    """Bulk-advance unseen messages to `receiver_id` into seen. Returns rows changed."""
    result = await session.execute(
        update(MessageDB)
        .where(
            MessageDB.match_id == match_id,
            MessageDB.receiver_id == receiver_id,
            MessageDB.status != MessageStatus.SEEN.value,
        )
        .values(status=MessageStatus.SEEN.value, seen_at=seen_at)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def delete_message(session: AsyncSession, message_id: str) -> bool:
    result = await session.execute(delete(MessageDB).where(MessageDB.id == message_id))
    return bool(result.rowcount)


async def last_messages(session: AsyncSession, match_ids: List[str]) -> Dict[str, Message]:
    """Newest message per match, for the conversation list."""
    if not match_ids:
        return {}
    newest = (
        select(MessageDB.match_id, func.max(MessageDB.created_at).label("newest"))
        .where(MessageDB.match_id.in_(match_ids))
        .group_by(MessageDB.match_id)
        .subquery()
    )
    result = await session.execute(
        select(MessageDB).join(
            newest,
            (MessageDB.match_id == newest.c.match_id) & (MessageDB.created_at == newest.c.newest),
        )
    )
    latest: Dict[str, Message] = {}
    for row in result.scalars():
        latest.setdefault(row.match_id, Message.model_validate(row))
    return latest


async def unread_counts(session: AsyncSession, user_id: str, match_ids: List[str]) -> Dict[str, int]:
    if not match_ids:
        return {}
    result = await session.execute(
        select(MessageDB.match_id, func.count())
        .where(
            MessageDB.match_id.in_(match_ids),
            MessageDB.receiver_id == user_id,
            MessageDB.status != MessageStatus.SEEN.value,
        )
        .group_by(MessageDB.match_id)
    )
    return {match_id: count for match_id, count in result}
