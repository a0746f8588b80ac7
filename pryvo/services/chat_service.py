"""Message delivery: persistence, room fan-out, status transitions, push fallback."""

import asyncio
import weakref
from datetime import datetime
from typing import Any, Dict, List, Optional

import sentry_sdk

from pryvo.database import blocks as block_store
from pryvo.database import matches as match_store
from pryvo.database import messages as message_store
from pryvo.database.connection import Database
from pryvo.models.match import Match
from pryvo.models.message import ConversationSummary, MediaKind, Message, MessageStatus
from pryvo.services.notifications import (
    MESSAGE_DELETED,
    MESSAGE_STATUS_UPDATE,
    MESSAGES_SEEN,
    RECEIVE_MESSAGE,
    STOP_TYPING,
    TYPING,
    Notifier,
    Notify,
)
from pryvo.services.presence import Connection, PresenceRegistry
from pryvo.services.push_service import PushNotification
from pryvo.utils.errors import (
    AccessDeniedError,
    BlockedError,
    ChatDisabledError,
    EmptyMessageError,
    InvalidMatchIdError,
    MatchNotFoundError,
    MessageNotFoundError,
    ReceiverMismatchError,
)
from pryvo.utils.helpers import Clock, is_valid_id, new_id, utcnow
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)

PUSH_PREVIEW_LENGTH = 100


def message_payload(message: Message) -> Dict[str, Any]:
    return {
        "id": message.id,
        "matchId": message.match_id,
        "senderId": message.sender_id,
        "receiverId": message.receiver_id,
        "text": message.text,
        "mediaUrl": message.media_url,
        "mediaType": message.media_type.value if message.media_type else None,
        "status": message.status.value,
        "createdAt": message.created_at.isoformat(),
    }


def status_payload(match_id: str, message_id: str, status: MessageStatus) -> Dict[str, Any]:
    return {"matchId": match_id, "messageId": message_id, "status": status.value}


class ChatService:
    """
    Message delivery protocol.

    The server is the only ordering authority: every operation that changes
    message state in a match (send, mark delivered, mark seen, delete) holds
    that match's lock from the write through the broadcast, so room members
    observe status changes in the order they were applied. Status writes are
    conditional in the store as well, so statuses never move backwards.
    """

    def __init__(
        self, db: Database, presence: PresenceRegistry, notifier: Notifier, clock: Clock = utcnow
    ) -> None:
        self.db = db
        self.presence = presence
        self.notifier = notifier
        self.clock = clock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, match_id: str) -> asyncio.Lock:
        lock = self._locks.get(match_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[match_id] = lock
        return lock

    @staticmethod
    def _check_match_id(match_id: str) -> None:
        if not is_valid_id(match_id):
            raise InvalidMatchIdError("Invalid match id", details={"match_id": match_id})

    @staticmethod
    def _check_member(match: Optional[Match], match_id: str, user_id: str) -> Match:
        if match is None:
            raise MatchNotFoundError(f"Match not found: {match_id}", details={"match_id": match_id})
        if not match.has_member(user_id):
            raise AccessDeniedError("You are not part of this match", details={"match_id": match_id})
        return match

    async def send(
        self,
        match_id: str,
        sender_id: str,
        receiver_id: str,
        text: Optional[str] = None,
        media_url: Optional[str] = None,
        media_type: Optional[MediaKind] = None,
    ) -> Message:
        """
        Persist a message and deliver it.

        Delivery is to every connection in the match's room. If the receiver is
        online the message moves to delivered and the change is broadcast;
        otherwise a push is scheduled in the background. Push failures are
        logged and never fail the send.

        Returns:
            Message: The stored message, with its final status.

        Raises:
            InvalidMatchIdError: If `match_id` is malformed.
            MatchNotFoundError: If the match does not exist.
            AccessDeniedError: If the sender is not a member.
            ChatDisabledError: If chat is switched off for the match.
            ReceiverMismatchError: If the receiver is not the other member.
            BlockedError: If either user has blocked the other.
            EmptyMessageError: If there is neither text nor media.
        """
        self._check_match_id(match_id)
        text = text.strip() if text else None

        async with self._lock_for(match_id):
            with sentry_sdk.start_span(op="chat.send", name=match_id) as span:
                async with self.db.session("chat.send") as session:
                    match = self._check_member(await match_store.get_match(session, match_id), match_id, sender_id)
                    other_id = match.other_member(sender_id)
                    # blocking also disables chat, so the block must be reported first
                    if await block_store.exists(session, sender_id, other_id):
                        raise BlockedError("Cannot message this user")
                    if not match.chat_enabled:
                        raise ChatDisabledError("Chat is disabled for this match", details={"match_id": match_id})
                    if receiver_id != other_id:
                        raise ReceiverMismatchError("Receiver is not part of this match")
                    if not text and not media_url:
                        raise EmptyMessageError("Message must have text or media")

                    message = await message_store.create_message(
                        session,
                        Message(
                            id=new_id(),
                            match_id=match_id,
                            sender_id=sender_id,
                            receiver_id=receiver_id,
                            text=text,
                            media_url=media_url,
                            media_type=media_type if media_url else None,
                            created_at=self.clock(),
                        ),
                    )

                await self.notifier.emit_to_room(match_id, RECEIVE_MESSAGE, message_payload(message))

                if self.presence.is_online(receiver_id):
                    async with self.db.session("chat.delivered") as session:
                        advanced = await message_store.mark_delivered(session, message.id)
                    if advanced:
                        message.status = MessageStatus.DELIVERED
                        await self.notifier.emit_to_room(
                            match_id, MESSAGE_STATUS_UPDATE, status_payload(match_id, message.id, message.status)
                        )
                    span.set_data("delivery", "realtime")
                else:
                    self._push_new_message(message)
                    span.set_data("delivery", "push")

        logger.info("Message sent", match_id=match_id, message_id=message.id, status=message.status.value)
        return message

    def _push_new_message(self, message: Message) -> Notify:
        if message.text:
            body = message.text[:PUSH_PREVIEW_LENGTH]
        elif message.media_type == MediaKind.VIDEO:
            body = "Sent you a video"
        else:
            body = "Sent you a photo"
        return self.notifier.push(
            message.receiver_id,
            PushNotification(
                title="New message",
                body=body,
                data={"type": "message", "matchId": message.match_id, "messageId": message.id},
            ),
        )

    async def mark_seen(self, match_id: str, user_id: str) -> int:
        """
        Mark every message addressed to `user_id` in the match as seen.

        One `messagesSeen` event is broadcast for the whole batch. Calling it
        again with nothing new to mark changes no rows and broadcasts nothing.

        Returns:
            int: Number of messages that moved to seen.
        """
        self._check_match_id(match_id)
        async with self._lock_for(match_id):
            seen_at = self.clock()
            async with self.db.session("chat.mark_seen") as session:
                self._check_member(await match_store.get_match(session, match_id), match_id, user_id)
                count = await message_store.mark_seen(session, match_id, user_id, seen_at)

            if count:
                await self.notifier.emit_to_room(
                    match_id,
                    MESSAGES_SEEN,
                    {"matchId": match_id, "seenBy": user_id, "seenAt": seen_at.isoformat(), "count": count},
                )
        logger.debug("Messages seen", match_id=match_id, user_id=user_id, count=count)
        return count

    async def list_messages(
        self, match_id: str, user_id: str, limit: Optional[int] = 50, before: Optional[datetime] = None
    ) -> List[Message]:
        """
        Conversation history, oldest first.

        Fetching history counts as delivery: any message still `sent` to the
        reader moves to delivered, and the sender is told.

        Raises:
            InvalidMatchIdError, MatchNotFoundError, AccessDeniedError: As `send`.
            BlockedError: If either member has blocked the other.
        """
        self._check_match_id(match_id)
        async with self._lock_for(match_id):
            async with self.db.session("chat.history") as session:
                match = self._check_member(await match_store.get_match(session, match_id), match_id, user_id)
                if await block_store.exists(session, user_id, match.other_member(user_id)):
                    raise BlockedError("Cannot read this conversation")
                delivered_ids = await message_store.mark_match_delivered(session, match_id, user_id)
                messages = await message_store.list_by_match(session, match_id, limit, before)

            for message_id in delivered_ids:
                await self.notifier.emit_to_room(
                    match_id, MESSAGE_STATUS_UPDATE, status_payload(match_id, message_id, MessageStatus.DELIVERED)
                )
        return messages

    async def last_messages(self, user_id: str) -> List[ConversationSummary]:
        """Latest message and unread count for each of the user's matches."""
        async with self.db.session("chat.summaries") as session:
            matches = await match_store.list_for_user(session, user_id)
            match_ids = [m.id for m in matches]
            latest = await message_store.last_messages(session, match_ids)
            unread = await message_store.unread_counts(session, user_id, match_ids)
        return [
            ConversationSummary(match_id=mid, last_message=latest.get(mid), unread_count=unread.get(mid, 0))
            for mid in match_ids
        ]

    async def delete_message(self, message_id: str, user_id: str) -> None:
        """
        Delete a message. Only its sender may do so.

        Raises:
            MessageNotFoundError: If there is no such message.
            AccessDeniedError: If `user_id` did not send it.
        """
        async with self.db.session("chat.get_message") as session:
            message = await message_store.get_message(session, message_id)
        if message is None:
            raise MessageNotFoundError(f"Message not found: {message_id}", details={"message_id": message_id})
        if message.sender_id != user_id:
            raise AccessDeniedError("Only the sender can delete a message", details={"message_id": message_id})

        async with self._lock_for(message.match_id):
            async with self.db.session("chat.delete") as session:
                deleted = await message_store.delete_message(session, message_id)
            if deleted:
                await self.notifier.emit_to_room(
                    message.match_id, MESSAGE_DELETED, {"matchId": message.match_id, "messageId": message_id}
                )
        logger.info("Message deleted", message_id=message_id, match_id=message.match_id)

    async def typing(self, connection: Connection, match_id: str, user_id: str) -> None:
        await self._relay(connection, match_id, user_id, TYPING)

    async def stop_typing(self, connection: Connection, match_id: str, user_id: str) -> None:
        await self._relay(connection, match_id, user_id, STOP_TYPING)

    async def _relay(self, connection: Connection, match_id: str, user_id: str, event: str) -> None:
        # best effort: only connections already admitted to the room may relay
        if match_id not in self.presence.rooms_of(connection):
            return
        await self.notifier.emit_to_room(match_id, event, {"matchId": match_id, "userId": user_id}, exclude=connection)
