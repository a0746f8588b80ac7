"""Real-time fan-out and best-effort push delivery."""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set

from pryvo.services.presence import Connection, PresenceRegistry
from pryvo.services.push_service import PushNotification, PushResult, PushSender
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)

# Outbound event names
RECEIVE_MESSAGE = "receiveMessage"
MESSAGE_STATUS_UPDATE = "messageStatusUpdate"
MESSAGES_SEEN = "messagesSeen"
MESSAGE_DELETED = "messageDeleted"
TYPING = "typing"
STOP_TYPING = "stopTyping"
NEW_MATCH = "newMatch"
LIKE_RECEIVED = "likeReceived"
NEW_COMMENT = "newComment"
ERROR = "error"


@dataclass(frozen=True)
class Notify:
    """
    Handle for a push scheduled in the background.

    Returned so the fire-and-forget contract is visible at the call site.
    Callers are not expected to await it; failures are logged by the notifier
    and never surface here.
    """

    user_id: str
    task: Optional["asyncio.Task[Optional[PushResult]]"] = None

    @property
    def scheduled(self) -> bool:
        return self.task is not None


class Notifier:
    """Sends events to connected users, falling back to push for offline ones."""

    def __init__(self, presence: PresenceRegistry, push_sender: PushSender, push_timeout: float = 15.0) -> None:
        self.presence = presence
        self.push_sender = push_sender
        self.push_timeout = push_timeout
        self._pending: Set["asyncio.Task[Optional[PushResult]]"] = set()

    async def emit(self, connections: Iterable[Connection], event: str, payload: Dict[str, Any]) -> int:
        """
        Send one event to many connections concurrently.

        A failing connection is logged and skipped; the others still receive
        the event.

        Returns:
            int: Number of connections the event reached.
        """
        targets = list(connections)
        if not targets:
            return 0
        results = await asyncio.gather(*(conn.send(event, payload) for conn in targets), return_exceptions=True)
        reached = 0
        for conn, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning("Failed to emit event", event_name=event, connection_id=conn.id, error=str(result))
            else:
                reached += 1
        return reached

    async def emit_to_user(self, user_id: str, event: str, payload: Dict[str, Any]) -> int:
        return await self.emit(self.presence.connections_for(user_id), event, payload)

    async def emit_to_room(
        self, match_id: str, event: str, payload: Dict[str, Any], exclude: Optional[Connection] = None
    ) -> int:
        targets: List[Connection] = [
            conn for conn in self.presence.room_connections(match_id) if exclude is None or conn.id != exclude.id
        ]
        return await self.emit(targets, event, payload)

    async def notify_user(
        self, user_id: str, event: str, payload: Dict[str, Any], push: Optional[PushNotification] = None
    ) -> Notify:
        """Emit to the user's live connections, or schedule `push` if they have none."""
        if await self.emit_to_user(user_id, event, payload):
            return Notify(user_id=user_id)
        if push is None:
            return Notify(user_id=user_id)
        return self.push(user_id, push)

    def push(self, user_id: str, notification: PushNotification) -> Notify:
        """Schedule a push in the background and return immediately."""
        task = asyncio.get_running_loop().create_task(self._deliver(user_id, notification))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return Notify(user_id=user_id, task=task)

    async def _deliver(self, user_id: str, notification: PushNotification) -> Optional[PushResult]:
        try:
            result = await asyncio.wait_for(self.push_sender.send(user_id, notification), timeout=self.push_timeout)
        except asyncio.TimeoutError:
            logger.warning("Push notification timed out", user_id=user_id, timeout=self.push_timeout)
            return None
        except Exception as e:
            logger.warning("Push notification failed", user_id=user_id, error=str(e), error_type=type(e).__name__)
            return None
        if not result.success:
            logger.info("Push notification not delivered", user_id=user_id, reason=result.reason)
        return result

    async def drain(self) -> None:
        """Wait for every scheduled push to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        await self.push_sender.close()
