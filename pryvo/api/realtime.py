"""WebSocket transport for presence, rooms and chat events."""

from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from pryvo.application import PryvoApplication
from pryvo.models.message import MediaKind
from pryvo.services.notifications import ERROR
from pryvo.utils.errors import AccessDeniedError, PryvoError, ValidationError
from pryvo.utils.helpers import new_id
from pryvo.utils.logging import get_logger, log_error

logger = get_logger(__name__)

router = APIRouter()

# Inbound event names
AUTHENTICATE = "authenticate"
JOIN_ROOM = "joinRoom"
LEAVE_ROOM = "leaveRoom"
SEND_MESSAGE = "sendMessage"
TYPING = "typing"
STOP_TYPING = "stopTyping"
MESSAGE_SEEN = "messageSeen"


class WebSocketConnection:
    """Adapts a FastAPI WebSocket to the presence registry's connection interface."""

    def __init__(self, websocket: WebSocket) -> None:
        self.id = new_id()
        self.websocket = websocket

    async def send(self, event: str, payload: Dict[str, Any]) -> None:
        await self.websocket.send_json({"event": event, "data": payload})


Handler = Callable[["RealtimeSession", Dict[str, Any]], Awaitable[None]]


class RealtimeSession:
    """State and event dispatch for one socket."""

    def __init__(self, core: PryvoApplication, connection: WebSocketConnection) -> None:
        self.core = core
        self.connection = connection
        self.user_id: Optional[str] = None

    def _require_user(self) -> str:
        if self.user_id is None:
            raise AccessDeniedError("Not authenticated")
        return self.user_id

    @staticmethod
    def _require(data: Dict[str, Any], key: str) -> str:
        value = data.get(key)
        if not isinstance(value, str) or not value:
            raise ValidationError(f"Missing {key}")
        return value

    async def authenticate(self, data: Dict[str, Any]) -> None:
        user_id = self._require(data, "userId")
        if self.user_id is not None and self.user_id != user_id:
            raise AccessDeniedError("Connection is already authenticated as another user")
        self.core.presence.authenticate(self.connection, user_id)
        self.user_id = user_id
        await self.connection.send("authenticated", {"userId": user_id})

    async def join_room(self, data: Dict[str, Any]) -> None:
        match_id = self._require(data, "matchId")
        if not await self.core.presence.join_room(self.connection, match_id, self._require_user()):
            raise AccessDeniedError("Cannot join this room", details={"match_id": match_id})
        await self.connection.send("roomJoined", {"matchId": match_id})

    async def leave_room(self, data: Dict[str, Any]) -> None:
        self.core.presence.leave_room(self.connection, self._require(data, "matchId"))

    async def send_message(self, data: Dict[str, Any]) -> None:
        media_type = data.get("mediaType")
        try:
            kind = MediaKind(media_type) if media_type else None
        except ValueError as e:
            raise ValidationError("Unsupported media type", details={"media_type": media_type}) from e
        await self.core.chat.send(
            self._require(data, "matchId"),
            self._require_user(),
            self._require(data, "receiverId"),
            text=data.get("text"),
            media_url=data.get("mediaUrl"),
            media_type=kind,
        )

    async def typing(self, data: Dict[str, Any]) -> None:
        await self.core.chat.typing(self.connection, self._require(data, "matchId"), self._require_user())

    async def stop_typing(self, data: Dict[str, Any]) -> None:
        await self.core.chat.stop_typing(self.connection, self._require(data, "matchId"), self._require_user())

    async def message_seen(self, data: Dict[str, Any]) -> None:
        await self.core.chat.mark_seen(self._require(data, "matchId"), self._require_user())

    async def dispatch(self, event: Any, data: Any) -> None:
        handler = HANDLERS.get(event) if isinstance(event, str) else None
        if handler is None:
            await self.connection.send(ERROR, {"error": "validation", "message": f"Unknown event: {event}"})
            return
        try:
            await handler(self, data if isinstance(data, dict) else {})
        except PryvoError as e:
            if e.status_code >= 500:
                log_error(logger, e, "Realtime event failed", {"event_name": event, "user_id": self.user_id})
            await self.connection.send(ERROR, {"event": event, "error": e.kind.value, "message": e.message})
        except PydanticValidationError as e:
            await self.connection.send(ERROR, {"event": event, "error": "validation", "message": str(e)})

    def close(self) -> None:
        user_id = self.core.presence.disconnect(self.connection)
        if user_id is not None:
            logger.info("User went offline", user_id=user_id)


HANDLERS: Dict[str, Handler] = {
    AUTHENTICATE: RealtimeSession.authenticate,
    JOIN_ROOM: RealtimeSession.join_room,
    LEAVE_ROOM: RealtimeSession.leave_room,
    SEND_MESSAGE: RealtimeSession.send_message,
    TYPING: RealtimeSession.typing,
    STOP_TYPING: RealtimeSession.stop_typing,
    MESSAGE_SEEN: RealtimeSession.message_seen,
}


@router.websocket("/ws")
async def realtime(websocket: WebSocket) -> None:
    await websocket.accept()
    session = RealtimeSession(websocket.app.state.pryvo, WebSocketConnection(websocket))
    try:
        while True:
            frame = await websocket.receive_json()
            if not isinstance(frame, dict):
                await session.connection.send(ERROR, {"error": "validation", "message": "Frames must be objects"})
                continue
            await session.dispatch(frame.get("event"), frame.get("data"))
    except WebSocketDisconnect:
        logger.debug("Socket disconnected", connection_id=session.connection.id, user_id=session.user_id)
    finally:
        session.close()
