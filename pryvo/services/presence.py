"""In-process presence registry: who is connected, and on which rooms."""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Set

from pryvo.models.match import Match
from pryvo.utils.helpers import is_valid_id
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)

MatchLoader = Callable[[str], Awaitable[Optional[Match]]]


class Connection(Protocol):
    """A live real-time connection (a WebSocket, or a fake in tests)."""

    id: str

    async def send(self, event: str, payload: Dict[str, Any]) -> None: ...


class PresenceRegistry:
    """
    Track live connections per user and per match room.

    The registry is owned by the application (created at start-up, cleared at
    shutdown) and never persisted; after a restart everyone is offline until
    they reconnect.

    Every mutation runs to completion without awaiting, so on the event loop a
    disconnect can never interleave with a fan-out reading the same sets.
    Reads return copies.
    """

    def __init__(self, load_match: MatchLoader) -> None:
        self._load_match = load_match
        self._connections: Dict[str, Connection] = {}
        self._owner: Dict[str, str] = {}
        self._by_user: Dict[str, Set[str]] = {}
        self._rooms: Dict[str, Set[str]] = {}
        self._joined: Dict[str, Set[str]] = {}

    def authenticate(self, connection: Connection, user_id: str) -> None:
        """Register `connection` as belonging to `user_id`."""
        previous = self._owner.get(connection.id)
        if previous is not None and previous != user_id:
            # re-authenticating as someone else drops the old identity and its rooms
            self._remove(connection.id)
        self._connections[connection.id] = connection
        self._owner[connection.id] = user_id
        self._by_user.setdefault(user_id, set()).add(connection.id)
        logger.info("Connection authenticated", user_id=user_id, connection_id=connection.id)

    def disconnect(self, connection: Connection) -> Optional[str]:
        """
        Forget `connection` and leave all its rooms.

        Returns:
            Optional[str]: The owning user if this was their last connection.
        """
        user_id = self._remove(connection.id)
        went_offline = user_id is not None and user_id not in self._by_user
        if user_id is not None:
            logger.info("Connection closed", user_id=user_id, connection_id=connection.id, offline=went_offline)
        return user_id if went_offline else None

    def _remove(self, connection_id: str) -> Optional[str]:
        self._connections.pop(connection_id, None)
        user_id = self._owner.pop(connection_id, None)
        if user_id is not None:
            owned = self._by_user.get(user_id)
            if owned is not None:
                owned.discard(connection_id)
                if not owned:
                    del self._by_user[user_id]
        for match_id in self._joined.pop(connection_id, set()):
            members = self._rooms.get(match_id)
            if members is not None:
                members.discard(connection_id)
                if not members:
                    del self._rooms[match_id]
        return user_id

    def is_online(self, user_id: str) -> bool:
        return bool(self._by_user.get(user_id))

    def user_of(self, connection: Connection) -> Optional[str]:
        return self._owner.get(connection.id)

    def connections_for(self, user_id: str) -> List[Connection]:
        return [self._connections[cid] for cid in self._by_user.get(user_id, ()) if cid in self._connections]

    def room_connections(self, match_id: str) -> List[Connection]:
        return [self._connections[cid] for cid in self._rooms.get(match_id, ()) if cid in self._connections]

    def rooms_of(self, connection: Connection) -> Set[str]:
        return set(self._joined.get(connection.id, ()))

    def online_user_ids(self) -> Set[str]:
        return set(self._by_user)

    async def join_room(self, connection: Connection, match_id: str, user_id: str) -> bool:
        """
        Put `connection` in the match's delivery room.

        The connection must be authenticated as `user_id`, `user_id` must be a
        member of the match, and the match must have chat enabled (it is off
        while either member blocks the other, and after an unmatch). Refusals
        are logged and reported as False, never raised, so callers cannot probe
        which matches exist.
        """
        if not is_valid_id(match_id):
            logger.warning("Room join refused: malformed match id", user_id=user_id, match_id=match_id)
            return False
        if self.user_of(connection) != user_id:
            logger.warning("Room join refused: connection not authenticated as user", user_id=user_id)
            return False

        match = await self._load_match(match_id)
        if match is None or not match.has_member(user_id):
            logger.warning("Room join refused: not a member", user_id=user_id, match_id=match_id)
            return False
        if not match.chat_enabled:
            logger.warning("Room join refused: chat disabled", user_id=user_id, match_id=match_id)
            return False

        # the connection may have dropped while the match was loading
        if self._owner.get(connection.id) != user_id:
            return False
        self._rooms.setdefault(match_id, set()).add(connection.id)
        self._joined.setdefault(connection.id, set()).add(match_id)
        logger.debug("Joined room", user_id=user_id, match_id=match_id)
        return True

    def leave_room(self, connection: Connection, match_id: str) -> None:
        members = self._rooms.get(match_id)
        if members is not None:
            members.discard(connection.id)
            if not members:
                del self._rooms[match_id]
        joined = self._joined.get(connection.id)
        if joined is not None:
            joined.discard(match_id)

    def evict_room(self, match_id: str) -> None:
        """Drop every connection from a room, e.g. after an unmatch or a block."""
        for cid in self._rooms.pop(match_id, set()):
            joined = self._joined.get(cid)
            if joined is not None:
                joined.discard(match_id)

    def clear(self) -> None:
        self._connections.clear()
        self._owner.clear()
        self._by_user.clear()
        self._rooms.clear()
        self._joined.clear()
