"""Block service."""

from typing import List, Optional

from pryvo.database import blocks as block_store
from pryvo.database import matches as match_store
from pryvo.database.connection import Database
from pryvo.models.block import Block
from pryvo.services.presence import PresenceRegistry
from pryvo.utils.errors import ConflictError, ValidationError
from pryvo.utils.helpers import Clock, new_id, utcnow
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)


class BlockService:
    """
    Directed blocks between users.

    A block in either direction stops messaging and hides both users from
    each other's discovery. Blocking switches chat off on the match the pair
    shares and drops both users from its delivery room; chat comes back on
    when the last block between them is lifted.
    """

    def __init__(self, db: Database, presence: PresenceRegistry, clock: Clock = utcnow) -> None:
        self.db = db
        self.presence = presence
        self.clock = clock

    async def block(self, blocker_id: str, blocked_id: str, reason: Optional[str] = None) -> Block:
        """
        Block `blocked_id` on behalf of `blocker_id`.

        Raises:
            ValidationError: If a user tries to block themselves.
            ConflictError: If the block already exists.
        """
        if blocker_id == blocked_id:
            raise ValidationError("You cannot block yourself")

        block = Block(id=new_id(), blocker_id=blocker_id, blocked_id=blocked_id, reason=reason, created_at=self.clock())
        async with self.db.session("block.create") as session:
            created = await block_store.create_block(
                session, block.id, blocker_id, blocked_id, block.created_at, reason
            )
            if not created:
                raise ConflictError("User already blocked", details={"blocked_id": blocked_id})
            await match_store.set_chat_for_pair(session, blocker_id, blocked_id, False)
            match = await match_store.find_by_pair(session, blocker_id, blocked_id)
        if match is not None:
            self.presence.evict_room(match.id)

        logger.info("User blocked", blocker_id=blocker_id, blocked_id=blocked_id)
        return block

    async def unblock(self, blocker_id: str, blocked_id: str) -> bool:
        """Lift a block. Returns False if there was none."""
        async with self.db.session("block.delete") as session:
            removed = await block_store.delete_block(session, blocker_id, blocked_id)
            if removed and not await block_store.exists(session, blocker_id, blocked_id):
                await match_store.set_chat_for_pair(session, blocker_id, blocked_id, True)
        logger.info("User unblocked", blocker_id=blocker_id, blocked_id=blocked_id, removed=removed)
        return removed

    async def is_blocked(self, user_a: str, user_b: str) -> bool:
        """True if a block exists in either direction."""
        async with self.db.session("block.exists") as session:
            return await block_store.exists(session, user_a, user_b)

    async def list_blocked(self, blocker_id: str) -> List[Block]:
        async with self.db.session("block.list") as session:
            return await block_store.list_blocked(session, blocker_id)
