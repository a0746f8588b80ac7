"""Match service: reading and dissolving matches."""

from typing import List, Optional

import sentry_sdk

from pryvo.database import matches as match_store
from pryvo.database.connection import Database
from pryvo.models.match import Match, MatchView
from pryvo.services.presence import PresenceRegistry
from pryvo.services.profile_service import ProfileService
from pryvo.utils.errors import AccessDeniedError, InvalidMatchIdError, MatchNotFoundError
from pryvo.utils.helpers import is_valid_id
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)


async def load_match(db: Database, match_id: str) -> Optional[Match]:
    """Load a match, or None for unknown and malformed ids alike."""
    if not is_valid_id(match_id):
        return None
    async with db.session("match.find") as session:
        return await match_store.get_match(session, match_id)


class MatchService:
    def __init__(self, db: Database, profiles: ProfileService, presence: PresenceRegistry) -> None:
        self.db = db
        self.profiles = profiles
        self.presence = presence

    async def find_match(self, match_id: str) -> Optional[Match]:
        return await load_match(self.db, match_id)

    async def get_match(self, match_id: str, user_id: str) -> Match:
        """
        Load a match the caller belongs to.

        Raises:
            InvalidMatchIdError: If `match_id` is malformed.
            MatchNotFoundError: If there is no such match.
            AccessDeniedError: If `user_id` is not a member.
        """
        if not is_valid_id(match_id):
            raise InvalidMatchIdError("Invalid match id", details={"match_id": match_id})
        async with self.db.session("match.get") as session:
            match = await match_store.get_match(session, match_id)
        if match is None:
            raise MatchNotFoundError(f"Match not found: {match_id}", details={"match_id": match_id})
        if not match.has_member(user_id):
            raise AccessDeniedError("You are not part of this match", details={"match_id": match_id})
        return match

    async def list_matches(self, user_id: str) -> List[MatchView]:
        """Chat-enabled matches, newest first, each with the other member's name and first photo."""
        with sentry_sdk.start_span(op="match.list", name=user_id) as span:
            async with self.db.session("match.list") as session:
                matches = await match_store.list_for_user(session, user_id, chat_enabled_only=True)

            views: List[MatchView] = []
            for match in matches:
                other_id = match.other_member(user_id)
                other = await self.profiles.get_profile(other_id)
                views.append(
                    MatchView(
                        match_id=match.id,
                        users=list(match.users),
                        their_id=other_id,
                        their_name=other.basic_info.first_name if other else None,
                        their_photo=other.photos[0] if other and other.photos else None,
                        created_at=match.created_at,
                        chat_enabled=match.chat_enabled,
                        call_enabled=match.call_enabled,
                    )
                )
            span.set_data("count", len(views))
            return views

    async def unmatch(self, match_id: str, user_id: str) -> None:
        """
        Switch chat and calls off for a match for good. Messages are kept.

        Raises:
            InvalidMatchIdError, MatchNotFoundError, AccessDeniedError: As `get_match`.
        """
        match = await self.get_match(match_id, user_id)
        async with self.db.session("match.unmatch") as session:
            await match_store.mark_unmatched(session, match.id)
        self.presence.evict_room(match.id)
        logger.info("Unmatched", match_id=match.id, user_id=user_id)
