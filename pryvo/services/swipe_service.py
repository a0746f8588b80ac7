"""Swipe service: likes, passes, undo, and the like -> match transition."""

from datetime import timedelta
from typing import Any, Dict, Optional

import sentry_sdk

from pryvo.config import Settings, settings
from pryvo.database import blocks as block_store
from pryvo.database import matches as match_store
from pryvo.database import swipes as swipe_store
from pryvo.database.connection import Database
from pryvo.database.statements import consume_daily_quota, read_daily_count
from pryvo.models.match import Match
from pryvo.models.swipe import Like, LikedContent, LikeResult, SwipeAction, UndoResult
from pryvo.services.notifications import LIKE_RECEIVED, NEW_MATCH, Notifier
from pryvo.services.profile_service import ProfileService
from pryvo.services.push_service import PushNotification
from pryvo.services.subscription_service import SubscriptionService
from pryvo.utils.errors import (
    BlockedError,
    DailyLimitReachedError,
    NothingToUndoError,
    ValidationError,
    WindowExpiredError,
)
from pryvo.utils.helpers import Clock, day_key, new_id, utcnow
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)

LIKE_COUNTER = "like"


def match_payload(match: Match) -> Dict[str, Any]:
    return {
        "matchId": match.id,
        "users": list(match.users),
        "createdAt": match.created_at.isoformat(),
        "chatEnabled": match.chat_enabled,
        "initiatedBy": match.initiated_by.value,
    }


class SwipeService:
    """
    Per ordered pair (actor, target): unswiped -> liked | passed.

    Every check-then-act step is a conditional write: the like edge is an
    insert-or-ignore on a unique pair, the daily quota is a guarded increment,
    and the match is a find-or-create on the unordered pair. The like is
    committed before reciprocity is checked, so of two near-simultaneous
    reciprocal likes at least one sees the other, and the unique pair lets
    exactly one of them create the match.
    """

    def __init__(
        self,
        db: Database,
        profiles: ProfileService,
        subscriptions: SubscriptionService,
        notifier: Notifier,
        clock: Clock = utcnow,
        config: Settings = settings,
    ) -> None:
        self.db = db
        self.profiles = profiles
        self.subscriptions = subscriptions
        self.notifier = notifier
        self.clock = clock
        self.config = config

    async def daily_like_limit(self, user_id: str) -> int:
        if await self.subscriptions.is_premium(user_id):
            return self.config.PREMIUM_DAILY_LIKE_LIMIT
        return self.config.FREE_DAILY_LIKE_LIMIT

    async def likes_remaining(self, user_id: str) -> int:
        limit = await self.daily_like_limit(user_id)
        async with self.db.session("swipe.likes_remaining") as session:
            used = await read_daily_count(session, user_id, LIKE_COUNTER, day_key(self.clock()))
        return max(limit - used, 0)

    async def like(
        self, actor_id: str, target_id: str, liked_content: Optional[LikedContent] = None
    ) -> LikeResult:
        """
        Like `target_id` on behalf of `actor_id`.

        Returns:
            LikeResult: `already_liked` for a repeat like (no quota used), or
                the match when this like completed a mutual pair.

        Raises:
            ValidationError: If a user likes themselves.
            ProfileNotFoundError: If the target has no profile.
            BlockedError: If either user has blocked the other.
            DailyLimitReachedError: If the actor's daily quota is used up.
        """
        if actor_id == target_id:
            raise ValidationError("You cannot like yourself")

        with sentry_sdk.start_span(op="swipe.like", name=f"{actor_id} -> {target_id}") as span:
            await self.profiles.require_profile(target_id)
            limit = await self.daily_like_limit(actor_id)
            now = self.clock()
            day = day_key(now)

            async with self.db.session("swipe.like") as session:
                if await block_store.exists(session, actor_id, target_id):
                    raise BlockedError("Cannot like this user")

                used = await read_daily_count(session, actor_id, LIKE_COUNTER, day)
                if used >= limit:
                    span.set_status("resource_exhausted")
                    raise DailyLimitReachedError(
                        f"Daily like limit reached ({limit})", details={"limit": limit, "used": used}
                    )

                inserted = await swipe_store.record_like(
                    session,
                    new_id(),
                    actor_id,
                    target_id,
                    now,
                    liked_content.model_dump(mode="json", exclude_none=True) if liked_content else None,
                )
                remaining: Optional[int] = limit - used
                if inserted:
                    remaining = await consume_daily_quota(session, actor_id, LIKE_COUNTER, day, limit)
                    if remaining is None:
                        # a concurrent like from the same user took the last unit
                        raise DailyLimitReachedError(f"Daily like limit reached ({limit})", details={"limit": limit})

            if not inserted:
                logger.debug("Duplicate like ignored", actor_id=actor_id, target_id=target_id)
                span.set_data("outcome", "already_liked")
                return LikeResult(already_liked=True, likes_remaining=remaining)

            async with self.db.session("swipe.reciprocity") as session:
                reciprocal = await swipe_store.find_like(session, target_id, actor_id)
                match: Optional[Match] = None
                created = False
                if reciprocal is not None:
                    match, created = await match_store.find_or_create(session, new_id(), actor_id, target_id, now)

            if match is not None:
                span.set_data("outcome", "match")
                if created:
                    logger.info("Match created", match_id=match.id, user_a=actor_id, user_b=target_id)
                    await self._announce_match(match)
                return LikeResult(is_match=True, match=match, likes_remaining=remaining)

            span.set_data("outcome", "liked")
            logger.info("Like recorded", actor_id=actor_id, target_id=target_id)
            await self._announce_like(actor_id, target_id, liked_content)
            return LikeResult(is_match=False, likes_remaining=remaining)

    async def _announce_match(self, match: Match) -> None:
        payload = match_payload(match)
        for user_id in match.users:
            await self.notifier.notify_user(
                user_id,
                NEW_MATCH,
                payload,
                push=PushNotification(
                    title="It's a match!",
                    body="You have a new match. Say hello!",
                    data={"type": "match", "matchId": match.id},
                ),
            )

    async def _announce_like(self, actor_id: str, target_id: str, liked_content: Optional[LikedContent]) -> None:
        reveal = self.config.SHOW_LIKER_IDENTITY and await self.subscriptions.is_premium(target_id)
        payload: Dict[str, Any] = {"fromUserId": actor_id if reveal else None}
        if reveal and liked_content is not None:
            payload["likedContent"] = liked_content.model_dump(mode="json", exclude_none=True)
        await self.notifier.notify_user(
            target_id,
            LIKE_RECEIVED,
            payload,
            push=PushNotification(title="Someone likes you", body="Open the app to see who.", data={"type": "like"}),
        )

    async def pass_user(self, actor_id: str, target_id: str) -> bool:
        """
        Pass on `target_id`. No quota applies.

        Returns:
            bool: False if the actor had already passed on this user.
        """
        if actor_id == target_id:
            raise ValidationError("You cannot pass on yourself")
        async with self.db.session("swipe.pass") as session:
            inserted = await swipe_store.record_pass(session, new_id(), actor_id, target_id, self.clock())
        logger.debug("Pass recorded", actor_id=actor_id, target_id=target_id, new=inserted)
        return inserted

    async def undo(self, actor_id: str) -> UndoResult:
        """
        Remove the actor's most recent like or pass.

        Undoing a like does not retract a match it already formed, and the
        daily quota unit it used is not refunded.

        Raises:
            PremiumRequiredError: If the actor is not premium.
            NothingToUndoError: If there is no swipe to undo.
            WindowExpiredError: If the last swipe is older than the undo window.
        """
        await self.subscriptions.require_premium(actor_id, "Undo")
        window = timedelta(seconds=self.config.UNDO_WINDOW_SECONDS)

        async with self.db.session("swipe.undo") as session:
            latest = await swipe_store.find_latest_swipe(session, actor_id)
            if latest is None:
                raise NothingToUndoError("Nothing to undo")
            if self.clock() - latest.created_at > window:
                raise WindowExpiredError(
                    "Undo window has passed", details={"window_seconds": self.config.UNDO_WINDOW_SECONDS}
                )

            if isinstance(latest, Like):
                action, target_id = SwipeAction.LIKE, latest.receiver_id
            else:
                action, target_id = SwipeAction.PASS, latest.passed_user_id
            if not await swipe_store.delete_swipe(session, action, latest.id):
                raise NothingToUndoError("Nothing to undo")

        logger.info("Swipe undone", actor_id=actor_id, action=action.value, target_id=target_id)
        return UndoResult(action=action, target_id=target_id, swiped_at=latest.created_at)

    async def reset_passes(self, actor_id: str) -> int:
        """Forget every pass by the actor so those profiles reappear in discovery."""
        async with self.db.session("swipe.reset_passes") as session:
            removed = await swipe_store.delete_passes(session, actor_id)
        logger.info("Passes reset", actor_id=actor_id, removed=removed)
        return removed

    async def received_like_count(self, user_id: str) -> int:
        async with self.db.session("swipe.received_count") as session:
            return await swipe_store.count_likes_received(session, user_id)
