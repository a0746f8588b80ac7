"""Profile comments: a message left on someone's profile that can turn into a match."""

from datetime import timedelta
from typing import List, Optional

import sentry_sdk
from sqlalchemy.exc import IntegrityError

from pryvo.config import Settings, settings
from pryvo.database import blocks as block_store
from pryvo.database import comments as comment_store
from pryvo.database import matches as match_store
from pryvo.database.connection import Database
from pryvo.database.statements import consume_daily_quota
from pryvo.models.comment import CommentResponse, CommentResult, CommentStatus, CommentTarget, ProfileComment
from pryvo.models.match import Match, MatchOrigin
from pryvo.services.notifications import NEW_COMMENT, NEW_MATCH, Notifier
from pryvo.services.profile_service import ProfileService
from pryvo.services.push_service import PushNotification
from pryvo.services.subscription_service import SubscriptionService
from pryvo.services.swipe_service import match_payload
from pryvo.utils.errors import (
    AccessDeniedError,
    BlockedError,
    CommentNotFoundError,
    ConflictError,
    DailyLimitReachedError,
    ExpiredError,
    ValidationError,
)
from pryvo.utils.helpers import Clock, day_key, new_id, utcnow
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)

COMMENT_COUNTER = "comment"


class CommentService:
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

    async def daily_comment_limit(self, user_id: str) -> int:
        if await self.subscriptions.is_premium(user_id):
            return self.config.PREMIUM_DAILY_COMMENT_LIMIT
        return self.config.FREE_DAILY_COMMENT_LIMIT

    async def send_comment(
        self, sender_id: str, receiver_id: str, text: str, target: Optional[CommentTarget] = None
    ) -> CommentResult:
        """
        Leave a comment on `receiver_id`'s profile.

        Only one comment per sender and receiver may be pending at a time; a
        pending comment lapses after `COMMENT_TTL_DAYS`.

        Raises:
            ValidationError: If the text is empty, too long, or addressed to oneself.
            ProfileNotFoundError: If the receiver has no profile.
            BlockedError: If either user has blocked the other.
            DailyLimitReachedError: If the sender's daily comment quota is used up.
            ConflictError: If a pending comment to this user already exists.
        """
        text = (text or "").strip()
        if sender_id == receiver_id:
            raise ValidationError("You cannot comment on your own profile")
        if not text:
            raise ValidationError("Comment must not be empty")
        if len(text) > self.config.MAX_COMMENT_LENGTH:
            raise ValidationError(
                f"Comment is longer than {self.config.MAX_COMMENT_LENGTH} characters",
                details={"max_length": self.config.MAX_COMMENT_LENGTH},
            )

        with sentry_sdk.start_span(op="comment.send", name=f"{sender_id} -> {receiver_id}") as span:
            await self.profiles.require_profile(receiver_id)
            limit = await self.daily_comment_limit(sender_id)
            now = self.clock()
            comment = ProfileComment(
                id=new_id(),
                sender_id=sender_id,
                receiver_id=receiver_id,
                comment=text,
                target_content=target or CommentTarget(),
                created_at=now,
                expires_at=now + timedelta(days=self.config.COMMENT_TTL_DAYS),
            )

            try:
                async with self.db.session("comment.send") as session:
                    if await block_store.exists(session, sender_id, receiver_id):
                        raise BlockedError("Cannot comment on this profile")
                    await comment_store.expire_pending_for_pair(session, sender_id, receiver_id, now)
                    remaining = await consume_daily_quota(session, sender_id, COMMENT_COUNTER, day_key(now), limit)
                    if remaining is None:
                        span.set_status("resource_exhausted")
                        raise DailyLimitReachedError(f"Daily comment limit reached ({limit})", details={"limit": limit})
                    await comment_store.insert_comment(session, comment)
            except IntegrityError as e:
                raise ConflictError(
                    "You already have a pending comment for this user", details={"receiver_id": receiver_id}
                ) from e

        logger.info("Comment sent", comment_id=comment.id, sender_id=sender_id, receiver_id=receiver_id)
        await self.notifier.notify_user(
            receiver_id,
            NEW_COMMENT,
            {
                "commentId": comment.id,
                "fromUserId": sender_id,
                "comment": comment.comment,
                "createdAt": comment.created_at.isoformat(),
            },
            push=PushNotification(
                title="New comment",
                body="Someone commented on your profile.",
                data={"type": "comment", "commentId": comment.id},
            ),
        )
        return CommentResult(comment=comment, remaining_comments=remaining)

    async def respond_to_comment(self, comment_id: str, user_id: str, response: CommentResponse) -> CommentResult:
        """
        Accept or reject a comment. Accepting matches the two users.

        Raises:
            CommentNotFoundError: If there is no such comment.
            AccessDeniedError: If `user_id` is not the receiver.
            ConflictError: If the comment was already answered.
            ExpiredError: If the comment has lapsed.
            BlockedError: If accepting and either user has blocked the other.
        """
        now = self.clock()
        async with self.db.session("comment.respond") as session:
            comment = await comment_store.get_comment(session, comment_id)
            if comment is None:
                raise CommentNotFoundError(f"Comment not found: {comment_id}", details={"comment_id": comment_id})
            if comment.receiver_id != user_id:
                raise AccessDeniedError("Only the receiver can respond to a comment")
            if comment.status != CommentStatus.PENDING:
                raise ConflictError("Comment already answered", details={"status": comment.status.value})
            if comment.expires_at is not None and comment.expires_at < now:
                raise ExpiredError("Comment has expired", details={"comment_id": comment_id})

            status = CommentStatus.ACCEPTED if response == CommentResponse.ACCEPT else CommentStatus.REJECTED
            match: Optional[Match] = None
            created = False
            if status == CommentStatus.ACCEPTED and await block_store.exists(
                session, comment.sender_id, comment.receiver_id
            ):
                raise BlockedError("Cannot match with this user")
            if not await comment_store.resolve_comment(session, comment_id, status, now):
                raise ConflictError("Comment already answered", details={"comment_id": comment_id})
            if status == CommentStatus.ACCEPTED:
                match, created = await match_store.find_or_create(
                    session,
                    new_id(),
                    comment.sender_id,
                    comment.receiver_id,
                    now,
                    initiated_by=MatchOrigin.COMMENT,
                    comment_id=comment.id,
                )

        comment = comment.model_copy(update={"status": status, "responded_at": now, "is_read": True})
        logger.info("Comment answered", comment_id=comment_id, status=status.value, match_created=created)

        if match is not None:
            await self.notifier.notify_user(
                comment.sender_id,
                NEW_MATCH,
                match_payload(match),
                push=PushNotification(
                    title="It's a match!",
                    body="Your comment was accepted. Say hello!",
                    data={"type": "match", "matchId": match.id},
                ),
            )
        return CommentResult(comment=comment, match=match)

    async def list_received(self, user_id: str) -> List[ProfileComment]:
        """Pending, unexpired comments addressed to the user, newest first."""
        async with self.db.session("comment.list") as session:
            return await comment_store.list_received(session, user_id, self.clock())
