"""Boost service: time-boxed discovery priority for premium users."""

from datetime import timedelta
from typing import Iterable, List, Optional, Set

import sentry_sdk
from sqlalchemy.exc import IntegrityError

from pryvo.config import Settings, settings
from pryvo.database import boosts as boost_store
from pryvo.database.connection import Database
from pryvo.models.boost import Boost
from pryvo.services.subscription_service import SubscriptionService
from pryvo.utils.errors import BoostAlreadyActiveError, ValidationError
from pryvo.utils.helpers import Clock, new_id, utcnow
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)

MAX_BOOST_MINUTES = 24 * 60


class BoostService:
    """
    Create boosts and answer whether users are currently boosted.

    "Currently boosted" is computed from timestamps at read time, so a boost
    stops counting exactly at its end time even if the sweep has not run yet.
    The sweep (`expire_old_boosts`) only tidies the `is_active` flag.
    """

    def __init__(
        self,
        db: Database,
        subscriptions: SubscriptionService,
        clock: Clock = utcnow,
        config: Settings = settings,
    ) -> None:
        self.db = db
        self.subscriptions = subscriptions
        self.clock = clock
        self.config = config

    async def is_boosted(self, user_id: str) -> bool:
        async with self.db.session("boost.is_boosted") as session:
            return await boost_store.get_current(session, user_id, self.clock()) is not None

    async def boosted_user_ids(self, user_ids: Iterable[str]) -> Set[str]:
        """Batched `is_boosted` for a candidate set."""
        async with self.db.session("boost.batch") as session:
            return await boost_store.boosted_among(session, user_ids, self.clock())

    async def get_active_boost(self, user_id: str) -> Optional[Boost]:
        async with self.db.session("boost.get_active") as session:
            return await boost_store.get_current(session, user_id, self.clock())

    async def create_boost(self, user_id: str, duration_minutes: Optional[int] = None) -> Boost:
        """
        Start a boost for `user_id`.

        Args:
            user_id (str): The user to boost.
            duration_minutes (Optional[int]): Length of the boost. Defaults to
                `DEFAULT_BOOST_MINUTES`.

        Returns:
            Boost: The new boost.

        Raises:
            PremiumRequiredError: If the user has no active subscription.
            BoostAlreadyActiveError: If a boost is already running.
            ValidationError: If the duration is out of range.
        """
        minutes = duration_minutes if duration_minutes is not None else self.config.DEFAULT_BOOST_MINUTES
        if minutes <= 0 or minutes > MAX_BOOST_MINUTES:
            raise ValidationError("Boost duration out of range", details={"duration_minutes": minutes})

        with sentry_sdk.start_span(op="boost.create", name=user_id) as span:
            await self.subscriptions.require_premium(user_id, "Boost")

            now = self.clock()
            boost = Boost(
                id=new_id(),
                user_id=user_id,
                start_time=now,
                end_time=now + timedelta(minutes=minutes),
                duration_minutes=minutes,
                is_active=True,
                created_at=now,
            )
            try:
                async with self.db.session("boost.create") as session:
                    # lapsed rows would otherwise hold the one-active-per-user index
                    await boost_store.deactivate_lapsed_for_user(session, user_id, now)
                    await boost_store.insert_boost(session, boost)
            except IntegrityError as e:
                span.set_status("already_exists")
                logger.info("Boost already active", user_id=user_id)
                raise BoostAlreadyActiveError("A boost is already active", details={"user_id": user_id}) from e

            logger.info("Boost created", user_id=user_id, duration_minutes=minutes, end_time=boost.end_time.isoformat())
            return boost

    async def boost_history(self, user_id: str, limit: int = 10) -> List[Boost]:
        async with self.db.session("boost.history") as session:
            return await boost_store.list_for_user(session, user_id, limit)

    async def expire_old_boosts(self) -> int:
        """Flip `is_active` off for lapsed boosts. Safe to run any number of times."""
        with sentry_sdk.start_span(op="boost.expire", name="expire_old_boosts") as span:
            async with self.db.session("boost.expire") as session:
                expired = await boost_store.expire_lapsed(session, self.clock())
            span.set_data("expired", expired)
            if expired:
                logger.info("Expired boosts", count=expired)
            return expired
