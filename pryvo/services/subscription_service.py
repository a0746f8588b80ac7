"""Premium subscription lookups."""

from datetime import datetime, timedelta
from typing import Optional

import sentry_sdk

from pryvo.database import subscriptions as subscription_store
from pryvo.database.connection import Database
from pryvo.utils.errors import PremiumRequiredError
from pryvo.utils.helpers import Clock, utcnow
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)


class SubscriptionService:
    """Answers "is this user premium?" for the rest of the core."""

    def __init__(self, db: Database, clock: Clock = utcnow) -> None:
        self.db = db
        self.clock = clock

    async def is_premium(self, user_id: str) -> bool:
        with sentry_sdk.start_span(op="subscription.is_premium", name=user_id):
            async with self.db.session("subscription.is_premium") as session:
                return await subscription_store.has_active_subscription(session, user_id, self.clock())

    async def require_premium(self, user_id: str, feature: str) -> None:
        """
        Raises:
            PremiumRequiredError: If the user has no active subscription.
        """
        if not await self.is_premium(user_id):
            logger.info("Premium feature refused", user_id=user_id, feature=feature)
            raise PremiumRequiredError(f"{feature} requires a premium subscription", details={"feature": feature})

    async def grant(
        self, user_id: str, plan: str = "premium", duration_days: Optional[int] = None
    ) -> Optional[datetime]:
        """Activate (or extend) a subscription. Returns the expiry, None for open-ended."""
        now = self.clock()
        expires_at = now + timedelta(days=duration_days) if duration_days else None
        async with self.db.session("subscription.grant") as session:
            await subscription_store.upsert_subscription(session, user_id, plan, expires_at, now)
        logger.info("Subscription granted", user_id=user_id, plan=plan, expires_at=expires_at)
        return expires_at

    async def cancel(self, user_id: str) -> bool:
        async with self.db.session("subscription.cancel") as session:
            cancelled = await subscription_store.cancel_subscription(session, user_id, self.clock())
        if cancelled:
            logger.info("Subscription cancelled", user_id=user_id)
        return cancelled
