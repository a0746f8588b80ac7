"""Service wiring and lifecycle for the Pryvo backend."""

import asyncio
from functools import partial
from typing import Optional

from pryvo.config import Settings, settings
from pryvo.database.connection import Database
from pryvo.jobs import expire_boosts_job, run_repeating
from pryvo.services.block_service import BlockService
from pryvo.services.boost_service import BoostService
from pryvo.services.chat_service import ChatService
from pryvo.services.comment_service import CommentService
from pryvo.services.discovery_service import DiscoveryService
from pryvo.services.match_service import MatchService, load_match
from pryvo.services.notifications import Notifier
from pryvo.services.presence import PresenceRegistry
from pryvo.services.profile_service import ProfileService
from pryvo.services.push_service import HttpPushSender, NullPushSender, PushSender
from pryvo.services.subscription_service import SubscriptionService
from pryvo.services.swipe_service import SwipeService
from pryvo.utils.cache import RedisCache
from pryvo.utils.helpers import Clock, utcnow
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)


class PryvoApplication:
    """
    Owns the process-wide resources: database engine, cache, presence
    registry, notifier, and the periodic boost sweep.

    One instance per process. Every service shares the same presence registry,
    so room membership and online state are consistent across HTTP and
    WebSocket handlers.
    """

    def __init__(
        self,
        config: Settings = settings,
        db: Optional[Database] = None,
        cache: Optional[RedisCache] = None,
        push_sender: Optional[PushSender] = None,
        clock: Clock = utcnow,
    ) -> None:
        self.config = config
        self.clock = clock
        self.db = db or Database(config.DATABASE_URL, echo=False)
        self.cache = cache or RedisCache(config.REDIS_URL)
        if push_sender is None:
            if config.PUSH_GATEWAY_URL:
                push_sender = HttpPushSender(
                    self.db, config.PUSH_GATEWAY_URL, config.PUSH_GATEWAY_TOKEN, timeout=config.PUSH_TIMEOUT_SECONDS
                )
            else:
                push_sender = NullPushSender()

        self.subscriptions = SubscriptionService(self.db, clock)
        self.profiles = ProfileService(self.db, self.cache, clock, config)
        self.presence = PresenceRegistry(load_match=partial(load_match, self.db))
        self.matches = MatchService(self.db, self.profiles, self.presence)
        self.notifier = Notifier(self.presence, push_sender, push_timeout=config.PUSH_TIMEOUT_SECONDS)

        self.boosts = BoostService(self.db, self.subscriptions, clock, config)
        self.discovery = DiscoveryService(self.db, self.profiles, self.boosts, self.subscriptions, clock=clock, config=config)
        self.swipes = SwipeService(self.db, self.profiles, self.subscriptions, self.notifier, clock, config)
        self.blocks = BlockService(self.db, self.presence, clock)
        self.chat = ChatService(self.db, self.presence, self.notifier, clock)
        self.comments = CommentService(self.db, self.profiles, self.subscriptions, self.notifier, clock, config)

        self._sweep: Optional["asyncio.Task[None]"] = None

    @property
    def is_running(self) -> bool:
        return self._sweep is not None and not self._sweep.done()

    async def start(self, create_tables: bool = False) -> None:
        if create_tables:
            await self.db.create_tables()
        self._sweep = asyncio.get_running_loop().create_task(
            run_repeating(
                lambda: expire_boosts_job(self.boosts),
                interval=self.config.BOOST_SWEEP_INTERVAL_SECONDS,
                first=self.config.BOOST_SWEEP_INTERVAL_SECONDS,
                name="expire_old_boosts",
            )
        )
        logger.info("Application started", environment=self.config.ENVIRONMENT, database=self.db.dialect)

    async def stop(self) -> None:
        if self._sweep is not None:
            self._sweep.cancel()
            try:
                await self._sweep
            except asyncio.CancelledError:
                pass
            self._sweep = None
        self.presence.clear()
        await self.notifier.close()
        await self.cache.close()
        await self.db.dispose()
        logger.info("Application stopped")
