"""Discovery: the ranked feed of profiles a viewer can swipe on."""

import asyncio
from typing import Awaitable, Callable, List, Optional, Tuple

import sentry_sdk

from pryvo.config import Settings, settings
from pryvo.database import blocks as block_store
from pryvo.database import swipes as swipe_store
from pryvo.database.connection import Database
from pryvo.models.discovery import DiscoveryCandidate, DiscoveryOptions, SortBy
from pryvo.models.profile import Profile
from pryvo.services.boost_service import BoostService
from pryvo.services.compatibility import score_compatibility
from pryvo.services.profile_service import ProfileService
from pryvo.services.subscription_service import SubscriptionService
from pryvo.utils.helpers import Clock, utcnow
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)

CandidateSource = Callable[[str], Awaitable[List[Profile]]]


def _sort_key(sort_by: SortBy) -> Callable[[DiscoveryCandidate], Tuple]:
    """Boosted first, then the requested order."""

    def by_score(c: DiscoveryCandidate) -> Tuple:
        return (not c.is_boosted, -c.compatibility.score)

    def by_distance(c: DiscoveryCandidate) -> Tuple:
        return (not c.is_boosted, c.distance_km is None, c.distance_km or 0.0)

    def by_recency(c: DiscoveryCandidate) -> Tuple:
        return (not c.is_boosted, -c.profile.updated_at.timestamp())

    if sort_by == SortBy.DISTANCE:
        return by_distance
    if sort_by == SortBy.RECENCY:
        return by_recency
    return by_score


class DiscoveryService:
    """
    Build a viewer's discovery feed.

    Scoring is O(N) over the candidate population. The pipeline hands control
    back to the event loop every `DISCOVERY_YIELD_EVERY` candidates so a large
    feed never stalls message delivery running on the same loop.

    `candidate_source` loads the raw candidate pool; swap it for an indexed or
    pre-filtered query without touching the filtering and ranking below.
    """

    def __init__(
        self,
        db: Database,
        profiles: ProfileService,
        boosts: BoostService,
        subscriptions: SubscriptionService,
        candidate_source: Optional[CandidateSource] = None,
        clock: Clock = utcnow,
        config: Settings = settings,
    ) -> None:
        self.db = db
        self.profiles = profiles
        self.boosts = boosts
        self.subscriptions = subscriptions
        self.candidate_source: CandidateSource = candidate_source or profiles.list_profiles
        self.clock = clock
        self.config = config

    async def discover(self, viewer_id: str, options: Optional[DiscoveryOptions] = None) -> List[DiscoveryCandidate]:
        """
        Rank candidate profiles for `viewer_id`.

        Args:
            viewer_id (str): The user asking for candidates.
            options (Optional[DiscoveryOptions]): Threshold, distance cap, sort
                order, limit and premium filters.

        Returns:
            List[DiscoveryCandidate]: Boosted candidates first, then the rest,
                each tier ordered by `options.sort_by`.

        Raises:
            ProfileNotFoundError: If the viewer has no profile.
            PremiumRequiredError: If premium filters are used without a subscription.
        """
        options = options or DiscoveryOptions()
        with sentry_sdk.start_span(op="discovery.discover", name=viewer_id) as span:
            viewer = await self.profiles.require_profile(viewer_id)

            filters = options.filters if options.filters is not None and not options.filters.is_empty() else None
            if filters is not None:
                await self.subscriptions.require_premium(viewer_id, "Advanced filters")

            pool = await self.candidate_source(viewer_id)
            async with self.db.session("discovery.exclusions") as session:
                excluded = await swipe_store.swiped_user_ids(session, viewer_id)
                excluded |= await block_store.blocked_either_way(session, viewer_id)
            excluded.add(viewer_id)

            today = self.clock().date()
            scored: List[DiscoveryCandidate] = []
            for index, candidate in enumerate(pool, start=1):
                if index % self.config.DISCOVERY_YIELD_EVERY == 0:
                    await asyncio.sleep(0)

                if candidate.user_id in excluded or not candidate.is_discoverable():
                    continue
                if filters is not None and not filters.matches(candidate):
                    continue

                try:
                    result = score_compatibility(viewer, candidate)
                except Exception as e:
                    logger.warning(
                        "Failed to score candidate, skipping",
                        viewer_id=viewer_id,
                        candidate_id=candidate.user_id,
                        error=str(e),
                    )
                    continue

                if not result.passed or result.percentage < options.min_score_percent:
                    continue
                distance = result.breakdown.distance_km
                if options.max_distance_km is not None and distance is not None and distance > options.max_distance_km:
                    continue

                scored.append(
                    DiscoveryCandidate(
                        profile=candidate,
                        age=candidate.age(today),
                        compatibility=result,
                        distance_km=distance,
                    )
                )

            boosted = await self.boosts.boosted_user_ids(c.user_id for c in scored)
            for entry in scored:
                entry.is_boosted = entry.user_id in boosted

            scored.sort(key=_sort_key(options.sort_by))
            if options.limit is not None:
                scored = scored[: options.limit]

            span.set_data("pool", len(pool))
            span.set_data("returned", len(scored))
            logger.debug(
                "Discovery ranked", viewer_id=viewer_id, pool=len(pool), returned=len(scored), boosted=len(boosted)
            )
            return scored
