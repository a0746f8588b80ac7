"""Background jobs run by the application lifecycle."""

import asyncio
from typing import Awaitable, Callable

import sentry_sdk

from pryvo.services.boost_service import BoostService
from pryvo.utils.logging import get_logger, log_error

logger = get_logger(__name__)

Job = Callable[[], Awaitable[None]]


async def expire_boosts_job(boosts: BoostService) -> None:
    """Flip lapsed boosts to inactive."""
    with sentry_sdk.start_span(op="job.expire_boosts", name="expire_old_boosts") as span:
        expired = await boosts.expire_old_boosts()
        span.set_data("expired", expired)


async def run_repeating(job: Job, interval: float, first: float = 0.0, name: str = "job") -> None:
    """
    Run `job` every `interval` seconds until cancelled.

    A failing run is logged and the schedule carries on.
    """
    logger.info("Job registered", job=name, interval=interval)
    await asyncio.sleep(first)
    while True:
        try:
            await job()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log_error(logger, e, "Job run failed", {"job": name})
        await asyncio.sleep(interval)
