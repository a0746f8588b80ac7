"""pytest configuration and fixtures."""

from typing import Any, AsyncIterator, Awaitable, Callable

import pytest

from pryvo.application import PryvoApplication
from pryvo.config import Settings
from pryvo.database.connection import Database
from pryvo.models.profile import Profile
from pryvo.utils.cache import RedisCache
from tests.mocks import FakeClock, RecordingPushSender, profile_document

ProfileFactory = Callable[..., Awaitable[Profile]]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        ENVIRONMENT="test",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'pryvo.db'}",
        REDIS_URL=None,
        FREE_DAILY_LIKE_LIMIT=3,
        PREMIUM_DAILY_LIKE_LIMIT=6,
        FREE_DAILY_COMMENT_LIMIT=2,
        PREMIUM_DAILY_COMMENT_LIMIT=4,
        PUSH_TIMEOUT_SECONDS=1.0,
        DISCOVERY_YIELD_EVERY=2,
    )


@pytest.fixture
async def db(test_settings: Settings) -> AsyncIterator[Database]:
    """A fresh SQLite file database per test."""
    database = Database(test_settings.DATABASE_URL, connect_args={"timeout": 30})
    await database.create_tables()
    yield database
    await database.dispose()


@pytest.fixture
def push_sender() -> RecordingPushSender:
    return RecordingPushSender()


@pytest.fixture
async def core(
    test_settings: Settings, db: Database, push_sender: RecordingPushSender, clock: FakeClock
) -> AsyncIterator[PryvoApplication]:
    """Every service wired together, without the background sweep."""
    app = PryvoApplication(config=test_settings, db=db, cache=RedisCache(None), push_sender=push_sender, clock=clock)
    yield app
    await app.notifier.drain()
    app.presence.clear()


@pytest.fixture
def make_profile(core: PryvoApplication) -> ProfileFactory:
    async def _make(user_id: str, **kwargs: Any) -> Profile:
        return await core.profiles.save_profile(user_id, profile_document(**kwargs))

    return _make

