from unittest.mock import AsyncMock

import pytest

from pryvo.models.profile import Profile
from pryvo.services.profile_service import PROFILE_CACHE_KEY
from pryvo.utils.errors import ConflictError, ProfileNotFoundError, ValidationError
from tests.mocks import profile_document


@pytest.mark.asyncio
async def test_save_and_get(core, clock):
    saved = await core.profiles.save_profile("alice", profile_document())
    loaded = await core.profiles.get_profile("alice")

    assert loaded.id == saved.id
    assert loaded.user_id == "alice"
    assert loaded.created_at == clock()
    assert await core.profiles.get_profile("nobody") is None


@pytest.mark.asyncio
async def test_one_profile_per_user(core):
    await core.profiles.save_profile("alice", profile_document())
    with pytest.raises(ConflictError):
        await core.profiles.save_profile("alice", profile_document())


@pytest.mark.asyncio
async def test_invalid_document(core):
    with pytest.raises(ValidationError):
        await core.profiles.save_profile("alice", {"location": {"latitude": "north"}})


@pytest.mark.asyncio
async def test_update_merges_sections(core, clock):
    await core.profiles.save_profile("alice", profile_document())
    clock.advance(hours=1)

    updated = await core.profiles.update_profile(
        "alice", {"lifestyle": {"drink": "Never"}, "userId": "mallory", "isPaused": True}
    )

    assert updated.user_id == "alice"
    assert updated.lifestyle.drink == "Never"
    assert updated.lifestyle.smoke_tobacco == "No"
    assert updated.is_paused is True
    assert updated.updated_at == clock()
    assert (await core.profiles.get_profile("alice")).lifestyle.drink == "Never"


@pytest.mark.asyncio
async def test_update_missing_profile(core):
    with pytest.raises(ProfileNotFoundError):
        await core.profiles.update_profile("nobody", {"isHidden": True})


@pytest.mark.asyncio
async def test_reads_come_from_cache_when_present(core):
    profile = Profile.model_validate({**profile_document(), "id": "cached", "userId": "alice"})
    core.profiles.cache = AsyncMock()
    core.profiles.cache.get_model.return_value = profile

    assert (await core.profiles.get_profile("alice")).id == "cached"
    core.profiles.cache.get_model.assert_awaited_once_with(PROFILE_CACHE_KEY.format(user_id="alice"), Profile)


@pytest.mark.asyncio
async def test_update_invalidates_cache(core):
    await core.profiles.save_profile("alice", profile_document())
    core.profiles.cache = AsyncMock()
    core.profiles.cache.get_model.return_value = None

    await core.profiles.set_hidden("alice", True)

    core.profiles.cache.delete.assert_awaited_with(PROFILE_CACHE_KEY.format(user_id="alice"))
