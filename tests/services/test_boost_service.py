import pytest

from pryvo.jobs import expire_boosts_job
from pryvo.utils.errors import BoostAlreadyActiveError, PremiumRequiredError, ValidationError


@pytest.fixture
async def premium_user(core):
    await core.subscriptions.grant("alice")
    return "alice"


@pytest.mark.asyncio
async def test_boost_requires_premium(core):
    with pytest.raises(PremiumRequiredError):
        await core.boosts.create_boost("alice")
    assert await core.boosts.is_boosted("alice") is False


@pytest.mark.asyncio
async def test_create_boost(core, clock, premium_user):
    boost = await core.boosts.create_boost(premium_user)

    assert boost.duration_minutes == 30
    assert boost.start_time == clock()
    assert (boost.end_time - boost.start_time).total_seconds() == 30 * 60
    assert await core.boosts.is_boosted(premium_user) is True
    assert (await core.boosts.get_active_boost(premium_user)).id == boost.id


@pytest.mark.asyncio
@pytest.mark.parametrize("minutes", [0, -5, 24 * 60 + 1])
async def test_duration_out_of_range(core, premium_user, minutes):
    with pytest.raises(ValidationError):
        await core.boosts.create_boost(premium_user, minutes)


@pytest.mark.asyncio
async def test_only_one_active_boost(core, premium_user):
    await core.boosts.create_boost(premium_user, 60)
    with pytest.raises(BoostAlreadyActiveError):
        await core.boosts.create_boost(premium_user, 15)


@pytest.mark.asyncio
async def test_boost_ends_exactly_at_end_time(core, clock, premium_user):
    await core.boosts.create_boost(premium_user, 30)

    clock.advance(minutes=30)
    assert await core.boosts.is_boosted(premium_user) is True
    clock.advance(seconds=1)
    assert await core.boosts.is_boosted(premium_user) is False


@pytest.mark.asyncio
async def test_lapsed_boost_does_not_block_a_new_one(core, clock, premium_user):
    first = await core.boosts.create_boost(premium_user, 10)
    clock.advance(minutes=11)

    second = await core.boosts.create_boost(premium_user, 10)

    assert second.id != first.id
    assert [b.id for b in await core.boosts.boost_history(premium_user)] == [second.id, first.id]


@pytest.mark.asyncio
async def test_expire_old_boosts_is_idempotent(core, clock, premium_user):
    await core.subscriptions.grant("bob")
    await core.boosts.create_boost(premium_user, 10)
    await core.boosts.create_boost("bob", 60)
    clock.advance(minutes=20)

    assert await core.boosts.expire_old_boosts() == 1
    assert await core.boosts.expire_old_boosts() == 0
    assert await core.boosts.boosted_user_ids(["alice", "bob", "carl"]) == {"bob"}


@pytest.mark.asyncio
async def test_expire_boosts_job(core, clock, premium_user):
    await core.boosts.create_boost(premium_user, 10)
    clock.advance(minutes=20)
    await expire_boosts_job(core.boosts)
    [boost] = await core.boosts.boost_history(premium_user)
    assert boost.is_active is False
