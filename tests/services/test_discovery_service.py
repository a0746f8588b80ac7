import pytest

from pryvo.models.discovery import DiscoveryFilters, DiscoveryOptions, SortBy
from pryvo.utils.errors import PremiumRequiredError, ProfileNotFoundError


@pytest.fixture
async def viewer(make_profile):
    return await make_profile("viewer", gender="Woman", latitude=0.0, longitude=0.0)


def ids(feed):
    return [entry.user_id for entry in feed]


@pytest.mark.asyncio
async def test_perfect_candidate_is_returned_at_100(core, viewer, make_profile):
    await make_profile("carl", gender="Man", latitude=0.01, longitude=0.01)

    [entry] = await core.discovery.discover("viewer")

    assert entry.user_id == "carl"
    assert entry.percentage == 100
    assert entry.is_boosted is False
    assert entry.distance_km == pytest.approx(1.57, abs=0.01)
    assert entry.age == 30


@pytest.mark.asyncio
async def test_viewer_without_profile(core):
    with pytest.raises(ProfileNotFoundError):
        await core.discovery.discover("ghost")


@pytest.mark.asyncio
async def test_gate_failures_are_never_shown(core, viewer, make_profile):
    await make_profile("woman", gender="Woman")
    await make_profile("picky", gender="Man", who_to_date=["Men"])
    await make_profile("carl", gender="Man")

    assert ids(await core.discovery.discover("viewer")) == ["carl"]


@pytest.mark.asyncio
async def test_swiped_blocked_and_undiscoverable_are_excluded(core, viewer, make_profile):
    for name in ("liked", "passed", "blocker", "blocked", "paused", "hidden", "faceless", "fresh"):
        await make_profile(name, gender="Man", photos=0 if name == "faceless" else 1)

    await core.swipes.like("viewer", "liked")
    await core.swipes.pass_user("viewer", "passed")
    await core.blocks.block("blocker", "viewer")
    await core.blocks.block("viewer", "blocked")
    await core.profiles.set_paused("paused", True)
    await core.profiles.set_hidden("hidden", True)

    assert ids(await core.discovery.discover("viewer")) == ["fresh"]


@pytest.mark.asyncio
async def test_reset_passes_brings_profiles_back(core, viewer, make_profile):
    await make_profile("carl", gender="Man")
    await core.swipes.pass_user("viewer", "carl")
    assert await core.discovery.discover("viewer") == []

    await core.swipes.reset_passes("viewer")
    assert ids(await core.discovery.discover("viewer")) == ["carl"]


@pytest.mark.asyncio
async def test_boosted_candidates_come_first(core, viewer, make_profile):
    await make_profile("perfect", gender="Man")
    # a weaker match on intention only
    weaker = await make_profile("boosted", gender="Man")
    await core.profiles.update_profile(weaker.user_id, {"datingPreferences": {"datingIntention": "Short-term fun"}})
    await core.subscriptions.grant("boosted")
    await core.boosts.create_boost("boosted", 30)

    feed = await core.discovery.discover("viewer")

    assert ids(feed) == ["boosted", "perfect"]
    assert [entry.is_boosted for entry in feed] == [True, False]
    assert feed[0].percentage < feed[1].percentage


@pytest.mark.asyncio
async def test_expired_boost_no_longer_ranks_first(core, clock, viewer, make_profile):
    await make_profile("perfect", gender="Man")
    weaker = await make_profile("boosted", gender="Man")
    await core.profiles.update_profile(weaker.user_id, {"datingPreferences": {"datingIntention": "Short-term fun"}})
    await core.subscriptions.grant("boosted")
    await core.boosts.create_boost("boosted", 30)

    clock.advance(minutes=31)

    assert ids(await core.discovery.discover("viewer")) == ["perfect", "boosted"]


@pytest.mark.asyncio
async def test_sort_by_distance_puts_unknown_last(core, viewer, make_profile):
    await make_profile("unmapped", gender="Man", latitude=None)
    await make_profile("far", gender="Man", latitude=0.3, longitude=0.0)
    await make_profile("near", gender="Man", latitude=0.01, longitude=0.0)

    feed = await core.discovery.discover("viewer", DiscoveryOptions(sort_by=SortBy.DISTANCE))

    assert ids(feed) == ["near", "far", "unmapped"]
    assert feed[-1].distance_km is None


@pytest.mark.asyncio
async def test_sort_by_recency(core, clock, viewer, make_profile):
    for name in ("old", "middle", "new"):
        await make_profile(name, gender="Man")
        clock.advance(minutes=1)

    feed = await core.discovery.discover("viewer", DiscoveryOptions(sort_by=SortBy("recent")))
    assert ids(feed) == ["new", "middle", "old"]


@pytest.mark.asyncio
async def test_max_distance_keeps_candidates_without_location(core, viewer, make_profile):
    await make_profile("unmapped", gender="Man", latitude=None)
    await make_profile("far", gender="Man", latitude=1.0, longitude=0.0)
    await make_profile("near", gender="Man", latitude=0.01, longitude=0.0)

    feed = await core.discovery.discover("viewer", DiscoveryOptions(max_distance_km=50, sort_by=SortBy.DISTANCE))
    assert ids(feed) == ["near", "unmapped"]


@pytest.mark.asyncio
async def test_min_score_and_limit(core, viewer, make_profile):
    await make_profile("perfect", gender="Man")
    await make_profile("unmapped", gender="Man", latitude=None)
    await make_profile("also_perfect", gender="Man")

    feed = await core.discovery.discover("viewer", DiscoveryOptions(min_score_percent=95))
    assert sorted(ids(feed)) == ["also_perfect", "perfect"]

    feed = await core.discovery.discover("viewer", DiscoveryOptions(limit=1))
    assert len(feed) == 1
    assert feed[0].percentage == 100


@pytest.mark.asyncio
async def test_premium_filters(core, viewer, make_profile):
    await make_profile("drinker", gender="Man")
    await make_profile("sober", gender="Man", lifestyle={"drink": "Never"})
    options = DiscoveryOptions(filters=DiscoveryFilters(drink="Never"))

    with pytest.raises(PremiumRequiredError):
        await core.discovery.discover("viewer", options)

    await core.subscriptions.grant("viewer")
    assert ids(await core.discovery.discover("viewer", options)) == ["sober"]


@pytest.mark.asyncio
async def test_empty_filters_are_not_premium_gated(core, viewer, make_profile):
    await make_profile("carl", gender="Man")
    feed = await core.discovery.discover("viewer", DiscoveryOptions(filters=DiscoveryFilters()))
    assert ids(feed) == ["carl"]


@pytest.mark.asyncio
async def test_custom_candidate_source(core, viewer, make_profile):
    carl = await make_profile("carl", gender="Man")
    await make_profile("dave", gender="Man")
    calls = []

    async def source(viewer_id):
        calls.append(viewer_id)
        return [carl]

    core.discovery.candidate_source = source
    assert ids(await core.discovery.discover("viewer")) == ["carl"]
    assert calls == ["viewer"]
