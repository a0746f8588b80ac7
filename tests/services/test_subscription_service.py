import pytest

from pryvo.utils.errors import PremiumRequiredError


@pytest.mark.asyncio
async def test_free_by_default(core):
    assert await core.subscriptions.is_premium("alice") is False
    with pytest.raises(PremiumRequiredError) as exc_info:
        await core.subscriptions.require_premium("alice", "Boost")
    assert exc_info.value.details == {"feature": "Boost"}


@pytest.mark.asyncio
async def test_grant_and_cancel(core):
    assert await core.subscriptions.grant("alice") is None
    assert await core.subscriptions.is_premium("alice") is True
    await core.subscriptions.require_premium("alice", "Boost")

    assert await core.subscriptions.cancel("alice") is True
    assert await core.subscriptions.is_premium("alice") is False
    assert await core.subscriptions.cancel("alice") is False


@pytest.mark.asyncio
async def test_subscription_lapses(core, clock):
    expires_at = await core.subscriptions.grant("alice", duration_days=30)
    assert expires_at == clock().replace(month=7, day=1)

    clock.advance(days=29)
    assert await core.subscriptions.is_premium("alice") is True
    clock.advance(days=2)
    assert await core.subscriptions.is_premium("alice") is False


@pytest.mark.asyncio
async def test_grant_extends_existing(core, clock):
    await core.subscriptions.grant("alice", duration_days=1)
    clock.advance(days=2)
    await core.subscriptions.grant("alice", duration_days=10)
    assert await core.subscriptions.is_premium("alice") is True
