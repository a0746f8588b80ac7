import pytest

from pryvo.services.notifications import STOP_TYPING, TYPING
from pryvo.utils.errors import ConflictError, ValidationError
from tests.mocks import FakeConnection


@pytest.fixture
async def match(core, make_profile):
    await make_profile("alice", gender="Woman")
    await make_profile("bob", gender="Man")
    await core.swipes.like("alice", "bob")
    return (await core.swipes.like("bob", "alice")).match


async def chat_enabled(core, match_id):
    return (await core.matches.find_match(match_id)).chat_enabled


@pytest.mark.asyncio
async def test_block_is_symmetric_for_checks(core):
    block = await core.blocks.block("alice", "bob", reason="spam")
    assert block.reason == "spam"
    assert await core.blocks.is_blocked("alice", "bob")
    assert await core.blocks.is_blocked("bob", "alice")
    assert [b.blocked_id for b in await core.blocks.list_blocked("alice")] == ["bob"]
    assert await core.blocks.list_blocked("bob") == []


@pytest.mark.asyncio
async def test_block_errors(core):
    with pytest.raises(ValidationError):
        await core.blocks.block("alice", "alice")
    await core.blocks.block("alice", "bob")
    with pytest.raises(ConflictError):
        await core.blocks.block("alice", "bob")


@pytest.mark.asyncio
async def test_block_disables_chat_and_unblock_restores_it(core, match):
    await core.blocks.block("alice", "bob")
    assert await chat_enabled(core, match.id) is False

    assert await core.blocks.unblock("alice", "bob") is True
    assert await chat_enabled(core, match.id) is True
    assert await core.blocks.unblock("alice", "bob") is False


@pytest.mark.asyncio
async def test_chat_stays_off_while_a_reverse_block_remains(core, match):
    await core.blocks.block("alice", "bob")
    await core.blocks.block("bob", "alice")

    await core.blocks.unblock("alice", "bob")
    assert await chat_enabled(core, match.id) is False

    await core.blocks.unblock("bob", "alice")
    assert await chat_enabled(core, match.id) is True


@pytest.mark.asyncio
async def test_unblock_does_not_revive_an_unmatched_pair(core, match):
    await core.matches.unmatch(match.id, "alice")
    await core.blocks.block("alice", "bob")
    await core.blocks.unblock("alice", "bob")
    assert await chat_enabled(core, match.id) is False


@pytest.mark.asyncio
async def test_block_closes_the_match_room(core, match):
    alice, bob = FakeConnection(), FakeConnection()
    core.presence.authenticate(alice, "alice")
    core.presence.authenticate(bob, "bob")
    assert await core.presence.join_room(alice, match.id, "alice")
    assert await core.presence.join_room(bob, match.id, "bob")

    await core.blocks.block("alice", "bob")

    assert core.presence.room_connections(match.id) == []
    assert await core.presence.join_room(bob, match.id, "bob") is False
    await core.chat.typing(bob, match.id, "bob")
    await core.chat.stop_typing(bob, match.id, "bob")
    assert alice.named(TYPING) == []
    assert alice.named(STOP_TYPING) == []

    await core.blocks.unblock("alice", "bob")
    assert await core.presence.join_room(bob, match.id, "bob")
