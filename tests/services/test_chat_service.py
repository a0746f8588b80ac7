import asyncio

import pytest

from pryvo.database import messages as message_store
from pryvo.models.message import MediaKind, MessageStatus
from pryvo.services.notifications import (
    MESSAGE_DELETED,
    MESSAGE_STATUS_UPDATE,
    MESSAGES_SEEN,
    RECEIVE_MESSAGE,
    STOP_TYPING,
    TYPING,
)
from pryvo.utils.errors import (
    AccessDeniedError,
    BlockedError,
    ChatDisabledError,
    EmptyMessageError,
    InvalidMatchIdError,
    MatchNotFoundError,
    MessageNotFoundError,
    ReceiverMismatchError,
)
from pryvo.utils.helpers import new_id
from tests.mocks import FakeConnection, RecordingPushSender


@pytest.fixture
async def match(core, make_profile, push_sender):
    await make_profile("alice", gender="Woman")
    await make_profile("bob", gender="Man")
    await core.swipes.like("alice", "bob")
    result = await core.swipes.like("bob", "alice")
    await core.notifier.drain()
    push_sender.sent.clear()
    return result.match


async def connect(core, user_id, match_id=None) -> FakeConnection:
    connection = FakeConnection()
    core.presence.authenticate(connection, user_id)
    if match_id is not None:
        assert await core.presence.join_room(connection, match_id, user_id)
    return connection


async def stored_messages(core, match_id):
    async with core.db.session() as session:
        return await message_store.list_by_match(session, match_id, None, None)


@pytest.mark.asyncio
async def test_send_to_online_receiver_is_delivered(core, match, push_sender):
    alice = await connect(core, "alice", match.id)
    bob = await connect(core, "bob", match.id)

    message = await core.chat.send(match.id, "alice", "bob", text="  hello  ")

    assert message.text == "hello"
    assert message.status == MessageStatus.DELIVERED
    for connection in (alice, bob):
        assert [p["id"] for p in connection.named(RECEIVE_MESSAGE)] == [message.id]
        assert connection.named(MESSAGE_STATUS_UPDATE) == [
            {"matchId": match.id, "messageId": message.id, "status": "delivered"}
        ]
    # receiveMessage always precedes the status change
    assert [name for name, _ in bob.events][-2:] == [RECEIVE_MESSAGE, MESSAGE_STATUS_UPDATE]

    await core.notifier.drain()
    assert push_sender.sent == []


@pytest.mark.asyncio
async def test_receiver_online_outside_room_still_counts_as_delivered(core, match):
    await connect(core, "bob")
    message = await core.chat.send(match.id, "alice", "bob", text="hi")
    assert message.status == MessageStatus.DELIVERED


@pytest.mark.asyncio
async def test_send_to_offline_receiver_pushes(core, match, push_sender):
    alice = await connect(core, "alice", match.id)

    message = await core.chat.send(match.id, "alice", "bob", text="are you there?")

    assert message.status == MessageStatus.SENT
    assert alice.named(MESSAGE_STATUS_UPDATE) == []
    await core.notifier.drain()
    [(user_id, notification)] = push_sender.sent
    assert user_id == "bob"
    assert notification.body == "are you there?"
    assert notification.data["messageId"] == message.id


@pytest.mark.asyncio
async def test_media_push_preview(core, match, push_sender):
    await core.chat.send(match.id, "alice", "bob", media_url="https://cdn/v.mp4", media_type=MediaKind.VIDEO)
    await core.notifier.drain()
    assert push_sender.sent[0][1].body == "Sent you a video"


@pytest.mark.asyncio
async def test_failing_push_never_fails_send(core, match):
    core.notifier.push_sender = RecordingPushSender(fail=True)
    message = await core.chat.send(match.id, "alice", "bob", text="hi")
    await core.notifier.drain()
    assert [m.id for m in await stored_messages(core, match.id)] == [message.id]


@pytest.mark.asyncio
async def test_slow_push_does_not_block_send(core, match):
    core.notifier.push_sender = RecordingPushSender(delay=5)
    core.notifier.push_timeout = 0.05
    message = await asyncio.wait_for(core.chat.send(match.id, "alice", "bob", text="hi"), timeout=1)
    assert message.status == MessageStatus.SENT
    await core.notifier.drain()
    assert core.notifier.push_sender.sent == []


@pytest.mark.asyncio
async def test_send_rejections(core, match):
    with pytest.raises(InvalidMatchIdError):
        await core.chat.send("not-a-match", "alice", "bob", text="hi")
    with pytest.raises(MatchNotFoundError):
        await core.chat.send(new_id(), "alice", "bob", text="hi")
    with pytest.raises(AccessDeniedError):
        await core.chat.send(match.id, "mallory", "bob", text="hi")
    with pytest.raises(ReceiverMismatchError):
        await core.chat.send(match.id, "alice", "mallory", text="hi")
    with pytest.raises(EmptyMessageError):
        await core.chat.send(match.id, "alice", "bob", text="   ")

    assert await stored_messages(core, match.id) == []


@pytest.mark.asyncio
async def test_disabled_chat_persists_nothing(core, match):
    await core.matches.unmatch(match.id, "bob")
    with pytest.raises(ChatDisabledError):
        await core.chat.send(match.id, "alice", "bob", text="hi")
    assert await stored_messages(core, match.id) == []


@pytest.mark.asyncio
async def test_block_is_reported_before_disabled_chat(core, match):
    alice = await connect(core, "alice", match.id)
    await core.blocks.block("bob", "alice")

    with pytest.raises(BlockedError):
        await core.chat.send(match.id, "alice", "bob", text="hi")
    assert await stored_messages(core, match.id) == []
    assert alice.named(RECEIVE_MESSAGE) == []

    with pytest.raises(BlockedError):
        await core.chat.list_messages(match.id, "alice")


@pytest.mark.asyncio
async def test_sender_who_blocked_the_receiver_cannot_send(core, match):
    bob = await connect(core, "bob")
    await core.blocks.block("alice", "bob")

    with pytest.raises(BlockedError):
        await core.chat.send(match.id, "alice", "bob", text="hi")
    assert await stored_messages(core, match.id) == []
    assert bob.named(RECEIVE_MESSAGE) == []


@pytest.mark.asyncio
async def test_mark_seen_is_idempotent(core, match):
    alice = await connect(core, "alice", match.id)
    await core.chat.send(match.id, "alice", "bob", text="one")
    await core.chat.send(match.id, "alice", "bob", text="two")

    assert await core.chat.mark_seen(match.id, "bob") == 2
    assert await core.chat.mark_seen(match.id, "bob") == 0

    [event] = alice.named(MESSAGES_SEEN)
    assert event["seenBy"] == "bob"
    assert event["count"] == 2
    assert {m.status for m in await stored_messages(core, match.id)} == {MessageStatus.SEEN}


@pytest.mark.asyncio
async def test_mark_seen_only_touches_messages_to_the_reader(core, match):
    await core.chat.send(match.id, "alice", "bob", text="to bob")
    assert await core.chat.mark_seen(match.id, "alice") == 0


@pytest.mark.asyncio
async def test_history_marks_pending_messages_delivered(core, clock, match):
    first = await core.chat.send(match.id, "alice", "bob", text="first")
    clock.advance(seconds=1)
    second = await core.chat.send(match.id, "alice", "bob", text="second")
    alice = await connect(core, "alice", match.id)

    history = await core.chat.list_messages(match.id, "bob")

    assert [m.id for m in history] == [first.id, second.id]
    assert {m.status for m in history} == {MessageStatus.DELIVERED}
    assert {p["messageId"] for p in alice.named(MESSAGE_STATUS_UPDATE)} == {first.id, second.id}

    # the sender reading history does not deliver their own messages
    alice.events.clear()
    await core.chat.list_messages(match.id, "alice")
    assert alice.named(MESSAGE_STATUS_UPDATE) == []


@pytest.mark.asyncio
async def test_seen_never_regresses_to_delivered(core, match):
    await core.chat.send(match.id, "alice", "bob", text="hi")
    await core.chat.mark_seen(match.id, "bob")
    history = await core.chat.list_messages(match.id, "bob")
    assert history[0].status == MessageStatus.SEEN


@pytest.mark.asyncio
async def test_conversation_summaries(core, clock, match):
    await core.chat.send(match.id, "alice", "bob", text="one")
    clock.advance(seconds=1)
    await core.chat.send(match.id, "alice", "bob", text="two")

    [summary] = await core.chat.last_messages("bob")
    assert summary.match_id == match.id
    assert summary.last_message.text == "two"
    assert summary.unread_count == 2

    await core.chat.mark_seen(match.id, "bob")
    [summary] = await core.chat.last_messages("bob")
    assert summary.unread_count == 0


@pytest.mark.asyncio
async def test_only_sender_can_delete(core, match):
    bob = await connect(core, "bob", match.id)
    message = await core.chat.send(match.id, "alice", "bob", text="oops")

    with pytest.raises(AccessDeniedError):
        await core.chat.delete_message(message.id, "bob")

    await core.chat.delete_message(message.id, "alice")
    assert bob.named(MESSAGE_DELETED) == [{"matchId": match.id, "messageId": message.id}]
    with pytest.raises(MessageNotFoundError):
        await core.chat.delete_message(message.id, "alice")


@pytest.mark.asyncio
async def test_typing_is_relayed_to_the_rest_of_the_room(core, match):
    alice = await connect(core, "alice", match.id)
    bob = await connect(core, "bob", match.id)

    await core.chat.typing(alice, match.id, "alice")
    await core.chat.stop_typing(alice, match.id, "alice")

    assert bob.named(TYPING) == [{"matchId": match.id, "userId": "alice"}]
    assert bob.named(STOP_TYPING) == [{"matchId": match.id, "userId": "alice"}]
    assert alice.named(TYPING) == []


@pytest.mark.asyncio
async def test_typing_from_outside_the_room_is_dropped(core, match):
    outsider = await connect(core, "alice")
    bob = await connect(core, "bob", match.id)
    await core.chat.typing(outsider, match.id, "alice")
    assert bob.events == []


@pytest.mark.asyncio
async def test_concurrent_sends_are_all_stored(core, match):
    await connect(core, "bob", match.id)
    sent = await asyncio.gather(*(core.chat.send(match.id, "alice", "bob", text=f"m{i}") for i in range(8)))
    stored = await stored_messages(core, match.id)
    assert {m.id for m in stored} == {m.id for m in sent}
    assert {m.status for m in stored} == {MessageStatus.DELIVERED}
