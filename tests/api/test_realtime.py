from typing import Any, Dict, List

import pytest

from pryvo.api.realtime import RealtimeSession, WebSocketConnection
from pryvo.services.notifications import ERROR, NEW_MATCH, RECEIVE_MESSAGE


class FakeWebSocket:
    def __init__(self) -> None:
        self.frames: List[Dict[str, Any]] = []

    async def send_json(self, data: Dict[str, Any]) -> None:
        self.frames.append(data)

    def events(self, name: str) -> List[Dict[str, Any]]:
        return [frame["data"] for frame in self.frames if frame["event"] == name]


def open_session(core):
    socket = FakeWebSocket()
    return RealtimeSession(core, WebSocketConnection(socket)), socket


@pytest.fixture
async def match(core, make_profile):
    await make_profile("alice", gender="Woman")
    await make_profile("bob", gender="Man")
    await core.swipes.like("alice", "bob")
    return (await core.swipes.like("bob", "alice")).match


@pytest.mark.asyncio
async def test_authenticate_and_disconnect(core):
    session, socket = open_session(core)

    await session.dispatch("authenticate", {"userId": "alice"})

    assert socket.events("authenticated") == [{"userId": "alice"}]
    assert core.presence.is_online("alice")
    session.close()
    assert not core.presence.is_online("alice")


@pytest.mark.asyncio
async def test_unknown_and_malformed_events(core):
    session, socket = open_session(core)

    await session.dispatch("explode", {})
    await session.dispatch(42, None)
    await session.dispatch("authenticate", {})

    errors = socket.events(ERROR)
    assert len(errors) == 3
    assert errors[2] == {"event": "authenticate", "error": "validation", "message": "Missing userId"}


@pytest.mark.asyncio
async def test_room_requires_authentication_and_membership(core, match):
    session, socket = open_session(core)
    await session.dispatch("joinRoom", {"matchId": match.id})
    assert socket.events(ERROR)[0]["error"] == "forbidden"

    await session.dispatch("authenticate", {"userId": "mallory"})
    await session.dispatch("joinRoom", {"matchId": match.id})
    assert len(socket.events(ERROR)) == 2
    assert socket.events("roomJoined") == []


@pytest.mark.asyncio
async def test_cannot_switch_identity(core):
    session, socket = open_session(core)
    await session.dispatch("authenticate", {"userId": "alice"})
    await session.dispatch("authenticate", {"userId": "bob"})
    assert socket.events(ERROR)[0]["error"] == "forbidden"
    assert core.presence.user_of(session.connection) == "alice"


@pytest.mark.asyncio
async def test_message_round_trip(core, match):
    alice, alice_socket = open_session(core)
    bob, bob_socket = open_session(core)
    for session, user_id in ((alice, "alice"), (bob, "bob")):
        await session.dispatch("authenticate", {"userId": user_id})
        await session.dispatch("joinRoom", {"matchId": match.id})

    await alice.dispatch("sendMessage", {"matchId": match.id, "receiverId": "bob", "text": "hey"})
    await bob.dispatch("typing", {"matchId": match.id})
    await bob.dispatch("messageSeen", {"matchId": match.id})

    [received] = bob_socket.events(RECEIVE_MESSAGE)
    assert received["text"] == "hey"
    assert alice_socket.events("typing") == [{"matchId": match.id, "userId": "bob"}]
    assert alice_socket.events("messagesSeen")[0]["count"] == 1
    assert alice_socket.events(ERROR) == []


@pytest.mark.asyncio
async def test_send_errors_are_reported_on_the_socket(core, match):
    session, socket = open_session(core)
    await session.dispatch("authenticate", {"userId": "alice"})

    await session.dispatch("sendMessage", {"matchId": match.id, "receiverId": "bob", "mediaUrl": "x", "mediaType": "gif"})
    await session.dispatch("sendMessage", {"matchId": match.id, "receiverId": "bob"})

    assert [e["error"] for e in socket.events(ERROR)] == ["validation", "precondition_failed"]


@pytest.mark.asyncio
async def test_socket_receives_match_events(core, make_profile):
    await make_profile("alice", gender="Woman")
    await make_profile("bob", gender="Man")
    session, socket = open_session(core)
    await session.dispatch("authenticate", {"userId": "alice"})

    await core.swipes.like("alice", "bob")
    await core.swipes.like("bob", "alice")

    assert len(socket.events(NEW_MATCH)) == 1
