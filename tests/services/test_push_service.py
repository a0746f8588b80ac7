from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from pryvo.database import tokens as token_store
from pryvo.services.push_service import HttpPushSender, PushNotification, register_device_token
from pryvo.utils.errors import ExternalServiceError, ValidationError

NOTIFICATION = PushNotification(title="New message", body="hi", data={"matchId": "m1", "count": 2})


def mock_session(status=200, body=None, error=None):
    response = MagicMock(status=status)
    response.json = AsyncMock(return_value=body)
    response.text = AsyncMock(return_value="gateway exploded")

    request = MagicMock()
    request.__aenter__ = AsyncMock(return_value=response, side_effect=error)
    request.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock(closed=False)
    session.post = MagicMock(return_value=request)
    session.close = AsyncMock()
    return session


@pytest.fixture
async def sender(db):
    push = HttpPushSender(db, "https://push.example.com/send", api_token="secret", timeout=1)
    yield push
    await push.close()


@pytest.mark.asyncio
async def test_register_device_token(db):
    await register_device_token(db, "alice", " tok-1 ", platform="ios")
    # a token moves to whoever registered it last
    await register_device_token(db, "bob", "tok-1")
    async with db.session() as session:
        assert await token_store.tokens_for_user(session, "alice") == []
        assert await token_store.tokens_for_user(session, "bob") == ["tok-1"]

    with pytest.raises(ValidationError):
        await register_device_token(db, "alice", "   ")


@pytest.mark.asyncio
async def test_no_token(sender):
    result = await sender.send("alice", NOTIFICATION)
    assert result.success is False
    assert result.reason == "no_token"


@pytest.mark.asyncio
async def test_send_prunes_invalid_tokens(db, sender):
    await register_device_token(db, "alice", "good")
    await register_device_token(db, "alice", "stale")
    session = mock_session(body={"invalidTokens": ["stale", "unknown"]})
    sender._session = session

    result = await sender.send("alice", NOTIFICATION)

    assert result.success is True
    assert result.delivered == 1
    payload = session.post.call_args.kwargs["json"]
    assert sorted(payload["tokens"]) == ["good", "stale"]
    assert payload["notification"] == {"title": "New message", "body": "hi"}
    assert payload["data"] == {"matchId": "m1", "count": "2"}
    async with db.session() as db_session:
        assert await token_store.tokens_for_user(db_session, "alice") == ["good"]


@pytest.mark.asyncio
async def test_gateway_error_status(db, sender):
    await register_device_token(db, "alice", "good")
    sender._session = mock_session(status=502)

    with pytest.raises(ExternalServiceError) as exc_info:
        await sender.send("alice", NOTIFICATION)
    assert exc_info.value.details["status"] == 502


@pytest.mark.asyncio
async def test_gateway_unreachable(db, sender):
    await register_device_token(db, "alice", "good")
    sender._session = mock_session(error=aiohttp.ClientConnectionError("refused"))

    with pytest.raises(ExternalServiceError):
        await sender.send("alice", NOTIFICATION)


@pytest.mark.asyncio
async def test_close(sender):
    session = mock_session()
    sender._session = session
    await sender.close()
    session.close.assert_awaited_once()
    assert sender._session is None
