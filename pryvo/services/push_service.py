"""Push notification senders."""

from typing import Any, Dict, List, Optional, Protocol

import aiohttp
import sentry_sdk
from pydantic import BaseModel, Field

from pryvo.database import tokens as token_store
from pryvo.database.connection import Database
from pryvo.utils.errors import ExternalServiceError, ValidationError
from pryvo.utils.helpers import Clock, new_id, utcnow
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)


class PushNotification(BaseModel):
    title: str
    body: str
    data: Dict[str, Any] = Field(default_factory=dict)


class PushResult(BaseModel):
    success: bool
    reason: Optional[str] = None
    delivered: int = 0


async def register_device_token(
    db: Database, user_id: str, token: str, platform: Optional[str] = None, clock: Clock = utcnow
) -> None:
    """Remember a device token so pushes for `user_id` reach that device."""
    token = token.strip()
    if not token:
        raise ValidationError("Device token must not be empty")
    async with db.session("push.register_token") as session:
        await token_store.save_token(session, new_id(), user_id, token, platform, clock())
    logger.info("Device token registered", user_id=user_id, platform=platform)


class PushSender(Protocol):
    """Anything that can deliver a push notification to a user's devices."""

    async def send(self, user_id: str, notification: PushNotification) -> PushResult: ...

    async def close(self) -> None: ...


class NullPushSender:
    """Used when no push gateway is configured. Drops everything."""

    async def send(self, user_id: str, notification: PushNotification) -> PushResult:
        logger.debug("Push notifications disabled, dropping", user_id=user_id, title=notification.title)
        return PushResult(success=False, reason="disabled")

    async def close(self) -> None:
        return None


class HttpPushSender:
    """
    Deliver pushes through an HTTP gateway.

    The gateway receives the user's registered device tokens and the
    notification; it answers with the tokens it found invalid, which are then
    forgotten so they are not retried.

    Raises:
        ExternalServiceError: From `send` when the gateway is unreachable or
            answers with an error status.
    """

    def __init__(self, db: Database, url: str, api_token: Optional[str] = None, timeout: float = 15.0) -> None:
        self._db = db
        self._url = url
        self._api_token = api_token
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {"Authorization": f"Bearer {self._api_token}"} if self._api_token else None
            self._session = aiohttp.ClientSession(headers=headers, timeout=self._timeout)
        return self._session

    async def send(self, user_id: str, notification: PushNotification) -> PushResult:
        with sentry_sdk.start_span(op="push.send", name=user_id) as span:
            async with self._db.session("push.tokens") as session:
                device_tokens = await token_store.tokens_for_user(session, user_id)

            if not device_tokens:
                logger.info("No push token for user", user_id=user_id)
                span.set_data("status", "no_token")
                return PushResult(success=False, reason="no_token")

            payload = {
                "tokens": device_tokens,
                "notification": {"title": notification.title, "body": notification.body},
                "data": {key: str(value) for key, value in notification.data.items()},
            }

            try:
                async with self._get_session().post(self._url, json=payload) as response:
                    if response.status >= 400:
                        error_text = await response.text()
                        span.set_status("internal_error")
                        raise ExternalServiceError(
                            f"Push gateway returned {response.status}",
                            service="push",
                            details={"status": response.status, "body": error_text[:500]},
                        )
                    body = await response.json(content_type=None) or {}
            except aiohttp.ClientError as e:
                span.set_status("internal_error")
                raise ExternalServiceError("Push gateway unreachable", service="push", details={"error": str(e)}) from e

            invalid: List[str] = [t for t in body.get("invalidTokens", []) if t in device_tokens]
            if invalid:
                logger.info("Removing invalid push tokens", user_id=user_id, count=len(invalid))
                async with self._db.session("push.prune_tokens") as session:
                    await token_store.delete_tokens(session, invalid)

            delivered = len(device_tokens) - len(invalid)
            span.set_data("delivered", delivered)
            logger.info("Push notification sent", user_id=user_id, delivered=delivered)
            return PushResult(success=delivered > 0, delivered=delivered, reason=None if delivered else "invalid_tokens")

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
