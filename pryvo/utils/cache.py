"""Redis cache utilities for the Pryvo backend."""

import json
from typing import Any, Dict, Optional, Type, TypeVar, Union

import redis.asyncio as redis
import sentry_sdk
from pydantic import BaseModel

from pryvo.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_EXPIRATION = 3600


class RedisCache:
    """
    Read-through cache backed by Redis.

    The connection pool is created lazily on first use. When no URL is
    configured, or the first connection attempt fails, the cache marks itself
    disabled and every operation becomes a no-op so callers fall through to
    the database.
    """

    def __init__(self, url: Optional[str], max_connections: int = 10) -> None:
        self._url = url
        self._max_connections = max_connections
        self._client: Optional[redis.Redis] = None
        self._failed = not url
        if self._failed:
            logger.info("No Redis configuration found, caching is disabled")

    @property
    def enabled(self) -> bool:
        return not self._failed

    def _get_client(self) -> Optional[redis.Redis]:
        if self._failed:
            return None
        if self._client is None:
            try:
                pool = redis.ConnectionPool.from_url(
                    self._url,  # type: ignore[arg-type]
                    max_connections=self._max_connections,
                    decode_responses=True,
                )
                self._client = redis.Redis(connection_pool=pool)
                logger.info("Redis client initialized")
            except Exception as e:
                logger.warning("Failed to initialize Redis client, caching will be disabled", error=str(e))
                self._failed = True
                return None
        return self._client

    async def set(
        self, key: str, value: Union[str, Dict[str, Any], BaseModel], expiration: int = DEFAULT_EXPIRATION
    ) -> None:
        """
        Store a value, serialising models and dicts to JSON.

        Args:
            key (str): Cache key.
            value (Union[str, Dict[str, Any], BaseModel]): Value to cache.
            expiration (int): TTL in seconds; non-positive values fall back to one hour.
        """
        with sentry_sdk.start_span(op="cache.set", name=key) as span:
            client = self._get_client()
            if client is None:
                span.set_data("status", "disabled")
                return

            if isinstance(value, BaseModel):
                payload = value.model_dump_json(by_alias=True)
            elif isinstance(value, dict):
                payload = json.dumps(value, default=str)
            else:
                payload = str(value)

            if expiration <= 0:
                logger.warning("Cache set without expiration, forcing default", key=key)
                expiration = DEFAULT_EXPIRATION

            try:
                await client.set(key, payload, ex=expiration)
                span.set_data("status", "success")
            except Exception as e:
                logger.warning("Failed to set cache, continuing without cache", key=key, error=str(e))
                span.set_status("internal_error")

    async def get(self, key: str) -> Optional[str]:
        """Return the raw cached string, or None on miss or when Redis is unavailable."""
        with sentry_sdk.start_span(op="cache.get", name=key) as span:
            client = self._get_client()
            if client is None:
                span.set_data("status", "disabled")
                return None
            try:
                value: Optional[str] = await client.get(key)
            except Exception as e:
                logger.warning("Failed to get cache", key=key, error=str(e))
                span.set_status("internal_error")
                return None
            span.set_data("status", "hit" if value else "miss")
            return value

    async def get_model(self, key: str, model_class: Type[T]) -> Optional[T]:
        """Return a cached pydantic model, dropping entries that no longer validate."""
        value = await self.get(key)
        if not value:
            return None
        try:
            return model_class.model_validate_json(value)
        except Exception as e:
            logger.error("Failed to parse cached model", key=key, model=model_class.__name__, error=str(e))
            await self.delete(key)
            return None

    async def delete(self, key: str) -> None:
        """Remove a key. Silently skipped when Redis is unavailable."""
        with sentry_sdk.start_span(op="cache.delete", name=key) as span:
            client = self._get_client()
            if client is None:
                span.set_data("status", "disabled")
                return
            try:
                await client.delete(key)
                span.set_data("status", "success")
            except Exception as e:
                logger.warning("Failed to delete cache, continuing without cache", key=key, error=str(e))
                span.set_status("internal_error")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
