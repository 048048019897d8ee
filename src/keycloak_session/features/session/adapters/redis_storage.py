"""Redis implementation of the session storage capability."""

import logging
from typing import Optional

import redis.asyncio as redis

from ....core.exceptions import SessionStorageError

logger = logging.getLogger(__name__)


class RedisSessionStorage:
    """Redis-backed session storage.

    Every key is namespaced with ``key_prefix`` (typically one prefix per
    browser-tab-like session) and optionally expires after ``ttl_seconds``.
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        *,
        redis_url: str = "redis://localhost:6379",
        key_prefix: str = "keycloak_session",
        ttl_seconds: Optional[int] = None,
    ):
        """Initialize Redis session storage.

        Args:
            redis_client: Existing async Redis client; created from ``redis_url`` on connect otherwise
            redis_url: Redis URL used when no client is given
            key_prefix: Prefix for all storage keys
            ttl_seconds: Optional expiry applied on every write
        """
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("TTL must be positive")

        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds
        self._redis: Optional[redis.Redis] = redis_client
        self._owns_client = redis_client is None

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()

    async def connect(self) -> None:
        """Connect to Redis."""
        if self._redis is not None:
            return
        try:
            self._redis = redis.from_url(self.redis_url, decode_responses=True)
            await self._redis.ping()
            logger.info("Connected to Redis for session storage")
        except Exception as e:
            self._redis = None
            logger.error(f"Failed to connect to Redis: {e}")
            raise SessionStorageError(f"Redis connection failed: {e}") from e

    async def disconnect(self) -> None:
        """Disconnect from Redis if the connection is ours."""
        if self._redis is not None and self._owns_client:
            await self._redis.aclose()
            self._redis = None
            logger.info("Disconnected from Redis")

    def _ensure_connected(self) -> redis.Redis:
        if self._redis is None:
            raise SessionStorageError("Redis not connected. Use async context manager or call connect().")
        return self._redis

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}:{key}"

    async def get_item(self, key: str) -> Optional[str]:
        client = self._ensure_connected()
        try:
            value = await client.get(self._make_key(key))
        except Exception as e:
            logger.error(f"Failed to read session storage key {key}: {e}")
            raise SessionStorageError(f"Failed to read '{key}': {e}") from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set_item(self, key: str, value: str) -> None:
        client = self._ensure_connected()
        try:
            await client.set(self._make_key(key), value, ex=self.ttl_seconds)
        except Exception as e:
            logger.error(f"Failed to write session storage key {key}: {e}")
            raise SessionStorageError(f"Failed to write '{key}': {e}") from e

    async def remove_item(self, key: str) -> None:
        client = self._ensure_connected()
        try:
            await client.delete(self._make_key(key))
        except Exception as e:
            logger.error(f"Failed to delete session storage key {key}: {e}")
            raise SessionStorageError(f"Failed to delete '{key}': {e}") from e
