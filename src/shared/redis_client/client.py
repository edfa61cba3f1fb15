"""Redis client wrapper.

Key layout (all keys share the configured prefix):
- {prefix}:state:{field}   registry feature flags and counters
"""

from typing import Any

import redis.asyncio as redis


class RedisClient:
    """Async Redis client with connection pooling."""

    def __init__(self, url: str = "redis://localhost:6379/0", key_prefix: str = "registry"):
        """Initialize Redis client.

        Args:
            url: Redis connection URL
            key_prefix: Namespace prepended to every key
        """
        self._url = url
        self._key_prefix = key_prefix
        self._pool: redis.ConnectionPool | None = None
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Initialize the connection pool."""
        self._pool = redis.ConnectionPool.from_url(
            self._url,
            decode_responses=True,
        )
        self._client = redis.Redis(connection_pool=self._pool)

    async def close(self) -> None:
        """Close all connections."""
        if self._client is not None:
            await self._client.aclose()
        if self._pool is not None:
            await self._pool.disconnect()
        self._client = None
        self._pool = None

    @property
    def client(self) -> redis.Redis:
        """Underlying Redis client."""
        if self._client is None:
            raise RuntimeError("Redis client not connected. Call connect() first.")
        return self._client

    def key(self, *parts: str) -> str:
        """Build a namespaced key."""
        return ":".join((self._key_prefix, *parts))

    # =========================================================================
    # State Operations
    # =========================================================================

    async def state_get(self, field: str) -> str | None:
        """Get a state value.

        Key pattern: {prefix}:state:{field}
        """
        return await self.client.get(self.key("state", field))

    async def state_get_many(self, fields: list[str]) -> dict[str, str | None]:
        """Get several state values in one round trip."""
        values = await self.client.mget([self.key("state", f) for f in fields])
        return dict(zip(fields, values))

    async def state_set(self, field: str, value: str) -> None:
        """Set a state value."""
        await self.client.set(self.key("state", field), value)

    async def state_set_if_absent(self, field: str, value: str) -> str:
        """Set a state value unless present; return the value now stored."""
        key = self.key("state", field)
        async with self.client.pipeline(transaction=True) as pipe:
            await pipe.set(key, value, nx=True)
            await pipe.get(key)
            _, current = await pipe.execute()
        return current

    # =========================================================================
    # Health Check
    # =========================================================================

    async def health_check(self) -> dict[str, Any]:
        """Check Redis connectivity.

        Returns:
            Health status dict
        """
        try:
            await self.client.ping()
            return {"status": "healthy"}
        except (redis.RedisError, RuntimeError) as e:
            return {"status": "unhealthy", "error": str(e)}
