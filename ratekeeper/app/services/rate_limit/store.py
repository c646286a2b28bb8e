"""Atomic store adapter over redis.asyncio.

Exposes only the primitives the algorithms need. Each method is a single
round trip that Redis applies atomically: a plain command or a Lua script.
Client failures surface as StoreError; nothing is retried here.
"""

from typing import Any, Optional, Sequence

import redis
import redis.asyncio as aioredis
from redis.commands.core import AsyncScript

from ratekeeper.app.core.logging import get_logger
from ratekeeper.app.exceptions import StoreError
from ratekeeper.app.services.rate_limit.redis_lua import INCREMENT_WITH_EXPIRY_SCRIPT

logger = get_logger(__name__)

# Keys deleted per DEL call during a prefix reset
DELETE_BATCH_SIZE = 500


class RedisStore:
    """Thin wrapper exposing the atomic primitives of a Redis client.

    Scripts are registered lazily with ``register_script`` so the first
    call loads them with EVAL and later calls use EVALSHA.
    """

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client
        self._scripts: dict[str, AsyncScript] = {}

    @property
    def client(self) -> aioredis.Redis:
        return self._client

    def _script(self, source: str) -> AsyncScript:
        script = self._scripts.get(source)
        if script is None:
            script = self._client.register_script(source)
            self._scripts[source] = script
        return script

    async def run_script(self, source: str, keys: Sequence[str], args: Sequence[Any]) -> list:
        """Execute a Lua script atomically against ``keys``.

        Args:
            source: Lua source
            keys: Keys the script touches (KEYS)
            args: Script arguments (ARGV)

        Returns:
            The script's reply, a list for every script in this package.

        Raises:
            StoreError: If the connection fails or the script errors.
        """
        try:
            return await self._script(source)(keys=list(keys), args=list(args))
        except redis.RedisError as e:
            logger.error(f"Lua script execution failed: {e}", extra={"keys": list(keys)})
            raise StoreError(f"Rate limit script failed: {e}") from e

    async def increment_with_expiry(self, key: str, ttl_seconds: int) -> int:
        """Increment a counter, setting its expiry when it has none.

        Args:
            key: Counter key
            ttl_seconds: Expiry applied on the absent-to-1 transition

        Returns:
            The counter value after the increment
        """
        result = await self.run_script(INCREMENT_WITH_EXPIRY_SCRIPT, [key], [ttl_seconds])
        return int(result)

    async def get_ttl(self, key: str) -> Optional[int]:
        """Remaining time to live of ``key`` in milliseconds.

        Returns:
            Milliseconds left, or None if the key is missing or never expires.
        """
        try:
            ttl = await self._client.pttl(key)
        except redis.RedisError as e:
            logger.error(f"Redis PTTL failed: {e}", extra={"key": key})
            raise StoreError(f"Rate limit store unavailable: {e}") from e
        ttl = int(ttl)
        return ttl if ttl >= 0 else None

    async def delete_keys_matching(self, prefix: str) -> int:
        """Delete every key under ``prefix:``.

        Uses SCAN rather than KEYS so a large keyspace never blocks the
        server. Keys created while the scan runs may survive.

        Returns:
            Number of keys deleted
        """
        deleted = 0
        batch: list[str] = []
        try:
            async for key in self._client.scan_iter(match=f"{prefix}:*", count=DELETE_BATCH_SIZE):
                batch.append(key)
                if len(batch) >= DELETE_BATCH_SIZE:
                    deleted += await self._client.delete(*batch)
                    batch.clear()
            if batch:
                deleted += await self._client.delete(*batch)
        except redis.RedisError as e:
            logger.error(f"Redis reset failed: {e}", extra={"prefix": prefix})
            raise StoreError(f"Rate limit reset failed: {e}") from e
        return deleted

    async def ping(self) -> bool:
        """Check connectivity to the store."""
        try:
            return bool(await self._client.ping())
        except redis.RedisError as e:
            raise StoreError(f"Rate limit store unavailable: {e}") from e
