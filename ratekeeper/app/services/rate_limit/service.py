"""Rate limit dispatcher.

Maps an algorithm identifier to its implementation and key namespace.
Composition only: all state transitions happen inside the store.
"""

import time
from typing import Any, Mapping, Optional

import redis.asyncio as aioredis

from ratekeeper.app.core.config import settings
from ratekeeper.app.core.logging import get_log_context, get_logger
from ratekeeper.app.core.redis import get_redis
from ratekeeper.app.exceptions import InvalidConfigError, StoreError
from ratekeeper.app.services.rate_limit.algorithms import ALGORITHMS, Clock, RateLimitAlgorithm
from ratekeeper.app.services.rate_limit.models import AlgorithmConfig, Decision
from ratekeeper.app.services.rate_limit.store import RedisStore
from ratekeeper.app.services.rate_limit.validation import get_algorithm_class, resolve_config

logger = get_logger(__name__)

RawConfig = Optional[Mapping[str, Any] | AlgorithmConfig]


class RateLimitService:
    """Entry point for rate limit decisions.

    Provides:
    - ``attempt``: one decision for one key
    - ``attempt_burst``: n sequential decisions for the same key and config
    - ``reset``: delete every key under the configured prefix

    Redis key format:
    - {prefix}:{algorithm_id}:{key} - base key, algorithms derive sub-keys from it
    """

    def __init__(
        self,
        redis_client: Optional[aioredis.Redis] = None,
        key_prefix: Optional[str] = None,
        clock: Clock = time.time,
    ) -> None:
        """Initialize the rate limit service.

        Args:
            redis_client: Redis client; defaults to the shared client
            key_prefix: Namespace for every key; defaults to settings
            clock: Time source in epoch seconds, injectable for tests
        """
        self.store = RedisStore(redis_client if redis_client is not None else get_redis())
        self.key_prefix = key_prefix or settings.rate_limit_key_prefix
        self._algorithms: dict[str, RateLimitAlgorithm] = {
            algorithm_id: cls(self.store, clock) for algorithm_id, cls in ALGORITHMS.items()
        }

    @staticmethod
    def algorithm_ids() -> list[str]:
        return list(ALGORITHMS)

    def make_key(self, algorithm_id: str, key: str) -> str:
        """Namespaced base key for one limiter key under one algorithm."""
        return f"{self.key_prefix}:{algorithm_id}:{key}"

    async def attempt(self, algorithm_id: str, key: str, config: RawConfig = None) -> Decision:
        """Decide one request for ``key`` using ``algorithm_id``.

        Raises:
            UnknownAlgorithmError: Unknown identifier (no store access)
            InvalidConfigError: Invalid tunables (no store access)
            StoreError: Redis failure
        """
        resolved = resolve_config(algorithm_id, config)
        return await self._attempt(algorithm_id, key, resolved)

    async def attempt_burst(
        self,
        algorithm_id: str,
        key: str,
        config: RawConfig = None,
        count: Optional[int] = None,
    ) -> list[Decision]:
        """Run ``count`` sequential attempts against the same key and config.

        Not a distinct atomic primitive: concurrent callers interleave with
        the individual attempts as usual.
        """
        get_algorithm_class(algorithm_id)
        if count is None:
            count = settings.rate_limit_burst_count
        if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= settings.rate_limit_max_burst:
            raise InvalidConfigError(
                f"Burst count must be an integer between 1 and {settings.rate_limit_max_burst}"
            )
        resolved = resolve_config(algorithm_id, config)
        return [await self._attempt(algorithm_id, key, resolved) for _ in range(count)]

    async def reset(self) -> int:
        """Delete all persisted limiter state under the key prefix.

        Returns:
            Number of keys deleted
        """
        deleted = await self.store.delete_keys_matching(self.key_prefix)
        logger.info(f"Rate limit state reset: {deleted} keys deleted", extra={"prefix": self.key_prefix})
        return deleted

    async def _attempt(self, algorithm_id: str, key: str, config: AlgorithmConfig) -> Decision:
        base_key = self.make_key(algorithm_id, key)
        try:
            return await self._algorithms[algorithm_id].attempt(base_key, config)
        except StoreError:
            logger.error(
                "Rate limit attempt failed",
                extra=get_log_context(algorithm=algorithm_id, limiter_key=base_key),
            )
            raise


# Global service instance (singleton pattern)
_rate_limit_service: Optional[RateLimitService] = None


def get_rate_limit_service() -> RateLimitService:
    """Get or create the global rate limit service instance."""
    global _rate_limit_service
    if _rate_limit_service is None:
        _rate_limit_service = RateLimitService()
    return _rate_limit_service


def reset_rate_limit_service() -> None:
    """Reset the global rate limit service instance.

    This is primarily useful for testing.
    """
    global _rate_limit_service
    _rate_limit_service = None
