"""Leaky bucket with policing and shaping modes.

Policing: the bucket fills by one per request and leaks at leak_rate per
second. A request that would overflow it is rejected.

Shaping: requests are queued and released one every 1/leak_rate seconds.
An admitted request carries the delay until its slot; a request is only
rejected when the queue would grow beyond capacity.

The two modes persist different state, so each gets its own sub-key.

Redis commands: HMGET/HGET, HSET, EXPIRE (one script per mode)
"""

import math

from ratekeeper.app.services.rate_limit.algorithms.base import RateLimitAlgorithm
from ratekeeper.app.services.rate_limit.models import Decision, LeakyBucketConfig
from ratekeeper.app.services.rate_limit.redis_lua import (
    LEAKY_BUCKET_POLICING_SCRIPT,
    LEAKY_BUCKET_SHAPING_SCRIPT,
)


class LeakyBucket(RateLimitAlgorithm[LeakyBucketConfig]):
    """Leaky bucket rate limiter."""

    algorithm_id = "leaky-bucket"
    config_model = LeakyBucketConfig

    async def attempt(self, key: str, config: LeakyBucketConfig) -> Decision:
        if config.mode == "shaping":
            return await self._attempt_shaping(key, config)
        return await self._attempt_policing(key, config)

    async def _attempt_policing(self, key: str, config: LeakyBucketConfig) -> Decision:
        allowed, remaining = await self.store.run_script(
            LEAKY_BUCKET_POLICING_SCRIPT,
            [f"{key}:policing"],
            [config.capacity, config.leak_rate, self.clock()],
        )
        if int(allowed) == 1:
            return Decision(
                allowed=True,
                remaining=min(config.capacity, int(remaining)),
                limit=config.capacity,
            )
        return self._denied(key, config)

    async def _attempt_shaping(self, key: str, config: LeakyBucketConfig) -> Decision:
        allowed, remaining, delay = await self.store.run_script(
            LEAKY_BUCKET_SHAPING_SCRIPT,
            [f"{key}:shaping"],
            [config.capacity, config.leak_rate, self.clock()],
        )
        if int(allowed) == 1:
            # Accepted but deferred: the caller should wait ``delay`` seconds
            return Decision(
                allowed=True,
                remaining=min(config.capacity, int(remaining)),
                limit=config.capacity,
                delay=math.floor(float(delay) * 1000) / 1000,
            )
        return self._denied(key, config)

    def _denied(self, key: str, config: LeakyBucketConfig) -> Decision:
        decision = Decision(
            allowed=False,
            remaining=0,
            limit=config.capacity,
            retry_after=self._retry_after_for_rate(config.leak_rate),
        )
        self._log_denied(key, decision)
        return decision
