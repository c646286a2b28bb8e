"""Sliding window log.

Stores each admitted request's timestamp in a sorted set. Every attempt
evicts entries older than the window, counts what is left and inserts the
new entry only if the count is below the limit, all inside one script.

Redis commands: ZREMRANGEBYSCORE, ZCARD, ZADD, PEXPIRE, ZRANGE (one script)
"""

import math
import uuid

from ratekeeper.app.services.rate_limit.algorithms.base import RateLimitAlgorithm
from ratekeeper.app.services.rate_limit.models import Decision, SlidingWindowLogConfig
from ratekeeper.app.services.rate_limit.redis_lua import SLIDING_WINDOW_LOG_SCRIPT


class SlidingWindowLog(RateLimitAlgorithm[SlidingWindowLogConfig]):
    """Sliding window log rate limiter."""

    algorithm_id = "sliding-window-log"
    config_model = SlidingWindowLogConfig

    async def attempt(self, key: str, config: SlidingWindowLogConfig) -> Decision:
        now_ms = int(self.clock() * 1000)
        window_ms = config.window_seconds * 1000
        # Unique member so two requests in the same millisecond both count
        member = f"{now_ms}:{uuid.uuid4().hex}"

        allowed, count, oldest = await self.store.run_script(
            SLIDING_WINDOW_LOG_SCRIPT,
            [key],
            [config.max_requests, window_ms, now_ms, member],
        )
        count = int(count)

        if int(allowed) == 1:
            return Decision(
                allowed=True,
                remaining=max(0, config.max_requests - count - 1),
                limit=config.max_requests,
            )

        retry_after = config.window_seconds
        if oldest:
            retry_after = max(1, math.ceil((float(oldest) + window_ms - now_ms) / 1000))
        decision = Decision(
            allowed=False,
            remaining=0,
            limit=config.max_requests,
            retry_after=retry_after,
        )
        self._log_denied(key, decision)
        return decision
