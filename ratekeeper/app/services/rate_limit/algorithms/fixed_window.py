"""Fixed window counter.

One counter per window, keyed by the window index, so the count resets
when the index advances. A caller can spend the full limit at the end of
one window and again at the start of the next; that boundary burst is
inherent to the algorithm.

Redis commands: INCR + EXPIRE (one script), PTTL
"""

import math

from ratekeeper.app.services.rate_limit.algorithms.base import RateLimitAlgorithm
from ratekeeper.app.services.rate_limit.models import Decision, FixedWindowConfig


class FixedWindow(RateLimitAlgorithm[FixedWindowConfig]):
    """Fixed window counter rate limiter."""

    algorithm_id = "fixed-window"
    config_model = FixedWindowConfig

    async def attempt(self, key: str, config: FixedWindowConfig) -> Decision:
        window = math.floor(self.clock() / config.window_seconds)
        window_key = f"{key}:{window}"

        count = await self.store.increment_with_expiry(window_key, config.window_seconds)

        if count <= config.max_requests:
            return Decision(
                allowed=True,
                remaining=config.max_requests - count,
                limit=config.max_requests,
            )

        ttl_ms = await self.store.get_ttl(window_key)
        retry_after = ttl_ms / 1000 if ttl_ms else float(config.window_seconds)
        decision = Decision(
            allowed=False,
            remaining=0,
            limit=config.max_requests,
            retry_after=retry_after,
        )
        self._log_denied(key, decision)
        return decision
