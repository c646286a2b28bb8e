"""Sliding window counter.

Keeps a fixed-window counter for the current and the previous window and
weighs the previous count by how much of it still overlaps the sliding
window. O(1) storage, at the cost of assuming requests in the previous
window were evenly spread.

Redis commands: GET, INCR, PTTL, EXPIRE (one script)
"""

import math

from ratekeeper.app.services.rate_limit.algorithms.base import RateLimitAlgorithm
from ratekeeper.app.services.rate_limit.models import Decision, SlidingWindowCounterConfig
from ratekeeper.app.services.rate_limit.redis_lua import SLIDING_WINDOW_COUNTER_SCRIPT

# Extra lifetime on top of two windows so a counter is still readable as
# "previous" when client clocks disagree slightly about the window index.
COUNTER_TTL_SLACK_SECONDS = 1


class SlidingWindowCounter(RateLimitAlgorithm[SlidingWindowCounterConfig]):
    """Sliding window counter rate limiter."""

    algorithm_id = "sliding-window-counter"
    config_model = SlidingWindowCounterConfig

    async def attempt(self, key: str, config: SlidingWindowCounterConfig) -> Decision:
        now = self.clock()
        window_seconds = config.window_seconds
        current_window = math.floor(now / window_seconds)
        elapsed = (now % window_seconds) / window_seconds

        allowed, current, previous = await self.store.run_script(
            SLIDING_WINDOW_COUNTER_SCRIPT,
            [f"{key}:{current_window}", f"{key}:{current_window - 1}"],
            [
                config.max_requests,
                elapsed,
                2 * window_seconds + COUNTER_TTL_SLACK_SECONDS,
            ],
        )
        estimate = int(previous) * (1 - elapsed) + int(current)

        if int(allowed) == 1:
            return Decision(
                allowed=True,
                remaining=max(0, math.floor(config.max_requests - estimate)),
                limit=config.max_requests,
            )

        decision = Decision(
            allowed=False,
            remaining=0,
            limit=config.max_requests,
            retry_after=max(1, math.ceil(window_seconds * (1 - elapsed))),
        )
        self._log_denied(key, decision)
        return decision
