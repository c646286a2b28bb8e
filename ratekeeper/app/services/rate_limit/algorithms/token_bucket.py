"""Token bucket.

The bucket holds up to max_tokens and refills continuously at refill_rate
tokens per second. Each request takes one token. The token level is kept
as a real number in Redis; only the reported ``remaining`` is floored.

Redis commands: HMGET, HSET, EXPIRE (one script)
"""

from ratekeeper.app.services.rate_limit.algorithms.base import RateLimitAlgorithm
from ratekeeper.app.services.rate_limit.models import Decision, TokenBucketConfig
from ratekeeper.app.services.rate_limit.redis_lua import TOKEN_BUCKET_SCRIPT


class TokenBucket(RateLimitAlgorithm[TokenBucketConfig]):
    """Token bucket rate limiter."""

    algorithm_id = "token-bucket"
    config_model = TokenBucketConfig

    async def attempt(self, key: str, config: TokenBucketConfig) -> Decision:
        allowed, remaining = await self.store.run_script(
            TOKEN_BUCKET_SCRIPT,
            [key],
            [config.max_tokens, config.refill_rate, self.clock()],
        )
        remaining = min(config.max_tokens, max(0, int(remaining)))

        if int(allowed) == 1:
            return Decision(allowed=True, remaining=remaining, limit=config.max_tokens)

        # Time to accrue one token
        decision = Decision(
            allowed=False,
            remaining=0,
            limit=config.max_tokens,
            retry_after=self._retry_after_for_rate(config.refill_rate),
        )
        self._log_denied(key, decision)
        return decision
