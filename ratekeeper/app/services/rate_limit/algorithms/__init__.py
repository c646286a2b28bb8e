"""Rate limiting algorithms, keyed by their public identifier."""

from ratekeeper.app.services.rate_limit.algorithms.base import Clock, RateLimitAlgorithm
from ratekeeper.app.services.rate_limit.algorithms.fixed_window import FixedWindow
from ratekeeper.app.services.rate_limit.algorithms.leaky_bucket import LeakyBucket
from ratekeeper.app.services.rate_limit.algorithms.sliding_window_counter import SlidingWindowCounter
from ratekeeper.app.services.rate_limit.algorithms.sliding_window_log import SlidingWindowLog
from ratekeeper.app.services.rate_limit.algorithms.token_bucket import TokenBucket

ALGORITHMS: dict[str, type[RateLimitAlgorithm]] = {
    cls.algorithm_id: cls
    for cls in (
        FixedWindow,
        SlidingWindowLog,
        SlidingWindowCounter,
        TokenBucket,
        LeakyBucket,
    )
}

__all__ = [
    "ALGORITHMS",
    "Clock",
    "RateLimitAlgorithm",
    "FixedWindow",
    "SlidingWindowLog",
    "SlidingWindowCounter",
    "TokenBucket",
    "LeakyBucket",
]
