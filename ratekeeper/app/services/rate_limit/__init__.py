"""Redis-backed rate limiting.

This package provides five interchangeable algorithms whose state
transitions run as single atomic Redis operations, plus the dispatcher
that validates config and routes attempts to them.
"""

from .algorithms import (
    ALGORITHMS,
    FixedWindow,
    LeakyBucket,
    RateLimitAlgorithm,
    SlidingWindowCounter,
    SlidingWindowLog,
    TokenBucket,
)
from .models import (
    AlgorithmConfig,
    Decision,
    FixedWindowConfig,
    LeakyBucketConfig,
    SlidingWindowCounterConfig,
    SlidingWindowLogConfig,
    TokenBucketConfig,
)
from .service import (
    RateLimitService,
    get_rate_limit_service,
    reset_rate_limit_service,
)
from .store import RedisStore
from .validation import default_config, get_algorithm_class, resolve_config

__all__ = [
    "ALGORITHMS",
    "RateLimitAlgorithm",
    "FixedWindow",
    "SlidingWindowLog",
    "SlidingWindowCounter",
    "TokenBucket",
    "LeakyBucket",
    "AlgorithmConfig",
    "Decision",
    "FixedWindowConfig",
    "SlidingWindowLogConfig",
    "SlidingWindowCounterConfig",
    "TokenBucketConfig",
    "LeakyBucketConfig",
    "RateLimitService",
    "get_rate_limit_service",
    "reset_rate_limit_service",
    "RedisStore",
    "default_config",
    "get_algorithm_class",
    "resolve_config",
]
