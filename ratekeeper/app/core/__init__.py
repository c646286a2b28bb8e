"""Core utilities for ratekeeper."""

from ratekeeper.app.core.config import settings
from ratekeeper.app.core.logging import get_logger, setup_logging
from ratekeeper.app.core.redis import close_redis, get_redis, reset_redis

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "get_redis",
    "close_redis",
    "reset_redis",
]
