"""Shared Redis client for the rate limiting store.

The client is created lazily and reused for the lifetime of the process.
redis-py keeps a connection pool behind it, so one instance serves every
concurrent request.
"""

from typing import Optional

import redis.asyncio as aioredis

from ratekeeper.app.core.config import settings
from ratekeeper.app.core.logging import get_logger

logger = get_logger(__name__)

# Global client instance (singleton pattern)
_redis_client: Optional[aioredis.Redis] = None


def get_redis(redis_url: Optional[str] = None, force_new: bool = False) -> aioredis.Redis:
    """Get or create the global Redis client.

    Args:
        redis_url: Redis connection URL. If not provided, uses settings.redis_url.
        force_new: If True, create a new client even if one exists.

    Returns:
        A redis.asyncio.Redis client with decoded (str) responses.

    Example:
        >>> from ratekeeper.app.core.redis import get_redis
        >>> client = get_redis()
        >>> await client.ping()
    """
    global _redis_client

    if _redis_client is not None and not force_new:
        return _redis_client

    url = redis_url or settings.redis_url
    _redis_client = aioredis.from_url(
        url,
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
    )
    logger.debug("Created Redis client", extra={"redis_url": _redact(url)})
    return _redis_client


async def close_redis() -> None:
    """Close the global Redis client and release its connection pool."""
    global _redis_client
    if _redis_client is not None:
        # Use aclose() for proper async cleanup in redis-py 5.0+
        await _redis_client.aclose()
        _redis_client = None


def reset_redis() -> None:
    """Forget the global Redis client without closing it.

    This is primarily useful for testing.
    """
    global _redis_client
    _redis_client = None


def _redact(url: str) -> str:
    """Strip credentials from a Redis URL before logging it."""
    if "@" not in url:
        return url
    scheme, _, rest = url.partition("://")
    return f"{scheme}://***@{rest.split('@', 1)[1]}"
