"""Services package for ratekeeper."""

from ratekeeper.app.services.rate_limit import (
    Decision,
    RateLimitService,
    get_rate_limit_service,
    reset_rate_limit_service,
)

__all__ = [
    "Decision",
    "RateLimitService",
    "get_rate_limit_service",
    "reset_rate_limit_service",
]
