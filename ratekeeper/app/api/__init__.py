"""API endpoints package for ratekeeper."""

from ratekeeper.app.api.rate_limit import router as rate_limit_router

__all__ = [
    "rate_limit_router",
]
