"""Middleware package for ratekeeper."""

from ratekeeper.app.middleware.rate_limit import RateLimitMiddleware, decision_headers, get_client_key
from ratekeeper.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "RateLimitMiddleware",
    "RequestIdMiddleware",
    "decision_headers",
    "get_client_key",
    "get_request_id",
]
