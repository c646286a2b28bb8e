"""Rate limiting middleware for the HTTP API.

Applies one of the rate limiting algorithms to incoming requests, keyed
per API key if available, otherwise per client IP.
"""

import hashlib
import math
from typing import Any, Mapping, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from ratekeeper.app.core.config import settings
from ratekeeper.app.core.logging import get_logger
from ratekeeper.app.exceptions import StoreError
from ratekeeper.app.services.rate_limit import Decision, RateLimitService, get_rate_limit_service

logger = get_logger(__name__)

# Longest bearer token accepted before hashing
MAX_API_KEY_LENGTH = 512

EXEMPT_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


def get_client_key(request: Request) -> str:
    """Get rate limit key for the request.

    Uses API key if available, otherwise falls back to IP address.
    Both are hashed using SHA-256 so raw credentials and addresses are
    never written to Redis.

    Args:
        request: FastAPI request object

    Returns:
        Limiter key string (hashed, no sensitive data exposed)
    """
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        api_key = auth[7:].strip()[:MAX_API_KEY_LENGTH]
        # 32 hex chars (128 bits) for collision resistance
        key_hash = hashlib.sha256(api_key.encode()).hexdigest()[:32]
        return f"apikey:{key_hash}"

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
    else:
        client_ip = request.client.host if request.client else "unknown"

    ip_hash = hashlib.sha256(client_ip.encode()).hexdigest()[:32]
    return f"ip:{ip_hash}"


def decision_headers(decision: Decision) -> dict[str, str]:
    """Standard rate limit response headers for a decision."""
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
    }
    if decision.retry_after is not None:
        headers["Retry-After"] = str(max(1, math.ceil(decision.retry_after)))
    return headers


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce rate limits on requests.

    Denied requests are answered with 429 and never reach the route.
    A store failure is answered with 500 rather than letting the request
    through unchecked.
    """

    def __init__(
        self,
        app,
        algorithm: Optional[str] = None,
        config: Optional[Mapping[str, Any]] = None,
        service: Optional[RateLimitService] = None,
    ):
        super().__init__(app)
        self.algorithm = algorithm or settings.api_rate_limit_algorithm
        self.config = dict(config or {})
        self._service = service

    @property
    def service(self) -> RateLimitService:
        if self._service is None:
            self._service = get_rate_limit_service()
        return self._service

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request with rate limiting."""
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        key = f"api:{get_client_key(request)}"
        try:
            decision = await self.service.attempt(self.algorithm, key, self.config)
        except StoreError as e:
            return JSONResponse(status_code=e.status_code, content=e.to_response())

        headers = decision_headers(decision)
        if not decision.allowed:
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": "Rate limit exceeded. Please try again later.",
                    "retry_after": decision.retry_after,
                },
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
