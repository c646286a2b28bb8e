"""Rate limit API: single attempts, bursts and reset."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, Field

from ratekeeper.app.core.logging import get_log_context, get_logger
from ratekeeper.app.middleware.rate_limit import decision_headers, get_client_key
from ratekeeper.app.middleware.request_id import get_request_id
from ratekeeper.app.services.rate_limit import RateLimitService, get_rate_limit_service
from ratekeeper.app.services.rate_limit.validation import default_config

router = APIRouter(prefix="/api/rate-limit", tags=["rate-limit"])

logger = get_logger(__name__)


class AttemptRequest(BaseModel):
    """Attempt request. All fields optional."""

    key: Optional[str] = Field(default=None, min_length=1, max_length=256)
    # Validated by resolve_config so every bad config yields invalid_config
    config: Optional[Any] = None


class BurstRequest(AttemptRequest):
    """Burst request."""

    count: Optional[Any] = None


class DecisionResponse(BaseModel):
    """One rate limit decision."""

    allowed: bool
    remaining: int
    limit: int
    retryAfter: Optional[float] = None
    delay: Optional[float] = None


class BurstResponse(BaseModel):
    """Ordered decisions of a burst."""

    results: list[DecisionResponse]


class ResetResponse(BaseModel):
    """Reset result."""

    deleted: int


@router.get("/algorithms")
async def list_algorithms(
    service: RateLimitService = Depends(get_rate_limit_service),
) -> dict[str, Any]:
    """List algorithm identifiers with their default config."""
    return {
        "algorithms": [
            {"id": algorithm_id, "defaults": default_config(algorithm_id).to_dict()}
            for algorithm_id in service.algorithm_ids()
        ]
    }


@router.post("/reset", response_model=ResetResponse)
async def reset(
    request: Request,
    service: RateLimitService = Depends(get_rate_limit_service),
) -> ResetResponse:
    """Delete all rate limit state."""
    deleted = await service.reset()
    logger.info("Rate limit reset via API", extra=get_log_context(request_id=get_request_id(request)))
    return ResetResponse(deleted=deleted)


@router.post("/{algorithm}", response_model=DecisionResponse)
async def attempt(
    algorithm: str,
    request: Request,
    response: Response,
    body: Optional[AttemptRequest] = None,
    service: RateLimitService = Depends(get_rate_limit_service),
) -> dict[str, Any]:
    """Single rate limit attempt."""
    body = body or AttemptRequest()
    key = body.key or get_client_key(request)
    decision = await service.attempt(algorithm, key, body.config)
    response.headers.update(decision_headers(decision))
    return decision.to_dict()


@router.post("/{algorithm}/burst", response_model=BurstResponse)
async def attempt_burst(
    algorithm: str,
    request: Request,
    body: Optional[BurstRequest] = None,
    service: RateLimitService = Depends(get_rate_limit_service),
) -> dict[str, Any]:
    """Rapid sequential attempts against one key."""
    body = body or BurstRequest()
    key = body.key or get_client_key(request)
    decisions = await service.attempt_burst(algorithm, key, body.config, body.count)
    return {"results": [d.to_dict() for d in decisions]}
