"""Rate limiting data models.

This module contains the Decision returned by every algorithm and the
per-algorithm configuration models.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


@dataclass(frozen=True)
class Decision:
    """Outcome of a single rate limit attempt.

    Attributes:
        allowed: Whether the request is admitted
        remaining: Requests left before the next denial (0 <= remaining <= limit)
        limit: Configured capacity of the limiter
        retry_after: Seconds until a retry may succeed; set only on denial
        delay: Seconds the caller should defer an admitted request; set only
            by shaping-mode leaky bucket
    """
    allowed: bool
    remaining: int
    limit: int
    retry_after: Optional[float] = None
    delay: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "allowed": self.allowed,
            "remaining": self.remaining,
            "limit": self.limit,
            "retryAfter": self.retry_after,
            "delay": self.delay,
        }


class AlgorithmConfig(BaseModel, ABC):
    """Base for per-algorithm tunables.

    Accepts both the camelCase wire names and the snake_case field names.
    Unknown fields are rejected so a misspelt tunable never silently falls
    back to its default.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @property
    @abstractmethod
    def limit(self) -> int:
        """Capacity reported in every Decision."""
        pass

    def to_dict(self) -> dict[str, Any]:
        """Convert to camelCase dictionary for serialization."""
        return self.model_dump(by_alias=True)


class FixedWindowConfig(AlgorithmConfig):
    """Tunables for the fixed window counter."""

    max_requests: int = Field(default=10, gt=0)
    window_seconds: int = Field(default=10, gt=0)

    @property
    def limit(self) -> int:
        return self.max_requests


class SlidingWindowLogConfig(AlgorithmConfig):
    """Tunables for the sliding window log."""

    max_requests: int = Field(default=10, gt=0)
    window_seconds: int = Field(default=10, gt=0)

    @property
    def limit(self) -> int:
        return self.max_requests


class SlidingWindowCounterConfig(AlgorithmConfig):
    """Tunables for the sliding window counter."""

    max_requests: int = Field(default=10, gt=0)
    window_seconds: int = Field(default=10, gt=0)

    @property
    def limit(self) -> int:
        return self.max_requests


class TokenBucketConfig(AlgorithmConfig):
    """Tunables for the token bucket. refill_rate is tokens per second."""

    max_tokens: int = Field(default=10, gt=0)
    refill_rate: float = Field(default=1.0, gt=0, allow_inf_nan=False)

    @property
    def limit(self) -> int:
        return self.max_tokens


class LeakyBucketConfig(AlgorithmConfig):
    """Tunables for the leaky bucket. leak_rate is requests drained per second."""

    capacity: int = Field(default=10, gt=0)
    leak_rate: float = Field(default=1.0, gt=0, allow_inf_nan=False)
    mode: Literal["policing", "shaping"] = "policing"

    @property
    def limit(self) -> int:
        return self.capacity
