"""Abstract base class for rate limiting algorithms."""

import math
import time
from abc import ABC, abstractmethod
from typing import Callable, ClassVar, Generic, TypeVar

from ratekeeper.app.core.logging import get_log_context, get_logger
from ratekeeper.app.services.rate_limit.models import AlgorithmConfig, Decision
from ratekeeper.app.services.rate_limit.store import RedisStore

ConfigT = TypeVar("ConfigT", bound=AlgorithmConfig)

Clock = Callable[[], float]

# Upper bound on any reported retry_after, matching the TTL cap in the scripts
MAX_RETRY_AFTER_SECONDS = 2147483647

logger = get_logger(__name__)


class RateLimitAlgorithm(ABC, Generic[ConfigT]):
    """Base class for algorithms that decide one attempt against the store.

    Subclasses hold no per-key state: every attempt re-derives the current
    state inside the same atomic store operation that mutates it.

    Attributes:
        algorithm_id: Identifier used by the dispatcher and in key names
        config_model: Pydantic model validating this algorithm's tunables
    """

    algorithm_id: ClassVar[str]
    config_model: ClassVar[type[AlgorithmConfig]]

    def __init__(self, store: RedisStore, clock: Clock = time.time) -> None:
        """Initialize the algorithm.

        Args:
            store: Atomic store adapter
            clock: Returns the current time in seconds since the epoch
        """
        self.store = store
        self.clock = clock

    @abstractmethod
    async def attempt(self, key: str, config: ConfigT) -> Decision:
        """Decide whether one request under ``key`` is admitted.

        Args:
            key: Namespaced limiter key; sub-keys are derived from it
            config: Validated tunables

        Returns:
            Decision for this attempt
        """
        pass

    @staticmethod
    def _retry_after_for_rate(rate: float) -> int:
        """Whole seconds until one unit accrues at ``rate`` per second."""
        return max(1, math.ceil(min(1 / rate, MAX_RETRY_AFTER_SECONDS)))

    def _log_denied(self, key: str, decision: Decision) -> None:
        logger.debug(
            "Rate limit denied",
            extra=get_log_context(
                algorithm=self.algorithm_id,
                limiter_key=key,
                retry_after=decision.retry_after,
            ),
        )
