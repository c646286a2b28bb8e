"""Custom exceptions for ratekeeper."""

from typing import Any, Iterable


class RateKeeperException(Exception):
    """Base class for ratekeeper exceptions with HTTP status code.

    All custom exceptions should inherit from this class and define
    their specific status_code and error_code for consistent HTTP
    response handling.
    """
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str = "Rate limiter error"):
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict:
        """Convert to API response format."""
        return {"error": self.error_code, "message": self.message}


class UnknownAlgorithmError(RateKeeperException):
    """Raised when a caller names an algorithm that is not registered.

    Maps to HTTP 400 Bad Request.
    """
    status_code = 400
    error_code = "unknown_algorithm"

    def __init__(self, algorithm_id: str, known: Iterable[str] = ()):
        self.algorithm_id = algorithm_id
        self.known = sorted(known)
        super().__init__(f"Unknown algorithm: {algorithm_id}")

    def to_response(self) -> dict:
        response = super().to_response()
        response["algorithms"] = self.known
        return response


class InvalidConfigError(RateKeeperException):
    """Raised when limiter tunables fail validation.

    Maps to HTTP 400 Bad Request. Raised before the store is touched,
    so no state is mutated.
    """
    status_code = 400
    error_code = "invalid_config"

    def __init__(self, message: str = "Invalid rate limit configuration", errors: list[dict[str, Any]] | None = None):
        self.errors = errors or []
        super().__init__(message)

    def to_response(self) -> dict:
        response = super().to_response()
        if self.errors:
            response["details"] = self.errors
        return response


class StoreError(RateKeeperException):
    """Raised when the Redis store fails (connection loss, script error).

    Maps to HTTP 500. Never converted into a denial; callers decide
    whether to retry.
    """
    status_code = 500
    error_code = "store_error"

    def __init__(self, message: str = "Rate limit store unavailable"):
        super().__init__(message)
