from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

AlgorithmName = Literal[
    "fixed-window",
    "sliding-window-log",
    "sliding-window-counter",
    "token-bucket",
    "leaky-bucket",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # Redis settings
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    redis_socket_timeout: float = 5.0  # Seconds per command round trip
    redis_socket_connect_timeout: float = 5.0

    # Namespace for every key written by the limiters (reset clears prefix:*)
    rate_limit_key_prefix: str = "ratelimit"

    # Defaults merged under caller-supplied config
    rate_limit_default_max_requests: int = 10
    rate_limit_default_window_seconds: int = 10
    rate_limit_default_max_tokens: int = 10
    rate_limit_default_refill_rate: float = 1.0
    rate_limit_default_capacity: int = 10
    rate_limit_default_leak_rate: float = 1.0
    rate_limit_default_leaky_mode: Literal["policing", "shaping"] = "policing"

    # Burst endpoint settings
    rate_limit_burst_count: int = 10
    rate_limit_max_burst: int = 100

    # Guard the HTTP API itself with one of the limiters
    api_rate_limit_enabled: bool = False
    api_rate_limit_algorithm: AlgorithmName = "token-bucket"

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator(
        "rate_limit_default_max_requests",
        "rate_limit_default_window_seconds",
        "rate_limit_default_max_tokens",
        "rate_limit_default_capacity",
        "rate_limit_burst_count",
        "rate_limit_max_burst",
    )
    @classmethod
    def validate_count_positive(cls, v: int) -> int:
        """Validate rate limit counts are positive."""
        if v < 1:
            raise ValueError("Rate limit values must be at least 1")
        return v

    @field_validator("rate_limit_default_refill_rate", "rate_limit_default_leak_rate")
    @classmethod
    def validate_rate_positive(cls, v: float) -> float:
        """Validate rate values are positive."""
        if v <= 0:
            raise ValueError("Rate values must be positive")
        return v

    @field_validator("redis_socket_timeout", "redis_socket_connect_timeout")
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    @field_validator("rate_limit_key_prefix")
    @classmethod
    def validate_key_prefix(cls, v: str) -> str:
        v = v.strip().rstrip(":")
        if not v or "*" in v:
            raise ValueError("rate_limit_key_prefix must be a non-empty literal prefix")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


# Global settings instance
settings = Settings()
