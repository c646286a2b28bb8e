"""ratekeeper: Redis-backed rate limiting with five interchangeable algorithms."""

__version__ = "0.1.0"
