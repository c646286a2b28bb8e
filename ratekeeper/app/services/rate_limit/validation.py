"""Configuration-with-defaults for every algorithm.

Defaults live in settings; caller-supplied fields are merged over them and
the result is validated once, before any store access.
"""

from typing import Any, Mapping, Optional

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from ratekeeper.app.core.config import settings
from ratekeeper.app.exceptions import InvalidConfigError, UnknownAlgorithmError
from ratekeeper.app.services.rate_limit.algorithms import ALGORITHMS, RateLimitAlgorithm
from ratekeeper.app.services.rate_limit.models import AlgorithmConfig


def get_algorithm_class(algorithm_id: str) -> type[RateLimitAlgorithm]:
    """Look up an algorithm by identifier.

    Raises:
        UnknownAlgorithmError: If ``algorithm_id`` is not registered
    """
    try:
        return ALGORITHMS[algorithm_id]
    except KeyError:
        raise UnknownAlgorithmError(algorithm_id, known=ALGORITHMS) from None


def default_values(algorithm_id: str) -> dict[str, Any]:
    """Configured defaults for an algorithm, keyed by field name."""
    get_algorithm_class(algorithm_id)
    if algorithm_id == "token-bucket":
        return {
            "max_tokens": settings.rate_limit_default_max_tokens,
            "refill_rate": settings.rate_limit_default_refill_rate,
        }
    if algorithm_id == "leaky-bucket":
        return {
            "capacity": settings.rate_limit_default_capacity,
            "leak_rate": settings.rate_limit_default_leak_rate,
            "mode": settings.rate_limit_default_leaky_mode,
        }
    return {
        "max_requests": settings.rate_limit_default_max_requests,
        "window_seconds": settings.rate_limit_default_window_seconds,
    }


def default_config(algorithm_id: str) -> AlgorithmConfig:
    """Fully defaulted config for an algorithm."""
    return resolve_config(algorithm_id)


def _to_field_names(model: type[AlgorithmConfig], raw: Mapping[str, Any]) -> dict[str, Any]:
    """Rename camelCase wire keys to field names; unknown keys pass through."""
    aliases = {to_camel(name): name for name in model.model_fields}
    return {aliases.get(k, k): v for k, v in raw.items()}


def resolve_config(
    algorithm_id: str,
    raw: Optional[Mapping[str, Any] | AlgorithmConfig] = None,
) -> AlgorithmConfig:
    """Merge ``raw`` over the algorithm's defaults and validate the result.

    Args:
        algorithm_id: Registered algorithm identifier
        raw: Caller-supplied tunables (camelCase or snake_case), an already
            validated config for this algorithm, or None for all defaults

    Returns:
        Validated, immutable config

    Raises:
        UnknownAlgorithmError: If ``algorithm_id`` is not registered
        InvalidConfigError: If any tunable is unknown, missing or not positive
    """
    model = get_algorithm_class(algorithm_id).config_model

    if isinstance(raw, AlgorithmConfig):
        if not isinstance(raw, model):
            raise InvalidConfigError(
                f"{type(raw).__name__} does not apply to {algorithm_id}"
            )
        return raw
    if raw is not None and not isinstance(raw, Mapping):
        raise InvalidConfigError("Rate limit config must be an object")

    merged = default_values(algorithm_id)
    merged.update(_to_field_names(model, raw or {}))

    try:
        return model.model_validate(merged)
    except ValidationError as e:
        raise InvalidConfigError(
            f"Invalid {algorithm_id} config",
            errors=e.errors(include_url=False, include_context=False, include_input=False),
        ) from e
