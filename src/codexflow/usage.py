"""Usage normalization and cost estimation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from codexflow.providers.models import UsageEvent

if TYPE_CHECKING:
    from codexflow.catalog import ModelInfo

_PER_MILLION = 1_000_000

# First non-zero alias wins. Gateways relay provider-specific names.
_CACHE_WRITE_ALIASES: tuple[tuple[str, ...], ...] = (
    ("cache_creation_input_tokens",),
    ("prompt_cache_miss_tokens",),
)
_CACHE_READ_ALIASES: tuple[tuple[str, ...], ...] = (
    ("prompt_tokens_details", "cached_tokens"),
    ("cache_read_input_tokens",),
    ("prompt_cache_hit_tokens",),
)


@dataclass(frozen=True)
class ApiCost:
    """Cost breakdown for one request."""

    total_input_tokens: int
    total_output_tokens: int
    total_cost: float


def field_value(obj: Any, name: str) -> Any:
    """Read *name* from a dict or an SDK object (including pydantic extras)."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    value = getattr(obj, name, None)
    if value is None:
        extra = getattr(obj, "model_extra", None)
        if isinstance(extra, dict):
            value = extra.get(name)
    return value


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def _first_nonzero(payload: Any, aliases: tuple[tuple[str, ...], ...]) -> int:
    for path in aliases:
        node = payload
        for name in path:
            node = field_value(node, name)
        count = _as_int(node)
        if count:
            return count
    return 0


def calculate_cost_openai(
    info: ModelInfo,
    input_tokens: int,
    output_tokens: int,
    cache_write_tokens: int = 0,
    cache_read_tokens: int = 0,
) -> ApiCost:
    """Cost for OpenAI-style usage, where ``input_tokens`` includes cached tokens."""
    uncached_input = max(0, input_tokens - cache_write_tokens - cache_read_tokens)
    cost = (
        (info.cache_writes_price or 0.0) / _PER_MILLION * cache_write_tokens
        + (info.cache_reads_price or 0.0) / _PER_MILLION * cache_read_tokens
        + (info.input_price or 0.0) / _PER_MILLION * uncached_input
        + (info.output_price or 0.0) / _PER_MILLION * output_tokens
    )
    return ApiCost(
        total_input_tokens=input_tokens,
        total_output_tokens=output_tokens,
        total_cost=cost,
    )


def normalize_usage(payload: Any, info: ModelInfo) -> UsageEvent:
    """Build the usage event for a request from the last usage payload seen.

    Cache counts are only reported when strictly positive.
    """
    input_tokens = _as_int(field_value(payload, "prompt_tokens"))
    output_tokens = _as_int(field_value(payload, "completion_tokens"))
    cache_write = _first_nonzero(payload, _CACHE_WRITE_ALIASES)
    cache_read = _first_nonzero(payload, _CACHE_READ_ALIASES)

    cost = calculate_cost_openai(info, input_tokens, output_tokens, cache_write, cache_read)
    return UsageEvent(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        cache_write_tokens=cache_write if cache_write > 0 else None,
        cache_read_tokens=cache_read if cache_read > 0 else None,
        total_cost=cost.total_cost,
    )


def zero_usage() -> UsageEvent:
    """Placeholder usage for paths that do not track real token counts."""
    return UsageEvent(input_tokens=0, output_tokens=0, total_cost=0.0)
