"""Model descriptors and the gateway's model listing."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any

from codexflow._http import normalize_base_url
from codexflow.errors import UpstreamHttpError

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

_PER_MILLION = 1_000_000
_FALLBACK_MAX_TOKENS = 8192
_FALLBACK_CONTEXT_WINDOW = 200_000


@dataclass(frozen=True)
class ModelInfo:
    """Capabilities and pricing for a routed model.

    Prices are USD per million tokens; ``None`` means the gateway did not
    report one and the corresponding cost term is zero.
    """

    max_tokens: int | None = None
    context_window: int = _FALLBACK_CONTEXT_WINDOW
    supports_images: bool = False
    supports_prompt_cache: bool = False
    supports_native_tools: bool = False
    input_price: float | None = None
    output_price: float | None = None
    cache_writes_price: float | None = None
    cache_reads_price: float | None = None
    description: str | None = None


@dataclass(frozen=True)
class ModelDescriptor:
    """The model selected for one request. Immutable for its duration."""

    id: str
    info: ModelInfo

    @property
    def max_tokens(self) -> int | None:
        return self.info.max_tokens

    @property
    def supports_prompt_cache(self) -> bool:
        return self.info.supports_prompt_cache

    @property
    def supports_native_tools(self) -> bool:
        return self.info.supports_native_tools


DEFAULT_MODEL_ID = "claude-3-7-sonnet-20250219"
DEFAULT_MODEL_INFO = ModelInfo(
    max_tokens=8192,
    context_window=200_000,
    supports_images=True,
    supports_prompt_cache=True,
    supports_native_tools=True,
    input_price=3.0,
    output_price=15.0,
    cache_writes_price=3.75,
    cache_reads_price=0.3,
)


def _per_million(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not value:
        return None
    return float(value) * _PER_MILLION


def _positive_int(*values: Any) -> int | None:
    for value in values:
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)) and value > 0:
            return int(value)
    return None


def parse_model_info_response(payload: Any) -> dict[str, ModelInfo]:
    """Map a ``/v1/model/info`` listing into ``{model_name: ModelInfo}``.

    Entries missing a name, a ``model_info`` block or the underlying
    ``litellm_params.model`` are skipped.
    """
    models: dict[str, ModelInfo] = {}
    if not isinstance(payload, dict):
        return models
    entries = payload.get("data")
    if not isinstance(entries, list):
        return models

    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = entry.get("model_name")
        info = entry.get("model_info")
        params = entry.get("litellm_params")
        routed = params.get("model") if isinstance(params, dict) else None
        if not isinstance(name, str) or not name:
            continue
        if not isinstance(info, dict) or not isinstance(routed, str) or not routed:
            continue

        models[name] = ModelInfo(
            max_tokens=_positive_int(info.get("max_output_tokens"), info.get("max_tokens"))
            or _FALLBACK_MAX_TOKENS,
            context_window=_positive_int(info.get("max_input_tokens"))
            or _FALLBACK_CONTEXT_WINDOW,
            supports_images=bool(info.get("supports_vision")),
            supports_prompt_cache=bool(info.get("supports_prompt_caching")),
            supports_native_tools=bool(
                info.get("supports_function_calling") or info.get("supports_tool_choice")
            ),
            input_price=_per_million(info.get("input_cost_per_token")),
            output_price=_per_million(info.get("output_cost_per_token")),
            cache_writes_price=_per_million(info.get("cache_creation_input_token_cost")),
            cache_reads_price=_per_million(info.get("cache_read_input_token_cost")),
            description=f"{name} via LiteLLM proxy",
        )
    return models


async def fetch_models(
    http_client: httpx.AsyncClient,
    base_url: str,
    api_key: str | None,
) -> dict[str, ModelInfo]:
    """Fetch the gateway's model listing."""
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    url = f"{normalize_base_url(base_url)}/v1/model/info"
    response = await http_client.get(url, headers=headers)
    if response.status_code >= 400:
        raise UpstreamHttpError(
            f"Model listing failed (status={response.status_code})",
            status_code=response.status_code,
            provider="litellm",
            phase="models",
        )
    models = parse_model_info_response(response.json())
    logger.debug("Fetched %d models from %s", len(models), url)
    return models
