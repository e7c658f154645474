"""Per-model request quirks.

Known model ids resolve through an explicit registry. Ids the registry does
not list fall back to pattern classification:

- GPT-5 family (``gpt-5``, ``gpt5``, ``gpt-5.1``, ``gpt-5-turbo``...) sends
  ``max_completion_tokens`` instead of ``max_tokens``. ``gpt-50``/``gpt-500``
  are not GPT-5.
- DeepSeek family (``deepseek`` or ``deep-seek`` anywhere in the id) has tool
  calls suppressed unless the caller asks for a tool choice other than
  ``"none"``.
- Models whose configured output limit may exceed what their real context
  window allows have the output budget capped at 20% of that window.
- ``openai/o3-mini*`` rejects ``temperature``.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import re
from typing import Any

logger = logging.getLogger(__name__)

CONTEXT_CLAMP_FRACTION = 0.2

_GPT5_RE = re.compile(r"\bgpt-?5(?!\d)", re.IGNORECASE)
_DEEPSEEK_MARKERS = ("deepseek", "deep-seek")
_NO_TEMPERATURE_PREFIXES = ("openai/o3-mini",)

# Substring -> true context window, for families whose configured limits are
# known to overstate what the upstream accepts.
_CONTEXT_WINDOWS: tuple[tuple[str, int], ...] = (
    ("deepseek/deepseek-v3.2", 163_840),
    ("claude-sonnet-4.5", 1_000_000),
)


@dataclass(frozen=True)
class ModelQuirks:
    """Request-shaping decisions for one model id."""

    uses_max_completion_tokens: bool = False
    suppress_tool_calls: bool = False
    context_window: int | None = None
    supports_temperature: bool = True

    @property
    def context_clamp_fraction(self) -> float | None:
        return CONTEXT_CLAMP_FRACTION if self.context_window else None

    def clamp_max_tokens(self, max_tokens: int | None) -> int | None:
        """Cap *max_tokens* at 20% of the true context window, when one is known."""
        if not max_tokens or not self.context_window:
            return max_tokens
        ceiling = math.floor(self.context_window * CONTEXT_CLAMP_FRACTION)
        return min(max_tokens, ceiling)

    def disables_tool_calls(self, tool_choice: Any = None) -> bool:
        """Whether the request must force ``tool_choice="none"``."""
        if not self.suppress_tool_calls:
            return False
        return not tool_choice or tool_choice == "none"

    def token_limit_field(self) -> str:
        return "max_completion_tokens" if self.uses_max_completion_tokens else "max_tokens"


_DEFAULT_QUIRKS = ModelQuirks()
_DEEPSEEK_V32 = ModelQuirks(suppress_tool_calls=True, context_window=163_840)
_SONNET_45 = ModelQuirks(context_window=1_000_000)
_GPT5 = ModelQuirks(uses_max_completion_tokens=True)

MODEL_QUIRKS: dict[str, ModelQuirks] = {
    "deepseek/deepseek-v3.2": _DEEPSEEK_V32,
    "openrouter/deepseek/deepseek-v3.2": _DEEPSEEK_V32,
    "deepseek/deepseek-chat": ModelQuirks(suppress_tool_calls=True),
    "claude-sonnet-4.5": _SONNET_45,
    "anthropic/claude-sonnet-4.5": _SONNET_45,
    "openrouter/anthropic/claude-sonnet-4.5": _SONNET_45,
    "gpt-5": _GPT5,
    "gpt-5.1": _GPT5,
    "gpt-5-mini": _GPT5,
    "gpt-5-nano": _GPT5,
    "openai/gpt-5": _GPT5,
    "openai/o3-mini": ModelQuirks(supports_temperature=False),
}


def is_gpt5(model_id: str) -> bool:
    return bool(_GPT5_RE.search(model_id))


def is_deepseek(model_id: str) -> bool:
    lowered = model_id.lower()
    return any(marker in lowered for marker in _DEEPSEEK_MARKERS)


def _infer_quirks(model_id: str) -> ModelQuirks:
    """Pattern-based classification for ids missing from ``MODEL_QUIRKS``."""
    context_window = None
    for marker, window in _CONTEXT_WINDOWS:
        if marker in model_id:
            context_window = window
            break

    return ModelQuirks(
        uses_max_completion_tokens=is_gpt5(model_id),
        suppress_tool_calls=is_deepseek(model_id),
        context_window=context_window,
        supports_temperature=not model_id.startswith(_NO_TEMPERATURE_PREFIXES),
    )


def resolve(model_id: str) -> ModelQuirks:
    """Return the quirks for *model_id*; unknown ids get default behavior."""
    quirks = MODEL_QUIRKS.get(model_id)
    if quirks is None:
        quirks = _infer_quirks(model_id)

    if quirks != _DEFAULT_QUIRKS:
        logger.debug("Model quirks for %s: %s", model_id, quirks)
    return quirks
