"""Model quirk classification."""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st
import pytest

from codexflow import quirks

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "model_id",
    ["gpt-5", "gpt5", "gpt-5.1", "gpt-5-turbo", "gpt-5o", "openai/gpt-5-mini", "GPT-5"],
)
def test_gpt5_family_uses_max_completion_tokens(model_id: str) -> None:
    assert quirks.is_gpt5(model_id)
    assert quirks.resolve(model_id).token_limit_field() == "max_completion_tokens"


@pytest.mark.parametrize("model_id", ["gpt-50", "gpt-500", "gpt-4o", "mygpt-5"])
def test_numeric_collisions_are_not_gpt5(model_id: str) -> None:
    assert not quirks.is_gpt5(model_id)
    assert quirks.resolve(model_id).token_limit_field() == "max_tokens"


@given(st.integers(min_value=0, max_value=9), st.text(alphabet="0123456789", max_size=3))
def test_any_extra_digit_after_gpt5_is_rejected(digit: int, rest: str) -> None:
    assert not quirks.is_gpt5(f"gpt-5{digit}{rest}")


def test_deepseek_v32_clamps_to_twenty_percent_of_context() -> None:
    model_quirks = quirks.resolve("deepseek/deepseek-v3.2")

    assert model_quirks.clamp_max_tokens(200_000) == 32_768
    assert model_quirks.context_clamp_fraction == 0.2


def test_sonnet_45_clamps_to_twenty_percent_of_context() -> None:
    model_quirks = quirks.resolve("claude-sonnet-4.5")

    assert model_quirks.clamp_max_tokens(250_000) == 200_000
    assert model_quirks.clamp_max_tokens(64_000) == 64_000


def test_unlisted_ids_fall_back_to_patterns() -> None:
    """Routing prefixes the registry does not list still classify."""
    model_quirks = quirks.resolve("litellm_proxy/deepseek/deepseek-v3.2-exp")

    assert model_quirks.suppress_tool_calls is True
    assert model_quirks.clamp_max_tokens(200_000) == 32_768


def test_clamp_leaves_missing_limit_alone() -> None:
    assert quirks.resolve("deepseek/deepseek-v3.2").clamp_max_tokens(None) is None


@pytest.mark.parametrize("model_id", ["deepseek-chat", "acme/deep-seek-r1", "DeepSeek-V3"])
def test_deepseek_family_suppresses_tool_calls_by_default(model_id: str) -> None:
    model_quirks = quirks.resolve(model_id)

    assert model_quirks.disables_tool_calls(None) is True
    assert model_quirks.disables_tool_calls("none") is True
    assert model_quirks.disables_tool_calls("auto") is False
    assert model_quirks.disables_tool_calls({"type": "function"}) is False


def test_o3_mini_rejects_temperature() -> None:
    assert quirks.resolve("openai/o3-mini").supports_temperature is False
    assert quirks.resolve("openai/o3-mini-high").supports_temperature is False


def test_unrecognized_models_get_default_behavior() -> None:
    model_quirks = quirks.resolve("mistral/mistral-large")

    assert model_quirks == quirks.ModelQuirks()
    assert model_quirks.clamp_max_tokens(123_456) == 123_456
    assert model_quirks.supports_temperature is True
    assert model_quirks.disables_tool_calls(None) is False
    assert model_quirks.context_clamp_fraction is None
