"""Pytest configuration and fixtures.

Provides environment isolation and logging configuration. All fixtures here
are autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os

import pytest

from codexflow.catalog import ModelInfo

DEEPSEEK_MODEL = "deepseek/deepseek-v3.2"
SONNET_MODEL = "claude-sonnet-4.5"
GPT5_MODEL = "gpt-5.1"

# Cheap round numbers keep cost assertions readable.
PRICED_INFO = ModelInfo(
    max_tokens=8192,
    context_window=200_000,
    supports_prompt_cache=True,
    supports_native_tools=True,
    input_price=3.0,
    output_price=15.0,
    cache_writes_price=3.75,
    cache_reads_price=0.3,
)


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_gateway_env(request, monkeypatch):
    """Ensure a clean gateway environment for each test.

    Clears LITELLM_* env vars to prevent test pollution.
    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("LITELLM_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_configure(config):
    """Register opt-out markers used by the autouse fixtures."""
    for marker in (
        "allow_dotenv: Let python-dotenv read .env files",
        "allow_env_pollution: Keep LITELLM_* variables from the outer environment",
    ):
        config.addinivalue_line("markers", marker)


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def priced_info() -> ModelInfo:
    """Model info with prompt caching, native tools and round prices."""
    return PRICED_INFO
