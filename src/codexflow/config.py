"""Configuration: frozen Config with environment-resolved gateway settings."""

from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv

from codexflow._http import (
    DEFAULT_BASE_URL,
    normalize_base_url,
    orchestrator_url,
    stage_api_url,
)
from codexflow.catalog import DEFAULT_MODEL_ID, ModelInfo
from codexflow.errors import ConfigurationError

load_dotenv()

_BASE_URL_ENV_VAR = "LITELLM_BASE_URL"
_API_KEY_ENV_VAR = "LITELLM_API_KEY"
_MODEL_ID_ENV_VAR = "LITELLM_MODEL_ID"
_PLACEHOLDER_API_KEY = "dummy-key"


@dataclass(frozen=True)
class Config:
    """Immutable configuration for one gateway handler.

    Unset connection fields are auto-resolved from ``LITELLM_BASE_URL``,
    ``LITELLM_API_KEY`` and ``LITELLM_MODEL_ID``.

    Example:
        config = Config(model_id="deepseek/deepseek-v3.2")
        # base URL and key come from the environment or fall back to a local proxy
    """

    model_id: str | None = None
    base_url: str | None = None
    #: Auto-resolved from ``LITELLM_API_KEY`` when *None*.
    api_key: str | None = None
    use_prompt_cache: bool = False
    #: Sent only for models that accept it; ``None`` means 0.
    temperature: float | None = None
    use_mock: bool = False
    request_timeout_s: float = 600.0
    #: Skips the gateway model listing when given.
    model_info: ModelInfo | None = None

    def __post_init__(self) -> None:
        """Auto-resolve connection fields and validate configuration."""
        if self.model_id is None:
            object.__setattr__(
                self,
                "model_id",
                os.environ.get(_MODEL_ID_ENV_VAR) or DEFAULT_MODEL_ID,
            )
        if self.base_url is None:
            object.__setattr__(
                self,
                "base_url",
                os.environ.get(_BASE_URL_ENV_VAR) or DEFAULT_BASE_URL,
            )
        if self.api_key is None:
            object.__setattr__(
                self,
                "api_key",
                os.environ.get(_API_KEY_ENV_VAR) or _PLACEHOLDER_API_KEY,
            )

        if not isinstance(self.model_id, str) or not self.model_id.strip():
            raise ConfigurationError(
                "model_id must be a non-empty string",
                hint=f"Pass Config(model_id=...) or set {_MODEL_ID_ENV_VAR}.",
            )
        if self.temperature is not None and not 0 <= self.temperature <= 2:
            raise ConfigurationError(
                f"temperature must be within [0, 2], got {self.temperature}",
                hint="Leave temperature unset to send 0.",
            )
        if self.request_timeout_s <= 0:
            raise ConfigurationError(
                f"request_timeout_s must be > 0, got {self.request_timeout_s}",
                hint="This bounds each HTTP call to the gateway in seconds.",
            )

    @property
    def normalized_base_url(self) -> str:
        """Base URL without trailing slashes or a trailing ``/v1``."""
        return normalize_base_url(self.base_url)

    @property
    def orchestrator_url(self) -> str:
        """Orchestrator root on the gateway host."""
        return orchestrator_url(self.base_url)

    @property
    def stage_api_url(self) -> str:
        """``/v1`` root for the direct plan/code/review calls."""
        return stage_api_url(self.base_url)

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"Config(model_id={self.model_id!r}, base_url={self.base_url!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, "
            f"use_prompt_cache={self.use_prompt_cache}, use_mock={self.use_mock})"
        )

    __repr__ = __str__
