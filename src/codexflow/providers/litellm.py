"""LiteLLM gateway handler.

Speaks the OpenAI chat-completions protocol to a LiteLLM proxy, which routes
each request to the upstream provider named by the model id.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from codexflow._http import default_headers, package_version
from codexflow.catalog import DEFAULT_MODEL_INFO, ModelDescriptor, fetch_models
from codexflow.errors import APIError, RequestAborted
from codexflow.messages import extract_task_text, to_openai_messages
from codexflow.providers._errors import wrap_provider_error
from codexflow.providers.models import CreateMessageMetadata
from codexflow.request import build_chat_request, build_completion_request
from codexflow.stream import consume_stream, tool_call_fallback_text
from codexflow.usage import field_value
from codexflow.workflow import is_cfx_model, run_cfx, stream_cfx

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from codexflow.catalog import ModelInfo
    from codexflow.config import Config
    from codexflow.providers.models import Message, StreamEvent

logger = logging.getLogger(__name__)

PROVIDER_NAME = "litellm"


class LiteLLMHandler:
    """Chat-completions handler for a LiteLLM proxy."""

    def __init__(
        self,
        config: Config,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize from config; *http_client* is used for non-SDK calls."""
        self.config = config
        self._client: Any = None
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._models: dict[str, ModelInfo] | None = None

    def _get_client(self) -> Any:
        """Lazily initialize and return the OpenAI client."""
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError as e:
                raise APIError(
                    "openai package not installed",
                    hint="pip install openai",
                ) from e
            self._client = AsyncOpenAI(
                base_url=self.config.normalized_base_url,
                api_key=self.config.api_key,
                default_headers=default_headers(package_version()),
                timeout=self.config.request_timeout_s,
            )
        return self._client

    def _get_http_client(self) -> httpx.AsyncClient:
        """Lazily initialize the client used for the model listing and CF-X calls."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                headers=default_headers(package_version()),
                timeout=self.config.request_timeout_s,
            )
        return self._http_client

    def get_model(self) -> ModelDescriptor:
        """Return the model as resolved so far, without touching the network.

        Before the first ``fetch_model`` call an unlisted id reports the
        default model info.
        """
        model_id = self.config.model_id or ""
        if self.config.model_info is not None:
            return ModelDescriptor(model_id, self.config.model_info)
        info = (self._models or {}).get(model_id, DEFAULT_MODEL_INFO)
        return ModelDescriptor(model_id, info)

    async def fetch_model(self) -> ModelDescriptor:
        """Resolve the configured model, listing gateway models once per handler."""
        model_id = self.config.model_id or ""
        if self.config.model_info is not None:
            return ModelDescriptor(model_id, self.config.model_info)
        if is_cfx_model(model_id):
            return ModelDescriptor(model_id, DEFAULT_MODEL_INFO)

        if self._models is None:
            try:
                self._models = await fetch_models(
                    self._get_http_client(),
                    self.config.normalized_base_url,
                    self.config.api_key,
                )
            except (httpx.HTTPError, APIError, ValueError) as exc:
                logger.warning("Could not list gateway models, using defaults: %s", exc)
                self._models = {}

        info = self._models.get(model_id)
        if info is None:
            logger.debug("Model %s not listed by gateway, using default info", model_id)
            info = DEFAULT_MODEL_INFO
        return ModelDescriptor(model_id, info)

    async def create_message(
        self,
        system_prompt: str,
        messages: list[Message],
        metadata: CreateMessageMetadata | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Stream the reply to *messages* as text, tool-call and usage events."""
        metadata = metadata or CreateMessageMetadata()
        model = await self.fetch_model()

        if is_cfx_model(model.id):
            task = extract_task_text(messages)
            async for event in stream_cfx(self._get_http_client(), self.config, task):
                yield event
            return

        request = build_chat_request(
            system_prompt,
            to_openai_messages(messages),
            model,
            use_prompt_cache=self.config.use_prompt_cache,
            temperature=self.config.temperature,
            metadata=metadata,
        )
        client = self._get_client()

        try:
            stream = await client.chat.completions.create(**request.body)
            async for event in consume_stream(
                stream, model.info, abort_signal=metadata.abort_signal
            ):
                yield event
        except RequestAborted:
            raise
        except Exception as exc:
            raise wrap_provider_error(exc, provider=PROVIDER_NAME, phase="stream") from exc

    async def complete_prompt(self, prompt: str) -> str:
        """Return the complete, non-streamed reply to a single prompt."""
        model = await self.fetch_model()

        if is_cfx_model(model.id):
            return await run_cfx(self._get_http_client(), self.config, prompt)

        request = build_completion_request(
            prompt, model, temperature=self.config.temperature
        )
        client = self._get_client()
        try:
            response = await client.chat.completions.create(**request.body)
        except Exception as exc:
            raise wrap_provider_error(
                exc, provider=PROVIDER_NAME, phase="complete"
            ) from exc

        choices = field_value(response, "choices") or []
        message = field_value(choices[0], "message") if choices else None
        content = field_value(message, "content")
        tool_calls = field_value(message, "tool_calls") or []
        if not content and tool_calls:
            names = [
                name
                for call in tool_calls
                if (name := field_value(field_value(call, "function"), "name"))
            ]
            return tool_call_fallback_text(names)
        return content or ""

    async def aclose(self) -> None:
        """Close underlying client resources this handler created."""
        client, self._client = self._client, None
        if client is not None:
            await client.close()
        http_client = self._http_client
        if http_client is not None and self._owns_http_client:
            self._http_client = None
            await http_client.aclose()
