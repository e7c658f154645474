"""Mock handler for testing."""

from __future__ import annotations

from typing import TYPE_CHECKING

from codexflow.catalog import DEFAULT_MODEL_INFO, ModelDescriptor
from codexflow.messages import extract_task_text
from codexflow.providers.models import TextDelta, UsageEvent

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from codexflow.config import Config
    from codexflow.providers.models import CreateMessageMetadata, Message, StreamEvent


class MockHandler:
    """Mock handler for running without a gateway.

    Echoes the final turn back and reports fixed token counts.
    """

    def __init__(self, config: Config) -> None:
        self.config = config

    async def fetch_model(self) -> ModelDescriptor:
        """Return the configured id with default model info."""
        return ModelDescriptor(
            self.config.model_id or "", self.config.model_info or DEFAULT_MODEL_INFO
        )

    async def create_message(
        self,
        system_prompt: str,  # noqa: ARG002
        messages: list[Message],
        metadata: CreateMessageMetadata | None = None,  # noqa: ARG002
    ) -> AsyncIterator[StreamEvent]:
        """Stream a deterministic echo of the last turn."""
        yield TextDelta(f"echo: {extract_task_text(messages)[:100]}")
        yield UsageEvent(input_tokens=10, output_tokens=10, total_cost=0.0)

    async def complete_prompt(self, prompt: str) -> str:
        """Return a deterministic echo of *prompt*."""
        return f"echo: {prompt[:100]}"
