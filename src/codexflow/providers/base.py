"""Handler protocol: minimal interface for gateway handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from codexflow.catalog import ModelDescriptor
    from codexflow.providers.models import CreateMessageMetadata, Message, StreamEvent


@runtime_checkable
class Handler(Protocol):
    """Minimal handler protocol: create_message, complete_prompt, fetch_model."""

    def create_message(
        self,
        system_prompt: str,
        messages: list[Message],
        metadata: CreateMessageMetadata | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Stream the reply to a conversation as typed events."""
        ...

    async def complete_prompt(self, prompt: str) -> str:
        """Return the full reply to a single prompt."""
        ...

    async def fetch_model(self) -> ModelDescriptor:
        """Resolve the configured model id and its descriptor."""
        ...
