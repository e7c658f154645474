"""CodexFlow: chat-completion streaming through a LiteLLM gateway.

Public API:
    - create_message(): Stream a conversation reply as typed events
    - complete_prompt(): Single prompt, complete reply
    - Config: Configuration dataclass
    - Message / CreateMessageMetadata: Request inputs
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from codexflow._http import package_version
from codexflow.catalog import ModelDescriptor, ModelInfo
from codexflow.config import Config
from codexflow.errors import (
    APIError,
    CodexFlowError,
    ConfigurationError,
    PipelineError,
    RateLimitError,
    RequestAborted,
    StageFailure,
    UpstreamHttpError,
)
from codexflow.providers.models import (
    CreateMessageMetadata,
    Message,
    StageResult,
    StreamEvent,
    TextDelta,
    ToolCallPartial,
    UsageEvent,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from codexflow.providers.base import Handler

__version__ = package_version()

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("codexflow").addHandler(logging.NullHandler())

logger = logging.getLogger(__name__)


async def create_message(
    system_prompt: str,
    messages: list[Message],
    *,
    config: Config,
    metadata: CreateMessageMetadata | None = None,
) -> AsyncIterator[StreamEvent]:
    """Stream the reply to a conversation.

    Args:
        system_prompt: Instruction sent as the system message.
        messages: Conversation turns, oldest first.
        config: Gateway connection and model selection.
        metadata: Optional tools, tool choice and abort signal.

    Yields:
        TextDelta, ToolCallPartial and (at most one) UsageEvent, in order.

    Example:
        config = Config(model_id="deepseek/deepseek-v3.2")
        async for event in create_message("Be brief.", [Message("user", "Hi")], config=config):
            if event.type == "text":
                print(event.text, end="")
    """
    handler = _get_handler(config)
    try:
        async for event in handler.create_message(system_prompt, messages, metadata):
            yield event
    finally:
        await _close_handler(handler)


async def complete_prompt(prompt: str, *, config: Config) -> str:
    """Return the complete reply to a single prompt.

    Example:
        config = Config(model_id="cf-x")
        report = await complete_prompt("Write a CSV parser", config=config)
    """
    handler = _get_handler(config)
    try:
        return await handler.complete_prompt(prompt)
    finally:
        await _close_handler(handler)


async def _close_handler(handler: Handler) -> None:
    aclose = getattr(handler, "aclose", None)
    if not callable(aclose):
        return
    try:
        await aclose()
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        # Cleanup should never mask the primary failure.
        logger.warning("Handler cleanup failed: %s", exc)


def _get_handler(config: Config) -> Handler:
    """Get the appropriate handler based on configuration."""
    if config.use_mock:
        from codexflow.providers.mock import MockHandler

        return MockHandler(config)

    from codexflow.providers.litellm import LiteLLMHandler

    return LiteLLMHandler(config)


__all__ = [
    "APIError",
    "CodexFlowError",
    "Config",
    "ConfigurationError",
    "CreateMessageMetadata",
    "Message",
    "ModelDescriptor",
    "ModelInfo",
    "PipelineError",
    "RateLimitError",
    "RequestAborted",
    "StageFailure",
    "StageResult",
    "StreamEvent",
    "TextDelta",
    "ToolCallPartial",
    "UpstreamHttpError",
    "UsageEvent",
    "complete_prompt",
    "create_message",
]
