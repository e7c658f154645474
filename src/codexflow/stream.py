"""Reassembly of streamed chat-completion chunks into typed events."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from codexflow.errors import RequestAborted
from codexflow.providers.models import TextDelta, ToolCallPartial
from codexflow.usage import field_value, normalize_usage

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

    from codexflow.catalog import ModelInfo
    from codexflow.providers.models import AbortSignal, StreamEvent

logger = logging.getLogger(__name__)

ABORTED_MESSAGE = "Request was terminated or cancelled"


def _first_choice(chunk: Any) -> Any:
    choices = field_value(chunk, "choices")
    if not choices:
        return None
    return choices[0]


def tool_call_fallback_text(tool_names: list[str]) -> str:
    """Explain a reply that consisted of tool calls only."""
    return (
        f"[Model made tool calls: {', '.join(tool_names)}. Tool calling is not "
        "fully supported in this context. Please try with tool_choice: 'none' "
        "or use a different model.]"
    )


def _terminal_tool_names(chunk: Any) -> list[str]:
    """Function names from the accumulated message some gateways attach last."""
    message = field_value(_first_choice(chunk), "message")
    names: list[str] = []
    for call in field_value(message, "tool_calls") or []:
        name = field_value(field_value(call, "function"), "name")
        if name:
            names.append(name)
    return names


async def consume_stream(
    chunks: AsyncIterable[Any],
    info: ModelInfo,
    *,
    abort_signal: AbortSignal | None = None,
) -> AsyncIterator[StreamEvent]:
    """Yield text, tool-call and usage events from raw completion chunks.

    Chunks may be SDK objects or plain dicts. Events are yielded in arrival
    order with two additions:

    - An empty text delta precedes the first tool-call fragment when no text
      has been yielded yet, so a reply never lacks a text event.
    - If the stream produced tool calls but no real text, an explanatory text
      event naming the called functions follows the stream.

    A single usage event, built from the last usage payload seen, closes the
    sequence.

    Raises:
        RequestAborted: When *abort_signal* is set as a chunk arrives.
    """
    has_content = False
    has_text = False
    has_tool_calls = False
    last_usage: Any = None
    last_chunk: Any = None

    async for chunk in chunks:
        if abort_signal is not None and abort_signal.is_set():
            raise RequestAborted(ABORTED_MESSAGE)

        last_chunk = chunk
        delta = field_value(_first_choice(chunk), "delta")

        text = field_value(delta, "content")
        if text:
            has_content = True
            has_text = True
            yield TextDelta(text)

        tool_calls = field_value(delta, "tool_calls")
        if tool_calls:
            has_tool_calls = True
            if not has_content:
                has_content = True
                yield TextDelta("")
            for call in tool_calls:
                function = field_value(call, "function")
                yield ToolCallPartial(
                    index=field_value(call, "index") or 0,
                    id=field_value(call, "id"),
                    name=field_value(function, "name"),
                    arguments=field_value(function, "arguments"),
                )

        usage = field_value(chunk, "usage")
        if usage:
            last_usage = usage

    if not has_text and has_tool_calls and last_chunk is not None:
        names = _terminal_tool_names(last_chunk)
        if names:
            logger.debug("Stream ended with tool calls only: %s", names)
            yield TextDelta(f"\n\n{tool_call_fallback_text(names)}\n")

    if last_usage is not None:
        yield normalize_usage(last_usage, info)
