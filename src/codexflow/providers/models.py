"""Domain models for the provider transport layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

Role = Literal["system", "user", "assistant", "tool"]
ToolProtocol = Literal["native", "xml"]
ToolChoice = Literal["auto", "required", "none"] | dict[str, Any]


@dataclass(frozen=True)
class Message:
    """A conversational turn as supplied by the caller.

    ``content`` is either plain text or an ordered list of content blocks
    (``text``, ``image``, ``tool_use``, ``tool_result``).
    """

    role: Role
    content: str | list[dict[str, Any]] = ""


@dataclass(frozen=True)
class CreateMessageMetadata:
    """Per-request options for ``create_message``."""

    tools: list[dict[str, Any]] | None = None
    tool_choice: ToolChoice | None = None
    tool_protocol: ToolProtocol | None = None
    #: Anything with ``is_set()``, typically an ``asyncio.Event``.
    abort_signal: AbortSignal | None = None


@runtime_checkable
class AbortSignal(Protocol):
    """Cooperative cancellation flag checked once per received chunk."""

    def is_set(self) -> bool: ...


@dataclass(frozen=True)
class TextDelta:
    """An incremental piece of assistant text."""

    text: str
    type: Literal["text"] = "text"


@dataclass(frozen=True)
class ToolCallPartial:
    """A fragment of a streamed native tool call."""

    index: int
    id: str | None = None
    name: str | None = None
    arguments: str | None = None
    type: Literal["tool_call_partial"] = "tool_call_partial"


@dataclass(frozen=True)
class UsageEvent:
    """Token accounting for a whole request. Emitted at most once."""

    input_tokens: int
    output_tokens: int
    cache_write_tokens: int | None = None
    cache_read_tokens: int | None = None
    total_cost: float = 0.0
    type: Literal["usage"] = "usage"


StreamEvent = TextDelta | ToolCallPartial | UsageEvent


@dataclass(frozen=True)
class StageResult:
    """Output of one plan/code/review stage."""

    stage_name: str
    model_used: str
    output_text: str


@dataclass
class ChatRequest:
    """Outbound chat-completions body plus the decisions that shaped it."""

    body: dict[str, Any]
    max_tokens: int | None = None
    tools_attached: bool = False
    tool_calls_disabled: bool = False
