"""Chat-completions request shaping."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from codexflow import quirks
from codexflow.providers._utils import convert_tools_for_openai
from codexflow.providers.models import ChatRequest, CreateMessageMetadata

if TYPE_CHECKING:
    from codexflow.catalog import ModelDescriptor

logger = logging.getLogger(__name__)

CACHE_CONTROL: dict[str, str] = {"type": "ephemeral"}
_CACHED_USER_TURNS = 2


def _with_cache_control(block: dict[str, Any]) -> dict[str, Any]:
    return {**block, "cache_control": dict(CACHE_CONTROL)}


def apply_cache_control(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Return a copy of *messages* with the last two user turns cache-annotated.

    String content becomes a single annotated text block; structured content
    has its last block annotated. Other messages are returned unchanged.
    """
    user_indices = [i for i, m in enumerate(messages) if m.get("role") == "user"]
    targets = set(user_indices[-_CACHED_USER_TURNS:])

    annotated: list[dict[str, Any]] = []
    for index, message in enumerate(messages):
        if index not in targets:
            annotated.append(message)
            continue
        content = message.get("content")
        if isinstance(content, str):
            blocks = [_with_cache_control({"type": "text", "text": content})]
        elif isinstance(content, list) and content:
            blocks = [*content[:-1], _with_cache_control(content[-1])]
        else:
            annotated.append(message)
            continue
        annotated.append({**message, "content": blocks})
    return annotated


def _system_message(system_prompt: str, *, cached: bool) -> dict[str, Any]:
    if not cached:
        return {"role": "system", "content": system_prompt}
    return {
        "role": "system",
        "content": [_with_cache_control({"type": "text", "text": system_prompt})],
    }


def _apply_token_limit(
    body: dict[str, Any],
    model_id: str,
    model_quirks: quirks.ModelQuirks,
    max_tokens: int | None,
) -> int | None:
    resolved = model_quirks.clamp_max_tokens(max_tokens)
    if resolved != max_tokens:
        logger.debug(
            "Clamped max tokens for %s from %s to %s", model_id, max_tokens, resolved
        )
    if resolved:
        body[model_quirks.token_limit_field()] = resolved
    return resolved


def build_chat_request(
    system_prompt: str,
    messages: list[dict[str, Any]],
    model: ModelDescriptor,
    *,
    use_prompt_cache: bool = False,
    temperature: float | None = None,
    metadata: CreateMessageMetadata | None = None,
) -> ChatRequest:
    """Assemble the streaming chat-completions body for *model*.

    Args:
        system_prompt: Instruction sent as the leading system message.
        messages: Conversation already in chat-completions message shape.
        model: The resolved model descriptor.
        use_prompt_cache: Caller opt-in; only honored when the model supports it.
        temperature: Caller override, defaulting to 0 where temperature is accepted.
        metadata: Tools, tool choice and tool protocol for this request.

    Returns:
        ChatRequest holding the body and the decisions applied to it.
    """
    metadata = metadata or CreateMessageMetadata()
    model_quirks = quirks.resolve(model.id)

    cached = use_prompt_cache and model.supports_prompt_cache
    outbound = apply_cache_control(messages) if cached else list(messages)

    body: dict[str, Any] = {
        "model": model.id,
        "messages": [_system_message(system_prompt, cached=cached), *outbound],
        "stream": True,
        "stream_options": {"include_usage": True},
    }

    use_native_tools = bool(
        model.supports_native_tools
        and metadata.tools
        and metadata.tool_protocol == "native"
    )
    if use_native_tools:
        body["tools"] = convert_tools_for_openai(metadata.tools or [])
        if metadata.tool_choice:
            body["tool_choice"] = metadata.tool_choice

    disable_tools = model_quirks.disables_tool_calls(metadata.tool_choice)
    if disable_tools:
        logger.debug("Suppressing tool calls for %s", model.id)
        body["tool_choice"] = "none"

    max_tokens = _apply_token_limit(body, model.id, model_quirks, model.max_tokens)

    if model_quirks.supports_temperature:
        body["temperature"] = temperature if temperature is not None else 0

    return ChatRequest(
        body=body,
        max_tokens=max_tokens,
        tools_attached=use_native_tools,
        tool_calls_disabled=disable_tools,
    )


def build_completion_request(
    prompt: str,
    model: ModelDescriptor,
    *,
    temperature: float | None = None,
) -> ChatRequest:
    """Assemble the single-turn, non-streaming body used by ``complete_prompt``.

    DeepSeek-class models always have tool calls disabled here: there is no
    tool choice to opt back in with.
    """
    model_quirks = quirks.resolve(model.id)
    body: dict[str, Any] = {
        "model": model.id,
        "messages": [{"role": "user", "content": prompt}],
    }
    disable_tools = model_quirks.suppress_tool_calls
    if disable_tools:
        body["tool_choice"] = "none"
    if model_quirks.supports_temperature:
        body["temperature"] = temperature if temperature is not None else 0

    max_tokens = _apply_token_limit(body, model.id, model_quirks, model.max_tokens)
    return ChatRequest(body=body, max_tokens=max_tokens, tool_calls_disabled=disable_tools)
