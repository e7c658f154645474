"""Conversion from caller conversation turns to OpenAI chat messages."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from codexflow.providers.models import Message


def _block_text(block: Any) -> str:
    if isinstance(block, str):
        return block
    if isinstance(block, dict):
        text = block.get("text")
        return text if isinstance(text, str) else ""
    return ""


def _tool_result_content(block: dict[str, Any]) -> str:
    content = block.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(
            _block_text(part)
            for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        )
    return ""


def _image_part(block: dict[str, Any]) -> dict[str, Any]:
    source = block.get("source") or {}
    if source.get("type") == "url":
        url = source.get("url", "")
    else:
        url = f"data:{source.get('media_type', 'image/png')};base64,{source.get('data', '')}"
    return {"type": "image_url", "image_url": {"url": url}}


def _convert_user(blocks: list[dict[str, Any]]) -> list[dict[str, Any]]:
    tool_results = [b for b in blocks if b.get("type") == "tool_result"]
    others = [b for b in blocks if b.get("type") in ("text", "image")]

    converted: list[dict[str, Any]] = [
        {
            "role": "tool",
            "tool_call_id": block.get("tool_use_id", ""),
            "content": _tool_result_content(block),
        }
        for block in tool_results
    ]
    if not others:
        return converted

    # Trailing text after tool results rides along on the last tool message.
    if converted and all(b.get("type") == "text" for b in others):
        merged = "\n\n".join(_block_text(b) for b in others)
        last = converted[-1]
        last["content"] = f"{last['content']}\n\n{merged}" if last["content"] else merged
        return converted

    parts = [
        _image_part(b) if b.get("type") == "image" else {"type": "text", "text": _block_text(b)}
        for b in others
    ]
    converted.append({"role": "user", "content": parts})
    return converted


def _convert_assistant(blocks: list[dict[str, Any]]) -> dict[str, Any]:
    text = "\n".join(_block_text(b) for b in blocks if b.get("type") == "text")
    tool_calls = [
        {
            "id": block.get("id", ""),
            "type": "function",
            "function": {
                "name": block.get("name", ""),
                "arguments": json.dumps(block.get("input") or {}),
            },
        }
        for block in blocks
        if block.get("type") == "tool_use"
    ]
    message: dict[str, Any] = {"role": "assistant", "content": text or None}
    if tool_calls:
        message["tool_calls"] = tool_calls
    elif message["content"] is None:
        message["content"] = ""
    return message


def to_openai_messages(messages: list[Message]) -> list[dict[str, Any]]:
    """Convert conversation turns into chat-completions message dicts.

    Plain-text turns map one to one. Structured user turns split into
    ``tool`` messages (one per tool result) followed by a user message for any
    remaining text or images; structured assistant turns carry their
    ``tool_use`` blocks as ``tool_calls``.
    """
    converted: list[dict[str, Any]] = []
    for message in messages:
        content = message.content
        if isinstance(content, str):
            converted.append({"role": message.role, "content": content})
            continue

        blocks = [b for b in content if isinstance(b, dict)]
        if message.role == "user":
            converted.extend(_convert_user(blocks))
        elif message.role == "assistant":
            converted.append(_convert_assistant(blocks))
        else:
            converted.append(
                {"role": message.role, "content": "\n".join(_block_text(b) for b in blocks)}
            )
    return converted


def extract_task_text(messages: list[Message]) -> str:
    """Return the text of the final turn, joining text blocks with a space."""
    if not messages:
        return ""
    content = messages[-1].content
    if isinstance(content, str):
        return content
    return " ".join(_block_text(block) for block in content)
