"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: fake OpenAI clients and chunk builders
shared by the stream, handler and API suites.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx


def text_chunk(text: str) -> dict[str, Any]:
    return {"choices": [{"index": 0, "delta": {"content": text}}]}


def tool_chunk(
    index: int = 0,
    *,
    id: str | None = None,  # noqa: A002
    name: str | None = None,
    arguments: str | None = None,
) -> dict[str, Any]:
    function: dict[str, Any] = {}
    if name is not None:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    call: dict[str, Any] = {"index": index, "function": function}
    if id is not None:
        call["id"] = id
    return {"choices": [{"index": 0, "delta": {"tool_calls": [call]}}]}


def usage_chunk(**usage: Any) -> dict[str, Any]:
    return {"choices": [], "usage": usage}


async def aiter_chunks(chunks: list[Any]):
    """Async-iterate over *chunks*, the way an SDK stream is consumed."""
    for chunk in chunks:
        yield chunk


class _FakeCompletions:
    """Captures kwargs passed to chat.completions.create()."""

    def __init__(self, result: Any) -> None:
        self.result = result
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if isinstance(self.result, BaseException):
            raise self.result
        if kwargs.get("stream"):
            return aiter_chunks(self.result)
        return self.result

    @property
    def last_kwargs(self) -> dict[str, Any] | None:
        return self.calls[-1] if self.calls else None


class FakeOpenAIClient:
    """Stand-in for ``AsyncOpenAI`` exposing ``chat.completions.create``.

    *result* is a list of chunks for streaming calls, a response payload for
    non-streaming calls, or an exception to raise.
    """

    def __init__(self, result: Any = None) -> None:
        self.completions = _FakeCompletions([] if result is None else result)
        self.chat = type("Chat", (), {"completions": self.completions})()
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def recording_transport(
    route: Callable[[httpx.Request], httpx.Response],
) -> tuple[httpx.AsyncClient, list[httpx.Request]]:
    """Build an httpx client whose requests are routed and recorded."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return route(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), seen


def chat_response(content: str | None, tool_calls: list[Any] | None = None) -> dict[str, Any]:
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    return {"choices": [{"index": 0, "message": message}]}
