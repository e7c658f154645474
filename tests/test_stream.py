"""Stream reassembly into typed events."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from codexflow.catalog import ModelInfo
from codexflow.errors import RequestAborted
from codexflow.providers.models import TextDelta, ToolCallPartial, UsageEvent
from codexflow.stream import consume_stream
from tests.helpers import aiter_chunks, text_chunk, tool_chunk, usage_chunk

pytestmark = pytest.mark.unit


async def _collect(chunks: list[Any], info: ModelInfo, **kwargs: Any) -> list[Any]:
    return [event async for event in consume_stream(aiter_chunks(chunks), info, **kwargs)]


@pytest.mark.asyncio
async def test_text_deltas_pass_through_in_order(priced_info: ModelInfo) -> None:
    events = await _collect([text_chunk("Hel"), text_chunk("lo"), text_chunk("")], priced_info)

    assert events == [TextDelta("Hel"), TextDelta("lo")]


@pytest.mark.asyncio
async def test_tool_call_without_text_is_preceded_by_empty_text(
    priced_info: ModelInfo,
) -> None:
    events = await _collect(
        [
            tool_chunk(0, id="call_1", name="read_file", arguments=""),
            tool_chunk(0, arguments='{"path": "a.py"}'),
        ],
        priced_info,
    )

    assert events[0] == TextDelta("")
    assert events[1:] == [
        ToolCallPartial(index=0, id="call_1", name="read_file", arguments=""),
        ToolCallPartial(index=0, arguments='{"path": "a.py"}'),
    ]


@pytest.mark.asyncio
async def test_no_placeholder_when_text_came_first(priced_info: ModelInfo) -> None:
    events = await _collect(
        [text_chunk("Let me look."), tool_chunk(0, id="c", name="ls")], priced_info
    )

    assert events == [
        TextDelta("Let me look."),
        ToolCallPartial(index=0, id="c", name="ls"),
    ]


@pytest.mark.asyncio
async def test_single_usage_event_from_last_usage_chunk(priced_info: ModelInfo) -> None:
    events = await _collect(
        [
            text_chunk("a"),
            text_chunk("b"),
            usage_chunk(prompt_tokens=12, completion_tokens=2),
        ],
        priced_info,
    )

    usage = [e for e in events if isinstance(e, UsageEvent)]
    assert len(usage) == 1
    assert usage[0].input_tokens == 12
    assert usage[0].output_tokens == 2
    assert events[-1] is usage[0]


@pytest.mark.asyncio
async def test_last_usage_wins(priced_info: ModelInfo) -> None:
    events = await _collect(
        [
            {**text_chunk("a"), "usage": {"prompt_tokens": 1, "completion_tokens": 1}},
            usage_chunk(prompt_tokens=9, completion_tokens=3),
        ],
        priced_info,
    )

    usage = [e for e in events if isinstance(e, UsageEvent)]
    assert [(u.input_tokens, u.output_tokens) for u in usage] == [(9, 3)]


@pytest.mark.asyncio
async def test_no_usage_event_without_usage_payload(priced_info: ModelInfo) -> None:
    events = await _collect([text_chunk("x")], priced_info)
    assert not any(isinstance(e, UsageEvent) for e in events)


@pytest.mark.asyncio
async def test_tool_calls_only_reply_gets_explanatory_text(priced_info: ModelInfo) -> None:
    terminal = {
        "choices": [
            {
                "index": 0,
                "delta": {},
                "message": {
                    "tool_calls": [
                        {"function": {"name": "read_file"}},
                        {"function": {"name": "list_files"}},
                    ]
                },
            }
        ]
    }
    events = await _collect(
        [tool_chunk(0, id="c1", name="read_file"), terminal], priced_info
    )

    texts = [e.text for e in events if isinstance(e, TextDelta)]
    assert texts[0] == ""
    assert "read_file, list_files" in texts[-1]
    assert "Tool calling is not fully supported" in texts[-1]


@pytest.mark.asyncio
async def test_no_explanatory_text_without_terminal_message(priced_info: ModelInfo) -> None:
    events = await _collect([tool_chunk(0, id="c1", name="read_file")], priced_info)

    assert [e for e in events if isinstance(e, TextDelta)] == [TextDelta("")]


@pytest.mark.asyncio
async def test_abort_signal_raises_request_aborted(priced_info: ModelInfo) -> None:
    abort = asyncio.Event()
    received: list[Any] = []

    async def _chunks():
        yield text_chunk("one")
        abort.set()
        yield text_chunk("two")

    with pytest.raises(RequestAborted, match="terminated or cancelled"):
        async for event in consume_stream(_chunks(), priced_info, abort_signal=abort):
            received.append(event)

    assert received == [TextDelta("one")]


@pytest.mark.asyncio
async def test_sdk_style_chunks_are_supported(priced_info: ModelInfo) -> None:
    """Attribute-style chunks (as the OpenAI SDK yields) work like dicts."""

    class _Obj:
        def __init__(self, **kw: Any) -> None:
            self.__dict__.update(kw)

    chunk = _Obj(
        choices=[_Obj(delta=_Obj(content="hi", tool_calls=None))],
        usage=_Obj(prompt_tokens=3, completion_tokens=1),
    )
    events = await _collect([chunk], priced_info)

    assert events[0] == TextDelta("hi")
    assert isinstance(events[1], UsageEvent)
    assert events[1].input_tokens == 3
