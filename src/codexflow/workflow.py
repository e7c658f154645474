"""CF-X: the three-stage plan -> code -> review workflow.

The reserved model ids ``cf-x`` and ``cf-x-3-layer`` do not go to the gateway
as-is. A remote orchestrator is tried first; when it is unreachable or
answers with an error, three direct chat-completions calls run in sequence,
each stage's output feeding the next stage's prompt.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, ValidationError

from codexflow._http import is_success
from codexflow.errors import PipelineError, StageFailure
from codexflow.providers.models import StageResult, TextDelta
from codexflow.usage import zero_usage

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from codexflow.config import Config
    from codexflow.providers.models import StreamEvent

logger = logging.getLogger(__name__)

CFX_MODEL_IDS = frozenset({"cf-x", "cf-x-3-layer"})
_RULE = "=" * 60
_COMPLETE_LINE = "✅ CF-X pipeline complete!"


def is_cfx_model(model_id: str) -> bool:
    return model_id in CFX_MODEL_IDS


@dataclass(frozen=True)
class StageSpec:
    """Fixed parameters for one stage of the direct workflow."""

    name: str
    model: str
    model_label: str
    icon: str
    progress: str
    system_prompt: str
    temperature: float
    max_tokens: int
    build_prompt: Callable[[str, list[StageResult]], str]
    empty_output: str

    @property
    def banner(self) -> str:
        return f"{self.icon} CF-X: {self.progress} with {self.model_label}...\n\n"

    def section(self, output: str) -> str:
        return f"{self.icon} {self.name.upper()} ({self.model_label}):\n{_RULE}\n{output}\n\n"


def _plan_prompt(task: str, prior: list[StageResult]) -> str:
    del prior
    return f"Task: {task}\n\nCreate a detailed plan:"


def _code_prompt(task: str, prior: list[StageResult]) -> str:
    plan = prior[0].output_text
    return f"Task: {task}\n\nPlan:\n{plan}\n\nGenerate the code:"


def _review_prompt(task: str, prior: list[StageResult]) -> str:
    plan, code = prior[0].output_text, prior[1].output_text
    return (
        f"Task: {task}\n\nPlan:\n{plan}\n\nCode:\n{code}\n\n"
        "Review the code for any errors, bugs, or improvements:"
    )


STAGES: tuple[StageSpec, ...] = (
    StageSpec(
        name="Plan",
        model="openrouter/deepseek/deepseek-v3.2",
        model_label="DeepSeek V3.2",
        icon="📋",
        progress="Planning",
        system_prompt=(
            "You are a planning assistant. Break down the given task into a clear, "
            "step-by-step plan. Output only the plan, no explanations."
        ),
        temperature=0.7,
        max_tokens=2000,
        build_prompt=_plan_prompt,
        empty_output="No plan was produced.",
    ),
    StageSpec(
        name="Code",
        model="openrouter/minimax/minimax-m2.1",
        model_label="MiniMax M2.1",
        icon="💻",
        progress="Coding",
        system_prompt=(
            "You are a coding assistant. Generate code based on the task and plan. "
            "Output clean, production-ready code with proper error handling."
        ),
        temperature=0.3,
        max_tokens=4000,
        build_prompt=_code_prompt,
        empty_output="No code was produced.",
    ),
    StageSpec(
        name="Review",
        model="openrouter/google/gemini-2.5-flash",
        model_label="Gemini 2.5 Flash",
        icon="🔍",
        progress="Reviewing",
        system_prompt=(
            "You are a code reviewer. Review the code against the task and plan. "
            "Identify issues, suggest improvements, and verify completeness. "
            "Check for bugs, security issues, and best practices."
        ),
        temperature=0.5,
        max_tokens=2000,
        build_prompt=_review_prompt,
        empty_output="No review was produced.",
    ),
)


class OrchestratorResult(BaseModel):
    plan: str | None = None
    code: str | None = None
    review: str | None = None


class OrchestratorResponse(BaseModel):
    """Success payload of ``POST /cf-x``."""

    formatted: str | None = None
    result: OrchestratorResult | None = None

    def report(self) -> str:
        if self.formatted:
            return self.formatted
        result = self.result or OrchestratorResult()
        return (
            f"📋 PLAN:\n{result.plan or ''}\n\n"
            f"💻 CODE:\n{result.code or ''}\n\n"
            f"🔍 REVIEW:\n{result.review or ''}"
        )


async def attempt_orchestrator(
    client: httpx.AsyncClient, orchestrator_url: str, task: str
) -> str | None:
    """Ask the orchestrator to run the whole workflow.

    Returns the formatted report, or ``None`` when the orchestrator is
    unavailable or answered with an error.
    """
    try:
        response = await client.post(f"{orchestrator_url}/cf-x", json={"task": task})
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning(
            "Orchestrator not available, falling back to direct calls: %s", exc
        )
        return None

    if not is_success(response.status_code):
        logger.warning(
            "Orchestrator answered %s, falling back to direct calls",
            response.status_code,
        )
        return None

    try:
        payload = OrchestratorResponse.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        logger.warning("Orchestrator returned an unreadable body, falling back: %s", exc)
        return None
    return payload.report()


def _message_content(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    return content if isinstance(content, str) else None


async def run_stage(
    client: httpx.AsyncClient,
    config: Config,
    spec: StageSpec,
    task: str,
    prior: list[StageResult],
) -> StageResult:
    """Run one stage as a single non-streaming chat-completions call.

    Raises:
        StageFailure: When the gateway answers with a non-success status.
    """
    logger.debug("CF-X %s stage via %s", spec.name, spec.model)
    response = await client.post(
        f"{config.stage_api_url}/chat/completions",
        headers={"Authorization": f"Bearer {config.api_key}"},
        json={
            "model": spec.model,
            "messages": [
                {"role": "system", "content": spec.system_prompt},
                {"role": "user", "content": spec.build_prompt(task, prior)},
            ],
            "temperature": spec.temperature,
            "max_tokens": spec.max_tokens,
        },
    )
    if not is_success(response.status_code):
        raise StageFailure(spec.name, response.text, status_code=response.status_code)

    output = _message_content(response.json()) or spec.empty_output
    return StageResult(stage_name=spec.name, model_used=spec.model, output_text=output)


async def _run_direct_stages(
    client: httpx.AsyncClient, config: Config, task: str
) -> AsyncIterator[tuple[StageSpec, StageResult | None]]:
    """Yield ``(spec, None)`` before each stage and ``(spec, result)`` after it."""
    results: list[StageResult] = []
    try:
        for spec in STAGES:
            yield spec, None
            result = await run_stage(client, config, spec, task, results)
            results.append(result)
            yield spec, result
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        raise PipelineError(
            f"CF-X pipeline error: {exc}",
            stage=getattr(exc, "stage", None),
            hint="Check that the gateway at LITELLM_BASE_URL routes the CF-X stage models.",
        ) from exc


async def stream_cfx(
    client: httpx.AsyncClient, config: Config, task: str
) -> AsyncIterator[StreamEvent]:
    """Stream the CF-X workflow: orchestrator first, direct stages as fallback.

    Either path ends with one zero-valued usage event; real token costs of the
    underlying calls are not aggregated.
    """
    report = await attempt_orchestrator(client, config.orchestrator_url, task)
    if report is not None:
        for char in report:
            yield TextDelta(char)
        yield zero_usage()
        return

    async for spec, result in _run_direct_stages(client, config, task):
        if result is None:
            yield TextDelta(spec.banner)
        else:
            yield TextDelta(spec.section(result.output_text))
    yield TextDelta(_COMPLETE_LINE)
    yield zero_usage()


async def run_cfx(client: httpx.AsyncClient, config: Config, task: str) -> str:
    """Non-streaming CF-X: return the complete report."""
    report = await attempt_orchestrator(client, config.orchestrator_url, task)
    if report is not None:
        return report

    sections = [
        spec.section(result.output_text)
        async for spec, result in _run_direct_stages(client, config, task)
        if result is not None
    ]
    return "🚀 CF-X 3-layer results\n\n" + "".join(sections) + _COMPLETE_LINE
