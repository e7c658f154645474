"""Exception hierarchy for CodexFlow."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class CodexFlowError(Exception):
    """Base exception for all CodexFlow errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(CodexFlowError):
    """Configuration validation or resolution failed."""


class APIError(CodexFlowError):
    """A call against the gateway or orchestrator failed."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
        provider: str | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.provider = provider
        self.phase = phase


class UpstreamHttpError(APIError):
    """An upstream HTTP call answered with a non-2xx status."""


class RateLimitError(UpstreamHttpError):
    """Rate limit exceeded (HTTP 429)."""


class RequestAborted(CodexFlowError):
    """The caller's abort signal was observed while streaming."""


class StageFailure(UpstreamHttpError):
    """One of the plan/code/review stages returned a non-success status."""

    def __init__(
        self,
        stage: str,
        message: str,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            f"{stage} step failed: {message}",
            status_code=status_code,
            provider="cf-x",
            phase=stage.lower(),
        )
        self.stage = stage


class PipelineError(CodexFlowError):
    """The three-stage CF-X pipeline was aborted."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.stage = stage


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc*, then every exception it was raised from or during, once each."""
    pending = [exc]
    visited: set[int] = set()
    while pending:
        current = pending.pop()
        if id(current) in visited:
            continue
        visited.add(id(current))
        yield current
        pending.extend(
            linked
            for linked in (current.__context__, current.__cause__)
            if linked is not None
        )
