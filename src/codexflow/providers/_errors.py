"""Shared provider-side error helpers.

Translate SDK and transport exceptions into the CodexFlow hierarchy so callers
can branch on ``status_code`` instead of matching message substrings.
"""

from __future__ import annotations

import asyncio

from codexflow.errors import (
    APIError,
    RateLimitError,
    UpstreamHttpError,
    _walk_exception_chain,
)

_INVALID_KEY_CHARS_MARKER = "Cannot convert argument to a ByteString"


def _status_of(obj: object) -> int | None:
    for attr in ("status_code", "status"):
        value = getattr(obj, attr, None)
        if isinstance(value, int) and 100 <= value <= 599:
            return value
    return None


def extract_status_code(exc: BaseException) -> int | None:
    """Return the first HTTP status found on *exc*, its response, or its causes."""
    for linked in _walk_exception_chain(exc):
        status = _status_of(linked)
        if status is None:
            status = _status_of(getattr(linked, "response", None))
        if status is not None:
            return status
    return None


def _auth_hint(status_code: int | None, cause_message: str) -> str | None:
    """Generate a hint for auth errors where naming the env var is useful."""
    if _INVALID_KEY_CHARS_MARKER in cause_message:
        return "The API key contains invalid characters; check LITELLM_API_KEY."
    cause_lower = cause_message.lower()
    if status_code in {401, 403} or (
        status_code == 400 and ("api key" in cause_lower or "api_key" in cause_lower)
    ):
        return "Check credentials/permissions (try setting LITELLM_API_KEY or Config.api_key)."
    return None


def wrap_provider_error(
    exc: BaseException,
    *,
    provider: str,
    phase: str,
    hint: str | None = None,
) -> APIError:
    """Map SDK exceptions into APIError with the status code attached."""
    if isinstance(exc, asyncio.CancelledError):
        raise exc

    # Already wrapped: fill in missing context only.
    if isinstance(exc, APIError):
        if exc.provider is None:
            exc.provider = provider
        if exc.phase is None:
            exc.phase = phase
        if hint is not None and exc.hint is None:
            exc.hint = hint
        return exc

    status_code = extract_status_code(exc)
    cause = str(exc)
    derived_hint = hint if hint is not None else _auth_hint(status_code, cause)

    err_cls: type[APIError] = APIError
    if status_code == 429:
        err_cls = RateLimitError
    elif isinstance(status_code, int) and status_code >= 300:
        err_cls = UpstreamHttpError

    msg = f"{provider} completion error"
    status_note = f" (status={status_code})" if isinstance(status_code, int) else ""
    return err_cls(
        f"{msg}{status_note}: {cause}" if cause else f"{msg}{status_note}",
        hint=derived_hint,
        status_code=status_code,
        provider=provider,
        phase=phase,
    )
