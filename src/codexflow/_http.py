"""Gateway URL and header helpers.

Imported by config, catalog and the handlers, so it depends on nothing else
in the package.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
import re
from urllib.parse import urlparse

DEFAULT_BASE_URL = "http://localhost:4000"
ORCHESTRATOR_PORT = 3000
_FALLBACK_ORCHESTRATOR_URL = f"http://localhost:{ORCHESTRATOR_PORT}"

_TRAILING_V1_RE = re.compile(r"/v1/?$")


def default_headers(version: str) -> dict[str, str]:
    """Headers attached to every gateway request."""
    return {
        "HTTP-Referer": "https://github.com/doctorcmptrmita2/VsCodeForKPro",
        "X-Title": "CodexFlow",
        "User-Agent": f"CodexFlow/{version}",
    }


def normalize_base_url(base_url: str | None) -> str:
    """Strip surrounding whitespace, trailing slashes and a trailing ``/v1``.

    The OpenAI client appends ``/chat/completions`` itself, so the stored base
    must not already carry the version segment.
    """
    url = (base_url or DEFAULT_BASE_URL).strip().rstrip("/")
    return _TRAILING_V1_RE.sub("", url)


def orchestrator_url(base_url: str | None) -> str:
    """Return the orchestrator root: same scheme and host, fixed port."""
    try:
        parsed = urlparse((base_url or DEFAULT_BASE_URL).strip())
        hostname = parsed.hostname
    except ValueError:
        return _FALLBACK_ORCHESTRATOR_URL
    if not parsed.scheme or not hostname:
        return _FALLBACK_ORCHESTRATOR_URL
    # urlparse drops the brackets around IPv6 literals.
    if ":" in hostname:
        hostname = f"[{hostname}]"
    return f"{parsed.scheme}://{hostname}:{ORCHESTRATOR_PORT}"


def stage_api_url(base_url: str | None) -> str:
    """Return the ``/v1`` root used by the direct stage calls."""
    return normalize_base_url(base_url) + "/v1"


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def package_version() -> str:
    """Installed distribution version, or a placeholder for source checkouts."""
    try:
        return version("codexflow")
    except PackageNotFoundError:
        return "0.0.0+unknown"
