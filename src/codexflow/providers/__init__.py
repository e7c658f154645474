"""Handler implementations."""

from .base import Handler
from .litellm import LiteLLMHandler
from .mock import MockHandler

__all__ = [
    "Handler",
    "LiteLLMHandler",
    "MockHandler",
]
