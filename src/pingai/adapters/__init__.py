"""Built-in protocol adapters (OpenAI, Anthropic, Gemini)."""

from pingai.adapters.anthropic_adapter import AnthropicAdapter
from pingai.adapters.base import HttpAdapter, iter_sse_events
from pingai.adapters.gemini_adapter import GeminiAdapter
from pingai.adapters.openai_adapter import OpenAIAdapter
from pingai.core.schema import ProtocolKind


def register_builtin_adapters(registry) -> None:
    """Register one adapter per ProtocolKind on the given registry."""
    registry.register_adapter(ProtocolKind.OPENAI, OpenAIAdapter)
    registry.register_adapter(ProtocolKind.ANTHROPIC, AnthropicAdapter)
    registry.register_adapter(ProtocolKind.GEMINI, GeminiAdapter)


__all__ = [
    "AnthropicAdapter",
    "GeminiAdapter",
    "HttpAdapter",
    "OpenAIAdapter",
    "iter_sse_events",
    "register_builtin_adapters",
]
