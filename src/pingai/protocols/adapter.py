"""Protocol for LLM wire-protocol adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from pingai.core.schema import ChatMessage, CheckConfig, ProtocolKind
from pingai.core.timing import TokenUsage


@dataclass(frozen=True)
class PingResult:
    status_code: int


@dataclass(frozen=True)
class ChatResponse:
    content: str
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass(frozen=True)
class StreamResponse:
    content: str
    chunks: int
    ttft_ms: float
    latency_ms: float
    usage: TokenUsage = field(default_factory=TokenUsage)


class ProtocolAdapter(Protocol):
    """Capability set every wire protocol implements.

    Failures are raised as ``AdapterError`` subclasses; nothing else is expected
    to escape.
    """

    kind: ProtocolKind

    def ping(self, config: CheckConfig, *, timeout: float) -> PingResult:
        """Cheapest request proving reachability; returns the HTTP status."""
        ...

    def chat(self, config: CheckConfig, messages: list[ChatMessage], *, timeout: float) -> ChatResponse:
        """One non-streaming completion."""
        ...

    def chat_stream(self, config: CheckConfig, messages: list[ChatMessage], *, timeout: float) -> StreamResponse:
        """One streaming completion, consumed incrementally."""
        ...

    def list_models(self, config: CheckConfig, *, timeout: float) -> list[str]:
        """Model identifiers exposed by the endpoint."""
        ...

    def close(self) -> None:
        ...
