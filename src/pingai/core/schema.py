"""Pydantic models and enums shared by adapters, the orchestrator and the batch runner."""

from __future__ import annotations

from enum import Enum
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from pingai.core.exceptions import ConfigurationError


class ProtocolKind(str, Enum):
    """Wire protocol spoken by a provider endpoint."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"

    @classmethod
    def parse(cls, value: str | ProtocolKind) -> ProtocolKind:
        """Resolve a protocol name (case-insensitive); raise ConfigurationError if unknown."""
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        for kind in cls:
            if kind.value == key:
                return kind
        valid = ", ".join(k.value for k in cls)
        raise ConfigurationError(f"Unknown protocol {value!r}. Expected one of: {valid}.")


class CheckItemKind(str, Enum):
    """Check items, declared in battery order."""

    CONNECTIVITY = "connectivity"
    CHAT = "chat"
    STREAM = "stream"
    MODELS = "models"
    MULTI_TURN = "multi_turn"


BATTERY: tuple[CheckItemKind, ...] = tuple(CheckItemKind)


class CheckStatus(str, Enum):
    """Outcome of a check item. The engine only finalizes to success/failed/warning."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    WARNING = "warning"


class CheckConfig(BaseModel):
    """One endpoint plus credential to check."""

    provider_id: str = ""
    provider_name: str = ""
    base_url: str
    api_key: str = ""
    model: str = ""
    protocol: str = ProtocolKind.OPENAI.value

    @field_validator("protocol", mode="before")
    @classmethod
    def _protocol_to_str(cls, value: Any) -> Any:
        if isinstance(value, ProtocolKind):
            return value.value
        return value

    def protocol_kind(self) -> ProtocolKind:
        return ProtocolKind.parse(self.protocol)

    def normalized_base_url(self) -> str:
        """Return base_url without trailing slash; raise ConfigurationError if it is not http(s)."""
        url = (self.base_url or "").strip()
        parsed = urlparse(url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ConfigurationError(f"Malformed base URL {self.base_url!r}: expected http(s)://host[/path].")
        return url.rstrip("/")

    def with_key(self, api_key: str) -> CheckConfig:
        return self.model_copy(update={"api_key": api_key})

    def masked_key(self) -> str:
        key = self.api_key or ""
        if len(key) <= 8:
            return "***"
        return f"{key[:3]}...{key[-4:]}"


class CheckResult(BaseModel):
    """Outcome of one check item."""

    item: CheckItemKind
    status: CheckStatus
    latency_ms: float = 0.0
    ttft_ms: float = 0.0
    message: str = ""
    detail: str = ""
    tokens_in: int = 0
    tokens_out: int = 0


class FullCheckResult(BaseModel):
    """Aggregate of one orchestrator run (or a synthetic result for a faulted/cancelled batch unit)."""

    unit_id: str = ""
    provider_id: str = ""
    provider_name: str = ""
    base_url: str = ""
    model: str = ""
    protocol: str = ""
    results: list[CheckResult] = Field(default_factory=list)
    model_list: list[str] = Field(default_factory=list)
    start_time: str = ""
    end_time: str = ""
    total_latency_ms: float = 0.0
    cancelled: bool = False

    def get(self, item: CheckItemKind) -> CheckResult | None:
        for r in self.results:
            if r.item == item:
                return r
        return None

    def overall_status(self) -> CheckStatus:
        """failed if any item failed, else warning if any warned, else success."""
        statuses = {r.status for r in self.results}
        if CheckStatus.FAILED in statuses or self.cancelled:
            return CheckStatus.FAILED
        if CheckStatus.WARNING in statuses:
            return CheckStatus.WARNING
        return CheckStatus.SUCCESS


class BatchUnit(BaseModel):
    """One independent unit of batch work."""

    unit_id: str
    config: CheckConfig


class ChatMessage(BaseModel):
    """One conversation turn in protocol-neutral form (role: user | assistant)."""

    role: str
    content: str
