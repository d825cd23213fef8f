"""Check engine core: schema, registry, orchestrator, batch runner, config."""

from pingai.core.batch import BatchRunner
from pingai.core.checker import CheckOrchestrator
from pingai.core.config import AppConfig, ConfigManager
from pingai.core.providers import BUILTIN_PROVIDERS, ProviderCatalog, ProviderInfo
from pingai.core.registry import ComponentRegistry, default_registry
from pingai.core.schema import (
    BATTERY,
    BatchUnit,
    ChatMessage,
    CheckConfig,
    CheckItemKind,
    CheckResult,
    CheckStatus,
    FullCheckResult,
    ProtocolKind,
)

__all__ = [
    "AppConfig",
    "BATTERY",
    "BUILTIN_PROVIDERS",
    "BatchRunner",
    "BatchUnit",
    "ChatMessage",
    "CheckConfig",
    "CheckItemKind",
    "CheckOrchestrator",
    "CheckResult",
    "CheckStatus",
    "ComponentRegistry",
    "ConfigManager",
    "FullCheckResult",
    "ProtocolKind",
    "ProviderCatalog",
    "ProviderInfo",
    "default_registry",
]
