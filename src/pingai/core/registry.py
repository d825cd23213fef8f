"""Central registry for protocol adapters and reporters."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pingai.core.exceptions import RegistryError
from pingai.core.schema import ProtocolKind

if TYPE_CHECKING:
    from pingai.protocols import ProtocolAdapter, Reporter

log = logging.getLogger(__name__)


class ComponentRegistry:
    """Central registry for pluggable components."""

    def __init__(self) -> None:
        self._adapters: dict[ProtocolKind, type[ProtocolAdapter]] = {}
        self._reporters: dict[str, type[Reporter]] = {}
        self._adapter_options: dict[ProtocolKind, dict[str, Any]] = {}

    def register_adapter(self, kind: ProtocolKind | str, cls: type[ProtocolAdapter], **options: Any) -> None:
        """Register the adapter class for a protocol kind."""
        kind = ProtocolKind.parse(kind)
        if kind in self._adapters:
            log.warning("Overwriting adapter registration: %s", kind.value)
        self._adapters[kind] = cls
        if options:
            self._adapter_options[kind] = options

    def register_reporter(self, fmt: str, cls: type[Reporter]) -> None:
        """Register a reporter class."""
        if fmt in self._reporters:
            log.warning("Overwriting reporter registration: %s", fmt)
        self._reporters[fmt] = cls

    def get_adapter(self, kind: ProtocolKind | str, **kwargs: Any) -> ProtocolAdapter:
        """Get a fresh adapter instance for a protocol kind."""
        kind = ProtocolKind.parse(kind)
        if kind not in self._adapters:
            raise RegistryError(f"No adapter registered for protocol: {kind.value}")
        cls = self._adapters[kind]
        opts = {**self._adapter_options.get(kind, {}), **kwargs}
        return cls(**opts)  # type: ignore[call-arg]

    def get_reporter(self, fmt: str) -> Reporter:
        """Get a reporter instance by format name."""
        if fmt not in self._reporters:
            raise RegistryError(f"Unknown reporter format: {fmt}")
        cls = self._reporters[fmt]
        return cls()  # type: ignore[call-arg]

    def list_available(self) -> dict[str, list[str]]:
        """Return all registered component names by category."""
        return {
            "adapters": [k.value for k in self._adapters],
            "reporters": list(self._reporters),
        }


def default_registry() -> ComponentRegistry:
    """Registry with the built-in adapters and reporters."""
    from pingai.adapters import register_builtin_adapters
    from pingai.reporters import register_builtin_reporters

    registry = ComponentRegistry()
    register_builtin_adapters(registry)
    register_builtin_reporters(registry)
    return registry
