"""Protocol for configuration providers."""

from __future__ import annotations

from typing import Protocol

from pingai.core.schema import CheckConfig


class ConfigSource(Protocol):
    """Supplies a resolved CheckConfig per provider id; read-only from the engine's side."""

    def get_check_config(self, provider_id: str) -> CheckConfig:
        ...
