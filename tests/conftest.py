"""Shared pytest fixtures for PingAI tests.

Factory functions live in ``_helpers.py``; this module re-exports them as
pytest fixtures so tests can receive them via dependency injection.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from pingai.core.checker import CheckOrchestrator
from pingai.core.config import ConfigManager
from pingai.core.registry import ComponentRegistry, default_registry

from _helpers import (  # noqa: F401 (re-exported for fixture use)
    MockBackend,
    make_check_config,
    make_config_manager,
    make_full_result,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def backend() -> MockBackend:
    """A mock backend answering every protocol with valid minimal responses."""
    return MockBackend()


@pytest.fixture()
def registry() -> ComponentRegistry:
    """Registry with the built-in adapters and reporters."""
    return default_registry()


@pytest.fixture()
def orchestrator(backend: MockBackend, registry: ComponentRegistry) -> CheckOrchestrator:
    """An orchestrator whose adapters talk to ``backend``."""
    return CheckOrchestrator(registry, transport=backend.transport())


@pytest.fixture()
def config_manager(tmp_path: Path) -> ConfigManager:
    """A real ConfigManager backed by default config (no YAML/env file)."""
    return make_config_manager(tmp_path)
