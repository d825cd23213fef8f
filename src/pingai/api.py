"""Programmatic entry points. All calls are synchronous and return complete results."""

from __future__ import annotations

from typing import Sequence

import httpx

from pingai.core.batch import BatchRunner, ResultCallback
from pingai.core.checker import CheckOrchestrator
from pingai.core.config import AppConfig
from pingai.core.registry import ComponentRegistry
from pingai.core.schema import CheckConfig, FullCheckResult


def _orchestrator(
    settings: AppConfig | None,
    registry: ComponentRegistry | None,
    transport: httpx.BaseTransport | None,
) -> CheckOrchestrator:
    settings = settings or AppConfig()
    return CheckOrchestrator(
        registry,
        timeouts=settings.timeouts,
        prompts=settings.prompts,
        transport=transport,
    )


def run_check(
    config: CheckConfig,
    *,
    settings: AppConfig | None = None,
    registry: ComponentRegistry | None = None,
    transport: httpx.BaseTransport | None = None,
) -> FullCheckResult:
    """
    Run the full battery against one configuration.

    Raises ConfigurationError for an unknown protocol or malformed base URL;
    every other failure is reported inside the result.
    """
    return _orchestrator(settings, registry, transport).run(config)


def run_batch_check(
    configs: Sequence[CheckConfig],
    *,
    max_workers: int | None = None,
    settings: AppConfig | None = None,
    registry: ComponentRegistry | None = None,
    transport: httpx.BaseTransport | None = None,
    on_result: ResultCallback | None = None,
) -> list[FullCheckResult]:
    """Check many providers concurrently; one result per config, in input order."""
    settings = settings or AppConfig()
    runner = BatchRunner(
        _orchestrator(settings, registry, transport),
        max_workers=max_workers or settings.batch.max_workers,
        on_result=on_result,
    )
    return runner.run_configs(configs)


def run_batch_key_check(
    base_config: CheckConfig,
    api_keys: Sequence[str],
    *,
    max_workers: int | None = None,
    settings: AppConfig | None = None,
    registry: ComponentRegistry | None = None,
    transport: httpx.BaseTransport | None = None,
    on_result: ResultCallback | None = None,
) -> list[FullCheckResult]:
    """Check one endpoint with several API keys; one result per key, in input order."""
    settings = settings or AppConfig()
    runner = BatchRunner(
        _orchestrator(settings, registry, transport),
        max_workers=max_workers or settings.batch.max_workers,
        on_result=on_result,
    )
    return runner.run_keys(base_config, api_keys)
