"""Batch runner: provider fan-out and key fan-out over a bounded worker pool."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, Sequence

from pingai.core.checker import CheckOrchestrator
from pingai.core.schema import (
    BatchUnit,
    CheckConfig,
    CheckItemKind,
    CheckResult,
    CheckStatus,
    FullCheckResult,
)
from pingai.core.timing import DETAIL_LIMIT, now_string, truncate

log = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4

ResultCallback = Callable[[int, FullCheckResult], None]


def _shell(unit: BatchUnit) -> FullCheckResult:
    """A result carrying only the unit's identity."""
    cfg = unit.config
    stamp = now_string()
    return FullCheckResult(
        unit_id=unit.unit_id,
        provider_id=cfg.provider_id,
        provider_name=cfg.provider_name,
        base_url=cfg.base_url,
        model=cfg.model,
        protocol=str(cfg.protocol),
        start_time=stamp,
        end_time=stamp,
    )


def fault_result(unit: BatchUnit, error: BaseException) -> FullCheckResult:
    """Synthetic result for a unit whose run raised (e.g. an invalid config)."""
    result = _shell(unit)
    result.results = [
        CheckResult(
            item=CheckItemKind.CONNECTIVITY,
            status=CheckStatus.FAILED,
            message=f"check aborted: {type(error).__name__}",
            detail=truncate(str(error), DETAIL_LIMIT),
        )
    ]
    return result


def cancelled_result(unit: BatchUnit) -> FullCheckResult:
    """Result for a unit that never started because the batch was cancelled."""
    result = _shell(unit)
    result.cancelled = True
    return result


def provider_units(configs: Iterable[CheckConfig]) -> list[BatchUnit]:
    """One unit per config; repeated provider ids get a ``#<n>`` suffix."""
    seen: Counter[str] = Counter()
    units: list[BatchUnit] = []
    for cfg in configs:
        base_id = cfg.provider_id or cfg.base_url
        seen[base_id] += 1
        unit_id = base_id if seen[base_id] == 1 else f"{base_id}#{seen[base_id]}"
        units.append(BatchUnit(unit_id=unit_id, config=cfg))
    return units


def key_units(base_config: CheckConfig, api_keys: Iterable[str]) -> list[BatchUnit]:
    """One unit per key; unit ids are ``<provider_id>#key<n>`` numbered from 1."""
    units: list[BatchUnit] = []
    for n, key in enumerate(api_keys, start=1):
        cfg = base_config.with_key(key)
        name = base_config.provider_name or base_config.provider_id
        cfg = cfg.model_copy(update={"provider_name": f"{name} ({cfg.masked_key()})"})
        units.append(BatchUnit(unit_id=f"{base_config.provider_id}#key{n}", config=cfg))
    return units


class BatchRunner:
    """Run many independent checks with a fixed number of workers.

    Results come back in input order, one per unit. A unit that raises is
    turned into a synthetic failed result; after ``cancel()`` units that have
    not started are returned marked ``cancelled``. Cancellation is permanent:
    every later run on the same runner returns only cancelled results.
    """

    def __init__(
        self,
        orchestrator: CheckOrchestrator | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        on_result: ResultCallback | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._orchestrator = orchestrator or CheckOrchestrator()
        self._max_workers = max_workers
        self._on_result = on_result
        self._cancel = threading.Event()

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Stop dispatching new units; in-flight units finish on their own timeouts.

        The runner stays cancelled for any later ``run_*`` call.
        """
        if not self._cancel.is_set():
            log.info("Batch cancellation requested")
        self._cancel.set()

    def run_configs(self, configs: Sequence[CheckConfig]) -> list[FullCheckResult]:
        """Provider fan-out: one unit per config."""
        return self.run_units(provider_units(configs))

    def run_keys(self, base_config: CheckConfig, api_keys: Sequence[str]) -> list[FullCheckResult]:
        """Key fan-out: the same endpoint checked once per API key."""
        return self.run_units(key_units(base_config, api_keys))

    def run_units(self, units: Sequence[BatchUnit]) -> list[FullCheckResult]:
        """Run all units and return one result per unit, in input order."""
        units = list(units)
        if not units:
            return []

        results: list[FullCheckResult | None] = [None] * len(units)
        workers = min(self._max_workers, len(units))
        log.info("Running batch of %d unit(s) with %d worker(s)", len(units), workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pingai") as executor:
            futures = {executor.submit(self._run_unit, unit): i for i, unit in enumerate(units)}
            for future in as_completed(futures):
                index = futures[future]
                unit = units[index]
                try:
                    result = future.result()
                except Exception as e:
                    log.warning("Batch unit %s failed: %s", unit.unit_id, e)
                    result = fault_result(unit, e)
                results[index] = result
                if self._on_result is not None:
                    try:
                        self._on_result(index, result)
                    except Exception:
                        log.exception("Result callback failed for unit %s", unit.unit_id)

        final = [r if r is not None else cancelled_result(units[i]) for i, r in enumerate(results)]
        self._log_summary(final)
        return final

    def _run_unit(self, unit: BatchUnit) -> FullCheckResult:
        if self._cancel.is_set():
            return cancelled_result(unit)
        result = self._orchestrator.run(unit.config)
        result.unit_id = unit.unit_id
        result.provider_name = unit.config.provider_name or result.provider_name
        return result

    @staticmethod
    def _log_summary(results: list[FullCheckResult]) -> None:
        counts = Counter(r.overall_status().value for r in results if not r.cancelled)
        skipped = sum(1 for r in results if r.cancelled)
        log.info(
            "Batch finished: %d unit(s), %d success, %d warning, %d failed, %d cancelled",
            len(results),
            counts.get("success", 0),
            counts.get("warning", 0),
            counts.get("failed", 0),
            skipped,
        )
