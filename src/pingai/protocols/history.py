"""Protocol for history sinks (durable storage of completed checks)."""

from __future__ import annotations

from typing import Protocol

from pingai.core.schema import FullCheckResult


class HistorySink(Protocol):
    """One-way consumer of completed results; the engine never reads history back."""

    def save(self, result: FullCheckResult) -> None:
        """Persist a completed result."""
        ...
