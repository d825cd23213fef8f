"""Protocol for report exporters."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from pingai.core.schema import FullCheckResult


class Reporter(Protocol):
    """Protocol for output formats (JSON, text)."""

    format_name: str

    def render(self, results: list[FullCheckResult]) -> str:
        """Serialize results to a string."""
        ...

    def export(self, results: list[FullCheckResult], output: Path) -> Path:
        """Write the rendered report to output path and return it."""
        ...
