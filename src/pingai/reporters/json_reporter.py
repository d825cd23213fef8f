"""JSON reporter: write check results plus a status summary as JSON."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pingai.core.schema import CheckStatus, FullCheckResult
from pingai.core.timing import now_string


def summarize(results: list[FullCheckResult]) -> dict[str, int]:
    """Count units by overall status."""
    summary = {"total": len(results), "success": 0, "failed": 0, "warning": 0}
    for r in results:
        status = r.overall_status()
        if status == CheckStatus.FAILED:
            summary["failed"] += 1
        elif status == CheckStatus.WARNING:
            summary["warning"] += 1
        else:
            summary["success"] += 1
    return summary


class JsonReporter:
    """Reporter that writes {generatedAt, results, summary}."""

    format_name: str = "json"

    def build(self, results: list[FullCheckResult]) -> dict[str, Any]:
        return {
            "generatedAt": now_string(),
            "results": [r.model_dump(mode="json") for r in results],
            "summary": summarize(results),
        }

    def render(self, results: list[FullCheckResult]) -> str:
        return json.dumps(self.build(results), indent=2, ensure_ascii=False)

    def export(self, results: list[FullCheckResult], output: Path) -> Path:
        """Write the JSON report to the output path."""
        output = Path(output).resolve()
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(self.render(results), encoding="utf-8")
        return output
