"""Plain-text reporter: one block per checked unit with OK/FAIL/WARN markers."""

from __future__ import annotations

from pathlib import Path

from pingai.core.schema import CheckStatus, FullCheckResult
from pingai.core.timing import now_string
from pingai.reporters.json_reporter import summarize

_MARKERS = {
    CheckStatus.SUCCESS: "OK",
    CheckStatus.FAILED: "FAIL",
    CheckStatus.WARNING: "WARN",
}


class TextReporter:
    """Human-readable summary."""

    format_name: str = "text"

    def render(self, results: list[FullCheckResult]) -> str:
        lines = ["=== PingAI Check Report ===", f"Time: {now_string()}", ""]
        for r in results:
            name = r.provider_name or r.provider_id or r.unit_id
            lines.append(f"[{name}] {r.model or '-'} ({r.base_url})")
            if r.cancelled:
                lines.append("  cancelled before start")
                lines.append("")
                continue
            for item in r.results:
                marker = _MARKERS.get(item.status, "?")
                line = f"  {item.item.value:<15s} [{marker}] {item.message} ({item.latency_ms:.0f}ms"
                if item.ttft_ms:
                    line += f", TTFT {item.ttft_ms:.0f}ms"
                lines.append(line + ")")
            if r.model_list:
                lines.append(f"  models: {len(r.model_list)}")
            lines.append(f"  Total: {r.total_latency_ms:.0f}ms")
            lines.append("")
        s = summarize(results)
        lines.append(f"Summary: {s['total']} total, {s['success']} success, {s['warning']} warning, {s['failed']} failed")
        return "\n".join(lines) + "\n"

    def export(self, results: list[FullCheckResult], output: Path) -> Path:
        output = Path(output).resolve()
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(self.render(results), encoding="utf-8")
        return output
