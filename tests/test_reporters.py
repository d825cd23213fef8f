"""Tests for reporters (JSON, text)."""

from __future__ import annotations

import json
from pathlib import Path

from pingai.core.registry import ComponentRegistry
from pingai.core.schema import CheckStatus, FullCheckResult
from pingai.reporters import JsonReporter, TextReporter, register_builtin_reporters, summarize

from _helpers import make_full_result


def _sample_results() -> list[FullCheckResult]:
    return [
        make_full_result(provider_id="openai"),
        make_full_result([CheckStatus.SUCCESS, CheckStatus.WARNING] + [CheckStatus.SUCCESS] * 3, provider_id="groq"),
        make_full_result([CheckStatus.FAILED] * 5, provider_id="deepseek", model_list=[]),
    ]


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class TestRegistration:
    def test_all_reporters_registered(self) -> None:
        reg = ComponentRegistry()
        register_builtin_reporters(reg)
        assert reg.list_available()["reporters"] == ["json", "text"]
        assert isinstance(reg.get_reporter("json"), JsonReporter)
        assert isinstance(reg.get_reporter("text"), TextReporter)


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def test_summarize_counts_overall_status() -> None:
    assert summarize(_sample_results()) == {"total": 3, "success": 1, "failed": 1, "warning": 1}


def test_summarize_empty() -> None:
    assert summarize([]) == {"total": 0, "success": 0, "failed": 0, "warning": 0}


# ---------------------------------------------------------------------------
# JSON reporter
# ---------------------------------------------------------------------------


class TestJsonReporter:
    def test_render_structure(self) -> None:
        data = json.loads(JsonReporter().render(_sample_results()))
        assert set(data) == {"generatedAt", "results", "summary"}
        assert data["summary"]["total"] == 3
        first = data["results"][0]
        assert first["provider_id"] == "openai"
        assert first["results"][0]["item"] == "connectivity"
        assert first["results"][0]["status"] == "success"
        assert "api_key" not in json.dumps(data)

    def test_export_writes_file(self, tmp_path: Path) -> None:
        out = tmp_path / "reports" / "check.json"
        written = JsonReporter().export(_sample_results(), out)
        assert written == out.resolve()
        assert json.loads(out.read_text(encoding="utf-8"))["summary"]["failed"] == 1


# ---------------------------------------------------------------------------
# Text reporter
# ---------------------------------------------------------------------------


class TestTextReporter:
    def test_render_markers_and_latency(self) -> None:
        text = TextReporter().render(_sample_results())
        assert text.startswith("=== PingAI Check Report ===")
        assert "[Openai] model-x (https://api.example.test/v1)" in text
        assert "  connectivity    [OK] connectivity success (12ms)" in text
        assert "[WARN]" in text
        assert "[FAIL]" in text
        assert "Total: 1000ms" in text
        assert "Summary: 3 total, 1 success, 1 warning, 1 failed" in text

    def test_render_ttft(self) -> None:
        result = make_full_result()
        result.results[2].ttft_ms = 87.4
        assert "TTFT 87ms" in TextReporter().render([result])

    def test_render_cancelled(self) -> None:
        result = FullCheckResult(unit_id="x", provider_id="x", cancelled=True)
        assert "cancelled before start" in TextReporter().render([result])

    def test_export(self, tmp_path: Path) -> None:
        out = TextReporter().export(_sample_results(), tmp_path / "r.txt")
        assert "[FAIL]" in out.read_text(encoding="utf-8")
