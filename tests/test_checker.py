"""Tests for CheckOrchestrator."""

from __future__ import annotations

import json
import logging

import httpx
import pytest

from pingai.core.checker import SKIPPED_CHAT_UNAVAILABLE, CheckOrchestrator
from pingai.core.config import PromptConfigModel, TimeoutConfigModel
from pingai.core.exceptions import ConfigurationError
from pingai.core.registry import ComponentRegistry
from pingai.core.schema import BATTERY, CheckItemKind, CheckStatus

from _helpers import MockBackend, make_check_config

PROTOCOLS = ["openai", "anthropic", "gemini"]


def _run(backend: MockBackend, protocol: str = "openai", **config_overrides):
    orchestrator = CheckOrchestrator(transport=backend.transport())
    return orchestrator.run(make_check_config(protocol, **config_overrides))


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_all_items_succeed_in_battery_order(protocol: str) -> None:
    result = _run(MockBackend(), protocol)
    assert [r.item for r in result.results] == list(BATTERY)
    assert all(r.status == CheckStatus.SUCCESS for r in result.results), [r.message for r in result.results]
    assert result.overall_status() == CheckStatus.SUCCESS
    assert result.model_list == ["model-a", "model-b"]
    assert result.protocol == protocol
    assert result.unit_id == f"mock-{protocol}"
    assert not result.cancelled


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_chat_failure_skips_multi_turn_only(protocol: str) -> None:
    result = _run(MockBackend(chat_status=500), protocol)
    chat = result.get(CheckItemKind.CHAT)
    multi = result.get(CheckItemKind.MULTI_TURN)
    assert chat.status == CheckStatus.FAILED
    assert chat.message.startswith("HTTP 500")
    assert multi.status == CheckStatus.FAILED
    assert multi.message == SKIPPED_CHAT_UNAVAILABLE
    for item in (CheckItemKind.CONNECTIVITY, CheckItemKind.STREAM, CheckItemKind.MODELS):
        assert result.get(item).status == CheckStatus.SUCCESS


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_stream_ttft_within_latency(protocol: str) -> None:
    stream = _run(MockBackend(), protocol).get(CheckItemKind.STREAM)
    assert 0 < stream.ttft_ms <= stream.latency_ms
    assert stream.tokens_out == 5


def test_running_twice_is_idempotent() -> None:
    backend = MockBackend()
    first = _run(backend)
    second = _run(backend)
    assert [(r.status, r.message) for r in first.results] == [(r.status, r.message) for r in second.results]


def test_invalid_key() -> None:
    result = _run(MockBackend(valid_keys={"other"}))
    conn = result.get(CheckItemKind.CONNECTIVITY)
    assert conn.status == CheckStatus.WARNING
    assert "authentication failed" in conn.message
    assert "401" in conn.message
    assert result.get(CheckItemKind.CHAT).status == CheckStatus.FAILED
    assert result.get(CheckItemKind.MODELS).status == CheckStatus.FAILED
    assert result.model_list == []
    assert result.overall_status() == CheckStatus.FAILED


def test_empty_key_is_still_attempted() -> None:
    backend = MockBackend(valid_keys={"sk-real"})
    result = _run(backend, api_key="")
    assert len(backend.requests) >= 4
    assert result.get(CheckItemKind.CONNECTIVITY).status == CheckStatus.WARNING


def test_unreachable_host_fails_every_item() -> None:
    backend = MockBackend(unreachable_hosts={"api.mock-openai.test"})
    result = _run(backend)
    assert len(result.results) == 5
    assert all(r.status == CheckStatus.FAILED for r in result.results)
    assert result.get(CheckItemKind.CONNECTIVITY).message == "network unreachable"
    assert "ConnectError" in result.get(CheckItemKind.CONNECTIVITY).detail


@pytest.mark.parametrize(
    ("status", "expected"),
    [(404, CheckStatus.WARNING), (403, CheckStatus.WARNING), (503, CheckStatus.FAILED)],
)
def test_connectivity_status_mapping(status: int, expected: CheckStatus) -> None:
    result = _run(MockBackend(ping_status=status))
    conn = result.get(CheckItemKind.CONNECTIVITY)
    assert conn.status == expected
    assert str(status) in conn.message


def test_models_unsupported_is_warning() -> None:
    result = _run(MockBackend(models_status=404))
    models = result.get(CheckItemKind.MODELS)
    assert models.status == CheckStatus.WARNING
    assert "not supported" in models.message
    assert result.model_list == []


def test_empty_model_list_is_warning() -> None:
    models = _run(MockBackend(models=[])).get(CheckItemKind.MODELS)
    assert models.status == CheckStatus.WARNING
    assert models.message == "no models listed"


def test_zero_chunk_stream_is_warning() -> None:
    stream = _run(MockBackend(stream_chunks=[])).get(CheckItemKind.STREAM)
    assert stream.status == CheckStatus.WARNING
    assert stream.ttft_ms == 0.0


def test_missing_usage_noted_but_not_failed() -> None:
    chat = _run(MockBackend(usage=False)).get(CheckItemKind.CHAT)
    assert chat.status == CheckStatus.SUCCESS
    assert "usage not reported" in chat.message
    assert chat.tokens_in == 0


def test_empty_chat_reply_is_warning() -> None:
    result = _run(MockBackend(reply="", recall_reply=""))
    assert result.get(CheckItemKind.CHAT).status == CheckStatus.WARNING
    multi = result.get(CheckItemKind.MULTI_TURN)
    assert multi.status == CheckStatus.WARNING
    assert "empty reply" in multi.message


def test_multi_turn_context_retained() -> None:
    multi = _run(MockBackend()).get(CheckItemKind.MULTI_TURN)
    assert multi.status == CheckStatus.SUCCESS
    assert multi.message == "context retained"
    assert (multi.tokens_in, multi.tokens_out) == (24, 6)


def test_multi_turn_recall_not_confirmed_still_succeeds() -> None:
    multi = _run(MockBackend(recall_reply="I do not remember.")).get(CheckItemKind.MULTI_TURN)
    assert multi.status == CheckStatus.SUCCESS
    assert "recall not confirmed" in multi.message


def test_multi_turn_sends_history() -> None:
    backend = MockBackend()
    _run(backend)
    chats = [json.loads(r.content) for r in backend.requests if r.method == "POST"]
    second_round = chats[-1]["messages"]
    assert [m["role"] for m in second_round] == ["user", "assistant", "user"]
    assert second_round[1]["content"] == "OK"


def test_multi_turn_second_round_failure_names_round() -> None:
    calls = {"n": 0}
    backend = MockBackend()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and b'"stream"' not in request.content:
            calls["n"] += 1
            if calls["n"] == 3:
                return httpx.Response(429, json={"error": {"message": "rate limited"}})
        return backend(request)

    orchestrator = CheckOrchestrator(transport=httpx.MockTransport(handler))
    multi = orchestrator.run(make_check_config("openai")).get(CheckItemKind.MULTI_TURN)
    assert multi.status == CheckStatus.FAILED
    assert multi.message.startswith("round 2 failed: HTTP 429")


def test_timing_fields() -> None:
    result = _run(MockBackend())
    assert result.start_time <= result.end_time
    assert result.total_latency_ms >= 0
    assert result.total_latency_ms >= max(r.latency_ms for r in result.results)


def test_invalid_protocol_raises_before_io() -> None:
    backend = MockBackend()
    with pytest.raises(ConfigurationError, match="Unknown protocol"):
        CheckOrchestrator(transport=backend.transport()).run(make_check_config("openai", protocol="cohere"))
    assert backend.requests == []


def test_malformed_base_url_raises_before_io() -> None:
    backend = MockBackend()
    with pytest.raises(ConfigurationError, match="Malformed base URL"):
        CheckOrchestrator(transport=backend.transport()).run(make_check_config("openai", base_url="not a url"))
    assert backend.requests == []


def test_unexpected_exception_becomes_internal_error(caplog: pytest.LogCaptureFixture) -> None:
    class _Broken:
        kind = None

        def __init__(self, **kwargs) -> None:
            pass

        def ping(self, config, *, timeout):
            raise RuntimeError("boom")

        def chat(self, config, messages, *, timeout):
            raise RuntimeError("boom")

        def chat_stream(self, config, messages, *, timeout):
            raise RuntimeError("boom")

        def list_models(self, config, *, timeout):
            raise RuntimeError("boom")

        def close(self) -> None:
            self.closed = True

    registry = ComponentRegistry()
    registry.register_adapter("openai", _Broken)
    with caplog.at_level(logging.ERROR, logger="pingai"):
        result = CheckOrchestrator(registry).run(make_check_config("openai"))
    assert [r.status for r in result.results] == [CheckStatus.FAILED] * 5
    assert result.get(CheckItemKind.CONNECTIVITY).message == "internal error"
    assert "RuntimeError: boom" in result.get(CheckItemKind.CONNECTIVITY).detail
    assert "Unexpected error during connectivity check" in caplog.text


def test_timeouts_and_prompts_are_configurable() -> None:
    backend = MockBackend()
    prompts = PromptConfigModel(chat="ping?")
    orchestrator = CheckOrchestrator(
        transport=backend.transport(), timeouts=TimeoutConfigModel(chat=3), prompts=prompts
    )
    orchestrator.run(make_check_config("openai"))
    first_chat = next(json.loads(r.content) for r in backend.requests if r.method == "POST")
    assert first_chat["messages"][0]["content"] == "ping?"
    assert orchestrator.timeouts.chat == 3
