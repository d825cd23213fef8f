"""Tests for ComponentRegistry."""

from __future__ import annotations

import logging

import httpx
import pytest

from pingai.adapters import AnthropicAdapter, GeminiAdapter, OpenAIAdapter, register_builtin_adapters
from pingai.core.exceptions import ConfigurationError, RegistryError
from pingai.core.registry import ComponentRegistry, default_registry
from pingai.core.schema import ProtocolKind

from _helpers import make_check_config


def test_register_and_get_adapter() -> None:
    reg = ComponentRegistry()
    reg.register_adapter(ProtocolKind.OPENAI, OpenAIAdapter)
    adapter = reg.get_adapter("openai")
    try:
        assert isinstance(adapter, OpenAIAdapter)
    finally:
        adapter.close()


def test_get_adapter_returns_fresh_instances() -> None:
    reg = default_registry()
    a, b = reg.get_adapter("gemini"), reg.get_adapter("gemini")
    try:
        assert a is not b
    finally:
        a.close()
        b.close()


def test_get_adapter_passes_transport() -> None:
    reg = default_registry()
    transport = httpx.MockTransport(lambda r: httpx.Response(204))
    with reg.get_adapter(ProtocolKind.ANTHROPIC, transport=transport) as adapter:
        assert isinstance(adapter, AnthropicAdapter)


def test_registered_options_are_applied() -> None:
    reg = ComponentRegistry()
    transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"data": []}))
    reg.register_adapter("openai", OpenAIAdapter, transport=transport)
    with reg.get_adapter("openai") as adapter:
        assert adapter.ping(make_check_config("openai"), timeout=1).status_code == 200


def test_missing_adapter_raises() -> None:
    reg = ComponentRegistry()
    with pytest.raises(RegistryError, match="No adapter registered for protocol: gemini"):
        reg.get_adapter("gemini")


def test_unknown_protocol_kind_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        ComponentRegistry().get_adapter("cohere")


def test_unknown_reporter_raises() -> None:
    with pytest.raises(RegistryError, match="Unknown reporter format: pdf"):
        default_registry().get_reporter("pdf")


def test_overwrite_warns(caplog: pytest.LogCaptureFixture) -> None:
    reg = ComponentRegistry()
    reg.register_adapter("openai", OpenAIAdapter)
    with caplog.at_level(logging.WARNING, logger="pingai"):
        reg.register_adapter("openai", OpenAIAdapter)
    assert "Overwriting adapter registration: openai" in caplog.text


def test_builtin_adapters_cover_every_protocol() -> None:
    reg = ComponentRegistry()
    register_builtin_adapters(reg)
    assert sorted(reg.list_available()["adapters"]) == sorted(k.value for k in ProtocolKind)
    with reg.get_adapter("gemini") as adapter:
        assert isinstance(adapter, GeminiAdapter)


def test_list_available_default() -> None:
    avail = default_registry().list_available()
    assert set(avail) == {"adapters", "reporters"}
    assert "json" in avail["reporters"]
