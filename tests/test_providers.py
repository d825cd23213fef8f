"""Tests for the provider catalog."""

from __future__ import annotations

import pytest

from pingai.core.exceptions import ConfigurationError
from pingai.core.providers import BUILTIN_PROVIDERS, ProviderCatalog, ProviderInfo


def test_builtin_presets_are_complete() -> None:
    ids = {p.id for p in BUILTIN_PROVIDERS}
    assert {"openai", "anthropic", "gemini", "deepseek", "moonshot", "zhipu", "qwen", "groq", "mistral"} <= ids
    for p in BUILTIN_PROVIDERS:
        assert p.builtin
        assert p.base_url.startswith("https://")
        assert p.protocol in {"openai", "anthropic", "gemini"}
        assert p.default_model


def test_builtin_protocols() -> None:
    catalog = ProviderCatalog()
    assert catalog.get("anthropic").protocol == "anthropic"
    assert catalog.get("gemini").protocol == "gemini"
    assert catalog.get("deepseek").protocol == "openai"


def test_get_is_case_insensitive() -> None:
    assert ProviderCatalog().get("OpenAI").id == "openai"
    assert ProviderCatalog().get("nope") is None


def test_custom_provider_overrides_builtin() -> None:
    custom = ProviderInfo(id="openai", name="Proxy", base_url="https://proxy.test/v1", models=["m"])
    catalog = ProviderCatalog([custom])
    info = catalog.get("openai")
    assert info.name == "Proxy"
    assert info.builtin is False
    assert len(catalog.list()) == len(BUILTIN_PROVIDERS)


def test_hidden_providers_filtered_when_visible_only() -> None:
    catalog = ProviderCatalog(hidden=["Groq"])
    assert catalog.is_hidden("groq")
    assert "groq" not in {p.id for p in catalog.list(visible_only=True)}
    assert "groq" in {p.id for p in catalog.list()}


def test_resolve_defaults() -> None:
    cfg = ProviderCatalog().resolve("deepseek", api_key="sk-x")
    assert cfg.provider_name == "DeepSeek"
    assert cfg.base_url == "https://api.deepseek.com/v1"
    assert cfg.model == "deepseek-chat"
    assert cfg.protocol == "openai"
    assert cfg.api_key == "sk-x"


def test_resolve_overrides() -> None:
    cfg = ProviderCatalog().resolve("openai", base_url="https://gw.test/v1", model="gpt-x", protocol="anthropic")
    assert (cfg.base_url, cfg.model, cfg.protocol) == ("https://gw.test/v1", "gpt-x", "anthropic")


def test_resolve_unknown_with_base_url() -> None:
    cfg = ProviderCatalog().resolve("local", base_url="http://localhost:8000/v1", model="llama")
    assert cfg.provider_name == "local"
    assert cfg.protocol == "openai"


def test_resolve_unknown_without_base_url() -> None:
    with pytest.raises(ConfigurationError, match="Unknown provider 'local'"):
        ProviderCatalog().resolve("local")
