"""Provider registry: builtin presets plus custom providers, used to resolve check defaults."""

from __future__ import annotations

import logging
from typing import Iterable

from pydantic import BaseModel, Field

from pingai.core.exceptions import ConfigurationError
from pingai.core.schema import CheckConfig, ProtocolKind

log = logging.getLogger(__name__)


class ProviderInfo(BaseModel):
    """A known provider and its defaults. The first model is the default model."""

    id: str
    name: str
    base_url: str
    protocol: str = ProtocolKind.OPENAI.value
    models: list[str] = Field(default_factory=list)
    builtin: bool = False

    @property
    def default_model(self) -> str:
        return self.models[0] if self.models else ""


def _preset(id: str, name: str, base_url: str, protocol: ProtocolKind, models: list[str]) -> ProviderInfo:
    return ProviderInfo(id=id, name=name, base_url=base_url, protocol=protocol.value, models=models, builtin=True)


BUILTIN_PROVIDERS: tuple[ProviderInfo, ...] = (
    _preset("openai", "OpenAI", "https://api.openai.com/v1", ProtocolKind.OPENAI,
            ["gpt-4o-mini", "gpt-4o", "gpt-4.1-mini", "gpt-4.1"]),
    _preset("anthropic", "Anthropic", "https://api.anthropic.com/v1", ProtocolKind.ANTHROPIC,
            ["claude-3-5-haiku-latest", "claude-3-5-sonnet-latest", "claude-sonnet-4-20250514"]),
    _preset("gemini", "Google Gemini", "https://generativelanguage.googleapis.com/v1beta", ProtocolKind.GEMINI,
            ["gemini-2.0-flash", "gemini-1.5-flash", "gemini-1.5-pro"]),
    _preset("deepseek", "DeepSeek", "https://api.deepseek.com/v1", ProtocolKind.OPENAI,
            ["deepseek-chat", "deepseek-reasoner"]),
    _preset("moonshot", "Moonshot (Kimi)", "https://api.moonshot.cn/v1", ProtocolKind.OPENAI,
            ["moonshot-v1-8k", "moonshot-v1-32k"]),
    _preset("zhipu", "Zhipu GLM", "https://open.bigmodel.cn/api/paas/v4", ProtocolKind.OPENAI,
            ["glm-4-flash", "glm-4-plus"]),
    _preset("qwen", "Qwen (DashScope)", "https://dashscope.aliyuncs.com/compatible-mode/v1", ProtocolKind.OPENAI,
            ["qwen-turbo", "qwen-plus", "qwen-max"]),
    _preset("groq", "Groq", "https://api.groq.com/openai/v1", ProtocolKind.OPENAI,
            ["llama-3.1-8b-instant", "llama-3.3-70b-versatile"]),
    _preset("mistral", "Mistral AI", "https://api.mistral.ai/v1", ProtocolKind.OPENAI,
            ["mistral-small-latest", "mistral-large-latest"]),
    _preset("openrouter", "OpenRouter", "https://openrouter.ai/api/v1", ProtocolKind.OPENAI,
            ["openai/gpt-4o-mini", "anthropic/claude-3.5-haiku"]),
    _preset("siliconflow", "SiliconFlow", "https://api.siliconflow.cn/v1", ProtocolKind.OPENAI,
            ["Qwen/Qwen2.5-7B-Instruct", "deepseek-ai/DeepSeek-V3"]),
)


class ProviderCatalog:
    """Builtin presets merged with custom providers (custom entries win on id clash).

    Read-only from the check engine's point of view.
    """

    def __init__(
        self,
        custom: Iterable[ProviderInfo] = (),
        hidden: Iterable[str] = (),
    ) -> None:
        self._providers: dict[str, ProviderInfo] = {p.id: p for p in BUILTIN_PROVIDERS}
        for p in custom:
            if p.id in self._providers:
                log.debug("Custom provider %s overrides builtin preset", p.id)
            self._providers[p.id] = p.model_copy(update={"builtin": False})
        self._hidden = {h.strip().lower() for h in hidden}

    def get(self, provider_id: str) -> ProviderInfo | None:
        return self._providers.get((provider_id or "").strip().lower()) or self._providers.get(provider_id)

    def list(self, *, visible_only: bool = False) -> list[ProviderInfo]:
        providers = list(self._providers.values())
        if visible_only:
            providers = [p for p in providers if p.id.lower() not in self._hidden]
        return providers

    def is_hidden(self, provider_id: str) -> bool:
        return provider_id.lower() in self._hidden

    def resolve(
        self,
        provider_id: str,
        *,
        api_key: str = "",
        base_url: str | None = None,
        model: str | None = None,
        protocol: str | None = None,
    ) -> CheckConfig:
        """Build a CheckConfig from provider defaults plus explicit overrides.

        Unknown provider ids are allowed when base_url is given explicitly.
        """
        info = self.get(provider_id)
        if info is None and not base_url:
            raise ConfigurationError(f"Unknown provider {provider_id!r} and no base URL given.")
        return CheckConfig(
            provider_id=provider_id,
            provider_name=info.name if info else provider_id,
            base_url=base_url or (info.base_url if info else ""),
            api_key=api_key or "",
            model=model or (info.default_model if info else ""),
            protocol=protocol or (info.protocol if info else ProtocolKind.OPENAI.value),
        )
