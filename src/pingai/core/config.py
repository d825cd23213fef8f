"""Configuration loading from .env and YAML."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError

from pingai.core.exceptions import ConfigurationError
from pingai.core.providers import ProviderCatalog, ProviderInfo
from pingai.core.schema import CheckConfig

log = logging.getLogger(__name__)


def _find_project_root(start: Path | None = None) -> Path:
    """Find project root by looking for pyproject.toml upward."""
    current = Path(start or Path.cwd()).resolve()
    for _ in range(10):
        if (current / "pyproject.toml").exists():
            return current
        parent = current.parent
        if parent == current:
            break
        current = parent
    return Path.cwd().resolve()


def api_key_env_name(provider_id: str) -> str:
    """Environment variable holding a provider's key, e.g. ``DEEPSEEK_API_KEY``."""
    return f"{provider_id.upper().replace('-', '_')}_API_KEY"


class TimeoutConfigModel(BaseModel):
    """Per-call time budgets in seconds."""

    ping: float = Field(default=15.0, gt=0)
    chat: float = Field(default=30.0, gt=0)
    stream: float = Field(default=30.0, gt=0)
    models: float = Field(default=15.0, gt=0)
    multi_turn: float = Field(default=30.0, gt=0)


class PromptConfigModel(BaseModel):
    """Prompts sent by the chat, stream and multi-turn checks."""

    chat: str = "Hi, reply with exactly: OK"
    stream: str = "Count from 1 to 5"
    multi_turn_first: str = "Remember this number: 42. Just reply OK."
    multi_turn_followup: str = "What number did I ask you to remember?"
    remembered_token: str = "42"


class BatchConfigModel(BaseModel):
    """Batch section of config."""

    max_workers: int = Field(default=4, ge=1, le=32)


class ProviderConfigModel(BaseModel):
    """Saved per-provider settings; empty fields fall back to provider defaults."""

    api_key: str = ""
    base_url: str = ""
    model: str = ""
    protocol: str = ""


class AppConfig(BaseModel):
    """Full application configuration."""

    timeouts: TimeoutConfigModel = Field(default_factory=TimeoutConfigModel)
    prompts: PromptConfigModel = Field(default_factory=PromptConfigModel)
    batch: BatchConfigModel = Field(default_factory=BatchConfigModel)
    providers: list[ProviderInfo] = Field(default_factory=list)
    provider_configs: dict[str, ProviderConfigModel] = Field(default_factory=dict)
    hidden_providers: list[str] = Field(default_factory=list)
    history_path: str | None = None
    log_level: str = "WARNING"


class ConfigManager:
    """Load and merge configuration from .env and YAML."""

    def __init__(
        self,
        project_root: Path | None = None,
        env_path: Path | None = None,
        config_path: Path | None = None,
    ) -> None:
        self._root = Path(project_root or _find_project_root()).resolve()
        self._env_path = Path(env_path) if env_path else self._root / ".env"
        self._config_path = Path(config_path) if config_path else self._root / "config" / "default.yaml"
        self._config: AppConfig | None = None
        self._env: dict[str, str] = {}

    def load_env(self) -> dict[str, str]:
        """Load .env file into a dict (without modifying os.environ)."""
        if not self._env_path.exists():
            self._env = {}
            return self._env
        try:
            self._env = {k: v for k, v in dotenv_values(self._env_path).items() if v is not None}
            return self._env
        except (OSError, PermissionError) as e:
            log.warning("Failed to read .env file %s: %s", self._env_path, e)
            self._env = {}
            return self._env

    def load_yaml(self) -> dict[str, Any]:
        """Load YAML config file if it exists."""
        if not self._config_path.exists():
            return {}
        try:
            with open(self._config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, PermissionError) as e:
            log.warning("Failed to read config file %s: %s", self._config_path, e)
            return {}
        except yaml.YAMLError as e:
            log.warning("Malformed YAML in %s: %s", self._config_path, e)
            return {}
        if not isinstance(data, dict):
            log.warning("Ignoring config file %s: top level is not a mapping", self._config_path)
            return {}
        return data

    def load(self) -> AppConfig:
        """Load .env and YAML, merge with defaults, return AppConfig."""
        self.load_env()
        config_dict = dict(self.load_yaml())

        # Environment variables (.env first, then process env) override YAML values
        if history_path := self._env_value("PINGAI_HISTORY_PATH"):
            config_dict["history_path"] = history_path
        if log_level := self._env_value("PINGAI_LOG_LEVEL"):
            config_dict["log_level"] = log_level
        if max_workers := self._env_value("PINGAI_MAX_WORKERS"):
            batch = dict(config_dict.get("batch") or {})
            batch["max_workers"] = max_workers
            config_dict["batch"] = batch

        try:
            self._config = AppConfig(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {self._config_path}: {e}") from e
        return self._config

    def _env_value(self, name: str) -> str:
        return self.env.get(name) or os.environ.get(name, "")

    @property
    def config(self) -> AppConfig:
        """Return loaded config; load if not yet loaded."""
        if self._config is None:
            self.load()
        if self._config is None:
            raise RuntimeError("ConfigManager.load() failed to produce a config")
        return self._config

    @property
    def env(self) -> dict[str, str]:
        """Return loaded env dict."""
        if not self._env and self._env_path.exists():
            self.load_env()
        return self._env

    @property
    def project_root(self) -> Path:
        return self._root

    @property
    def history_path(self) -> Path:
        if self.config.history_path:
            return Path(self.config.history_path).expanduser()
        return Path.home() / ".pingai" / "history.jsonl"

    def catalog(self) -> ProviderCatalog:
        """Provider registry built from presets, custom providers and hidden ids."""
        return ProviderCatalog(self.config.providers, self.config.hidden_providers)

    def api_key_for(self, provider_id: str) -> str:
        """Saved key, else <ID>_API_KEY from .env, else from the process environment."""
        saved = self.config.provider_configs.get(provider_id)
        if saved and saved.api_key:
            return saved.api_key
        return self._env_value(api_key_env_name(provider_id))

    def get_check_config(
        self,
        provider_id: str,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        protocol: str | None = None,
    ) -> CheckConfig:
        """Resolve a CheckConfig: explicit arguments > saved provider config > provider defaults."""
        saved = self.config.provider_configs.get(provider_id) or ProviderConfigModel()
        return self.catalog().resolve(
            provider_id,
            api_key=api_key if api_key is not None else self.api_key_for(provider_id),
            base_url=base_url or saved.base_url or None,
            model=model or saved.model or None,
            protocol=protocol or saved.protocol or None,
        )
