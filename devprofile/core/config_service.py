"""Layered configuration service for devprofile.

Priority (highest to lowest):
1. CLI flags (--provider, --model), exported to the environment before service init
2. Environment variables (DEVPROFILE_*, AI_PROVIDER, *_MODEL, ...)
3. Project config (.devprofile.toml in current directory)
4. Global config (~/.config/devprofile/config.toml)
5. Built-in defaults

The analysis engine never reads this service directly. Callers build an
immutable AIConfig with get_ai_config() and hand it to the engine.
"""
from __future__ import annotations

import copy
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomli_w

from devprofile.core import secrets

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger("devprofile.config")

AI_PROVIDERS = ("openai", "anthropic", "gemini")

DEFAULTS: dict[str, Any] = {
    "providers": {
        "default": "openai",
        "openai": {
            "model": "gpt-4o",
            "base_url": "",
        },
        "anthropic": {
            "model": "claude-3-5-sonnet-20241022",
        },
        "gemini": {
            "model": "gemini-2.0-flash-exp",
        },
    },
    "github": {
        "api_url": "https://api.github.com",
        "user_agent": "DevProfile-AI",
        "timeout": 30,
    },
    "storage": {
        "data_dir": "",
    },
}

# Mapping of env vars to config paths
ENV_VAR_MAP = {
    "AI_PROVIDER": "providers.default",
    "DEVPROFILE_PROVIDER": "providers.default",
    "OPENAI_MODEL": "providers.openai.model",
    "OPENAI_BASE_URL": "providers.openai.base_url",
    "ANTHROPIC_MODEL": "providers.anthropic.model",
    "GEMINI_MODEL": "providers.gemini.model",
    "GITHUB_API_URL": "github.api_url",
    "DEVPROFILE_HOME": "storage.data_dir",
}


def _global_config_dir() -> Path:
    """Return the global config directory: ~/.config/devprofile/."""
    return Path.home() / ".config" / "devprofile"


def _global_config_path() -> Path:
    return _global_config_dir() / "config.toml"


def _project_config_path() -> Path:
    """Return the project config file path (.devprofile.toml in cwd)."""
    return Path.cwd() / ".devprofile.toml"


def _read_toml(path: Path) -> dict:
    """Read a TOML file, returning empty dict if missing or unreadable."""
    if not path.is_file():
        return {}
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Failed to read %s: %s", path, e)
        return {}


def _write_toml(data: dict, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        tomli_w.dump(data, f)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base (override wins)."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _get_nested(data: dict, dotted_key: str, default: Any = None) -> Any:
    """Get a value from a nested dict using dotted key notation."""
    current = data
    for key in dotted_key.split("."):
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def _set_nested(data: dict, dotted_key: str, value: Any) -> None:
    """Set a value in a nested dict using dotted key notation."""
    keys = dotted_key.split(".")
    current = data
    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


@dataclass(frozen=True)
class ProviderSettings:
    """Credentials and model selection for one AI provider."""
    api_key: str = ""
    model: str = ""
    base_url: Optional[str] = None


@dataclass(frozen=True)
class AIConfig:
    """Explicit provider configuration handed to the analysis engine."""
    provider: str
    settings: dict[str, ProviderSettings] = field(default_factory=dict)

    def settings_for(self, name: str) -> ProviderSettings:
        return self.settings.get(name, ProviderSettings())


@dataclass(frozen=True)
class GitHubSettings:
    api_url: str = "https://api.github.com"
    user_agent: str = "DevProfile-AI"
    timeout: float = 30.0
    token: Optional[str] = None


@dataclass
class ResolvedConfig:
    """Fully resolved configuration after merging all layers."""
    data: dict = field(default_factory=dict)
    global_config_path: Optional[Path] = None
    project_config_path: Optional[Path] = None

    def get(self, dotted_key: str, default: Any = None) -> Any:
        return _get_nested(self.data, dotted_key, default)


class ConfigService:
    """Layered configuration service."""

    def __init__(self):
        self._resolved: Optional[ResolvedConfig] = None

    def resolve(self, force: bool = False) -> ResolvedConfig:
        """Resolve the full config from all layers."""
        if self._resolved is not None and not force:
            return self._resolved

        merged = copy.deepcopy(DEFAULTS)

        global_path = _global_config_path()
        global_data = _read_toml(global_path)
        if global_data:
            merged = _deep_merge(merged, global_data)
            logger.debug("Loaded global config from %s", global_path)

        project_path = _project_config_path()
        project_data = _read_toml(project_path)
        if project_data:
            merged = _deep_merge(merged, project_data)
            logger.debug("Loaded project config from %s", project_path)

        for env_var, config_path in ENV_VAR_MAP.items():
            env_value = os.environ.get(env_var)
            if env_value:
                _set_nested(merged, config_path, env_value)

        self._resolved = ResolvedConfig(
            data=merged,
            global_config_path=global_path if global_path.is_file() else None,
            project_config_path=project_path if project_path.is_file() else None,
        )
        return self._resolved

    def get(self, dotted_key: str, default: Any = None) -> Any:
        return self.resolve().get(dotted_key, default)

    def get_provider_name(self) -> str:
        return str(self.get("providers.default", "openai")).strip().lower()

    def get_provider_model(self, provider: Optional[str] = None) -> str:
        provider = provider or self.get_provider_name()
        return self.get(f"providers.{provider}.model", "")

    def get_ai_config(self) -> AIConfig:
        """Snapshot provider selection, models and keys into an AIConfig."""
        settings = {}
        for name in AI_PROVIDERS:
            settings[name] = ProviderSettings(
                api_key=secrets.get_key(name) or "",
                model=self.get_provider_model(name),
                base_url=self.get(f"providers.{name}.base_url") or None,
            )
        return AIConfig(provider=self.get_provider_name(), settings=settings)

    def get_github_settings(self, token: Optional[str] = None) -> GitHubSettings:
        """Build GitHub client settings; an explicit token wins over stored ones."""
        return GitHubSettings(
            api_url=str(self.get("github.api_url", DEFAULTS["github"]["api_url"])).rstrip("/"),
            user_agent=self.get("github.user_agent", DEFAULTS["github"]["user_agent"]),
            timeout=float(self.get("github.timeout", DEFAULTS["github"]["timeout"])),
            token=token or secrets.get_key("github"),
        )

    def get_data_dir(self) -> Path:
        """Get the data directory used by the local analysis store."""
        config_dir = self.get("storage.data_dir", "")
        if config_dir:
            return Path(config_dir).expanduser()
        return Path.home() / ".devprofile"

    def set_global(self, dotted_key: str, value: Any) -> None:
        """Set a value in the global config file."""
        path = _global_config_path()
        data = _read_toml(path)
        _set_nested(data, dotted_key, value)
        _write_toml(data, path)
        self._resolved = None
        logger.info("Set %s = %s in %s", dotted_key, value, path)

    def init_project_config(self) -> Path:
        """Create a .devprofile.toml in the current directory."""
        path = _project_config_path()
        if path.exists():
            raise FileExistsError(f"Project config already exists: {path}")

        data = {
            "providers": {"default": self.get_provider_name()},
            "storage": {"data_dir": "./devprofile-data"},
        }
        _write_toml(data, path)
        logger.info("Created project config: %s", path)
        return path

    def show(self) -> dict:
        """Return the resolved config and the files it came from."""
        resolved = self.resolve(force=True)
        return {
            "resolved": resolved.data,
            "sources": {
                "global_config": str(resolved.global_config_path) if resolved.global_config_path else None,
                "project_config": str(resolved.project_config_path) if resolved.project_config_path else None,
            },
        }

    def config_paths(self) -> dict[str, str]:
        """Return all config file locations and their existence status."""
        global_path = _global_config_path()
        project_path = _project_config_path()
        credentials_path = _global_config_dir() / "credentials"
        data_dir = self.get_data_dir()
        return {
            "global_config": f"{global_path} ({'exists' if global_path.is_file() else 'not found'})",
            "project_config": f"{project_path} ({'exists' if project_path.is_file() else 'not found'})",
            "credentials": f"{credentials_path} ({'exists' if credentials_path.is_file() else 'not found'})",
            "data_dir": f"{data_dir} ({'exists' if data_dir.exists() else 'not found'})",
        }


# Module-level singleton
_config_service: Optional[ConfigService] = None


def get_config_service() -> ConfigService:
    """Get or create the global ConfigService instance."""
    global _config_service
    if _config_service is None:
        _config_service = ConfigService()
    return _config_service


def reset_config_service() -> None:
    """Reset the global config service (useful for testing)."""
    global _config_service
    _config_service = None
