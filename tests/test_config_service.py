"""Tests for the layered configuration service and secrets management."""

import stat
from pathlib import Path

import pytest

from devprofile.core.config_service import (
    AIConfig,
    ConfigService,
    ProviderSettings,
    _deep_merge,
    _get_nested,
    _global_config_path,
    _project_config_path,
    _read_toml,
    _set_nested,
    _write_toml,
    get_config_service,
    reset_config_service,
)
from devprofile.core.secrets import (
    _credentials_path,
    _read_credentials,
    _write_credentials,
    get_key,
    list_stored_providers,
    remove_key,
    store_key,
)

# ─── Helper utilities ───


class TestDeepMerge:
    def test_nested_merge(self):
        base = {"providers": {"default": "openai", "openai": {"model": "old"}}}
        override = {"providers": {"openai": {"model": "new"}}}
        result = _deep_merge(base, override)
        assert result["providers"]["default"] == "openai"
        assert result["providers"]["openai"]["model"] == "new"

    def test_does_not_mutate_base(self):
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert "b" not in base


class TestGetSetNested:
    def test_get_dotted(self):
        data = {"providers": {"gemini": {"model": "flash"}}}
        assert _get_nested(data, "providers.gemini.model") == "flash"

    def test_get_missing_returns_default(self):
        assert _get_nested({"a": 1}, "b.c", "fallback") == "fallback"

    def test_set_dotted_creates_intermediates(self):
        data = {}
        _set_nested(data, "github.api_url", "https://ghe.example.com/api/v3")
        assert data["github"]["api_url"] == "https://ghe.example.com/api/v3"


class TestTomlReadWrite:
    def test_write_and_read_roundtrip(self, tmp_path):
        path = tmp_path / "deep" / "config.toml"
        _write_toml({"providers": {"default": "anthropic"}}, path)
        assert _read_toml(path)["providers"]["default"] == "anthropic"

    def test_read_missing_file(self, tmp_path):
        assert _read_toml(tmp_path / "nonexistent.toml") == {}

    def test_read_invalid_file_returns_empty(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("this is = = not toml")
        assert _read_toml(path) == {}


# ─── ConfigService ───


class TestConfigService:
    def test_defaults_loaded(self):
        svc = ConfigService()
        resolved = svc.resolve()
        assert resolved.get("providers.default") == "openai"
        assert resolved.get("providers.openai.model") == "gpt-4o"
        assert resolved.get("providers.anthropic.model") == "claude-3-5-sonnet-20241022"
        assert resolved.get("providers.gemini.model") == "gemini-2.0-flash-exp"
        assert resolved.get("github.api_url") == "https://api.github.com"

    def test_global_config_override(self):
        _write_toml({"providers": {"default": "gemini"}}, _global_config_path())
        assert ConfigService().get_provider_name() == "gemini"

    def test_project_config_overrides_global(self):
        _write_toml({"providers": {"default": "gemini"}}, _global_config_path())
        _write_toml({"providers": {"default": "anthropic"}}, _project_config_path())
        assert ConfigService().get_provider_name() == "anthropic"

    def test_env_var_overrides_config(self, monkeypatch):
        _write_toml({"providers": {"default": "gemini"}}, _global_config_path())
        monkeypatch.setenv("AI_PROVIDER", "anthropic")
        assert ConfigService().get_provider_name() == "anthropic"

    def test_devprofile_provider_env_var(self, monkeypatch):
        monkeypatch.setenv("DEVPROFILE_PROVIDER", "Gemini")
        assert ConfigService().get_provider_name() == "gemini"

    def test_env_model_override(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_MODEL", "claude-opus")
        assert ConfigService().get_provider_model("anthropic") == "claude-opus"

    def test_get_ai_config_snapshot(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("OPENAI_BASE_URL", "http://localhost:8080/v1")
        config = ConfigService().get_ai_config()
        assert isinstance(config, AIConfig)
        assert config.provider == "openai"
        assert config.settings_for("openai") == ProviderSettings(
            api_key="sk-test", model="gpt-4o", base_url="http://localhost:8080/v1",
        )
        assert config.settings_for("anthropic").api_key == ""
        assert config.settings_for("anthropic").base_url is None

    def test_settings_for_unknown_provider(self):
        config = AIConfig(provider="openai")
        assert config.settings_for("nope") == ProviderSettings()

    def test_github_settings_token_priority(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "from-env")
        svc = ConfigService()
        assert svc.get_github_settings().token == "from-env"
        assert svc.get_github_settings("explicit").token == "explicit"

    def test_github_settings_strip_trailing_slash(self, monkeypatch):
        monkeypatch.setenv("GITHUB_API_URL", "https://ghe.example.com/api/v3/")
        settings = ConfigService().get_github_settings()
        assert settings.api_url == "https://ghe.example.com/api/v3"
        assert settings.user_agent == "DevProfile-AI"
        assert settings.timeout == 30.0

    def test_data_dir_from_env(self, devprofile_home):
        assert ConfigService().get_data_dir() == Path(str(devprofile_home))

    def test_data_dir_default(self, monkeypatch):
        monkeypatch.delenv("DEVPROFILE_HOME")
        assert ConfigService().get_data_dir() == Path.home() / ".devprofile"

    def test_set_global(self):
        svc = ConfigService()
        svc.set_global("providers.default", "anthropic")
        assert _read_toml(_global_config_path())["providers"]["default"] == "anthropic"
        assert svc._resolved is None
        assert svc.get_provider_name() == "anthropic"

    def test_init_project_config(self):
        path = ConfigService().init_project_config()
        assert path == _project_config_path()
        data = _read_toml(path)
        assert data["providers"]["default"] == "openai"
        assert "storage" in data

    def test_init_project_config_already_exists(self):
        _project_config_path().write_text("")
        with pytest.raises(FileExistsError):
            ConfigService().init_project_config()

    def test_show_reports_sources(self):
        _write_toml({"providers": {"default": "gemini"}}, _global_config_path())
        info = ConfigService().show()
        assert info["sources"]["global_config"] == str(_global_config_path())
        assert info["sources"]["project_config"] is None
        assert info["resolved"]["providers"]["default"] == "gemini"

    def test_config_paths(self):
        paths = ConfigService().config_paths()
        assert set(paths) == {"global_config", "project_config", "credentials", "data_dir"}
        assert "not found" in paths["global_config"]


class TestSingleton:
    def test_get_returns_same_instance(self):
        assert get_config_service() is get_config_service()

    def test_reset_creates_new_instance(self):
        first = get_config_service()
        reset_config_service()
        assert get_config_service() is not first


# ─── Secrets ───


class TestSecrets:
    def test_store_falls_back_to_file(self):
        assert store_key("openai", "sk-stored") == "file"
        assert _read_credentials()["OPENAI_API_KEY"] == "sk-stored"

    def test_credentials_file_permissions(self):
        _write_credentials({"GITHUB_TOKEN": "ghp_x"})
        mode = stat.S_IMODE(_credentials_path().stat().st_mode)
        assert mode == 0o600

    def test_env_wins_over_file(self, monkeypatch):
        store_key("anthropic", "from-file")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "from-env")
        assert get_key("anthropic") == "from-env"

    def test_get_from_file(self):
        store_key("gemini", "g-key")
        assert get_key("gemini") == "g-key"

    def test_get_unknown_provider(self):
        assert get_key("cohere") is None

    def test_store_unknown_provider_raises(self):
        with pytest.raises(ValueError):
            store_key("cohere", "x")

    def test_remove_key(self):
        store_key("github", "ghp_x")
        assert remove_key("github") is True
        assert get_key("github") is None
        assert remove_key("github") is False

    def test_list_stored_providers(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk")
        store_key("github", "ghp_x")
        status = list_stored_providers()
        assert status["openai"] == "env"
        assert status["github"] == "file"
        assert status["gemini"] == "not set"
