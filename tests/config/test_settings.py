"""Tests for settings and environment selection."""

import pytest
from converge.config import load_settings, resolve_environment
from converge.utils.errors import ConfigError


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """No user or project config leaks into these tests."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("CONVERGE_ENV", raising=False)
    monkeypatch.chdir(work)
    return work


class TestLoadSettings:
    """Test layered settings."""
    
    def test_packaged_defaults(self):
        """Defaults come from the bundled YAML."""
        settings = load_settings()
        assert settings.executor.max_workers == 4
        assert settings.executor.max_attempts == 3
        assert settings.state.directory == ".converge/state"
        assert settings.providers.default == "simulated"
        assert settings.providers.options["local_file"]["root"] == ".converge/resources"
    
    def test_project_config_overrides(self, isolated):
        """./.converge/config.yaml is merged over the defaults."""
        (isolated / ".converge").mkdir()
        (isolated / ".converge" / "config.yaml").write_text(
            "executor:\n  max_workers: 8\nproviders:\n  types:\n    bucket: local_file\n", encoding="utf-8"
        )
        settings = load_settings()
        assert settings.executor.max_workers == 8
        assert settings.executor.max_attempts == 3
        assert settings.providers.kind_for("bucket") == "local_file"
        assert settings.providers.kind_for("vpc") == "simulated"
    
    def test_explicit_config_wins(self, isolated):
        """--config is applied last."""
        path = isolated / "ci.yaml"
        path.write_text("executor:\n  action_timeout: null\n  max_attempts: 1\n", encoding="utf-8")
        settings = load_settings(str(path))
        assert settings.executor.action_timeout is None
        assert settings.executor.max_attempts == 1
    
    def test_invalid_values(self, isolated):
        """Values failing validation raise ConfigError."""
        path = isolated / "bad.yaml"
        path.write_text("executor:\n  max_workers: 0\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_settings(str(path))
    
    def test_missing_explicit_file(self):
        """A named config file must exist."""
        with pytest.raises(ConfigError, match="not found"):
            load_settings("nope.yaml")
    
    def test_resource_override_beats_type_mapping(self):
        """A per-resource provider wins over the type mapping."""
        settings = load_settings()
        assert settings.providers.kind_for("vpc", "local_file") == "local_file"


class TestResolveEnvironment:
    """Test environment selection priority."""
    
    def test_default(self):
        """Without any selector the environment is development."""
        assert resolve_environment() == "development"
    
    def test_override_normalized(self):
        """The CLI value is lower-cased."""
        assert resolve_environment("Prod") == "prod"
    
    def test_env_var(self, monkeypatch):
        """CONVERGE_ENV is honoured."""
        monkeypatch.setenv("CONVERGE_ENV", "staging")
        assert resolve_environment() == "staging"
    
    def test_env_file_beats_env_var(self, isolated, monkeypatch):
        """.converge-env.yaml takes priority over CONVERGE_ENV."""
        monkeypatch.setenv("CONVERGE_ENV", "staging")
        (isolated / ".converge-env.yaml").write_text("environment:\n  name: qa\n", encoding="utf-8")
        assert resolve_environment() == "qa"
    
    def test_invalid_name(self):
        """Names that cannot be file names are rejected."""
        with pytest.raises(ConfigError, match="Invalid environment name"):
            resolve_environment("../prod")
