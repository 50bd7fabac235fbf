"""
Tests for configuration system.
"""

import os

import pytest

from bug_replay.config import (
    ConfigLoader,
    ReplaySettings,
    Settings,
    StorageSettings,
    get_settings,
    load_config,
    reset_settings,
)
from bug_replay.exceptions import ConfigurationError


ENV_NAMES = ("BUG_REPLAY__REPLAY__MAX_ATTEMPTS", "BUG_REPLAY__REPLAY__PACING", "BUG_REPLAY__STORAGE__BACKEND")


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run in an empty directory with no BUG_REPLAY__ variables."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(ConfigLoader, "DEFAULT_CONFIG_PATHS", [tmp_path / "config.yaml"])
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield tmp_path
    reset_settings()
    # load_dotenv writes straight to os.environ
    for name in ENV_NAMES:
        os.environ.pop(name, None)


class TestSettings:
    """Test the Settings classes."""
    
    def test_default_settings(self):
        """Test default settings are created correctly."""
        settings = Settings()
        
        assert settings.replay.max_attempts == 3
        assert settings.replay.retry_backoff_ms == 500
        assert settings.replay.pacing == "fixed"
        assert settings.replay.step_delay_ms == 500
        assert settings.storage.backend == "http"
        assert settings.storage.persist_retries == 0
        assert settings.browser.headless is True
    
    def test_merge_with_overrides(self):
        """Test merging settings with overrides."""
        settings = Settings()
        new_settings = settings.merge_with({
            "browser": {"headless": False},
            "replay": {"pacing": "relative"},
        })
        
        assert new_settings.browser.headless is False
        assert new_settings.replay.pacing == "relative"
        # Other settings should remain default
        assert new_settings.replay.max_attempts == 3
        assert settings.browser.headless is True
    
    def test_replay_settings_validation(self):
        """Test validation of replay settings."""
        assert ReplaySettings(max_attempts=5).max_attempts == 5
        
        with pytest.raises(ValueError):
            ReplaySettings(max_attempts=0)
        
        with pytest.raises(ValueError):
            ReplaySettings(pacing="instant")
    
    def test_storage_settings_validation(self):
        """Test validation of storage settings."""
        with pytest.raises(ValueError):
            StorageSettings(backend="s3")
        
        with pytest.raises(ValueError):
            StorageSettings(persist_retries=-1)


class TestConfigLoader:
    """Test loading from files and the environment."""
    
    def test_environment_variables(self, isolated, monkeypatch):
        """Nested settings are read from BUG_REPLAY__ variables."""
        monkeypatch.setenv("BUG_REPLAY__REPLAY__MAX_ATTEMPTS", "7")
        monkeypatch.setenv("BUG_REPLAY__STORAGE__BACKEND", "file")
        
        settings = load_config()
        
        assert settings.replay.max_attempts == 7
        assert settings.storage.backend == "file"
    
    def test_yaml_file(self, isolated):
        """A config file sets values below the overrides."""
        config = isolated / "custom.yaml"
        config.write_text("replay:\n  pacing: relative\n  step_delay_ms: 250\nstorage:\n  backend: file\n")
        
        settings = load_config(config_path=config, storage={"backend": "http"})
        
        assert settings.replay.pacing == "relative"
        assert settings.replay.step_delay_ms == 250
        assert settings.storage.backend == "http"
    
    def test_sources_are_recorded(self, isolated):
        config = isolated / "config.yaml"
        config.write_text("storage:\n  backend: file\n")
        (isolated / ".env").write_text("BUG_REPLAY__REPLAY__PACING=relative\n")
        
        loader = ConfigLoader()
        settings = loader.load()
        
        assert loader.sources == [str(config), ".env"]
        assert settings.storage.backend == "file"
        assert settings.replay.pacing == "relative"
    
    def test_default_config_path(self, isolated):
        (isolated / "config.yaml").write_text("replay:\n  max_attempts: 4\n")
        
        assert load_config().replay.max_attempts == 4
    
    def test_environment_beats_config_file(self, isolated, monkeypatch):
        (isolated / "config.yaml").write_text("replay:\n  max_attempts: 4\n  pacing: relative\n")
        monkeypatch.setenv("BUG_REPLAY__REPLAY__MAX_ATTEMPTS", "6")
        
        settings = load_config()
        
        assert settings.replay.max_attempts == 6
        assert settings.replay.pacing == "relative"
    
    def test_missing_explicit_config_file(self, isolated):
        with pytest.raises(ConfigurationError):
            load_config(config_path=isolated / "absent.yaml")
    
    def test_invalid_yaml(self, isolated):
        config = isolated / "broken.yaml"
        config.write_text("replay: [unclosed\n")
        
        with pytest.raises(ConfigurationError):
            load_config(config_path=config)
    
    def test_yaml_must_be_a_mapping(self, isolated):
        config = isolated / "list.yaml"
        config.write_text("- a\n- b\n")
        
        with pytest.raises(ConfigurationError):
            load_config(config_path=config)
    
    def test_env_file(self, isolated, monkeypatch):
        env_file = isolated / "replay.env"
        env_file.write_text("BUG_REPLAY__REPLAY__PACING=relative\n")
        
        settings = load_config(env_file=env_file)
        
        assert settings.replay.pacing == "relative"
    
    def test_global_settings_are_cached(self, isolated):
        first = get_settings()
        
        assert get_settings() is first
        reset_settings()
        assert get_settings() is not first
