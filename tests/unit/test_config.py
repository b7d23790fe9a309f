"""Tests for environment-driven configuration"""
import importlib
import pytest

import care_tracker.config as config


@pytest.fixture
def reload_config(monkeypatch):
    """Reload care_tracker.config after changing the environment"""
    monkeypatch.setattr("dotenv.load_dotenv", lambda *args, **kwargs: False)

    def _reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(config)

    yield _reload
    monkeypatch.undo()
    importlib.reload(config)


class TestConfig:
    """Test configuration constants and validation"""

    def test_defaults(self, reload_config, monkeypatch):
        """Test default values"""
        for key in ("CUSTOM_CATEGORY_NAME", "DB_POOL_MIN_SIZE", "DB_POOL_MAX_SIZE", "DB_APPLY_SCHEMA", "API_PORT"):
            monkeypatch.delenv(key, raising=False)
        cfg = reload_config()

        assert cfg.CUSTOM_CATEGORY_NAME == "Custom"
        assert cfg.DB_POOL_MIN_SIZE == 2
        assert cfg.DB_POOL_MAX_SIZE == 10
        assert cfg.DB_APPLY_SCHEMA is False
        assert cfg.API_PORT == 8080

    def test_environment_overrides(self, reload_config):
        """Test that environment variables are read"""
        cfg = reload_config(
            DATABASE_URL="postgresql://user:pass@db:5432/tracker",
            CUSTOM_CATEGORY_NAME="Personal",
            DB_APPLY_SCHEMA="true",
            API_PORT="9000",
        )

        assert cfg.DATABASE_URL == "postgresql://user:pass@db:5432/tracker"
        assert cfg.CUSTOM_CATEGORY_NAME == "Personal"
        assert cfg.DB_APPLY_SCHEMA is True
        assert cfg.API_PORT == 9000

    def test_validate_config_accepts_defaults(self, reload_config):
        """Test that a sane configuration validates"""
        cfg = reload_config(LOG_LEVEL="INFO", DB_POOL_MIN_SIZE="1", DB_POOL_MAX_SIZE="5")

        cfg.validate_config()

    @pytest.mark.parametrize("env", [
        {"DATABASE_URL": ""},
        {"DB_POOL_MIN_SIZE": "5", "DB_POOL_MAX_SIZE": "2"},
        {"CUSTOM_CATEGORY_NAME": "   "},
        {"LOG_LEVEL": "LOUD"},
    ])
    def test_validate_config_rejects_invalid(self, reload_config, env):
        """Test that invalid settings raise ValueError"""
        cfg = reload_config(**env)

        with pytest.raises(ValueError):
            cfg.validate_config()
