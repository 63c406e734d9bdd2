"""
Tests for brim/config.py configuration management.

Tests the hierarchical configuration system with sensible defaults,
including file loading, environment variables, and path expansion.
"""
import os
import pytest
import tomli
from pathlib import Path

from brim.config import BrimConfig, get_config, init_config


class TestBrimConfigDefaults:
    """Test default configuration values."""

    def test_default_database_is_brim_db(self):
        """Default database should be 'brim.db'."""
        assert BrimConfig().database == "brim.db"

    def test_default_output_format_is_table(self):
        assert BrimConfig().output_format == "table"

    def test_default_batch_size_is_500(self):
        assert BrimConfig().batch_size == 500

    def test_default_browser_roots_is_empty_dict(self):
        """Browser roots fall back to each OS's conventional locations."""
        assert BrimConfig().browser_roots == {}

    def test_default_limit_is_unbounded(self):
        assert BrimConfig().get_limit() is None

    def test_default_temp_dir_is_system(self):
        assert BrimConfig().get_temp_dir() is None


class TestConfigLoading:
    """Test configuration loading from files."""

    def test_user_config(self, clean_brim_env):
        user_dir = Path(os.environ["HOME"]) / ".config" / "brim"
        user_dir.mkdir(parents=True)
        (user_dir / "config.toml").write_text('database = "user.db"\nbatch_size = 50\n')

        config = BrimConfig.load()
        assert config.database == "user.db"
        assert config.batch_size == 50

    def test_local_config_overrides_user(self, clean_brim_env):
        user_dir = Path(os.environ["HOME"]) / ".config" / "brim"
        user_dir.mkdir(parents=True)
        (user_dir / "config.toml").write_text('database = "user.db"\n')
        (clean_brim_env / "brim.toml").write_text('database = "local.db"\n')

        assert BrimConfig.load().database == "local.db"

    def test_explicit_file(self, clean_brim_env):
        path = clean_brim_env / "custom.toml"
        path.write_text('default_limit = 100\n\n[browser_roots]\nchrome = "/opt/chrome"\n')

        config = BrimConfig.load(path)
        assert config.get_limit() == 100
        assert config.browser_roots == {"chrome": "/opt/chrome"}

    def test_unknown_keys_are_ignored(self, clean_brim_env):
        (clean_brim_env / "brim.toml").write_text('not_a_setting = 1\n')
        assert not hasattr(BrimConfig.load(), "not_a_setting")


class TestEnvironmentVariables:
    """Test BRIM_* environment overrides."""

    def test_string_int_and_bool(self, monkeypatch):
        monkeypatch.setenv("BRIM_DATABASE", "env.db")
        monkeypatch.setenv("BRIM_BATCH_SIZE", "25")
        monkeypatch.setenv("BRIM_DATABASE_ECHO", "yes")

        config = BrimConfig.load()
        assert config.database == "env.db"
        assert config.batch_size == 25
        assert config.database_echo is True

    def test_browser_roots(self, monkeypatch):
        monkeypatch.setenv("BRIM_BROWSER_ROOTS", "chrome=/a, firefox = /b,junk")
        assert BrimConfig.load().browser_roots == {"chrome": "/a", "firefox": "/b"}

    def test_env_overrides_file(self, clean_brim_env, monkeypatch):
        (clean_brim_env / "brim.toml").write_text('output_format = "json"\n')
        monkeypatch.setenv("BRIM_OUTPUT_FORMAT", "table")
        assert BrimConfig.load().output_format == "table"


class TestPaths:
    def test_expands_home(self, clean_brim_env):
        (clean_brim_env / "brim.toml").write_text(
            'database = "~/data/brim.db"\n\n[browser_roots]\nfirefox = "~/ff"\n'
        )
        config = BrimConfig.load()
        home = os.environ["HOME"]
        assert config.database == os.path.join(home, "data/brim.db")
        assert config.browser_roots["firefox"] == os.path.join(home, "ff")

    def test_database_url(self, clean_brim_env):
        config = BrimConfig(database="store.db")
        assert config.get_database_url() == f"sqlite:///{clean_brim_env / 'store.db'}"
        assert config.is_sqlite()

        config.database_url = "postgresql://localhost/brim"
        assert config.get_database_url() == "postgresql://localhost/brim"
        assert not config.is_sqlite()


class TestSave:
    def test_save_round_trip(self, tmp_path):
        path = tmp_path / "saved" / "config.toml"
        config = BrimConfig(database="saved.db", browser_roots={"edge": "/e"})
        config.save(path)

        with open(path, "rb") as f:
            data = tomli.load(f)
        assert data["database"] == "saved.db"
        assert data["browser_roots"] == {"edge": "/e"}
        assert "database_url" not in data

        loaded = BrimConfig.load(path)
        assert loaded.database == "saved.db"
        assert loaded.browser_roots == {"edge": "/e"}


class TestGlobalConfig:
    def test_get_config_is_cached(self):
        assert get_config() is get_config()
        assert get_config(reload=True) is not None

    def test_init_config_overrides(self, tmp_path):
        path = tmp_path / "extra.toml"
        path.write_text("batch_size = 7\n")
        config = init_config(database="cli.db", output_format="json", config_file=path, log_level=None)

        assert config.database == "cli.db"
        assert config.output_format == "json"
        assert config.batch_size == 7
        assert config.log_level == "INFO"
        assert get_config() is config
