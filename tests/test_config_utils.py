# tests/test_config_utils.py
"""
Tests for config_utils.py - Configuration loading with YAML support
"""
import dataclasses

import pytest
import yaml

from mdproc.config_utils import (
    ENV_VARS,
    ConfigLoader,
    SyncConfig,
    create_config_template,
    describe_config,
    get_config,
    normalize_dir,
)
from mdproc.errors import ConfigurationError


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    """No MDPROC_* variables and a HOME without ~/.mdproc"""
    for env_var in ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


class TestSyncConfig:
    """Tests for SyncConfig dataclass"""

    def test_default_values(self):
        """Defaults match the wiki backend's conventions"""
        config = SyncConfig()

        assert config.db_path == "./ecommunity.db"
        assert config.destination_root == "sync/"
        assert config.base_path == "http://localhost:3000/static/"
        assert config.poll_interval_ms == 5000
        assert config.poll_interval == 5.0
        assert config.user_agent == ""
        assert config.request_timeout is None

    def test_trailing_slashes_added(self):
        config = SyncConfig(destination_root="data/sync", base_path="http://cdn/static")
        assert config.destination_root == "data/sync/"
        assert config.base_path == "http://cdn/static/"

    def test_immutable(self):
        config = SyncConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.base_path = "http://elsewhere/"

    @pytest.mark.parametrize("kwargs", [
        {"poll_interval_ms": 0},
        {"poll_interval_ms": -5},
        {"destination_root": ""},
        {"base_path": ""},
        {"request_timeout": 0},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ConfigurationError):
            SyncConfig(**kwargs)

    def test_normalize_dir_idempotent(self):
        assert normalize_dir("sync") == "sync/"
        assert normalize_dir("sync/") == "sync/"


class TestConfigLoader:
    """Tests for ConfigLoader class"""

    def test_defaults_when_nothing_configured(self, tmp_path, clean_env):
        config = ConfigLoader(tmp_path).load()
        assert config == SyncConfig()

    def test_load_from_yaml(self, tmp_path, clean_env):
        """Should load config from mdproc.yaml"""
        (tmp_path / "mdproc.yaml").write_text(
            "db_path: /srv/wiki/ecommunity.db\n"
            "destination_root: /srv/wiki/sync\n"
            "poll_interval_ms: 1500\n"
            "user_agent: school-bot\n"
            "notes: kept aside\n"
        )

        loader = ConfigLoader(tmp_path)
        config = loader.load()

        assert config.db_path == "/srv/wiki/ecommunity.db"
        assert config.destination_root == "/srv/wiki/sync/"
        assert config.poll_interval_ms == 1500
        assert config.user_agent == "school-bot"
        assert loader.extra == {"notes": "kept aside"}
        assert loader.sources["poll_interval_ms"] == "mdproc.yaml"

    def test_global_config(self, tmp_path, clean_env):
        (clean_env / ".mdproc").mkdir()
        (clean_env / ".mdproc" / "config.yaml").write_text("user_agent: global-bot\n")

        loader = ConfigLoader(tmp_path)
        config = loader.load()

        assert config.user_agent == "global-bot"
        assert loader.sources["user_agent"] == "global"

    def test_env_overrides_yaml(self, tmp_path, clean_env, monkeypatch):
        (tmp_path / "mdproc.yaml").write_text("poll_interval_ms: 1500\n")
        monkeypatch.setenv("MDPROC_POLL_MS", "250")
        monkeypatch.setenv("MDPROC_TIMEOUT", "12.5")

        config = ConfigLoader(tmp_path).load()

        assert config.poll_interval_ms == 250
        assert config.request_timeout == 12.5

    def test_overrides_win(self, tmp_path, clean_env, monkeypatch):
        monkeypatch.setenv("MDPROC_DIR", "env-sync")

        loader = ConfigLoader(tmp_path)
        config = loader.load({"destination_root": "cli-sync", "base_path": None})

        assert config.destination_root == "cli-sync/"
        assert config.base_path == "http://localhost:3000/static/"
        assert loader.sources["destination_root"] == "cli"

    def test_unknown_override_rejected(self, tmp_path, clean_env):
        with pytest.raises(ConfigurationError):
            ConfigLoader(tmp_path).load({"colour": "blue"})

    def test_bad_number_in_env(self, tmp_path, clean_env, monkeypatch):
        monkeypatch.setenv("MDPROC_POLL_MS", "soon")
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(tmp_path).load()
        assert exc_info.value.context["source"] == "env:MDPROC_POLL_MS"

    def test_malformed_yaml(self, tmp_path, clean_env):
        (tmp_path / "mdproc.yaml").write_text("poll_interval_ms: [1, 2\n")
        with pytest.raises(ConfigurationError):
            ConfigLoader(tmp_path).load()

    def test_yaml_must_be_mapping(self, tmp_path, clean_env):
        (tmp_path / "mdproc.yaml").write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            ConfigLoader(tmp_path).load()


class TestPublicApi:
    def test_get_config(self, tmp_path, clean_env):
        config = get_config(tmp_path, overrides={"poll_interval_ms": 100})
        assert config.poll_interval_ms == 100

    def test_describe_config_reports_sources(self, tmp_path, clean_env, monkeypatch):
        monkeypatch.setenv("MDPROC_USER_AGENT", "env-bot")

        report = describe_config(tmp_path)

        assert report["user_agent"] == {"value": "env-bot", "source": "env:MDPROC_USER_AGENT"}
        assert report["db_path"]["source"] == "default"

    @pytest.mark.parametrize("include_comments", [True, False])
    def test_template_round_trips(self, tmp_path, clean_env, include_comments):
        template = create_config_template(include_comments=include_comments)
        data = yaml.safe_load(template)
        assert data["poll_interval_ms"] == 5000

        (tmp_path / "mdproc.yaml").write_text(template)
        assert get_config(tmp_path) == SyncConfig()
