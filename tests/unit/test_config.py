"""Tests for configuration loading."""

import json

import pytest
from pydantic import ValidationError

from audience_manager.config import AudienceManagerConfig, load_config
from audience_manager.config import loader


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Ignore config files and environment of the machine running the tests."""
    monkeypatch.setattr(loader, "CONFIG_SEARCH_PATHS", [])
    monkeypatch.delenv("CM360_NETWORK_ID", raising=False)
    monkeypatch.delenv("CM360_ADVERTISER_ID", raising=False)


class TestConfig:
    """Tests for configuration models and loading."""

    def test_defaults(self):
        """Test default layout values."""
        config = load_config()
        assert config.runner.max_concurrency == 10
        assert config.audiences.sheet_name == "Audiences"
        assert config.audiences.default_life_span == 90
        assert config.rules.separator == ","
        assert config.account.network_id is None

    def test_load_file_with_overrides(self, tmp_path):
        """Test CLI values take precedence over the file."""
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "account": {"network_id": "1", "advertiser_id": "2"},
                    "runner": {"max_concurrency": 5},
                    "rules": {"separator": "|"},
                    "unknown_section": {},
                }
            ),
            encoding="utf-8",
        )

        config = load_config(config_path=path, concurrency=3, advertiser_id="9")

        assert config.runner.max_concurrency == 3
        assert config.account.network_id == "1"
        assert config.account.advertiser_id == "9"
        assert config.rules.separator == "|"

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        """Test account IDs from the environment beat the file but not the CLI."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"account": {"network_id": "1"}}), encoding="utf-8")
        monkeypatch.setenv("CM360_NETWORK_ID", "env-network")
        monkeypatch.setenv("CM360_ADVERTISER_ID", "env-advertiser")

        config = load_config(config_path=path, advertiser_id="cli")

        assert config.account.network_id == "env-network"
        assert config.account.advertiser_id == "cli"

    def test_missing_explicit_file(self, tmp_path):
        """Test an explicit path must exist."""
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "missing.json")

    def test_concurrency_ceiling(self):
        """Test the concurrency cap stays within the remote limit."""
        with pytest.raises(ValidationError):
            AudienceManagerConfig.model_validate({"runner": {"max_concurrency": 31}})
        with pytest.raises(ValidationError):
            load_config(concurrency=0)
