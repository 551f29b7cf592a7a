"""Tests for configuration loading and service wiring."""

import tempfile
from pathlib import Path

import pytest
import toml

from optiontrader.brokers.angelone import AngelOneBroker
from optiontrader.brokers.paper import PaperBroker
from optiontrader.config import (
    DEFAULT_USER_ID,
    build_services,
    create_template_config,
    get_config_path,
    get_user_id,
    load_config,
    validate_config,
)


@pytest.fixture
def home(monkeypatch):
    """Point OPTIONTRADER_HOME at a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setenv("OPTIONTRADER_HOME", tmpdir)
        yield Path(tmpdir)


class TestConfigFile:
    def test_missing_config(self, home):
        assert load_config() is None

    def test_template_round_trip(self, home):
        path = create_template_config()

        assert path == get_config_path() == home / "config.toml"
        config = load_config()
        assert config["trading"]["mode"] == "paper"
        assert config["user"]["id"] == DEFAULT_USER_ID

    def test_invalid_toml(self, home):
        (home / "config.toml").write_text("[trading\nmode = ")
        with pytest.raises(ValueError, match="Invalid config file"):
            load_config()


class TestValidateConfig:
    def test_openai_key_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert validate_config({"trading": {"mode": "paper"}}) == []

    def test_openai_key_missing(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        missing = validate_config({"trading": {"mode": "paper"}})
        assert len(missing) == 1
        assert missing[0].startswith("openai.api_key")

    def test_live_mode_needs_broker_credentials(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        config = {
            "trading": {"mode": "live"},
            "angelone": {"api_key": "real", "client_id": "your-client-id", "pin": "1234"},
        }
        assert validate_config(config) == ["angelone.client_id", "angelone.totp_secret"]


def test_user_id_resolution():
    assert get_user_id(None) == DEFAULT_USER_ID
    assert get_user_id({"user": {"id": "alice"}}) == "alice"
    assert get_user_id({"user": {"id": "alice"}}, "bob") == "bob"


class TestBuildServices:
    def test_paper_services(self, home):
        services = build_services({
            "trading": {"mode": "paper"},
            "instruments": {"lot_sizes": {"NIFTY": 75}, "default_lot_size": 1},
        })

        assert isinstance(services.broker, PaperBroker)
        assert services.broker.is_authenticated()
        assert services.store.db_path == home / "optiontrader.db"
        assert services.lot_sizes.lot_size("NIFTY24DEC23500CE") == 75
        assert services.lot_sizes.lot_size("XYZ24DEC100CE") == 1

    def test_database_path_override(self, home):
        services = build_services({"database": {"path": str(home / "other" / "db.sqlite")}})
        assert services.store.db_path == home / "other" / "db.sqlite"

    def test_live_broker(self, home):
        services = build_services({
            "trading": {"mode": "live"},
            "angelone": {"api_key": "k", "client_id": "c", "pin": "p", "totp_secret": "s"},
        })
        assert isinstance(services.broker, AngelOneBroker)
        assert services.broker.token_path == home / "session.json"
