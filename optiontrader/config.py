"""Configuration loading and service wiring.

Configuration lives in ``config.toml`` under ``$OPTIONTRADER_HOME``
(default ``~/.config/optiontrader``) next to the SQLite database.
"""

import os
from pathlib import Path
from typing import Optional

import toml
from pydantic import BaseModel, ConfigDict

from optiontrader.brokers.base import BaseBroker
from optiontrader.db.store import DataStore
from optiontrader.executor import StrategyExecutor
from optiontrader.gateway import BrokerageGateway
from optiontrader.instruments import DEFAULT_LOT_SIZE, LotSizeRegistry
from optiontrader.monitor import DEFAULT_INTERVAL_SECONDS, PositionMonitor
from optiontrader.risk import RiskGate
from optiontrader.strategies import StrategyService

DEFAULT_USER_ID = "local"


def get_config_dir() -> Path:
    """Directory holding config, database and broker session."""
    home = os.environ.get("OPTIONTRADER_HOME")
    return Path(home) if home else Path.home() / ".config" / "optiontrader"


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


def load_config(path: Optional[Path] = None) -> Optional[dict]:
    """Load the configuration file.

    Returns:
        Config dict, or None if the file does not exist.

    Raises:
        ValueError: If the file is not valid TOML.
    """
    config_path = path or get_config_path()
    if not config_path.exists():
        return None
    try:
        return toml.load(config_path)
    except toml.TomlDecodeError as e:
        raise ValueError(f"Invalid config file {config_path}: {e}") from e


def create_template_config(path: Optional[Path] = None) -> Path:
    """Write a template configuration file and return its path."""
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    template = {
        "user": {
            "id": DEFAULT_USER_ID,
        },
        "openai": {
            "api_key": "",  # Leave empty to use OPENAI_API_KEY env var
            "model": "",
        },
        "angelone": {
            "api_key": "your-angelone-api-key",
            "client_id": "your-client-id",
            "pin": "your-pin",
            "totp_secret": "your-totp-secret",
        },
        "trading": {
            "mode": "paper",  # paper or live
            "monitor_interval": DEFAULT_INTERVAL_SECONDS,
        },
        "instruments": {
            "default_lot_size": DEFAULT_LOT_SIZE,
            "lot_sizes": {},
        },
    }

    with open(config_path, "w") as f:
        toml.dump(template, f)

    return config_path


def validate_config(config: dict) -> list[str]:
    """Validate configuration and return the list of missing keys."""
    missing = []

    openai_key = config.get("openai", {}).get("api_key")
    if not openai_key and not os.environ.get("OPENAI_API_KEY"):
        missing.append("openai.api_key (or set OPENAI_API_KEY env var)")

    # Angel One credentials are only needed for live trading
    if get_trading_mode(config) == "live":
        angelone = config.get("angelone", {})
        for key in ("api_key", "client_id", "pin", "totp_secret"):
            value = angelone.get(key)
            if not value or value.startswith("your-"):
                missing.append(f"angelone.{key}")

    return missing


def get_trading_mode(config: dict) -> str:
    return config.get("trading", {}).get("mode", "paper")


def get_user_id(config: Optional[dict], override: Optional[str] = None) -> str:
    """Resolve the acting user: explicit override, then config, then default."""
    if override:
        return override
    return (config or {}).get("user", {}).get("id") or DEFAULT_USER_ID


def apply_openai_config(config: dict) -> None:
    """Export OpenAI settings from the config file to the environment."""
    openai = config.get("openai", {})
    if openai.get("api_key"):
        os.environ.setdefault("OPENAI_API_KEY", openai["api_key"])
    if openai.get("model"):
        os.environ.setdefault("OPENAI_MODEL", openai["model"])


def get_data_store(config: Optional[dict] = None) -> DataStore:
    """Open the data store configured for this installation."""
    db_path = (config or {}).get("database", {}).get("path")
    return DataStore(Path(db_path) if db_path else get_config_dir() / "optiontrader.db")


def get_broker(config: dict, store: DataStore) -> BaseBroker:
    """Get the broker for the configured trading mode."""
    if get_trading_mode(config) == "paper":
        from optiontrader.brokers.paper import PaperBroker

        broker = PaperBroker(store)
        broker.login()
        return broker

    from optiontrader.brokers.angelone import AngelOneBroker

    angelone = config.get("angelone", {})
    return AngelOneBroker(
        api_key=angelone.get("api_key", ""),
        client_id=angelone.get("client_id", ""),
        pin=angelone.get("pin", ""),
        totp_secret=angelone.get("totp_secret", ""),
        token_path=get_config_dir() / "session.json",
    )


class Services(BaseModel):
    """Workflow components wired to one store and broker."""

    store: DataStore
    broker: BaseBroker
    gateway: BrokerageGateway
    lot_sizes: LotSizeRegistry
    risk_gate: RiskGate
    executor: StrategyExecutor
    monitor: PositionMonitor
    strategies: StrategyService

    model_config = ConfigDict(arbitrary_types_allowed=True)


def build_services(
    config: dict,
    store: Optional[DataStore] = None,
    broker: Optional[BaseBroker] = None,
) -> Services:
    """Construct all workflow components from configuration."""
    store = store or get_data_store(config)
    broker = broker or get_broker(config, store)

    instruments = config.get("instruments", {})
    lot_sizes = LotSizeRegistry(
        broker=broker,
        overrides=instruments.get("lot_sizes"),
        default=int(instruments.get("default_lot_size", DEFAULT_LOT_SIZE)),
    )
    gateway = BrokerageGateway(store, broker, lot_sizes)
    risk_gate = RiskGate(store)

    return Services(
        store=store,
        broker=broker,
        gateway=gateway,
        lot_sizes=lot_sizes,
        risk_gate=risk_gate,
        executor=StrategyExecutor(store, gateway, risk_gate),
        monitor=PositionMonitor(store, gateway, lot_sizes),
        strategies=StrategyService(store),
    )
