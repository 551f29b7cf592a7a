"""Tests for strategy management."""

import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from optiontrader.db.store import DataStore
from optiontrader.models import StrategyConfig
from optiontrader.strategies import STRATEGY_TYPES, StrategyService, strategy_names


@pytest.fixture
def service():
    """Strategy service on a temporary database."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield StrategyService(DataStore(Path(tmpdir) / "test.db"))


CONFIG = StrategyConfig(
    name="Weekly IC",
    type="iron_condor",
    instrument="BANKNIFTY",
    target_profit=3000,
    max_loss=5000,
)


class TestStrategyService:
    def test_create_is_inactive_and_logged(self, service):
        strategy_id = service.create_strategy("u1", CONFIG)

        strategy = service.get_strategy("u1", strategy_id)
        assert strategy.is_active is False
        assert strategy.instrument == "BANKNIFTY"
        assert strategy.risk_params.target_profit == 3000
        assert strategy.risk_params.max_loss == 5000
        assert strategy.entry_time == "09:30"

        logs = service._store.get_logs("u1")
        assert logs[0].message == "Strategy created: Weekly IC"
        assert logs[0].metadata == {"strategy_id": strategy_id}

    def test_activate_and_deactivate(self, service):
        strategy_id = service.create_strategy("u1", CONFIG)

        service.activate_strategy("u1", strategy_id)
        assert [s.id for s in service.list_strategies("u1", active_only=True)] == [strategy_id]

        service.deactivate_strategy("u1", strategy_id)
        assert service.list_strategies("u1", active_only=True) == []

        messages = [log.message for log in service._store.get_logs("u1")]
        assert f"Strategy activated: {strategy_id}" in messages
        assert f"Strategy deactivated: {strategy_id}" in messages

    def test_activate_unknown_strategy(self, service):
        with pytest.raises(ValueError, match="Strategy not found"):
            service.activate_strategy("u1", "missing")

    def test_cannot_toggle_other_users_strategy(self, service):
        strategy_id = service.create_strategy("u1", CONFIG)
        with pytest.raises(ValueError):
            service.activate_strategy("u2", strategy_id)
        assert service.get_strategy("u1", strategy_id).is_active is False


class TestStrategyConfig:
    def test_unsupported_instrument(self):
        with pytest.raises(ValidationError):
            StrategyConfig(name="x", type="iron_condor", instrument="SENSEX",
                           target_profit=1, max_loss=1)

    def test_negative_threshold(self):
        with pytest.raises(ValidationError):
            StrategyConfig(name="x", type="iron_condor", instrument="NIFTY",
                           target_profit=-1, max_loss=1)


def test_strategy_names():
    names = strategy_names()
    assert len(STRATEGY_TYPES) == 8
    for name in STRATEGY_TYPES.values():
        assert name in names
