"""Strategy management."""

import logging
from typing import Optional

from optiontrader.db.store import DataStore, new_id
from optiontrader.models import RiskParams, Strategy, StrategyConfig

logger = logging.getLogger(__name__)


# Supported strategy types: slug -> display name
STRATEGY_TYPES = {
    "bull_call_spread": "Bull Call Spread",
    "bear_put_spread": "Bear Put Spread",
    "iron_condor": "Iron Condor",
    "iron_butterfly": "Iron Butterfly",
    "long_straddle": "Long Straddle",
    "short_straddle": "Short Straddle",
    "long_strangle": "Long Strangle",
    "short_strangle": "Short Strangle",
}


def strategy_names() -> str:
    """Comma-separated display names of all supported strategies."""
    return ", ".join(STRATEGY_TYPES.values())


class StrategyService:
    """Creates and toggles a user's strategies, with audit logging."""

    def __init__(self, store: DataStore):
        self._store = store

    def create_strategy(self, user_id: str, config: StrategyConfig) -> str:
        """Create an inactive strategy.

        Returns:
            The new strategy ID.
        """
        strategy = Strategy(
            id=new_id(),
            user_id=user_id,
            name=config.name,
            type=config.type,
            instrument=config.instrument,
            is_active=False,
            entry_time=config.entry_time,
            exit_time=config.exit_time,
            risk_params=RiskParams(
                target_profit=config.target_profit,
                max_loss=config.max_loss,
            ),
        )
        self._store.create_strategy(strategy)
        self._store.add_log(
            user_id,
            "INFO",
            f"Strategy created: {config.name}",
            {"strategy_id": strategy.id},
        )
        return strategy.id

    def activate_strategy(self, user_id: str, strategy_id: str) -> None:
        self._set_active(user_id, strategy_id, True)

    def deactivate_strategy(self, user_id: str, strategy_id: str) -> None:
        self._set_active(user_id, strategy_id, False)

    def _set_active(self, user_id: str, strategy_id: str, active: bool) -> None:
        if not self._store.set_strategy_active(user_id, strategy_id, active):
            raise ValueError(f"Strategy not found: {strategy_id}")

        verb = "activated" if active else "deactivated"
        logger.info("Strategy %s %s", strategy_id, verb)
        self._store.add_log(user_id, "INFO", f"Strategy {verb}: {strategy_id}")

    def get_strategy(self, user_id: str, strategy_id: str) -> Optional[Strategy]:
        return self._store.get_strategy(user_id, strategy_id)

    def list_strategies(self, user_id: str, active_only: bool = False) -> list[Strategy]:
        return self._store.list_strategies(user_id, active_only=active_only)
