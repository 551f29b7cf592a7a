"""Risk gate checked before any automated order submission."""

import logging
from datetime import datetime
from typing import Callable, Optional

from optiontrader.db.store import DataStore

logger = logging.getLogger(__name__)


class RiskLimitExceededError(RuntimeError):
    """Raised when the risk gate denies new trades."""

    def __init__(self, message: str = "Risk limits exceeded. Cannot execute strategy."):
        super().__init__(message)


def start_of_day(now: datetime) -> datetime:
    """Local midnight of the given day."""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


class RiskGate:
    """Allow/deny check over user settings and today's positions.

    Checks run in order and stop at the first failure:

    1. settings exist and auto-trading is enabled
    2. open positions are below ``max_open_positions``
    3. today's P&L is not below ``-max_daily_loss``

    Store errors deny (fail closed) rather than propagate.
    """

    def __init__(
        self,
        store: DataStore,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._clock = clock or datetime.now

    def can_trade(self, user_id: str) -> bool:
        """Check whether new trades may be placed for a user."""
        try:
            settings = self._store.get_user_settings(user_id)
            if settings is None or not settings.auto_trade_enabled:
                logger.info("Risk gate: auto-trading disabled for %s", user_id)
                return False

            open_count = self._store.count_positions(user_id, "OPEN")
            if open_count >= settings.max_open_positions:
                logger.info(
                    "Risk gate: %d open positions (max %d) for %s",
                    open_count, settings.max_open_positions, user_id,
                )
                return False

            daily_pnl = self._store.sum_pnl_since(user_id, start_of_day(self._clock()))
            if daily_pnl < -settings.max_daily_loss:
                self._store.add_log(
                    user_id,
                    "WARNING",
                    f"Daily loss limit reached: ₹{abs(daily_pnl):.2f}",
                )
                return False

            return True
        except Exception:
            logger.exception("Error checking risk limits for %s", user_id)
            return False
