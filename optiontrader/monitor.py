"""Position monitor: P&L refresh and automatic stop-loss/target exits."""

import logging
import time
from typing import Callable, Optional

from pydantic import BaseModel, Field

from optiontrader.db.store import DataStore
from optiontrader.gateway import BrokerageGateway
from optiontrader.instruments import LotSizeRegistry
from optiontrader.models import Position, RiskParams
from optiontrader.pnl import calculate_pnl

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 5.0


class MonitorStats(BaseModel):
    """Running counters for a monitor, including swallowed failures."""

    ticks: int = Field(default=0, description="Completed ticks")
    positions_checked: int = Field(default=0, description="Positions refreshed")
    exits: int = Field(default=0, description="Automatic exits requested")
    failures: int = Field(default=0, description="Errors caught and logged")
    consecutive_failures: int = Field(
        default=0, description="Ticks in a row that hit at least one error"
    )
    last_error: Optional[str] = Field(default=None, description="Most recent error")


class PositionMonitor:
    """Refreshes open positions and exits them on stop-loss or target.

    Each ``tick`` is best-effort: errors are logged and counted in
    ``stats`` but never raised, so polling continues.
    """

    def __init__(
        self,
        store: DataStore,
        gateway: BrokerageGateway,
        lot_sizes: Optional[LotSizeRegistry] = None,
    ):
        self._store = store
        self._gateway = gateway
        self._lot_sizes = lot_sizes or LotSizeRegistry()
        self.stats = MonitorStats()

    def tick(self, user_id: str) -> None:
        """Run one monitoring pass over the user's open positions."""
        failed = False
        try:
            positions = self._store.get_open_positions_with_risk(user_id)
        except Exception as e:
            self._record_failure(e, "Error loading open positions")
            positions = []
            failed = True

        for position, risk in positions:
            try:
                self._check_position(user_id, position, risk)
            except Exception as e:
                self._record_failure(e, f"Error monitoring position {position.symbol}")
                failed = True

        self.stats.ticks += 1
        self.stats.consecutive_failures = self.stats.consecutive_failures + 1 if failed else 0

    def _check_position(
        self,
        user_id: str,
        position: Position,
        risk: Optional[RiskParams],
    ) -> None:
        ltp = self._gateway.get_quote(position.symbol).ltp

        updates: dict = {"current_price": ltp}
        entry_price = position.entry_price
        if entry_price == 0:
            # Orders are recorded before the fill price is known
            entry_price = ltp
            updates["entry_price"] = ltp

        pnl = calculate_pnl(
            entry_price,
            ltp,
            position.action,
            position.quantity,
            self._lot_sizes.lot_size(position.symbol),
        )
        updates["pnl"] = pnl
        self._store.update_position(position.id, **updates)
        self.stats.positions_checked += 1

        if risk is None:
            return

        if risk.max_loss and pnl <= -risk.max_loss:
            self._gateway.exit_position(user_id, position.id)
            self.stats.exits += 1
            self._store.add_log(
                user_id,
                "WARNING",
                f"Stop loss hit for position {position.symbol}",
                {"position_id": position.id, "pnl": pnl},
            )
        elif risk.target_profit and pnl >= risk.target_profit:
            self._gateway.exit_position(user_id, position.id)
            self.stats.exits += 1
            self._store.add_log(
                user_id,
                "INFO",
                f"Target profit reached for position {position.symbol}",
                {"position_id": position.id, "pnl": pnl},
            )

    def _record_failure(self, error: Exception, context: str) -> None:
        self.stats.failures += 1
        self.stats.last_error = str(error)
        logger.error("%s: %s", context, error)

    def run(
        self,
        user_id: str,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        max_ticks: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        on_tick: Optional[Callable[[MonitorStats], None]] = None,
    ) -> MonitorStats:
        """Poll on a fixed cadence until ``max_ticks`` is reached.

        Args:
            user_id: User whose positions are monitored.
            interval: Seconds between ticks.
            max_ticks: Stop after this many ticks (None runs forever).
            sleep: Sleep function.
            on_tick: Optional callback receiving the stats after each tick.

        Returns:
            Final monitor stats.
        """
        while max_ticks is None or self.stats.ticks < max_ticks:
            self.tick(user_id)
            if on_tick is not None:
                try:
                    on_tick(self.stats)
                except Exception as e:
                    self._record_failure(e, "Error in monitor tick callback")
            if self.stats.consecutive_failures and self.stats.consecutive_failures % 10 == 0:
                logger.warning(
                    "Position monitor has failed %d ticks in a row (last error: %s)",
                    self.stats.consecutive_failures, self.stats.last_error,
                )
            if max_ticks is not None and self.stats.ticks >= max_ticks:
                break
            sleep(interval)
        return self.stats
