"""Leg-by-leg execution of option strategies."""

import logging
from typing import Sequence

from optiontrader.db.store import DataStore, new_id
from optiontrader.gateway import BrokerageGateway
from optiontrader.models import OrderRequest, Position, StrategyLeg
from optiontrader.risk import RiskGate, RiskLimitExceededError

logger = logging.getLogger(__name__)


class StrategyExecutor:
    """Places the legs of a strategy and records the resulting positions.

    Execution is fire-and-continue: legs that do not fill are skipped and
    filled legs are never unwound.
    """

    def __init__(self, store: DataStore, gateway: BrokerageGateway, risk_gate: RiskGate):
        self._store = store
        self._gateway = gateway
        self._risk_gate = risk_gate

    def execute(
        self,
        user_id: str,
        strategy_id: str,
        legs: Sequence[StrategyLeg],
    ) -> list[Position]:
        """Execute a strategy's legs in order.

        Args:
            user_id: User executing the strategy.
            strategy_id: Strategy that owns the resulting positions.
            legs: Legs to place, in submission order.

        Returns:
            Positions created for the legs that executed.

        Raises:
            RiskLimitExceededError: If the risk gate denies trading.
        """
        try:
            if not self._risk_gate.can_trade(user_id):
                raise RiskLimitExceededError()

            positions = []
            for leg in legs:
                response = self._gateway.place_order(user_id, OrderRequest(
                    symbol=leg.symbol,
                    action=leg.action,
                    quantity=leg.quantity,
                    order_type="MARKET",
                    product="INTRADAY",
                ))

                if response.status != "EXECUTED":
                    logger.info(
                        "Leg %s %s not executed (%s)", leg.action, leg.symbol, response.status
                    )
                    continue

                # Entry price is filled in by the position monitor
                position = Position(
                    id=new_id(),
                    user_id=user_id,
                    strategy_id=strategy_id,
                    broker_order_id=response.order_id,
                    symbol=leg.symbol,
                    instrument_type=leg.instrument_type,
                    strike_price=leg.strike_price,
                    expiry_date=leg.expiry_date,
                    action=leg.action,
                    quantity=leg.quantity,
                    entry_price=0.0,
                    status="OPEN",
                )
                self._store.create_position(position)
                if response.trade_id:
                    self._store.update_trade(response.trade_id, position_id=position.id)
                positions.append(position)

            self._store.add_log(
                user_id,
                "TRADE",
                f"Strategy executed: {strategy_id}",
                {
                    "strategy_id": strategy_id,
                    "legs": [leg.model_dump(mode="json") for leg in legs],
                },
            )
            return positions
        except Exception as e:
            self._store.add_log(
                user_id,
                "ERROR",
                f"Strategy execution failed: {e}",
                {"strategy_id": strategy_id, "error": str(e)},
            )
            raise
