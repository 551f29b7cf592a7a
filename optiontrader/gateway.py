"""Brokerage gateway: broker calls with trade auditing.

Wraps a raw broker with the bookkeeping every order needs: a trade
record per attempt, audit log entries, a market data cache and
position closing on exit.

Order requests are sized in lots. The gateway converts them to
contract units before they reach the broker.
"""

import logging
from datetime import datetime
from typing import Optional

from optiontrader.brokers.base import BaseBroker, NotAuthenticatedError
from optiontrader.db.store import DataStore, new_id
from optiontrader.instruments import LotSizeRegistry
from optiontrader.models import OrderRequest, OrderResponse, Quote, TradeRecord

logger = logging.getLogger(__name__)

INDEX_SYMBOLS = {
    "NIFTY": "NIFTY 50",
    "BANKNIFTY": "NIFTY BANK",
}


class PositionNotFoundError(ValueError):
    """Raised when a position does not exist for the user."""

    def __init__(self, position_id: str):
        super().__init__("Position not found")
        self.position_id = position_id


class BrokerageGateway:
    """Per-user service handle for broker access."""

    def __init__(
        self,
        store: DataStore,
        broker: BaseBroker,
        lot_sizes: Optional[LotSizeRegistry] = None,
    ):
        self._store = store
        self._broker = broker
        self._lot_sizes = lot_sizes or LotSizeRegistry(broker=broker)

    @property
    def broker(self) -> BaseBroker:
        return self._broker

    def _require_session(self) -> None:
        if not self._broker.is_authenticated():
            raise NotAuthenticatedError()

    def get_quote(self, symbol: str) -> Quote:
        """Fetch a quote and cache it in the market data table."""
        self._require_session()
        quote = self._broker.get_quote(symbol)
        self._store.save_market_data(quote)
        return quote

    def get_index_quote(self, instrument: str) -> Quote:
        """Fetch the quote of an underlying index (NIFTY or BANKNIFTY)."""
        return self.get_quote(INDEX_SYMBOLS[instrument])

    def place_order(
        self,
        user_id: str,
        request: OrderRequest,
        position_id: Optional[str] = None,
    ) -> OrderResponse:
        """Place an order and record the attempt.

        Args:
            user_id: User placing the order.
            request: Order to place, quantity in lots.
            position_id: Position the order belongs to, if already known.

        Returns:
            Broker response with ``trade_id`` set to the audit record.

        Raises:
            NotAuthenticatedError: If the broker has no session.
        """
        self._require_session()

        try:
            trade_id = self._store.create_trade(TradeRecord(
                id=new_id(),
                user_id=user_id,
                position_id=position_id,
                order_type=request.order_type,
                action=request.action,
                quantity=request.quantity,
                price=request.price or 0.0,
                status="PENDING",
            ))

            units = request.quantity * self._lot_sizes.lot_size(request.symbol)
            response = self._broker.place_order(request.model_copy(update={"quantity": units}))

            self._store.update_trade(
                trade_id,
                broker_order_id=response.order_id or None,
                status=response.status,
                executed_at=datetime.now() if response.status == "EXECUTED" else None,
                error_message=response.message,
            )

            self._store.add_log(
                user_id,
                "TRADE",
                f"Order placed: {request.action} {request.quantity} {request.symbol}",
                {
                    "order_response": response.model_dump(),
                    "order_request": request.model_dump(),
                    "units": units,
                },
            )
        except Exception as e:
            logger.error("Failed to place order: %s", e)
            self._store.add_log(
                user_id,
                "ERROR",
                f"Order failed: {e}",
                {"error": str(e), "order_request": request.model_dump()},
            )
            raise

        return response.model_copy(update={"trade_id": trade_id})

    def exit_position(self, user_id: str, position_id: str) -> OrderResponse:
        """Close a position with an opposite-side market order.

        The position is marked CLOSED at its current price if the exit
        order executes, or PENDING while the exit order is still open so
        the monitor does not submit it again.

        Raises:
            PositionNotFoundError: If the user has no such position.
        """
        position = self._store.get_position(user_id, position_id)
        if position is None:
            raise PositionNotFoundError(position_id)

        exit_order = OrderRequest(
            symbol=position.symbol,
            action="SELL" if position.action == "BUY" else "BUY",
            quantity=position.quantity,
            order_type="MARKET",
            product="INTRADAY",
        )
        response = self.place_order(user_id, exit_order, position_id=position.id)

        if response.status == "EXECUTED":
            self._store.update_position(
                position.id,
                status="CLOSED",
                closed_at=datetime.now(),
                exit_price=position.current_price,
            )
        elif response.status == "PENDING":
            self._store.update_position(position.id, status="PENDING")

        return response
