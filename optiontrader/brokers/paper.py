"""Paper trading broker implementation for simulated trading."""

import random
import uuid
from typing import Optional

from optiontrader.brokers.base import BaseBroker
from optiontrader.db.store import DataStore
from optiontrader.models import OrderRequest, OrderResponse, Quote


class PaperBroker(BaseBroker):
    """Paper trading broker for simulated trading.
    
    Quotes drift randomly around the last cached market price and
    market orders fill immediately with simulated slippage.
    """

    # Default slippage percentage for market orders
    DEFAULT_SLIPPAGE_PERCENT = 0.05  # 0.05%
    DEFAULT_PRICE = 100.0
    # Max random move per quote, in percent
    DEFAULT_DRIFT_PERCENT = 1.0

    def __init__(
        self,
        data_store: DataStore,
        slippage_percent: float = DEFAULT_SLIPPAGE_PERCENT,
        drift_percent: float = DEFAULT_DRIFT_PERCENT,
        rng: Optional[random.Random] = None,
    ):
        """Initialize paper trading broker.
        
        Args:
            data_store: DataStore used as the price source.
            slippage_percent: Slippage percentage for market orders.
            drift_percent: Max random price move per quote.
            rng: Optional random generator (for deterministic tests).
        """
        self._data_store = data_store
        self._slippage_percent = slippage_percent
        self._drift_percent = drift_percent
        self._rng = rng or random.Random()
        self._authenticated = False

    def _get_simulated_price(self, symbol: str) -> float:
        """Last cached price for a symbol, or the default price."""
        cached = self._data_store.get_latest_market_data(symbol)
        if cached and cached.ltp > 0:
            return cached.ltp
        return self.DEFAULT_PRICE

    def _apply_slippage(self, price: float, action: str) -> float:
        slippage_factor = self._rng.uniform(0, self._slippage_percent) / 100
        
        if action == "BUY":
            # Buyer pays more
            return price * (1 + slippage_factor)
        # Seller receives less
        return price * (1 - slippage_factor)

    def login(self) -> bool:
        """Authenticate (always succeeds for paper trading)."""
        self._authenticated = True
        return True

    def logout(self) -> bool:
        """Logout (always succeeds for paper trading)."""
        self._authenticated = False
        return True

    def is_authenticated(self) -> bool:
        return self._authenticated

    def get_quote(self, symbol: str) -> Quote:
        """Get a simulated quote for a symbol.
        
        Args:
            symbol: Trading symbol.
            
        Returns:
            Quote drifting randomly around the last known price.
        """
        prev_close = self._get_simulated_price(symbol)
        drift = self._rng.uniform(-self._drift_percent, self._drift_percent) / 100
        ltp = round(prev_close * (1 + drift), 2)
        spread = round(ltp * 0.0005, 2)
        change = ltp - prev_close
        
        return Quote(
            symbol=symbol,
            ltp=ltp,
            change=change,
            change_percent=(change / prev_close * 100) if prev_close > 0 else 0.0,
            bid=max(ltp - spread, 0.0),
            ask=ltp + spread,
            volume=self._rng.randint(10000, 1000000),
            oi=self._rng.randint(1000, 500000),
        )

    def place_order(self, order: OrderRequest) -> OrderResponse:
        """Place a simulated order.
        
        Market orders fill immediately. Limit orders fill at the limit price.
        """
        if order.quantity <= 0:
            return OrderResponse(status="REJECTED", message="Quantity must be positive")

        if order.order_type == "LIMIT" and order.price is None:
            return OrderResponse(
                status="REJECTED",
                message="Limit price required for LIMIT orders",
            )

        if order.order_type == "MARKET":
            exec_price = self._apply_slippage(
                self._get_simulated_price(order.symbol), order.action
            )
        else:
            exec_price = order.price

        return OrderResponse(
            order_id=f"PAPER_{uuid.uuid4().hex[:12].upper()}",
            status="EXECUTED",
            message=f"Paper order executed at {exec_price:.2f}",
        )
