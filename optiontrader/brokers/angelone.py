"""Angel One broker implementation using SmartAPI."""

import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

import pyotp
from SmartApi import SmartConnect

from optiontrader.brokers.base import BaseBroker, NotAuthenticatedError
from optiontrader.models import OrderRequest, OrderResponse, Quote

logger = logging.getLogger(__name__)


# Product mapping for SmartAPI
PRODUCT_MAP = {
    "INTRADAY": "INTRADAY",
    "DELIVERY": "CARRYFORWARD",
}

# Terminal order book statuses -> normalized order status
STATUS_MAP = {
    "complete": "EXECUTED",
    "rejected": "REJECTED",
    "cancelled": "REJECTED",
}

# Index tokens on NSE
INDEX_TOKENS = {
    "NIFTY 50": ("99926000", "Nifty 50"),
    "NIFTY BANK": ("99926009", "Nifty Bank"),
}

# Market orders usually leave "open pending" within a second or two
DEFAULT_ORDER_POLL_ATTEMPTS = 5
DEFAULT_ORDER_POLL_INTERVAL = 0.5


def exchange_for(symbol: str) -> str:
    """Derivative contracts trade on NFO, everything else on NSE."""
    upper = symbol.upper()
    if upper.endswith(("CE", "PE", "FUT")) and upper not in INDEX_TOKENS:
        return "NFO"
    return "NSE"


class AngelOneBroker(BaseBroker):
    """Angel One broker implementation using SmartAPI.

    Handles authentication with TOTP, session management,
    quotes and order placement through Angel One's SmartAPI.
    """

    def __init__(
        self,
        api_key: str,
        client_id: str,
        pin: str,
        totp_secret: str,
        token_path: Optional[Path] = None,
        order_poll_attempts: int = DEFAULT_ORDER_POLL_ATTEMPTS,
        order_poll_interval: float = DEFAULT_ORDER_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize Angel One broker.

        Args:
            api_key: Angel One API key.
            client_id: Angel One client ID.
            pin: Angel One PIN.
            totp_secret: TOTP secret for 2FA.
            token_path: Path to store session tokens.
            order_poll_attempts: Order book reads while waiting for a fill.
            order_poll_interval: Seconds between order book reads.
            sleep: Sleep function used between reads.
        """
        self.api_key = api_key
        self.client_id = client_id
        self.pin = pin
        self.totp_secret = totp_secret
        self.token_path = token_path or Path.home() / ".config" / "optiontrader" / "session.json"
        self.order_poll_attempts = max(1, order_poll_attempts)
        self.order_poll_interval = order_poll_interval
        self._sleep = sleep

        self._smart_api: Optional[SmartConnect] = None
        self._auth_token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._feed_token: Optional[str] = None
        self._last_error = ""
        self._symbol_cache: dict[str, tuple[str, str]] = {}
        # Contract units per lot, keyed by upper-cased trading symbol
        self._lot_sizes: dict[str, int] = {}

    def _generate_totp(self) -> str:
        """Generate TOTP code for authentication."""
        clean_secret = self.totp_secret.replace("-", "").replace(" ", "").replace("_", "").upper()

        # Base32 only
        valid_chars = set("ABCDEFGHIJKLMNOPQRSTUVWXYZ234567")
        invalid_chars = set(clean_secret) - valid_chars
        if invalid_chars:
            raise ValueError(f"TOTP secret contains invalid characters: {invalid_chars}. "
                             "Base32 only allows A-Z and 2-7.")

        return pyotp.TOTP(clean_secret).now()

    def _save_session(self) -> None:
        """Save session tokens to file."""
        if not self._auth_token:
            return

        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        session_data = {
            "auth_token": self._auth_token,
            "refresh_token": self._refresh_token,
            "feed_token": self._feed_token,
            "timestamp": datetime.now().isoformat(),
        }
        self.token_path.write_text(json.dumps(session_data))

    def _load_session(self) -> bool:
        """Load session tokens from file.

        Returns:
            True if a session token was loaded.
        """
        if not self.token_path.exists():
            return False

        try:
            session_data = json.loads(self.token_path.read_text())
        except json.JSONDecodeError:
            return False
        self._auth_token = session_data.get("auth_token")
        self._refresh_token = session_data.get("refresh_token")
        self._feed_token = session_data.get("feed_token")
        return bool(self._auth_token)

    def _clear_session(self) -> None:
        """Clear stored session tokens."""
        self._auth_token = None
        self._refresh_token = None
        self._feed_token = None
        if self.token_path.exists():
            self.token_path.unlink()

    def get_session_token(self) -> Optional[str]:
        return self._auth_token

    def get_last_error(self) -> str:
        """Get the last error message from a login attempt."""
        return self._last_error or "Unknown error"

    def login(self) -> bool:
        """Authenticate with Angel One using TOTP.

        Returns:
            True if authentication successful, False otherwise.
        """
        try:
            self._smart_api = SmartConnect(api_key=self.api_key)
            data = self._smart_api.generateSession(
                clientCode=self.client_id,
                password=self.pin,
                totp=self._generate_totp(),
            )
        except Exception as e:
            self._last_error = str(e)
            logger.warning("Angel One login failed: %s", e)
            return False

        if data and data.get("status"):
            self._auth_token = data["data"]["jwtToken"]
            self._refresh_token = data["data"]["refreshToken"]
            self._feed_token = self._smart_api.getfeedToken()
            self._save_session()
            return True

        self._last_error = data.get("message", "Unknown error") if data else "No response from API"
        logger.warning("Angel One login rejected: %s", self._last_error)
        return False

    def logout(self) -> bool:
        """Logout and invalidate session.

        A session stored by an earlier process is terminated as well.
        """
        try:
            if self._auth_token is not None or self._load_session():
                self._session_api().terminateSession(self.client_id)
        except Exception as e:
            logger.warning("Angel One logout failed: %s", e)
            self._clear_session()
            self._smart_api = None
            return False
        self._clear_session()
        self._smart_api = None
        return True

    def is_authenticated(self) -> bool:
        """Check for a live or stored session."""
        return self._auth_token is not None or self._load_session()

    def _ensure_authenticated(self) -> SmartConnect:
        """Ensure we have a usable SmartConnect session.

        Raises:
            NotAuthenticatedError: If no session exists and login fails.
        """
        if self._auth_token is None and not self._load_session():
            if not self.login():
                raise NotAuthenticatedError(
                    f"Failed to authenticate with Angel One: {self.get_last_error()}"
                )

        return self._session_api()

    def _session_api(self) -> SmartConnect:
        """SmartConnect client bound to the current session tokens."""
        if self._smart_api is None:
            self._smart_api = SmartConnect(api_key=self.api_key)
            token = self._auth_token or ""
            # SmartAPI adds the prefix itself
            if token.startswith("Bearer "):
                token = token[7:]
            self._smart_api.setAccessToken(token)
            if self._refresh_token:
                self._smart_api.setRefreshToken(self._refresh_token)

        return self._smart_api

    def _get_symbol_info(self, symbol: str) -> tuple[str, str, str]:
        """Resolve a symbol into (exchange, symbol_token, trading_symbol)."""
        api = self._ensure_authenticated()
        symbol_upper = symbol.upper()

        if symbol_upper in INDEX_TOKENS:
            token, trading_symbol = INDEX_TOKENS[symbol_upper]
            return "NSE", token, trading_symbol

        exchange = exchange_for(symbol_upper)
        cache_key = f"{exchange}:{symbol_upper}"
        if cache_key in self._symbol_cache:
            token, trading_symbol = self._symbol_cache[cache_key]
            return exchange, token, trading_symbol

        result = api.searchScrip(exchange, symbol_upper)
        items = (result or {}).get("data") or []
        match = next(
            (i for i in items if i.get("tradingsymbol", "").upper() == symbol_upper),
            items[0] if items else None,
        )
        if match is None:
            raise ValueError(f"Unknown symbol {symbol} on {exchange}")

        info = (match.get("symboltoken", ""), match.get("tradingsymbol", symbol_upper))
        self._symbol_cache[cache_key] = info
        self._remember_lot_size(symbol_upper, match.get("lotsize"))
        return exchange, info[0], info[1]

    def _remember_lot_size(self, symbol: str, raw: Any) -> None:
        try:
            lot_size = int(float(raw))
        except (TypeError, ValueError):
            return
        if lot_size > 0:
            self._lot_sizes[symbol.upper()] = lot_size

    def get_lot_size(self, symbol: str) -> Optional[int]:
        """Get the lot size from scrip or order book metadata.

        Scrip search results and order book entries carry a ``lotsize``
        field; the value is cached per trading symbol. Without a session
        only cached values are returned.
        """
        key = symbol.upper()
        if key not in self._lot_sizes and key not in INDEX_TOKENS and self._auth_token is not None:
            try:
                self._get_symbol_info(symbol)
            except ValueError:
                return None
        return self._lot_sizes.get(key)

    def get_quote(self, symbol: str) -> Quote:
        """Get real-time quote for a symbol.

        Args:
            symbol: Trading symbol.

        Returns:
            Quote with current market data.
        """
        api = self._ensure_authenticated()
        exchange, symbol_token, trading_symbol = self._get_symbol_info(symbol)

        try:
            ltp_data = api.ltpData(
                exchange=exchange,
                tradingsymbol=trading_symbol,
                symboltoken=symbol_token,
            )
        except Exception as e:
            raise ValueError(f"Failed to get quote for {symbol}: {e}") from e

        if not ltp_data or not ltp_data.get("data"):
            raise ValueError(f"Failed to get quote for {symbol}")

        data = ltp_data["data"]
        ltp = float(data.get("ltp", 0))
        close = float(data.get("close", ltp) or ltp)
        change = ltp - close
        return Quote(
            symbol=symbol,
            ltp=ltp,
            change=change,
            change_percent=(change / close * 100) if close > 0 else 0.0,
            volume=int(data.get("volume", 0) or 0),
            oi=int(data.get("opninterest", 0) or 0),
        )

    def _order_status(self, api: SmartConnect, order_id: str) -> tuple[str, Optional[str]]:
        """Look up an order in the order book."""
        book = api.orderBook() or {}
        for entry in book.get("data") or []:
            if entry.get("orderid") == order_id:
                self._remember_lot_size(entry.get("tradingsymbol", ""), entry.get("lotsize"))
                raw = str(entry.get("status", "")).lower()
                return STATUS_MAP.get(raw, "PENDING"), entry.get("text") or None
        return "PENDING", None

    def _await_order_status(self, api: SmartConnect, order_id: str) -> tuple[str, Optional[str]]:
        """Read the order book until the order reaches a terminal status.

        Returns PENDING only when ``order_poll_attempts`` reads pass without
        the order completing, being rejected or being cancelled.
        """
        status, text = "PENDING", None
        for attempt in range(self.order_poll_attempts):
            if attempt:
                self._sleep(self.order_poll_interval)
            status, text = self._order_status(api, order_id)
            if status != "PENDING":
                break
        else:
            logger.warning(
                "Order %s still pending after %d order book reads",
                order_id, self.order_poll_attempts,
            )
        return status, text

    def place_order(self, order: OrderRequest) -> OrderResponse:
        """Place an order via Angel One.

        Args:
            order: Order to place, quantity in contract units.

        Returns:
            OrderResponse with the order book status once the order is
            terminal, or PENDING if it is still open after polling.

        Raises:
            RuntimeError: If the SmartAPI call fails.
        """
        api = self._ensure_authenticated()
        exchange, symbol_token, trading_symbol = self._get_symbol_info(order.symbol)

        order_params: dict[str, Any] = {
            "variety": "NORMAL",
            "tradingsymbol": trading_symbol,
            "symboltoken": symbol_token,
            "transactiontype": order.action,
            "exchange": exchange,
            "ordertype": order.order_type,
            "producttype": PRODUCT_MAP[order.product],
            "duration": "DAY",
            "quantity": str(order.quantity),
            "price": str(order.price) if order.price else "0",
        }
        logger.info("Placing order with params: %s", order_params)

        try:
            response = api.placeOrder(order_params)
        except Exception as e:
            raise RuntimeError(f"Angel One order placement failed: {e}") from e

        logger.info("Order response: %s", response)

        if response is None:
            raise RuntimeError("Empty response from broker API")

        # placeOrder returns the order id directly on success
        if isinstance(response, str):
            order_id = response
        elif response.get("status"):
            order_id = (response.get("data") or {}).get("orderid", "")
        else:
            return OrderResponse(
                status="REJECTED",
                message=response.get("message", "Order placement failed"),
            )

        status, text = self._await_order_status(api, order_id)
        return OrderResponse(order_id=order_id, status=status, message=text)
