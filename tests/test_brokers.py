"""Tests for broker implementations."""

import json
import random
import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from optiontrader.brokers.angelone import AngelOneBroker, exchange_for
from optiontrader.brokers.base import NotAuthenticatedError
from optiontrader.brokers.paper import PaperBroker
from optiontrader.db.store import DataStore
from optiontrader.models import OrderRequest, Quote


# ============================================================================
# Test Fixtures
# ============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_db(temp_dir):
    return DataStore(temp_dir / "test.db")


@pytest.fixture
def mock_smart_api():
    """Create a mock SmartConnect instance."""
    with patch("optiontrader.brokers.angelone.SmartConnect") as mock:
        instance = MagicMock()
        mock.return_value = instance
        yield instance


def make_broker(temp_dir: Path, sleep=lambda _: None) -> AngelOneBroker:
    return AngelOneBroker(
        api_key="key",
        client_id="C123",
        pin="1234",
        totp_secret="JBSWY3DPEHPK3PXP",
        token_path=temp_dir / "session.json",
        sleep=sleep,
    )


def login_ok(api: MagicMock) -> None:
    api.generateSession.return_value = {
        "status": True,
        "data": {"jwtToken": "jwt-token", "refreshToken": "refresh-token"},
    }
    api.getfeedToken.return_value = "feed-token"


# ============================================================================
# Angel One
# ============================================================================

class TestAngelOneSession:
    """Session tokens persist until logout."""

    def test_login_persists_session(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        broker = make_broker(temp_dir)

        assert broker.login() is True
        assert broker.get_session_token() == "jwt-token"

        saved = json.loads((temp_dir / "session.json").read_text())
        assert saved["auth_token"] == "jwt-token"
        assert saved["refresh_token"] == "refresh-token"

        # A fresh instance picks up the stored session
        assert make_broker(temp_dir).is_authenticated() is True

    def test_login_rejected(self, temp_dir, mock_smart_api):
        mock_smart_api.generateSession.return_value = {"status": False, "message": "Invalid totp"}
        broker = make_broker(temp_dir)

        assert broker.login() is False
        assert broker.get_last_error() == "Invalid totp"
        assert broker.is_authenticated() is False

    def test_login_exception(self, temp_dir, mock_smart_api):
        mock_smart_api.generateSession.side_effect = ConnectionError("network down")
        broker = make_broker(temp_dir)

        assert broker.login() is False
        assert "network down" in broker.get_last_error()

    def test_invalid_totp_secret(self, temp_dir, mock_smart_api):
        broker = make_broker(temp_dir)
        broker.totp_secret = "not-base32-!!"
        assert broker.login() is False
        assert "invalid characters" in broker.get_last_error()

    def test_logout_clears_session(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        broker = make_broker(temp_dir)
        broker.login()

        assert broker.logout() is True
        mock_smart_api.terminateSession.assert_called_once_with("C123")
        assert not (temp_dir / "session.json").exists()
        assert broker.is_authenticated() is False

    def test_logout_terminates_stored_session(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        make_broker(temp_dir).login()
        mock_smart_api.reset_mock()

        # A later process only has the session file
        assert make_broker(temp_dir).logout() is True
        mock_smart_api.setAccessToken.assert_called_once_with("jwt-token")
        mock_smart_api.terminateSession.assert_called_once_with("C123")
        assert not (temp_dir / "session.json").exists()

    def test_logout_without_session(self, temp_dir, mock_smart_api):
        assert make_broker(temp_dir).logout() is True
        mock_smart_api.terminateSession.assert_not_called()

    def test_unauthenticated_call_raises(self, temp_dir, mock_smart_api):
        mock_smart_api.generateSession.return_value = {"status": False, "message": "nope"}
        broker = make_broker(temp_dir)

        with pytest.raises(NotAuthenticatedError):
            broker.get_quote("NIFTY 50")


class TestAngelOneOrders:
    """Order placement and quotes through SmartAPI."""

    def test_quote_for_index(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        mock_smart_api.ltpData.return_value = {"data": {"ltp": 23100.0, "close": 23000.0}}
        broker = make_broker(temp_dir)
        broker.login()

        quote = broker.get_quote("NIFTY 50")

        assert quote.ltp == 23100.0
        assert quote.change == pytest.approx(100.0)
        kwargs = mock_smart_api.ltpData.call_args.kwargs
        assert kwargs["exchange"] == "NSE"
        assert kwargs["symboltoken"] == "99926000"

    def test_quote_failure_raises_value_error(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        mock_smart_api.ltpData.return_value = {"data": None}
        broker = make_broker(temp_dir)
        broker.login()

        with pytest.raises(ValueError):
            broker.get_quote("NIFTY 50")

    def test_place_order_executed(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        mock_smart_api.searchScrip.return_value = {
            "data": [{"tradingsymbol": "NIFTY24DEC23500CE", "symboltoken": "43210"}]
        }
        mock_smart_api.placeOrder.return_value = "ORD1"
        mock_smart_api.orderBook.return_value = {
            "data": [{"orderid": "ORD1", "status": "complete"}]
        }
        broker = make_broker(temp_dir)
        broker.login()

        response = broker.place_order(
            OrderRequest(symbol="NIFTY24DEC23500CE", action="SELL", quantity=1)
        )

        assert response.order_id == "ORD1"
        assert response.status == "EXECUTED"
        params = mock_smart_api.placeOrder.call_args.args[0]
        assert params["exchange"] == "NFO"
        assert params["symboltoken"] == "43210"
        assert params["transactiontype"] == "SELL"
        assert params["producttype"] == "INTRADAY"

    def test_place_order_rejected_by_api(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        mock_smart_api.searchScrip.return_value = {
            "data": [{"tradingsymbol": "NIFTY24DEC23500CE", "symboltoken": "43210"}]
        }
        mock_smart_api.placeOrder.return_value = {"status": False, "message": "Margin shortfall"}
        broker = make_broker(temp_dir)
        broker.login()

        response = broker.place_order(
            OrderRequest(symbol="NIFTY24DEC23500CE", action="BUY", quantity=1)
        )

        assert response.status == "REJECTED"
        assert response.message == "Margin shortfall"

    def test_place_order_transport_error(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        mock_smart_api.searchScrip.return_value = {
            "data": [{"tradingsymbol": "NIFTY24DEC23500CE", "symboltoken": "43210"}]
        }
        mock_smart_api.placeOrder.side_effect = ConnectionError("timeout")
        broker = make_broker(temp_dir)
        broker.login()

        with pytest.raises(RuntimeError):
            broker.place_order(OrderRequest(symbol="NIFTY24DEC23500CE", action="BUY", quantity=1))

    def test_place_order_sends_quantity_unchanged(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        mock_smart_api.searchScrip.return_value = {
            "data": [{"tradingsymbol": "NIFTY24DEC23500CE", "symboltoken": "43210"}]
        }
        mock_smart_api.placeOrder.return_value = "ORD1"
        mock_smart_api.orderBook.return_value = {
            "data": [{"orderid": "ORD1", "status": "complete"}]
        }
        broker = make_broker(temp_dir)
        broker.login()

        broker.place_order(OrderRequest(symbol="NIFTY24DEC23500CE", action="BUY", quantity=100))

        assert mock_smart_api.placeOrder.call_args.args[0]["quantity"] == "100"

    def test_open_order_is_polled_until_complete(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        mock_smart_api.searchScrip.return_value = {
            "data": [{"tradingsymbol": "NIFTY24DEC23500CE", "symboltoken": "43210"}]
        }
        mock_smart_api.placeOrder.return_value = "ORD1"
        mock_smart_api.orderBook.side_effect = [
            {"data": [{"orderid": "ORD1", "status": "open pending"}]},
            {"data": [{"orderid": "ORD1", "status": "complete"}]},
        ]
        sleeps = []
        broker = make_broker(temp_dir, sleep=sleeps.append)
        broker.login()

        response = broker.place_order(
            OrderRequest(symbol="NIFTY24DEC23500CE", action="SELL", quantity=50)
        )

        assert response.status == "EXECUTED"
        assert mock_smart_api.orderBook.call_count == 2
        assert sleeps == [broker.order_poll_interval]

    def test_order_still_open_after_polling_is_pending(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        mock_smart_api.searchScrip.return_value = {
            "data": [{"tradingsymbol": "NIFTY24DEC23500CE", "symboltoken": "43210"}]
        }
        mock_smart_api.placeOrder.return_value = "ORD1"
        mock_smart_api.orderBook.return_value = {
            "data": [{"orderid": "ORD1", "status": "open pending"}]
        }
        sleeps = []
        broker = make_broker(temp_dir, sleep=sleeps.append)
        broker.login()

        response = broker.place_order(
            OrderRequest(symbol="NIFTY24DEC23500CE", action="SELL", quantity=50)
        )

        assert response.status == "PENDING"
        assert response.order_id == "ORD1"
        assert mock_smart_api.orderBook.call_count == broker.order_poll_attempts
        assert len(sleeps) == broker.order_poll_attempts - 1

    def test_rejected_in_order_book(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        mock_smart_api.searchScrip.return_value = {
            "data": [{"tradingsymbol": "NIFTY24DEC23500CE", "symboltoken": "43210"}]
        }
        mock_smart_api.placeOrder.return_value = "ORD1"
        mock_smart_api.orderBook.return_value = {
            "data": [{"orderid": "ORD1", "status": "rejected", "text": "RMS: margin"}]
        }
        broker = make_broker(temp_dir)
        broker.login()

        response = broker.place_order(
            OrderRequest(symbol="NIFTY24DEC23500CE", action="BUY", quantity=50)
        )

        assert response.status == "REJECTED"
        assert response.message == "RMS: margin"
        assert mock_smart_api.orderBook.call_count == 1

    def test_unknown_symbol(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        mock_smart_api.searchScrip.return_value = {"data": []}
        broker = make_broker(temp_dir)
        broker.login()

        with pytest.raises(ValueError):
            broker.get_quote("NOSUCH24DEC100CE")

    @pytest.mark.parametrize("symbol,exchange", [
        ("NIFTY24DEC23500CE", "NFO"),
        ("BANKNIFTY24DEC48000PE", "NFO"),
        ("NIFTY24DECFUT", "NFO"),
        ("RELIANCE", "NSE"),
        ("NIFTY 50", "NSE"),
    ])
    def test_exchange_for(self, symbol, exchange):
        assert exchange_for(symbol) == exchange


class TestAngelOneLotSize:
    """Lot sizes come from scrip and order book metadata."""

    def test_lot_size_from_scrip_search(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        mock_smart_api.searchScrip.return_value = {
            "data": [{"tradingsymbol": "NIFTY24DEC23500CE", "symboltoken": "43210", "lotsize": "75"}]
        }
        broker = make_broker(temp_dir)
        broker.login()

        assert broker.get_lot_size("nifty24dec23500ce") == 75
        assert broker.get_lot_size("NIFTY24DEC23500CE") == 75
        mock_smart_api.searchScrip.assert_called_once()

    def test_lot_size_from_order_book(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        mock_smart_api.searchScrip.return_value = {
            "data": [{"tradingsymbol": "BANKNIFTY24DEC48000PE", "symboltoken": "5555"}]
        }
        mock_smart_api.placeOrder.return_value = "ORD9"
        mock_smart_api.orderBook.return_value = {"data": [{
            "orderid": "ORD9",
            "status": "complete",
            "tradingsymbol": "BANKNIFTY24DEC48000PE",
            "lotsize": "30",
        }]}
        broker = make_broker(temp_dir)
        broker.login()

        assert broker.get_lot_size("BANKNIFTY24DEC48000PE") is None
        broker.place_order(OrderRequest(symbol="BANKNIFTY24DEC48000PE", action="BUY", quantity=30))
        assert broker.get_lot_size("BANKNIFTY24DEC48000PE") == 30

    def test_unknown_symbol_has_no_lot_size(self, temp_dir, mock_smart_api):
        login_ok(mock_smart_api)
        mock_smart_api.searchScrip.return_value = {"data": []}
        broker = make_broker(temp_dir)
        broker.login()

        assert broker.get_lot_size("NOSUCH24DEC100CE") is None

    def test_no_lookup_without_session(self, temp_dir, mock_smart_api):
        broker = make_broker(temp_dir)

        assert broker.get_lot_size("NIFTY24DEC23500CE") is None
        mock_smart_api.searchScrip.assert_not_called()
        mock_smart_api.generateSession.assert_not_called()

    @pytest.mark.parametrize("raw", [None, "", "abc", "0", "-5"])
    def test_unusable_metadata_is_ignored(self, temp_dir, mock_smart_api, raw):
        login_ok(mock_smart_api)
        mock_smart_api.searchScrip.return_value = {
            "data": [{"tradingsymbol": "NIFTY24DEC23500CE", "symboltoken": "43210", "lotsize": raw}]
        }
        broker = make_broker(temp_dir)
        broker.login()

        assert broker.get_lot_size("NIFTY24DEC23500CE") is None


# ============================================================================
# Paper broker
# ============================================================================

class TestPaperBroker:
    """Simulated fills and quotes."""

    def test_session(self, temp_db):
        broker = PaperBroker(temp_db)
        assert broker.is_authenticated() is False
        assert broker.login() is True
        assert broker.is_authenticated() is True
        assert broker.logout() is True
        assert broker.is_authenticated() is False

    @given(
        quantity=st.integers(min_value=1, max_value=100),
        action=st.sampled_from(["BUY", "SELL"]),
    )
    @settings(max_examples=20)
    def test_market_orders_execute(self, quantity, action):
        """
        *For any* positive quantity, a paper market order executes with a
        PAPER_ order id.
        """
        with tempfile.TemporaryDirectory() as tmpdir:
            broker = PaperBroker(DataStore(Path(tmpdir) / "test.db"), rng=random.Random(0))
            response = broker.place_order(
                OrderRequest(symbol="NIFTY24DEC23500CE", action=action, quantity=quantity)
            )
            assert response.status == "EXECUTED"
            assert response.order_id.startswith("PAPER_")

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_rejected(self, temp_db, quantity):
        response = PaperBroker(temp_db).place_order(
            OrderRequest(symbol="X", action="BUY", quantity=quantity)
        )
        assert response.status == "REJECTED"
        assert response.order_id == ""

    def test_limit_without_price_rejected(self, temp_db):
        response = PaperBroker(temp_db).place_order(
            OrderRequest(symbol="X", action="BUY", quantity=1, order_type="LIMIT")
        )
        assert response.status == "REJECTED"

    def test_quote_drifts_around_cached_price(self, temp_db):
        temp_db.save_market_data(Quote(symbol="NIFTY24DEC23500CE", ltp=200.0))
        broker = PaperBroker(temp_db, drift_percent=1.0, rng=random.Random(42))

        quote = broker.get_quote("NIFTY24DEC23500CE")
        assert 198.0 <= quote.ltp <= 202.0
        assert quote.bid <= quote.ltp <= quote.ask

    def test_quote_defaults_without_cache(self, temp_db):
        broker = PaperBroker(temp_db, drift_percent=0.0, rng=random.Random(1))
        assert broker.get_quote("UNKNOWN").ltp == PaperBroker.DEFAULT_PRICE

    def test_no_lot_size_metadata(self, temp_db):
        assert PaperBroker(temp_db).get_lot_size("NIFTY24DEC23500CE") is None
