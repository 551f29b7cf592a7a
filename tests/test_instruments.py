"""Tests for contract lot size resolution."""

from unittest.mock import MagicMock

import pytest

from optiontrader.instruments import DEFAULT_LOT_SIZE, LotSizeRegistry, underlying_of


@pytest.mark.parametrize("symbol,underlying", [
    ("NIFTY24DEC23500CE", "NIFTY"),
    ("BANKNIFTY24DEC48000PE", "BANKNIFTY"),
    ("FINNIFTY 21000 CE", "FINNIFTY"),
    ("midcpnifty24dec12000ce", "MIDCPNIFTY"),
    ("M&M", "M&M"),
    ("2024", ""),
])
def test_underlying_of(symbol, underlying):
    assert underlying_of(symbol) == underlying


class TestLotSizeRegistry:
    """Lot sizes come from the broker, then the table, then the default."""

    @pytest.mark.parametrize("symbol,lot_size", [
        ("NIFTY24DEC23500CE", 50),
        ("BANKNIFTY24DEC48000PE", 15),
        ("FINNIFTY24DEC21000CE", 40),
        ("MIDCPNIFTY24DEC12000CE", 75),
    ])
    def test_reference_table(self, symbol, lot_size):
        assert LotSizeRegistry().lot_size(symbol) == lot_size

    def test_banknifty_is_not_matched_as_nifty(self):
        assert LotSizeRegistry().lot_size("BANKNIFTY24DEC48000CE") != 50

    def test_unknown_underlying_uses_default(self):
        assert LotSizeRegistry().lot_size("RELIANCE24DEC3000CE") == DEFAULT_LOT_SIZE
        assert LotSizeRegistry(default=1).lot_size("RELIANCE24DEC3000CE") == 1

    def test_overrides(self):
        registry = LotSizeRegistry(overrides={"nifty": 75, "sensex": 10})
        assert registry.lot_size("NIFTY24DEC23500CE") == 75
        assert registry.lot_size("SENSEX24DEC80000CE") == 10

    def test_broker_metadata_wins(self):
        broker = MagicMock()
        broker.get_lot_size.return_value = 25
        assert LotSizeRegistry(broker=broker).lot_size("NIFTY24DEC23500CE") == 25

    def test_broker_without_metadata_falls_back(self):
        broker = MagicMock()
        broker.get_lot_size.return_value = None
        assert LotSizeRegistry(broker=broker).lot_size("NIFTY24DEC23500CE") == 50
