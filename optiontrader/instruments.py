"""Contract lot sizes for index derivatives."""

import logging
import re
from typing import Optional

from optiontrader.brokers.base import BaseBroker

logger = logging.getLogger(__name__)

# NSE lot sizes keyed by underlying, as of the last contract revision.
# The exchange revises these periodically; override them with
# [instruments] lot_sizes in config.toml when they change.
DEFAULT_LOT_SIZES = {
    "NIFTY": 50,
    "BANKNIFTY": 15,
    "FINNIFTY": 40,
    "MIDCPNIFTY": 75,
}
DEFAULT_LOT_SIZE = 15

_UNDERLYING_RE = re.compile(r"[A-Z&]+")


def underlying_of(symbol: str) -> str:
    """Extract the underlying from a derivative symbol.

    ``NIFTY24DEC23500CE`` -> ``NIFTY``, ``BANKNIFTY 48000 PE`` -> ``BANKNIFTY``.
    """
    match = _UNDERLYING_RE.match(symbol.strip().upper())
    return match.group(0) if match else ""


class LotSizeRegistry:
    """Resolves the lot size of a contract.

    The broker's instrument metadata wins when available; otherwise the
    underlying is looked up in the reference table.
    """

    def __init__(
        self,
        broker: Optional[BaseBroker] = None,
        overrides: Optional[dict[str, int]] = None,
        default: int = DEFAULT_LOT_SIZE,
    ):
        self._broker = broker
        self._table = dict(DEFAULT_LOT_SIZES)
        self._table.update({k.upper(): int(v) for k, v in (overrides or {}).items()})
        self._default = default

    def lot_size(self, symbol: str) -> int:
        """Get the lot size for a symbol."""
        if self._broker is not None:
            from_broker = self._broker.get_lot_size(symbol)
            if from_broker:
                return from_broker

        underlying = underlying_of(symbol)
        if underlying in self._table:
            return self._table[underlying]

        logger.debug("No lot size for %s, using default %d", symbol, self._default)
        return self._default
