"""Broker implementations for OptionTrader."""

from optiontrader.brokers.base import BaseBroker, NotAuthenticatedError
from optiontrader.brokers.angelone import AngelOneBroker
from optiontrader.brokers.paper import PaperBroker

__all__ = [
    "AngelOneBroker",
    "BaseBroker",
    "NotAuthenticatedError",
    "PaperBroker",
]
