"""Persistence layer for OptionTrader."""

from optiontrader.db.store import DataStore

__all__ = ["DataStore"]
