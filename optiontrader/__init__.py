"""OptionTrader - options strategy execution and position monitoring."""

__version__ = "0.1.0"
