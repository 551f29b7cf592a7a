"""CLI commands for OptionTrader.

This package provides the command-line interface for OptionTrader,
including broker login, strategy management, execution, monitoring
and AI advisory commands.
"""

from optiontrader.cli.main import cli, main

__all__ = ["cli", "main"]
