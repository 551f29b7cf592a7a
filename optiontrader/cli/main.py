"""Main CLI entry point for OptionTrader.

This module provides the main click group and lazy loading
for heavy imports to improve startup time.
"""

import importlib
from typing import Optional

import click

from optiontrader.logging_utils import setup_logging


class LazyGroup(click.Group):
    """A click Group that lazily loads commands.
    
    This improves CLI startup time by only importing
    command modules when they are actually invoked.
    """

    def __init__(self, *args, lazy_subcommands: Optional[dict[str, str]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(set(base + lazy))

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        """Get a command by name, lazily loading if needed."""
        if cmd_name in self.commands:
            return self.commands[cmd_name]
        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)
        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Lazily load a command from its module path."""
        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        cmd = None
        for attr_name in dir(module):
            attr = getattr(module, attr_name)
            if isinstance(attr, click.Command) and attr.name == cmd_name:
                cmd = attr
                break

        if cmd is None:
            raise click.ClickException(f"Could not find command '{cmd_name}' in {module_path}")

        self.add_command(cmd)
        return cmd


# Define lazy subcommands mapping
LAZY_SUBCOMMANDS = {
    "login": "optiontrader.cli.auth",
    "logout": "optiontrader.cli.auth",
    "strategy": "optiontrader.cli.strategy",
    "execute": "optiontrader.cli.trade",
    "positions": "optiontrader.cli.trade",
    "exit": "optiontrader.cli.trade",
    "quote": "optiontrader.cli.trade",
    "monitor": "optiontrader.cli.monitor",
    "logs": "optiontrader.cli.monitor",
    "risk": "optiontrader.cli.risk",
    # AI Features
    "suggest": "optiontrader.cli.advisor",
    "backtest": "optiontrader.cli.advisor",
    "picks": "optiontrader.cli.advisor",
    "find": "optiontrader.cli.advisor",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="optiontrader")
@click.option("-u", "--user", default=None, help="Act as this user ID (overrides config).")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, user: Optional[str], verbose: bool) -> None:
    """OptionTrader - NIFTY/BANKNIFTY options strategies with risk-gated execution.
    
    \b
    Quick Start:
      optiontrader login                    # Create config / authenticate broker
      optiontrader risk set --auto-trade    # Enable automated trading
      optiontrader strategy create ...      # Define a strategy
      optiontrader execute ID --leg ...     # Execute its legs
      optiontrader monitor                  # Watch P&L, auto-exit on SL/target
    """
    ctx.ensure_object(dict)
    ctx.obj["user"] = user
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
