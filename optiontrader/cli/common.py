"""Helpers shared by CLI commands."""

import click
from rich.console import Console
from rich.panel import Panel

from optiontrader.config import (
    Services,
    apply_openai_config,
    build_services,
    get_user_id,
    load_config,
)

console = Console()


def error_panel(message: str, title: str = "Error") -> None:
    """Print an error panel."""
    console.print(Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))


def fail(message: str) -> None:
    """Print an error panel and exit with status 1."""
    error_panel(message)
    raise SystemExit(1)


def require_config() -> dict:
    """Load the config file, exiting with a hint if it is missing."""
    try:
        config = load_config()
    except ValueError as e:
        fail(str(e))
    if config is None:
        fail(
            "Configuration not found.\n\n"
            "Run [cyan]optiontrader login[/cyan] to create a config file."
        )
    apply_openai_config(config)
    return config


def current_user(ctx: click.Context, config: dict) -> str:
    return get_user_id(config, (ctx.obj or {}).get("user"))


def get_services(config: dict) -> Services:
    return build_services(config)


def pnl_style(value: float) -> str:
    """Rich markup for a signed INR amount."""
    color = "green" if value >= 0 else "red"
    return f"[{color}]₹{value:,.2f}[/{color}]"
