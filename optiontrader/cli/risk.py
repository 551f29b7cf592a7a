"""Risk settings commands for OptionTrader CLI."""

from datetime import datetime
from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from optiontrader.cli.common import console, current_user, fail, get_services, pnl_style, require_config
from optiontrader.models import UserSettings
from optiontrader.risk import start_of_day


@click.group()
def risk() -> None:
    """View and change risk limits."""


def _settings_table(settings: UserSettings) -> Table:
    table = Table(title=f"Risk Settings ({settings.user_id})", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row(
        "Auto trading",
        "[green]enabled[/green]" if settings.auto_trade_enabled else "[red]disabled[/red]",
    )
    table.add_row("Max daily loss", f"₹{settings.max_daily_loss:,.2f}")
    table.add_row("Max position size", f"₹{settings.max_position_size:,.2f}")
    table.add_row("Max open positions", str(settings.max_open_positions))
    table.add_row("Notifications", "on" if settings.notifications_enabled else "off")
    return table


@risk.command("show")
@click.pass_context
def show(ctx: click.Context) -> None:
    """Show your risk settings."""
    config = require_config()
    user_id = current_user(ctx, config)
    settings = get_services(config).store.get_user_settings(user_id)

    if settings is None:
        console.print("[yellow]No risk settings saved. Trading is disabled.[/yellow]\n"
                      "[dim]Configure with: optiontrader risk set --auto-trade[/dim]")
        return

    console.print(_settings_table(settings))


@risk.command("set")
@click.option("--auto-trade/--no-auto-trade", default=None, help="Enable or disable auto trading.")
@click.option("--max-daily-loss", type=click.FloatRange(min=0), default=None, help="INR.")
@click.option("--max-position-size", type=click.FloatRange(min=0), default=None, help="INR.")
@click.option("--max-open-positions", type=click.IntRange(min=0), default=None)
@click.option("--notifications/--no-notifications", default=None)
@click.pass_context
def set_limits(
    ctx: click.Context,
    auto_trade: Optional[bool],
    max_daily_loss: Optional[float],
    max_position_size: Optional[float],
    max_open_positions: Optional[int],
    notifications: Optional[bool],
) -> None:
    """Update risk settings. Unspecified values are kept."""
    config = require_config()
    user_id = current_user(ctx, config)
    store = get_services(config).store

    settings = store.get_user_settings(user_id) or UserSettings(user_id=user_id)
    updates = {
        "auto_trade_enabled": auto_trade,
        "max_daily_loss": max_daily_loss,
        "max_position_size": max_position_size,
        "max_open_positions": max_open_positions,
        "notifications_enabled": notifications,
    }
    settings = settings.model_copy(update={k: v for k, v in updates.items() if v is not None})
    store.save_user_settings(settings)

    console.print(_settings_table(settings))


@risk.command("check")
@click.pass_context
def check(ctx: click.Context) -> None:
    """Check whether new trades are allowed right now."""
    config = require_config()
    user_id = current_user(ctx, config)
    services = get_services(config)
    store = services.store

    allowed = services.risk_gate.can_trade(user_id)
    settings = store.get_user_settings(user_id)

    lines = []
    if settings is not None:
        open_count = store.count_positions(user_id, "OPEN")
        daily_pnl = store.sum_pnl_since(user_id, start_of_day(datetime.now()))
        lines.append(f"Open positions: {open_count} / {settings.max_open_positions}")
        lines.append(f"Today's P&L:    {pnl_style(daily_pnl)} "
                     f"(limit -₹{settings.max_daily_loss:,.2f})")
    else:
        lines.append("No risk settings saved.")

    if allowed:
        console.print(Panel(
            "[green]✓ Trading allowed[/green]\n\n" + "\n".join(lines),
            title="[bold green]Risk Check[/bold green]",
            border_style="green",
        ))
    else:
        fail("✗ Trading blocked by risk limits\n\n" + "\n".join(lines))
