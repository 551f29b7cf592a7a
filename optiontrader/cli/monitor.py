"""Monitoring commands for OptionTrader CLI."""

from typing import Optional

import click
from rich.table import Table

from optiontrader.cli.common import console, current_user, get_services, pnl_style, require_config
from optiontrader.monitor import DEFAULT_INTERVAL_SECONDS, MonitorStats

LOG_STYLES = {
    "INFO": "blue",
    "WARNING": "yellow",
    "ERROR": "red",
    "TRADE": "green",
}


@click.command()
@click.option("-i", "--interval", type=float, default=None,
              help=f"Seconds between checks (default {DEFAULT_INTERVAL_SECONDS:g}).")
@click.option("--once", is_flag=True, default=False, help="Run a single check and exit.")
@click.pass_context
def monitor(ctx: click.Context, interval: Optional[float], once: bool) -> None:
    """Watch open positions and exit them on stop-loss or target.
    
    Refreshes the P&L of every open position on a fixed cadence. Press
    Ctrl+C to stop.
    """
    config = require_config()
    user_id = current_user(ctx, config)
    services = get_services(config)

    if interval is None:
        interval = float(config.get("trading", {}).get("monitor_interval", DEFAULT_INTERVAL_SECONDS))

    def report(stats: MonitorStats) -> None:
        open_positions = services.store.get_positions(user_id, status="OPEN")
        total = sum(p.pnl for p in open_positions)
        line = (
            f"[dim]tick {stats.ticks}[/dim]  open: {len(open_positions)}  "
            f"P&L: {pnl_style(total)}  exits: {stats.exits}"
        )
        if stats.consecutive_failures:
            line += f"  [red]errors: {stats.failures} ({stats.last_error})[/red]"
        console.print(line)

    if not once:
        console.print(f"[dim]Monitoring positions for {user_id} every {interval:g}s "
                      "(Ctrl+C to stop)...[/dim]")

    try:
        stats = services.monitor.run(
            user_id,
            interval=interval,
            max_ticks=1 if once else None,
            on_tick=report,
        )
    except KeyboardInterrupt:
        stats = services.monitor.stats
        console.print()

    console.print(
        f"[bold]Monitor stopped[/bold] after {stats.ticks} tick(s): "
        f"{stats.positions_checked} checks, {stats.exits} exits, {stats.failures} errors"
    )


@click.command()
@click.option("-t", "--type", "log_type",
              type=click.Choice(list(LOG_STYLES), case_sensitive=False),
              default=None, help="Only entries of this type.")
@click.option("-n", "--limit", type=int, default=50, show_default=True,
              help="Number of entries to show.")
@click.pass_context
def logs(ctx: click.Context, log_type: Optional[str], limit: int) -> None:
    """Show the audit log, newest first."""
    config = require_config()
    user_id = current_user(ctx, config)
    entries = get_services(config).store.get_logs(
        user_id, log_type=log_type.upper() if log_type else None, limit=limit
    )

    if not entries:
        console.print("[yellow]No log entries found.[/yellow]")
        return

    table = Table(title="System Logs")
    table.add_column("Time", style="dim")
    table.add_column("Type")
    table.add_column("Message")

    for entry in entries:
        style = LOG_STYLES.get(entry.log_type, "white")
        table.add_row(
            entry.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            f"[{style}]{entry.log_type}[/{style}]",
            entry.message,
        )

    console.print(table)
