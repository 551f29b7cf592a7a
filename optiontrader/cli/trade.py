"""Trading commands for OptionTrader CLI.

Strategy execution, position listing, manual exits and quotes.
"""

from datetime import date

import click
from pydantic import ValidationError
from rich.panel import Panel
from rich.table import Table

from optiontrader.brokers.base import NotAuthenticatedError
from optiontrader.cli.common import console, current_user, fail, get_services, pnl_style, require_config
from optiontrader.gateway import PositionNotFoundError
from optiontrader.models import Position, StrategyLeg
from optiontrader.risk import RiskLimitExceededError


def parse_leg(raw: str) -> StrategyLeg:
    """Parse ``SYMBOL:CE|PE:STRIKE:YYYY-MM-DD:BUY|SELL:QTY`` into a leg.

    Raises:
        ValueError: If the leg is malformed.
    """
    parts = [p.strip() for p in raw.split(":")]
    if len(parts) != 6:
        raise ValueError(
            f"Invalid leg '{raw}'. Expected SYMBOL:CE|PE:STRIKE:YYYY-MM-DD:BUY|SELL:QTY"
        )
    symbol, instrument_type, strike, expiry, action, quantity = parts
    try:
        return StrategyLeg(
            symbol=symbol.upper(),
            instrument_type=instrument_type.upper(),
            strike_price=float(strike),
            expiry_date=date.fromisoformat(expiry),
            action=action.upper(),
            quantity=int(quantity),
        )
    except (ValidationError, ValueError) as e:
        raise ValueError(f"Invalid leg '{raw}': {e}") from e


def _parse_legs(ctx: click.Context, param: click.Parameter, values: tuple) -> list[StrategyLeg]:
    try:
        return [parse_leg(v) for v in values]
    except ValueError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param)


def _positions_table(title: str, positions: list[Position]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Symbol")
    table.add_column("Side")
    table.add_column("Qty", justify="right")
    table.add_column("Entry", justify="right")
    table.add_column("LTP", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("Status")

    for p in positions:
        table.add_row(
            p.id,
            p.symbol,
            "[green]BUY[/green]" if p.action == "BUY" else "[red]SELL[/red]",
            str(p.quantity),
            f"₹{p.entry_price:,.2f}",
            f"₹{p.current_price:,.2f}",
            pnl_style(p.pnl),
            p.status,
        )
    return table


@click.command()
@click.argument("strategy_id")
@click.option(
    "-l", "--leg", "legs",
    multiple=True,
    required=True,
    callback=_parse_legs,
    help="Leg as SYMBOL:CE|PE:STRIKE:YYYY-MM-DD:BUY|SELL:QTY (repeatable).",
)
@click.pass_context
def execute(ctx: click.Context, strategy_id: str, legs: list[StrategyLeg]) -> None:
    """Execute the legs of strategy STRATEGY_ID.
    
    Legs are sent in order as market orders. Legs that do not fill are
    skipped; filled legs become open positions.
    
    \b
    Examples:
      optiontrader execute ID -l NIFTY24DEC23500CE:CE:23500:2024-12-26:SELL:1 \\
                              -l NIFTY24DEC23700CE:CE:23700:2024-12-26:BUY:1
    """
    config = require_config()
    user_id = current_user(ctx, config)
    services = get_services(config)

    strategy = services.strategies.get_strategy(user_id, strategy_id)
    if strategy is None:
        fail(f"Strategy not found: {strategy_id}")

    try:
        positions = services.executor.execute(user_id, strategy_id, legs)
    except RiskLimitExceededError as e:
        fail(f"{e}\n\n[dim]Check limits with: optiontrader risk check[/dim]")
    except NotAuthenticatedError as e:
        fail(f"{e}\n\n[dim]Run: optiontrader login[/dim]")
    except Exception as e:
        fail(f"Strategy execution failed: {e}")

    if positions:
        console.print(_positions_table(f"{strategy.name}: Opened Positions", positions))

    skipped = len(legs) - len(positions)
    color = "green" if skipped == 0 else "yellow"
    console.print(Panel(
        f"[{color}]{len(positions)} of {len(legs)} legs executed[/{color}]"
        + (f"\n[dim]{skipped} leg(s) did not fill and were skipped.[/dim]" if skipped else ""),
        title="[bold]Strategy Executed[/bold]",
        border_style=color,
    ))


@click.command()
@click.option("-a", "--all", "show_all", is_flag=True, default=False,
              help="Include closed and pending positions.")
@click.pass_context
def positions(ctx: click.Context, show_all: bool) -> None:
    """Show your positions (open only by default)."""
    config = require_config()
    user_id = current_user(ctx, config)
    store = get_services(config).store

    rows = store.get_positions(user_id, status=None if show_all else "OPEN")
    if not rows:
        console.print("[yellow]No positions found.[/yellow]")
        return

    console.print(_positions_table("Positions", rows))
    total = sum(p.pnl for p in rows if p.status == "OPEN")
    console.print(f"Open P&L: {pnl_style(total)}")


@click.command("exit")
@click.argument("position_id")
@click.pass_context
def exit_position(ctx: click.Context, position_id: str) -> None:
    """Close POSITION_ID with an opposite market order."""
    config = require_config()
    user_id = current_user(ctx, config)
    gateway = get_services(config).gateway

    try:
        response = gateway.exit_position(user_id, position_id)
    except PositionNotFoundError as e:
        fail(f"{e}: {e.position_id}")
    except Exception as e:
        fail(f"Exit failed: {e}")

    if response.status == "EXECUTED":
        console.print(f"[green]✓[/green] Position [cyan]{position_id}[/cyan] closed "
                      f"(order {response.order_id})")
    else:
        console.print(f"[yellow]Exit order {response.status.lower()}[/yellow]"
                      + (f": {response.message}" if response.message else ""))


@click.command()
@click.argument("symbol")
@click.pass_context
def quote(ctx: click.Context, symbol: str) -> None:
    """Show a quote for SYMBOL (NIFTY and BANKNIFTY map to their index)."""
    config = require_config()
    gateway = get_services(config).gateway

    symbol = symbol.upper()
    try:
        if symbol in ("NIFTY", "BANKNIFTY"):
            q = gateway.get_index_quote(symbol)
        else:
            q = gateway.get_quote(symbol)
    except Exception as e:
        fail(f"Failed to get quote for {symbol}: {e}")

    color = "green" if q.change >= 0 else "red"
    body = (
        f"LTP:    [bold]₹{q.ltp:,.2f}[/bold]\n"
        f"Change: [{color}]{q.change:+,.2f} ({q.change_percent:+.2f}%)[/{color}]"
    )
    if q.bid or q.ask:
        body += f"\nBid/Ask: ₹{q.bid:,.2f} / ₹{q.ask:,.2f}"
    if q.volume:
        body += f"\nVolume: {q.volume:,}"
    if q.oi:
        body += f"\nOI:     {q.oi:,}"
    console.print(Panel(body, title=f"[bold]{q.symbol}[/bold]", border_style="blue"))
