"""Strategy management commands for OptionTrader CLI."""

import click
from pydantic import ValidationError
from rich.panel import Panel
from rich.table import Table

from optiontrader.cli.common import console, current_user, fail, get_services, require_config
from optiontrader.models import StrategyConfig
from optiontrader.strategies import STRATEGY_TYPES


@click.group()
def strategy() -> None:
    """Create, list and toggle strategies."""


@strategy.command("create")
@click.argument("name")
@click.option(
    "-t", "--type", "strategy_type",
    type=click.Choice(sorted(STRATEGY_TYPES)),
    required=True,
    help="Strategy type.",
)
@click.option(
    "-i", "--instrument",
    type=click.Choice(["NIFTY", "BANKNIFTY"], case_sensitive=False),
    required=True,
    help="Underlying index.",
)
@click.option("--target", type=float, required=True, help="Target profit in INR.")
@click.option("--max-loss", type=float, required=True, help="Maximum loss in INR.")
@click.option("--entry-time", default="09:30", show_default=True, help="Entry time (HH:MM).")
@click.option("--exit-time", default="15:15", show_default=True, help="Exit time (HH:MM).")
@click.pass_context
def create(
    ctx: click.Context,
    name: str,
    strategy_type: str,
    instrument: str,
    target: float,
    max_loss: float,
    entry_time: str,
    exit_time: str,
) -> None:
    """Create a new (inactive) strategy named NAME.
    
    \b
    Examples:
      optiontrader strategy create "Weekly IC" -t iron_condor -i NIFTY --target 3000 --max-loss 5000
    """
    config = require_config()
    user_id = current_user(ctx, config)

    try:
        strategy_config = StrategyConfig(
            name=name,
            type=strategy_type,
            instrument=instrument.upper(),
            target_profit=target,
            max_loss=max_loss,
            entry_time=entry_time,
            exit_time=exit_time,
        )
    except ValidationError as e:
        fail(f"Invalid strategy: {e}")

    strategy_id = get_services(config).strategies.create_strategy(user_id, strategy_config)
    console.print(Panel(
        f"[bold]{name}[/bold] ({STRATEGY_TYPES[strategy_type]}, {instrument.upper()})\n\n"
        f"ID:     [cyan]{strategy_id}[/cyan]\n"
        f"Target: ₹{target:,.2f}\n"
        f"Max SL: ₹{max_loss:,.2f}\n\n"
        "[dim]Activate with: optiontrader strategy activate ID[/dim]",
        title="[bold green]Strategy Created[/bold green]",
        border_style="green",
    ))


@strategy.command("list")
@click.option("-a", "--active", is_flag=True, default=False, help="Only active strategies.")
@click.pass_context
def list_strategies(ctx: click.Context, active: bool) -> None:
    """List your strategies."""
    config = require_config()
    user_id = current_user(ctx, config)
    strategies = get_services(config).strategies.list_strategies(user_id, active_only=active)

    if not strategies:
        console.print("[yellow]No strategies found.[/yellow]")
        return

    table = Table(title="Strategies")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Instrument")
    table.add_column("Target", justify="right")
    table.add_column("Max Loss", justify="right")
    table.add_column("Active")

    for s in strategies:
        table.add_row(
            s.id,
            s.name,
            STRATEGY_TYPES.get(s.type, s.type),
            s.instrument,
            f"₹{s.risk_params.target_profit or 0:,.2f}",
            f"₹{s.risk_params.max_loss or 0:,.2f}",
            "[green]yes[/green]" if s.is_active else "[dim]no[/dim]",
        )

    console.print(table)


@strategy.command("activate")
@click.argument("strategy_id")
@click.pass_context
def activate(ctx: click.Context, strategy_id: str) -> None:
    """Activate strategy STRATEGY_ID."""
    _toggle(ctx, strategy_id, True)


@strategy.command("deactivate")
@click.argument("strategy_id")
@click.pass_context
def deactivate(ctx: click.Context, strategy_id: str) -> None:
    """Deactivate strategy STRATEGY_ID."""
    _toggle(ctx, strategy_id, False)


def _toggle(ctx: click.Context, strategy_id: str, active: bool) -> None:
    config = require_config()
    user_id = current_user(ctx, config)
    service = get_services(config).strategies

    try:
        if active:
            service.activate_strategy(user_id, strategy_id)
        else:
            service.deactivate_strategy(user_id, strategy_id)
    except ValueError as e:
        fail(str(e))

    state = "activated" if active else "deactivated"
    console.print(f"[green]✓[/green] Strategy [cyan]{strategy_id}[/cyan] {state}")
