"""AI advisory commands for OptionTrader CLI.

All results are hypothetical and intended for paper trading only.
"""

import click
from rich.panel import Panel
from rich.table import Table

from optiontrader.agents.advisor import AdvisoryAgent, AdvisoryError
from optiontrader.agents.base import get_api_key
from optiontrader.cli.common import console, fail, pnl_style, require_config
from optiontrader.strategies import STRATEGY_TYPES

INSTRUMENTS = click.Choice(["NIFTY", "BANKNIFTY"], case_sensitive=False)

DISCLAIMER = "[dim]AI-generated and hypothetical. Not financial advice.[/dim]"


def _advisor() -> AdvisoryAgent:
    """Build the advisor after checking the OpenAI key is available."""
    require_config()
    if not get_api_key():
        fail(
            "OpenAI API key not configured.\n\n"
            "Set [cyan]openai.api_key[/cyan] in config.toml or the OPENAI_API_KEY env var."
        )

    return AdvisoryAgent()


def _call(label: str, fn, *args):
    try:
        with console.status(f"[bold cyan]{label}...[/bold cyan]"):
            return fn(*args)
    except AdvisoryError as e:
        fail(str(e))


@click.command()
@click.option("-i", "--instrument", type=INSTRUMENTS, default="NIFTY", show_default=True)
def suggest(instrument: str) -> None:
    """Suggest the most promising strategy for today."""
    advisor = _advisor()
    result = _call("Analyzing market sentiment", advisor.suggest_strategy, instrument.upper())

    params = result.parameters
    console.print(Panel(
        f"{result.rationale}\n\n"
        f"[cyan]View:[/cyan]      {params.view}\n"
        f"[cyan]Strikes:[/cyan]   {params.suggested_strikes}\n"
        f"[cyan]Stop loss:[/cyan] {params.stop_loss}\n\n"
        f"[yellow]Risks:[/yellow] {result.risks}\n\n"
        f"{DISCLAIMER}",
        title=f"[bold cyan]{result.strategy_name}[/bold cyan] ({instrument.upper()})",
        border_style="cyan",
    ))


@click.command()
@click.argument("strategy_type", type=click.Choice(sorted(STRATEGY_TYPES)))
@click.option("-i", "--instrument", type=INSTRUMENTS, default="NIFTY", show_default=True)
def backtest(strategy_type: str, instrument: str) -> None:
    """Simulate STRATEGY_TYPE today and over the last 7 trading days."""
    advisor = _advisor()
    name = STRATEGY_TYPES[strategy_type]
    result = _call(f"Simulating {name}", advisor.run_backtest, instrument.upper(), name)

    legs = Table(title="Strategy Legs")
    legs.add_column("Instrument")
    legs.add_column("Action")
    legs.add_column("Entry", justify="right")
    for leg in result.strategy_legs:
        legs.add_row(leg.instrument, leg.action, f"₹{leg.entry_price:,.2f}")
    console.print(legs)

    intraday = Table(title="Intraday P&L")
    intraday.add_column("Time")
    intraday.add_column("P&L", justify="right")
    for point in result.data_points:
        intraday.add_row(point.time, pnl_style(point.pnl_amount))
    console.print(intraday)

    history = Table(title="Last 7 Trading Days")
    history.add_column("Date")
    history.add_column("P&L", justify="right")
    for day in result.historical_pnl:
        history.add_row(day.date, pnl_style(day.pnl_amount))
    console.print(history)

    console.print(Panel(
        f"P&L:              {pnl_style(result.pnl_amount)} ({result.pnl:+.2f}%)\n"
        f"Required capital: ₹{result.required_capital:,.2f}\n"
        f"Max loss:         ₹{result.max_loss:,.2f}\n\n"
        f"{result.commentary}\n\n{DISCLAIMER}",
        title=f"[bold cyan]{name} Simulation[/bold cyan] ({instrument.upper()})",
        border_style="cyan",
    ))


@click.command()
@click.option("-i", "--instrument", type=INSTRUMENTS, default="NIFTY", show_default=True)
def picks(instrument: str) -> None:
    """Top 5 intraday options ideas for today."""
    advisor = _advisor()
    ideas = _call("Finding top picks", advisor.top_picks, instrument.upper())

    if not ideas:
        console.print("[yellow]No picks returned.[/yellow]")
        return

    table = Table(title=f"Top Picks: {instrument.upper()}")
    table.add_column("Instrument", style="cyan")
    table.add_column("Action")
    table.add_column("Entry", justify="right")
    table.add_column("Capital", justify="right")
    table.add_column("Profit", justify="right", style="green")
    table.add_column("Loss", justify="right", style="red")
    table.add_column("Rationale")
    for pick in ideas:
        table.add_row(
            pick.instrument,
            pick.action,
            f"₹{pick.entry_price:,.2f}",
            f"₹{pick.required_capital:,.2f}",
            f"₹{pick.potential_profit:,.2f}",
            f"₹{pick.potential_loss:,.2f}",
            pick.rationale,
        )
    console.print(table)
    console.print(DISCLAIMER)


@click.command()
@click.option("-i", "--instrument", type=INSTRUMENTS, default="NIFTY", show_default=True)
@click.option("--target", type=click.FloatRange(min=0), required=True,
              help="Target profit in INR.")
@click.option("--max-loss", type=click.FloatRange(min=0), required=True,
              help="Maximum loss in INR per lot.")
def find(instrument: str, target: float, max_loss: float) -> None:
    """Find up to 3 strategies matching a profit target and loss cap."""
    advisor = _advisor()
    found = _call("Searching strategies", advisor.find_strategies,
                  instrument.upper(), target, max_loss)

    if not found:
        console.print("[yellow]No matching strategies found.[/yellow]")
        return

    for s in found:
        console.print(Panel(
            f"{s.rationale}\n\n"
            f"[cyan]Strikes:[/cyan] {s.suggested_strikes}\n"
            f"[green]Est. profit:[/green] ₹{s.estimated_profit:,.2f}   "
            f"[red]Est. loss:[/red] ₹{s.estimated_loss:,.2f}",
            title=f"[bold cyan]{s.strategy_name}[/bold cyan]",
            border_style="cyan",
        ))
    console.print(DISCLAIMER)
