"""Authentication commands for OptionTrader CLI.

Handles login/logout with the Angel One broker using TOTP authentication.
"""

import click
from rich.panel import Panel

from optiontrader.cli.common import console
from optiontrader.config import (
    create_template_config,
    get_broker,
    get_config_path,
    get_data_store,
    get_trading_mode,
    load_config,
    validate_config,
)


@click.command()
def login() -> None:
    """Authenticate with the Angel One broker.
    
    Logs in using credentials from the config file and stores
    the session token for subsequent commands.
    
    In paper trading mode, this validates the configuration
    without connecting to Angel One.
    """
    config = load_config()

    if config is None:
        config_path = create_template_config()
        console.print(Panel(
            f"[yellow]Configuration file created at:[/yellow]\n"
            f"[cyan]{config_path}[/cyan]\n\n"
            f"Please edit this file with your API keys and credentials,\n"
            f"then run [green]optiontrader login[/green] again.",
            title="[bold]Configuration Required[/bold]",
            border_style="yellow",
        ))
        raise SystemExit(1)

    missing_keys = validate_config(config)
    if missing_keys:
        console.print(Panel(
            "[red]Missing required configuration keys:[/red]\n\n"
            + "\n".join(f"  • {key}" for key in missing_keys)
            + f"\n\n[dim]Edit {get_config_path()} to add these values.[/dim]",
            title="[bold red]Configuration Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    if get_trading_mode(config) == "paper":
        console.print(Panel(
            "[green]✓[/green] Paper trading mode active\n\n"
            "[dim]Orders will be simulated without connecting to Angel One.[/dim]",
            title="[bold green]Login Successful[/bold green]",
            border_style="green",
        ))
        return

    console.print("[dim]Authenticating with Angel One...[/dim]")

    broker = get_broker(config, get_data_store(config))
    if broker.login():
        client_id = config.get("angelone", {}).get("client_id", "")
        console.print(Panel(
            f"[green]✓[/green] Authenticated as [cyan]{client_id}[/cyan]\n\n"
            "[dim]Session token stored. You can now execute strategies.[/dim]",
            title="[bold green]Login Successful[/bold green]",
            border_style="green",
        ))
        return

    console.print(Panel(
        f"[red]✗[/red] Authentication failed\n\n"
        f"[yellow]Error:[/yellow] {broker.get_last_error()}\n\n"
        "[dim]Please check your credentials in config.toml:\n"
        "  • API key - from Angel One SmartAPI dashboard\n"
        "  • Client ID - your Angel One client ID\n"
        "  • PIN - your 4-digit MPIN\n"
        "  • TOTP secret - the secret key (not the 6-digit code)[/dim]",
        title="[bold red]Login Failed[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)


@click.command()
def logout() -> None:
    """Logout and clear session tokens."""
    config = load_config()

    if config is None:
        console.print("[yellow]No configuration found. Nothing to logout from.[/yellow]")
        return

    if get_trading_mode(config) == "paper":
        console.print(Panel(
            "[green]✓[/green] Paper trading session cleared",
            title="[bold green]Logout Successful[/bold green]",
            border_style="green",
        ))
        return

    broker = get_broker(config, get_data_store(config))
    if broker.logout():
        console.print(Panel(
            "[green]✓[/green] Session invalidated and tokens cleared\n\n"
            "[dim]You will need to login again to execute strategies.[/dim]",
            title="[bold green]Logout Successful[/bold green]",
            border_style="green",
        ))
    else:
        console.print(Panel(
            "[yellow]⚠[/yellow] Could not invalidate remote session\n\n"
            "[dim]Local tokens have been cleared.\n"
            "The remote session may expire automatically.[/dim]",
            title="[bold yellow]Partial Logout[/bold yellow]",
            border_style="yellow",
        ))
