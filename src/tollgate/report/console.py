"""
Console report generator for Tollgate.

Renders a persisted token in the terminal using the Rich library:
a header panel, the capability flags, the tunable settings, the largest
holders and, in verbose mode, the event log.
"""

from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tollgate.schema import BPS_DENOMINATOR, EventKind, LedgerEvent
from tollgate.store import TokenDB
from tollgate.token import Token

ICON_ENABLED = "[green]✓[/green]"
ICON_DISABLED = "[dim]✗[/dim]"

MAX_HOLDERS = 10


def generate_console_report(
    db_path: str | Path = "tollgate.db",
    console: Console | None = None,
    verbose: bool = False,
) -> None:
    """
    Print a console report for the token stored in db_path.

    Args:
        db_path: Path to the SQLite database
        console: Rich Console instance (creates one if not provided)
        verbose: Whether to include the event log

    Raises:
        TokenNotDeployedError: If the database holds no token
    """
    if console is None:
        console = Console()

    with TokenDB(db_path) as db:
        token = Token.open(db)

        _print_header(console, token)
        console.print()

        _print_capabilities(console, token)
        console.print()

        _print_holders(console, db.holders(), token.decimals)

        if verbose:
            console.print()
            _print_events(console, token.events())


def format_amount(amount: int, decimals: int) -> str:
    """Render a base-unit amount in whole tokens, without float rounding."""
    if decimals == 0:
        return f"{amount:,}"
    whole, fraction = divmod(amount, 10**decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0")
    return f"{whole:,}.{fraction_str}" if fraction_str else f"{whole:,}"


def format_bps(bps: int) -> str:
    """Render basis points as a percentage."""
    return f"{bps * 100 / BPS_DENOMINATOR:g}%"


def _print_header(console: Console, token: Token) -> None:
    header = Text()
    header.append(f" {token.name} ", style="bold")
    header.append(token.symbol, style="bold cyan")
    header.append(" │ ", style="dim")
    header.append(token.address, style="dim")
    console.print(Panel(header, expand=False))

    console.print(f"  [dim]Owner:[/dim]        {token.owner or '[yellow]renounced[/yellow]'}")
    console.print(f"  [dim]Decimals:[/dim]     {token.decimals}")
    console.print(
        f"  [dim]Total supply:[/dim] {format_amount(token.total_supply(), token.decimals)} "
        f"[dim]({token.total_supply()} base units)[/dim]"
    )


def _print_capabilities(console: Console, token: Token) -> None:
    console.print("[bold]Capabilities[/bold]")
    console.print()

    settings = token.settings
    table = Table(show_header=True, header_style="bold")
    table.add_column("Capability", style="cyan")
    table.add_column("Enabled", justify="center", width=8)
    table.add_column("Setting")

    rows: list[tuple[str, bool, str]] = [
        ("mintable", token.is_mintable(), ""),
        ("burnable", token.is_burnable(), ""),
        ("document uri", token.is_document_uri_allowed(), settings.document_uri),
        (
            "max per address",
            token.is_max_amount_of_tokens_set(),
            str(settings.max_token_amount_per_address),
        ),
        (
            "tax",
            token.is_taxable(),
            f"{format_bps(settings.tax_bps)} → {settings.tax_address}",
        ),
        ("deflation", token.is_deflationary(), format_bps(settings.deflation_bps)),
    ]
    for name, enabled, setting in rows:
        table.add_row(
            name,
            ICON_ENABLED if enabled else ICON_DISABLED,
            setting if enabled else "[dim]-[/dim]",
        )

    console.print(table)


def _print_holders(console: Console, holders: dict[str, int], decimals: int) -> None:
    console.print(f"[bold]Holders[/bold] [dim]({len(holders)})[/dim]")
    console.print()

    if not holders:
        console.print("  [dim]No holders[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Address", style="cyan")
    table.add_column("Balance", justify="right")

    ranked = sorted(holders.items(), key=lambda item: -item[1])
    for address, balance in ranked[:MAX_HOLDERS]:
        table.add_row(address, format_amount(balance, decimals))

    console.print(table)
    if len(ranked) > MAX_HOLDERS:
        console.print(f"  [dim]... and {len(ranked) - MAX_HOLDERS} more[/dim]")


def _print_events(console: Console, events: list[LedgerEvent]) -> None:
    console.print(f"[bold]Events[/bold] [dim]({len(events)})[/dim]")
    console.print()

    table = Table(show_header=True, header_style="bold", expand=True)
    table.add_column("#", style="dim", width=5, justify="right")
    table.add_column("Kind", style="cyan", width=26)
    table.add_column("Details", overflow="fold")

    for event in events:
        table.add_row(str(event.event_id), event.kind.value, _format_event(event))

    console.print(table)


def _format_event(event: LedgerEvent) -> str:
    data: dict[str, Any] = event.data
    if event.kind == EventKind.TRANSFER:
        return f"{data.get('from')} → {data.get('to')}: {data.get('value')}"
    if event.kind == EventKind.APPROVAL:
        return f"{data.get('owner')} allows {data.get('spender')}: {data.get('value')}"
    return ", ".join(f"{key}={value}" for key, value in data.items())
