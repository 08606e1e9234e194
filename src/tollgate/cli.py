"""
CLI entry point for Tollgate.

This module provides the Typer-based command-line interface for Tollgate.
Every command works on a token persisted in a SQLite database.

Commands:
    deploy              Deploy a token from a YAML spec
    info                Show token identity, capabilities and settings
    balance             Show an address's balance
    quote               Preview tax and deflation for a transfer
    transfer            Transfer tokens
    transfer-from       Transfer tokens using an allowance
    approve             Set an allowance
    mint                Mint tokens (owner)
    burn                Burn own tokens (owner)
    set-cap             Raise the per-holder balance cap (owner)
    set-tax             Change the tax address and rate (owner)
    set-deflation       Change the deflation rate (owner)
    set-document-uri    Change the document URI (owner)
    transfer-ownership  Hand ownership to another address (owner)
    renounce-ownership  Give up ownership for good (owner)
    events              List recorded events
    report              Full console or JSON report

Architecture Note:
    The CLI is intentionally thin - it parses arguments and delegates to the
    Token facade. Errors are printed with their code and suggestion and the
    process exits with status 1.
"""

import json
import logging
import traceback
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tollgate import __version__
from tollgate.errors import TollgateError
from tollgate.report import (
    format_amount,
    format_bps,
    generate_console_report,
    generate_json_report,
    serialize_event,
)
from tollgate.schema import EventKind, FeeQuote, load_token_spec
from tollgate.store import TokenDB
from tollgate.token import Token

# Initialize Typer app with metadata
app = typer.Typer(
    name="tollgate",
    help="Configurable token ledger with transfer tax, deflation and balance caps.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()

DEFAULT_DB = Path("tollgate.db")

DbOption = Annotated[
    Path,
    typer.Option(
        "--db",
        help="Path to the token's SQLite database.",
        resolve_path=True,
    ),
]
JsonOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Output results in JSON format.",
    ),
]
DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Enable debug mode with full error tracebacks.",
    ),
]
CallerOption = Annotated[
    str,
    typer.Option(
        "--caller",
        "-c",
        help="Address performing the operation.",
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]tollgate[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            help="Log ledger operations to stderr.",
        ),
    ] = False,
) -> None:
    """
    Tollgate - token ledger with fee and cap overlay.

    Deploy a token from a YAML spec, then move, mint and burn tokens with
    tax, deflation and per-holder caps enforced on every operation.
    """
    _configure_logging(verbose)


def _configure_logging(verbose: bool) -> None:
    """Route library logs through Rich when verbose output is requested."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@contextmanager
def _open_token(db_path: Path, json_output: bool, debug: bool) -> Generator[Token, None, None]:
    """Open the token in db_path and turn Tollgate errors into exit code 1."""
    try:
        with TokenDB(db_path) as db:
            yield Token.open(db)
    except TollgateError as e:
        _report_error(e, json_output, debug)
        raise typer.Exit(code=1)


def _report_error(error: TollgateError, json_output: bool, debug: bool) -> None:
    """Print an error in the requested format."""
    if json_output:
        output: dict[str, Any] = {"error": True, **error.to_dict()}
        if debug:
            output["traceback"] = traceback.format_exc()
        print(json.dumps(output, indent=2, default=str))
    else:
        console.print(f"[red]{error}[/red]")
        if debug:
            console.print(f"[dim]{traceback.format_exc()}[/dim]")


def _report_ok(json_output: bool, message: str, **data: Any) -> None:
    """Print a success line or JSON object."""
    if json_output:
        print(json.dumps({"ok": True, **data}, indent=2, default=str))
    else:
        console.print(f"[green]✓[/green] {message}")


def _quote_dict(quote: FeeQuote) -> dict[str, int]:
    return {
        "amount": quote.amount,
        "tax_amount": quote.tax_amount,
        "deflation_amount": quote.deflation_amount,
        "net_amount": quote.net_amount,
    }


def _print_quote(quote: FeeQuote) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Part", style="dim")
    table.add_column("Amount", justify="right")
    table.add_row("Amount", str(quote.amount))
    table.add_row("Tax", f"[yellow]{quote.tax_amount}[/yellow]" if quote.tax_amount else "0")
    table.add_row(
        "Deflation",
        f"[red]{quote.deflation_amount}[/red]" if quote.deflation_amount else "0",
    )
    table.add_row("Net", f"[green]{quote.net_amount}[/green]")
    console.print(table)


# =============================================================================
# Deployment and Queries
# =============================================================================


@app.command()
def deploy(
    spec_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the token spec YAML file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ],
    db: DbOption = DEFAULT_DB,
    deployer: Annotated[
        Optional[str],
        typer.Option(
            "--deployer",
            help="Deploying address; ownership is handed to the spec's owner if different.",
        ),
    ] = None,
    token_address: Annotated[
        Optional[str],
        typer.Option(
            "--address",
            help="Address of the token itself (generated if omitted).",
        ),
    ] = None,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """
    Deploy a token from a YAML spec into a new database.

    Example:
        $ tollgate deploy token.yaml --db token.db
    """
    try:
        spec = load_token_spec(spec_path)
    except Exception as e:
        if json_output:
            print(json.dumps({"error": True, "error_type": "spec_load_error", "message": str(e)}, indent=2))
        else:
            console.print(f"[red]Error loading spec: {e}[/red]")
            if debug:
                console.print(f"[dim]{traceback.format_exc()}[/dim]")
        raise typer.Exit(code=1)

    try:
        with TokenDB(db) as ledger:
            token = Token.deploy(spec, ledger=ledger, deployer=deployer, token_address=token_address)
            info = token.info()
    except TollgateError as e:
        _report_error(e, json_output, debug)
        raise typer.Exit(code=1)

    _report_ok(
        json_output,
        f"Deployed [bold]{info['name']}[/bold] ({info['symbol']}) at [cyan]{info['address']}[/cyan]",
        token=info,
    )


@app.command()
def info(
    db: DbOption = DEFAULT_DB,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Show token identity, capabilities and settings."""
    with _open_token(db, json_output, debug) as token:
        data = token.info()

    if json_output:
        print(json.dumps(data, indent=2, default=str))
        return

    console.print(f"[bold]{data['name']}[/bold] ([cyan]{data['symbol']}[/cyan]) at {data['address']}")
    console.print(f"  [dim]Owner:[/dim]        {data['owner'] or 'renounced'}")
    console.print(f"  [dim]Decimals:[/dim]     {data['decimals']}")
    console.print(f"  [dim]Total supply:[/dim] {format_amount(data['total_supply'], data['decimals'])}")
    for name, enabled in data["capabilities"].items():
        icon = "[green]✓[/green]" if enabled else "[dim]✗[/dim]"
        console.print(f"  {icon} {name}")
    settings = data["settings"]
    if data["capabilities"]["taxable"]:
        console.print(f"  [dim]Tax:[/dim] {format_bps(settings['tax_bps'])} → {settings['tax_address']}")
    if data["capabilities"]["deflationary"]:
        console.print(f"  [dim]Deflation:[/dim] {format_bps(settings['deflation_bps'])}")
    if data["capabilities"]["max_amount_of_tokens"]:
        console.print(f"  [dim]Max per address:[/dim] {settings['max_token_amount_per_address']}")


@app.command()
def balance(
    address: Annotated[str, typer.Argument(help="Address to look up.")],
    db: DbOption = DEFAULT_DB,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Show the balance of an address."""
    with _open_token(db, json_output, debug) as token:
        amount = token.balance_of(address)
        decimals = token.decimals

    if json_output:
        print(json.dumps({"address": address.lower(), "balance": amount}, indent=2))
    else:
        console.print(f"{address.lower()}: [bold]{format_amount(amount, decimals)}[/bold] [dim]({amount})[/dim]")


@app.command()
def quote(
    sender: Annotated[str, typer.Argument(help="Sending address.")],
    amount: Annotated[int, typer.Argument(help="Amount in base units.")],
    db: DbOption = DEFAULT_DB,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Preview tax, deflation and net amount for a transfer."""
    with _open_token(db, json_output, debug) as token:
        result = token.quote_transfer(sender, amount)

    if json_output:
        print(json.dumps(_quote_dict(result), indent=2))
    else:
        _print_quote(result)


@app.command()
def events(
    db: DbOption = DEFAULT_DB,
    kind: Annotated[
        Optional[EventKind],
        typer.Option("--kind", "-k", help="Only show events of this kind."),
    ] = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Show at most this many (most recent)."),
    ] = 50,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """List recorded events, oldest first."""
    with _open_token(db, json_output, debug) as token:
        recorded = token.events(kind)[-limit:] if limit > 0 else []

    if json_output:
        print(json.dumps([serialize_event(e) for e in recorded], indent=2))
        return

    if not recorded:
        console.print("[dim]No events found.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Kind", style="cyan")
    table.add_column("Data")
    table.add_column("Recorded", style="dim")
    for event in recorded:
        data = ", ".join(f"{k}={v}" for k, v in event.data.items())
        table.add_row(
            str(event.event_id),
            event.kind.value,
            data,
            event.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        )
    console.print(table)


@app.command()
def report(
    db: DbOption = DEFAULT_DB,
    format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format: console or json.",
        ),
    ] = "console",
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Include the event log."),
    ] = False,
    debug: DebugOption = False,
) -> None:
    """Generate a full report of the token."""
    fmt = format.lower()
    if fmt not in ("console", "json"):
        console.print(f"[red]Invalid format: {format}. Use 'console' or 'json'.[/red]")
        raise typer.Exit(code=1)

    try:
        if fmt == "json":
            print(generate_json_report(db, include_events=verbose))
        else:
            generate_console_report(db, console=console, verbose=verbose)
    except TollgateError as e:
        _report_error(e, fmt == "json", debug)
        raise typer.Exit(code=1)


# =============================================================================
# Holder Operations
# =============================================================================


@app.command()
def transfer(
    sender: Annotated[str, typer.Argument(help="Sending address.")],
    recipient: Annotated[str, typer.Argument(help="Receiving address.")],
    amount: Annotated[int, typer.Argument(help="Amount in base units.")],
    db: DbOption = DEFAULT_DB,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Transfer tokens, applying tax, deflation and balance cap."""
    with _open_token(db, json_output, debug) as token:
        result = token.transfer(sender, recipient, amount)

    if json_output:
        print(json.dumps({"ok": True, **_quote_dict(result)}, indent=2))
    else:
        console.print(f"[green]✓[/green] Transferred {amount} from {sender.lower()} to {recipient.lower()}")
        _print_quote(result)


@app.command("transfer-from")
def transfer_from(
    spender: Annotated[str, typer.Argument(help="Address spending the allowance.")],
    holder: Annotated[str, typer.Argument(help="Address whose tokens move.")],
    recipient: Annotated[str, typer.Argument(help="Receiving address.")],
    amount: Annotated[int, typer.Argument(help="Amount in base units.")],
    db: DbOption = DEFAULT_DB,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Transfer tokens on behalf of a holder using an allowance."""
    with _open_token(db, json_output, debug) as token:
        result = token.transfer_from(spender, holder, recipient, amount)

    if json_output:
        print(json.dumps({"ok": True, **_quote_dict(result)}, indent=2))
    else:
        console.print(f"[green]✓[/green] {spender.lower()} moved {amount} from {holder.lower()} to {recipient.lower()}")
        _print_quote(result)


@app.command()
def approve(
    holder: Annotated[str, typer.Argument(help="Address granting the allowance.")],
    spender: Annotated[str, typer.Argument(help="Address receiving the allowance.")],
    amount: Annotated[int, typer.Argument(help="Allowance in base units.")],
    db: DbOption = DEFAULT_DB,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Allow a spender to move a holder's tokens."""
    with _open_token(db, json_output, debug) as token:
        token.approve(holder, spender, amount)

    _report_ok(json_output, f"{spender.lower()} may spend {amount} of {holder.lower()}", allowance=amount)


# =============================================================================
# Privileged Operations
# =============================================================================


@app.command()
def mint(
    to: Annotated[str, typer.Argument(help="Receiving address.")],
    amount: Annotated[int, typer.Argument(help="Amount in base units.")],
    caller: CallerOption,
    db: DbOption = DEFAULT_DB,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Mint new tokens (owner only)."""
    with _open_token(db, json_output, debug) as token:
        token.mint(caller, to, amount)
        supply = token.total_supply()

    _report_ok(json_output, f"Minted {amount} to {to.lower()}", total_supply=supply)


@app.command()
def burn(
    amount: Annotated[int, typer.Argument(help="Amount in base units.")],
    caller: CallerOption,
    db: DbOption = DEFAULT_DB,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Burn tokens from the caller's own balance (owner only)."""
    with _open_token(db, json_output, debug) as token:
        token.burn(caller, amount)
        supply = token.total_supply()

    _report_ok(json_output, f"Burned {amount} from {caller.lower()}", total_supply=supply)


@app.command("set-cap")
def set_cap(
    new_cap: Annotated[int, typer.Argument(help="New max tokens per address (base units).")],
    caller: CallerOption,
    db: DbOption = DEFAULT_DB,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Raise the per-holder balance cap (owner only)."""
    with _open_token(db, json_output, debug) as token:
        token.set_max_token_amount_per_address(caller, new_cap)

    _report_ok(json_output, f"Max tokens per address raised to {new_cap}", max_token_amount_per_address=new_cap)


@app.command("set-tax")
def set_tax(
    tax_address: Annotated[str, typer.Argument(help="Address receiving the tax.")],
    tax_bps: Annotated[int, typer.Argument(help="Tax rate in basis points (max 5000).")],
    caller: CallerOption,
    db: DbOption = DEFAULT_DB,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Change the tax address and rate (owner only)."""
    with _open_token(db, json_output, debug) as token:
        token.set_tax_config(caller, tax_address, tax_bps)

    _report_ok(
        json_output,
        f"Tax set to {format_bps(tax_bps)} → {tax_address.lower()}",
        tax_address=tax_address.lower(),
        tax_bps=tax_bps,
    )


@app.command("set-deflation")
def set_deflation(
    deflation_bps: Annotated[int, typer.Argument(help="Deflation rate in basis points (max 5000).")],
    caller: CallerOption,
    db: DbOption = DEFAULT_DB,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Change the deflation rate (owner only)."""
    with _open_token(db, json_output, debug) as token:
        token.set_deflation_config(caller, deflation_bps)

    _report_ok(json_output, f"Deflation set to {format_bps(deflation_bps)}", deflation_bps=deflation_bps)


@app.command("set-document-uri")
def set_document_uri(
    document_uri: Annotated[str, typer.Argument(help="New document URI.")],
    caller: CallerOption,
    db: DbOption = DEFAULT_DB,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Change the document URI (owner only)."""
    with _open_token(db, json_output, debug) as token:
        token.set_document_uri(caller, document_uri)

    _report_ok(json_output, f"Document URI set to {document_uri}", document_uri=document_uri)


@app.command("transfer-ownership")
def transfer_ownership(
    new_owner: Annotated[str, typer.Argument(help="Address of the new owner.")],
    caller: CallerOption,
    db: DbOption = DEFAULT_DB,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Hand ownership to another address (owner only)."""
    with _open_token(db, json_output, debug) as token:
        token.transfer_ownership(caller, new_owner)
        owner = token.owner

    _report_ok(json_output, f"Ownership transferred to {owner}", owner=owner)


@app.command("renounce-ownership")
def renounce_ownership(
    caller: CallerOption,
    db: DbOption = DEFAULT_DB,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the confirmation prompt."),
    ] = False,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """Give up ownership for good (owner only)."""
    if not yes:
        typer.confirm("Renouncing ownership disables every owner operation forever. Continue?", abort=True)

    with _open_token(db, json_output, debug) as token:
        token.renounce_ownership(caller)

    _report_ok(json_output, "Ownership renounced", owner=None)


if __name__ == "__main__":
    app()
