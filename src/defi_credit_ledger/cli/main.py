"""CLI for the credit ledger."""

import json
import logging
from enum import StrEnum
from pathlib import Path
from typing import NoReturn

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.traceback import install

from defi_credit_ledger.config import Settings, get_settings
from defi_credit_ledger.core.credit import score_record
from defi_credit_ledger.core.dispatcher import ClaimDispatcher, TrustedProverVerifier
from defi_credit_ledger.core.errors import CreditLedgerError, PriceUnavailable, UnsupportedObservationRole
from defi_credit_ledger.core.ledger import ActivityLedger
from defi_credit_ledger.core.models import ActivityEvent, ActivityRecord, Claim, CreditScore, Protocol
from defi_credit_ledger.core.registry import HandlerRegistry
from defi_credit_ledger.core.retry import RetryConfig, with_retry
from defi_credit_ledger.core.store import JsonFileStore, LedgerStore, MemoryStore
from defi_credit_ledger.data import AddressRegistry, get_all_supported_chains, get_chain_config, get_chain_id
from defi_credit_ledger.pricing import DeFiLlamaNormalizer

app = typer.Typer(
    name="credit-ledger",
    help="Fold attested DeFi lending activity into a replay-safe ledger and score it",
    add_completion=False,
)

console = Console()

SUBMIT_RETRY = RetryConfig(max_retries=3, base_delay=1.0, max_delay=10.0, retry_on=(PriceUnavailable,))


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _configure_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format="%(message)s", handlers=[RichHandler(console=console)], force=True)
    if debug:
        install(show_locals=True)


def _open_store(settings: Settings) -> LedgerStore:
    if settings.store_path:
        return JsonFileStore(settings.store_path)
    return MemoryStore()


def _build_ledger(settings: Settings, normalizer: DeFiLlamaNormalizer) -> ActivityLedger:
    """
    Wire a ledger from settings.

    Returns
    -------
    ActivityLedger
        Ledger backed by the configured store and the given pricing

    """
    return ActivityLedger(
        store=_open_store(settings),
        registry=AddressRegistry.from_contracts(),
        price_normalizer=normalizer,
        admin=settings.admin_address,
        chain_id=get_chain_id(settings.chain),
        blocks_per_day=settings.blocks_per_day,
    )


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(code=1)


@app.command()
def ingest(
    claim_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Claim JSON file"),
    caller: str = typer.Option(..., "--caller", help="Address submitting the claim"),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """
    Submit an attested claim to the ledger.

    Examples:

        credit-ledger ingest claim.json --caller 0xABC...
    """
    _configure_logging(debug)
    settings = get_settings()

    try:
        claim = Claim.model_validate_json(claim_file.read_text(encoding="utf-8"))
    except ValidationError as e:
        _fail(f"invalid claim file: {e}")

    normalizer = DeFiLlamaNormalizer(
        base_url=settings.price_api_url,
        exponent=settings.price_exponent,
        cache_ttl=settings.price_cache_ttl,
    )
    try:
        ledger = _build_ledger(settings, normalizer)
        dispatcher = ClaimDispatcher(ledger, TrustedProverVerifier(settings.trusted_provers))
        # Price lookups are retried here, never inside the ledger.
        submit = with_retry(SUBMIT_RETRY)(dispatcher.submit)
        events = submit(caller, claim)
    except UnsupportedObservationRole as e:
        _output_events(e.applied_events, format)
        _fail(str(e))
    except CreditLedgerError as e:
        if debug:
            raise
        _fail(str(e))
    finally:
        normalizer.close()

    _output_events(events, format)


@app.command()
def record(
    user: str = typer.Argument(..., help="User address"),
    protocol: Protocol | None = typer.Option(None, "--protocol", "-p", help="Show a single protocol"),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
) -> None:
    """Show a user's activity records."""
    store = _open_store(get_settings())
    ledger_state = store.load(user)

    if protocol:
        records = {protocol.value: ledger_state.records.get(protocol, ActivityRecord())}
    else:
        records = {str(p): r for p, r in ledger_state.records.items()}
        records["aggregate"] = ledger_state.aggregate

    if format == OutputFormat.JSON:
        console.print_json(json.dumps({name: r.model_dump(mode="json") for name, r in records.items()}))
        return
    _output_records(user, records)


@app.command()
def score(
    user: str = typer.Argument(..., help="User address"),
    height: int = typer.Option(..., "--height", help="Reference block height"),
    protocol: Protocol | None = typer.Option(None, "--protocol", "-p", help="Score a single protocol"),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
) -> None:
    """
    Compute a user's credit score and tier.

    Examples:

        credit-ledger score 0xABC... --height 128000000

        credit-ledger score 0xABC... --height 128000000 --protocol aave_v3
    """
    settings = get_settings()
    ledger_state = _open_store(settings).load(user)
    source = ledger_state.records.get(protocol, ActivityRecord()) if protocol else ledger_state.aggregate

    result = score_record(source, height, settings.blocks_per_day)
    if format == OutputFormat.JSON:
        console.print_json(result.model_dump_json())
        return
    _output_score(user, protocol, result)


@app.command()
def list_protocols() -> None:
    """List all supported protocols."""
    table = Table(title="Supported Protocols", show_header=True, header_style="bold magenta")
    table.add_column("Protocol", style="cyan")
    table.add_column("Roles", style="green")

    for handler_class in HandlerRegistry.get_all_handlers():
        roles = ", ".join(sorted(role.value for role in handler_class.roles))
        table.add_row(handler_class.protocol.value, roles)

    console.print(table)


@app.command()
def list_chains() -> None:
    """List all configured chains."""
    table = Table(title="Supported Chains", show_header=True, header_style="bold magenta")
    table.add_column("Chain", style="cyan")
    table.add_column("Chain ID", style="blue")
    table.add_column("Protocols", style="green")

    for chain in get_all_supported_chains():
        config = get_chain_config(chain)
        table.add_row(chain, str(config["chain_id"]), ", ".join(config.get("protocols", {})))

    console.print(table)


def _output_events(events: list[ActivityEvent], format: OutputFormat) -> None:
    if format == OutputFormat.JSON:
        console.print_json(json.dumps([event.model_dump(mode="json") for event in events]))
        return

    if not events:
        console.print("\n[yellow]No new activity recorded[/yellow]")
        return

    table = Table(title="Recorded Activity", show_header=True, header_style="bold magenta")
    table.add_column("Block", style="blue", justify="right")
    table.add_column("Protocol", style="cyan")
    table.add_column("Action", style="yellow")
    table.add_column("Amount (USD)", style="white", justify="right")
    table.add_column("Running Total", style="bold green", justify="right")
    table.add_column("Count", justify="right")

    for event in events:
        table.add_row(
            str(event.block_height),
            event.protocol.value,
            event.kind.value,
            f"{event.amount:,}",
            f"{event.new_total:,}",
            str(event.new_count),
        )

    console.print(table)


def _output_records(user: str, records: dict[str, ActivityRecord]) -> None:
    if not records or not any(r.has_activity for r in records.values()):
        console.print(f"\n[yellow]No activity recorded for {user}[/yellow]")
        return

    table = Table(title=f"Activity for {user[:10]}...{user[-8:]}", show_header=True, header_style="bold magenta")
    table.add_column("Scope", style="cyan")
    table.add_column("Borrowed", justify="right")
    table.add_column("Supplied", justify="right")
    table.add_column("Repaid", justify="right")
    table.add_column("Events (b/s/r)", justify="right")
    table.add_column("First Block", style="blue", justify="right")
    table.add_column("Latest Block", style="blue", justify="right")
    table.add_column("Liquidations", style="red", justify="right")

    for name, r in records.items():
        table.add_row(
            name,
            f"{r.borrowed_total:,}",
            f"{r.supplied_total:,}",
            f"{r.repaid_total:,}",
            f"{r.borrow_count}/{r.supply_count}/{r.repay_count}",
            str(r.first_activity_height),
            str(r.latest_processed_height),
            str(r.liquidation_count),
        )

    console.print(table)


def _output_score(user: str, protocol: Protocol | None, result: CreditScore) -> None:
    scope = protocol.value if protocol else "all protocols"
    console.print(f"\n[bold cyan]Credit score for {user}[/bold cyan] ({scope})")

    summary = Table(show_header=False, box=None)
    summary.add_column("Label", style="bold")
    summary.add_column("Value", style="bold green")
    summary.add_row("Score:", str(result.score))
    summary.add_row("Tier:", result.tier.value)

    if result.factors is None:
        summary.add_row("", "[red]liquidation override[/red]")
    else:
        summary.add_row("", "")
        for name, value in result.factors.model_dump().items():
            summary.add_row(f"  {name}", str(value))

    console.print(summary)


if __name__ == "__main__":
    app()
