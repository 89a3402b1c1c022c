"""CLI for the on-chain transaction history scanner."""

import logging
import time
from enum import StrEnum

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.traceback import install

from onchain_history.config import ConfigError, ScanConfig
from onchain_history.core import ChainRegistry, TransactionScanner, UnifiedTransaction, UnsupportedChainError
from onchain_history.core.models import TransactionStatus, TransactionType
from onchain_history.formatting import (
    Direction,
    ExportFormat,
    export_transactions,
    filter_transactions,
    format_transactions,
    group_transactions_by_date,
)

# Install rich traceback handler
install(show_locals=False)

app = typer.Typer(
    name="onchain-history",
    help="Reconstruct wallet transaction history by scanning EVM chains over JSON-RPC",
    add_completion=False,
)

console = Console()


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"
    CSV = "csv"


def _configure_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
            force=True,
        )


def _load_config() -> ScanConfig:
    try:
        return ScanConfig.from_env()
    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)


def _create_scanner(config: ScanConfig) -> TransactionScanner:
    registry = ChainRegistry.from_config_file(config=config)
    return TransactionScanner(registry=registry, config=config)


@app.command()
def history(
    address: str = typer.Argument(..., help="Wallet address to query"),
    chain_id: int = typer.Option(1, "--chain-id", "-c", help="Chain ID to scan"),
    from_block: int | None = typer.Option(None, "--from-block", help="First block (default: head - max range)"),
    to_block: int | None = typer.Option(None, "--to-block", help="Last block (default: chain head)"),
    tx_type: TransactionType | None = typer.Option(None, "--type", "-t", help="Only this transaction type"),
    status: TransactionStatus | None = typer.Option(None, "--status", "-s", help="Only this status"),
    direction: Direction = typer.Option(Direction.ALL, "--direction", help="Sent or received only"),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """
    Show the transaction history of a wallet.

    Examples:

        # Last blocks on Ethereum
        onchain-history history 0xABC...

        # Explicit range on Base, tokens only
        onchain-history history 0xABC... -c 8453 --from-block 100 --to-block 200 -t fungible-transfer

        # Export as CSV
        onchain-history history 0xABC... --format csv > history.csv
    """
    _configure_logging(debug)
    config = _load_config()

    if not config.enabled:
        console.print("[yellow]Transaction history is disabled.[/yellow] Set TXHISTORY_ENABLED=on to enable it.")
        raise typer.Exit(code=1)

    scanner = _create_scanner(config)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task(f"Scanning chain {chain_id}...", total=None)
            transactions = scanner.get_transactions(address, chain_id, from_block, to_block)
            progress.update(task, description=f"✓ Found {len(transactions)} transactions")
    except UnsupportedChainError as e:
        supported = ", ".join(str(chain) for chain in scanner.registry.supported_chain_ids())
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}. Supported chains: {supported}")
        raise typer.Exit(code=1)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)
    finally:
        scanner.registry.close()

    transactions = filter_transactions(
        transactions,
        tx_type=tx_type,
        status=status,
        direction=direction,
        address=address,
    )

    if format == OutputFormat.JSON:
        typer.echo(export_transactions(transactions, ExportFormat.JSON))
    elif format == OutputFormat.CSV:
        typer.echo(export_transactions(transactions, ExportFormat.CSV), nl=False)
    else:
        _output_table(transactions, address, chain_id, scanner.registry)


@app.command()
def list_chains() -> None:
    """List all supported chains."""
    config = _load_config()
    registry = ChainRegistry.from_config_file(config=config)

    table = Table(title="Supported Chains", show_header=True, header_style="bold magenta")
    table.add_column("Chain ID", style="cyan", justify="right")
    table.add_column("Name", style="green")
    table.add_column("Currency", style="yellow")
    table.add_column("Explorer", style="blue")

    for chain in registry.list_chains():
        name = f"{chain.name} (testnet)" if chain.testnet else chain.name
        table.add_row(str(chain.chain_id), name, chain.native_symbol, chain.explorer_url or "-")

    registry.close()
    console.print(table)


def _output_table(
    transactions: list[UnifiedTransaction],
    address: str,
    chain_id: int,
    registry: ChainRegistry,
) -> None:
    """Output history as rich tables, one per day."""
    if not transactions:
        console.print("\n[yellow]No transactions found[/yellow]")
        return

    now = time.time()
    chain = registry.get_chain(chain_id)
    chain_name = chain.name if chain else str(chain_id)

    console.print(f"\n[bold cyan]{chain_name}[/bold cyan] • {len(transactions)} transactions for {address}")

    for label, group in group_transactions_by_date(transactions, now=now).items():
        table = Table(title=label, show_header=True, header_style="bold magenta", title_justify="left")
        table.add_column("Age", style="dim")
        table.add_column("Type", style="cyan")
        table.add_column("Status")
        table.add_column("Hash", style="blue")
        table.add_column("From")
        table.add_column("To")
        table.add_column("Amount", style="bold green", justify="right")
        table.add_column("Block", justify="right")

        for item in format_transactions(group, chain_id, viewer=address, now=now, registry=registry):
            status = item.status
            arrow = {"sent": "↑ ", "received": "↓ ", "self": "↔ "}.get(item.direction, "")
            table.add_row(
                item.relative_time,
                item.type_label,
                f"[{status.color}]{status.icon} {status.label}[/{status.color}]",
                item.short_hash,
                item.short_from,
                item.short_to or "-",
                f"{arrow}{item.formatted_amount}",
                str(item.transaction.block_number),
            )

        console.print()
        console.print(table)

    console.print()


if __name__ == "__main__":
    app()
