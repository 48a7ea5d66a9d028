"""
speedrun-e2e command line.

Commands:
    transfer   one cross-chain token transfer
    transfers  a YAML batch of transfers, run concurrently
    call       one cross-chain swap call through an initiator contract
    balances   wallet balances on every configured chain
"""
import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from dotenv import load_dotenv
from eth_account import Account

from speedrun_e2e.api import SpeedrunApiClient
from speedrun_e2e.config import ChainRegistry, Settings, load_private_key
from speedrun_e2e.exceptions import ConfigurationError
from speedrun_e2e.models import CallSpec, TransferSpec
from speedrun_e2e.orchestrator import TransferOrchestrator, summarize
from speedrun_e2e.poller import StatusPoller
from speedrun_e2e.version import __version__

from .balances import collect_balances
from .batch import load_transfer_specs
from .report import format_balances, format_result, format_summary_table, should_use_color

logger = logging.getLogger(__name__)

app = typer.Typer(help="End-to-end tests for the Speedrun cross-chain intent network")

T = TypeVar("T")


def _version_callback(value: bool):
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
):
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s"
    )


async def _with_orchestrator(action: Callable[[TransferOrchestrator], Awaitable[T]]) -> T:
    settings = Settings.from_env()
    registry = ChainRegistry.from_network_config()
    private_key = load_private_key()
    async with SpeedrunApiClient(settings.api_url) as api:
        orchestrator = TransferOrchestrator(registry, private_key, StatusPoller(api), settings=settings)
        return await action(orchestrator)


def _fail(message: str) -> None:
    typer.echo(f"❌ Error: {message}", err=True)
    raise typer.Exit(code=1)


def _print_single(result) -> None:
    for line in format_result(result, color=should_use_color()):
        typer.echo(line)
    if not result.succeeded:
        raise typer.Exit(code=1)


@app.command()
def transfer(
    src: str = typer.Option("base", "--src", "-s", help="Source chain"),
    dst: str = typer.Option("arbitrum", "--dst", "-d", help="Destination chain"),
    asset: str = typer.Option("usdc", "--asset", "-a", help="Token to transfer"),
    amount: str = typer.Option("0.3", "--amount", "-m", help="Amount to transfer"),
    fee: str = typer.Option("0.2", "--fee", "-f", help="Fee/tip amount"),
):
    """Initiate a cross-chain token transfer and wait for settlement."""
    spec = TransferSpec(src=src, dst=dst, asset=asset, amount=amount, fee=fee)
    try:
        result = asyncio.run(_with_orchestrator(lambda o: o.run(spec)))
    except ConfigurationError as e:
        _fail(str(e))
    _print_single(result)


@app.command()
def transfers(
    file: Path = typer.Option(..., "--file", "-f", help="YAML file containing transfer configurations"),
):
    """Run every transfer from a YAML file concurrently and print a summary table."""
    try:
        specs = load_transfer_specs(file)
        typer.echo(f"🚀 Starting {len(specs)} transfers...")
        results = asyncio.run(_with_orchestrator(lambda o: o.run_batch(specs)))
    except ConfigurationError as e:
        _fail(str(e))

    summary = summarize(results)
    typer.echo("")
    for line in format_summary_table(results, summary, color=should_use_color()):
        typer.echo(line)

    if not summary.succeeded:
        raise typer.Exit(code=1)
    typer.echo("✨ All transfers settled!")


@app.command()
def call(
    src: str = typer.Option("arbitrum", "--src", "-s", help="Source chain"),
    dst: str = typer.Option("base", "--dst", "-d", help="Destination chain"),
    amount: str = typer.Option("0.5", "--amount", "-a", help="Amount to swap"),
    fee: str = typer.Option("0.2", "--fee", "-f", help="Fee/tip amount"),
    gas: int = typer.Option(600000, "--gas", "-g", help="Gas limit for the destination call"),
    initiator: Optional[str] = typer.Option(None, "--initiator", "-i", help="Initiator contract address"),
):
    """Initiate a cross-chain swap call and wait for settlement."""
    spec = CallSpec(src=src, dst=dst, amount=amount, fee=fee, gas_limit=gas, initiator=initiator)
    try:
        result = asyncio.run(_with_orchestrator(lambda o: o.run_call(spec)))
    except ConfigurationError as e:
        _fail(str(e))
    _print_single(result)


@app.command()
def balances(
    address: Optional[str] = typer.Option(None, "--address", "-a", help="Address to check balances for"),
):
    """Check native and token balances across supported chains."""
    try:
        registry = ChainRegistry.from_network_config()
        account = Account.from_key(load_private_key())
    except ConfigurationError as e:
        _fail(str(e))

    found = asyncio.run(collect_balances(registry, account, address))
    for line in format_balances(address or account.address, found):
        typer.echo(line)

    if any(entry.error for entry in found):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
