"""
CLI entry point for Spredd Bridge.
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import structlog
import typer
from dotenv import load_dotenv
from eth_account import Account

from .chains import (
    BLOCK_EXPLORERS,
    CHAIN_NAMES,
    chain_name,
    explorer_tx_url,
    format_units,
    parse_positive_units,
)
from .config import BridgeRoute, Settings, load_settings
from .errors import BridgeError, InsufficientFundsError, TransactionRejectedError
from .evm import Erc20Client, make_web3
from .models import RouteRequest, TransferStatus
from .orchestrator import BridgeOrchestrator
from .quoter import RouteQuoter
from .session import BridgeSession, SessionStatus
from .squid import SquidClient

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ]
)

app = typer.Typer(
    name="spredd-bridge",
    help="Cross-chain USDC bridge via Squid Router",
    add_completion=False,
)

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to .env configuration file",
)


def friendly_error(error: BaseException) -> str:
    """User-facing copy for a bridge failure."""
    if isinstance(error, TransactionRejectedError):
        return "Transaction rejected by user"
    if isinstance(error, InsufficientFundsError):
        return "Insufficient funds for transaction"
    return str(error) or "Bridge transaction failed"


def _squid_client(settings: Settings) -> SquidClient:
    return SquidClient(
        base_url=settings.squid_api_url,
        integrator_id=settings.squid_integrator_id,
        timeout=settings.http_timeout_seconds,
        max_retries=settings.retry_max_attempts,
        initial_delay=settings.retry_initial_delay_seconds,
    )


def _signer_address(settings: Settings) -> Optional[str]:
    if not settings.private_key:
        return None
    return Account.from_key(settings.private_key).address


@app.command()
def quote(
    amount: str = typer.Argument(..., help="Amount of USDC to bridge, e.g. 10 or 2.5"),
    sender: Optional[str] = typer.Option(
        None, "--sender", help="Sender address (defaults to the configured signer)"
    ),
    recipient: Optional[str] = typer.Option(
        None, "--recipient", help="Recipient on the destination chain (defaults to sender)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Print the route as JSON"),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """
    Preview a bridge route without submitting anything.
    """
    settings = load_settings(config_path)
    route = BridgeRoute.from_settings(settings)

    sender = sender or _signer_address(settings)
    if not sender:
        typer.echo("Error: pass --sender or configure PRIVATE_KEY", err=True)
        raise typer.Exit(1)

    async def _quote() -> None:
        client = _squid_client(settings)
        try:
            request = RouteRequest(
                source_chain=route.from_chain_id,
                dest_chain=route.to_chain_id,
                source_token=route.from_token,
                dest_token=route.to_token,
                amount=parse_positive_units(amount, route.token_decimals),
                sender_address=sender,
                recipient_address=recipient or sender,
                slippage_bps=route.slippage_bps,
                fee_config=route.fee_config,
            )
            plan = await RouteQuoter(client).quote(request)
        except (BridgeError, ValueError) as e:
            typer.echo(f"Error fetching quote: {e}", err=True)
            raise typer.Exit(1)
        finally:
            await client.close()

        if json_output:
            typer.echo(json.dumps(plan.to_dict(), indent=2))
            return

        decimals = route.token_decimals
        estimate = plan.estimate
        typer.echo(
            f"Route {chain_name(route.from_chain_id)} -> {chain_name(route.to_chain_id)}"
        )
        typer.echo(f"  Request ID: {plan.request_id}")
        typer.echo(f"  You send: {format_units(estimate.from_amount, decimals)} USDC")
        typer.echo(f"  You receive: {format_units(estimate.to_amount, decimals)} USDC")
        typer.echo(f"  Minimum received: {format_units(estimate.to_amount_min, decimals)} USDC")
        typer.echo(f"  Estimated time: ~{estimate.duration_seconds}s")
        for fee in estimate.fee_costs:
            typer.echo(f"  Fee ({fee.name}): {format_units(fee.amount, fee.decimals)} {fee.symbol}")
        for gas in estimate.gas_costs:
            typer.echo(f"  Gas: {format_units(gas.amount, gas.decimals)} {gas.symbol}")

    asyncio.run(_quote())


@app.command()
def bridge(
    amount: str = typer.Argument(..., help="Amount of USDC to bridge, e.g. 10 or 2.5"),
    recipient: Optional[str] = typer.Option(
        None, "--recipient", help="Recipient on the destination chain (defaults to signer)"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """
    Bridge USDC: quote, approve if needed, submit and follow the transfer.
    """
    settings = load_settings(config_path)

    try:
        orchestrator = BridgeOrchestrator.from_settings(settings)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not yes:
        typer.confirm(
            f"Bridge {amount} USDC from {chain_name(settings.from_chain_id)} "
            f"to {chain_name(settings.to_chain_id)}?",
            abort=True,
        )

    def on_session(session: BridgeSession) -> None:
        typer.echo(f"[{session.status.value}]")
        if session.source_tx_id and session.status is SessionStatus.MONITORING:
            url = explorer_tx_url(settings.from_chain_id, session.source_tx_id)
            typer.echo(f"  Source tx: {url or session.source_tx_id}")

    def on_status(status: TransferStatus) -> None:
        typer.echo(f"  status: {status.raw_status or status.squid_transaction_status.value}")

    orchestrator.subscribe(on_session)
    orchestrator.subscribe_status(on_status)

    async def _bridge() -> None:
        try:
            session = await orchestrator.start(amount, recipient=recipient)
        except (BridgeError, ValueError) as e:
            typer.echo(f"Bridge failed: {friendly_error(e)}", err=True)
            raise typer.Exit(1)
        finally:
            await orchestrator.close()

        typer.echo("Bridge complete!")
        if session.final_status and session.final_status.dest_tx_id:
            url = explorer_tx_url(settings.to_chain_id, session.final_status.dest_tx_id)
            typer.echo(f"  Destination tx: {url or session.final_status.dest_tx_id}")

    try:
        asyncio.run(_bridge())
    except KeyboardInterrupt:
        typer.echo("\nInterrupted - the transfer may still complete on-chain.")
        raise typer.Exit(130)


@app.command()
def status(
    tx_hash: str = typer.Argument(..., help="Source chain transaction hash"),
    request_id: str = typer.Argument(..., help="Squid request (quote) ID"),
    from_chain: Optional[str] = typer.Option(None, "--from-chain", help="Source chain ID"),
    to_chain: Optional[str] = typer.Option(None, "--to-chain", help="Destination chain ID"),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """
    Look up the cross-chain status of a bridge transaction once.
    """
    settings = load_settings(config_path)

    async def _status() -> None:
        client = _squid_client(settings)
        try:
            result = await client.get_status(
                tx_hash,
                request_id,
                from_chain or settings.from_chain_id,
                to_chain or settings.to_chain_id,
            )
        except (BridgeError, ValueError) as e:
            typer.echo(f"Error fetching status: {e}", err=True)
            raise typer.Exit(1)
        finally:
            await client.close()

        typer.echo(json.dumps(result.to_dict(), indent=2))

    asyncio.run(_status())


@app.command()
def balance(
    address: Optional[str] = typer.Argument(None, help="Account (defaults to the signer)"),
    token: Optional[str] = typer.Option(None, "--token", help="Token address (defaults to FROM_TOKEN)"),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """
    Show a token balance on the source chain.
    """
    settings = load_settings(config_path)
    account = address or _signer_address(settings)
    if not account:
        typer.echo("Error: pass an address or configure PRIVATE_KEY", err=True)
        raise typer.Exit(1)

    token_address = token or settings.from_token

    async def _balance() -> None:
        erc20 = Erc20Client(make_web3(settings.rpc_url))
        try:
            raw = await erc20.balance_of(token_address, account)
            info = await erc20.token_info(token_address)
        except Exception as e:
            typer.echo(f"Error fetching balance: {e}", err=True)
            raise typer.Exit(1)
        finally:
            await erc20.close()

        typer.echo(f"{account}: {format_units(raw, info.decimals)} {info.symbol}")

    asyncio.run(_balance())


@app.command()
def chains() -> None:
    """List supported chains."""
    for chain_id, name in CHAIN_NAMES.items():
        typer.echo(f"{chain_id:>6}  {name:<10} {BLOCK_EXPLORERS.get(chain_id, '')}")


@app.command()
def version() -> None:
    """Show the bridge version."""
    from spredd_bridge import __version__
    typer.echo(f"spredd-bridge v{__version__}")


def main() -> None:
    """Main entry point."""
    load_dotenv()
    app()


if __name__ == "__main__":
    main()
