"""
Spredd Bridge API - HTTP proxy between the web frontend and Squid/EVM.

Provides REST endpoints for:
- Route previews (POST /quote)
- Cross-chain status lookups (GET /status)
- Token balances (GET /tokens/{token}/balance/{account})
- Health checks (GET /health)
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
import uvicorn
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..chains import explorer_tx_url, format_units, parse_positive_units
from ..config import BridgeRoute, Settings, get_settings
from ..errors import BridgeError
from ..evm import Erc20Client, make_web3
from ..models import RouteRequest
from ..quoter import RouteQuoter
from ..squid import SquidClient
from .auth import verify_api_token
from .models import BalanceResponse, HealthResponse, QuoteRequest, QuoteResponse, StatusResponse

# Configure logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger()


# Global clients (initialized at startup)
_squid_client: Optional[SquidClient] = None
_erc20_client: Optional[Erc20Client] = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    global _squid_client, _erc20_client

    settings = get_settings()

    _squid_client = SquidClient(
        base_url=settings.squid_api_url,
        integrator_id=settings.squid_integrator_id,
        timeout=settings.http_timeout_seconds,
        max_retries=settings.retry_max_attempts,
        initial_delay=settings.retry_initial_delay_seconds,
    )
    _erc20_client = Erc20Client(make_web3(settings.rpc_url))

    logger.info(
        "api_started",
        version=__version__,
        host=settings.host,
        port=settings.port,
        squid_api=settings.squid_api_url,
        evm_rpc=settings.rpc_url,
    )

    yield

    if _squid_client:
        await _squid_client.close()
    if _erc20_client:
        await _erc20_client.close()

    logger.info("api_stopped")


def get_squid_client() -> SquidClient:
    if _squid_client is None:
        raise HTTPException(status_code=503, detail="Squid client not initialized")
    return _squid_client


def get_erc20_client() -> Erc20Client:
    if _erc20_client is None:
        raise HTTPException(status_code=503, detail="EVM client not initialized")
    return _erc20_client


# Create FastAPI app
app = FastAPI(
    title="Spredd Bridge API",
    description="HTTP proxy for Squid Router quotes and cross-chain status",
    version=__version__,
    lifespan=lifespan,
)


# Add CORS middleware
_settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check
# ============================================================================


@app.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """
    Check API health and connectivity to Squid and the EVM RPC.
    """
    squid_ok = False
    evm_ok = False

    if _squid_client:
        squid_ok = await _squid_client.check_connectivity()

    if _erc20_client:
        evm_ok = await _erc20_client.check_connectivity()

    return HealthResponse(
        status="ok" if (squid_ok and evm_ok) else "degraded",
        version=__version__,
        squid_api=squid_ok,
        evm_rpc=evm_ok,
        route={
            "from_chain_id": settings.from_chain_id,
            "to_chain_id": settings.to_chain_id,
        },
    )


# ============================================================================
# Quote
# ============================================================================


@app.post(
    "/quote",
    response_model=QuoteResponse,
    dependencies=[Depends(verify_api_token)],
)
async def quote(
    request: QuoteRequest,
    settings: Settings = Depends(get_settings),
    squid: SquidClient = Depends(get_squid_client),
) -> QuoteResponse:
    """
    Preview a route for the configured source/destination pair.

    The returned transaction request is what the user's wallet signs.
    """
    route = BridgeRoute.from_settings(settings)

    try:
        route_request = RouteRequest(
            source_chain=route.from_chain_id,
            dest_chain=route.to_chain_id,
            source_token=route.from_token,
            dest_token=route.to_token,
            amount=parse_positive_units(request.amount, route.token_decimals),
            sender_address=request.from_address,
            recipient_address=request.to_address or request.from_address,
            slippage_bps=route.slippage_bps,
            fee_config=route.fee_config,
        )
        plan = await RouteQuoter(squid).quote(route_request)
    except (BridgeError, ValueError) as e:
        logger.error("quote_failed", error=str(e), sender=request.from_address)
        return QuoteResponse(success=False, error=str(e))

    tx = plan.transaction_request
    return QuoteResponse(
        success=True,
        route=plan.to_dict(),
        transaction_request={
            "target": tx.target,
            "data": tx.data,
            "value": str(tx.value),
            "gasLimit": str(tx.gas_limit),
            "gasPrice": str(tx.gas_price) if tx.gas_price is not None else None,
            "maxFeePerGas": str(tx.max_fee_per_gas) if tx.max_fee_per_gas is not None else None,
            "maxPriorityFeePerGas": (
                str(tx.max_priority_fee_per_gas)
                if tx.max_priority_fee_per_gas is not None
                else None
            ),
        },
    )


# ============================================================================
# Status
# ============================================================================


@app.get(
    "/status",
    response_model=StatusResponse,
    dependencies=[Depends(verify_api_token)],
)
async def transfer_status(
    transaction_id: str,
    request_id: str,
    from_chain_id: Optional[str] = None,
    to_chain_id: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    squid: SquidClient = Depends(get_squid_client),
) -> StatusResponse:
    """
    Look up cross-chain status once. Not-yet-indexed transfers are pending.
    """
    from_chain = from_chain_id or settings.from_chain_id
    to_chain = to_chain_id or settings.to_chain_id

    try:
        result = await squid.get_status(transaction_id, request_id, from_chain, to_chain)
    except Exception as e:
        logger.error("status_lookup_failed", error=str(e), tx_hash=transaction_id)
        return StatusResponse(success=False, error=str(e))

    return StatusResponse(
        success=True,
        squid_transaction_status=result.squid_transaction_status.value,
        status=result.raw_status,
        is_terminal=result.is_terminal,
        source_tx_id=result.source_tx_id,
        dest_tx_id=result.dest_tx_id,
        source_explorer_url=explorer_tx_url(from_chain, result.source_tx_id),
        dest_explorer_url=(
            explorer_tx_url(to_chain, result.dest_tx_id) if result.dest_tx_id else None
        ),
    )


# ============================================================================
# Balances
# ============================================================================


@app.get(
    "/tokens/{token}/balance/{account}",
    response_model=BalanceResponse,
    dependencies=[Depends(verify_api_token)],
)
async def token_balance(
    token: str,
    account: str,
    erc20: Erc20Client = Depends(get_erc20_client),
) -> BalanceResponse:
    """
    Read an ERC-20 balance on the source chain.
    """
    try:
        raw = await erc20.balance_of(token, account)
        info = await erc20.token_info(token)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("balance_lookup_failed", error=str(e), token=token, account=account)
        raise HTTPException(status_code=502, detail=f"Balance lookup failed: {e}")

    return BalanceResponse(
        account=account,
        token=token,
        symbol=info.symbol,
        decimals=info.decimals,
        balance=str(raw),
        formatted=format_units(raw, info.decimals),
    )


# ============================================================================
# Entry Point
# ============================================================================


def run() -> None:
    """Run the API server."""
    settings = get_settings()
    uvicorn.run(
        "spredd_bridge.api.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
