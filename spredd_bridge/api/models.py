"""
Pydantic models for API requests and responses.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Quote
# ============================================================================

class QuoteRequest(BaseModel):
    """Request a route preview."""

    amount: str = Field(..., description="Human amount of the source token, e.g. \"10\"")
    from_address: str = Field(..., description="Sender EVM address (0x...)")
    to_address: Optional[str] = Field(None, description="Recipient (defaults to sender)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "amount": "10",
                    "from_address": "0x1234567890abcdef1234567890abcdef12345678",
                }
            ]
        }
    }


class QuoteResponse(BaseModel):
    """Route preview."""

    success: bool = Field(..., description="Whether a route was found")
    route: Optional[dict[str, Any]] = Field(None, description="Route summary")
    transaction_request: Optional[dict[str, Any]] = Field(
        None, description="Transaction the wallet should submit"
    )
    error: Optional[str] = Field(None, description="Error message if failed")


# ============================================================================
# Status
# ============================================================================

class StatusResponse(BaseModel):
    """Cross-chain transfer status."""

    success: bool = Field(..., description="Whether the lookup succeeded")
    squid_transaction_status: Optional[str] = Field(None, description="Normalized status")
    status: Optional[str] = Field(None, description="Raw Squid status")
    is_terminal: bool = Field(False, description="Whether the transfer has settled")
    source_tx_id: Optional[str] = Field(None, description="Source chain transaction")
    dest_tx_id: Optional[str] = Field(None, description="Destination chain transaction")
    source_explorer_url: Optional[str] = Field(None, description="Source tx explorer link")
    dest_explorer_url: Optional[str] = Field(None, description="Destination tx explorer link")
    error: Optional[str] = Field(None, description="Error message if failed")


# ============================================================================
# Balance
# ============================================================================

class BalanceResponse(BaseModel):
    """ERC-20 balance."""

    account: str = Field(..., description="Account address")
    token: str = Field(..., description="Token address")
    symbol: str = Field(..., description="Token symbol")
    decimals: int = Field(..., description="Token decimals")
    balance: str = Field(..., description="Balance in smallest units")
    formatted: str = Field(..., description="Balance in whole tokens")


# ============================================================================
# Health Check
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    squid_api: bool = Field(..., description="Squid API connectivity")
    evm_rpc: bool = Field(..., description="EVM RPC connectivity")
    route: dict[str, str] = Field(..., description="Configured source/destination chains")
