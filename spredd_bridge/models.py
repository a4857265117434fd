"""
Value objects exchanged between the bridge components.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True)
class FeeConfig:
    """Integrator fee collected by the aggregator."""

    integrator_address: str
    fee_bps: int  # basis points: 100 = 1%


@dataclass(frozen=True)
class RouteRequest:
    """Parameters for a cross-chain route quote."""

    source_chain: str
    dest_chain: str
    source_token: str
    dest_token: str
    amount: int  # smallest token unit
    sender_address: str
    recipient_address: str
    slippage_bps: int = 100
    fee_config: Optional[FeeConfig] = None

    def to_params(self) -> dict[str, Any]:
        """Build the /v2/route request body."""
        params: dict[str, Any] = {
            "fromChain": self.source_chain,
            "toChain": self.dest_chain,
            "fromToken": self.source_token,
            "toToken": self.dest_token,
            "fromAmount": str(self.amount),
            "fromAddress": self.sender_address,
            "toAddress": self.recipient_address,
            "slippage": self.slippage_bps / 100,
        }
        # Only include collectFees if a fee is actually charged
        if self.fee_config is not None and self.fee_config.fee_bps > 0:
            params["collectFees"] = {
                "integratorAddress": self.fee_config.integrator_address,
                "fee": self.fee_config.fee_bps,
            }
        return params


@dataclass(frozen=True)
class TokenAmount:
    """Fee or gas cost line from a route estimate."""

    name: str
    amount: int
    symbol: str
    decimals: int
    token_address: str


@dataclass(frozen=True)
class RouteEstimate:
    """Aggregator estimate for a route."""

    from_amount: int
    to_amount: int
    to_amount_min: int
    duration_seconds: int
    fee_costs: tuple[TokenAmount, ...] = ()
    gas_costs: tuple[TokenAmount, ...] = ()
    exchange_rate: Optional[str] = None
    price_impact: Optional[str] = None


@dataclass(frozen=True)
class TransactionRequest:
    """Transaction the aggregator wants the sender to submit."""

    target: str
    data: str
    value: int
    gas_limit: int
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None


@dataclass(frozen=True)
class RoutePlan:
    """A quoted route, consumed once by the allowance and execution steps."""

    estimate: RouteEstimate
    transaction_request: TransactionRequest
    originating_request: RouteRequest
    request_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly summary."""
        return {
            "requestId": self.request_id,
            "fromChain": self.originating_request.source_chain,
            "toChain": self.originating_request.dest_chain,
            "fromAmount": str(self.estimate.from_amount),
            "toAmount": str(self.estimate.to_amount),
            "toAmountMin": str(self.estimate.to_amount_min),
            "estimatedDurationSeconds": self.estimate.duration_seconds,
            "target": self.transaction_request.target,
            "feeCosts": [
                {"name": fee.name, "amount": str(fee.amount), "symbol": fee.symbol}
                for fee in self.estimate.fee_costs
            ],
            "gasCosts": [
                {"name": gas.name, "amount": str(gas.amount), "symbol": gas.symbol}
                for gas in self.estimate.gas_costs
            ],
        }


class SquidTransactionStatus(str, Enum):
    """Cross-chain transfer status reported by the aggregator."""

    PENDING = "pending"
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    NEEDS_GAS = "needs_gas"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset(
    {
        SquidTransactionStatus.SUCCESS,
        SquidTransactionStatus.PARTIAL_SUCCESS,
        SquidTransactionStatus.NEEDS_GAS,
        SquidTransactionStatus.FAILED,
    }
)


@dataclass(frozen=True)
class TransferStatus:
    """One observation of a cross-chain transfer."""

    id: str
    squid_transaction_status: SquidTransactionStatus
    source_tx_id: str
    dest_tx_id: Optional[str] = None
    raw_status: str = ""
    axelar_url: Optional[str] = None
    error: Optional[Any] = None

    @property
    def is_terminal(self) -> bool:
        return self.squid_transaction_status in TERMINAL_STATUSES

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "squidTransactionStatus": self.squid_transaction_status.value,
            "status": self.raw_status,
            "sourceTxId": self.source_tx_id,
            "destTxId": self.dest_tx_id,
            "axelarTransactionUrl": self.axelar_url,
            "error": self.error,
        }


@dataclass(frozen=True)
class ApprovalReceipt:
    """Confirmed ERC-20 approval."""

    tx_hash: str
    token: str
    spender: str
    amount: int
    gas_used: Optional[int] = None


@dataclass(frozen=True)
class TokenInfo:
    """ERC-20 metadata."""

    address: str
    symbol: str
    decimals: int

