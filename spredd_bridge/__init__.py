"""
Spredd Bridge

Moves USDC from Base to Polygon through the Squid Router aggregator:
quote a route, approve the exact amount, submit the bridge transaction
and follow the cross-chain status until it settles.

Usage:
    # Preview a route
    spredd-bridge quote 10

    # Bridge 10 USDC to the signer's own address on Polygon
    spredd-bridge bridge 10

    # Check a transfer
    spredd-bridge status 0xabc... <request-id>
"""

__version__ = "0.1.0"

from .allowance import AllowanceManager
from .config import BridgeRoute, Settings, get_settings
from .errors import (
    AllowanceError,
    ApprovalError,
    BridgeError,
    ExecutionError,
    InsufficientFundsError,
    MonitorCancelledError,
    MonitorTimeoutError,
    QuoteError,
    SessionBusyError,
    TransactionRejectedError,
    TransferFailedError,
)
from .evm import Erc20Client, EvmSigner
from .executor import TransactionExecutor, TransactionHandle
from .models import RoutePlan, RouteRequest, SquidTransactionStatus, TransferStatus
from .monitor import CancellationToken, StatusMonitor
from .orchestrator import BridgeOrchestrator
from .quoter import RouteQuoter
from .retry import retry_with_backoff
from .session import BridgeSession, SessionStatus
from .squid import SquidClient

__all__ = [
    "__version__",
    "AllowanceError",
    "AllowanceManager",
    "ApprovalError",
    "BridgeError",
    "BridgeOrchestrator",
    "BridgeRoute",
    "BridgeSession",
    "CancellationToken",
    "Erc20Client",
    "EvmSigner",
    "ExecutionError",
    "InsufficientFundsError",
    "MonitorCancelledError",
    "MonitorTimeoutError",
    "QuoteError",
    "RoutePlan",
    "RouteQuoter",
    "RouteRequest",
    "SessionBusyError",
    "SessionStatus",
    "Settings",
    "SquidClient",
    "SquidTransactionStatus",
    "StatusMonitor",
    "TransactionExecutor",
    "TransactionHandle",
    "TransactionRejectedError",
    "TransferFailedError",
    "TransferStatus",
    "get_settings",
    "retry_with_backoff",
]
