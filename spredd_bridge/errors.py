"""
Error taxonomy for the bridge flow.

Every step raises a subclass of BridgeError; the orchestrator records the
message as the session's last error and re-raises.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import TransferStatus


class BridgeError(Exception):
    """Base class for all bridge errors."""


class SquidApiError(BridgeError):
    """Non-success HTTP response from the Squid API."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Squid API error {status_code}: {message}")


class QuoteError(BridgeError):
    """The aggregator did not return a usable route."""


class AllowanceError(BridgeError):
    """Reading the token allowance failed."""


class ApprovalError(BridgeError):
    """The approval transaction was rejected, failed, or reverted."""


class ExecutionError(BridgeError):
    """The bridge transaction was rejected, failed, or reverted."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class TransactionRejectedError(ExecutionError):
    """The signer declined to sign the transaction."""


class InsufficientFundsError(ExecutionError):
    """The node refused the transaction for lack of funds."""


class MonitorTimeoutError(BridgeError):
    """Status is still unknown after the bounded number of polls."""

    def __init__(self, tx_hash: str, attempts: int):
        self.tx_hash = tx_hash
        self.attempts = attempts
        super().__init__(
            f"Transaction monitoring timed out after {attempts} polls - "
            f"check the block explorer for {tx_hash}"
        )


class MonitorCancelledError(BridgeError):
    """Monitoring was cancelled by the caller."""


class TransferFailedError(BridgeError):
    """The cross-chain transfer reached a non-success terminal status."""

    def __init__(self, status: "TransferStatus"):
        self.status = status
        super().__init__(
            f"Bridge failed with status: {status.squid_transaction_status.value}"
        )


class SessionBusyError(BridgeError):
    """A bridge attempt is already in flight."""


class InvalidTransitionError(BridgeError):
    """A session transition not present in the transition table."""
