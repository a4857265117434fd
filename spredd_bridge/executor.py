"""
Submission of the bridge transaction from a quoted route.
"""

from dataclasses import dataclass
from typing import Any

import structlog
from web3.types import TxReceipt

from .errors import ExecutionError, InsufficientFundsError, TransactionRejectedError
from .evm import EvmSigner
from .models import RoutePlan

logger = structlog.get_logger()

USER_REJECTED_CODE = 4001


@dataclass
class TransactionHandle:
    """A submitted bridge transaction."""

    tx_hash: str
    signer: EvmSigner

    async def wait(self) -> TxReceipt:
        """
        Wait until the transaction is mined.

        Raises:
            ExecutionError: the receipt never arrived or the tx reverted.
        """
        try:
            receipt = await self.signer.wait_for_receipt(self.tx_hash)
        except Exception as e:
            raise ExecutionError(
                f"Bridge transaction was not confirmed: {e}", tx_hash=self.tx_hash
            ) from e

        if receipt["status"] != 1:
            logger.error("bridge_tx_reverted", tx_hash=self.tx_hash)
            raise ExecutionError("Bridge transaction reverted", tx_hash=self.tx_hash)

        logger.info(
            "bridge_tx_confirmed",
            tx_hash=self.tx_hash,
            block_number=receipt.get("blockNumber"),
            gas_used=receipt.get("gasUsed"),
        )
        return receipt


def build_bridge_tx(plan: RoutePlan) -> dict[str, Any]:
    """Copy the route's transaction request into a web3 transaction dict."""
    request = plan.transaction_request
    tx: dict[str, Any] = {
        "to": request.target,
        "data": request.data,
        "value": request.value,
        "gas": request.gas_limit,
    }
    if request.max_fee_per_gas is not None:
        tx["maxFeePerGas"] = request.max_fee_per_gas
    if request.max_priority_fee_per_gas is not None:
        tx["maxPriorityFeePerGas"] = request.max_priority_fee_per_gas
    # EIP-1559 and legacy fee fields cannot be mixed in one transaction
    if request.gas_price is not None and "maxFeePerGas" not in tx:
        tx["gasPrice"] = request.gas_price
    return tx


def classify_send_error(error: Exception) -> ExecutionError:
    """Map a signer/node failure onto the ExecutionError hierarchy."""
    message = str(error)
    lowered = message.lower()

    code = getattr(error, "code", None)
    if code is None and error.args and isinstance(error.args[0], dict):
        code = error.args[0].get("code")

    if code == USER_REJECTED_CODE or "user rejected" in lowered or "user denied" in lowered:
        return TransactionRejectedError(f"Signer rejected the transaction: {message}")
    if "insufficient funds" in lowered:
        return InsufficientFundsError(f"Node rejected the transaction: {message}")
    return ExecutionError(f"Bridge transaction failed: {message}")


class TransactionExecutor:
    """Submits exactly one transaction built verbatim from a RoutePlan."""

    async def execute(self, plan: RoutePlan, signer: EvmSigner) -> TransactionHandle:
        """
        Sign and broadcast the bridge transaction.

        Failures are terminal for the session and are not retried.
        """
        tx = build_bridge_tx(plan)

        try:
            tx_hash = await signer.send_transaction(tx)
        except Exception as e:
            error = classify_send_error(e)
            logger.error(
                "bridge_tx_submission_error",
                target=plan.transaction_request.target,
                error=str(e),
                kind=type(error).__name__,
            )
            raise error from e

        logger.info(
            "bridge_tx_sent",
            tx_hash=tx_hash,
            target=plan.transaction_request.target,
            request_id=plan.request_id,
        )
        return TransactionHandle(tx_hash=tx_hash, signer=signer)
