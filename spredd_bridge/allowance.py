"""
Token allowance checks and exact-amount approvals.
"""

from typing import Optional

import structlog

from .errors import AllowanceError, ApprovalError
from .evm import Erc20Client, EvmSigner
from .models import ApprovalReceipt

logger = structlog.get_logger()


class AllowanceManager:
    """
    Reads and, when short, raises an ERC-20 allowance.

    Approvals are always for exactly the required amount, never unlimited,
    so a compromised spender can take at most what one bridge needs.
    """

    def __init__(self, erc20: Erc20Client):
        self.erc20 = erc20

    async def current_allowance(self, token: str, owner: str, spender: str) -> int:
        """Read allowance(owner, spender) on `token`."""
        try:
            return int(await self.erc20.allowance(token, owner, spender))
        except Exception as e:
            logger.error(
                "allowance_read_error",
                token=token,
                owner=owner,
                spender=spender,
                error=str(e),
            )
            raise AllowanceError(f"Failed to read allowance: {e}") from e

    async def ensure_allowance(
        self,
        token: str,
        spender: str,
        required_amount: int,
        signer: EvmSigner,
    ) -> Optional[ApprovalReceipt]:
        """
        Make sure `spender` may move `required_amount` of the signer's tokens.

        Returns None when the current allowance already covers the amount;
        otherwise submits one approval and waits for it to be mined.
        """
        current = await self.current_allowance(token, signer.address, spender)

        if current >= required_amount:
            logger.info(
                "allowance_sufficient",
                token=token,
                spender=spender,
                allowance=current,
                required=required_amount,
            )
            return None

        logger.info(
            "approval_required",
            token=token,
            spender=spender,
            allowance=current,
            required=required_amount,
        )

        try:
            tx = await self.erc20.build_approve(token, spender, required_amount, signer.address)
            tx_hash = await signer.send_transaction(tx)
        except Exception as e:
            logger.error("approval_submission_error", token=token, error=str(e))
            raise ApprovalError(f"Token approval failed: {e}") from e

        logger.info("approval_tx_sent", tx_hash=tx_hash, amount=required_amount)

        try:
            receipt = await signer.wait_for_receipt(tx_hash)
        except Exception as e:
            logger.error("approval_receipt_error", tx_hash=tx_hash, error=str(e))
            raise ApprovalError(f"Token approval was not confirmed: {e}") from e

        if receipt["status"] != 1:
            logger.error("approval_tx_reverted", tx_hash=tx_hash)
            raise ApprovalError(f"Token approval reverted: {tx_hash}")

        logger.info(
            "approval_tx_confirmed",
            tx_hash=tx_hash,
            gas_used=receipt.get("gasUsed"),
        )
        return ApprovalReceipt(
            tx_hash=tx_hash,
            token=token,
            spender=spender,
            amount=required_amount,
            gas_used=receipt.get("gasUsed"),
        )
