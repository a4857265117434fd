"""
Tests for allowance checks and approvals.
"""

import pytest

from conftest import SENDER, SQUID_ROUTER
from spredd_bridge.allowance import AllowanceManager
from spredd_bridge.chains import TOKENS
from spredd_bridge.errors import AllowanceError, ApprovalError

USDC = TOKENS["USDC_BASE"]


class TestEnsureAllowance:
    @pytest.mark.asyncio
    async def test_sufficient_allowance_sends_nothing(self, erc20, signer):
        erc20.set_allowance(USDC, SENDER, SQUID_ROUTER, 10_000_000)

        receipt = await AllowanceManager(erc20).ensure_allowance(
            USDC, SQUID_ROUTER, 10_000_000, signer
        )

        assert receipt is None
        assert signer.sent == []

    @pytest.mark.asyncio
    async def test_approves_exact_amount(self, erc20, signer):
        erc20.set_allowance(USDC, SENDER, SQUID_ROUTER, 4_000_000)

        receipt = await AllowanceManager(erc20).ensure_allowance(
            USDC, SQUID_ROUTER, 10_000_000, signer
        )

        assert len(signer.approvals) == 1
        assert signer.approvals[0]["approve"] == (USDC, SENDER, SQUID_ROUTER, 10_000_000)
        assert receipt is not None
        assert receipt.amount == 10_000_000
        assert receipt.spender == SQUID_ROUTER
        assert receipt.gas_used == 46_000

    @pytest.mark.asyncio
    async def test_repeat_call_does_not_approve_again(self, erc20, signer):
        manager = AllowanceManager(erc20)

        await manager.ensure_allowance(USDC, SQUID_ROUTER, 10_000_000, signer)
        second = await manager.ensure_allowance(USDC, SQUID_ROUTER, 10_000_000, signer)

        assert second is None
        assert len(signer.approvals) == 1

    @pytest.mark.asyncio
    async def test_reverted_approval(self, erc20, signer):
        signer.receipt_status = 0

        with pytest.raises(ApprovalError, match="reverted"):
            await AllowanceManager(erc20).ensure_allowance(
                USDC, SQUID_ROUTER, 10_000_000, signer
            )

        assert await erc20.allowance(USDC, SENDER, SQUID_ROUTER) == 0

    @pytest.mark.asyncio
    async def test_rejected_approval(self, erc20, signer):
        signer.send_error = ValueError("User denied transaction signature")

        with pytest.raises(ApprovalError, match="User denied"):
            await AllowanceManager(erc20).ensure_allowance(
                USDC, SQUID_ROUTER, 10_000_000, signer
            )

    @pytest.mark.asyncio
    async def test_read_failure_is_allowance_error(self, erc20, signer):
        erc20.fail_reads = True

        with pytest.raises(AllowanceError, match="rpc unavailable"):
            await AllowanceManager(erc20).ensure_allowance(
                USDC, SQUID_ROUTER, 10_000_000, signer
            )

        assert signer.sent == []
