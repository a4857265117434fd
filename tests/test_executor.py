"""
Tests for bridge transaction submission.
"""

from dataclasses import replace

import pytest

from conftest import SENDER, SQUID_ROUTER, route_body
from spredd_bridge.chains import CHAIN_IDS, TOKENS
from spredd_bridge.errors import ExecutionError, InsufficientFundsError, TransactionRejectedError
from spredd_bridge.executor import TransactionExecutor, build_bridge_tx, classify_send_error
from spredd_bridge.models import RouteRequest
from spredd_bridge.quoter import parse_route


def _plan():
    request = RouteRequest(
        source_chain=CHAIN_IDS["BASE"],
        dest_chain=CHAIN_IDS["POLYGON"],
        source_token=TOKENS["USDC_BASE"],
        dest_token=TOKENS["USDC_POLYGON"],
        amount=10_000_000,
        sender_address=SENDER,
        recipient_address=SENDER,
    )
    return parse_route(route_body(), request)


class _RpcError(Exception):
    def __init__(self, code: int, message: str):
        self.code = code
        super().__init__(message)


class TestBuildBridgeTx:
    def test_copies_transaction_request(self):
        tx = build_bridge_tx(_plan())

        assert tx == {
            "to": SQUID_ROUTER,
            "data": "0x846a1bc6",
            "value": 120_000_000_000_000,
            "gas": 410_000,
            "maxFeePerGas": 1_500_000_000,
            "maxPriorityFeePerGas": 1_000_000,
        }

    def test_legacy_gas_price_only_without_eip1559(self):
        plan = _plan()
        legacy = replace(
            plan,
            transaction_request=replace(
                plan.transaction_request,
                gas_price=2_000_000_000,
                max_fee_per_gas=None,
                max_priority_fee_per_gas=None,
            ),
        )

        tx = build_bridge_tx(legacy)

        assert tx["gasPrice"] == 2_000_000_000
        assert "maxFeePerGas" not in tx


class TestClassifySendError:
    def test_user_rejection_code(self):
        error = classify_send_error(_RpcError(4001, "rejected"))
        assert isinstance(error, TransactionRejectedError)

    def test_user_rejection_in_rpc_payload(self):
        error = classify_send_error(ValueError({"code": 4001, "message": "nope"}))
        assert isinstance(error, TransactionRejectedError)

    def test_user_denied_message(self):
        error = classify_send_error(RuntimeError("MetaMask: User denied transaction signature"))
        assert isinstance(error, TransactionRejectedError)

    def test_insufficient_funds(self):
        error = classify_send_error(
            ValueError("insufficient funds for gas * price + value")
        )
        assert isinstance(error, InsufficientFundsError)
        assert isinstance(error, ExecutionError)

    def test_other_errors(self):
        error = classify_send_error(RuntimeError("nonce too low"))
        assert type(error) is ExecutionError
        assert "nonce too low" in str(error)


class TestTransactionExecutor:
    @pytest.mark.asyncio
    async def test_execute_submits_once(self, signer):
        handle = await TransactionExecutor().execute(_plan(), signer)

        assert len(signer.sent) == 1
        assert signer.sent[0]["to"] == SQUID_ROUTER
        receipt = await handle.wait()
        assert receipt["status"] == 1

    @pytest.mark.asyncio
    async def test_submission_failure_is_classified(self, signer):
        signer.send_error = ValueError("insufficient funds for transfer")

        with pytest.raises(InsufficientFundsError):
            await TransactionExecutor().execute(_plan(), signer)

    @pytest.mark.asyncio
    async def test_reverted_bridge_tx(self, signer):
        signer.receipt_status = 0
        handle = await TransactionExecutor().execute(_plan(), signer)

        with pytest.raises(ExecutionError, match="reverted") as exc_info:
            await handle.wait()

        assert exc_info.value.tx_hash == handle.tx_hash
