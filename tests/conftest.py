from __future__ import annotations

import json
from typing import Any, Callable, Optional

import httpx
import pytest

from spredd_bridge.allowance import AllowanceManager
from spredd_bridge.chains import CHAIN_IDS, TOKENS
from spredd_bridge.config import BridgeRoute
from spredd_bridge.executor import TransactionExecutor
from spredd_bridge.models import TokenInfo
from spredd_bridge.monitor import StatusMonitor
from spredd_bridge.orchestrator import BridgeOrchestrator
from spredd_bridge.quoter import RouteQuoter
from spredd_bridge.squid import SquidClient

SENDER = "0x1234567890123456789012345678901234567890"
SQUID_ROUTER = "0xce16F69375520ab01377ce7B88f5BA8C48F8D666"


def route_body(from_amount: str = "10000000", quote_id: str = "quote-123") -> dict[str, Any]:
    """A trimmed /v2/route response."""
    return {
        "route": {
            "quoteId": quote_id,
            "estimate": {
                "fromAmount": from_amount,
                "toAmount": str(int(from_amount) - 50_000),
                "toAmountMin": str(int(from_amount) - 150_000),
                "sendAmount": from_amount,
                "exchangeRate": "0.995",
                "estimatedRouteDuration": 20,
                "aggregatePriceImpact": "0.0",
                "feeCosts": [
                    {
                        "name": "Gas receiver fee",
                        "amount": "120000000000000",
                        "token": {"address": "0xeeee", "symbol": "ETH", "decimals": 18},
                    }
                ],
                "gasCosts": [
                    {
                        "type": "executeCall",
                        "amount": "30000000000000",
                        "token": {"address": "0xeeee", "symbol": "ETH", "decimals": 18},
                    }
                ],
            },
            "transactionRequest": {
                "target": SQUID_ROUTER,
                "data": "0x846a1bc6",
                "value": "120000000000000",
                "gasLimit": "410000",
                "maxFeePerGas": "1500000000",
                "maxPriorityFeePerGas": "1000000",
            },
            "params": {"fromAmount": from_amount},
        }
    }


def status_body(status: str, dest_tx: Optional[str] = None) -> dict[str, Any]:
    body: dict[str, Any] = {
        "id": "0xsource",
        "status": "destination_executed" if status == "success" else "source_gateway_called",
        "squidTransactionStatus": status,
        "fromChain": {"chainId": "8453", "transactionId": "0xsource"},
    }
    if dest_tx:
        body["toChain"] = {"chainId": "137", "transactionId": dest_tx}
    return body


class FakeSquidApi:
    """Scripted Squid API behind an httpx.MockTransport."""

    def __init__(self) -> None:
        self.route_responses: list[httpx.Response] = []
        self.status_responses: list[httpx.Response] = []
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/v2/route":
            if not self.route_responses:
                body = json.loads(request.content)
                return httpx.Response(200, json=route_body(body["fromAmount"]))
            return self.route_responses.pop(0)
        if request.url.path == "/v2/status":
            if len(self.status_responses) > 1:
                return self.status_responses.pop(0)
            return self.status_responses[0]
        raise AssertionError(f"unexpected url: {request.url}")

    def client(self, sleep: Optional[Callable[[float], Any]] = None, **kwargs: Any) -> SquidClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        if sleep is not None:
            kwargs["sleep"] = sleep
        return SquidClient(
            base_url="https://squid.test",
            integrator_id="test-integrator",
            client=http,
            **kwargs,
        )

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


class FakeErc20:
    """In-memory ERC-20 allowances."""

    def __init__(self) -> None:
        self.allowances: dict[tuple[str, str, str], int] = {}
        self.balances: dict[tuple[str, str], int] = {}
        self.fail_reads = False
        self.closed = False

    def set_allowance(self, token: str, owner: str, spender: str, amount: int) -> None:
        self.allowances[(token.lower(), owner.lower(), spender.lower())] = amount

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        if self.fail_reads:
            raise ConnectionError("rpc unavailable")
        return self.allowances.get((token.lower(), owner.lower(), spender.lower()), 0)

    async def balance_of(self, token: str, account: str) -> int:
        if self.fail_reads:
            raise ConnectionError("rpc unavailable")
        return self.balances.get((token.lower(), account.lower()), 0)

    async def token_info(self, token: str) -> TokenInfo:
        return TokenInfo(address=token, symbol="USDC", decimals=6)

    async def close(self) -> None:
        self.closed = True

    async def build_approve(self, token: str, spender: str, amount: int, sender: str) -> dict[str, Any]:
        return {
            "to": token,
            "data": "0x095ea7b3",
            "approve": (token, sender, spender, amount),
        }


class FakeSigner:
    """Records submitted transactions and mines them instantly."""

    def __init__(self, erc20: Optional[FakeErc20] = None, address: str = SENDER) -> None:
        self.address = address
        self.erc20 = erc20
        self.sent: list[dict[str, Any]] = []
        self.send_error: Optional[Exception] = None
        self.receipt_status = 1
        self._pending: dict[str, dict[str, Any]] = {}
        self.closed = False

    @property
    def approvals(self) -> list[dict[str, Any]]:
        return [tx for tx in self.sent if "approve" in tx]

    @property
    def bridge_txs(self) -> list[dict[str, Any]]:
        return [tx for tx in self.sent if "approve" not in tx]

    async def send_transaction(self, tx: dict[str, Any]) -> str:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(tx)
        tx_hash = "0x" + f"{len(self.sent):064x}"
        self._pending[tx_hash] = tx
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> dict[str, Any]:
        tx = self._pending.pop(tx_hash)
        if self.receipt_status == 1 and "approve" in tx and self.erc20 is not None:
            token, owner, spender, amount = tx["approve"]
            self.erc20.set_allowance(token, owner, spender, amount)
        return {"status": self.receipt_status, "gasUsed": 46_000, "blockNumber": 100}

    async def close(self) -> None:
        self.closed = True


class SleepRecorder:
    """Async sleep replacement that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.delays)


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def squid_api() -> FakeSquidApi:
    return FakeSquidApi()


@pytest.fixture
def erc20() -> FakeErc20:
    return FakeErc20()


@pytest.fixture
def signer(erc20: FakeErc20) -> FakeSigner:
    return FakeSigner(erc20)


@pytest.fixture
def bridge_route() -> BridgeRoute:
    return BridgeRoute(
        from_chain_id=CHAIN_IDS["BASE"],
        to_chain_id=CHAIN_IDS["POLYGON"],
        from_token=TOKENS["USDC_BASE"],
        to_token=TOKENS["USDC_POLYGON"],
        token_decimals=6,
        slippage_bps=100,
    )


@pytest.fixture
def orchestrator(
    squid_api: FakeSquidApi,
    erc20: FakeErc20,
    signer: FakeSigner,
    sleep: SleepRecorder,
    bridge_route: BridgeRoute,
) -> BridgeOrchestrator:
    client = squid_api.client(sleep=sleep)
    return BridgeOrchestrator(
        route=bridge_route,
        signer=signer,  # type: ignore[arg-type]
        quoter=RouteQuoter(client),
        allowance=AllowanceManager(erc20),  # type: ignore[arg-type]
        executor=TransactionExecutor(),
        monitor=StatusMonitor(client, grace_delay=3, poll_interval=5, max_attempts=10, sleep=sleep),
    )
