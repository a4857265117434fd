"""
EVM access: a local-key signer and ERC-20 token calls.
"""

import asyncio
from typing import Any, Optional

import structlog
from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.types import TxReceipt

from .models import TokenInfo

logger = structlog.get_logger()


# Standard ERC-20 fragments used by the bridge flow
ERC20_ABI = [
    {
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
]


def make_web3(rpc_url: str) -> AsyncWeb3:
    """Create an async web3 instance for an RPC endpoint."""
    return AsyncWeb3(AsyncHTTPProvider(rpc_url))


async def close_web3(w3: AsyncWeb3) -> None:
    """Release the provider's cached HTTP session."""
    await w3.provider.disconnect()


class EvmSigner:
    """
    Signs and submits transactions with a local private key.

    The signer fills in only what the caller left out (sender, nonce, chain
    ID and, when no fee field is given at all, the node's gas price).
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        private_key: str,
        chain_id: Optional[int] = None,
        receipt_timeout: float = 180.0,
    ):
        self.w3 = w3
        self.account = Account.from_key(private_key)
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout

    @property
    def address(self) -> str:
        """Get signer address."""
        return self.account.address

    async def send_transaction(self, tx: dict[str, Any]) -> str:
        """Sign and broadcast a transaction, returning its 0x-prefixed hash."""
        tx = dict(tx)
        tx.setdefault("from", self.address)

        if "chainId" not in tx:
            if self.chain_id is None:
                self.chain_id = await self.w3.eth.chain_id
            tx["chainId"] = self.chain_id

        if "nonce" not in tx:
            tx["nonce"] = await self.w3.eth.get_transaction_count(self.address, "pending")

        if "gasPrice" not in tx and "maxFeePerGas" not in tx:
            tx["gasPrice"] = await self.w3.eth.gas_price

        signed = self.account.sign_transaction(tx)
        tx_hash = Web3.to_hex(await self.w3.eth.send_raw_transaction(signed.raw_transaction))
        logger.debug("tx_broadcast", tx_hash=tx_hash, to=tx.get("to"), nonce=tx["nonce"])
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        """Block until the transaction is mined."""
        return await self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.receipt_timeout
        )

    async def close(self) -> None:
        await close_web3(self.w3)


class Erc20Client:
    """ERC-20 reads and approve-transaction building."""

    def __init__(self, w3: AsyncWeb3):
        self.w3 = w3

    def contract(self, token: str) -> Any:
        """Get an ERC-20 contract instance."""
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(token),
            abi=ERC20_ABI,
        )

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        return await self.contract(token).functions.allowance(
            Web3.to_checksum_address(owner),
            Web3.to_checksum_address(spender),
        ).call()

    async def balance_of(self, token: str, account: str) -> int:
        return await self.contract(token).functions.balanceOf(
            Web3.to_checksum_address(account)
        ).call()

    async def token_info(self, token: str) -> TokenInfo:
        """Fetch symbol and decimals concurrently."""
        functions = self.contract(token).functions
        symbol, decimals = await asyncio.gather(
            functions.symbol().call(),
            functions.decimals().call(),
        )
        return TokenInfo(address=token, symbol=symbol, decimals=int(decimals))

    async def build_approve(
        self, token: str, spender: str, amount: int, sender: str
    ) -> dict[str, Any]:
        """Build an unsigned approve(spender, amount) transaction."""
        return await self.contract(token).functions.approve(
            Web3.to_checksum_address(spender),
            amount,
        ).build_transaction({"from": Web3.to_checksum_address(sender)})

    async def close(self) -> None:
        await close_web3(self.w3)

    async def check_connectivity(self) -> bool:
        """Check if the RPC node is reachable."""
        try:
            await self.w3.eth.block_number
            return True
        except Exception:
            return False
