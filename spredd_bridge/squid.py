"""
Async client for the Squid Router v2 API.
"""

import asyncio
from typing import Any, Optional

import httpx
import structlog

from .errors import SquidApiError
from .models import SquidTransactionStatus, TransferStatus
from .retry import SleepFn, retry_with_backoff

logger = structlog.get_logger()

DEFAULT_API_URL = "https://v2.api.squidrouter.com"


class SquidClient:
    """
    Thin wrapper around the /v2/route and /v2/status endpoints.

    Both calls are pure reads and go through retry_with_backoff.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        integrator_id: str = "",
        timeout: float = 30.0,
        max_retries: int = 5,
        initial_delay: float = 1.0,
        sleep: SleepFn = asyncio.sleep,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.integrator_id = integrator_id
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self._sleep = sleep
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self) -> dict[str, str]:
        return {
            "accept": "application/json",
            "x-integrator-id": self.integrator_id,
        }

    async def _retry(self, fn: Any) -> Any:
        return await retry_with_backoff(
            fn,
            max_retries=self.max_retries,
            initial_delay=self.initial_delay,
            sleep=self._sleep,
        )

    async def get_route(self, params: dict[str, Any]) -> dict[str, Any]:
        """
        POST /v2/route.

        Returns the decoded response body; raises SquidApiError on a
        non-success status.
        """

        async def _request() -> dict[str, Any]:
            response = await self.client.post(
                f"{self.base_url}/v2/route",
                json=params,
                headers=self._headers(),
            )
            if response.is_error:
                raise SquidApiError(
                    response.status_code,
                    _error_message(response, "API Error"),
                )
            return response.json()

        body = await self._retry(_request)
        logger.debug(
            "squid_route_response",
            from_chain=params.get("fromChain"),
            to_chain=params.get("toChain"),
            has_route=isinstance(body, dict) and "route" in body,
        )
        return body

    async def get_status(
        self,
        transaction_id: str,
        request_id: str,
        from_chain_id: str,
        to_chain_id: str,
    ) -> TransferStatus:
        """
        GET /v2/status.

        A 404 means the transaction is not indexed yet and is reported as
        pending rather than raised.
        """
        query = {
            "transactionId": transaction_id,
            "requestId": request_id,
            "fromChainId": from_chain_id,
            "toChainId": to_chain_id,
        }

        async def _request() -> Optional[dict[str, Any]]:
            response = await self.client.get(
                f"{self.base_url}/v2/status",
                params=query,
                headers=self._headers(),
            )
            if response.status_code == 404:
                return None
            if response.is_error:
                raise SquidApiError(
                    response.status_code,
                    _error_message(response, "Status API Error"),
                )
            return response.json()

        body = await self._retry(_request)

        if body is None:
            return TransferStatus(
                id=transaction_id,
                squid_transaction_status=SquidTransactionStatus.PENDING,
                source_tx_id=transaction_id,
                raw_status="pending",
            )

        return parse_status(body, transaction_id)

    async def check_connectivity(self) -> bool:
        """Check if the Squid API is reachable."""
        try:
            response = await self.client.get(
                f"{self.base_url}/v2/chains",
                headers=self._headers(),
            )
            return not response.is_error
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()


def _error_message(response: httpx.Response, prefix: str) -> str:
    """Pull the error text out of a Squid error body."""
    try:
        data = response.json()
    except ValueError:
        return f"{prefix}: {response.status_code}"

    if isinstance(data, dict):
        message = data.get("error") or data.get("message")
        if isinstance(message, str) and message:
            return message
    return f"{prefix}: {response.status_code}"


def parse_status(data: dict[str, Any], transaction_id: str) -> TransferStatus:
    """
    Parse a /v2/status body into a TransferStatus.

    Squid reports in-flight transfers as "ongoing" (and occasionally
    "not_found"); anything that is not a known terminal value is pending.
    """
    raw = data.get("squidTransactionStatus")
    if not isinstance(raw, str):
        raise ValueError("status response missing squidTransactionStatus")

    try:
        status = SquidTransactionStatus(raw)
    except ValueError:
        status = SquidTransactionStatus.PENDING

    from_chain = data.get("fromChain") or {}
    to_chain = data.get("toChain") or {}

    return TransferStatus(
        id=data.get("id") or transaction_id,
        squid_transaction_status=status,
        source_tx_id=from_chain.get("transactionId") or transaction_id,
        dest_tx_id=to_chain.get("transactionId"),
        raw_status=data.get("status") or raw,
        axelar_url=data.get("axelarTransactionUrl"),
        error=data.get("error"),
    )
