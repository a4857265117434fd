"""
Route quoting against the Squid aggregator.
"""

from typing import Any, Optional

import httpx
import structlog

from .errors import QuoteError, SquidApiError
from .models import (
    RouteEstimate,
    RoutePlan,
    RouteRequest,
    TokenAmount,
    TransactionRequest,
)
from .squid import SquidClient

logger = structlog.get_logger()


class RouteQuoter:
    """Requests a cross-chain transfer plan for a RouteRequest."""

    def __init__(self, client: SquidClient):
        self.client = client

    async def quote(self, request: RouteRequest) -> RoutePlan:
        """
        Fetch a route for `request`.

        Raises:
            QuoteError: the API returned an error (after retries on transient
                failures) or the response has no usable route.
        """
        logger.info(
            "route_requested",
            from_chain=request.source_chain,
            to_chain=request.dest_chain,
            amount=request.amount,
            sender=request.sender_address,
        )

        try:
            body = await self.client.get_route(request.to_params())
        except SquidApiError as e:
            raise QuoteError(e.message) from e
        except httpx.HTTPError as e:
            raise QuoteError(f"Route request failed: {e}") from e
        except ValueError as e:
            raise QuoteError(f"Invalid API response: body is not JSON ({e})") from e

        plan = parse_route(body, request)

        logger.info(
            "route_received",
            request_id=plan.request_id,
            target=plan.transaction_request.target,
            from_amount=plan.estimate.from_amount,
            to_amount=plan.estimate.to_amount,
            to_amount_min=plan.estimate.to_amount_min,
            duration_seconds=plan.estimate.duration_seconds,
        )
        return plan


def parse_route(body: Any, request: RouteRequest) -> RoutePlan:
    """
    Validate and convert a /v2/route body.

    Only structural presence is checked; amounts are the aggregator's
    business.
    """
    if not isinstance(body, dict) or not body.get("route"):
        raise QuoteError("Invalid API response: missing route")

    route = body["route"]

    try:
        tx = route["transactionRequest"]
        estimate = route["estimate"]

        target = tx["target"]
        if not target:
            raise QuoteError("Invalid API response: route has no transaction target")

        transaction_request = TransactionRequest(
            target=target,
            data=tx["data"],
            value=int(tx["value"]),
            gas_limit=int(tx["gasLimit"]),
            gas_price=_optional_int(tx.get("gasPrice")),
            max_fee_per_gas=_optional_int(tx.get("maxFeePerGas")),
            max_priority_fee_per_gas=_optional_int(tx.get("maxPriorityFeePerGas")),
        )

        route_estimate = RouteEstimate(
            from_amount=int(estimate["fromAmount"]),
            to_amount=int(estimate["toAmount"]),
            to_amount_min=int(estimate.get("toAmountMin") or estimate["toAmount"]),
            duration_seconds=int(estimate.get("estimatedRouteDuration") or 0),
            fee_costs=tuple(_token_amount(fee) for fee in estimate.get("feeCosts") or []),
            gas_costs=tuple(_token_amount(gas) for gas in estimate.get("gasCosts") or []),
            exchange_rate=estimate.get("exchangeRate"),
            price_impact=estimate.get("aggregatePriceImpact"),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise QuoteError(f"Invalid API response: malformed route ({e})") from e

    return RoutePlan(
        estimate=route_estimate,
        transaction_request=transaction_request,
        originating_request=request,
        request_id=route.get("quoteId") or body.get("requestId") or "",
    )


def _optional_int(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    return int(value)


def _token_amount(item: dict[str, Any]) -> TokenAmount:
    token = item.get("token") or {}
    return TokenAmount(
        name=item.get("name") or item.get("type") or "",
        amount=int(item.get("amount") or 0),
        symbol=token.get("symbol", ""),
        decimals=int(token.get("decimals") or 0),
        token_address=token.get("address", ""),
    )
