"""
Cross-chain status monitoring.

Polls the Squid status endpoint until the transfer reaches a terminal
status or the attempt budget runs out.
"""

import asyncio
from typing import Callable, Optional

import structlog

from .errors import MonitorCancelledError, MonitorTimeoutError
from .models import TransferStatus
from .retry import SleepFn
from .squid import SquidClient

logger = structlog.get_logger()

StatusListener = Callable[[TransferStatus], None]


class CancellationToken:
    """Cooperative cancellation flag checked at every poll boundary."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class StatusMonitor:
    """
    Polls transfer status on a fixed interval.

    Defaults give Squid 3 seconds to index the transaction, then poll every
    5 seconds for at most 60 attempts (about five minutes).
    """

    def __init__(
        self,
        client: SquidClient,
        grace_delay: float = 3.0,
        poll_interval: float = 5.0,
        max_attempts: int = 60,
        sleep: SleepFn = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.client = client
        self.grace_delay = grace_delay
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    async def monitor(
        self,
        source_tx_id: str,
        correlation_id: str,
        source_chain: str,
        dest_chain: str,
        on_update: Optional[StatusListener] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> TransferStatus:
        """
        Wait for the transfer to reach a terminal status.

        A failed poll (transport or parse error) is logged and counts as an
        attempt; polling carries on at the next interval.

        Raises:
            MonitorTimeoutError: no terminal status after max_attempts polls.
            MonitorCancelledError: `cancel_token` was cancelled.
        """
        logger.info(
            "monitoring_started",
            tx_hash=source_tx_id,
            request_id=correlation_id,
            from_chain=source_chain,
            to_chain=dest_chain,
        )

        await self._sleep(self.grace_delay)

        for attempt in range(1, self.max_attempts + 1):
            if cancel_token is not None and cancel_token.cancelled:
                logger.info("monitoring_cancelled", tx_hash=source_tx_id, attempt=attempt)
                raise MonitorCancelledError(f"Monitoring of {source_tx_id} was cancelled")

            try:
                status = await self.client.get_status(
                    source_tx_id, correlation_id, source_chain, dest_chain
                )
            except Exception as e:
                # Indexing lag and flaky polls are expected; keep going
                logger.warning(
                    "status_poll_failed",
                    tx_hash=source_tx_id,
                    attempt=attempt,
                    error=str(e),
                )
            else:
                logger.debug(
                    "status_polled",
                    tx_hash=source_tx_id,
                    attempt=attempt,
                    status=status.squid_transaction_status.value,
                )
                if on_update is not None:
                    on_update(status)
                if status.is_terminal:
                    logger.info(
                        "monitoring_finished",
                        tx_hash=source_tx_id,
                        status=status.squid_transaction_status.value,
                        dest_tx_id=status.dest_tx_id,
                        attempts=attempt,
                    )
                    return status

            if attempt < self.max_attempts:
                await self._sleep(self.poll_interval)

        logger.error("monitoring_timeout", tx_hash=source_tx_id, attempts=self.max_attempts)
        raise MonitorTimeoutError(source_tx_id, self.max_attempts)
