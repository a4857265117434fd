"""
Bridge orchestration: quote -> approve -> execute -> monitor.
"""

import asyncio
from typing import Callable, Optional

import structlog

from .allowance import AllowanceManager
from .chains import parse_positive_units
from .config import BridgeRoute, Settings
from .errors import SessionBusyError, TransferFailedError
from .evm import Erc20Client, EvmSigner, make_web3
from .executor import TransactionExecutor
from .models import RoutePlan, RouteRequest, SquidTransactionStatus, TransferStatus
from .monitor import CancellationToken, StatusListener, StatusMonitor
from .quoter import RouteQuoter
from .retry import SleepFn
from .session import BridgeSession, SessionStatus
from .squid import SquidClient

logger = structlog.get_logger()

SessionListener = Callable[[BridgeSession], None]


class BridgeOrchestrator:
    """
    Runs one bridge attempt at a time through the session state machine.

    Workflow:
    1. Quote a route from the aggregator
    2. Approve the route's target for exactly the planned amount, if needed
    3. Submit the bridge transaction and wait for it to be mined
    4. Poll cross-chain status until it is terminal

    Session changes and transfer status updates are delivered to
    subscribers synchronously and in order.
    """

    def __init__(
        self,
        route: BridgeRoute,
        signer: EvmSigner,
        quoter: RouteQuoter,
        allowance: AllowanceManager,
        executor: TransactionExecutor,
        monitor: StatusMonitor,
    ):
        self.route = route
        self.signer = signer
        self.quoter = quoter
        self.allowance = allowance
        self.executor = executor
        self.monitor = monitor

        self.session = BridgeSession()
        self._busy = False
        self._cancel_token: Optional[CancellationToken] = None
        self._session_listeners: list[SessionListener] = []
        self._status_listeners: list[StatusListener] = []

    @classmethod
    def from_settings(
        cls, settings: Settings, sleep: SleepFn = asyncio.sleep
    ) -> "BridgeOrchestrator":
        """Wire up all components from settings."""
        if not settings.private_key:
            raise ValueError("PRIVATE_KEY is not configured")

        squid = SquidClient(
            base_url=settings.squid_api_url,
            integrator_id=settings.squid_integrator_id,
            timeout=settings.http_timeout_seconds,
            max_retries=settings.retry_max_attempts,
            initial_delay=settings.retry_initial_delay_seconds,
            sleep=sleep,
        )
        w3 = make_web3(settings.rpc_url)
        signer = EvmSigner(
            w3,
            settings.private_key,
            chain_id=int(settings.from_chain_id),
            receipt_timeout=settings.receipt_timeout_seconds,
        )

        return cls(
            route=BridgeRoute.from_settings(settings),
            signer=signer,
            quoter=RouteQuoter(squid),
            allowance=AllowanceManager(Erc20Client(w3)),
            executor=TransactionExecutor(),
            monitor=StatusMonitor(
                squid,
                grace_delay=settings.status_grace_delay_seconds,
                poll_interval=settings.status_poll_interval_seconds,
                max_attempts=settings.status_max_attempts,
                sleep=sleep,
            ),
        )

    @property
    def busy(self) -> bool:
        return self._busy or self.session.in_flight

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a session listener; returns an unsubscribe function."""
        self._session_listeners.append(listener)
        return lambda: self._session_listeners.remove(listener)

    def subscribe_status(self, listener: StatusListener) -> Callable[[], None]:
        """Register a transfer status listener; returns an unsubscribe function."""
        self._status_listeners.append(listener)
        return lambda: self._status_listeners.remove(listener)

    def build_request(self, amount: str, recipient: Optional[str] = None) -> RouteRequest:
        """Build a RouteRequest for a human amount like "10" or "2.5"."""
        units = parse_positive_units(amount, self.route.token_decimals)

        return RouteRequest(
            source_chain=self.route.from_chain_id,
            dest_chain=self.route.to_chain_id,
            source_token=self.route.from_token,
            dest_token=self.route.to_token,
            amount=units,
            sender_address=self.signer.address,
            recipient_address=recipient or self.signer.address,
            slippage_bps=self.route.slippage_bps,
            fee_config=self.route.fee_config,
        )

    async def fetch_quote(self, amount: str, recipient: Optional[str] = None) -> RoutePlan:
        """Quote a route without touching the session."""
        return await self.quoter.quote(self.build_request(amount, recipient))

    async def start(
        self,
        amount: str,
        recipient: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> BridgeSession:
        """
        Run a full bridge attempt for `amount`.

        Returns the successful session. On any failure the session is moved
        to FAILED with `last_error` set and the error is re-raised; nothing
        already submitted on-chain is rolled back.

        Raises:
            SessionBusyError: an attempt is already in flight.
        """
        if self.busy:
            raise SessionBusyError(
                f"A bridge attempt is already in progress ({self.session.status.value})"
            )

        self._busy = True
        try:
            request = self.build_request(amount, recipient)
            self.session = BridgeSession()
            self._cancel_token = cancel_token or CancellationToken()
            return await self._run(request, self._cancel_token)
        finally:
            self._cancel_token = None
            self._busy = False

    def cancel(self) -> None:
        """Stop monitoring of the current attempt at the next poll boundary."""
        if self._cancel_token is not None:
            self._cancel_token.cancel()

    def reset(self) -> None:
        """Discard a finished session."""
        if self.busy:
            raise SessionBusyError("Cannot reset while a bridge attempt is in progress")
        self.session = BridgeSession()

    async def close(self) -> None:
        """Close the Squid HTTP client and the RPC provider session."""
        try:
            await self.quoter.client.close()
        finally:
            await self.signer.close()

    async def _run(self, request: RouteRequest, cancel_token: CancellationToken) -> BridgeSession:
        tx_hash: Optional[str] = None

        try:
            self._advance(SessionStatus.QUOTING)
            plan = await self.quoter.quote(request)

            self._advance(SessionStatus.APPROVING, current_plan=plan)
            approval = await self.allowance.ensure_allowance(
                token=request.source_token,
                spender=plan.transaction_request.target,
                required_amount=plan.estimate.from_amount,
                signer=self.signer,
            )

            self._advance(SessionStatus.EXECUTING, approval=approval)
            handle = await self.executor.execute(plan, self.signer)
            tx_hash = handle.tx_hash
            await handle.wait()

            self._advance(SessionStatus.MONITORING, source_tx_id=tx_hash)
            final_status = await self.monitor.monitor(
                tx_hash,
                plan.request_id,
                request.source_chain,
                request.dest_chain,
                on_update=self._publish_status,
                cancel_token=cancel_token,
            )

            if final_status.squid_transaction_status is not SquidTransactionStatus.SUCCESS:
                raise TransferFailedError(final_status)

            self._advance(SessionStatus.SUCCESS, final_status=final_status)
            logger.info(
                "bridge_succeeded",
                tx_hash=tx_hash,
                dest_tx_id=final_status.dest_tx_id,
            )
            return self.session

        except (Exception, asyncio.CancelledError) as e:
            if self.session.is_finished:
                raise

            changes = {}
            if isinstance(e, TransferFailedError):
                changes["final_status"] = e.status
            if tx_hash is not None and self.session.source_tx_id is None:
                changes["source_tx_id"] = tx_hash

            failed_in = self.session.status
            self._set(self.session.fail(e, **changes))
            logger.error(
                "bridge_failed",
                failed_in=failed_in.value,
                error=self.session.last_error,
                kind=type(e).__name__,
                tx_hash=tx_hash,
            )
            raise

    def _advance(self, status: SessionStatus, **changes: object) -> None:
        self._set(self.session.transition(status, **changes))
        logger.info("bridge_session_state", status=status.value)

    def _set(self, session: BridgeSession) -> None:
        self.session = session
        for listener in list(self._session_listeners):
            listener(session)

    def _publish_status(self, status: TransferStatus) -> None:
        for listener in list(self._status_listeners):
            listener(status)
