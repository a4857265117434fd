"""
Bridge session state.

A BridgeSession is an immutable value; every transition returns a new
session, so the state machine can be driven and inspected without any
orchestrator or UI around it.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional

from .errors import InvalidTransitionError
from .models import ApprovalReceipt, RoutePlan, TransferStatus


class SessionStatus(str, Enum):
    IDLE = "idle"
    QUOTING = "quoting"
    APPROVING = "approving"
    EXECUTING = "executing"
    MONITORING = "monitoring"
    SUCCESS = "success"
    FAILED = "failed"


FINISHED = frozenset({SessionStatus.SUCCESS, SessionStatus.FAILED})

# Any non-finished state may also move to FAILED
TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.IDLE: frozenset({SessionStatus.QUOTING}),
    SessionStatus.QUOTING: frozenset({SessionStatus.APPROVING}),
    SessionStatus.APPROVING: frozenset({SessionStatus.EXECUTING}),
    SessionStatus.EXECUTING: frozenset({SessionStatus.MONITORING}),
    SessionStatus.MONITORING: frozenset({SessionStatus.SUCCESS}),
    SessionStatus.SUCCESS: frozenset(),
    SessionStatus.FAILED: frozenset(),
}


@dataclass(frozen=True)
class BridgeSession:
    """State of one bridge attempt."""

    status: SessionStatus = SessionStatus.IDLE
    current_plan: Optional[RoutePlan] = None
    source_tx_id: Optional[str] = None
    last_error: Optional[str] = None
    approval: Optional[ApprovalReceipt] = None
    final_status: Optional[TransferStatus] = None

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED

    @property
    def in_flight(self) -> bool:
        return self.status is not SessionStatus.IDLE and not self.is_finished

    def can_transition(self, to: SessionStatus) -> bool:
        if to is SessionStatus.FAILED:
            return not self.is_finished
        return to in TRANSITIONS[self.status]

    def transition(self, to: SessionStatus, **changes: Any) -> "BridgeSession":
        """Move to `to`, returning the new session."""
        if not self.can_transition(to):
            raise InvalidTransitionError(
                f"Cannot move bridge session from {self.status.value} to {to.value}"
            )
        return replace(self, status=to, **changes)

    def fail(self, error: BaseException, **changes: Any) -> "BridgeSession":
        """Record `error` and move to FAILED."""
        return self.transition(
            SessionStatus.FAILED,
            last_error=str(error) or type(error).__name__,
            **changes,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "requestId": self.current_plan.request_id if self.current_plan else None,
            "sourceTxId": self.source_tx_id,
            "approvalTxId": self.approval.tx_hash if self.approval else None,
            "destTxId": self.final_status.dest_tx_id if self.final_status else None,
            "lastError": self.last_error,
        }
