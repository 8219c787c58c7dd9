"""Workflow run models: state machine, settings and results."""

from dataclasses import dataclass, field
from enum import StrEnum

from orderflow.models.common import RunId, utc_now_iso
from orderflow.models.order import Listing, PreparedOrder
from orderflow.models.transaction import GasPolicy, TxReceipt


class WorkflowFlow(StrEnum):
    LIST = "list"
    CANCEL = "cancel"
    FULFILL = "fulfill"


class WorkflowState(StrEnum):
    PREPARING = "PREPARING"
    ACTING = "ACTING"
    SIGNED = "SIGNED"
    SUBMITTING = "SUBMITTING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


_TRANSITIONS: dict[WorkflowState, set[WorkflowState]] = {
    WorkflowState.PREPARING: {
        WorkflowState.ACTING,
        WorkflowState.SUBMITTING,
        WorkflowState.COMPLETE,
        WorkflowState.FAILED,
    },
    WorkflowState.ACTING: {
        WorkflowState.ACTING,
        WorkflowState.SIGNED,
        WorkflowState.SUBMITTING,
        WorkflowState.COMPLETE,
        WorkflowState.FAILED,
    },
    WorkflowState.SIGNED: {
        WorkflowState.ACTING,
        WorkflowState.SUBMITTING,
        WorkflowState.FAILED,
    },
    WorkflowState.SUBMITTING: {WorkflowState.COMPLETE, WorkflowState.FAILED},
    WorkflowState.COMPLETE: set(),
    WorkflowState.FAILED: set(),
}


@dataclass
class WorkflowRun:
    """Progress of one prepare -> act -> submit run.

    ``action_index`` is the index of the action being processed while
    ACTING, and of the failing action once FAILED (None if the failure
    happened outside the action list). ``failed_tx_hashes`` are transactions
    that were broadcast but reverted or never confirmed.
    """

    run_id: RunId
    flow: WorkflowFlow
    state: WorkflowState = WorkflowState.PREPARING
    action_index: int | None = None
    listing_id: str = ""
    order_hash: str = ""
    committed_tx_hashes: list[str] = field(default_factory=list)
    failed_tx_hashes: list[str] = field(default_factory=list)
    error_message: str = ""
    started_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def advance(self, state: WorkflowState, action_index: int | None = None) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal workflow transition {self.state} -> {state} (run {self.run_id})"
            )
        self.state = state
        if action_index is not None:
            self.action_index = action_index
        self.updated_at = utc_now_iso()

    def fail(self, error: BaseException | str, action_index: int | None = None) -> None:
        self.advance(WorkflowState.FAILED)
        self.action_index = action_index
        self.error_message = str(error)

    @property
    def is_terminal(self) -> bool:
        return self.state in (WorkflowState.COMPLETE, WorkflowState.FAILED)

    @property
    def partially_committed(self) -> bool:
        """A failed run that left confirmed transactions on chain."""
        return self.state == WorkflowState.FAILED and bool(self.committed_tx_hashes)


@dataclass(frozen=True)
class WorkflowSettings:
    gas_policy: GasPolicy
    collection_address: str
    page_size: int = 50


@dataclass(frozen=True)
class SignedOrder:
    prepared: PreparedOrder
    signature: str
    run: WorkflowRun


@dataclass(frozen=True)
class FulfillmentResult:
    order: Listing
    expiration: str
    receipts: list[TxReceipt]
    run: WorkflowRun
