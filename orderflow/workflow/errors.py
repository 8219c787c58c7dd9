"""Workflow error hierarchy."""

from typing import Any

from orderflow.models.workflow import WorkflowRun


class WorkflowError(Exception):
    """Base error for order workflows.

    ``run`` is the run as it stood when the error was raised, so callers can
    see which state it failed in and which transactions already landed.
    """

    def __init__(
        self,
        message: str,
        action_index: int | None = None,
        listing_id: str = "",
        run: WorkflowRun | None = None,
    ):
        super().__init__(message)
        self.action_index = action_index
        self.listing_id = listing_id
        self.run = run


class CollaboratorError(WorkflowError):
    """The chain, the order book transport, or the signer failed outside the error taxonomy."""


class NotFoundError(WorkflowError):
    """No listing matched. Recoverable: retry later or list a token first."""


class MissingSignatureError(WorkflowError):
    """Preparation returned no signable action but a signature was required."""


class SubmissionFailedError(WorkflowError):
    """An on-chain action failed. Earlier transactions are NOT rolled back."""

    def __init__(
        self,
        message: str,
        action_index: int | None = None,
        committed_tx_hashes: list[str] | None = None,
        run: WorkflowRun | None = None,
    ):
        super().__init__(message, action_index=action_index, run=run)
        self.committed_tx_hashes = list(committed_tx_hashes or [])


class RejectedByMarketplaceError(WorkflowError):
    """The order book refused the order (stale hash, bad signature, expired...)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: Any = None,
        listing_id: str = "",
        run: WorkflowRun | None = None,
    ):
        super().__init__(message, listing_id=listing_id, run=run)
        self.status_code = status_code
        self.payload = payload
