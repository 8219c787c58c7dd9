"""Output formatters for listings, runs and cancellations."""

import json

from orderflow.models.order import CancellationResult, Listing
from orderflow.models.workflow import WorkflowRun, WorkflowState


def format_listing_line(listing: Listing) -> str:
    """One line per listing: id, what is sold, asking price."""
    sell = ", ".join(item.describe() for item in listing.sell)
    buy = ", ".join(item.describe() for item in listing.buy)
    return f"{listing.id}  {sell}  for {buy}  [{listing.status}]"


def format_run_text(run: WorkflowRun) -> str:
    lines = [f"Run {run.run_id[:8]} ({run.flow}) {run.state} at {run.updated_at}"]
    if run.listing_id:
        lines.append(f"  Listing: {run.listing_id}")
    if run.order_hash:
        lines.append(f"  Order hash: {run.order_hash}")
    if run.state == WorkflowState.FAILED:
        where = f" at action {run.action_index}" if run.action_index is not None else ""
        lines.append(f"  Failed{where}: {run.error_message}")
    if run.partially_committed:
        lines.append(
            f"  PARTIALLY COMMITTED: {len(run.committed_tx_hashes)} transaction(s) on chain"
        )
    for tx_hash in run.committed_tx_hashes:
        lines.append(f"  tx {tx_hash}")
    for tx_hash in run.failed_tx_hashes:
        lines.append(f"  tx {tx_hash} (not confirmed)")
    return "\n".join(lines)


def format_run_json(run: WorkflowRun) -> str:
    data = {
        "run_id": run.run_id,
        "flow": run.flow.value,
        "state": run.state.value,
        "action_index": run.action_index,
        "listing_id": run.listing_id,
        "order_hash": run.order_hash,
        "committed_tx_hashes": run.committed_tx_hashes,
        "failed_tx_hashes": run.failed_tx_hashes,
        "partially_committed": run.partially_committed,
        "error_message": run.error_message,
        "started_at": run.started_at,
        "updated_at": run.updated_at,
    }
    return json.dumps(data, indent=2)


def format_cancellation(result: CancellationResult) -> str:
    lines = [
        f"Cancelled: {len(result.successful)} | Pending: {len(result.pending)} | "
        f"Failed: {len(result.failed)}"
    ]
    for order_id in result.successful:
        lines.append(f"  cancelled {order_id}")
    for order_id in result.pending:
        lines.append(f"  pending   {order_id}")
    for order_id, reason in result.failed:
        lines.append(f"  failed    {order_id}: {reason}")
    return "\n".join(lines)
