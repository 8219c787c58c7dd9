"""Repository for workflow runs and their transactions."""

import sqlite3

from orderflow.models.transaction import TxReceipt, TxStatus
from orderflow.models.workflow import WorkflowFlow, WorkflowRun, WorkflowState

FAILED_STATUSES = (TxStatus.REVERTED.value, TxStatus.UNCONFIRMED.value)


def save_run(conn: sqlite3.Connection, run: WorkflowRun, config_hash: str = "") -> None:
    """Insert or update a run snapshot."""
    conn.execute(
        "INSERT INTO workflow_runs "
        "(run_id, flow, state, action_index, listing_id, order_hash, "
        "error_message, config_hash, started_at, updated_at) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?) "
        "ON CONFLICT(run_id) DO UPDATE SET "
        "state = excluded.state, action_index = excluded.action_index, "
        "listing_id = excluded.listing_id, order_hash = excluded.order_hash, "
        "error_message = excluded.error_message, updated_at = excluded.updated_at",
        (
            run.run_id,
            run.flow.value,
            run.state.value,
            run.action_index,
            run.listing_id,
            run.order_hash,
            run.error_message,
            config_hash,
            run.started_at,
            run.updated_at,
        ),
    )
    conn.commit()


def record_transaction(
    conn: sqlite3.Connection,
    run_id: str,
    action_index: int,
    purpose: str,
    receipt: TxReceipt,
) -> int:
    """Persist one submitted transaction. Returns the row id."""
    cursor = conn.execute(
        "INSERT INTO submitted_transactions "
        "(run_id, action_index, purpose, tx_hash, status, block_number, gas_used) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        (
            run_id,
            action_index,
            str(purpose),
            receipt.tx_hash,
            receipt.status.value,
            receipt.block_number,
            receipt.gas_used,
        ),
    )
    conn.commit()
    assert cursor.lastrowid is not None
    return cursor.lastrowid


def get_transactions_for_run(conn: sqlite3.Connection, run_id: str) -> list[dict]:
    rows = conn.execute(
        "SELECT * FROM submitted_transactions WHERE run_id = ? ORDER BY id",
        (run_id,),
    ).fetchall()
    return [dict(r) for r in rows]


def get_run(conn: sqlite3.Connection, run_id: str) -> WorkflowRun | None:
    row = conn.execute(
        "SELECT * FROM workflow_runs WHERE run_id = ?", (run_id,)
    ).fetchone()
    if row is None:
        return None
    return _row_to_run(conn, row)


def get_recent_runs(conn: sqlite3.Connection, limit: int = 20) -> list[WorkflowRun]:
    """Most recently started runs first."""
    rows = conn.execute(
        "SELECT * FROM workflow_runs ORDER BY started_at DESC LIMIT ?", (limit,)
    ).fetchall()
    return [_row_to_run(conn, row) for row in rows]


def _row_to_run(conn: sqlite3.Connection, row: sqlite3.Row) -> WorkflowRun:
    txs = get_transactions_for_run(conn, row["run_id"])
    committed = [tx["tx_hash"] for tx in txs if tx["status"] == TxStatus.CONFIRMED.value]
    failed = [tx["tx_hash"] for tx in txs if tx["status"] in FAILED_STATUSES]
    return WorkflowRun(
        run_id=row["run_id"],
        flow=WorkflowFlow(row["flow"]),
        state=WorkflowState(row["state"]),
        action_index=row["action_index"],
        listing_id=row["listing_id"],
        order_hash=row["order_hash"],
        committed_tx_hashes=committed,
        failed_tx_hashes=failed,
        error_message=row["error_message"],
        started_at=row["started_at"],
        updated_at=row["updated_at"],
    )
