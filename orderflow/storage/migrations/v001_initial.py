"""Initial schema: workflow runs and the transactions they submitted."""

import sqlite3

DDL = [
    # One row per run, upserted on every state transition
    """
    CREATE TABLE IF NOT EXISTS workflow_runs (
        run_id TEXT PRIMARY KEY,
        flow TEXT NOT NULL,
        state TEXT NOT NULL,
        action_index INTEGER,
        listing_id TEXT NOT NULL DEFAULT '',
        order_hash TEXT NOT NULL DEFAULT '',
        error_message TEXT NOT NULL DEFAULT '',
        config_hash TEXT NOT NULL DEFAULT '',
        started_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_workflow_runs_started ON workflow_runs(started_at)",

    # Transactions in submission order; DRY_RUN rows were never broadcast
    """
    CREATE TABLE IF NOT EXISTS submitted_transactions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        run_id TEXT NOT NULL REFERENCES workflow_runs(run_id),
        action_index INTEGER NOT NULL,
        purpose TEXT NOT NULL,
        tx_hash TEXT NOT NULL,
        status TEXT NOT NULL,
        block_number INTEGER,
        gas_used INTEGER NOT NULL DEFAULT 0,
        recorded_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    (
        "CREATE INDEX IF NOT EXISTS idx_submitted_transactions_run "
        "ON submitted_transactions(run_id)"
    ),
]


def up(conn: sqlite3.Connection) -> None:
    for stmt in DDL:
        conn.execute(stmt)
    conn.commit()
