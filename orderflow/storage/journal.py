"""Run journal: persists workflow transitions as they happen."""

import logging
import sqlite3

from orderflow.models.transaction import TxReceipt
from orderflow.models.workflow import WorkflowRun
from orderflow.storage import run_repo

logger = logging.getLogger(__name__)


class RunJournal:
    """Writes every run transition and submitted transaction to SQLite.

    A run that fails after some transactions landed can then be inspected
    with ``orderflow runs``.
    """

    def __init__(self, conn: sqlite3.Connection, config_hash: str = ""):
        self.conn = conn
        self.config_hash = config_hash

    def record(self, run: WorkflowRun) -> None:
        run_repo.save_run(self.conn, run, self.config_hash)
        logger.debug("Journaled run %s in state %s", run.run_id, run.state)

    def record_transaction(
        self, run: WorkflowRun, action_index: int, purpose: str, receipt: TxReceipt
    ) -> None:
        run_repo.record_transaction(self.conn, run.run_id, action_index, purpose, receipt)
