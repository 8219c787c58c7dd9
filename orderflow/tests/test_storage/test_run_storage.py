"""Tests for the run journal database, repository and journal."""

from pathlib import Path

from orderflow.models.transaction import TxReceipt, TxStatus
from orderflow.models.workflow import WorkflowFlow, WorkflowRun, WorkflowState
from orderflow.storage import run_repo
from orderflow.storage.database import (
    applied_migrations,
    connect,
    open_database,
    run_migrations,
)
from orderflow.storage.journal import RunJournal


def _run(run_id: str = "run-1", started_at: str = "2026-01-01T00:00:00+00:00") -> WorkflowRun:
    return WorkflowRun(
        run_id=run_id, flow=WorkflowFlow.FULFILL, started_at=started_at, updated_at=started_at
    )


class TestDatabase:
    def test_wal_mode(self, tmp_path: Path):
        db = connect(tmp_path / "test.db")
        assert db.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
        db.close()

    def test_creates_tables(self, tmp_path: Path):
        db = connect(tmp_path / "test.db")
        assert run_migrations(db) == ["v001_initial"]
        tables = {
            row[0]
            for row in db.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
        assert {"schema_versions", "workflow_runs", "submitted_transactions"} <= tables
        db.close()

    def test_migrations_idempotent(self, tmp_path: Path):
        db = connect(tmp_path / "test.db")
        run_migrations(db)
        assert run_migrations(db) == []
        assert applied_migrations(db) == ["v001_initial"]
        db.close()

    def test_busy_timeout(self, tmp_path: Path):
        db = connect(tmp_path / "test.db", busy_timeout_ms=1234)
        assert db.execute("PRAGMA busy_timeout").fetchone()[0] == 1234
        db.close()

    def test_open_database_creates_parent(self, tmp_path: Path):
        db = open_database(tmp_path / "nested" / "dir" / "runs.db")
        assert (tmp_path / "nested" / "dir" / "runs.db").exists()
        db.close()


class TestRunRepo:
    def test_save_and_get(self, tmp_db):
        run = _run()
        run_repo.save_run(tmp_db, run, config_hash="cfg")
        stored = run_repo.get_run(tmp_db, "run-1")
        assert stored.flow == WorkflowFlow.FULFILL
        assert stored.state == WorkflowState.PREPARING
        row = tmp_db.execute("SELECT config_hash FROM workflow_runs").fetchone()
        assert row["config_hash"] == "cfg"

    def test_upsert_updates_state(self, tmp_db):
        run = _run()
        run_repo.save_run(tmp_db, run)
        run.advance(WorkflowState.ACTING, 0)
        run.fail("reverted", action_index=0)
        run_repo.save_run(tmp_db, run)

        stored = run_repo.get_run(tmp_db, "run-1")
        assert stored.state == WorkflowState.FAILED
        assert stored.action_index == 0
        assert stored.error_message == "reverted"
        assert tmp_db.execute("SELECT COUNT(*) FROM workflow_runs").fetchone()[0] == 1

    def test_only_confirmed_hashes_count_as_committed(self, tmp_db):
        run_repo.save_run(tmp_db, _run())
        run_repo.record_transaction(
            tmp_db, "run-1", 0, "APPROVAL",
            TxReceipt(tx_hash="0xaa", status=TxStatus.CONFIRMED, block_number=1),
        )
        run_repo.record_transaction(
            tmp_db, "run-1", 1, "FULFILL_ORDER",
            TxReceipt(tx_hash="0xbb", status=TxStatus.DRY_RUN),
        )
        assert run_repo.get_run(tmp_db, "run-1").committed_tx_hashes == ["0xaa"]
        txs = run_repo.get_transactions_for_run(tmp_db, "run-1")
        assert [tx["purpose"] for tx in txs] == ["APPROVAL", "FULFILL_ORDER"]

    def test_reverted_and_unconfirmed_hashes_loaded_as_failed(self, tmp_db):
        run_repo.save_run(tmp_db, _run())
        run_repo.record_transaction(
            tmp_db, "run-1", 0, "APPROVAL",
            TxReceipt(tx_hash="0xaa", status=TxStatus.REVERTED, block_number=7),
        )
        run_repo.record_transaction(
            tmp_db, "run-1", 1, "FULFILL_ORDER",
            TxReceipt(tx_hash="0xbb", status=TxStatus.UNCONFIRMED),
        )
        stored = run_repo.get_run(tmp_db, "run-1")
        assert stored.committed_tx_hashes == []
        assert stored.failed_tx_hashes == ["0xaa", "0xbb"]

    def test_missing_run(self, tmp_db):
        assert run_repo.get_run(tmp_db, "nope") is None

    def test_recent_runs_newest_first(self, tmp_db):
        run_repo.save_run(tmp_db, _run("old", "2026-01-01T00:00:00+00:00"))
        run_repo.save_run(tmp_db, _run("new", "2026-02-01T00:00:00+00:00"))
        assert [r.run_id for r in run_repo.get_recent_runs(tmp_db)] == ["new", "old"]
        assert len(run_repo.get_recent_runs(tmp_db, limit=1)) == 1


class TestRunJournal:
    def test_record(self, tmp_db):
        journal = RunJournal(tmp_db, config_hash="h")
        run = _run()
        journal.record(run)
        journal.record_transaction(
            run, 0, "APPROVAL", TxReceipt(tx_hash="0xcc", status=TxStatus.CONFIRMED)
        )
        assert run_repo.get_run(tmp_db, "run-1").committed_tx_hashes == ["0xcc"]
