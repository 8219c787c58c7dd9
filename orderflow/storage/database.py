"""Run journal database: connection setup and schema migrations."""

import importlib
import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

MIGRATIONS_PACKAGE = "orderflow.storage.migrations"

# Two CLI invocations may journal to the same file; wait for the writer
BUSY_TIMEOUT_MS = 5000


def connect(db_path: str | Path, busy_timeout_ms: int = BUSY_TIMEOUT_MS) -> sqlite3.Connection:
    """Open the journal with WAL, foreign keys and a busy timeout."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
    return conn


def applied_migrations(conn: sqlite3.Connection) -> list[str]:
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_versions ("
        "  version TEXT PRIMARY KEY,"
        "  applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP"
        ")"
    )
    conn.commit()
    rows = conn.execute("SELECT version FROM schema_versions ORDER BY version").fetchall()
    return [row[0] for row in rows]


def run_migrations(conn: sqlite3.Connection) -> list[str]:
    """Bring the journal schema up to date. Returns the versions applied by this call."""
    done = set(applied_migrations(conn))
    pending = [name for name in _discover_migrations() if name not in done]

    for name in pending:
        importlib.import_module(f"{MIGRATIONS_PACKAGE}.{name}").up(conn)
        conn.execute("INSERT INTO schema_versions (version) VALUES (?)", (name,))
        conn.commit()
        logger.info("Applied journal migration %s", name)
    return pending


def open_database(db_path: str | Path) -> sqlite3.Connection:
    """Connect, creating the parent directory, and bring the schema up to date."""
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = connect(path)
    run_migrations(conn)
    return conn


def _discover_migrations() -> list[str]:
    # v###_<name>.py, applied in version order
    migrations_dir = Path(__file__).parent / "migrations"
    return sorted(p.stem for p in migrations_dir.glob("v[0-9]*_*.py"))
