"""SQLite bootstrap for the snapshot store: connection setup and schema migrations.

Migrations live in ``airwatch/storage/migrations`` as ``v###_<name>.py``
modules exposing ``up(conn)``. Applied versions are recorded in
``schema_versions`` so that opening an existing database only runs new ones.
"""

import importlib
import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"
BUSY_TIMEOUT_MS = 5000


def connect(db_path: str | Path, shared: bool = False) -> sqlite3.Connection:
    """Open a WAL-mode connection, creating the parent directory if needed.

    ``shared=True`` allows the connection to be used from the refresh worker
    threads; callers must then serialize access themselves.
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), check_same_thread=not shared)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
    return conn


def available_migrations() -> list[str]:
    return sorted(p.stem for p in MIGRATIONS_DIR.glob("v[0-9][0-9][0-9]_*.py"))


def applied_migrations(conn: sqlite3.Connection) -> set[str]:
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_versions ("
        "version TEXT PRIMARY KEY, "
        "applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP)"
    )
    return {row["version"] for row in conn.execute("SELECT version FROM schema_versions")}


def run_migrations(conn: sqlite3.Connection) -> list[str]:
    """Apply pending migrations in version order. Returns the ones applied now."""
    done = applied_migrations(conn)
    pending = [name for name in available_migrations() if name not in done]
    for name in pending:
        module = importlib.import_module(f"airwatch.storage.migrations.{name}")
        module.up(conn)
        conn.execute("INSERT INTO schema_versions (version) VALUES (?)", (name,))
        conn.commit()
        logger.info("Applied migration %s", name)
    return pending


def open_store_db(db_path: str | Path) -> tuple[sqlite3.Connection, list[str]]:
    """Shared, migrated connection for SqliteSnapshotStore.

    Returns the connection and the migrations applied while opening it.
    """
    conn = connect(db_path, shared=True)
    try:
        applied = run_migrations(conn)
    except Exception:
        conn.close()
        raise
    if applied:
        logger.info("Initialized snapshot database %s (%s)", db_path, ", ".join(applied))
    else:
        logger.debug("Snapshot database %s is up to date", db_path)
    return conn, applied
