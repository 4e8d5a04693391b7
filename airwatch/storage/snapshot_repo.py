"""Repository for persisted AQI snapshots, plus a thread-safe store facade."""

import logging
import sqlite3
import threading
from datetime import UTC, date, datetime, time, timedelta
from pathlib import Path
from typing import Protocol

from airwatch.errors import WriteFailure
from airwatch.models.air_quality import MetricSnapshot
from airwatch.models.common import Pollutant, normalize_target
from airwatch.storage.database import open_store_db

logger = logging.getLogger(__name__)

_POLLUTANT_COLUMNS = [p.value for p in Pollutant]


def _iso(ts: datetime) -> str:
    """Fixed-width UTC ISO string so that text ordering matches time ordering."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC).isoformat(timespec="microseconds")


def _day_start(day: date) -> str:
    return _iso(datetime.combine(day, time.min, tzinfo=UTC))


def _row_to_snapshot(row: sqlite3.Row) -> MetricSnapshot:
    return MetricSnapshot(
        target=row["target"],
        timestamp=datetime.fromisoformat(row["timestamp"]),
        index=row["aqi"],
        dominant_pollutant=row["dominant_pollutant"],
        concentrations={p: row[p.value] for p in Pollutant if row[p.value] is not None},
    )


def append_snapshot(conn: sqlite3.Connection, snapshot: MetricSnapshot) -> int:
    """Persist a snapshot. Returns the row id."""
    values = [snapshot.concentrations.get(p) for p in Pollutant]
    cursor = conn.execute(
        "INSERT INTO aqi_snapshots "
        f"(target, timestamp, aqi, dominant_pollutant, {', '.join(_POLLUTANT_COLUMNS)}) "
        f"VALUES (?, ?, ?, ?, {', '.join('?' for _ in _POLLUTANT_COLUMNS)})",
        (
            normalize_target(snapshot.target),
            _iso(snapshot.timestamp),
            snapshot.index,
            snapshot.dominant_pollutant,
            *values,
        ),
    )
    conn.commit()
    assert cursor.lastrowid is not None
    return cursor.lastrowid


def get_latest(conn: sqlite3.Connection, target: str) -> MetricSnapshot | None:
    """Get the most recent snapshot for a target."""
    row = conn.execute(
        "SELECT * FROM aqi_snapshots WHERE target = ? "
        "ORDER BY timestamp DESC, id DESC LIMIT 1",
        (normalize_target(target),),
    ).fetchone()
    if row is None:
        return None
    return _row_to_snapshot(row)


def get_latest_before(
    conn: sqlite3.Connection, target: str, before_day: date
) -> MetricSnapshot | None:
    """Get the most recent snapshot strictly before the start of ``before_day``."""
    row = conn.execute(
        "SELECT * FROM aqi_snapshots WHERE target = ? AND timestamp < ? "
        "ORDER BY timestamp DESC, id DESC LIMIT 1",
        (normalize_target(target), _day_start(before_day)),
    ).fetchone()
    if row is None:
        return None
    return _row_to_snapshot(row)


def get_range(
    conn: sqlite3.Connection, target: str, from_day: date, to_day: date
) -> list[MetricSnapshot]:
    """Get snapshots whose UTC day lies in ``[from_day, to_day]``, oldest first."""
    rows = conn.execute(
        "SELECT * FROM aqi_snapshots WHERE target = ? AND timestamp >= ? AND timestamp < ? "
        "ORDER BY timestamp ASC, id ASC",
        (
            normalize_target(target),
            _day_start(from_day),
            _day_start(to_day + timedelta(days=1)),
        ),
    ).fetchall()
    return [_row_to_snapshot(r) for r in rows]


class SnapshotStore(Protocol):
    def get_latest(self, target: str) -> MetricSnapshot | None: ...

    def get_latest_before(self, target: str, before_day: date) -> MetricSnapshot | None: ...

    def get_range(self, target: str, from_day: date, to_day: date) -> list[MetricSnapshot]: ...

    def append(self, snapshot: MetricSnapshot) -> int: ...


class SqliteSnapshotStore:
    """Store collaborator backed by one SQLite connection shared across threads.

    Every call holds the store lock, which gives read-your-last-write per target.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._lock = threading.Lock()
        self._conn, self.applied_migrations = open_store_db(self.db_path)

    def get_latest(self, target: str) -> MetricSnapshot | None:
        with self._lock:
            return get_latest(self._conn, target)

    def get_latest_before(self, target: str, before_day: date) -> MetricSnapshot | None:
        with self._lock:
            return get_latest_before(self._conn, target, before_day)

    def get_range(self, target: str, from_day: date, to_day: date) -> list[MetricSnapshot]:
        with self._lock:
            return get_range(self._conn, target, from_day, to_day)

    def append(self, snapshot: MetricSnapshot) -> int:
        try:
            with self._lock:
                row_id = append_snapshot(self._conn, snapshot)
        except sqlite3.Error as e:
            raise WriteFailure(
                f"Failed to append snapshot for {snapshot.target}: {e}", snapshot.target
            ) from e
        logger.debug("Persisted AQI %d for %s (row %d)", snapshot.index, snapshot.target, row_id)
        return row_id

    def close(self) -> None:
        with self._lock:
            self._conn.close()
