"""Initial schema: append-only AQI snapshot history per target."""

import sqlite3

DDL = [
    # One row per persisted live reading
    """
    CREATE TABLE IF NOT EXISTS aqi_snapshots (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        target TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        aqi INTEGER NOT NULL CHECK (aqi >= 0),
        dominant_pollutant TEXT NOT NULL DEFAULT '',
        pm25 REAL,
        pm10 REAL,
        o3 REAL,
        no2 REAL,
        so2 REAL,
        co REAL,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    (
        "CREATE INDEX IF NOT EXISTS idx_aqi_snapshots_target_ts "
        "ON aqi_snapshots(target, timestamp)"
    ),
]


def up(conn: sqlite3.Connection) -> None:
    for stmt in DDL:
        conn.execute(stmt)
    conn.commit()
