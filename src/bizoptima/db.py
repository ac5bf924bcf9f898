# BizOptima - Business Data & Analytics core for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Persistence layer for BizOptima.

The data store keeps its three entity kinds (profile, financial records,
KPIs) as complete JSON snapshots in a durable key-value medium. This module
defines that medium as a small port and provides its implementations:

- ``KeyValueStore``: the protocol used by the data store (``load`` / ``save``
  / ``close``).
- ``SQLiteKeyValueStore``: the durable implementation, backed by a single
  SQLite table.
- ``MemoryKeyValueStore``: an in-process implementation, used for tests and
  for the "memory" engine (nothing survives the process).

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

kv_store
   One row per key.

   Columns:
   - key         TEXT PRIMARY KEY
   - value       TEXT NOT NULL      -- JSON snapshot
   - updated_at  TEXT NOT NULL      -- ISO datetime, UTC

The three keys written by the data store are exposed as constants
(``BUSINESS_DATA_KEY``, ``FINANCIAL_RECORDS_KEY``, ``KPI_DATA_KEY``).
Every save overwrites the previous value of the key (last write wins).

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- Timestamps are stored as ISO-8601 text (UTC).
- Each ``save`` is committed immediately; there is no batching.
- The schema creation is idempotent and runs when the store is opened.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

BUSINESS_DATA_KEY = "bizoptima_business_data"
FINANCIAL_RECORDS_KEY = "bizoptima_financial_records"
KPI_DATA_KEY = "bizoptima_kpi_data"

STORAGE_KEYS: tuple[str, ...] = (
    BUSINESS_DATA_KEY,
    FINANCIAL_RECORDS_KEY,
    KPI_DATA_KEY,
)

SUPPORTED_ENGINES: tuple[str, ...] = ("sqlite", "memory")


# ---------------------------------------------------------------------------
# Configuration & port
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Storage configuration for BizOptima.

    Attributes
    ----------
    engine:
        Storage engine identifier: "sqlite" (durable) or "memory".
    path:
        Path to the SQLite database file. Ignored by the "memory" engine.
    """

    engine: str
    path: Path


class KeyValueStore(Protocol):
    """
    Durable key-value medium used by the data store.

    ``load`` returns None when the key has never been written. Implementations
    may raise on I/O failures; the data store is responsible for catching and
    logging them.
    """

    def load(self, key: str) -> Optional[str]: ...

    def save(self, key: str, value: str) -> None: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_supported(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() not in SUPPORTED_ENGINES:
        msg = (
            f"Unsupported storage engine: {cfg.engine!r}. "
            f"Expected one of: {', '.join(SUPPORTED_ENGINES)}."
        )
        raise ValueError(msg)


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """
    Open a SQLite connection to the configured file.

    The caller is responsible for closing the connection.
    """
    cfg.path.parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(cfg.path)


def _create_schema_if_needed(conn: sqlite3.Connection) -> None:
    """
    Create the key-value table if it does not exist yet.

    This function is idempotent and can be called multiple times safely.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv_store (
            key         TEXT PRIMARY KEY,
            value       TEXT NOT NULL,
            updated_at  TEXT NOT NULL
        );
        """
    )
    conn.commit()


def _now_utc_iso() -> str:
    """Return the current UTC datetime as ISO string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


# ---------------------------------------------------------------------------
# Implementations
# ---------------------------------------------------------------------------


class SQLiteKeyValueStore:
    """
    Key-value store persisted in a SQLite file.

    The connection is opened on construction and kept until ``close`` is
    called. Writes are committed one by one.

    Raises
    ------
    sqlite3.Error
        If the database file cannot be opened or the schema cannot be created.
    """

    def __init__(self, cfg: DatabaseConfig) -> None:
        self.path = cfg.path
        self._conn: Optional[sqlite3.Connection] = _connect(cfg)
        _create_schema_if_needed(self._conn)

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise sqlite3.ProgrammingError("Key-value store is closed.")
        return self._conn

    def load(self, key: str) -> Optional[str]:
        cur = self._connection().execute(
            "SELECT value FROM kv_store WHERE key = ?;",
            (key,),
        )
        row = cur.fetchone()
        return None if row is None else str(row[0])

    def save(self, key: str, value: str) -> None:
        conn = self._connection()
        conn.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at;
            """,
            (key, value, _now_utc_iso()),
        )
        conn.commit()

    def keys(self) -> list[str]:
        """Return the keys currently stored, sorted alphabetically."""
        cur = self._connection().execute("SELECT key FROM kv_store ORDER BY key;")
        return [str(row[0]) for row in cur.fetchall()]

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


class MemoryKeyValueStore:
    """In-process key-value store. Nothing is written to disk."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.writes = 0

    def load(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def save(self, key: str, value: str) -> None:
        self.data[key] = value
        self.writes += 1

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def open_key_value_store(cfg: DatabaseConfig) -> KeyValueStore:
    """
    Open the key-value store described by ``cfg``.

    - "sqlite": creates the SQLite file and its schema if needed.
    - "memory": returns an empty in-process store.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    sqlite3.Error
        If the SQLite database cannot be opened.
    """
    _ensure_supported(cfg)
    if cfg.engine.lower() == "memory":
        return MemoryKeyValueStore()
    return SQLiteKeyValueStore(cfg)
