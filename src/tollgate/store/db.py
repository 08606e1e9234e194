"""
SQLite ledger for Tollgate.

This module provides a persistent implementation of the base ledger. A token's
balances, allowances, configuration and full event history live in a single
SQLite database file.

Design Principles:
    - Atomic: one ledger transaction maps to one SQLite transaction
    - Lossless: amounts are stored as decimal text so the whole uint256
      range survives the round trip (SQLite integers stop at 2**63)
    - Auditable: every transfer, approval and configuration change is
      appended to the events table
    - Self-contained: single .db file contains everything

Tables:
    - balances: Holder balances
    - allowances: Spender allowances per holder
    - meta: Token metadata, capability flags, settings, owner, total supply
    - events: Append-only event log
"""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from tollgate.errors import (
    StorageConnectionError,
    StorageReadError,
    StorageWriteError,
)
from tollgate.ledger.base import Ledger
from tollgate.schema import EventKind, LedgerEvent

# Schema version for migrations
SCHEMA_VERSION = 1

# SQL for creating tables
CREATE_TABLES_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL
);

-- Balances: one row per holder with a nonzero balance
CREATE TABLE IF NOT EXISTS balances (
    address TEXT PRIMARY KEY,
    amount TEXT NOT NULL
);

-- Allowances: spender allowance per holder
CREATE TABLE IF NOT EXISTS allowances (
    holder TEXT NOT NULL,
    spender TEXT NOT NULL,
    amount TEXT NOT NULL,
    PRIMARY KEY (holder, spender)
);

-- Metadata: JSON values keyed by name
CREATE TABLE IF NOT EXISTS meta (
    key TEXT PRIMARY KEY,
    value_json TEXT NOT NULL
);

-- Events: append-only audit log
CREATE TABLE IF NOT EXISTS events (
    event_id INTEGER PRIMARY KEY AUTOINCREMENT,
    kind TEXT NOT NULL,
    data_json TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_events_kind ON events(kind);
"""


class TokenDB(Ledger):
    """
    SQLite-backed ledger.

    Usage:
        db = TokenDB("token.db")
        token = Token.deploy(spec, ledger=db)
        db.close()

    Or use as context manager:
        with TokenDB("token.db") as db:
            token = Token.open(db)
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize the database connection.

        Args:
            db_path: Path to the SQLite database file.
                     Will be created if it doesn't exist.
        """
        super().__init__()
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._connect()
        self._init_schema()

    def _connect(self) -> None:
        """Establish database connection."""
        try:
            self._conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
        except sqlite3.Error as e:
            raise StorageConnectionError(
                db_path=str(self.db_path),
                operation="connect",
                message=f"Failed to connect to database: {e}",
            ) from e

    def _init_schema(self) -> None:
        """Initialize database schema if needed."""
        try:
            cursor = self._conn.executescript(CREATE_TABLES_SQL)
            cursor.close()

            cursor = self._conn.execute(
                "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1"
            )
            row = cursor.fetchone()
            if row is None:
                self._conn.execute(
                    "INSERT INTO schema_version (version, applied_at) VALUES (?, datetime('now'))",
                    (SCHEMA_VERSION,),
                )
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation="init_schema",
                underlying_error=str(e),
            ) from e

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "TokenDB":
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager."""
        self.close()

    # =========================================================================
    # Query Helpers
    # =========================================================================

    def _fetch_one(self, operation: str, sql: str, params: tuple[Any, ...]) -> sqlite3.Row | None:
        try:
            return self._conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise StorageReadError(
                operation=operation,
                underlying_error=str(e),
            ) from e

    def _execute(self, operation: str, sql: str, params: tuple[Any, ...]) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation=operation,
                underlying_error=str(e),
            ) from e

    # =========================================================================
    # Storage Hooks
    # =========================================================================

    def _read_balance(self, address: str) -> int:
        row = self._fetch_one(
            "read_balance",
            "SELECT amount FROM balances WHERE address = ?",
            (address,),
        )
        return int(row["amount"]) if row else 0

    def _write_balance(self, address: str, amount: int) -> None:
        if amount:
            self._execute(
                "write_balance",
                "INSERT OR REPLACE INTO balances (address, amount) VALUES (?, ?)",
                (address, str(amount)),
            )
        else:
            self._execute(
                "write_balance",
                "DELETE FROM balances WHERE address = ?",
                (address,),
            )

    def _read_allowance(self, holder: str, spender: str) -> int:
        row = self._fetch_one(
            "read_allowance",
            "SELECT amount FROM allowances WHERE holder = ? AND spender = ?",
            (holder, spender),
        )
        return int(row["amount"]) if row else 0

    def _write_allowance(self, holder: str, spender: str, amount: int) -> None:
        self._execute(
            "write_allowance",
            "INSERT OR REPLACE INTO allowances (holder, spender, amount) VALUES (?, ?, ?)",
            (holder, spender, str(amount)),
        )

    def _read_meta(self, key: str) -> Any:
        row = self._fetch_one(
            "read_meta",
            "SELECT value_json FROM meta WHERE key = ?",
            (key,),
        )
        return json.loads(row["value_json"]) if row else None

    def _write_meta(self, key: str, value: Any) -> None:
        self._execute(
            "write_meta",
            "INSERT OR REPLACE INTO meta (key, value_json) VALUES (?, ?)",
            (key, json.dumps(value, sort_keys=True)),
        )

    def _append_event(self, kind: EventKind, data: dict[str, Any], created_at: datetime) -> LedgerEvent:
        cursor = self._execute(
            "append_event",
            "INSERT INTO events (kind, data_json, created_at) VALUES (?, ?, ?)",
            (kind.value, json.dumps(data, sort_keys=True), created_at.isoformat()),
        )
        return LedgerEvent(
            event_id=cursor.lastrowid,
            kind=kind,
            data=data,
            created_at=created_at,
        )

    def _load_events(self, kind: EventKind | None) -> list[LedgerEvent]:
        try:
            if kind is None:
                cursor = self._conn.execute("SELECT * FROM events ORDER BY event_id")
            else:
                cursor = self._conn.execute(
                    "SELECT * FROM events WHERE kind = ? ORDER BY event_id",
                    (kind.value,),
                )
            return [
                LedgerEvent(
                    event_id=row["event_id"],
                    kind=EventKind(row["kind"]),
                    data=json.loads(row["data_json"]),
                    created_at=datetime.fromisoformat(row["created_at"]),
                )
                for row in cursor
            ]
        except sqlite3.Error as e:
            raise StorageReadError(
                operation="load_events",
                underlying_error=str(e),
            ) from e

    def holders(self) -> dict[str, int]:
        try:
            cursor = self._conn.execute("SELECT address, amount FROM balances ORDER BY address")
            return {row["address"]: int(row["amount"]) for row in cursor}
        except sqlite3.Error as e:
            raise StorageReadError(
                operation="holders",
                underlying_error=str(e),
            ) from e

    def _begin(self) -> None:
        # sqlite3 opens the transaction implicitly on the first write
        pass

    def _commit(self) -> None:
        try:
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation="commit",
                underlying_error=str(e),
            ) from e

    def _rollback(self) -> None:
        try:
            self._conn.rollback()
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation="rollback",
                underlying_error=str(e),
            ) from e
