"""
SQLite database access for generated queries.

Executes SELECTs produced by ``QueryBuilder`` and returns rows as dicts.
"""

from __future__ import annotations

import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from omit_archived.logging import get_logger
from omit_archived.runtime.query_builder import QueryBuilder

logger = get_logger("DB")

MEMORY_DATABASE = ":memory:"


class DatabaseManager:
    """
    Manages the SQLite connection used to serve queries.

    A single persistent connection is kept for the application lifecycle so
    that in-memory databases stay alive between requests.
    """

    def __init__(self, db_path: str | Path = MEMORY_DATABASE):
        """
        Initialize the database manager.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        self.db_path = str(db_path)
        if self.db_path != MEMORY_DATABASE:
            self._ensure_directory()
        self._connection: sqlite3.Connection | None = None

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def get_persistent_connection(self) -> sqlite3.Connection:
        """
        Get a persistent connection for the application lifecycle.

        Returns:
            SQLite connection (reuses existing if available)
        """
        if self._connection is None:
            self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """
        Transaction scope on the persistent connection.

        Yields:
            SQLite connection
        """
        conn = self.get_persistent_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def close(self) -> None:
        """Close the persistent connection."""
        if self._connection:
            self._connection.close()
            self._connection = None

    def execute_script(self, script: str) -> None:
        """Run a multi-statement SQL script (schema setup, fixtures)."""
        with self.connection() as conn:
            conn.executescript(script)

    def fetch_all(self, builder: QueryBuilder) -> list[dict[str, Any]]:
        """
        Run the builder's SELECT and return all rows.

        Args:
            builder: Query builder to execute

        Returns:
            List of rows as column-name keyed dicts
        """
        sql, params = builder.build_select()
        start = time.perf_counter()
        with self.connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        latency_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            "Executed query on %s (%d rows, %.2fms): %s",
            builder.table_name,
            len(rows),
            latency_ms,
            sql,
        )
        return [dict(row) for row in rows]

    def fetch_one(self, builder: QueryBuilder) -> dict[str, Any] | None:
        """Run the builder's SELECT and return the first row, if any."""
        builder.set_pagination(1, 0)
        rows = self.fetch_all(builder)
        return rows[0] if rows else None

    @property
    def backend_type(self) -> str:
        """Return the backend type identifier."""
        return "sqlite"
