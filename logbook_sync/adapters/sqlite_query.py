"""SQLite query adapter — implements QueryPort for the Things database.

Opens the database read-only and runs the sync sqlite3 call with
asyncio.to_thread for async compatibility.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Sequence
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class SQLiteQueryAdapter:
    """Read-only sqlite3 implementation of QueryPort."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        # mode=ro: Things owns the file, never write to it
        uri = f"{self._db_path.resolve().as_uri()}?mode=ro"
        conn = sqlite3.connect(uri, uri=True)
        conn.row_factory = sqlite3.Row
        return conn

    def _execute(self, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        conn = self._connect()
        try:
            rows = conn.execute(sql, tuple(params)).fetchall()
        finally:
            conn.close()
        return [dict(row) for row in rows]

    async def execute(
        self, sql: str, params: Sequence[Any] = ()
    ) -> list[dict[str, Any]]:
        rows = await asyncio.to_thread(self._execute, sql, params)
        logger.debug("Query returned %d row(s) from %s", len(rows), self._db_path.name)
        return rows
