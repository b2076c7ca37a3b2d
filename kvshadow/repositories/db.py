"""DuckDB connection management."""

import asyncio
import threading
from collections.abc import Sequence
from typing import Any

import duckdb
from loguru import logger

Statement = tuple[str, Sequence[Any] | None]


def is_missing_table(exc: BaseException) -> bool:
    """Check if a durable error means the queried table does not exist."""
    return isinstance(exc, duckdb.CatalogException) and "does not exist" in str(exc)


class Database:
    """Two connections to one DuckDB database.

    Mirror writes go through the write connection, read-through queries through
    a separate read connection so reads never wait behind in-flight writes.
    Each connection is used by one thread at a time.
    """

    def __init__(self, path: str):
        self.path = path
        self._write = duckdb.connect(path)
        self._read = self._write.cursor()
        self._write_lock = threading.Lock()
        self._read_lock = threading.Lock()
        logger.debug("DB connected: {}", path)

    def _run(self, write: bool, query: str, params: Sequence[Any] | None, fetch: bool) -> list[tuple]:
        conn, lock = (self._write, self._write_lock) if write else (self._read, self._read_lock)
        with lock:
            result = conn.execute(query, params) if params else conn.execute(query)
            return result.fetchall() if fetch else []

    async def fetchall(self, query: str, params: Sequence[Any] | None = None) -> list[tuple]:
        """Execute on the read connection and fetch all rows."""
        return await asyncio.to_thread(self._run, False, query, params, True)

    async def fetchone(self, query: str, params: Sequence[Any] | None = None) -> tuple | None:
        """Execute on the read connection and fetch the first row."""
        rows = await self.fetchall(query, params)
        return rows[0] if rows else None

    async def execute(self, query: str, params: Sequence[Any] | None = None) -> None:
        """Execute on the write connection."""
        await asyncio.to_thread(self._run, True, query, params, False)

    async def execute_count(self, query: str, params: Sequence[Any] | None = None) -> int:
        """Execute a DML statement on the write connection, return affected rows."""
        rows = await asyncio.to_thread(self._run, True, query, params, True)
        return int(rows[0][0]) if rows else 0

    def _run_transaction(self, statements: Sequence[Statement]) -> None:
        with self._write_lock:
            self._write.execute("BEGIN TRANSACTION")
            try:
                for query, params in statements:
                    if params:
                        self._write.execute(query, params)
                    else:
                        self._write.execute(query)
                self._write.execute("COMMIT")
            except Exception:
                self._write.execute("ROLLBACK")
                raise

    async def transaction(self, statements: Sequence[Statement]) -> None:
        """Run statements on the write connection in one transaction; roll back on any failure."""
        await asyncio.to_thread(self._run_transaction, statements)

    def close(self) -> None:
        """Close both connections."""
        with self._read_lock:
            self._read.close()
        with self._write_lock:
            self._write.close()
        logger.debug("DB connections closed: {}", self.path)


def connect(path: str) -> Database:
    """Open the durable store."""
    return Database(path)
