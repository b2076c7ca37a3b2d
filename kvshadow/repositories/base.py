"""Base repository classes."""

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from kvshadow.keys import StructureKind
from kvshadow.repositories.db import Database, Statement
from kvshadow.repositories.schema import SchemaRepository


def utcnow() -> datetime:
    """Naive UTC timestamp for created_at / updated_at columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseRepository:
    """Base repository with common functionality."""

    def __init__(self, db: Database):
        self._db = db
        logger.debug("{} initialized", self.__class__.__name__)

    async def execute(self, query: str, params: Sequence[Any] | None = None) -> None:
        """Execute SQL on the write connection."""
        logger.debug("sql: {} params: {}", query, params)
        await self._db.execute(query, params)

    async def execute_count(self, query: str, params: Sequence[Any] | None = None) -> int:
        """Execute DML on the write connection and return affected rows."""
        logger.debug("sql: {} params: {}", query, params)
        return await self._db.execute_count(query, params)

    async def transaction(self, statements: Sequence[Statement]) -> None:
        """Execute statements atomically on the write connection."""
        for query, params in statements:
            logger.debug("sql (tx): {} params: {}", query, params)
        await self._db.transaction(statements)

    async def fetchall(self, query: str, params: Sequence[Any] | None = None) -> list[tuple]:
        """Execute on the read connection and fetch all rows."""
        logger.debug("sql: {} params: {}", query, params)
        return await self._db.fetchall(query, params)

    async def fetchone(self, query: str, params: Sequence[Any] | None = None) -> tuple | None:
        """Execute on the read connection and fetch one row."""
        logger.debug("sql: {} params: {}", query, params)
        return await self._db.fetchone(query, params)


class ShadowRepository(BaseRepository):
    """Repository for one structure kind's shadow tables."""

    kind: StructureKind

    def __init__(self, db: Database, schema: SchemaRepository):
        super().__init__(db)
        self._schema = schema

    async def ensure_table(self, table: str) -> None:
        await self._schema.ensure_table(table, self.kind)

    async def drop_table(self, table: str) -> None:
        await self._schema.drop_table(table)

    async def drop_table_if_empty(self, table: str) -> bool:
        return await self._schema.drop_table_if_empty(table)
