"""Expiry repository - informational TTL records keyed by full cache key."""

from datetime import datetime

from loguru import logger

from kvshadow.repositories.base import BaseRepository, utcnow
from kvshadow.repositories.db import Database, is_missing_table
from kvshadow.repositories.schema import SchemaRepository
from kvshadow.sql import build_insert, build_on_conflict, quote_ident

COLUMNS = ("key", "expiry_at", "created_at", "updated_at")


class ExpiryRepository(BaseRepository):
    """Durable access to the shared expiry table."""

    def __init__(self, db: Database, schema: SchemaRepository, table: str):
        super().__init__(db)
        self._schema = schema
        self.table = table

    async def ensure_table(self) -> None:
        await self._schema.ensure_expiry_table(self.table)

    async def upsert(self, key: str, expiry_at: datetime) -> None:
        now = utcnow()
        sql = build_insert(self.table, COLUMNS) + build_on_conflict(
            "key", {"expiry_at": "excluded.expiry_at", "updated_at": "excluded.updated_at"}
        )
        await self.execute(sql, [key, expiry_at, now, now])

    async def rename_key(self, old: str, new: str) -> None:
        """Point an expiry record at a new key. A missing expiry table is a no-op."""
        table = quote_ident(self.table)
        copy = (
            f'INSERT INTO {table} ("key", expiry_at, created_at, updated_at) '
            f'SELECT ?, expiry_at, created_at, ? FROM {table} WHERE "key" = ?'
            + build_on_conflict("key", {"expiry_at": "excluded.expiry_at", "updated_at": "excluded.updated_at"})
        )
        delete = f'DELETE FROM {table} WHERE "key" = ?'
        try:
            await self.transaction([(copy, [new, utcnow(), old]), (delete, [old])])
        except Exception as e:
            if is_missing_table(e):
                logger.warning("Table does not exist: {}", self.table)
                return
            raise
