"""Schema provisioner - creates, renames and drops shadow tables on demand."""

from loguru import logger

from kvshadow.keys import StructureKind
from kvshadow.models import EXPIRY_DDL, STRUCTURE_DDL
from kvshadow.repositories.db import Database, is_missing_table
from kvshadow.sql import quote_ident


class SchemaRepository:
    """Table lifecycle for shadow tables and the expiry table.

    Creation is idempotent (`CREATE TABLE IF NOT EXISTS`), so concurrent calls
    for the same table are safe. `drop_table_if_empty` checks then drops without
    a lock; a write landing between the two can be lost with the table.
    """

    def __init__(self, db: Database):
        self._db = db

    async def ensure_table(self, table: str, kind: StructureKind) -> None:
        """Create the shadow table for a structure kind if missing."""
        await self._db.execute(STRUCTURE_DDL[kind].format(table=quote_ident(table)))
        logger.debug("Ensured {} table {}", kind, table)

    async def ensure_expiry_table(self, table: str) -> None:
        await self._db.execute(EXPIRY_DDL.format(table=quote_ident(table)))

    async def drop_table(self, table: str) -> None:
        await self._db.execute(f"DROP TABLE IF EXISTS {quote_ident(table)}")
        logger.info("Dropped table {}", table)

    async def drop_table_if_empty(self, table: str) -> bool:
        """Drop a table only if it has no rows. Returns True if dropped."""
        try:
            row = await self._db.fetchone(f"SELECT EXISTS (SELECT 1 FROM {quote_ident(table)})")
        except Exception as e:
            if is_missing_table(e):
                return False
            raise

        if row and row[0]:
            logger.debug("Table {} still has rows, keeping it", table)
            return False

        await self.drop_table(table)
        return True

    async def rename_table(self, old: str, new: str) -> None:
        await self._db.execute(f"ALTER TABLE {quote_ident(old)} RENAME TO {quote_ident(new)}")
        logger.info("Renamed table {} -> {}", old, new)

    async def tables(self) -> list[str]:
        rows = await self._db.fetchall(
            "SELECT table_name FROM information_schema.tables WHERE table_schema = 'main' ORDER BY table_name"
        )
        return [r[0] for r in rows]

    async def row_count(self, table: str) -> int:
        row = await self._db.fetchone(f"SELECT COUNT(*) FROM {quote_ident(table)}")
        return int(row[0]) if row else 0
