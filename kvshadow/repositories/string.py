"""String repository - one row per identifier in a bucket table."""

from kvshadow.keys import StructureKind
from kvshadow.repositories.base import ShadowRepository, utcnow
from kvshadow.sql import build_insert, build_on_conflict, build_select, quote_ident

COLUMNS = ("key", "value", "created_at", "updated_at")


class StringRepository(ShadowRepository):
    """Durable access to string shadow tables."""

    kind = StructureKind.STRING

    async def get(self, table: str, identifier: str) -> str | None:
        row = await self.fetchone(build_select(table, ["value"], where=["key"]), [identifier])
        return row[0] if row else None

    async def upsert(self, table: str, identifier: str, value: str) -> None:
        """Insert the value, or overwrite it if the identifier exists."""
        now = utcnow()
        sql = build_insert(table, COLUMNS) + build_on_conflict(
            "key", {"value": "excluded.value", "updated_at": "excluded.updated_at"}
        )
        await self.execute(sql, [identifier, value, now, now])

    async def delete(self, table: str, identifier: str) -> int:
        return await self.execute_count(f'DELETE FROM {quote_ident(table)} WHERE "key" = ?', [identifier])

    async def move(self, source: str, target: str, old_identifier: str, new_identifier: str) -> None:
        """Move one row to another table and/or identifier in a single transaction.

        An existing row at the target identifier is overwritten.
        """
        copy = (
            f'INSERT INTO {quote_ident(target)} ("key", value, created_at, updated_at) '
            f'SELECT ?, value, created_at, ? FROM {quote_ident(source)} WHERE "key" = ?'
            + build_on_conflict("key", {"value": "excluded.value", "updated_at": "excluded.updated_at"})
        )
        delete = f'DELETE FROM {quote_ident(source)} WHERE "key" = ?'
        await self.transaction(
            [
                (copy, [new_identifier, utcnow(), old_identifier]),
                (delete, [old_identifier]),
            ]
        )
