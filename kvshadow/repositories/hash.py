"""Hash repository."""

from kvshadow.keys import StructureKind
from kvshadow.repositories.base import ShadowRepository, utcnow
from kvshadow.sql import build_in, build_insert, build_on_conflict, build_select, quote_ident

COLUMNS = ("field", "value", "created_at", "updated_at")


class HashRepository(ShadowRepository):
    """Durable access to hash shadow tables."""

    kind = StructureKind.HASH

    async def upsert(self, table: str, mapping: dict[str, str]) -> None:
        """Insert fields, overwriting values of existing ones."""
        now = utcnow()
        params: list = []
        for field, value in mapping.items():
            params.extend([field, value, now, now])
        sql = build_insert(table, COLUMNS, rows=len(mapping)) + build_on_conflict(
            "field", {"value": "excluded.value", "updated_at": "excluded.updated_at"}
        )
        await self.execute(sql, params)

    async def get(self, table: str, field: str) -> str | None:
        row = await self.fetchone(build_select(table, ["value"], where=["field"]), [field])
        return row[0] if row else None

    async def get_many(self, table: str, fields: list[str]) -> dict[str, str]:
        sql = f"SELECT field, value FROM {quote_ident(table)} WHERE {build_in('field', len(fields))}"
        rows = await self.fetchall(sql, fields)
        return {field: value for field, value in rows}

    async def get_all(self, table: str) -> dict[str, str]:
        rows = await self.fetchall(build_select(table, ["field", "value"], order_by="field ASC"))
        return {field: value for field, value in rows}

    async def delete(self, table: str, fields: list[str]) -> int:
        sql = f"DELETE FROM {quote_ident(table)} WHERE {build_in('field', len(fields))}"
        return await self.execute_count(sql, fields)
