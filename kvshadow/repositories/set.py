"""Set repository."""

from kvshadow.keys import StructureKind
from kvshadow.repositories.base import ShadowRepository, utcnow
from kvshadow.sql import build_in, build_insert, build_on_conflict, build_select, quote_ident

COLUMNS = ("member", "created_at", "updated_at")


class SetRepository(ShadowRepository):
    """Durable access to set shadow tables."""

    kind = StructureKind.SET

    async def add(self, table: str, members: list[str]) -> None:
        """Insert members, ignoring ones already present."""
        unique = list(dict.fromkeys(members))
        now = utcnow()
        params: list = []
        for member in unique:
            params.extend([member, now, now])
        sql = build_insert(table, COLUMNS, rows=len(unique)) + build_on_conflict("member")
        await self.execute(sql, params)

    async def remove(self, table: str, members: list[str]) -> int:
        sql = f"DELETE FROM {quote_ident(table)} WHERE {build_in('member', len(members))}"
        return await self.execute_count(sql, members)

    async def members(self, table: str) -> list[str]:
        rows = await self.fetchall(build_select(table, ["member"], order_by="member"))
        return [r[0] for r in rows if r[0] is not None]

    async def is_member(self, table: str, member: str) -> bool:
        row = await self.fetchone(build_select(table, ["member"], where=["member"]), [member])
        return row is not None
