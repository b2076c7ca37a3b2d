"""List repository - positional access emulated over `sequence` ordering.

The head of a list is its most recently pushed element, i.e. the row with the
highest `sequence`. Index `i >= 0` counts from the head: a counter starting at
-1 and stepping +1 over rows ordered by `sequence DESC`. Index `i < 0` counts
from the tail: a counter starting at 0 and stepping -1 over rows ordered by
`sequence ASC` (so -1 is the last element).
"""

from kvshadow.keys import StructureKind
from kvshadow.repositories.base import ShadowRepository, utcnow
from kvshadow.sql import build_insert, build_positional_select, quote_ident

COLUMNS = ("sequence", "value", "created_at", "updated_at")


def counter_for(index: int) -> tuple[int, int, str]:
    """(starting counter, step, order) for a list index."""
    if index >= 0:
        return -1, 1, "sequence DESC"
    return 0, -1, "sequence ASC"


class ListRepository(ShadowRepository):
    """Durable access to list shadow tables."""

    kind = StructureKind.LIST

    async def push(self, table: str, rows: list[tuple[float, str]]) -> None:
        """Insert (sequence, value) rows."""
        now = utcnow()
        params: list = []
        for sequence, value in rows:
            params.extend([sequence, value, now, now])
        await self.execute(build_insert(table, COLUMNS, rows=len(rows)), params)

    async def value_at(self, table: str, index: int) -> str | None:
        """Value at a cache-style index, or None if no row matches."""
        start, step, order = counter_for(index)
        inner = build_positional_select(table, ["value"], order)
        row = await self.fetchone(f"SELECT value FROM ({inner}) WHERE position = ?", [start, step, index])
        return row[0] if row else None

    async def values(self, table: str) -> list[str]:
        """All values, head first."""
        rows = await self.fetchall(f"SELECT value FROM {quote_ident(table)} ORDER BY sequence DESC")
        return [r[0] for r in rows]

    async def set_at(self, table: str, index: int, value: str) -> int:
        """Overwrite the value at a cache-style index. Returns affected rows."""
        start, step, order = counter_for(index)
        inner = build_positional_select(table, ["sequence"], order)
        sql = (
            f"UPDATE {quote_ident(table)} SET value = ?, updated_at = ? "
            f"WHERE sequence = (SELECT sequence FROM ({inner}) WHERE position = ?)"
        )
        return await self.execute_count(sql, [value, utcnow(), start, step, index])

    async def delete_tail(self, table: str) -> int:
        """Delete the tail element (lowest sequence)."""
        t = quote_ident(table)
        return await self.execute_count(f"DELETE FROM {t} WHERE sequence = (SELECT MIN(sequence) FROM {t})")
