"""Sorted-set repository - rank emulated with a running counter over score order."""

from kvshadow.keys import StructureKind
from kvshadow.models import ScoreBound
from kvshadow.repositories.base import ShadowRepository, utcnow
from kvshadow.sql import build_insert, build_on_conflict, build_positional_select, build_select, quote_ident

COLUMNS = ("score", "member", "created_at", "updated_at")

# Ties on score order by member, like the cache does
ASCENDING = "score ASC, member ASC"
DESCENDING = "score DESC, member DESC"


class SortedSetRepository(ShadowRepository):
    """Durable access to sorted-set shadow tables."""

    kind = StructureKind.SORTED_SET

    async def add(self, table: str, pairs: list[tuple[float, str]]) -> None:
        """Upsert (score, member) pairs, overwriting scores of existing members."""
        latest = {member: score for score, member in pairs}
        now = utcnow()
        params: list = []
        for member, score in latest.items():
            params.extend([score, member, now, now])
        sql = build_insert(table, COLUMNS, rows=len(latest)) + build_on_conflict(
            "member", {"score": "excluded.score", "updated_at": "excluded.updated_at"}
        )
        await self.execute(sql, params)

    async def increment(self, table: str, delta: float, member: str) -> None:
        """Add `delta` to the durable score relative to whatever is stored."""
        now = utcnow()
        sql = build_insert(table, COLUMNS) + build_on_conflict(
            "member", {"score": "score + excluded.score", "updated_at": "excluded.updated_at"}
        )
        await self.execute(sql, [delta, member, now, now])

    async def score(self, table: str, member: str) -> float | None:
        row = await self.fetchone(build_select(table, ["score"], where=["member"]), [member])
        return float(row[0]) if row and row[0] is not None else None

    async def rank(self, table: str, member: str) -> int | None:
        """0-based rank by ascending score."""
        inner = build_positional_select(table, ["member"], ASCENDING)
        row = await self.fetchone(f"SELECT position FROM ({inner}) WHERE member = ?", [-1, 1, member])
        return int(row[0]) if row else None

    async def pairs(self, table: str) -> list[tuple[float, str]]:
        """All (score, member) pairs in ascending order."""
        rows = await self.fetchall(build_select(table, ["score", "member"], order_by=ASCENDING))
        return [(float(score), member) for score, member in rows]

    async def range_by_score(
        self,
        table: str,
        low: ScoreBound,
        high: ScoreBound,
        reverse: bool = False,
        offset: int | None = None,
        count: int | None = None,
    ) -> list[tuple[str, float]]:
        """(member, score) rows with `low <= score <= high`, honouring exclusive bounds."""
        conditions: list[str] = []
        params: list = []
        if not (low.infinite and low.value < 0):
            conditions.append("score > ?" if low.exclusive else "score >= ?")
            params.append(low.value)
        if not (high.infinite and high.value > 0):
            conditions.append("score < ?" if high.exclusive else "score <= ?")
            params.append(high.value)

        sql = f"SELECT member, score FROM {quote_ident(table)}"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += f" ORDER BY {DESCENDING if reverse else ASCENDING}"
        if offset is not None and count is not None:
            if count < 0:
                sql += " OFFSET ?"
                params.append(offset)
            else:
                sql += " LIMIT ? OFFSET ?"
                params.extend([count, offset])

        rows = await self.fetchall(sql, params)
        return [(member, float(score)) for member, score in rows]
