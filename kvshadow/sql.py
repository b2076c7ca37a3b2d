"""SQL string builders. Pure text composition; values are always bound parameters."""

from collections.abc import Iterable, Sequence


def quote_ident(name: str) -> str:
    """Quote an identifier (table or column) for DuckDB."""
    return '"' + name.replace('"', '""') + '"'


def build_values_clause(columns: int, rows: int = 1) -> str:
    """`VALUES (?, ?), (?, ?)` for `rows` rows of `columns` placeholders."""
    row = "(" + ", ".join("?" * columns) + ")"
    return "VALUES " + ", ".join([row] * rows)


def build_insert(table: str, columns: Sequence[str], rows: int = 1) -> str:
    cols = ", ".join(quote_ident(c) for c in columns)
    return f"INSERT INTO {quote_ident(table)} ({cols}) {build_values_clause(len(columns), rows)}"


def build_on_conflict(key: str, updates: dict[str, str] | None = None) -> str:
    """`ON CONFLICT` clause. `updates` maps column -> SQL expression; empty means DO NOTHING."""
    if not updates:
        return f" ON CONFLICT ({quote_ident(key)}) DO NOTHING"
    assignments = ", ".join(f"{quote_ident(col)} = {expr}" for col, expr in updates.items())
    return f" ON CONFLICT ({quote_ident(key)}) DO UPDATE SET {assignments}"


def build_where(columns: Iterable[str], joiner: str = "AND") -> str:
    """`WHERE a = ? AND b = ?`."""
    conditions = f" {joiner} ".join(f"{quote_ident(c)} = ?" for c in columns)
    return f" WHERE {conditions}" if conditions else ""


def build_select(table: str, columns: Sequence[str], where: Iterable[str] = (), order_by: str | None = None) -> str:
    cols = ", ".join(quote_ident(c) for c in columns)
    sql = f"SELECT {cols} FROM {quote_ident(table)}{build_where(where)}"
    if order_by:
        sql += f" ORDER BY {order_by}"
    return sql


def build_in(column: str, count: int) -> str:
    """`"col" IN (?, ?, ?)`."""
    return f"{quote_ident(column)} IN ({', '.join('?' * count)})"


def build_positional_select(table: str, columns: Sequence[str], order_by: str) -> str:
    """Rows of `table` with a synthetic running counter named `position`.

    The counter is `? + ? * row_number()` (start, step), so callers bind the
    starting counter and its step, matching a session-variable counter that
    starts at `start` and adds `step` per row in `order_by` order.
    """
    cols = ", ".join(quote_ident(c) for c in columns)
    return (
        f"SELECT {cols}, CAST(? AS BIGINT) + CAST(? AS BIGINT) * row_number() OVER (ORDER BY {order_by}) AS position "
        f"FROM {quote_ident(table)}"
    )
