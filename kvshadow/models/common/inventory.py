"""Shadow table inventory entries."""

from dataclasses import dataclass

from kvshadow.models.common.base import BaseEntity


@dataclass
class TableInventory(BaseEntity):
    """One shadow table and the cache key it mirrors."""

    table: str
    kind: str
    key: str
    rows: int
    cached: bool | None = None
