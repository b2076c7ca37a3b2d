"""Sorted-set shadow table - one score per member."""

import math
from dataclasses import dataclass

SORTED_SET_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    score DOUBLE,
    member VARCHAR PRIMARY KEY,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""


@dataclass(frozen=True)
class ScoreBound:
    """One end of a score range: `value`, exclusive when written as `(value`."""

    value: float
    exclusive: bool = False

    @property
    def infinite(self) -> bool:
        return math.isinf(self.value)

    def to_cache_arg(self) -> str:
        text = "+inf" if self.value == math.inf else "-inf" if self.value == -math.inf else repr(self.value)
        return f"({text}" if self.exclusive else text
