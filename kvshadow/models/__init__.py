"""Models package - shadow table DDL per structure kind and shared entities."""

from kvshadow.keys import StructureKind
from kvshadow.models.common import CACHE, DURABLE, EXPIRY_DDL, BaseEntity, FailureEvent, TableInventory
from kvshadow.models.hash import HASH_DDL
from kvshadow.models.list import LIST_DDL
from kvshadow.models.set import SET_DDL
from kvshadow.models.sorted_set import SORTED_SET_DDL, ScoreBound
from kvshadow.models.string import STRING_DDL

STRUCTURE_DDL = {
    StructureKind.STRING: STRING_DDL,
    StructureKind.LIST: LIST_DDL,
    StructureKind.SET: SET_DDL,
    StructureKind.SORTED_SET: SORTED_SET_DDL,
    StructureKind.HASH: HASH_DDL,
}

__all__ = [
    # Common
    "BaseEntity",
    "FailureEvent",
    "DURABLE",
    "CACHE",
    "EXPIRY_DDL",
    "TableInventory",
    # Structures
    "STRING_DDL",
    "LIST_DDL",
    "SET_DDL",
    "SORTED_SET_DDL",
    "ScoreBound",
    "HASH_DDL",
    "STRUCTURE_DDL",
]
