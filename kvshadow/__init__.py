"""kvshadow - a Redis client that mirrors every write into a DuckDB shadow."""

from kvshadow.client import ShadowClient
from kvshadow.config import ShadowConfig, StructurePrefixes
from kvshadow.errors import CacheFailure, ConfigError, ListIndexError, ShadowError, ValidationError
from kvshadow.keys import KeyMapper, LogicalKey, StructureKind
from kvshadow.models import FailureEvent, ScoreBound

__all__ = [
    "ShadowClient",
    "ShadowConfig",
    "StructurePrefixes",
    "KeyMapper",
    "LogicalKey",
    "StructureKind",
    "FailureEvent",
    "ScoreBound",
    "ShadowError",
    "ValidationError",
    "ConfigError",
    "CacheFailure",
    "ListIndexError",
]
