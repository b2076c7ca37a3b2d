"""Repositories package - durable access layer for shadow tables."""

from kvshadow.repositories.base import BaseRepository, ShadowRepository, utcnow
from kvshadow.repositories.db import Database, connect, is_missing_table
from kvshadow.repositories.expiry import ExpiryRepository
from kvshadow.repositories.hash import HashRepository
from kvshadow.repositories.list import ListRepository
from kvshadow.repositories.schema import SchemaRepository
from kvshadow.repositories.set import SetRepository
from kvshadow.repositories.sorted_set import SortedSetRepository
from kvshadow.repositories.string import StringRepository

__all__ = [
    # DB
    "Database",
    "connect",
    "is_missing_table",
    # Base
    "BaseRepository",
    "ShadowRepository",
    "utcnow",
    "SchemaRepository",
    # Structures
    "StringRepository",
    "ListRepository",
    "SetRepository",
    "SortedSetRepository",
    "HashRepository",
    # Common
    "ExpiryRepository",
]
