"""Common models shared by all structures."""

from kvshadow.models.common.base import BaseEntity
from kvshadow.models.common.events import CACHE, DURABLE, FailureEvent
from kvshadow.models.common.expiry import EXPIRY_DDL
from kvshadow.models.common.inventory import TableInventory

__all__ = ["BaseEntity", "FailureEvent", "DURABLE", "CACHE", "EXPIRY_DDL", "TableInventory"]
