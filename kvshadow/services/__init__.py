"""Services package - command families over the cache and its durable shadow."""

from kvshadow.services.base import BackgroundTasks, BaseCommands, ErrorHandler, log_event
from kvshadow.services.generic import GenericCommands
from kvshadow.services.hash import HashCommands
from kvshadow.services.list import ListCommands
from kvshadow.services.set import SetCommands
from kvshadow.services.sorted_set import SortedSetCommands
from kvshadow.services.string import StringCommands

__all__ = [
    "BackgroundTasks",
    "BaseCommands",
    "ErrorHandler",
    "log_event",
    "StringCommands",
    "ListCommands",
    "SetCommands",
    "SortedSetCommands",
    "HashCommands",
    "GenericCommands",
]
