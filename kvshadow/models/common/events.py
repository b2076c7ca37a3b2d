"""Failure events delivered on the error channel."""

from dataclasses import dataclass
from typing import Literal

from kvshadow.models.common.base import BaseEntity

DURABLE = "durable"
CACHE = "cache"


@dataclass
class FailureEvent(BaseEntity):
    """An asynchronous failure the caller never sees as an exception."""

    kind: Literal["durable", "cache"]
    message: str
    key: str | tuple[str, ...] | None = None
