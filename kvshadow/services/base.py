"""Base command service - cache-first execution with background durable mirroring."""

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError

from kvshadow.errors import CacheFailure
from kvshadow.keys import KeyMapper, LogicalKey, StructureKind
from kvshadow.models import CACHE, DURABLE, FailureEvent
from kvshadow.repositories import ShadowRepository, is_missing_table

T = TypeVar("T")

ErrorHandler = Callable[[FailureEvent], None]
Thunk = Callable[[], Awaitable[Any]]

# Returned by `_durable_read` when the durable store failed with anything but a missing table
UNAVAILABLE = object()


class BackgroundTasks:
    """Tracks fire-and-forget durable work so callers can drain it."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until every spawned task, including ones spawned meanwhile, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def log_event(event: FailureEvent) -> None:
    """Default error channel."""
    logger.error("{} failure on {}: {}", event.kind, event.key, event.message)


class BaseCommands:
    """Shared plumbing for one structure family.

    The cache half of every command is awaited and its result returned. The
    durable half runs in a background task; its failures never reach the
    caller and are reported as FailureEvents instead, after the cache has been
    compensated where the command allows it.
    """

    kind: StructureKind

    def __init__(
        self,
        redis: Redis,
        repo: ShadowRepository,
        mapper: KeyMapper,
        tasks: BackgroundTasks,
        on_error: ErrorHandler | None = None,
    ):
        self._redis = redis
        self._repo = repo
        self._mapper = mapper
        self._tasks = tasks
        self._on_error = on_error or log_event
        logger.debug("{} initialized", self.__class__.__name__)

    def _key(self, bucket: str, identifier: str | None = None) -> LogicalKey:
        return self._mapper.map_key(self.kind, bucket, identifier)

    # Error channel

    def report(self, kind: str, message: str, key: str | tuple[str, ...] | None = None) -> None:
        event = FailureEvent(kind=kind, message=message, key=key)
        try:
            self._on_error(event)
        except Exception:
            logger.exception("Error handler failed for {}", event)

    # Cache half

    async def _cache(self, key: str, awaitable: Awaitable[T]) -> T:
        """Await a cache call, surfacing cache errors as CacheFailure."""
        try:
            return await awaitable
        except RedisError as e:
            raise CacheFailure(str(e), key) from e

    async def _pipeline(self, key: str, build: Callable[[Any], None]) -> list:
        """Queue commands with `build(pipe)` and run them as one MULTI/EXEC."""
        async with self._redis.pipeline(transaction=True) as pipe:
            build(pipe)
            return await self._cache(key, pipe.execute())

    # Durable half

    async def _durable_read(self, key: LogicalKey, read: Thunk, default: Any = None, failed: Any = None) -> Any:
        """Read-through query.

        A missing table reads as `default`; other failures are reported and read as `failed`.
        """
        try:
            return await read()
        except Exception as e:
            if is_missing_table(e):
                logger.debug("No shadow table for {}", key.cache_key)
                return default
            self.report(DURABLE, str(e), key.cache_key)
            return failed if failed is not None else default

    def _mirror(
        self, key: LogicalKey, command: str, write: Thunk, compensate: Thunk | None = None, create: bool = True
    ) -> None:
        """Schedule the durable half of a mutation."""
        self._tasks.spawn(self._run_mirror(key, command, write, compensate, create))

    async def _run_mirror(
        self, key: LogicalKey, command: str, write: Thunk, compensate: Thunk | None, create: bool
    ) -> None:
        try:
            if create:
                await self._repo.ensure_table(key.table)
            await write()
            logger.info("{} mirrored to {}", command, key.table)
        except Exception as e:
            if not create and is_missing_table(e):
                logger.warning("Table does not exist: {}", key.table)
                return
            self.report(DURABLE, f"{command}: {e}", key.cache_key)
            if compensate is not None:
                await self._compensate(key, command, compensate)

    async def _compensate(self, key: LogicalKey, command: str, compensate: Thunk) -> None:
        try:
            await compensate()
            logger.warning("Compensated {} on {}", command, key.cache_key)
        except RedisError as e:
            self.report(CACHE, f"{command} compensation: {e}", key.cache_key)

    def _backfill(self, key: LogicalKey, command: str, write: Thunk) -> None:
        """Write a durable read back into the cache, fire-and-forget."""
        self._tasks.spawn(self._run_backfill(key, command, write))

    async def _run_backfill(self, key: LogicalKey, command: str, write: Thunk) -> None:
        try:
            await write()
            logger.debug("{} backfilled {}", command, key.cache_key)
        except RedisError as e:
            self.report(CACHE, f"{command} backfill: {e}", key.cache_key)

    # Whole-structure hooks used by the generic commands

    async def rehydrate(self, key: LogicalKey) -> bool:
        """Load a structure from the durable store back into the cache. True if found."""
        raise NotImplementedError

    async def purge(self, key: LogicalKey) -> None:
        """Remove a deleted structure from the durable store."""
        await self._repo.drop_table(key.table)
