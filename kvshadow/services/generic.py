"""Key-level commands - DEL, EXISTS, RENAME, EXPIRE."""

from datetime import timedelta

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError

from kvshadow.errors import ConfigError, ValidationError
from kvshadow.keys import KeyMapper, LogicalKey, StructureKind
from kvshadow.models import CACHE, DURABLE, TableInventory
from kvshadow.repositories import (
    ExpiryRepository,
    SchemaRepository,
    StringRepository,
    is_missing_table,
    utcnow,
)
from kvshadow.services.base import BackgroundTasks, BaseCommands, ErrorHandler, Thunk
from kvshadow.services.validation import require, require_int, require_str, require_strings


class GenericCommands(BaseCommands):
    """Commands addressed by full cache key, dispatched to a family by prefix."""

    def __init__(
        self,
        redis: Redis,
        mapper: KeyMapper,
        tasks: BackgroundTasks,
        families: dict[StructureKind, BaseCommands],
        schema: SchemaRepository,
        expiry: ExpiryRepository,
        strings: StringRepository,
        on_error: ErrorHandler | None = None,
    ):
        super().__init__(redis, strings, mapper, tasks, on_error)
        self._families = families
        self._schema = schema
        self._expiry = expiry
        self._strings = strings

    def _parse(self, cache_key: str) -> LogicalKey | None:
        """Logical key for a cache key, or None if it is not a mirrored key."""
        try:
            return self._mapper.parse(cache_key)
        except (ConfigError, ValidationError) as e:
            logger.debug("Not a mirrored key {}: {}", cache_key, e)
            return None

    async def delete(self, keys: str | list[str]) -> int:
        """Delete keys from the cache, then their durable rows or tables."""
        require("DEL", keys)
        keys = require_strings("DEL", "keys", keys)

        removed = await self._cache(keys[0], self._redis.delete(*keys))
        for cache_key in keys:
            logical = self._parse(cache_key)
            if logical is not None:
                self._tasks.spawn(self._purge(logical))
        return removed

    async def _purge(self, key: LogicalKey) -> None:
        try:
            await self._families[key.kind].purge(key)
        except Exception as e:
            if is_missing_table(e):
                logger.warning("Table does not exist: {}", key.table)
                return
            self.report(DURABLE, f"DEL: {e}", key.cache_key)

    async def exists(self, key: str) -> int:
        """1 if the key is in the cache or the durable store; a durable hit is loaded back."""
        require("EXISTS", key)
        key = require_str("EXISTS", "key", key)

        if await self._cache(key, self._redis.exists(key)):
            return 1

        logical = self._parse(key)
        if logical is None:
            return 0
        found = await self._families[logical.kind].rehydrate(logical)
        return int(found)

    async def expire(self, key: str, seconds: int) -> int:
        require("EXPIRE", key, seconds)
        key = require_str("EXPIRE", "key", key)
        seconds = require_int("EXPIRE", "seconds", seconds)

        applied = await self._cache(key, self._redis.expire(key, seconds))
        if applied:
            self._tasks.spawn(self._record_expiry(key, seconds))
        return int(bool(applied))

    async def _record_expiry(self, key: str, seconds: int) -> None:
        try:
            await self._expiry.ensure_table()
            await self._expiry.upsert(key, utcnow() + timedelta(seconds=seconds))
        except Exception as e:
            self.report(DURABLE, f"EXPIRE: {e}", key)

    async def rename(self, key: str, new_key: str) -> str:
        """Rename within one structure kind; the durable side follows in the background."""
        require("RENAME", key, new_key)
        old = self._parse_for_rename(require_str("RENAME", "key", key))
        new = self._parse_for_rename(require_str("RENAME", "newKey", new_key))
        if old.prefix != new.prefix:
            raise ValidationError("RENAME keys must share the same prefix")
        if (old.identifier is None) != (new.identifier is None):
            raise ValidationError("RENAME keys must have the same shape")
        if old.kind is StructureKind.STRING and old.identifier is None:
            raise ValidationError("RENAME string keys must have the form prefix:bucket:identifier")

        await self._cache(key, self._redis.rename(key, new_key))
        if old != new:
            self._tasks.spawn(self._rename_durable(old, new))
        return "OK"

    def _parse_for_rename(self, cache_key: str) -> LogicalKey:
        try:
            return self._mapper.parse(cache_key)
        except ConfigError as e:
            raise ValidationError(f"RENAME {e}") from e

    async def _rename_durable(self, old: LogicalKey, new: LogicalKey) -> None:
        # Each completed step pushes its inverse
        undo: list[Thunk] = []
        keys = (old.cache_key, new.cache_key)
        try:
            if old.kind is StructureKind.STRING:
                await self._strings.ensure_table(new.table)
                try:
                    await self._strings.move(old.table, new.table, old.identifier, new.identifier)
                except Exception as e:
                    if not is_missing_table(e):
                        raise
                    logger.warning("Table does not exist: {}", old.table)
                else:
                    undo.append(lambda: self._strings.move(new.table, old.table, new.identifier, old.identifier))
            elif old.table != new.table:
                # The cache overwrote the destination key, so does the durable side
                await self._schema.drop_table(new.table)
                try:
                    await self._schema.rename_table(old.table, new.table)
                except Exception as e:
                    if not is_missing_table(e):
                        raise
                    logger.warning("Table does not exist: {}", old.table)
                else:
                    undo.append(lambda: self._schema.rename_table(new.table, old.table))

            await self._expiry.rename_key(old.cache_key, new.cache_key)
            undo.append(lambda: self._expiry.rename_key(new.cache_key, old.cache_key))
            if old.kind is StructureKind.STRING and old.table != new.table:
                await self._strings.drop_table_if_empty(old.table)
        except Exception as e:
            self.report(DURABLE, f"RENAME: {e}", keys)
            await self._rollback_rename(old, new, undo)
            return
        logger.info("Renamed {} -> {}", old.cache_key, new.cache_key)

    async def _rollback_rename(self, old: LogicalKey, new: LogicalKey, undo: list[Thunk]) -> None:
        keys = (old.cache_key, new.cache_key)
        for step in reversed(undo):
            try:
                await step()
            except Exception as e:
                self.report(DURABLE, f"RENAME rollback: {e}", keys)
        try:
            await self._redis.rename(new.cache_key, old.cache_key)
        except RedisError as e:
            self.report(CACHE, f"RENAME compensation: {e}", keys)

    async def inventory(self) -> list[TableInventory]:
        """Shadow tables with their row counts and whether the cache holds the structure."""
        entries = []
        for table in await self._schema.tables():
            logical = self._mapper.from_table(table)
            if table == self._expiry.table or logical is None:
                continue
            cached = None
            # String tables hold many cache keys, one per row
            if logical.kind is not StructureKind.STRING:
                cached = bool(await self._cache(logical.cache_key, self._redis.exists(logical.cache_key)))
            entries.append(
                TableInventory(
                    table=table,
                    kind=str(logical.kind),
                    key=logical.cache_key,
                    rows=await self._schema.row_count(table),
                    cached=cached,
                )
            )
        logger.info("Inventory: {} shadow tables", len(entries))
        return entries
