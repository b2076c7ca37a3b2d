"""Key/table mapping: logical keys to cache keys and shadow table names."""

from dataclasses import dataclass
from enum import StrEnum

from kvshadow.config import KEY_DELIMITER, TABLE_DELIMITER, StructurePrefixes
from kvshadow.errors import ConfigError, ValidationError


class StructureKind(StrEnum):
    """Cache structure kinds mirrored into the durable store."""

    STRING = "string"
    LIST = "list"
    SET = "set"
    SORTED_SET = "sorted_set"
    HASH = "hash"


@dataclass(frozen=True)
class LogicalKey:
    """`prefix:bucket[:identifier]` with its derived cache key and table name."""

    kind: StructureKind
    prefix: str
    bucket: str
    identifier: str | None = None

    @property
    def cache_key(self) -> str:
        parts = [self.prefix, self.bucket]
        if self.identifier is not None:
            parts.append(self.identifier)
        return KEY_DELIMITER.join(parts)

    @property
    def table(self) -> str:
        return f"{self.prefix}{TABLE_DELIMITER}{self.bucket}"


class KeyMapper:
    """Pure mapping between structure kinds, prefixes, cache keys and tables."""

    def __init__(self, prefixes: StructurePrefixes):
        tokens = prefixes.as_dict()
        self._by_kind = {StructureKind(kind): token for kind, token in tokens.items()}
        self._by_prefix = {token: kind for kind, token in self._by_kind.items()}
        if len(self._by_prefix) != len(self._by_kind):
            raise ConfigError("Duplicate structure prefixes")

    def prefix(self, kind: StructureKind) -> str:
        return self._by_kind[kind]

    def kind_of(self, prefix: str) -> StructureKind:
        """Structure kind for a prefix token."""
        try:
            return self._by_prefix[prefix]
        except KeyError:
            raise ConfigError(f"Unknown structure prefix: {prefix!r}") from None

    def map_key(self, kind: StructureKind, bucket: str, identifier: str | None = None) -> LogicalKey:
        """Derive cache key and table name for a structure."""
        _check_segment("bucket", bucket)
        if identifier is not None and (not isinstance(identifier, str) or not identifier):
            raise ValidationError("`identifier` must be a non-empty string")
        return LogicalKey(kind=kind, prefix=self._by_kind[kind], bucket=bucket, identifier=identifier)

    def parse(self, cache_key: str) -> LogicalKey:
        """Split a full cache key into its logical parts.

        Raises ConfigError when the prefix is not configured and
        ValidationError when the key has no bucket segment or when a
        non-string key carries an identifier.
        """
        if not isinstance(cache_key, str) or KEY_DELIMITER not in cache_key:
            raise ValidationError(f"Key must have the form prefix:bucket[:id]: {cache_key!r}")

        prefix, bucket, *rest = cache_key.split(KEY_DELIMITER, 2)
        kind = self.kind_of(prefix)
        if not bucket:
            raise ValidationError(f"Key has an empty bucket: {cache_key!r}")
        if rest and kind is not StructureKind.STRING:
            raise ValidationError(f"Only string keys take an identifier: {cache_key!r}")
        identifier = rest[0] if rest and rest[0] else None
        return LogicalKey(kind=kind, prefix=prefix, bucket=bucket, identifier=identifier)

    def from_table(self, table: str) -> LogicalKey | None:
        """Logical key owning a shadow table, or None for foreign tables."""
        matches = [p for p in self._by_prefix if table.startswith(p + TABLE_DELIMITER)]
        if not matches:
            return None
        prefix = max(matches, key=len)
        bucket = table[len(prefix) + len(TABLE_DELIMITER) :]
        if not bucket:
            return None
        return LogicalKey(kind=self._by_prefix[prefix], prefix=prefix, bucket=bucket)


def _check_segment(name: str, value: str) -> None:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"`{name}` must be a non-empty string")
    if KEY_DELIMITER in value:
        raise ValidationError(f"`{name}` must not contain '{KEY_DELIMITER}': {value!r}")
