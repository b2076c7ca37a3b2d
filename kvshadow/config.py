"""Immutable engine configuration, validated once at startup."""

from pydantic import BaseModel, ConfigDict, model_validator

import settings
from kvshadow.errors import ConfigError

KEY_DELIMITER = ":"
TABLE_DELIMITER = "_"


class StructurePrefixes(BaseModel):
    """Key prefix token per structure kind."""

    model_config = ConfigDict(frozen=True)

    string: str | None = None
    list: str | None = None
    set: str | None = None
    sorted_set: str | None = None
    hash: str | None = None

    @model_validator(mode="after")
    def _check_tokens(self) -> "StructurePrefixes":
        tokens = self.model_dump()
        missing = [kind for kind, token in tokens.items() if not token]
        if missing:
            raise ConfigError(f"All structure prefixes must be defined, missing: {', '.join(missing)}")

        for kind, token in tokens.items():
            if KEY_DELIMITER in token:
                raise ConfigError(f"Prefix for {kind} must not contain '{KEY_DELIMITER}': {token!r}")

        seen: dict[str, str] = {}
        for kind, token in tokens.items():
            if token in seen:
                raise ConfigError(f"Duplicate prefix {token!r} for {seen[token]} and {kind}. Prefixes must be unique")
            seen[token] = kind
        return self

    def as_dict(self) -> dict[str, str]:
        """Structure kind -> prefix token."""
        return self.model_dump()


class ShadowConfig(BaseModel):
    """Connection settings plus structure prefixes."""

    model_config = ConfigDict(frozen=True)

    db_path: str | None = None
    redis_url: str | None = None
    prefixes: StructurePrefixes = StructurePrefixes(
        string="str", list="lst", set="set", sorted_set="zset", hash="map"
    )
    expiry_table: str = settings.EXPIRY_TABLE
    list_sequence_step: float = settings.LIST_SEQUENCE_STEP

    @model_validator(mode="after")
    def _check_connections(self) -> "ShadowConfig":
        if not self.db_path:
            raise ConfigError("Please specify the durable database path")
        if not self.redis_url:
            raise ConfigError("Please specify the cache URL")
        if self.list_sequence_step <= 0:
            raise ConfigError("list_sequence_step must be positive")
        return self

    @classmethod
    def from_settings(cls) -> "ShadowConfig":
        """Build configuration from environment-driven settings."""
        return cls(
            db_path=settings.DB_PATH,
            redis_url=settings.REDIS_URL,
            prefixes=StructurePrefixes(**settings.STRUCTURE_PREFIXES),
        )
