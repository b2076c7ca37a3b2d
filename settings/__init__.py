"""Application settings."""

import os
from pathlib import Path

# Durable store
DB_PATH = os.getenv("SHADOW_DB_PATH", "kvshadow.duckdb")

# Cache
REDIS_URL = os.getenv("SHADOW_REDIS_URL", "redis://localhost:6379/0")

# Structure prefixes (must be unique)
STRUCTURE_PREFIXES = {
    "string": os.getenv("SHADOW_PREFIX_STRING", "str"),
    "list": os.getenv("SHADOW_PREFIX_LIST", "lst"),
    "set": os.getenv("SHADOW_PREFIX_SET", "set"),
    "sorted_set": os.getenv("SHADOW_PREFIX_SORTED_SET", "zset"),
    "hash": os.getenv("SHADOW_PREFIX_HASH", "map"),
}

# Logging
LOG_DIR = Path(os.getenv("SHADOW_LOG_DIR", "logs"))
LOG_LEVEL = os.getenv("SHADOW_LOG_LEVEL", "INFO")
LOG_RETENTION = os.getenv("SHADOW_LOG_RETENTION", "7 days")

# Mirror
EXPIRY_TABLE = "expiry"
LIST_SEQUENCE_STEP = 1e-5
