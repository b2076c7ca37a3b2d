"""Expiry table - one row per key ever given a TTL, shared by all structures."""

EXPIRY_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    "key" VARCHAR PRIMARY KEY,
    expiry_at TIMESTAMP,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""
