"""Hash shadow table."""

HASH_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    field VARCHAR PRIMARY KEY,
    value VARCHAR,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""
