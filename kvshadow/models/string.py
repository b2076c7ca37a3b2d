"""String shadow table - many logical keys per bucket, keyed by identifier."""

STRING_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    "key" VARCHAR PRIMARY KEY,
    value VARCHAR,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""
