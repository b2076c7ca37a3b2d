"""Set shadow table."""

SET_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    member VARCHAR PRIMARY KEY,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""
