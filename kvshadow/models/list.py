"""List shadow table - `sequence` orders elements, highest is the head."""

LIST_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    sequence DOUBLE PRIMARY KEY,
    value VARCHAR,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""
