# src/hubsweep/core/store/schema.py
"""SQLAlchemy table definitions for the hub store.

Uses SQLAlchemy Core (not ORM) for explicit control over queries
and compatibility with multiple database backends.
"""

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    Text,
)

# Shared metadata for all tables
metadata = MetaData()

# === Messages and indexes ===

# Ordered byte keys; prefix scans rely on the primary key ordering.
kv_table = Table(
    "kv",
    metadata,
    Column("key", LargeBinary(64), primary_key=True),
    Column("value", LargeBinary, nullable=False),
)

# === Job state ===

# One row per job; the sweep is the only writer of its own row.
job_checkpoints_table = Table(
    "job_checkpoints",
    metadata,
    Column("job_name", String(64), primary_key=True),
    Column("state_json", Text, nullable=False),
    Column("format_version", Integer, nullable=True),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)
