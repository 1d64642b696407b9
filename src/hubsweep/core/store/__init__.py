"""Hub store: database connection, table definitions and key-value access."""

from hubsweep.core.store.database import StoreDB
from hubsweep.core.store.kv import SqlKeyValueStore, prefix_upper_bound
from hubsweep.core.store.schema import job_checkpoints_table, kv_table, metadata

__all__ = [
    "SqlKeyValueStore",
    "StoreDB",
    "job_checkpoints_table",
    "kv_table",
    "metadata",
    "prefix_upper_bound",
]
