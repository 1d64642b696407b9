# src/hubsweep/core/__init__.py
"""Core infrastructure: configuration, logging, clock, key layout, store and checkpoint."""

from hubsweep.core.checkpoint import CheckpointStore
from hubsweep.core.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from hubsweep.core.config import (
    DatabaseSettings,
    HubSettings,
    HubsweepSettings,
    JobSettings,
    MetricsSettings,
    load_settings,
)
from hubsweep.core.store import SqlKeyValueStore, StoreDB

__all__ = [
    "DEFAULT_CLOCK",
    "CheckpointStore",
    "Clock",
    "DatabaseSettings",
    "HubSettings",
    "HubsweepSettings",
    "JobSettings",
    "MetricsSettings",
    "MockClock",
    "SqlKeyValueStore",
    "StoreDB",
    "SystemClock",
    "load_settings",
]
