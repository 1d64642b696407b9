# src/hubsweep/engine/__init__.py
"""Sweep engine: resumable, checkpointed re-validation of hub messages.

This module provides:
- JobRunner: Full run lifecycle, checkpointing and the single-run guard
- EntityScanner: Per-fid signer-change and username sweeps
- EntitySource: Ordered enumeration of every fid
- JobScheduler: Recurring cron trigger
- SpanFactory: OpenTelemetry integration

Example:
    from hubsweep.core.checkpoint import CheckpointStore
    from hubsweep.core.store import SqlKeyValueStore, StoreDB
    from hubsweep.engine import EntityScanner, EntitySource, JobRunner, JobScheduler

    db = StoreDB("sqlite:///hub.db")
    scanner = EntityScanner(SqlKeyValueStore(db), hub, decode_message)
    runner = JobRunner(CheckpointStore(db, "validate_or_revoke_messages"), EntitySource(hub), scanner)

    scheduler = JobScheduler(runner)
    scheduler.start("0 1 * * *")
"""

from hubsweep.engine.metrics import LogMetricsSink, NullMetricsSink, OtelMetricsSink, create_metrics_sink
from hubsweep.engine.runner import JobRunner
from hubsweep.engine.scanner import EntityScanner
from hubsweep.engine.scheduler import JobScheduler
from hubsweep.engine.source import EntitySource
from hubsweep.engine.spans import SpanFactory

__all__ = [
    "EntityScanner",
    "EntitySource",
    "JobRunner",
    "JobScheduler",
    "LogMetricsSink",
    "NullMetricsSink",
    "OtelMetricsSink",
    "SpanFactory",
    "create_metrics_sink",
]
