"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core/engine.
Settings classes live in hubsweep.core.config.
"""

from hubsweep.contracts.checkpoint import ZERO_CHECKPOINT, Checkpoint
from hubsweep.contracts.enums import (
    JobState,
    RootPrefix,
    RunStatus,
    SchedulerStatus,
    SkipReason,
    SweepKind,
    UserPostfix,
    ValidationOutcome,
)
from hubsweep.contracts.errors import (
    CheckpointReadError,
    CheckpointWriteError,
    EntityOrderError,
    EntityPageError,
    HubError,
    MessageDecodeError,
    ScanAbortedError,
    SignerEventsError,
)
from hubsweep.contracts.protocols import (
    HubEngine,
    HubMessage,
    HubServices,
    KeyCallback,
    KeyValueStore,
    MessageDecoder,
    MetricsSink,
)
from hubsweep.contracts.results import (
    EntityScanResult,
    FidsPage,
    IterationResult,
    OnChainEvent,
    OnChainEventsPage,
    RunCounters,
    RunResult,
)

__all__ = [
    "ZERO_CHECKPOINT",
    "Checkpoint",
    "CheckpointReadError",
    "CheckpointWriteError",
    "EntityOrderError",
    "EntityPageError",
    "EntityScanResult",
    "FidsPage",
    "HubEngine",
    "HubError",
    "HubMessage",
    "HubServices",
    "IterationResult",
    "JobState",
    "KeyCallback",
    "KeyValueStore",
    "MessageDecodeError",
    "MessageDecoder",
    "MetricsSink",
    "OnChainEvent",
    "OnChainEventsPage",
    "RootPrefix",
    "RunCounters",
    "RunResult",
    "RunStatus",
    "ScanAbortedError",
    "SchedulerStatus",
    "SignerEventsError",
    "SkipReason",
    "SweepKind",
    "UserPostfix",
    "ValidationOutcome",
]
