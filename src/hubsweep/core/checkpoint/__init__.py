"""Checkpoint subsystem for crash recovery.

Provides:
- CheckpointStore: Read and write the sweep's single progress marker
"""

from hubsweep.core.checkpoint.store import CheckpointStore

__all__ = ["CheckpointStore"]
