# tests/fixtures/__init__.py
"""Shared test doubles for hubsweep tests.

Available helpers:
- FakeHubEngine: in-memory hub engine with paging, failures and hooks
- decode_message / encode_message: toy wire format for stored messages
- seed_message: write one message record into a SqlKeyValueStore
"""

from tests.fixtures.hub import (
    FakeHubEngine,
    FakeMessage,
    RecordingCheckpointStore,
    RecordingMetricsSink,
    decode_message,
    encode_message,
    seed_message,
    seed_raw,
)

__all__ = [
    "FakeHubEngine",
    "FakeMessage",
    "RecordingCheckpointStore",
    "RecordingMetricsSink",
    "decode_message",
    "encode_message",
    "seed_message",
    "seed_raw",
]
