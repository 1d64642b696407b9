# tests/fixtures/hub.py
"""In-memory hub collaborators.

FakeHubEngine pages fids and signer events with integer offsets encoded as
page tokens, and records every call so tests can assert on paging and on
which messages reached validation.
"""

from __future__ import annotations

import asyncio
import hashlib
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from hubsweep.contracts import (
    Checkpoint,
    FidsPage,
    HubError,
    HubServices,
    MessageDecodeError,
    OnChainEvent,
    OnChainEventsPage,
)
from hubsweep.core.checkpoint import CheckpointStore
from hubsweep.core.keys import TIMESTAMP_LENGTH, make_message_key

if TYPE_CHECKING:
    from hubsweep.contracts import HubMessage
    from hubsweep.core.config import HubsweepSettings
    from hubsweep.core.store import SqlKeyValueStore, StoreDB

_MAGIC = b"MSG:"


@dataclass(frozen=True)
class FakeMessage:
    hash: bytes


def encode_message(message_hash: bytes) -> bytes:
    return _MAGIC + message_hash


def decode_message(data: bytes) -> FakeMessage:
    if not data.startswith(_MAGIC):
        raise MessageDecodeError(f"not a message: {data[:8]!r}")
    return FakeMessage(hash=data[len(_MAGIC) :])


def message_hash(fid: int, postfix: int, n: int) -> bytes:
    return hashlib.sha1(f"{fid}:{postfix}:{n}".encode()).digest()


def seed_message(kv: SqlKeyValueStore, fid: int, postfix: int, n: int = 0) -> bytes:
    """Store one message under (fid, postfix) and return its hash."""
    h = message_hash(fid, postfix, n)
    ts_hash = n.to_bytes(TIMESTAMP_LENGTH, "big") + h
    kv.put(make_message_key(fid, postfix, ts_hash), encode_message(h))
    return h


def seed_raw(kv: SqlKeyValueStore, key: bytes, value: bytes) -> None:
    kv.put(key, value)


def _offset(page_token: bytes | None) -> int:
    return int.from_bytes(page_token, "big") if page_token else 0


def _token(offset: int, total: int) -> bytes | None:
    return offset.to_bytes(4, "big") if offset < total else None


class FakeHubEngine:
    """Hub engine double.

    Args:
        fids: Fids served by get_fids, in the order given
        signer_events: Block timestamps (Unix seconds) per fid
        signer_page_size: Events per signer page
        revoke: Message hashes that validation revokes
        fail_validation: Message hashes whose validation raises HubError
        fail_fids_from: get_fids raises once the page offset reaches this
        fail_signers_for: Fids whose signer lookup raises HubError
        on_validate: Hook called with each message before validation
    """

    def __init__(
        self,
        fids: Iterable[int] = (),
        *,
        signer_events: dict[int, list[int]] | None = None,
        signer_page_size: int = 2,
        revoke: Iterable[bytes] = (),
        fail_validation: Iterable[bytes] = (),
        fail_fids_from: int | None = None,
        fail_signers_for: Iterable[int] = (),
        on_validate: Callable[[HubMessage], None] | None = None,
    ) -> None:
        self.fids = list(fids)
        self.signer_events = signer_events or {}
        self.signer_page_size = signer_page_size
        self.revoke = set(revoke)
        self.fail_validation = set(fail_validation)
        self.fail_fids_from = fail_fids_from
        self.fail_signers_for = set(fail_signers_for)
        self.on_validate = on_validate

        self.fids_calls: list[bytes | None] = []
        self.signer_calls: list[tuple[int, bytes | None]] = []
        self.validated: list[bytes] = []

        # Set gate to an unset Event to hold validation until the test releases it
        self.gate: asyncio.Event | None = None
        self.validation_started = asyncio.Event()

    async def get_fids(self, page_token: bytes | None, page_size: int) -> FidsPage:
        self.fids_calls.append(page_token)
        start = _offset(page_token)
        if self.fail_fids_from is not None and start >= self.fail_fids_from:
            raise HubError("unavailable.network_failure", "hub unreachable")
        end = start + page_size
        return FidsPage(fids=self.fids[start:end], next_page_token=_token(end, len(self.fids)))

    async def get_onchain_signers_by_fid(self, fid: int, page_token: bytes | None) -> OnChainEventsPage:
        self.signer_calls.append((fid, page_token))
        if fid in self.fail_signers_for:
            raise HubError("unavailable.storage_failure", f"no signers for {fid}")
        timestamps = self.signer_events.get(fid, [])
        start = _offset(page_token)
        end = start + self.signer_page_size
        events = [OnChainEvent(fid=fid, block_timestamp=ts) for ts in timestamps[start:end]]
        return OnChainEventsPage(events=events, next_page_token=_token(end, len(timestamps)))

    async def validate_or_revoke_message(self, message: HubMessage) -> bool:
        self.validated.append(message.hash)
        self.validation_started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.on_validate is not None:
            self.on_validate(message)
        if message.hash in self.fail_validation:
            raise HubError("bad_request.validation_failure", "invalid signer")
        return message.hash in self.revoke


class RecordingCheckpointStore(CheckpointStore):
    """CheckpointStore that remembers every checkpoint written."""

    def __init__(self, db: StoreDB, job_name: str = "test_job") -> None:
        super().__init__(db, job_name)
        self.puts: list[Checkpoint] = []

    def put(self, checkpoint: Checkpoint) -> None:
        self.puts.append(checkpoint)
        super().put(checkpoint)


class RecordingMetricsSink:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.timings: list[tuple[str, float]] = []
        self.gauges: list[tuple[str, float]] = []

    def timing(self, name: str, value_ms: float) -> None:
        if self.fail:
            raise ConnectionError("statsd unreachable")
        self.timings.append((name, value_ms))

    def gauge(self, name: str, value: float) -> None:
        if self.fail:
            raise ConnectionError("statsd unreachable")
        self.gauges.append((name, value))


def build_fake_services(settings: HubsweepSettings) -> HubServices:
    """Hub factory for CLI tests: fids 1..3, no signer events."""
    return HubServices(engine=FakeHubEngine([1, 2, 3]), decoder=decode_message)


def build_failing_services(settings: HubsweepSettings) -> HubServices:
    """Hub factory for CLI tests whose fid listing always fails."""
    return HubServices(engine=FakeHubEngine([1, 2, 3], fail_fids_from=0), decoder=decode_message)


def build_wrong_type(settings: HubsweepSettings) -> object:
    return {"engine": None}


class _CrashingHubEngine(FakeHubEngine):
    async def get_onchain_signers_by_fid(self, fid: int, page_token: bytes | None) -> OnChainEventsPage:
        raise ConnectionResetError("connection reset by peer")


def build_crashing_services(settings: HubsweepSettings) -> HubServices:
    """Hub factory for CLI tests whose signer lookup fails with a non-hub error."""
    return HubServices(engine=_CrashingHubEngine([1, 2, 3]), decoder=decode_message)
