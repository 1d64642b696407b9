"""Result types returned across component boundaries.

Each component reports what happened through these values rather than
through logging alone, so callers and tests can tell skip, continue and
timeout cases apart.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Self

from hubsweep.contracts.enums import RunStatus, SweepKind


@dataclass(frozen=True, slots=True)
class FidsPage:
    """One page of fids in ascending order.

    next_page_token is None on the last page.
    """

    fids: Sequence[int]
    next_page_token: bytes | None = None


@dataclass(frozen=True, slots=True)
class OnChainEvent:
    """An on-chain signer event for a fid.

    Only the block timestamp (Unix seconds) matters to the sweep.
    """

    fid: int
    block_timestamp: int


@dataclass(frozen=True, slots=True)
class OnChainEventsPage:
    """One page of signer events; next_page_token is None on the last page."""

    events: Sequence[OnChainEvent]
    next_page_token: bytes | None = None


@dataclass(frozen=True, slots=True)
class IterationResult:
    """Outcome of a time-boxed prefix iteration.

    Attributes:
        visited: Number of keys handed to the callback
        timed_out: True if the time box expired before the prefix was exhausted
    """

    visited: int
    timed_out: bool = False


@dataclass(frozen=True, slots=True)
class EntityScanResult:
    """Tally of one sweep over one fid.

    ``checked`` counts messages that decoded and were passed to validation,
    including the ones whose validation failed (``errors``).
    """

    fid: int
    kind: SweepKind
    checked: int = 0
    revoked: int = 0
    errors: int = 0
    skipped_stale: bool = False
    timed_out: bool = False

    @classmethod
    def stale(cls, fid: int) -> Self:
        """Result for a fid whose signers have not changed since the last run."""
        return cls(fid=fid, kind=SweepKind.SIGNER_CHANGE, skipped_stale=True)


@dataclass(slots=True)
class RunCounters:
    """Mutable totals accumulated while a run is in progress."""

    messages_checked: int = 0
    fids_checked: int = 0
    revoked: int = 0
    errors: int = 0
    timed_out_fids: list[int] = field(default_factory=list)

    def add(self, result: EntityScanResult) -> None:
        self.messages_checked += result.checked
        self.revoked += result.revoked
        self.errors += result.errors
        if result.timed_out and result.fid not in self.timed_out_fids:
            self.timed_out_fids.append(result.fid)


@dataclass(frozen=True, slots=True)
class RunResult:
    """Summary of one trigger of the job."""

    status: RunStatus
    messages_checked: int = 0
    fids_checked: int = 0
    revoked: int = 0
    errors: int = 0
    timed_out_fids: tuple[int, ...] = ()
    duration_ms: float = 0.0
    resumed_from_fid: int = 0

    @classmethod
    def skipped(cls) -> Self:
        """Zero-count result for a trigger that found a run already in progress."""
        return cls(status=RunStatus.SKIPPED)

    @classmethod
    def completed(cls, counters: RunCounters, *, duration_ms: float, resumed_from_fid: int) -> Self:
        return cls(
            status=RunStatus.COMPLETED,
            messages_checked=counters.messages_checked,
            fids_checked=counters.fids_checked,
            revoked=counters.revoked,
            errors=counters.errors,
            timed_out_fids=tuple(counters.timed_out_fids),
            duration_ms=duration_ms,
            resumed_from_fid=resumed_from_fid,
        )
