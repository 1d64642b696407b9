# tests/unit/contracts/test_results.py
"""Tests for result types and run counters."""

from hubsweep.contracts import EntityScanResult, RunCounters, RunResult, RunStatus, SweepKind


class TestRunCounters:
    def test_add_accumulates(self) -> None:
        counters = RunCounters()
        counters.add(EntityScanResult(fid=1, kind=SweepKind.SIGNER_CHANGE, checked=4, revoked=1, errors=1))
        counters.add(EntityScanResult(fid=1, kind=SweepKind.USERNAME, checked=2))

        assert counters.messages_checked == 6
        assert counters.revoked == 1
        assert counters.errors == 1
        assert counters.fids_checked == 0

    def test_timed_out_fid_recorded_once(self) -> None:
        counters = RunCounters()
        counters.add(EntityScanResult(fid=9, kind=SweepKind.SIGNER_CHANGE, timed_out=True))
        counters.add(EntityScanResult(fid=9, kind=SweepKind.USERNAME, timed_out=True))

        assert counters.timed_out_fids == [9]

    def test_stale_result_counts_nothing(self) -> None:
        counters = RunCounters()
        stale = EntityScanResult.stale(3)
        counters.add(stale)

        assert stale.skipped_stale
        assert stale.kind is SweepKind.SIGNER_CHANGE
        assert counters.messages_checked == 0


class TestRunResult:
    def test_skipped_is_zero(self) -> None:
        result = RunResult.skipped()

        assert result.status is RunStatus.SKIPPED
        assert result.messages_checked == 0
        assert result.fids_checked == 0

    def test_completed_copies_counters(self) -> None:
        counters = RunCounters(messages_checked=7, fids_checked=3, revoked=2, errors=1, timed_out_fids=[2])
        result = RunResult.completed(counters, duration_ms=12.5, resumed_from_fid=2)

        assert result.status is RunStatus.COMPLETED
        assert (result.messages_checked, result.fids_checked, result.revoked, result.errors) == (7, 3, 2, 1)
        assert result.timed_out_fids == (2,)
        assert result.duration_ms == 12.5
        assert result.resumed_from_fid == 2
