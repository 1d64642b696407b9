# src/hubsweep/engine/runner.py
"""JobRunner: one full, resumable sweep over every fid.

Run protocol:
1. Read the checkpoint (watermark + resume fid).
2. Page through all fids from the first page.
3. Skip fids below the resume fid.
4. Run the signer-change sweep and the username sweep for each fid.
5. Every checkpoint_interval fids, persist (watermark unchanged, fid).
6. After the last page, persist (run-start time, 0) so the next run
   starts from scratch with a fresh watermark.
7. Emit run duration and messages checked.

Fids are processed strictly one at a time so that every checkpoint marks
an exact prefix of completed fids.
"""

from __future__ import annotations

import asyncio
import uuid

import structlog
from sqlalchemy.exc import SQLAlchemyError

from hubsweep.contracts import (
    Checkpoint,
    CheckpointWriteError,
    JobState,
    MetricsSink,
    RunCounters,
    RunResult,
    ScanAbortedError,
)
from hubsweep.core.checkpoint import CheckpointStore
from hubsweep.core.clock import DEFAULT_CLOCK, Clock
from hubsweep.core.keys import to_farcaster_time_or_zero
from hubsweep.core.logging import run_log_context
from hubsweep.engine.metrics import NullMetricsSink, emit_gauge, emit_timing
from hubsweep.engine.scanner import EntityScanner
from hubsweep.engine.source import EntitySource
from hubsweep.engine.spans import SpanFactory

logger = structlog.get_logger(__name__)

DEFAULT_CHECKPOINT_INTERVAL = 5000
DEFAULT_METRICS_PREFIX = "validate_or_revoke_messages_job"


class JobRunner:
    """Drives the sweep and owns the single-run guard.

    The guard is an asyncio.Lock used as a single-slot ownership token: a
    trigger that finds it held returns RunResult.skipped() immediately
    instead of queueing. It is in-process only; running several processes
    against one store needs external coordination.

    Example:
        runner = JobRunner(checkpoints, EntitySource(hub), scanner)
        result = await runner.run()
    """

    def __init__(
        self,
        checkpoints: CheckpointStore,
        source: EntitySource,
        scanner: EntityScanner,
        *,
        checkpoint_interval: int = DEFAULT_CHECKPOINT_INTERVAL,
        metrics: MetricsSink | None = None,
        metrics_prefix: str = DEFAULT_METRICS_PREFIX,
        clock: Clock | None = None,
        span_factory: SpanFactory | None = None,
    ) -> None:
        """Initialize runner.

        Args:
            checkpoints: Store for the job's checkpoint
            source: Fid enumeration
            scanner: Per-fid sweeps
            checkpoint_interval: Persist progress every N processed fids
            metrics: Sink for run metrics (default: discard)
            metrics_prefix: Prefix for metric names
            clock: Time source (default: system clock)
            span_factory: Optional tracing
        """
        if checkpoint_interval < 1:
            raise ValueError(f"checkpoint_interval must be >= 1, got {checkpoint_interval}")
        self._checkpoints = checkpoints
        self._source = source
        self._scanner = scanner
        self._checkpoint_interval = checkpoint_interval
        self._metrics = metrics or NullMetricsSink()
        self._metrics_prefix = metrics_prefix
        self._clock = clock or DEFAULT_CLOCK
        self._spans = span_factory or SpanFactory()
        self._guard = asyncio.Lock()
        self._state = JobState.IDLE
        self._current_fid: int | None = None

    @property
    def state(self) -> JobState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._guard.locked()

    async def run(self) -> RunResult:
        """Run one full sweep, or do nothing if a sweep is already running.

        Returns:
            COMPLETED result with totals, or a zero-count SKIPPED result

        Raises:
            ScanAbortedError: If the checkpoint, a fids page or a signer
                events page cannot be read, or a checkpoint cannot be written.
                The stored checkpoint keeps its last persisted value.
            Exception: Anything else a collaborator raises is logged as an
                abort with the current fid and re-raised unchanged.
        """
        # locked() and the acquire below run without an await in between,
        # so no other trigger can slip in on the same event loop.
        if self._guard.locked():
            logger.info("job already running, skipping", job_name=self._checkpoints.job_name)
            return RunResult.skipped()

        async with self._guard:
            self._state = JobState.RUNNING
            completed = False
            try:
                with run_log_context(job_name=self._checkpoints.job_name, run_id=uuid.uuid4().hex):
                    try:
                        result = await self._execute()
                    except ScanAbortedError as e:
                        logger.error(
                            "job aborted",
                            fid=e.fid,
                            err_code=e.err_code,
                            error=str(e),
                            error_type=type(e).__name__,
                        )
                        raise
                    except Exception as e:
                        logger.exception(
                            "job aborted",
                            fid=self._current_fid,
                            error=str(e),
                            error_type=type(e).__name__,
                        )
                        raise
                completed = True
                return result
            finally:
                self._state = JobState.IDLE if completed else JobState.ABORTED

    async def _execute(self) -> RunResult:
        self._current_fid = None
        checkpoint = await self._checkpoints.aget()
        last_job_timestamp = checkpoint.last_job_timestamp
        last_fid = checkpoint.last_fid

        logger.info(
            "starting job",
            last_job_timestamp=last_job_timestamp,
            last_fid=last_fid,
        )

        start_wall_ms = self._clock.time() * 1000
        start = self._clock.monotonic()
        counters = RunCounters()

        with self._spans.run_span(self._checkpoints.job_name, resume_fid=last_fid) as span:
            async for fid in self._source.iter_fids():
                if last_fid > 0 and fid < last_fid:
                    continue

                self._current_fid = fid
                with self._spans.fid_span(fid):
                    changed = await self._scanner.scan_changed(fid, last_job_timestamp)
                    usernames = await self._scanner.scan_usernames(fid)

                counters.add(changed)
                counters.add(usernames)
                counters.fids_checked += 1

                if counters.fids_checked % self._checkpoint_interval == 0:
                    logger.info(
                        "job progress",
                        fid=fid,
                        total_messages_checked=counters.messages_checked,
                        total_fids_checked=counters.fids_checked,
                    )
                    await self._save(Checkpoint(last_job_timestamp=last_job_timestamp, last_fid=fid), fid=fid)

            span.set_attribute("run.fids_checked", counters.fids_checked)
            span.set_attribute("run.messages_checked", counters.messages_checked)

        time_taken_ms = (self._clock.monotonic() - start) * 1000
        logger.info(
            "finished job",
            time_taken_ms=time_taken_ms,
            total_fids_checked=counters.fids_checked,
            total_messages_checked=counters.messages_checked,
            total_revoked=counters.revoked,
            total_errors=counters.errors,
            timed_out_fids=len(counters.timed_out_fids),
        )

        # Advance the watermark to the run's start: fids whose signers are
        # unchanged since then skip the signer-change sweep next time.
        await self._save(Checkpoint(last_job_timestamp=to_farcaster_time_or_zero(start_wall_ms), last_fid=0))

        emit_timing(self._metrics, f"{self._metrics_prefix}.time_taken_ms", time_taken_ms)
        emit_gauge(self._metrics, f"{self._metrics_prefix}.total_messages_checked", counters.messages_checked)

        return RunResult.completed(counters, duration_ms=time_taken_ms, resumed_from_fid=last_fid)

    async def _save(self, checkpoint: Checkpoint, *, fid: int | None = None) -> None:
        try:
            await self._checkpoints.aput(checkpoint)
        except SQLAlchemyError as e:
            raise CheckpointWriteError(
                f"Cannot persist checkpoint for job '{self._checkpoints.job_name}': {e}",
                fid=fid,
            ) from e
