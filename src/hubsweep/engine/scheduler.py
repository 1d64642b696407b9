# src/hubsweep/engine/scheduler.py
"""JobScheduler: fire the job runner on a recurring cron schedule.

The trigger is an asyncio task that sleeps until the next cron time (UTC)
and then launches the run as a separate task. Stopping cancels only the
trigger, so an in-flight run always finishes. Overlap protection lives in
JobRunner.run(): a firing that lands on a running sweep is a no-op.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

import structlog
from croniter import croniter

from hubsweep.contracts import RunResult, ScanAbortedError, SchedulerStatus
from hubsweep.core.clock import DEFAULT_CLOCK, Clock
from hubsweep.core.config import DEFAULT_CRON, validate_cron_expression
from hubsweep.engine.runner import JobRunner

logger = structlog.get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class JobScheduler:
    """Start/stop/status wrapper around a recurring trigger."""

    def __init__(
        self,
        runner: JobRunner,
        *,
        clock: Clock | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._runner = runner
        self._clock = clock or DEFAULT_CLOCK
        self._sleep = sleep
        self._trigger: asyncio.Task[None] | None = None
        self._cron: str | None = None
        # Strong references so fired runs are not garbage collected mid-flight
        self._runs: set[asyncio.Task[RunResult]] = set()

    @property
    def cron(self) -> str | None:
        """Schedule of the registered trigger, None when stopped."""
        return self._cron

    @property
    def in_flight(self) -> frozenset[asyncio.Task[RunResult]]:
        """Runs launched by the trigger that have not finished yet."""
        return frozenset(self._runs)

    def start(self, cron: str | None = None) -> None:
        """Register the recurring trigger.

        Must be called from a running event loop. Starting while already
        started replaces the previous trigger.

        Args:
            cron: 5-field cron expression in UTC (default: daily at 01:00)

        Raises:
            ValueError: If the cron expression is invalid
        """
        schedule = validate_cron_expression(cron or DEFAULT_CRON)
        self.stop()
        self._cron = schedule
        self._trigger = asyncio.get_running_loop().create_task(self._trigger_loop(schedule), name="hubsweep-trigger")
        logger.info("scheduler started", cron=schedule)

    def stop(self) -> None:
        """Cancel future firings. In-flight runs are left to finish."""
        if self._trigger is None:
            return
        self._trigger.cancel()
        self._trigger = None
        logger.info("scheduler stopped", cron=self._cron, in_flight=len(self._runs))
        self._cron = None

    def status(self) -> SchedulerStatus:
        """Whether a trigger is registered (not whether a run is executing)."""
        return SchedulerStatus.STARTED if self._trigger is not None else SchedulerStatus.STOPPED

    def next_fire_time(self, cron: str, after: datetime | None = None) -> datetime:
        """Next time the schedule fires, strictly after `after` (default: now)."""
        base = after or datetime.fromtimestamp(self._clock.time(), UTC)
        next_time: datetime = croniter(cron, base).get_next(datetime)
        return next_time

    def fire(self) -> asyncio.Task[RunResult]:
        """Launch one run as its own task, as a scheduled firing would."""
        task = asyncio.get_running_loop().create_task(self._runner.run(), name="hubsweep-run")
        self._runs.add(task)
        task.add_done_callback(self._on_run_done)
        return task

    async def _trigger_loop(self, cron: str) -> None:
        while True:
            now = datetime.fromtimestamp(self._clock.time(), UTC)
            next_time = self.next_fire_time(cron, now)
            delay = max(0.0, (next_time - now).total_seconds())
            logger.debug("next scheduled run", cron=cron, next_run=next_time.isoformat(), delay_seconds=delay)
            await self._sleep(delay)
            self.fire()

    def _on_run_done(self, task: asyncio.Task[RunResult]) -> None:
        self._runs.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            return
        # JobRunner already logged the abort with its context.
        if not isinstance(error, ScanAbortedError):
            logger.error(
                "scheduled run crashed",
                error=str(error),
                error_type=type(error).__name__,
                exc_info=error,
            )
