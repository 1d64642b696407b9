# src/hubsweep/core/clock.py
"""Clock abstraction for testable time-boxed and watermark logic.

The sweep needs two kinds of time:
- monotonic() for the per-fid iteration time box
- time() for the run-start watermark and cron evaluation

Production code uses SystemClock (the default).
Tests inject MockClock to control time advancement.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Abstract clock for timeouts and wall-clock timestamps.

    Implementations:
    - SystemClock: Uses time.monotonic() / time.time() (production)
    - MockClock: Returns controllable times (testing)
    """

    def monotonic(self) -> float:
        """Return monotonic time in seconds.

        Must never go backwards. Corresponds to time.monotonic().
        """
        ...

    def time(self) -> float:
        """Return wall-clock time in Unix seconds. Corresponds to time.time()."""
        ...


class SystemClock:
    """Production clock backed by the time module."""

    def monotonic(self) -> float:
        """Return system monotonic time."""
        return time.monotonic()

    def time(self) -> float:
        """Return system wall-clock time."""
        return time.time()


class MockClock:
    """Controllable clock for deterministic testing.

    Monotonic and wall-clock time advance together.

    Example:
        clock = MockClock(start=0.0, wall_start=1_700_000_000.0)
        store = SqlKeyValueStore(db, clock=clock)

        clock.advance(901)  # Past a 900s time box
    """

    def __init__(self, start: float = 0.0, wall_start: float = 1_700_000_000.0) -> None:
        """Initialize mock clock.

        Args:
            start: Initial monotonic time value (default 0.0).
            wall_start: Initial wall-clock time in Unix seconds.
        """
        self._current = start
        self._wall = wall_start

    def monotonic(self) -> float:
        """Return current mock monotonic time."""
        return self._current

    def time(self) -> float:
        """Return current mock wall-clock time."""
        return self._wall

    def advance(self, seconds: float) -> None:
        """Advance both clocks by the given number of seconds.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        self._current += seconds
        self._wall += seconds

    def set_wall(self, value: float) -> None:
        """Set wall-clock time to an absolute value. Monotonic time is untouched."""
        self._wall = value


# Default clock for production use
DEFAULT_CLOCK: Clock = SystemClock()
