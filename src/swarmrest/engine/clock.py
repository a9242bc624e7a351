# src/swarmrest/engine/clock.py
"""Wall-clock source for logical timestamps.

Swarm logical clocks count whole seconds since 2010-01-01 UTC, so they
need wall time rather than monotonic time. The in-memory host reads it
through this seam; tests pin it with MockClock to get reproducible stamps.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Source of Unix time in seconds."""

    def now(self) -> float: ...


class SystemClock:
    """time.time(), for real servers."""

    def now(self) -> float:
        return time.time()


class MockClock:
    """Frozen wall clock that only moves when told to.

    Example:
        clock = MockClock(start=1_700_000_000.0)
        host = MemoryHost(clock=clock)

        host.time()        # "<stamp>00+swarm~mem"
        host.time()        # same second: sequence becomes 01
        clock.advance(1)   # next time() starts a new second at sequence 00
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        """Move forward by ``seconds``.

        Raises:
            ValueError: If seconds is negative (use set() to rewind).
        """
        if seconds < 0:
            raise ValueError(f"advance() needs a non-negative delta, got {seconds}")
        self._now += seconds

    def set(self, value: float) -> None:
        """Jump to an absolute time, backwards included.

        Rewinding simulates a wall-clock step back; logical clocks built on
        top must keep issuing increasing stamps anyway.
        """
        self._now = value


DEFAULT_CLOCK: Clock = SystemClock()
