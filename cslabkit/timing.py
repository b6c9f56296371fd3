"""Cycle counting with a high-resolution clock, plus timer-interrupt compensation."""

from __future__ import annotations

import os
import sys
import time
from typing import Callable, Optional

NEVENT = 100
THRESHOLD = 1000.0
RECORDTHRESH = 3000.0


def _clock_ticks_per_second() -> int:
    try:
        return int(os.sysconf("SC_CLK_TCK"))
    except (AttributeError, ValueError, OSError):
        return 100


_CLK_TCK = _clock_ticks_per_second()


def cpu_ticks() -> int:
    """User CPU time consumed by this process, in clock ticks."""
    return int(os.times().user * _CLK_TCK)


class CycleCounter:
    """Counts clock units elapsed since :meth:`start` was called."""

    def __init__(self, clock: Callable[[], int] = time.perf_counter_ns) -> None:
        self._clock = clock
        self._start: Optional[int] = None

    def start(self) -> None:
        """Record the current counter value."""
        self._start = self._clock()

    def elapsed(self) -> float:
        """Units elapsed since the last call to :meth:`start`."""
        if self._start is None:
            raise RuntimeError("counter has not been started")
        result = float(self._clock() - self._start)
        if result < 0:
            print(f"Error: counter returns neg value: {result:.0f}", file=sys.stderr)
        return result


class CompensatedCounter:
    """A cycle counter that subtracts time lost to timer interrupts."""

    def __init__(
        self,
        counter: Optional[CycleCounter] = None,
        ticks: Callable[[], int] = cpu_ticks,
        events: int = NEVENT,
        threshold: float = THRESHOLD,
        record_threshold: float = RECORDTHRESH,
    ) -> None:
        self.counter = counter if counter is not None else CycleCounter()
        self._ticks = ticks
        self.events = events
        self.threshold = threshold
        self.record_threshold = record_threshold
        self.cycles_per_tick = 0.0
        self._start_tick = 0

    def calibrate(self) -> None:
        """Estimate the number of cycles covered by one CPU clock tick."""
        old_ticks = self._ticks()
        self.counter.start()
        old_time = self.counter.elapsed()
        seen = 0
        while seen < self.events:
            new_time = self.counter.elapsed()
            if new_time - old_time < self.threshold:
                continue
            new_ticks = self._ticks()
            if new_ticks > old_ticks:
                per_tick = (new_time - old_time) / (new_ticks - old_ticks)
                if (
                    self.cycles_per_tick == 0.0 or self.cycles_per_tick > per_tick
                ) and per_tick > self.record_threshold:
                    self.cycles_per_tick = per_tick
                seen += 1
                old_ticks = new_ticks
            old_time = new_time

    def start(self) -> None:
        """Start counting, calibrating first if that has not been done."""
        if self.cycles_per_tick == 0.0:
            self.calibrate()
        self._start_tick = self._ticks()
        self.counter.start()

    def elapsed(self) -> float:
        """Cycles since :meth:`start`, less the cycles attributed to clock ticks."""
        raw = self.counter.elapsed()
        ticks = self._ticks() - self._start_tick
        return raw - ticks * self.cycles_per_tick


def overhead() -> float:
    """Cycles consumed by starting and reading the counter (measured twice)."""
    counter = CycleCounter()
    result = 0.0
    for _ in range(2):
        counter.start()
        result = counter.elapsed()
    return result


def mhz(verbose: bool = False, sleeptime: float = 2) -> float:
    """Estimate the counter rate in MHz by sleeping for ``sleeptime`` seconds."""
    if sleeptime <= 0:
        raise ValueError(f"sleep time must be positive, got {sleeptime}")
    counter = CycleCounter()
    counter.start()
    time.sleep(sleeptime)
    rate = counter.elapsed() / (1e6 * sleeptime)
    if verbose:
        print(f"Processor clock rate ~= {rate:.1f} MHz")
    return rate