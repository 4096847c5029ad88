"""
Wall-clock timing of model operations.

Every ModelService operation reports its phases (remove, absorb,
validate, persist, predict) in Result.timing, e.g.

    {'total_seconds': 0.0041, 'absorb': 0.0030, 'persist': 0.0002}
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """Overall stopwatch plus per-phase totals."""

    def __init__(self, clock=time.perf_counter):
        self._clock = clock
        self._phases: dict[str, float] = {}
        self._began: float | None = None
        self._elapsed: float | None = None

    def start(self) -> None:
        self._began = self._clock()
        self._elapsed = None

    def stop(self) -> None:
        if self._began is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._elapsed = self._clock() - self._began

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """
        Charge the enclosed block to phase name.

        Re-entering a phase adds to its total. The block is charged even
        when it raises.
        """
        began = self._clock()
        try:
            yield
        finally:
            self._phases[name] = self._phases.get(name, 0.0) + (self._clock() - began)

    def result(self) -> dict[str, float]:
        """
        Phase totals keyed by name, plus 'total_seconds'.

        Raises:
            RuntimeError: If the timer was never stopped
        """
        if self._elapsed is None:
            raise RuntimeError("Timer.result() called before stop()")
        return {'total_seconds': self._elapsed, **self._phases}


@contextmanager
def timed() -> Iterator[Timer]:
    """Time a block; the yielded timer is stopped on exit."""
    timer = Timer()
    timer.start()
    try:
        yield timer
    finally:
        timer.stop()
