"""Acceleration from consecutive speed samples."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SpeedSample:
    value: float
    """Speed in m/s."""
    observed_at: float
    """Clock reading in seconds."""


class DerivativeTracker:
    """Finite-difference acceleration over the last observed speed.

    There is one tracker per bridge: every snapshot build, whether for an
    HTTP query or a broadcast tick, consumes one transition.  No smoothing
    is applied.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._last: SpeedSample | None = None

    @property
    def last_sample(self) -> SpeedSample | None:
        return self._last

    def update(self, speed: float, now: float | None = None) -> float:
        """Record *speed* and return the acceleration since the previous sample.

        The first sample, and any sample whose timestamp does not advance,
        yields ``0.0``.  The stored sample is replaced either way.
        """
        if now is None:
            now = self._clock()
        previous = self._last
        self._last = SpeedSample(value=speed, observed_at=now)
        if previous is None:
            return 0.0
        dt = now - previous.observed_at
        if dt <= 0:
            return 0.0
        return (speed - previous.value) / dt

    def reset(self) -> None:
        self._last = None
