"""Time base for run-time statistics, counted in (simulated) 1/100ths of a millisecond."""

from __future__ import annotations

import time
from typing import Callable, Optional

# Counter increments per second divided by this gives increments per 1/100 ms.
HUNDREDTHS_OF_MS_PER_SECOND = 100_000

# The counter value is reported as a 32-bit unsigned quantity.
_COUNTER_MASK = 0xFFFFFFFF


def _truncating_div(numerator: int, denominator: int) -> int:
    """Integer division that rounds toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return -quotient if (numerator < 0) != (denominator < 0) else quotient


class RunTimeCounter:
    """Scales a high-resolution counter into run-time statistics units.

    ``clock`` returns the current counter reading as an integer and
    ``frequency`` is the number of counter increments per second. A missing
    (``None`` or zero) frequency means no high-resolution counter is
    available: raw clock readings are then reported unscaled and unoffset.
    Counter overflow is not handled beyond wrapping to 32 bits.
    """

    def __init__(
        self,
        clock: Callable[[], int] = time.perf_counter_ns,
        frequency: Optional[int] = 1_000_000_000,
    ) -> None:
        self._clock = clock
        self._frequency = frequency
        self._initial = 0
        self._ticks_per_unit = 0

    def configure(self) -> None:
        """Take the reference reading and work out the scaling factor."""
        if not self._frequency:
            self._ticks_per_unit = 1
            return
        ticks = self._frequency // HUNDREDTHS_OF_MS_PER_SECOND
        if ticks <= 0:
            raise ValueError(
                f"counter frequency {self._frequency} is too low to measure "
                "hundredths of a millisecond"
            )
        self._ticks_per_unit = ticks
        self._initial = self._clock()

    def value(self) -> int:
        """Return the time elapsed since configure() in 1/100 ms units."""
        if not self._ticks_per_unit:
            raise RuntimeError("run-time counter has not been configured")
        elapsed = self._clock() - self._initial
        return _truncating_div(elapsed, self._ticks_per_unit) & _COUNTER_MASK