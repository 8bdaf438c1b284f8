"""
Millisecond Clocks

The engine only needs a free-running millisecond counter. Live sessions use
the monotonic system clock; simulations, replays and tests drive a
ManualClock so that every timestamp is reproducible.
"""
import time
from typing import Callable

Clock = Callable[[], int]


def monotonic_ms() -> int:
    """Return a monotonic millisecond timestamp."""
    return time.monotonic_ns() // 1_000_000


class ManualClock:
    """
    Clock that only moves when told to.

    Instances are callable, so they can be passed wherever a Clock is
    expected.
    """

    def __init__(self, start_ms: int = 0):
        self._now = int(start_ms)

    def __call__(self) -> int:
        return self._now

    def now(self) -> int:
        return self._now

    def set(self, timestamp_ms: int) -> None:
        """Jump to an absolute timestamp. Going backwards is allowed."""
        self._now = int(timestamp_ms)

    def advance(self, delta_ms: int) -> int:
        """Move forward by delta_ms and return the new time."""
        self._now += int(delta_ms)
        return self._now
