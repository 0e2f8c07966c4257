"""Time source shared by the cache, the rate limiter and the sweeper."""
import time
from typing import Protocol


class Clock(Protocol):
    """Anything that can report the current instant in seconds."""

    def now(self) -> float:
        ...


class MonotonicClock:
    """Wall-clock independent time source for TTL and window arithmetic."""

    def now(self) -> float:
        return time.monotonic()
