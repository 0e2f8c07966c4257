"""Rate Limiting & Caching Strategy.

One authoritative table of per-provider request ceilings and cache TTLs,
plus the sliding-window limiter that enforces the ceilings per client.
"""
import logging
from collections import deque
from dataclasses import dataclass, field

from app.core.clock import Clock, MonotonicClock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    """Requests allowed per trailing window."""
    limit: int
    window_seconds: float


@dataclass(frozen=True)
class CacheTTL:
    """Seconds a payload stays fresh, split by origin."""
    live: int
    demo: int


# =============================================================================
# RATE LIMITS - per client, per provider
# =============================================================================

API_LIMITS = {
    "weather": RateLimitRule(limit=10, window_seconds=60),        # OpenWeather free: 60/min shared
    "crypto": RateLimitRule(limit=20, window_seconds=60),         # CoinGecko free: 10-50/min
    "stocks": RateLimitRule(limit=4, window_seconds=70),          # Alpha Vantage: 5/min, stay under
    "sports": RateLimitRule(limit=10, window_seconds=60),         # ESPN unofficial
    "city-search": RateLimitRule(limit=10, window_seconds=60),
    "crypto-list": RateLimitRule(limit=2, window_seconds=300),    # Full coin list is heavy
    "stock-search": RateLimitRule(limit=2, window_seconds=70),
    "esp32": RateLimitRule(limit=10, window_seconds=60),          # Per device
}

# Cache TTLs (seconds) - volatile data gets shorter lifetimes
CACHE_TTL = {
    "weather": CacheTTL(live=300, demo=60),
    "crypto": CacheTTL(live=120, demo=60),
    "stocks": CacheTTL(live=300, demo=60),
    "sports": CacheTTL(live=300, demo=60),
    "city-search": CacheTTL(live=3600, demo=3600),
    "crypto-list": CacheTTL(live=3600, demo=300),
    "stock-search": CacheTTL(live=3600, demo=3600),
}


# =============================================================================
# IMPLEMENTATION
# =============================================================================

@dataclass
class RateWindow:
    """Request instants seen for one key inside its trailing window."""
    key: str
    window_seconds: float
    timestamps: deque = field(default_factory=deque)

    def prune(self, now: float) -> None:
        while self.timestamps and now - self.timestamps[0] >= self.window_seconds:
            self.timestamps.popleft()


class SlidingWindowRateLimiter:
    """In-memory, per-process sliding window limiter.

    Rejected attempts are not recorded, so a client hammering a limited key
    regains access as soon as its oldest accepted request leaves the window.
    """

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or MonotonicClock()
        self._windows: dict[str, RateWindow] = {}

    def is_limited(self, key: str, limit: int, window_seconds: float) -> bool:
        """Return True if `key` is over `limit`; otherwise record this request."""
        now = self._clock.now()
        window = self._windows.get(key)
        if window is None:
            window = RateWindow(key=key, window_seconds=window_seconds)
            self._windows[key] = window
        window.window_seconds = window_seconds
        window.prune(now)

        if len(window.timestamps) >= limit:
            return True

        window.timestamps.append(now)
        return False

    def check(self, key: str, rule: RateLimitRule) -> bool:
        return self.is_limited(key, rule.limit, rule.window_seconds)

    def sweep(self) -> int:
        """Drop windows with nothing left inside them."""
        now = self._clock.now()
        removed = 0
        for key in list(self._windows):
            window = self._windows[key]
            window.prune(now)
            if not window.timestamps:
                del self._windows[key]
                removed += 1
        if removed:
            logger.debug("Rate limiter sweep removed %d idle windows", removed)
        return removed

    def clear(self) -> None:
        self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)

    def __contains__(self, key: str) -> bool:
        return key in self._windows
