"""In-memory TTL cache for normalized widget payloads.

Each entry carries its own TTL, so live and demo payloads for different
widgets can share one store. Expiry is evaluated on every read; the
periodic sweep only bounds memory.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any

from cachetools import TLRUCache

from app.core.clock import Clock, MonotonicClock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached payload and the moment it was stored."""
    key: str
    value: Any
    stored_at: float
    ttl_seconds: float

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl_seconds


def _entry_expiry(key: str, entry: CacheEntry, now: float) -> float:
    return entry.expires_at


def make_cache_key(widget_type: str, params: dict | None = None) -> str:
    """Generate a deterministic cache key from already-normalized params."""
    if params:
        param_str = ":".join(f"{k}={v}" for k, v in sorted(params.items()))
        return f"{widget_type}:{param_str}"
    return widget_type


class ResponseCache:
    """Key -> payload map where an entry is valid iff now - stored_at < ttl."""

    def __init__(self, clock: Clock | None = None, maxsize: float = math.inf):
        self._clock = clock or MonotonicClock()
        self._store = TLRUCache(maxsize=maxsize, ttu=_entry_expiry, timer=self._clock.now)

    def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._store[key] = CacheEntry(
            key=key,
            value=value,
            stored_at=self._clock.now(),
            ttl_seconds=ttl_seconds,
        )

    def sweep(self) -> int:
        """Remove every expired entry and return how many went."""
        removed = len(self._store.expire())
        if removed:
            logger.debug("Cache sweep removed %d expired entries", removed)
        return removed

    def clear(self) -> None:
        self._store.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)
