"""
Response caching

In-memory cache of decoded responses keyed by the fully formatted query
text. Entries expire after a TTL and the cache is bounded, evicting the
least recently used entry when full.
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from ..models import OverpassResponse


@dataclass(frozen=True)
class CacheEntry:
    response: OverpassResponse
    created_at: float


class ResponseCache:
    """Thread-safe TTL + LRU cache of Overpass responses"""

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 50,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._sweeper: Optional[threading.Thread] = None
        self._stop_sweeping = threading.Event()

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at < self.ttl_seconds

    def get(self, key: str) -> Optional[OverpassResponse]:
        """Cached response for key, or None when absent or expired"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not self._is_fresh(entry, self._clock()):
                del self._entries[key]
                logger.debug(f"Cache entry expired: {key[:80]}")
                return None
            self._entries.move_to_end(key)
            return entry.response

    def put(self, key: str, response: OverpassResponse) -> None:
        """Store or overwrite; evicts least recently used entries beyond max_entries"""
        with self._lock:
            self._entries[key] = CacheEntry(response, self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache full, evicted: {evicted[:80]}")

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cleared response cache ({count} entries)")

    def purge_expired(self) -> int:
        """Drop stale entries only; returns how many were removed"""
        with self._lock:
            now = self._clock()
            stale = [k for k, e in self._entries.items() if not self._is_fresh(e, now)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug(f"Purged {len(stale)} expired cache entries")
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    # ------------------------------------------------------------------
    # Background sweep
    # ------------------------------------------------------------------

    def start_sweeper(self, interval_seconds: float = 300.0) -> None:
        """Purge expired entries every interval_seconds on a daemon thread"""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop_sweeping.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            args=(interval_seconds,),
            name="overpass-cache-sweeper",
            daemon=True,
        )
        self._sweeper.start()
        logger.debug(f"Cache sweeper started (every {interval_seconds}s)")

    def stop_sweeper(self) -> None:
        self._stop_sweeping.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=1.0)
            self._sweeper = None

    def _sweep_loop(self, interval_seconds: float) -> None:
        while not self._stop_sweeping.wait(interval_seconds):
            self.purge_expired()
