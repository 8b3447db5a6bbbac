from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Sequence

from cachetools import TTLCache

from codehn.models.schemas import Story

logger = logging.getLogger(__name__)


class ResultCache:
    """
    Thread-safe TTL cache of finished pages, keyed by feed type.

    Entries live for ``ttl`` seconds from the moment they are set. Reads of an
    expired entry are misses even before the background sweep has removed it,
    so nobody ever gets a page older than ``ttl``. Pages are stored as tuples
    and replaced wholesale on every ``set``.
    """

    def __init__(
        self,
        ttl: float = 30 * 60,
        sweep_interval: float = 10 * 60,
        maxsize: int = 64,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._stop = threading.Event()
        self._sweeper: threading.Thread | None = None

    def get(self, key: str) -> tuple[list[Story] | None, bool]:
        with self._lock:
            value = self._cache.get(key)
            if value is None:
                self._misses += 1
                logger.debug("Cache miss: %s", key)
                return None, False
            self._hits += 1
            logger.debug("Cache hit: %s", key)
            return list(value), True

    def set(self, key: str, stories: Sequence[Story]) -> None:
        with self._lock:
            self._cache[key] = tuple(stories)
        logger.debug("Cache set: %s (%d stories, ttl=%ss)", key, len(stories), self.ttl)

    def sweep(self) -> int:
        """Drop every expired entry now. Returns how many were removed."""
        with self._lock:
            removed = len(self._cache.expire())
        if removed:
            logger.debug("Cache sweep removed %d expired page(s)", removed)
        return removed

    def stats(self) -> dict:
        with self._lock:
            return {
                "size": len(self._cache),
                "hits": self._hits,
                "misses": self._misses,
                "ttl": self.ttl,
                "sweep_interval": self.sweep_interval,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    # ---- background sweep ----

    def start_sweeper(self) -> None:
        if self.sweep_interval <= 0 or self._sweeper is not None:
            return
        self._stop.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            name="result-cache-sweeper",
            daemon=True,
        )
        self._sweeper.start()

    def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._stop.set()
        self._sweeper.join()
        self._sweeper = None

    def _sweep_loop(self) -> None:
        while not self._stop.wait(self.sweep_interval):
            self.sweep()
