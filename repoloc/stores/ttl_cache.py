"""In-memory expiring cache for per-file repository statistics."""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, Optional, Tuple

from ..logging import get_logger
from ..models import FileStat

DEFAULT_SWEEP_INTERVAL = 600.0


class ReadWriteLock:
    """Lock allowing many concurrent readers or a single writer.

    Writers are preferred: once a writer is waiting, new readers block until
    it has finished, so a steady stream of ``get`` calls cannot starve
    ``set``/``clear``.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(frozen=True)
class CacheEntry:
    """Stored analysis for one repository/branch key."""

    key: str
    value: Tuple[FileStat, ...]
    expires_at: float

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLCache:
    """Maps cache keys to unfiltered analyses that expire after a TTL.

    Expiry is checked on every read, so correctness never depends on the
    background sweep; the sweep only reclaims memory. Every :meth:`clear`
    starts a new generation; a :meth:`set` tagged with an older generation is
    dropped, so a value computed before a clear never outlives it.
    """

    def __init__(
        self,
        *,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._generation = 0
        self._lock = ReadWriteLock()
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._stop_event = threading.Event()
        self._sweeper: Optional[threading.Thread] = None
        self.logger = get_logger("cache")

    def get(self, key: str) -> Optional[Tuple[FileStat, ...]]:
        with self._lock.read():
            entry = self._entries.get(key)
            if entry is None or entry.expired(self._clock()):
                return None
            return entry.value

    @property
    def generation(self) -> int:
        with self._lock.read():
            return self._generation

    def set(
        self,
        key: str,
        value: Iterable[FileStat],
        ttl_seconds: float,
        *,
        generation: int | None = None,
    ) -> bool:
        """Store ``value`` under ``key``; return ``False`` if ``generation`` is stale."""
        frozen = tuple(value)
        with self._lock.write():
            if generation is not None and generation != self._generation:
                return False
            self._entries[key] = CacheEntry(
                key=key,
                value=frozen,
                expires_at=self._clock() + ttl_seconds,
            )
        return True

    def clear(self) -> None:
        with self._lock.write():
            self._entries = {}
            self._generation += 1

    def sweep(self) -> int:
        """Delete every expired entry and return how many were removed."""
        with self._lock.write():
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            self.logger.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)

    # ------------------------------------------------------------------
    # Background sweep

    @property
    def running(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()

    def start(self) -> "TTLCache":
        if self.running:
            return self
        self._stop_event.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            name="repoloc-cache-sweeper",
            daemon=True,
        )
        self._sweeper.start()
        return self

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        sweeper = self._sweeper
        if sweeper is not None:
            sweeper.join(timeout)
        self._sweeper = None

    def __enter__(self) -> "TTLCache":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _sweep_loop(self) -> None:
        while not self._stop_event.wait(self._sweep_interval):
            self.sweep()


__all__ = ["CacheEntry", "DEFAULT_SWEEP_INTERVAL", "ReadWriteLock", "TTLCache"]
