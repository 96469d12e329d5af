"""In-memory search cache with lazy expiry and sampled background compaction."""

from __future__ import annotations

import asyncio
import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    inserted_at: float
    ttl: float

    def expired(self, now: float) -> bool:
        return (now - self.inserted_at) > self.ttl


class SearchCache:
    """Memoizes provider searches keyed by the resolved query string.

    ``get`` checks expiry on every read, so an expired entry is never returned
    even if compaction has not reached it yet. Compaction samples at most
    ``sample_size`` keys per round and only keeps going while the sampled
    expired ratio stays above ``expired_ratio``, which bounds the cost of
    each tick instead of scanning the whole store.
    """

    def __init__(
        self,
        *,
        default_ttl: float = 600.0,
        compaction_interval: float = 30.0,
        sample_size: int = 20,
        expired_ratio: float = 0.25,
        max_rounds: int = 4,
        clock: Callable[[], float] = time.monotonic,
        rng: random.Random | None = None,
    ) -> None:
        self.default_ttl = default_ttl
        self.compaction_interval = compaction_interval
        self.sample_size = sample_size
        self.expired_ratio = expired_ratio
        self.max_rounds = max_rounds
        self._clock = clock
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}
        # Dense key list plus positions so compaction can sample by index.
        self._keys: list[str] = []
        self._positions: dict[str, int] = {}
        self._task: asyncio.Task | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Any:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expired(now):
                self._remove(key)
                return None
            return entry.value

    def put(self, key: str, value: Any, ttl: float | None = None) -> None:
        ttl = self.default_ttl if ttl is None else float(ttl)
        entry = CacheEntry(key=key, value=value, inserted_at=self._clock(), ttl=ttl)
        with self._lock:
            if key not in self._entries:
                self._positions[key] = len(self._keys)
                self._keys.append(key)
            self._entries[key] = entry

    def delete(self, key: str) -> None:
        with self._lock:
            if key in self._entries:
                self._remove(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._keys.clear()
            self._positions.clear()

    def _remove(self, key: str) -> None:
        # Caller holds the lock. Swap-remove keeps the key list dense.
        del self._entries[key]
        index = self._positions.pop(key)
        last = self._keys.pop()
        if index < len(self._keys):
            self._keys[index] = last
            self._positions[last] = index

    def compact_once(self) -> int:
        """Run one bounded compaction pass and return the number of evictions."""
        evicted = 0
        for _ in range(self.max_rounds):
            now = self._clock()
            with self._lock:
                if not self._keys:
                    break
                indexes = self._rng.sample(range(len(self._keys)), min(self.sample_size, len(self._keys)))
                sample = [self._keys[index] for index in indexes]
                expired = [key for key in sample if self._entries[key].expired(now)]
                for key in expired:
                    self._remove(key)
            evicted += len(expired)
            if len(expired) <= self.expired_ratio * len(sample):
                break
        return evicted

    async def _compaction_loop(self) -> None:
        while True:
            await asyncio.sleep(self.compaction_interval)
            try:
                evicted = self.compact_once()
            except Exception:
                logger.exception("Search cache compaction failed")
                continue
            if evicted:
                logger.debug("Search cache evicted %d expired entries", evicted)

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self._compaction_loop())

    async def close(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> "SearchCache":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
