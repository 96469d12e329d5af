"""Per-session ordered track queue.

Positions passed in and out of this module are 1-based, as shown to users.
Every mutation holds the queue lock and validates before touching the list,
so a failed call leaves the queue exactly as it was.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Iterable

from playback.errors import IndexOutOfRange, InvalidOperation
from providers.search import TrackQuery
from providers.types import Track


@dataclass(frozen=True)
class QueueEntry:
    track: Track
    requester_id: int | None = None
    query: TrackQuery | None = None


class TrackQueue:
    def __init__(self, entries: Iterable[QueueEntry] = ()) -> None:
        self._entries: list[QueueEntry] = list(entries)
        self._lock = asyncio.Lock()

    def _to_offset(self, position: int) -> int:
        if isinstance(position, bool) or not isinstance(position, int):
            raise IndexOutOfRange(position, len(self._entries))
        if position < 1 or position > len(self._entries):
            raise IndexOutOfRange(position, len(self._entries))
        return position - 1

    def _set(self, offset: int, entry: QueueEntry) -> QueueEntry:
        previous = self._entries[offset]
        self._entries[offset] = entry
        return previous

    async def append(self, entries: Iterable[QueueEntry]) -> int:
        """Add entries to the tail in order and return the new length."""
        entries = list(entries)
        async with self._lock:
            self._entries.extend(entries)
            return len(self._entries)

    async def push_to_front(self, entry: QueueEntry) -> None:
        async with self._lock:
            self._entries.insert(0, entry)

    async def pop_front(self) -> QueueEntry | None:
        async with self._lock:
            if not self._entries:
                return None
            return self._entries.pop(0)

    async def remove(self, position: int) -> QueueEntry:
        async with self._lock:
            offset = self._to_offset(position)
            return self._entries.pop(offset)

    async def swap(self, first: int, second: int) -> None:
        async with self._lock:
            first_offset = self._to_offset(first)
            second_offset = self._to_offset(second)
            if first_offset == second_offset:
                raise InvalidOperation("Can't swap between the same indexes")
            first_entry = self._entries[first_offset]
            second_entry = self._entries[second_offset]
            self._set(first_offset, second_entry)
            self._set(second_offset, first_entry)

    async def replace(self, entries: Iterable[QueueEntry]) -> None:
        entries = list(entries)
        async with self._lock:
            self._entries = entries

    async def shuffle(self, rng: random.Random | None = None) -> None:
        async with self._lock:
            shuffled = list(self._entries)
            (rng or random).shuffle(shuffled)
            self._entries = shuffled

    async def clear(self) -> int:
        async with self._lock:
            removed = len(self._entries)
            self._entries = []
            return removed

    async def count(self) -> int:
        async with self._lock:
            return len(self._entries)

    async def peek_front(self) -> QueueEntry | None:
        async with self._lock:
            return self._entries[0] if self._entries else None

    async def get(self, position: int) -> QueueEntry:
        async with self._lock:
            return self._entries[self._to_offset(position)]

    async def snapshot(self) -> list[QueueEntry]:
        async with self._lock:
            return list(self._entries)
