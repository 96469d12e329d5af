"""Playback sessions and the registry the watchdogs consult."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from playback.queue import QueueEntry, TrackQueue


@dataclass
class PlaybackSession:
    guild_id: int
    voice_channel_id: int
    text_channel_id: int
    queue: TrackQueue = field(default_factory=TrackQueue)
    current: QueueEntry | None = None
    # Set while a failed track is being replaced; track-end events must not advance then.
    recovering: bool = False
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    _alone_since: float | None = field(default=None, repr=False)
    _alone_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def alone_since(self) -> float | None:
        with self._alone_lock:
            return self._alone_since

    def mark_alone(self, now: float | None = None) -> bool:
        """Start the alone timer if it is not running; True when it was started."""
        now = self.clock() if now is None else now
        with self._alone_lock:
            if self._alone_since is not None:
                return False
            self._alone_since = now
            return True

    def reset_alone(self) -> None:
        with self._alone_lock:
            self._alone_since = None

    def is_alone_for(self, seconds: float, now: float | None = None) -> bool:
        now = self.clock() if now is None else now
        with self._alone_lock:
            return self._alone_since is not None and (now - self._alone_since) > seconds


class SessionRegistry:
    """Keyed collection of live sessions; absence means the session is gone."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[int, PlaybackSession] = {}

    def add(self, session: PlaybackSession) -> None:
        with self._lock:
            if session.guild_id in self._sessions:
                raise ValueError(f"session already registered for guild {session.guild_id}")
            self._sessions[session.guild_id] = session

    def get(self, guild_id: int) -> PlaybackSession | None:
        with self._lock:
            return self._sessions.get(guild_id)

    def pop(self, guild_id: int) -> PlaybackSession | None:
        with self._lock:
            return self._sessions.pop(guild_id, None)

    def __contains__(self, guild_id: int) -> bool:
        with self._lock:
            return guild_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
