from playback.controller import PlayerController, PlayResult, SearchResults
from playback.errors import (
    EmptyQueueOperation,
    IndexOutOfRange,
    InvalidOperation,
    MetadataDecodeError,
    PlaybackError,
    QueueError,
    SessionNotFound,
)
from playback.queue import QueueEntry, TrackQueue
from playback.recovery import RecoveryOrchestrator, TrackException
from playback.session import PlaybackSession, SessionRegistry
from playback.track_data import TrackUserData
from playback.watchdog import SessionWatchdog, on_alone_tick

__all__ = [
    "EmptyQueueOperation",
    "IndexOutOfRange",
    "InvalidOperation",
    "MetadataDecodeError",
    "PlayResult",
    "PlaybackError",
    "PlaybackSession",
    "PlayerController",
    "QueueEntry",
    "QueueError",
    "RecoveryOrchestrator",
    "SearchResults",
    "SessionNotFound",
    "SessionRegistry",
    "SessionWatchdog",
    "TrackException",
    "TrackQueue",
    "TrackUserData",
    "on_alone_tick",
]
