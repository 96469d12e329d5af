"""Per-process owner of playback sessions and their collaborators."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable

from config.loader import Settings
from matching.matcher import AlternativeMatcher
from playback import messages
from playback.errors import EmptyQueueOperation, IndexOutOfRange, PlaybackError, SessionNotFound
from playback.interfaces import Notifier, PlaybackEngine, VoiceTransport
from playback.queue import QueueEntry
from playback.recovery import RecoveryOrchestrator, TrackException
from playback.session import PlaybackSession, SessionRegistry
from playback.track_data import TrackUserData
from playback.watchdog import SessionWatchdog
from providers.base import Provider, ProviderError, UnexpectedResultShape
from providers.cache import SearchCache
from providers.search import TrackQuery, load_or_search, search_multiple
from providers.types import (
    LoadEmpty,
    LoadFailed,
    PlaylistLoaded,
    SearchEngine,
    SearchLoaded,
    Track,
    TrackLoaded,
)

logger = logging.getLogger(__name__)

# Engine end reasons after which the next queued track should start.
_ADVANCING_END_REASONS = frozenset({"finished"})


@dataclass(frozen=True)
class PlayResult:
    tracks: tuple[Track, ...]
    playlist_name: str | None
    started: QueueEntry | None


@dataclass(frozen=True)
class SearchResults:
    """Top hits per engine, in the order the engines were asked."""

    term: str
    groups: tuple[tuple[SearchEngine, tuple[Track, ...]], ...]

    def flatten(self) -> list[tuple[SearchEngine, Track]]:
        return [(engine, track) for engine, tracks in self.groups for track in tracks]


class PlayerController:
    def __init__(
        self,
        *,
        engine: PlaybackEngine,
        transport: VoiceTransport,
        notifier: Notifier,
        provider: Provider,
        matcher: AlternativeMatcher,
        settings: Settings | None = None,
        registry: SessionRegistry | None = None,
        cache: SearchCache | None = None,
    ) -> None:
        self.engine = engine
        self.transport = transport
        self.notifier = notifier
        self.provider = provider
        self.matcher = matcher
        self.settings = settings or Settings()
        self.registry = registry or SessionRegistry()
        self.cache = cache
        self.recovery = RecoveryOrchestrator(
            engine,
            notifier,
            matcher,
            self.advance,
            notify_top=self.settings.notify_top_alternatives,
        )
        self._watchdogs: dict[int, asyncio.Task] = {}

    def get_session(self, guild_id: int) -> PlaybackSession | None:
        return self.registry.get(guild_id)

    def require_session(self, guild_id: int) -> PlaybackSession:
        session = self.registry.get(guild_id)
        if session is None:
            raise SessionNotFound(guild_id)
        return session

    async def join(self, guild_id: int, voice_channel_id: int, text_channel_id: int) -> PlaybackSession:
        """Join a voice channel and start a session, reusing a live one."""
        existing = self.registry.get(guild_id)
        if existing is not None:
            return existing

        connection = await self.transport.join(guild_id, voice_channel_id)
        try:
            await self.engine.create_session(connection)
        except Exception:
            logger.exception("Failed to create player session guild=%s", guild_id)
            await self.transport.leave(guild_id)
            raise
        session = PlaybackSession(
            guild_id=guild_id,
            voice_channel_id=voice_channel_id,
            text_channel_id=text_channel_id,
        )
        self.registry.add(session)
        watchdog = SessionWatchdog(
            guild_id,
            self.registry,
            self.transport,
            self.leave,
            threshold_seconds=self.settings.alone_timeout_seconds,
            grace_seconds=self.settings.watchdog_grace_seconds,
            poll_seconds=self.settings.watchdog_poll_seconds,
        )
        task = asyncio.get_running_loop().create_task(watchdog.run())
        self._watchdogs[guild_id] = task
        task.add_done_callback(lambda _t, gid=guild_id: self._forget_watchdog(gid, _t))
        logger.info("Session started guild=%s channel=%s", guild_id, voice_channel_id)
        return session

    def _forget_watchdog(self, guild_id: int, task: asyncio.Task) -> None:
        if self._watchdogs.get(guild_id) is task:
            del self._watchdogs[guild_id]

    async def leave(self, guild_id: int) -> bool:
        """Tear a session down; returns False when there was none."""
        session = self.registry.pop(guild_id)
        if session is None:
            return False
        try:
            await self.engine.delete_session(guild_id)
        finally:
            await self.transport.leave(guild_id)
        logger.info("Session ended guild=%s", guild_id)
        return True

    async def enqueue(
        self,
        session: PlaybackSession,
        tracks: Iterable[Track],
        requester_id: int,
        query: TrackQuery | None = None,
    ) -> int:
        user_data = TrackUserData(requester_id=requester_id, query=query)
        entries = [QueueEntry(user_data.attach(track), requester_id, query) for track in tracks]
        return await session.queue.append(entries)

    async def play_query(self, session: PlaybackSession, text: str, requester_id: int) -> PlayResult:
        """Resolve ``text``, queue what it yields and start playback when idle."""
        default_engine = SearchEngine.from_name(self.settings.default_search_engine)
        result, query = await load_or_search(self.provider, text, default_engine)
        playlist_name = None
        match result:
            case TrackLoaded(track=track):
                tracks = (track,)
            case SearchLoaded(tracks=found) if found:
                tracks = (found[0],)
            case SearchLoaded() | LoadEmpty():
                raise PlaybackError(f"No matches for {query.term or text}")
            case PlaylistLoaded(info=info, tracks=found):
                tracks = tuple(found)
                playlist_name = info.name
            case LoadFailed():
                raise ProviderError.from_result(result)
            case _:
                raise UnexpectedResultShape("a track, playlist or search results", result)

        await self.enqueue(session, tracks, requester_id, query)
        started = None
        if session.current is None:
            started = await self.advance(session)
        return PlayResult(tracks=tracks, playlist_name=playlist_name, started=started)

    async def search(self, session: PlaybackSession, term: str) -> SearchResults:
        """Search every configured engine and post the grouped top hits.

        Engines that fail or find nothing are left out; raises
        ``PlaybackError`` when no engine found anything.
        """
        term = (term or "").strip()
        if not term:
            raise PlaybackError("Search term must not be empty")
        engines = [SearchEngine.from_name(name) for name in self.settings.search_engines]
        limit = self.settings.search_results_per_engine
        groups = []
        for engine, outcome in await search_multiple(self.provider, term, engines, self.cache):
            if isinstance(outcome, BaseException) or not outcome:
                continue
            groups.append((engine, tuple(outcome[:limit])))
        if not groups:
            raise PlaybackError(f"No matches for {term}")

        results = SearchResults(term=term, groups=tuple(groups))
        await self.notifier.send_message(
            session.text_channel_id,
            embed=messages.search_results([tracks for _, tracks in results.groups]),
        )
        return results

    async def enqueue_search_result(
        self,
        session: PlaybackSession,
        results: SearchResults,
        position: int,
        requester_id: int,
    ) -> QueueEntry:
        """Queue the 1-based ``position`` from ``results`` and start it when idle."""
        picks = results.flatten()
        if position < 1 or position > len(picks):
            raise IndexOutOfRange(position, len(picks))
        engine, track = picks[position - 1]
        query = TrackQuery(text=results.term, engine=engine)
        user_data = TrackUserData(requester_id=requester_id, query=query)
        entry = QueueEntry(user_data.attach(track), requester_id, query)
        await session.queue.append([entry])
        await self.notifier.send_message(session.text_channel_id, embed=messages.added_to_queue(track))
        if session.current is None:
            await self.advance(session)
        return entry

    async def advance(self, session: PlaybackSession) -> QueueEntry:
        """Play the queue head; raises ``EmptyQueueOperation`` when nothing is queued."""
        entry = await session.queue.pop_front()
        if entry is None:
            session.current = None
            raise EmptyQueueOperation()
        await self.engine.play(session.guild_id, entry.track)
        session.current = entry
        return entry

    async def skip(self, session: PlaybackSession) -> QueueEntry | None:
        """Skip the current track and return it, or None when nothing was playing."""
        skipped = session.current
        if skipped is None:
            return None
        try:
            await self.advance(session)
        except EmptyQueueOperation:
            await self.engine.skip(session.guild_id)
        return skipped

    async def stop(self, session: PlaybackSession) -> QueueEntry | None:
        stopped = session.current
        if stopped is None:
            return None
        await self.engine.stop(session.guild_id)
        session.current = None
        return stopped

    async def pause(self, session: PlaybackSession) -> None:
        await self.engine.set_pause(session.guild_id, True)

    async def resume(self, session: PlaybackSession) -> None:
        await self.engine.set_pause(session.guild_id, False)

    async def seek(self, session: PlaybackSession, seconds: float) -> None:
        if session.current is None:
            raise PlaybackError("Nothing is playing")
        if seconds < 0:
            raise PlaybackError("Position must not be negative")
        await self.engine.set_position(session.guild_id, int(seconds * 1000))

    async def on_track_end(self, guild_id: int, reason: str = "finished") -> QueueEntry | None:
        """Advance after a track ended on its own.

        Ends caused by the core itself (stop, replace, cleanup) and ends seen
        while a failed track is being recovered leave the queue alone.
        """
        session = self.registry.get(guild_id)
        if session is None:
            return None
        if reason not in _ADVANCING_END_REASONS:
            logger.debug("Ignoring track end reason=%s guild=%s", reason, guild_id)
            return None
        if session.recovering:
            logger.debug("Ignoring track end during recovery guild=%s", guild_id)
            return None
        session.current = None
        try:
            return await self.advance(session)
        except EmptyQueueOperation:
            logger.debug("Queue finished guild=%s", guild_id)
            return None

    async def handle_track_exception(self, exception: TrackException) -> bool:
        session = self.registry.get(exception.guild_id)
        if session is None:
            logger.warning("Track exception for unknown session guild=%s", exception.guild_id)
            return False
        return await self.recovery.handle_track_exception(session, exception)

    async def status(self, session: PlaybackSession, position_ms: int = 0) -> list[messages.Embed]:
        return messages.queue_status(session.current, position_ms, await session.queue.snapshot())

    async def close(self) -> None:
        for guild_id, task in list(self._watchdogs.items()):
            try:
                await self.leave(guild_id)
            except Exception:
                logger.exception("Failed to leave guild=%s during shutdown", guild_id)
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
