"""Recover from a track that failed mid-playback by queueing a replacement."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from matching.matcher import AlternativeMatcher
from playback import messages
from playback.errors import EmptyQueueOperation, MetadataDecodeError
from playback.interfaces import Notifier, PlaybackEngine
from playback.queue import QueueEntry
from playback.session import PlaybackSession
from playback.track_data import TrackUserData
from providers.types import Track

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackException:
    guild_id: int
    track: Track
    severity: str
    message: str
    cause: str = ""


class RecoveryOrchestrator:
    def __init__(
        self,
        engine: PlaybackEngine,
        notifier: Notifier,
        matcher: AlternativeMatcher,
        advance: Callable[[PlaybackSession], Awaitable[object]],
        *,
        notify_top: int = 3,
    ) -> None:
        self.engine = engine
        self.notifier = notifier
        self.matcher = matcher
        self.advance = advance
        self.notify_top = notify_top

    async def handle_track_exception(self, session: PlaybackSession, exception: TrackException) -> bool:
        """Stop, look for an alternative, then advance the queue.

        Returns False when the player could not be stopped; recovery is then
        skipped entirely so the engine's own advance cannot race a second one.
        """
        # Nothing may advance the queue between this stop and the advance below.
        try:
            await self.engine.stop(session.guild_id)
        except Exception:
            logger.exception(
                "Failed to stop player on track exception, skipping recovery guild=%s",
                session.guild_id,
            )
            return False
        session.current = None
        session.recovering = True
        try:
            await self._recover_and_advance(session, exception)
        finally:
            session.recovering = False
        return True

    async def _recover_and_advance(self, session: PlaybackSession, exception: TrackException) -> None:
        logger.error(
            "Failed to playback %s: severity=%s message=%s cause=%s",
            exception.track.identifier,
            exception.severity,
            exception.message,
            exception.cause,
        )

        try:
            await self._recover(session, exception)
        except Exception:
            logger.exception("Failed to recover from exception guild=%s", session.guild_id)

        # The player is stopped with no track; advancing resumes from the queue head.
        try:
            await self.advance(session)
        except EmptyQueueOperation:
            logger.info("Nothing queued after playback failure guild=%s", session.guild_id)
        except Exception:
            logger.exception("Failed to skip after recovering from exception guild=%s", session.guild_id)

    async def _recover(self, session: PlaybackSession, exception: TrackException) -> QueueEntry | None:
        track = exception.track
        try:
            user_data = TrackUserData.from_track(track)
        except MetadataDecodeError as exc:
            logger.warning("Not searching alternatives for %s: %s", track.identifier, exc)
            await self._notify(
                session,
                messages.playback_error(track, exception.severity, exception.message, exception.cause),
            )
            return None

        alternatives = await self.matcher.find_alternatives(track, user_data.query)
        if not alternatives:
            await self._notify(
                session,
                messages.playback_error(track, exception.severity, exception.message, exception.cause),
            )
            return None

        best = alternatives[0].track
        entry = QueueEntry(user_data.attach(best), user_data.requester_id, user_data.query)
        logger.info("Queueing alternative track %s for %s", best.identifier, track.identifier)
        await session.queue.push_to_front(entry)
        await self._notify(
            session,
            messages.recovered_with_alternative(
                track,
                exception.message,
                exception.cause,
                alternatives,
                top=self.notify_top,
            ),
        )
        return entry

    async def _notify(self, session: PlaybackSession, embed: messages.Embed) -> None:
        try:
            await self.notifier.send_message(session.text_channel_id, embed=embed)
        except Exception:
            logger.exception("Failed to notify about exception guild=%s", session.guild_id)
