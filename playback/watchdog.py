"""Idle-session watchdog: leaves the voice channel once nobody is listening."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from playback.interfaces import VoiceTransport
from playback.session import PlaybackSession, SessionRegistry

logger = logging.getLogger(__name__)


def on_alone_tick(
    session: PlaybackSession,
    listener_count: int,
    threshold_seconds: float,
    now: float | None = None,
) -> bool:
    """Apply one watchdog tick and return True when the session must be torn down."""
    if listener_count > 0:
        if session.alone_since is not None:
            logger.debug("Resetting alone marker guild=%s", session.guild_id)
        session.reset_alone()
        return False
    if session.mark_alone(now):
        logger.debug("Marking session as alone guild=%s", session.guild_id)
        return False
    return session.is_alone_for(threshold_seconds, now)


class SessionWatchdog:
    """One recurring check per session.

    The task ends on its own once ``registry`` no longer holds the session,
    or right after it has requested teardown.
    """

    def __init__(
        self,
        guild_id: int,
        registry: SessionRegistry,
        transport: VoiceTransport,
        teardown: Callable[[int], Awaitable[None]],
        *,
        threshold_seconds: float = 60.0,
        grace_seconds: float = 10.0,
        poll_seconds: float = 3.0,
    ) -> None:
        self.guild_id = guild_id
        self.registry = registry
        self.transport = transport
        self.teardown = teardown
        self.threshold_seconds = threshold_seconds
        self.grace_seconds = grace_seconds
        self.poll_seconds = poll_seconds

    async def tick(self) -> bool:
        """Run one check; returns False once the watchdog should stop."""
        session = self.registry.get(self.guild_id)
        if session is None:
            logger.debug("Watchdog exiting, session gone guild=%s", self.guild_id)
            return False
        try:
            listeners = await self.transport.listener_count(session.guild_id, session.voice_channel_id)
        except Exception:
            logger.exception("Watchdog could not read channel members guild=%s", self.guild_id)
            return True
        if not on_alone_tick(session, listeners, self.threshold_seconds):
            return True
        logger.info(
            "Leaving guild=%s after %.0fs without listeners",
            self.guild_id,
            self.threshold_seconds,
        )
        try:
            await self.teardown(self.guild_id)
        except Exception:
            logger.exception("Watchdog teardown failed guild=%s", self.guild_id)
        return False

    async def run(self) -> None:
        await asyncio.sleep(self.grace_seconds)
        while await self.tick():
            await asyncio.sleep(self.poll_seconds)
