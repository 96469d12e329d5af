"""Contracts for the collaborators the playback core drives but does not own."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from providers.types import Track


@dataclass(frozen=True)
class ConnectionInfo:
    guild_id: int
    channel_id: int
    endpoint: str = ""
    token: str = ""
    session_id: str = ""


class VoiceTransport(Protocol):
    async def join(self, guild_id: int, channel_id: int) -> ConnectionInfo:
        raise NotImplementedError

    async def leave(self, guild_id: int) -> None:
        raise NotImplementedError

    async def listener_count(self, guild_id: int, channel_id: int) -> int:
        """Number of members in the channel other than the bot itself."""
        raise NotImplementedError


class PlaybackEngine(Protocol):
    async def create_session(self, connection: ConnectionInfo) -> Any:
        raise NotImplementedError

    async def play(self, guild_id: int, track: Track) -> None:
        raise NotImplementedError

    async def stop(self, guild_id: int) -> None:
        raise NotImplementedError

    async def skip(self, guild_id: int) -> None:
        """End the current track; the engine holds no queue of its own."""
        raise NotImplementedError

    async def set_pause(self, guild_id: int, paused: bool) -> None:
        raise NotImplementedError

    async def set_position(self, guild_id: int, position_ms: int) -> None:
        raise NotImplementedError

    async def delete_session(self, guild_id: int) -> None:
        raise NotImplementedError


class Notifier(Protocol):
    async def send_message(
        self,
        channel_id: int,
        content: str | None = None,
        embed: dict[str, Any] | None = None,
    ) -> None:
        raise NotImplementedError
