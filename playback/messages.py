"""Structured notification payloads (embed-like dicts) for the chat layer."""

from __future__ import annotations

from typing import Sequence, TypedDict

from matching.scoring import ScoredCandidate
from playback.queue import QueueEntry
from providers.types import Track


class EmbedField(TypedDict):
    name: str
    value: str
    inline: bool


class Embed(TypedDict, total=False):
    author: str
    title: str
    description: str
    url: str
    image: str
    color: int
    fields: list[EmbedField]


_SOURCE_COLORS = {
    "youtube": 0xFF0000,
    "deezer": 0xA238FF,
    "soundcloud": 0xF15E22,
    "spotify": 0x1ED760,
}
_DEFAULT_COLOR = 0x23272A
_ERROR_COLOR = 0xF1C40F

_MAX_QUEUE_LINES = 15


def format_millis(millis: int) -> str:
    """``format_millis(3_723_000)`` -> ``"01:02:03"``; hours are omitted when zero."""
    millis = max(0, int(millis or 0))
    hours = millis // 1000 // 3600
    minutes = millis // 1000 // 60 % 60
    seconds = millis // 1000 % 60
    prefix = f"{hours:02d}:" if hours else ""
    return f"{prefix}{minutes:02d}:{seconds:02d}"


def source_color(source: str) -> int:
    return _SOURCE_COLORS.get(source, _DEFAULT_COLOR)


def _escape(value: str) -> str:
    return str(value or "").replace("*", "\\*")


def added_to_queue(track: Track) -> Embed:
    embed: Embed = {
        "title": track.title,
        "description": "Added to queue",
        "author": track.author,
        "color": source_color(track.source_name),
    }
    if track.uri:
        embed["url"] = track.uri
    if track.artwork_url:
        embed["image"] = track.artwork_url
    return embed


def _cause_block(track: Track, message: str, cause: str) -> str:
    return f"```identifier: {track.identifier}\nmessage: {message}\ncause: {cause}```"


def recovered_with_alternative(
    track: Track,
    message: str,
    cause: str,
    alternatives: Sequence[ScoredCandidate],
    top: int = 3,
) -> Embed:
    best = alternatives[0].track
    listing = "\n".join(
        f"{score:07.3f} [{format_millis(t.length)}] {t.author} - {t.title}"
        for score, t in alternatives[:top]
    )
    embed = added_to_queue(track)
    embed["description"] = (
        "Error during playback, using alternative track:\n"
        f" **{best.source_name} [{format_millis(best.length)}] {_escape(best.author)} - {_escape(best.title)}**"
    )
    embed["fields"] = [
        {"name": "Cause", "value": _cause_block(track, message, cause), "inline": False},
        {"name": "Top-scoring alternatives", "value": f"```\n{listing}```", "inline": False},
    ]
    return embed


def playback_error(track: Track, severity: str, message: str, cause: str) -> Embed:
    return {
        "author": "Error during Playback",
        "color": _ERROR_COLOR,
        "title": f"{track.author} - {track.title}",
        "description": f"{severity} exception during playback:\n{_cause_block(track, message, cause)}",
    }


def search_results(results: Sequence[Sequence[Track]]) -> Embed:
    lines = []
    index = 0
    for group in results:
        for track in group:
            index += 1
            lines.append(
                f"{track.source_name} **{index}**. `[{format_millis(track.length)}]` {track.author} - {track.title}"
            )
        lines.append("")
    return {"description": "\n".join(lines).rstrip()}


def queue_status(current: QueueEntry | None, position_ms: int, entries: Sequence[QueueEntry]) -> list[Embed]:
    """Now-playing and queue listing, truncated to the first few entries."""
    if current is not None:
        info = current.track
        player: Embed = {
            "title": info.title,
            "author": info.author,
            "description": f"{format_millis(position_ms)} / {format_millis(info.length)}",
            "color": source_color(info.source_name),
        }
        if info.uri:
            player["url"] = info.uri
    else:
        player = {"title": "Nothing playing", "description": "-", "color": _DEFAULT_COLOR}

    width = 2 if len(entries) >= 10 else 1
    lines = [
        f"{entry.track.source_name} **{i:0>{width}}.** `[{format_millis(entry.track.length)}]` "
        f"{entry.track.author} - {entry.track.title}"
        for i, entry in enumerate(entries[:_MAX_QUEUE_LINES], start=1)
    ]
    if len(entries) > _MAX_QUEUE_LINES:
        lines.append(f"*... {len(entries) - _MAX_QUEUE_LINES} more*")
    queue: Embed = {"title": "Queue", "description": "\n".join(lines) if lines else "The queue is empty"}
    return [player, queue]
