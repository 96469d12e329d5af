"""Track records and the closed set of provider load outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Union


class SearchEngine(Enum):
    """Search backends a provider can be asked to query."""

    YOUTUBE = "youtube"
    YOUTUBE_MUSIC = "youtube_music"
    SOUNDCLOUD = "soundcloud"
    DEEZER = "deezer"
    SPOTIFY = "spotify"
    DEEZER_ISRC = "deezer_isrc"

    @property
    def prefix(self) -> str:
        return _SEARCH_PREFIXES[self]

    @classmethod
    def from_name(cls, name: str) -> "SearchEngine":
        try:
            return cls(str(name or "").strip().lower())
        except ValueError:
            raise ValueError(f"unknown search engine: {name!r}") from None

    @classmethod
    def from_prefix(cls, prefix: str) -> "SearchEngine | None":
        for engine, value in _SEARCH_PREFIXES.items():
            if value == prefix:
                return engine
        return None


_SEARCH_PREFIXES = {
    SearchEngine.YOUTUBE: "ytsearch",
    SearchEngine.YOUTUBE_MUSIC: "ytmsearch",
    SearchEngine.SOUNDCLOUD: "scsearch",
    SearchEngine.DEEZER: "dzsearch",
    SearchEngine.SPOTIFY: "spsearch",
    SearchEngine.DEEZER_ISRC: "dzisrc",
}


def build_query(term: str, engine: SearchEngine) -> str:
    """Return the provider identifier for searching ``term`` on ``engine``.

    Pure string formatting, e.g. ``build_query("Artist - Song", SearchEngine.DEEZER)``
    -> ``"dzsearch:Artist - Song"``.
    """
    term = (term or "").strip()
    if not term:
        raise ValueError("search term must not be empty")
    return f"{engine.prefix}:{term}"


@dataclass(frozen=True)
class Track:
    identifier: str
    title: str
    author: str
    length: int
    source_name: str
    uri: str | None = None
    artwork_url: str | None = None
    isrc: str | None = None
    encoded: str = ""
    user_data: Mapping[str, Any] | None = field(default=None, compare=False, repr=False)

    @property
    def key(self) -> str:
        """Identity used to de-duplicate tracks across providers."""
        return self.uri or self.identifier

    def same_info(self, other: "Track") -> bool:
        return (
            self.identifier == other.identifier
            and self.source_name == other.source_name
            and self.title == other.title
            and self.author == other.author
            and self.length == other.length
            and self.uri == other.uri
        )

    def with_user_data(self, user_data: Mapping[str, Any] | None) -> "Track":
        return replace(self, user_data=user_data)


@dataclass(frozen=True)
class PlaylistInfo:
    name: str
    selected_track: int = -1


@dataclass(frozen=True)
class TrackLoaded:
    track: Track


@dataclass(frozen=True)
class PlaylistLoaded:
    info: PlaylistInfo
    tracks: tuple[Track, ...]


@dataclass(frozen=True)
class SearchLoaded:
    tracks: tuple[Track, ...]


@dataclass(frozen=True)
class LoadEmpty:
    pass


@dataclass(frozen=True)
class LoadFailed:
    severity: str
    message: str
    cause: str


LoadResult = Union[TrackLoaded, PlaylistLoaded, SearchLoaded, LoadEmpty, LoadFailed]
