import asyncio
import logging
from urllib.parse import urlparse

from yt_dlp import YoutubeDL

from providers.types import (
    LoadEmpty,
    LoadFailed,
    PlaylistInfo,
    PlaylistLoaded,
    SearchEngine,
    SearchLoaded,
    Track,
    TrackLoaded,
)

logger = logging.getLogger(__name__)

# yt-dlp search extractors keyed by the engine prefix they stand in for.
_YTDLP_SEARCH_PREFIXES = {
    SearchEngine.YOUTUBE.prefix: ("ytsearch", "youtube"),
    SearchEngine.YOUTUBE_MUSIC.prefix: ("ytsearch", "youtube"),
    SearchEngine.SOUNDCLOUD.prefix: ("scsearch", "soundcloud"),
}


def _is_http_url(value):
    if not value or not isinstance(value, str):
        return False
    try:
        return urlparse(value).scheme in ("http", "https")
    except ValueError:
        return False


def _source_from_extractor(entry, fallback):
    extractor = str(entry.get("extractor_key") or entry.get("ie_key") or entry.get("extractor") or "").lower()
    if "soundcloud" in extractor:
        return "soundcloud"
    if "youtube" in extractor:
        return "youtube"
    return fallback


def track_from_entry(entry, source):
    url = entry.get("webpage_url") or entry.get("url")
    if not _is_http_url(url):
        # Search extractors expose internal ids (e.g. "ytsearch5") which are not playable.
        return None
    title = entry.get("track") or entry.get("title")
    if not title:
        return None
    isrc = entry.get("isrc")
    if not isrc:
        isrcs = entry.get("isrcs")
        if isinstance(isrcs, list) and isrcs:
            isrc = isrcs[0]
    duration = entry.get("duration")
    try:
        length = int(float(duration) * 1000) if duration is not None else 0
    except (TypeError, ValueError):
        length = 0
    return Track(
        identifier=str(entry.get("id") or url),
        title=str(title),
        author=str(entry.get("artist") or entry.get("uploader") or entry.get("channel") or ""),
        length=length,
        source_name=_source_from_extractor(entry, source),
        uri=url,
        artwork_url=entry.get("thumbnail"),
        isrc=isrc,
    )


class YtDlpProvider:
    """Resolve URLs and YouTube/SoundCloud searches locally with yt-dlp."""

    def __init__(self, *, limit=5, socket_timeout=10):
        self.limit = limit
        self.socket_timeout = socket_timeout

    def _options(self, flat):
        return {
            "skip_download": True,
            "quiet": True,
            "no_warnings": True,
            "noplaylist": False,
            "cachedir": False,
            "extract_flat": "in_playlist" if flat else False,
            "socket_timeout": self.socket_timeout,
        }

    def _extract(self, target, flat):
        with YoutubeDL(self._options(flat)) as ydl:
            return ydl.extract_info(target, download=False)

    def _translate(self, query):
        """Map an engine-prefixed query to a yt-dlp target.

        Returns ``(target, source, is_search)`` or ``None`` for unsupported engines.
        """
        if _is_http_url(query):
            return query, "http", False
        prefix, sep, term = query.partition(":")
        if not sep:
            return None
        mapped = _YTDLP_SEARCH_PREFIXES.get(prefix)
        if mapped is None:
            return None
        extractor, source = mapped
        return f"{extractor}{self.limit}:{term.strip()}", source, True

    async def resolve(self, query):
        translated = self._translate(query)
        if translated is None:
            return LoadFailed(
                severity="common",
                message="Query not supported by the yt-dlp backend",
                cause=query,
            )
        target, source, is_search = translated
        try:
            info = await asyncio.to_thread(self._extract, target, is_search)
        except Exception as exc:
            logger.warning("yt-dlp lookup failed query=%s error=%s", query, exc)
            return LoadFailed(severity="suspicious", message="yt-dlp extraction failed", cause=str(exc))

        if not isinstance(info, dict):
            return LoadEmpty()

        entries = info.get("entries")
        if entries is None:
            track = track_from_entry(info, source)
            return TrackLoaded(track) if track else LoadEmpty()

        tracks = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            track = track_from_entry(entry, source)
            if track is not None:
                tracks.append(track)
        if is_search:
            return SearchLoaded(tuple(tracks)) if tracks else LoadEmpty()
        if not tracks:
            return LoadEmpty()
        return PlaylistLoaded(PlaylistInfo(name=str(info.get("title") or "")), tuple(tracks))
