import asyncio

from providers.types import LoadFailed, PlaylistLoaded, SearchLoaded, TrackLoaded
from providers.ytdlp import YtDlpProvider, track_from_entry


def _entry(video_id, **extra):
    entry = {
        "id": video_id,
        "title": f"Title {video_id}",
        "uploader": "Uploader",
        "duration": 200.5,
        "webpage_url": f"https://www.youtube.com/watch?v={video_id}",
        "extractor_key": "Youtube",
    }
    entry.update(extra)
    return entry


def test_track_from_entry_normalizes_fields() -> None:
    track = track_from_entry(_entry("abc", isrcs=["USABC1234567"], artist="Artist"), "youtube")

    assert track.identifier == "abc"
    assert track.author == "Artist"
    assert track.length == 200_500
    assert track.isrc == "USABC1234567"
    assert track.source_name == "youtube"


def test_track_from_entry_skips_internal_urls() -> None:
    assert track_from_entry({"id": "x", "title": "t", "url": "ytsearch5:foo"}, "youtube") is None


def test_unsupported_engine_is_a_load_failure() -> None:
    result = asyncio.run(YtDlpProvider().resolve("dzsearch:song"))
    assert isinstance(result, LoadFailed)


def test_search_translates_prefix(monkeypatch) -> None:
    provider = YtDlpProvider(limit=3)
    seen = []

    def _extract(target, flat):
        seen.append((target, flat))
        return {"entries": [_entry("a"), _entry("b"), None]}

    monkeypatch.setattr(provider, "_extract", _extract)
    result = asyncio.run(provider.resolve("scsearch:some song"))

    assert seen == [("scsearch3:some song", True)]
    assert isinstance(result, SearchLoaded)
    assert [t.identifier for t in result.tracks] == ["a", "b"]


def test_url_loads_single_track_or_playlist(monkeypatch) -> None:
    provider = YtDlpProvider()
    monkeypatch.setattr(provider, "_extract", lambda target, flat: _entry("solo"))
    assert isinstance(asyncio.run(provider.resolve("https://youtu.be/solo")), TrackLoaded)

    monkeypatch.setattr(
        provider,
        "_extract",
        lambda target, flat: {"title": "Mix", "entries": [_entry("a"), _entry("b")]},
    )
    result = asyncio.run(provider.resolve("https://youtube.com/playlist?list=x"))
    assert isinstance(result, PlaylistLoaded)
    assert result.info.name == "Mix"


def test_extraction_error_is_a_load_failure(monkeypatch) -> None:
    provider = YtDlpProvider()

    def _boom(target, flat):
        raise RuntimeError("unavailable")

    monkeypatch.setattr(provider, "_extract", _boom)
    result = asyncio.run(provider.resolve("ytsearch:song"))

    assert isinstance(result, LoadFailed)
    assert result.cause == "unavailable"
