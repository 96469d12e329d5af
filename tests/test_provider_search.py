import asyncio

import pytest

from providers.base import ProviderError, UnexpectedResultShape
from providers.cache import SearchCache
from providers.search import (
    QueryKind,
    TrackQuery,
    classify_query,
    load_or_search,
    search_multiple,
    search_single,
    split_search_prefix,
)
from providers.types import (
    LoadEmpty,
    LoadFailed,
    PlaylistInfo,
    PlaylistLoaded,
    SearchEngine,
    SearchLoaded,
    Track,
    TrackLoaded,
    build_query,
)


def _track(identifier, source="youtube"):
    return Track(identifier=identifier, title="Song", author="Artist", length=200_000, source_name=source)


class _FakeProvider:
    def __init__(self, results):
        self.results = results
        self.calls = []

    async def resolve(self, query):
        self.calls.append(query)
        result = self.results.get(query, LoadEmpty())
        if isinstance(result, Exception):
            raise result
        return result


def test_build_query_per_engine() -> None:
    assert build_query("Artist - Song", SearchEngine.DEEZER) == "dzsearch:Artist - Song"
    assert build_query(" song ", SearchEngine.SOUNDCLOUD) == "scsearch:song"
    assert build_query("USABC1234567", SearchEngine.DEEZER_ISRC) == "dzisrc:USABC1234567"


def test_build_query_rejects_empty_term() -> None:
    with pytest.raises(ValueError):
        build_query("   ", SearchEngine.YOUTUBE)


def test_classify_query() -> None:
    assert classify_query("https://youtube.com/watch?v=abc") is QueryKind.DIRECT
    assert classify_query("mix:youtube:abc") is QueryKind.DIRECT
    assert classify_query("ytsearch:some song") is QueryKind.SEARCH
    assert classify_query("some song") is QueryKind.SEARCH


def test_split_search_prefix_only_knows_engine_prefixes() -> None:
    assert split_search_prefix("dzsearch: Song") == (SearchEngine.DEEZER, "Song")
    assert split_search_prefix("Artist: Song") == (None, "Artist: Song")


def test_track_query_round_trips_through_dict() -> None:
    query = TrackQuery(text="Song", engine=SearchEngine.YOUTUBE)
    assert TrackQuery.from_dict(query.to_dict()) == query
    assert TrackQuery(text="ytsearch:Song").term == "Song"


def test_search_single_returns_tracks_and_caches() -> None:
    provider = _FakeProvider({"ytsearch:song": SearchLoaded((_track("a"), _track("b")))})
    cache = SearchCache()

    first = asyncio.run(search_single(provider, "song", SearchEngine.YOUTUBE, cache))
    second = asyncio.run(search_single(provider, "song", SearchEngine.YOUTUBE, cache))

    assert [t.identifier for t in first] == ["a", "b"]
    assert second == first
    assert provider.calls == ["ytsearch:song"]


def test_search_single_empty_result() -> None:
    provider = _FakeProvider({})
    assert asyncio.run(search_single(provider, "song", SearchEngine.YOUTUBE)) == []


def test_search_single_wraps_load_failure_verbatim() -> None:
    provider = _FakeProvider({"ytsearch:song": LoadFailed("common", "blocked", "HTTP 429")})

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(search_single(provider, "song", SearchEngine.YOUTUBE))

    assert excinfo.value.severity == "common"
    assert excinfo.value.message == "blocked"
    assert excinfo.value.cause == "HTTP 429"


def test_search_single_rejects_playlist_outcome() -> None:
    playlist = PlaylistLoaded(PlaylistInfo("mix"), (_track("a"),))
    provider = _FakeProvider({"ytsearch:song": playlist})

    with pytest.raises(UnexpectedResultShape):
        asyncio.run(search_single(provider, "song", SearchEngine.YOUTUBE))


def test_search_single_does_not_cache_failures() -> None:
    provider = _FakeProvider({"ytsearch:song": LoadFailed("fault", "down", "")})
    cache = SearchCache()
    with pytest.raises(ProviderError):
        asyncio.run(search_single(provider, "song", SearchEngine.YOUTUBE, cache))
    assert len(cache) == 0


def test_search_multiple_isolates_failing_engine() -> None:
    provider = _FakeProvider(
        {
            "dzsearch:song": LoadFailed("fault", "down", "timeout"),
            "ytsearch:song": SearchLoaded((_track("a"), _track("b"), _track("c"))),
        }
    )

    outcomes = asyncio.run(search_multiple(provider, "song", [SearchEngine.DEEZER, SearchEngine.YOUTUBE]))

    assert outcomes[0][0] is SearchEngine.DEEZER
    assert isinstance(outcomes[0][1], ProviderError)
    assert [t.identifier for t in outcomes[1][1]] == ["a", "b", "c"]


def test_load_or_search_direct_url() -> None:
    url = "https://youtube.com/watch?v=abc"
    provider = _FakeProvider({url: TrackLoaded(_track("abc"))})

    result, query = asyncio.run(load_or_search(provider, url))

    assert isinstance(result, TrackLoaded)
    assert query == TrackQuery(text=url)
    assert query.kind is QueryKind.DIRECT


def test_load_or_search_bare_text_uses_default_engine() -> None:
    provider = _FakeProvider({"scsearch:song": SearchLoaded((_track("a"),))})

    result, query = asyncio.run(load_or_search(provider, "song", SearchEngine.SOUNDCLOUD))

    assert isinstance(result, SearchLoaded)
    assert query == TrackQuery(text="song", engine=SearchEngine.SOUNDCLOUD)


def test_load_or_search_honours_explicit_prefix() -> None:
    provider = _FakeProvider({"dzsearch:song": SearchLoaded(())})

    _, query = asyncio.run(load_or_search(provider, "dzsearch:song"))

    assert provider.calls == ["dzsearch:song"]
    assert query.engine is SearchEngine.DEEZER
