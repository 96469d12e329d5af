import asyncio

from matching.matcher import AlternativeMatcher
from providers.cache import SearchCache
from providers.search import TrackQuery
from providers.types import LoadEmpty, LoadFailed, SearchEngine, SearchLoaded, Track


def _track(identifier, *, source="youtube", length=200_000, isrc=None, uri=None, title="Song", author="Artist"):
    return Track(
        identifier=identifier,
        title=title,
        author=author,
        length=length,
        source_name=source,
        uri=uri or f"https://{source}.test/{identifier}",
        isrc=isrc,
    )


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


def _matcher(provider, **kwargs):
    kwargs.setdefault("engines", (SearchEngine.DEEZER, SearchEngine.YOUTUBE))
    return AlternativeMatcher(provider, **kwargs)


def test_search_derived_query_is_reused_verbatim() -> None:
    matcher = _matcher(_FakeProvider({}))
    failed = _track("orig", title="Something Else - Entirely")

    queries = matcher.candidate_queries(failed, TrackQuery(text="my song", engine=SearchEngine.YOUTUBE))

    assert queries == ["my song"]


def test_direct_query_uses_confident_title_guesses() -> None:
    matcher = _matcher(_FakeProvider({}))
    failed = _track("orig", title="Daft Punk - One More Time (Official Video)", author="Uploader", length=320_000)

    queries = matcher.candidate_queries(failed, TrackQuery(text="https://youtube.com/watch?v=orig"))

    assert queries[0] == "Daft Punk - One More Time"
    assert 1 <= len(queries) <= 3
    assert "One More Time - Daft Punk" not in queries


def test_failing_provider_is_dropped_and_others_scored() -> None:
    provider = _FakeProvider(
        {
            "dzsearch:song": LoadFailed("fault", "down", "timeout"),
            "ytsearch:song": SearchLoaded((_track("a"), _track("b"), _track("c"))),
        }
    )
    matcher = _matcher(provider)
    failed = _track("orig", source="soundcloud")

    ranked = asyncio.run(matcher.find_alternatives(failed, TrackQuery(text="song", engine=SearchEngine.YOUTUBE)))

    assert [c.track.identifier for c in ranked] == ["a", "b", "c"]
    assert ranked[0].score > ranked[1].score > ranked[2].score


def test_raising_provider_does_not_escape() -> None:
    provider = _FakeProvider(
        {
            "dzsearch:song": RuntimeError("socket closed"),
            "ytsearch:song": SearchLoaded((_track("a"),)),
        }
    )
    ranked = asyncio.run(_matcher(provider).find_alternatives(_track("orig"), TrackQuery(text="song")))
    assert [c.track.identifier for c in ranked] == ["a"]


def test_original_track_is_excluded() -> None:
    failed = _track("orig", source="youtube")
    provider = _FakeProvider({"ytsearch:song": SearchLoaded((failed, _track("other")))})

    ranked = asyncio.run(_matcher(provider).find_alternatives(failed, TrackQuery(text="song")))

    assert [c.track.identifier for c in ranked] == ["other"]


def test_isrc_match_ranks_above_same_source_long_version() -> None:
    failed = _track("orig", source="youtube", length=180_000, isrc="GBXYZ0000001")
    x = _track("x", source="deezer", length=181_000, isrc="GBXYZ0000001")
    y = _track("y", source="youtube", length=220_000)
    provider = _FakeProvider(
        {
            "dzsearch:song": SearchLoaded((x,)),
            "ytsearch:song": SearchLoaded((y,)),
        }
    )

    ranked = asyncio.run(_matcher(provider).find_alternatives(failed, TrackQuery(text="song")))

    assert [c.track.identifier for c in ranked] == ["x", "y"]


def test_duplicates_across_engines_keep_best_score() -> None:
    shared_uri = "https://shared.test/track"
    provider = _FakeProvider(
        {
            "dzsearch:song": SearchLoaded(
                (
                    _track("d0", source="deezer"),
                    _track("d1", source="deezer"),
                    _track("dup", source="deezer", uri=shared_uri),
                )
            ),
            "ytsearch:song": SearchLoaded((_track("dup", source="youtube", uri=shared_uri),)),
        }
    )
    failed = _track("orig", source="soundcloud")

    ranked = asyncio.run(_matcher(provider).find_alternatives(failed, TrackQuery(text="song")))

    dupes = [c for c in ranked if c.track.uri == shared_uri]
    assert len(dupes) == 1
    # Rank 0 on youtube scores 50.0, rank 2 on deezer 49.5.
    assert dupes[0].track.source_name == "youtube"
    assert len(ranked) == 3


def test_early_stop_after_good_candidate() -> None:
    failed = _track("orig", title="Artist - Song", author="Uploader", source="soundcloud")
    good = _track("good", source="deezer", length=200_000)
    provider = _FakeProvider({"dzsearch:Artist - Song": SearchLoaded((good,))})
    matcher = _matcher(provider)

    ranked = asyncio.run(matcher.find_alternatives(failed, TrackQuery(text="https://soundcloud.com/x/y")))

    assert ranked[0].track.identifier == "good"
    assert all(":Artist - Song" in call for call in provider.calls)


def test_poor_result_still_ends_the_search() -> None:
    failed = _track("orig", title="Artist - Song", author="Uploader", source="soundcloud", length=200_000)
    poor = _track("poor", source="youtube", length=400_000)
    provider = _FakeProvider({"ytsearch:Artist - Song": SearchLoaded((poor,))})

    ranked = asyncio.run(_matcher(provider).find_alternatives(failed, TrackQuery(text="https://soundcloud.com/x/y")))

    assert [c.track.identifier for c in ranked] == ["poor"]
    assert ranked[0].score < 45
    assert {call.split(":", 1)[1] for call in provider.calls} == {"Artist - Song"}


def test_next_guess_is_searched_only_after_empty_results() -> None:
    failed = _track("orig", title="Artist - Song", author="Uploader", source="soundcloud", length=200_000)
    found = _track("found", source="youtube", length=200_000)
    provider = _FakeProvider({"ytsearch:Uploader - Song": SearchLoaded((found,))})

    ranked = asyncio.run(_matcher(provider).find_alternatives(failed, TrackQuery(text="https://soundcloud.com/x/y")))

    assert [c.track.identifier for c in ranked] == ["found"]
    terms = [call.split(":", 1)[1] for call in provider.calls]
    assert terms[:2] == ["Artist - Song", "Artist - Song"]
    assert set(terms) == {"Artist - Song", "Uploader - Song"}


def test_custom_threshold_keeps_searching() -> None:
    failed = _track("orig", title="Artist - Song", author="Uploader", source="soundcloud", length=200_000)
    poor = _track("poor", source="youtube", length=400_000)
    provider = _FakeProvider({"ytsearch:Artist - Song": SearchLoaded((poor,))})
    matcher = _matcher(provider, early_stop_score=45.0)

    asyncio.run(matcher.find_alternatives(failed, TrackQuery(text="https://soundcloud.com/x/y")))

    assert {call.split(":", 1)[1] for call in provider.calls} == {"Artist - Song", "Uploader - Song"}


def test_no_results_returns_empty_list() -> None:
    ranked = asyncio.run(_matcher(_FakeProvider({})).find_alternatives(_track("orig"), TrackQuery(text="song")))
    assert ranked == []


def test_results_are_served_from_cache() -> None:
    provider = _FakeProvider({"ytsearch:song": SearchLoaded((_track("a"),))})
    matcher = _matcher(provider, cache=SearchCache())

    asyncio.run(matcher.find_alternatives(_track("orig"), TrackQuery(text="song")))
    asyncio.run(matcher.find_alternatives(_track("orig"), TrackQuery(text="song")))

    assert provider.calls.count("ytsearch:song") == 1
