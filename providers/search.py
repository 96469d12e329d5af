"""Search fan-out and load-or-search helpers on top of a ``Provider``."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping

from providers.base import Provider, ProviderError, UnexpectedResultShape
from providers.cache import SearchCache
from providers.types import (
    LoadEmpty,
    LoadFailed,
    LoadResult,
    PlaylistLoaded,
    SearchEngine,
    SearchLoaded,
    Track,
    TrackLoaded,
    build_query,
)

logger = logging.getLogger(__name__)

_DIRECT_PREFIXES = ("http://", "https://", "mix:")


class QueryKind(Enum):
    DIRECT = "direct"
    SEARCH = "search"


def classify_query(text: str) -> QueryKind:
    """Tell explicit identifiers (URLs, ``mix:`` ids) apart from search text.

    ``"ytsearch:foo"`` style queries and bare words are searches.
    """
    text = (text or "").strip()
    if text.lower().startswith(_DIRECT_PREFIXES):
        return QueryKind.DIRECT
    return QueryKind.SEARCH


def split_search_prefix(text: str) -> tuple[SearchEngine | None, str]:
    """Split ``"dzsearch:term"`` into ``(SearchEngine.DEEZER, "term")``."""
    text = (text or "").strip()
    first = text.split(maxsplit=1)[0] if text else ""
    if ":" in first:
        prefix, _, rest = text.partition(":")
        engine = SearchEngine.from_prefix(prefix.strip().lower())
        if engine is not None:
            return engine, rest.strip()
    return None, text


@dataclass(frozen=True)
class TrackQuery:
    """The request a track was loaded from, kept for later recovery."""

    text: str
    engine: SearchEngine | None = None

    @property
    def kind(self) -> QueryKind:
        return classify_query(self.text)

    @property
    def term(self) -> str:
        _, term = split_search_prefix(self.text)
        return term

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "engine": self.engine.value if self.engine else None}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TrackQuery":
        text = payload.get("text")
        if not isinstance(text, str) or not text.strip():
            raise ValueError("query text missing")
        engine = payload.get("engine")
        return cls(text=text, engine=SearchEngine.from_name(engine) if engine else None)


async def search_single(
    provider: Provider,
    term: str,
    engine: SearchEngine,
    cache: SearchCache | None = None,
) -> list[Track]:
    """Search ``term`` on one engine.

    Raises ``ProviderError`` for upstream failures and ``UnexpectedResultShape``
    when the provider answers with anything but a result list.
    """
    query = build_query(term, engine)
    if cache is not None:
        cached = cache.get(query)
        if cached is not None:
            return list(cached)

    result = await provider.resolve(query)
    match result:
        case SearchLoaded(tracks=tracks):
            found = tuple(tracks)
        case LoadEmpty():
            found = ()
        case LoadFailed():
            raise ProviderError.from_result(result)
        case TrackLoaded() | PlaylistLoaded():
            raise UnexpectedResultShape("search results", result)
        case _:
            raise UnexpectedResultShape("search results", result)

    if cache is not None:
        cache.put(query, found)
    return list(found)


async def search_multiple(
    provider: Provider,
    term: str,
    engines: Iterable[SearchEngine],
    cache: SearchCache | None = None,
) -> list[tuple[SearchEngine, list[Track] | BaseException]]:
    """Search ``term`` on every engine concurrently.

    Each engine's outcome is returned next to it; failures are logged and
    returned as exception objects so siblings are unaffected.
    """
    engines = list(engines)
    outcomes = await asyncio.gather(
        *(search_single(provider, term, engine, cache) for engine in engines),
        return_exceptions=True,
    )
    results = []
    for engine, outcome in zip(engines, outcomes):
        if isinstance(outcome, BaseException):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            logger.error("While searching engine=%s term=%s: %s", engine.value, term, outcome)
        results.append((engine, outcome))
    return results


async def load_or_search(
    provider: Provider,
    text: str,
    default_engine: SearchEngine = SearchEngine.YOUTUBE,
) -> tuple[LoadResult, TrackQuery]:
    """Resolve a user request.

    URLs and ``mix:`` ids are loaded directly, prefixed searches go to their
    own engine, anything else is searched on ``default_engine``.
    """
    text = (text or "").strip()
    if not text:
        raise ValueError("query must not be empty")

    if classify_query(text) is QueryKind.DIRECT:
        result = await provider.resolve(text)
        return result, TrackQuery(text=text)

    engine, term = split_search_prefix(text)
    engine = engine or default_engine
    query = TrackQuery(text=term, engine=engine)
    result = await provider.resolve(build_query(term, engine))
    return result, query
