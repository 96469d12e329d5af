"""Provider abstraction: track lookups against external catalogs."""

from providers.base import Provider, ProviderError, UnexpectedResultShape
from providers.cache import SearchCache
from providers.search import (
    QueryKind,
    TrackQuery,
    classify_query,
    load_or_search,
    search_multiple,
    search_single,
)
from providers.types import (
    LoadEmpty,
    LoadFailed,
    LoadResult,
    PlaylistInfo,
    PlaylistLoaded,
    SearchEngine,
    SearchLoaded,
    Track,
    TrackLoaded,
    build_query,
)

__all__ = [
    "LoadEmpty",
    "LoadFailed",
    "LoadResult",
    "PlaylistInfo",
    "PlaylistLoaded",
    "Provider",
    "ProviderError",
    "QueryKind",
    "SearchCache",
    "SearchEngine",
    "SearchLoaded",
    "Track",
    "TrackLoaded",
    "TrackQuery",
    "UnexpectedResultShape",
    "build_query",
    "classify_query",
    "load_or_search",
    "search_multiple",
    "search_single",
]
