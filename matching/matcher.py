"""Find replacement tracks for a track that failed during playback."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from matching.scoring import EARLY_STOP_SCORE, ScoredCandidate, dedupe_candidates, score_candidate
from matching.title_guess import guess_queries
from providers.base import Provider
from providers.cache import SearchCache
from providers.search import QueryKind, TrackQuery, search_multiple
from providers.types import SearchEngine, Track

logger = logging.getLogger(__name__)

DEFAULT_ENGINES = (SearchEngine.DEEZER, SearchEngine.YOUTUBE, SearchEngine.SOUNDCLOUD)


class AlternativeMatcher:
    def __init__(
        self,
        provider: Provider,
        *,
        cache: SearchCache | None = None,
        engines: Iterable[SearchEngine] = DEFAULT_ENGINES,
        min_guess_confidence: float = 0.5,
        max_queries: int = 3,
        early_stop_score: float = EARLY_STOP_SCORE,
    ) -> None:
        self.provider = provider
        self.cache = cache
        self.engines = tuple(engines)
        self.min_guess_confidence = min_guess_confidence
        self.max_queries = max_queries
        self.early_stop_score = early_stop_score

    def candidate_queries(self, failed: Track, query: TrackQuery | None) -> list[str]:
        """Search strings to try, best first.

        A search-derived request is simply repeated; a direct URL/id request
        has its queries inferred from the failed track's metadata.
        """
        if query is not None and query.kind is QueryKind.SEARCH and query.term:
            return [query.term]
        guesses = guess_queries(failed.author, failed.title, failed.length)
        queries: list[str] = []
        for guess in guesses:
            if guess.confidence < self.min_guess_confidence:
                continue
            if guess.query not in queries:
                queries.append(guess.query)
            if len(queries) >= self.max_queries:
                break
        return queries

    async def _score_query(self, failed: Track, term: str) -> list[ScoredCandidate]:
        scored = []
        for engine, outcome in await search_multiple(self.provider, term, self.engines, self.cache):
            if isinstance(outcome, BaseException):
                continue
            for rank, track in enumerate(outcome):
                if track.same_info(failed):
                    continue
                scored.append(ScoredCandidate(score_candidate(track, failed, rank), track))
        return scored

    async def find_alternatives(self, failed: Track, query: TrackQuery | None = None) -> list[ScoredCandidate]:
        """Return replacement candidates sorted by descending score.

        Never raises for provider trouble: failing engines are skipped and an
        unexpected error ends the search with whatever was collected so far.
        """
        collected: list[ScoredCandidate] = []
        queries = self.candidate_queries(failed, query)
        logger.info(
            "Searching alternatives identifier=%s queries=%s",
            failed.identifier,
            queries,
        )
        for term in queries:
            try:
                collected.extend(await self._score_query(failed, term))
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Alternative search failed for query=%s", term)
                break
            best = max((c.score for c in collected), default=None)
            if best is not None and best >= self.early_stop_score:
                logger.debug("Early stop at query=%s best=%.3f", term, best)
                break

        ranked = dedupe_candidates(collected)
        if ranked:
            logger.info(
                "Found %d alternatives identifier=%s best=%.3f",
                len(ranked),
                failed.identifier,
                ranked[0].score,
            )
        return ranked
