"""Deterministic scoring of replacement candidates against a failed track."""

from __future__ import annotations

from typing import NamedTuple

from providers.types import Track

BASE_SCORE = 50.0
ISRC_BONUS = 20.0
SAME_SOURCE_PENALTY = 3.0

# Saturating duration penalty: K * (1 - r^delta_seconds).
DURATION_PENALTY_MAX = 20.0
DURATION_PENALTY_RATE = 0.9
DURATION_TOLERANCE_SEC = 0.3

POSITION_PENALTY_STEP = 0.5

# Stop searching further guesses once the best candidate scores at least this much.
EARLY_STOP_SCORE = -5.0

_SOURCE_BIAS = {
    "deezer": 0.5,
}

# Expected result noise per source; rank penalties grow faster for noisier sources.
_POSITION_MULTIPLIERS = {
    "deezer": 1.0,
    "youtube_music": 1.5,
    "youtube": 2.0,
    "spotify": 2.0,
    "soundcloud": 3.0,
}
_DEFAULT_POSITION_MULTIPLIER = 2.0


class ScoredCandidate(NamedTuple):
    score: float
    track: Track


def source_bias(source: str) -> float:
    return _SOURCE_BIAS.get(str(source or "").lower(), 0.0)


def position_multiplier(source: str) -> float:
    return _POSITION_MULTIPLIERS.get(str(source or "").lower(), _DEFAULT_POSITION_MULTIPLIER)


def duration_penalty(delta_sec: float) -> float:
    delta_sec = abs(float(delta_sec))
    if delta_sec <= DURATION_TOLERANCE_SEC:
        return 0.0
    return DURATION_PENALTY_MAX * (1.0 - DURATION_PENALTY_RATE ** delta_sec)


def position_penalty(rank: int, source: str) -> float:
    return max(0, int(rank)) * position_multiplier(source) * POSITION_PENALTY_STEP


def isrc_matches(candidate: Track, original: Track) -> bool:
    return bool(candidate.isrc and original.isrc and candidate.isrc.strip().upper() == original.isrc.strip().upper())


def score_candidate(candidate: Track, original: Track, rank: int) -> float:
    """Score ``candidate`` at result position ``rank`` (0-based) against ``original``."""
    score = BASE_SCORE
    if isrc_matches(candidate, original):
        score += ISRC_BONUS
    if candidate.source_name == original.source_name:
        score -= SAME_SOURCE_PENALTY
    score += source_bias(candidate.source_name)
    delta_sec = abs(candidate.length - original.length) / 1000.0
    score -= duration_penalty(delta_sec)
    score -= position_penalty(rank, candidate.source_name)
    return score


def dedupe_candidates(candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
    """Keep the best-scoring candidate per ``uri or identifier``, sorted by score."""
    best: dict[str, ScoredCandidate] = {}
    for candidate in candidates:
        key = candidate.track.key
        current = best.get(key)
        if current is None or candidate.score > current.score:
            best[key] = candidate
    return sorted(best.values(), key=lambda c: c.score, reverse=True)
