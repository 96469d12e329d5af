from matching.matcher import AlternativeMatcher
from matching.scoring import ScoredCandidate, score_candidate
from matching.title_guess import TitleGuess, guess_queries

__all__ = [
    "AlternativeMatcher",
    "ScoredCandidate",
    "TitleGuess",
    "guess_queries",
    "score_candidate",
]
