"""Infer ``(author, title)`` search guesses from noisy upload metadata."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass

_BRACKETED_SEGMENT_RE = re.compile(r"[\(\[\{][^)\]\}]*[\)\]\}]")
_BRACKET_NOISE_RE = re.compile(
    r"\b(official|audio|video|lyrics?|visuali[sz]er|hd|hq|4k|mv|m/v|explicit|clean|topic|remaster(?:ed)?)\b",
    re.IGNORECASE,
)
_FEAT_RE = re.compile(r"\s*[\(\[]?\b(?:feat\.?|ft\.?|featuring)\s[^\)\]]*[\)\]]?", re.IGNORECASE)
_TOPIC_SUFFIX_RE = re.compile(r"\s*-\s*topic\s*$", re.IGNORECASE)
_VEVO_SUFFIX_RE = re.compile(r"vevo$", re.IGNORECASE)
_OFFICIAL_SUFFIX_RE = re.compile(r"\s+\b(official(\s+channel)?)\s*$", re.IGNORECASE)
_PIPE_TAIL_RE = re.compile(r"\s*[|｜].*$")
_QUOTED_RE = re.compile(r'^(?P<author>.+?)\s+["“„](?P<title>.+?)["”“]')
_SEPARATORS = (" - ", " – ", " — ", " ~ ", " // ")
_WS_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

# Uploads longer than this are usually mixes or full albums.
_LONG_UPLOAD_MS = 15 * 60 * 1000
_SHORT_UPLOAD_MS = 30 * 1000


@dataclass(frozen=True)
class TitleGuess:
    author: str
    title: str
    confidence: float

    @property
    def query(self) -> str:
        if self.author:
            return f"{self.author} - {self.title}"
        return self.title


def _collapse(value: str) -> str:
    return _WS_RE.sub(" ", value).strip(" -–—~/|")


def _normalize_key(value: str) -> str:
    text = unicodedata.normalize("NFKC", value or "").lower()
    return _WS_RE.sub(" ", _NON_ALNUM_RE.sub(" ", text)).strip()


def clean_title(value: str) -> str:
    """Drop bracketed noise, featured-artist credits and ``| channel`` tails."""
    raw = unicodedata.normalize("NFKC", str(value or ""))
    raw = _PIPE_TAIL_RE.sub("", raw)

    def _replace(match: re.Match[str]) -> str:
        inner = match.group(0)[1:-1]
        if not inner.strip() or _BRACKET_NOISE_RE.search(inner):
            return " "
        return match.group(0)

    text = _BRACKETED_SEGMENT_RE.sub(_replace, raw)
    text = _FEAT_RE.sub(" ", text)
    return _collapse(text)


def clean_author(value: str) -> str:
    text = unicodedata.normalize("NFKC", str(value or "")).strip()
    text = _TOPIC_SUFFIX_RE.sub("", text)
    text = _VEVO_SUFFIX_RE.sub("", text)
    text = _OFFICIAL_SUFFIX_RE.sub("", text)
    return _collapse(text)


def is_topic_channel(author: str) -> bool:
    return bool(_TOPIC_SUFFIX_RE.search(author or ""))


def _split_on_separator(title: str) -> tuple[str, str] | None:
    for sep in _SEPARATORS:
        idx = title.find(sep)
        if idx > 0:
            left = title[:idx].strip()
            right = title[idx + len(sep):].strip()
            if left and right:
                return left, right
    return None


def _token_overlap(a: str, b: str) -> float:
    tokens_a = set(_normalize_key(a).split())
    tokens_b = set(_normalize_key(b).split())
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / len(tokens_a)


def _duration_factor(duration_ms: int | None) -> float:
    if not duration_ms or duration_ms <= 0:
        return 1.0
    if duration_ms > _LONG_UPLOAD_MS:
        return 0.8
    if duration_ms < _SHORT_UPLOAD_MS:
        return 0.8
    return 1.0


def guess_queries(author: str, title: str, duration_ms: int | None = None) -> list[TitleGuess]:
    """Return ranked ``(author, title)`` guesses with confidence in ``[0, 1]``.

    >>> guess_queries("Some Uploader", "Daft Punk - One More Time (Official Video)", 320000)[0]
    TitleGuess(author='Daft Punk', title='One More Time', confidence=0.9)
    """
    cleaned_title = clean_title(title)
    cleaned_author = clean_author(author)
    if not cleaned_title:
        return []

    raw: list[tuple[str, str, float]] = []
    split = _split_on_separator(cleaned_title)
    quoted = _QUOTED_RE.match(cleaned_title)

    if split is not None:
        left, right = split
        confidence = 0.95 if _token_overlap(left, cleaned_author) >= 0.5 else 0.9
        raw.append((left, right, confidence))
        raw.append((right, left, 0.35))
    elif quoted is not None:
        raw.append((quoted.group("author").strip(), quoted.group("title").strip(), 0.85))

    if cleaned_author:
        if is_topic_channel(author):
            uploader_confidence = 0.9
        elif split is None and quoted is None:
            uploader_confidence = 0.75
        else:
            uploader_confidence = 0.55
        # The uploader only ever stands in for the artist, never for part of the title.
        if split is not None:
            uploader_title = split[1]
        elif quoted is not None:
            uploader_title = quoted.group("title").strip()
        else:
            uploader_title = cleaned_title
        raw.append((cleaned_author, uploader_title, uploader_confidence))

    raw.append(("", cleaned_title, 0.45))

    factor = _duration_factor(duration_ms)
    best: dict[tuple[str, str], TitleGuess] = {}
    for guess_author, guess_title, confidence in raw:
        if not guess_title:
            continue
        key = (_normalize_key(guess_author), _normalize_key(guess_title))
        guess = TitleGuess(guess_author, guess_title, round(confidence * factor, 4))
        current = best.get(key)
        if current is None or guess.confidence > current.confidence:
            best[key] = guess

    return sorted(best.values(), key=lambda g: g.confidence, reverse=True)
