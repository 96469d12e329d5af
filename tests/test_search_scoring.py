import pytest

from matching.scoring import (
    BASE_SCORE,
    DURATION_PENALTY_MAX,
    ISRC_BONUS,
    ScoredCandidate,
    dedupe_candidates,
    duration_penalty,
    position_penalty,
    score_candidate,
)
from providers.types import Track


def _track(identifier="orig", *, length=180_000, source="youtube", isrc=None, uri=None, title="Song", author="Artist"):
    return Track(
        identifier=identifier,
        title=title,
        author=author,
        length=length,
        source_name=source,
        uri=uri,
        isrc=isrc,
    )


def test_duration_penalty_zero_within_tolerance() -> None:
    assert duration_penalty(0) == 0.0
    assert duration_penalty(0.3) == 0.0


def test_duration_penalty_non_decreasing_and_bounded() -> None:
    previous = 0.0
    for tenths in range(3, 2000):
        value = duration_penalty(tenths / 10)
        assert value >= previous
        assert value < DURATION_PENALTY_MAX
        previous = value
    assert duration_penalty(1) == pytest.approx(DURATION_PENALTY_MAX * 0.1)


def test_isrc_bonus_applied_once() -> None:
    original = _track(isrc="USABC1234567", source="deezer")
    with_isrc = _track("c1", isrc="USABC1234567", source="soundcloud")
    without_isrc = _track("c2", source="soundcloud")

    delta = score_candidate(with_isrc, original, 0) - score_candidate(without_isrc, original, 0)

    assert delta == pytest.approx(ISRC_BONUS)


def test_isrc_bonus_requires_both_sides() -> None:
    original = _track()
    candidate = _track("c1", isrc="USABC1234567", source="soundcloud")
    assert score_candidate(candidate, original, 0) == pytest.approx(BASE_SCORE)


def test_same_source_penalty_and_bias() -> None:
    original = _track(source="youtube")
    assert score_candidate(_track("a", source="youtube"), original, 0) == pytest.approx(BASE_SCORE - 3)
    assert score_candidate(_track("b", source="deezer"), original, 0) == pytest.approx(BASE_SCORE + 0.5)


def test_position_penalty_scales_with_source_noise() -> None:
    assert position_penalty(0, "soundcloud") == 0
    assert position_penalty(2, "deezer") == pytest.approx(1.0)
    assert position_penalty(2, "soundcloud") == pytest.approx(3.0)


def test_matching_isrc_outranks_same_source_long_version() -> None:
    original = _track(length=180_000, source="A", isrc="GBXYZ0000001")
    x = _track("x", length=181_000, source="B", isrc="GBXYZ0000001")
    y = _track("y", length=220_000, source="A")

    assert score_candidate(x, original, 0) > score_candidate(y, original, 0)


def test_dedupe_keeps_highest_score_per_uri() -> None:
    shared_low = _track("one", uri="https://example.test/a")
    shared_high = _track("two", uri="https://example.test/a")
    other = _track("three")
    ranked = dedupe_candidates(
        [
            ScoredCandidate(40.0, shared_low),
            ScoredCandidate(45.0, shared_high),
            ScoredCandidate(42.0, other),
        ]
    )

    assert [c.score for c in ranked] == [45.0, 42.0]
    assert ranked[0].track.identifier == "two"
