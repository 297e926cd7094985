"""Tests for match aggregation and the suggested-action policy."""

from collections.abc import Callable

import pytest

from dealdedupe.decision import (
    DetectionResult,
    SuggestedAction,
    aggregate_matches,
    build_result,
    suggest_action,
)
from dealdedupe.engine import DetectorConfig
from dealdedupe.matching import DuplicateStrategy, MatchCandidate
from dealdedupe.models import DealRecord


@pytest.fixture
def make_match(make_deal: Callable[..., DealRecord]) -> Callable[..., MatchCandidate]:
    """Factory for strategy matches."""

    def _factory(
        matched_id: str,
        confidence: float,
        strategy: DuplicateStrategy = DuplicateStrategy.MULTI_FACTOR,
    ) -> MatchCandidate:
        return MatchCandidate(
            matched_entity_id=matched_id,
            matched_entity=make_deal(matched_id),
            confidence=confidence,
            strategy=strategy,
            reasoning=f"{strategy} opinion",
        )

    return _factory


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_aggregate_keeps_highest_confidence_per_candidate(
    make_match: Callable[..., MatchCandidate],
) -> None:
    """Test two strategies reporting one candidate collapse to the best."""
    matches = [
        make_match("x", 0.80, DuplicateStrategy.FUZZY_NAME),
        make_match("x", 0.92, DuplicateStrategy.MULTI_FACTOR),
    ]

    kept = aggregate_matches(matches, threshold=0.5)

    assert len(kept) == 1
    assert kept[0].confidence == 0.92
    assert kept[0].strategy == DuplicateStrategy.MULTI_FACTOR


@pytest.mark.unit
def test_aggregate_ties_keep_first_strategy(make_match: Callable[..., MatchCandidate]) -> None:
    """Test equal confidence does not replace the earlier match."""
    matches = [
        make_match("x", 0.9, DuplicateStrategy.EXACT_MATCH),
        make_match("x", 0.9, DuplicateStrategy.MULTI_FACTOR),
    ]

    kept = aggregate_matches(matches, threshold=0.5)

    assert kept[0].strategy == DuplicateStrategy.EXACT_MATCH


@pytest.mark.unit
def test_aggregate_filters_inclusive_and_sorts_descending(
    make_match: Callable[..., MatchCandidate],
) -> None:
    """Test the threshold is inclusive and output is ranked."""
    matches = [
        make_match("low", 0.84),
        make_match("edge", 0.85),
        make_match("top", 0.99),
        make_match("mid", 0.90),
    ]

    kept = aggregate_matches(matches, threshold=0.85)

    assert [m.matched_entity_id for m in kept] == ["top", "mid", "edge"]


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    ("confidence", "expected"),
    [
        (1.0, SuggestedAction.AUTO_MERGE),
        (0.96, SuggestedAction.AUTO_MERGE),
        (0.95, SuggestedAction.AUTO_MERGE),
        (0.88, SuggestedAction.MANUAL_REVIEW),
        (0.85, SuggestedAction.MANUAL_REVIEW),
        (0.60, SuggestedAction.NO_ACTION),
        (0.0, SuggestedAction.NO_ACTION),
    ],
)
def test_suggest_action(confidence: float, expected: SuggestedAction) -> None:
    """Test confidence maps onto auto-merge, review or no action."""
    assert suggest_action(confidence, DetectorConfig()) == expected


@pytest.mark.unit
def test_build_result_without_matches() -> None:
    """Test an empty match list yields a non-duplicate verdict."""
    result = build_result([], DetectorConfig())

    assert result == DetectionResult.empty()
    assert result.is_duplicate is False
    assert result.suggested_action == SuggestedAction.NO_ACTION
    assert result.confidence == 0.0
    assert result.top_match is None


@pytest.mark.unit
def test_build_result_uses_top_match(make_match: Callable[..., MatchCandidate]) -> None:
    """Test verdict confidence and action follow the best match."""
    result = build_result([make_match("a", 0.88), make_match("b", 0.96)], DetectorConfig())

    assert result.is_duplicate is True
    assert result.confidence == 0.96
    assert result.suggested_action == SuggestedAction.AUTO_MERGE
    assert result.top_match is not None
    assert result.top_match.matched_entity_id == "b"


@pytest.mark.unit
def test_build_result_threshold_override(make_match: Callable[..., MatchCandidate]) -> None:
    """Test an explicit threshold, including 0.0, replaces the default."""
    matches = [make_match("weak", 0.6)]

    assert build_result(matches, DetectorConfig()).is_duplicate is False
    lowered = build_result(matches, DetectorConfig(), threshold=0.0)
    assert lowered.is_duplicate is True
    assert lowered.suggested_action == SuggestedAction.NO_ACTION


@pytest.mark.unit
def test_detection_result_to_dict(make_match: Callable[..., MatchCandidate]) -> None:
    """Test serialized verdicts omit matched record snapshots."""
    data = build_result([make_match("a", 0.9)], DetectorConfig()).to_dict()

    assert data["is_duplicate"] is True
    assert data["suggested_action"] == "manual_review"
    assert data["matches"][0]["similarity_score"] == 0.9
    assert "matched_entity" not in data["matches"][0]


@pytest.mark.unit
def test_match_candidate_rejects_out_of_range_confidence(
    make_deal: Callable[..., DealRecord],
) -> None:
    """Test confidence outside [0, 1] is rejected."""
    with pytest.raises(ValueError, match="confidence"):
        MatchCandidate(
            matched_entity_id="x",
            matched_entity=make_deal("x"),
            confidence=1.2,
            strategy=DuplicateStrategy.EXACT_MATCH,
        )
