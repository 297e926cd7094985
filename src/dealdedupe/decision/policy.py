"""Match aggregation and action policy.

Strategies may report the same candidate several times; this module keeps
one match per candidate, filters by confidence, and maps the best
confidence to a suggested action.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from dealdedupe.decision.models import DetectionResult, SuggestedAction
from dealdedupe.matching.models import MatchCandidate

if TYPE_CHECKING:
    from dealdedupe.engine.config import DetectorConfig


def aggregate_matches(matches: Iterable[MatchCandidate], threshold: float) -> list[MatchCandidate]:
    """Deduplicate matches by matched id and filter by confidence.

    Parameters
    ----------
    matches : Iterable[MatchCandidate]
        Raw matches in strategy execution order.
    threshold : float
        Minimum confidence kept (inclusive).

    Returns
    -------
    list[MatchCandidate]
        One match per matched id, by descending confidence.

    Notes
    -----
    A later match replaces an earlier one only with strictly higher
    confidence, so ties keep the strategy that ran first. The sort is
    stable, which keeps equal confidences in first-seen order.
    """
    best: dict[str, MatchCandidate] = {}
    for match in matches:
        current = best.get(match.matched_entity_id)
        if current is None or match.confidence > current.confidence:
            best[match.matched_entity_id] = match

    kept = [match for match in best.values() if match.confidence >= threshold]
    kept.sort(key=lambda m: m.confidence, reverse=True)
    return kept


def suggest_action(confidence: float, config: DetectorConfig) -> SuggestedAction:
    """Map a confidence to a suggested action.

    Parameters
    ----------
    confidence : float
        Top match confidence.
    config : DetectorConfig
        Supplies ``auto_merge_threshold`` and ``high_confidence_threshold``.

    Returns
    -------
    SuggestedAction
        AUTO_MERGE, MANUAL_REVIEW or NO_ACTION.
    """
    if confidence >= config.auto_merge_threshold:
        return SuggestedAction.AUTO_MERGE
    if confidence >= config.high_confidence_threshold:
        return SuggestedAction.MANUAL_REVIEW
    return SuggestedAction.NO_ACTION


def build_result(
    matches: Iterable[MatchCandidate], config: DetectorConfig, threshold: float | None = None
) -> DetectionResult:
    """Aggregate raw matches into a detection verdict.

    Parameters
    ----------
    matches : Iterable[MatchCandidate]
        Raw matches from all strategies.
    config : DetectorConfig
        Detector configuration.
    threshold : float | None, optional
        Match threshold; defaults to ``config.minimum_match_threshold``.
        An explicit 0.0 is honoured.

    Returns
    -------
    DetectionResult
        Final verdict.
    """
    effective = threshold if threshold is not None else config.minimum_match_threshold
    kept = aggregate_matches(matches, effective)
    if not kept:
        return DetectionResult.empty()

    top = kept[0].confidence
    return DetectionResult(
        is_duplicate=True,
        matches=kept,
        suggested_action=suggest_action(top, config),
        confidence=top,
    )
