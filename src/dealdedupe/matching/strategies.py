"""Duplicate detection strategies.

Each strategy is a pure function ``(record, candidates, config)`` returning
one ``MatchCandidate`` per candidate it considers a duplicate. Strategies
are independent; the decision layer reconciles their opinions.

Candidates are expected to carry an id; the detector drops those that don't
before calling any strategy.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from dealdedupe.matching.models import DuplicateStrategy, MatchCandidate
from dealdedupe.models import DealRecord
from dealdedupe.normalize import normalize_company_name, normalize_string
from dealdedupe.scoring.comparators import (
    customer_name_similarity,
    date_similarity,
    deal_name_similarity,
    fuzzy_string_similarity,
    value_similarity,
)
from dealdedupe.scoring.weighted import Factor, score_pair

if TYPE_CHECKING:
    from dealdedupe.engine.config import DetectorConfig

StrategyFn = Callable[[DealRecord, Sequence[DealRecord], "DetectorConfig"], list[MatchCandidate]]

# Maximum value difference still treated as an exact match
EXACT_VALUE_EPSILON = 1.0

CUSTOMER_PAIR_THRESHOLD = 0.85
VENDOR_CUSTOMER_THRESHOLD = 0.80
VENDOR_BONUS = 0.3


def detect_exact_match(
    record: DealRecord, candidates: Sequence[DealRecord], config: DetectorConfig
) -> list[MatchCandidate]:
    """Match candidates with identical normalized deal and customer names.

    When both records carry a value, the values must also agree to within
    one currency unit. Blank names never match.
    """
    deal_name = normalize_string(record.deal_name)
    customer = normalize_company_name(record.customer_name)
    if not deal_name or not customer:
        return []

    matches: list[MatchCandidate] = []
    for existing in candidates:
        if normalize_string(existing.deal_name) != deal_name:
            continue
        if normalize_company_name(existing.customer_name) != customer:
            continue

        value_a, value_b = record.deal_value, existing.deal_value
        both_valued = bool(value_a) and bool(value_b)
        if value_a and value_b and abs(value_a - value_b) >= EXACT_VALUE_EPSILON:
            continue

        factors = {Factor.DEAL_NAME.value: 1.0, Factor.CUSTOMER_NAME.value: 1.0}
        if both_valued:
            factors[Factor.DEAL_VALUE.value] = 1.0

        matches.append(
            MatchCandidate(
                matched_entity_id=str(existing.id),
                matched_entity=existing,
                confidence=1.0,
                strategy=DuplicateStrategy.EXACT_MATCH,
                similarity_factors=factors,
                reasoning="Exact match on deal name and customer name",
            )
        )
    return matches


def detect_fuzzy_name_match(
    record: DealRecord, candidates: Sequence[DealRecord], config: DetectorConfig
) -> list[MatchCandidate]:
    """Match candidates whose deal and customer names are both fuzzily close.

    Both fuzzy scores must reach ``fuzzy_medium_threshold`` and their
    average ``fuzzy_high_threshold``; confidence is the average / 100.
    """
    matches: list[MatchCandidate] = []
    for existing in candidates:
        name_score = fuzzy_string_similarity(record.deal_name, existing.deal_name)
        customer_score = fuzzy_string_similarity(record.customer_name, existing.customer_name)
        average = (name_score + customer_score) / 2

        if (
            name_score >= config.fuzzy_medium_threshold
            and customer_score >= config.fuzzy_medium_threshold
            and average >= config.fuzzy_high_threshold
        ):
            matches.append(
                MatchCandidate(
                    matched_entity_id=str(existing.id),
                    matched_entity=existing,
                    confidence=min(1.0, average / 100),
                    strategy=DuplicateStrategy.FUZZY_NAME,
                    similarity_factors={
                        Factor.DEAL_NAME.value: name_score / 100,
                        Factor.CUSTOMER_NAME.value: customer_score / 100,
                    },
                    reasoning=(
                        f"Fuzzy match: deal name {name_score:.1f}%, "
                        f"customer {customer_score:.1f}%"
                    ),
                )
            )
    return matches


def detect_customer_value_match(
    record: DealRecord, candidates: Sequence[DealRecord], config: DetectorConfig
) -> list[MatchCandidate]:
    """Match candidates with a similar customer and a close deal value."""
    if not record.deal_value:
        return []

    matches: list[MatchCandidate] = []
    for existing in candidates:
        if not existing.deal_value:
            continue

        customer_sim = customer_name_similarity(record.customer_name, existing.customer_name)
        value_sim = value_similarity(
            record.deal_value, existing.deal_value, config.value_tolerance_percent
        )
        if customer_sim < CUSTOMER_PAIR_THRESHOLD or value_sim < CUSTOMER_PAIR_THRESHOLD:
            continue

        matches.append(
            MatchCandidate(
                matched_entity_id=str(existing.id),
                matched_entity=existing,
                confidence=min(1.0, customer_sim * 0.6 + value_sim * 0.4),
                strategy=DuplicateStrategy.CUSTOMER_VALUE,
                similarity_factors={
                    Factor.CUSTOMER_NAME.value: customer_sim,
                    Factor.DEAL_VALUE.value: value_sim,
                },
                reasoning=(
                    f"Same customer ({customer_sim * 100:.1f}%) with similar deal value "
                    f"(${record.deal_value:,.0f} vs ${existing.deal_value:,.0f})"
                ),
            )
        )
    return matches


def detect_customer_date_match(
    record: DealRecord, candidates: Sequence[DealRecord], config: DetectorConfig
) -> list[MatchCandidate]:
    """Match candidates with a similar customer and a close close-date."""
    if record.close_date is None:
        return []

    matches: list[MatchCandidate] = []
    for existing in candidates:
        if existing.close_date is None:
            continue

        customer_sim = customer_name_similarity(record.customer_name, existing.customer_name)
        date_sim = date_similarity(
            record.close_date, existing.close_date, config.date_tolerance_days
        )
        if customer_sim < CUSTOMER_PAIR_THRESHOLD or date_sim < CUSTOMER_PAIR_THRESHOLD:
            continue

        matches.append(
            MatchCandidate(
                matched_entity_id=str(existing.id),
                matched_entity=existing,
                confidence=min(1.0, customer_sim * 0.6 + date_sim * 0.4),
                strategy=DuplicateStrategy.CUSTOMER_DATE,
                similarity_factors={
                    Factor.CUSTOMER_NAME.value: customer_sim,
                    Factor.CLOSE_DATE.value: date_sim,
                },
                reasoning=f"Same customer ({customer_sim * 100:.1f}%) with similar close date",
            )
        )
    return matches


def detect_vendor_customer_match(
    record: DealRecord, candidates: Sequence[DealRecord], config: DetectorConfig
) -> list[MatchCandidate]:
    """Match candidates registered with the same vendor for a similar customer.

    Confidence = min(1, 0.3 + 0.5 · customer + 0.2 · deal name).
    """
    if not record.vendor_id:
        return []

    matches: list[MatchCandidate] = []
    for existing in candidates:
        if existing.vendor_id != record.vendor_id:
            continue

        customer_sim = customer_name_similarity(record.customer_name, existing.customer_name)
        if customer_sim < VENDOR_CUSTOMER_THRESHOLD:
            continue

        name_sim = deal_name_similarity(record.deal_name, existing.deal_name)
        matches.append(
            MatchCandidate(
                matched_entity_id=str(existing.id),
                matched_entity=existing,
                confidence=min(1.0, VENDOR_BONUS + customer_sim * 0.5 + name_sim * 0.2),
                strategy=DuplicateStrategy.VENDOR_CUSTOMER,
                similarity_factors={
                    Factor.VENDOR_MATCH.value: 1.0,
                    Factor.CUSTOMER_NAME.value: customer_sim,
                    Factor.DEAL_NAME.value: name_sim,
                },
                reasoning=f"Same vendor with similar customer ({customer_sim * 100:.1f}%)",
            )
        )
    return matches


def detect_multi_factor_match(
    record: DealRecord, candidates: Sequence[DealRecord], config: DetectorConfig
) -> list[MatchCandidate]:
    """Match candidates whose weighted overall score is at least medium."""
    matches: list[MatchCandidate] = []
    for existing in candidates:
        score = score_pair(
            record,
            existing,
            config.weights,
            value_tolerance_percent=config.value_tolerance_percent,
            date_tolerance_days=config.date_tolerance_days,
        )
        if score.overall < config.medium_confidence_threshold:
            continue

        matches.append(
            MatchCandidate(
                matched_entity_id=str(existing.id),
                matched_entity=existing,
                confidence=min(1.0, score.overall),
                strategy=DuplicateStrategy.MULTI_FACTOR,
                similarity_factors=dict(score.factors),
                reasoning=(
                    f"Multi-factor match with {score.overall * 100:.1f}% overall similarity"
                ),
            )
        )
    return matches


# Registry in canonical execution order
STRATEGY_REGISTRY: dict[DuplicateStrategy, StrategyFn] = {
    DuplicateStrategy.EXACT_MATCH: detect_exact_match,
    DuplicateStrategy.FUZZY_NAME: detect_fuzzy_name_match,
    DuplicateStrategy.CUSTOMER_VALUE: detect_customer_value_match,
    DuplicateStrategy.CUSTOMER_DATE: detect_customer_date_match,
    DuplicateStrategy.VENDOR_CUSTOMER: detect_vendor_customer_match,
    DuplicateStrategy.MULTI_FACTOR: detect_multi_factor_match,
}


def resolve_strategies(
    strategies: Sequence[DuplicateStrategy | str] | None = None,
) -> list[DuplicateStrategy]:
    """Resolve requested strategies into canonical execution order.

    Parameters
    ----------
    strategies : Sequence[DuplicateStrategy | str] | None, optional
        Strategies to enable. None enables all of them.

    Returns
    -------
    list[DuplicateStrategy]
        Enabled strategies, deduplicated and in registry order.

    Raises
    ------
    ValueError
        If a strategy name is unknown.
    """
    if strategies is None:
        return list(STRATEGY_REGISTRY)

    requested: set[DuplicateStrategy] = set()
    for name in strategies:
        try:
            requested.add(DuplicateStrategy(name))
        except ValueError as e:
            available = ", ".join(s.value for s in DuplicateStrategy)
            raise ValueError(f"Unknown strategy: {name!r}. Available: {available}") from e

    return [strategy for strategy in STRATEGY_REGISTRY if strategy in requested]


def run_strategies(
    record: DealRecord,
    candidates: Sequence[DealRecord],
    config: DetectorConfig,
    strategies: Sequence[DuplicateStrategy | str] | None = None,
) -> list[MatchCandidate]:
    """Run enabled strategies in canonical order and concatenate their matches."""
    matches: list[MatchCandidate] = []
    for strategy in resolve_strategies(strategies):
        matches.extend(STRATEGY_REGISTRY[strategy](record, candidates, config))
    return matches
