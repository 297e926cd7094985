"""Weighted multi-factor similarity between two deal records.

Every factor is always computed; the weights decide how much each one
contributes to the overall score.
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any

from dealdedupe.models import DealRecord
from dealdedupe.scoring.comparators import (
    DEFAULT_DATE_TOLERANCE_DAYS,
    DEFAULT_VALUE_TOLERANCE_PERCENT,
    contact_similarity,
    customer_name_similarity,
    date_similarity,
    deal_name_similarity,
    product_similarity,
    value_similarity,
)


class Factor(StrEnum):
    """Named similarity factors.

    Attributes
    ----------
    DEAL_NAME : str
        Fuzzy deal-name similarity.
    CUSTOMER_NAME : str
        Fuzzy customer-name similarity (legal suffixes stripped).
    VENDOR_MATCH : str
        1.0 when both records share a vendor id.
    DEAL_VALUE : str
        Value closeness within tolerance.
    CLOSE_DATE : str
        Close-date closeness within tolerance.
    PRODUCTS : str
        Jaccard overlap of product names.
    CONTACTS : str
        Jaccard overlap of contact emails.
    """

    DEAL_NAME = "deal_name"
    CUSTOMER_NAME = "customer_name"
    VENDOR_MATCH = "vendor_match"
    DEAL_VALUE = "deal_value"
    CLOSE_DATE = "close_date"
    PRODUCTS = "products"
    CONTACTS = "contacts"


@dataclass(frozen=True)
class FieldWeights:
    """Relative weight of each factor in the overall score.

    Defaults sum to 1.0, but any non-negative weights are accepted since the
    score is normalized by their sum.
    """

    deal_name: float = 0.25
    customer_name: float = 0.25
    vendor_match: float = 0.15
    deal_value: float = 0.15
    close_date: float = 0.10
    products: float = 0.05
    contacts: float = 0.05

    def __post_init__(self) -> None:
        """Validate weights."""
        for name, weight in asdict(self).items():
            if weight < 0:
                raise ValueError(f"weight for {name} must be non-negative, got {weight}")

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary keyed by factor name."""
        return asdict(self)


@dataclass(frozen=True)
class SimilarityScore:
    """Result of a weighted pairwise comparison.

    Attributes
    ----------
    overall : float
        Weighted average of the factors (0.0-1.0).
    factors : dict[str, float]
        Per-factor similarity keyed by ``Factor`` name.
    weight : float
        Sum of the weights applied.
    """

    overall: float
    factors: dict[str, float]
    weight: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"overall": self.overall, "factors": dict(self.factors), "weight": self.weight}


def compute_factors(
    record_a: DealRecord,
    record_b: DealRecord,
    value_tolerance_percent: float = DEFAULT_VALUE_TOLERANCE_PERCENT,
    date_tolerance_days: float = DEFAULT_DATE_TOLERANCE_DAYS,
) -> dict[str, float]:
    """Compute every similarity factor for a record pair.

    Parameters
    ----------
    record_a : DealRecord
        First record.
    record_b : DealRecord
        Second record.
    value_tolerance_percent : float, optional
        Tolerance passed to ``value_similarity``.
    date_tolerance_days : float, optional
        Tolerance passed to ``date_similarity``.

    Returns
    -------
    dict[str, float]
        Factor name → similarity in [0, 1].
    """
    same_vendor = bool(record_a.vendor_id) and record_a.vendor_id == record_b.vendor_id
    return {
        Factor.DEAL_NAME: deal_name_similarity(record_a.deal_name, record_b.deal_name),
        Factor.CUSTOMER_NAME: customer_name_similarity(
            record_a.customer_name, record_b.customer_name
        ),
        Factor.VENDOR_MATCH: 1.0 if same_vendor else 0.0,
        Factor.DEAL_VALUE: value_similarity(
            record_a.deal_value, record_b.deal_value, value_tolerance_percent
        ),
        Factor.CLOSE_DATE: date_similarity(
            record_a.close_date, record_b.close_date, date_tolerance_days
        ),
        Factor.PRODUCTS: product_similarity(record_a.products, record_b.products),
        Factor.CONTACTS: contact_similarity(record_a.contacts, record_b.contacts),
    }


def score_pair(
    record_a: DealRecord,
    record_b: DealRecord,
    weights: FieldWeights | Mapping[str, float] | None = None,
    value_tolerance_percent: float = DEFAULT_VALUE_TOLERANCE_PERCENT,
    date_tolerance_days: float = DEFAULT_DATE_TOLERANCE_DAYS,
) -> SimilarityScore:
    """Score a record pair as the weighted average of all factors.

    Parameters
    ----------
    record_a : DealRecord
        First record.
    record_b : DealRecord
        Second record.
    weights : FieldWeights | Mapping[str, float] | None, optional
        Factor weights. A partial mapping only weighs the factors it names;
        None uses the default ``FieldWeights``.
    value_tolerance_percent : float, optional
        Tolerance passed to ``value_similarity``.
    date_tolerance_days : float, optional
        Tolerance passed to ``date_similarity``.

    Returns
    -------
    SimilarityScore
        Overall score, all factors, and total weight. Overall is 0.0 when
        the weights sum to zero.

    Notes
    -----
    overall = Σ(factor · weight) / Σ(weight)
    """
    if weights is None:
        weights = FieldWeights()
    weight_map = weights.to_dict() if isinstance(weights, FieldWeights) else dict(weights)

    factors = compute_factors(record_a, record_b, value_tolerance_percent, date_tolerance_days)

    weighted_sum = 0.0
    total_weight = 0.0
    for factor, similarity in factors.items():
        weight = weight_map.get(factor, 0.0)
        weighted_sum += similarity * weight
        total_weight += weight

    overall = weighted_sum / total_weight if total_weight > 0 else 0.0
    return SimilarityScore(
        overall=overall,
        factors={str(name): value for name, value in factors.items()},
        weight=total_weight,
    )
