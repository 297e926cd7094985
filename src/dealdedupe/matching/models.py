"""Data models for strategy matches."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from dealdedupe.models import DealRecord


class DuplicateStrategy(StrEnum):
    """Detection strategies, in canonical execution order.

    Attributes
    ----------
    EXACT_MATCH : str
        Normalized name and customer identical.
    FUZZY_NAME : str
        Fuzzy name and customer similarity.
    CUSTOMER_VALUE : str
        Similar customer with a close deal value.
    CUSTOMER_DATE : str
        Similar customer with a close close-date.
    VENDOR_CUSTOMER : str
        Same vendor with a similar customer.
    MULTI_FACTOR : str
        Weighted score across all factors.
    """

    EXACT_MATCH = "exact_match"
    FUZZY_NAME = "fuzzy_name"
    CUSTOMER_VALUE = "customer_value"
    CUSTOMER_DATE = "customer_date"
    VENDOR_CUSTOMER = "vendor_customer"
    MULTI_FACTOR = "multi_factor"


@dataclass(frozen=True)
class MatchCandidate:
    """A strategy's opinion that a candidate duplicates the record.

    Attributes
    ----------
    matched_entity_id : str
        Id of the matched candidate.
    matched_entity : DealRecord
        Snapshot of the matched candidate.
    confidence : float
        Match confidence in [0, 1].
    strategy : DuplicateStrategy
        Strategy that produced the match.
    similarity_factors : dict[str, float]
        Factors the strategy looked at.
    reasoning : str
        Short human-readable explanation.
    """

    matched_entity_id: str
    matched_entity: DealRecord
    confidence: float
    strategy: DuplicateStrategy
    similarity_factors: dict[str, float] = field(default_factory=dict)
    reasoning: str = ""

    def __post_init__(self) -> None:
        """Validate confidence."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")

    @property
    def similarity_score(self) -> float:
        """Alias of ``confidence``."""
        return self.confidence

    def to_dict(self, include_entity: bool = False) -> dict[str, Any]:
        """Convert to dictionary.

        Parameters
        ----------
        include_entity : bool, optional
            Include the full matched record snapshot, by default False.

        Returns
        -------
        dict[str, Any]
            Dictionary representation.
        """
        data: dict[str, Any] = {
            "matched_entity_id": self.matched_entity_id,
            "similarity_score": self.similarity_score,
            "confidence": self.confidence,
            "strategy": str(self.strategy),
            "similarity_factors": dict(self.similarity_factors),
            "reasoning": self.reasoning,
        }
        if include_entity:
            data["matched_entity"] = self.matched_entity.to_dict()
        return data
