"""Data models for detection verdicts."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from dealdedupe.matching.models import MatchCandidate


class SuggestedAction(StrEnum):
    """Suggested handling of a detected duplicate.

    Attributes
    ----------
    AUTO_MERGE : str
        Confidence high enough to merge without review.
    MANUAL_REVIEW : str
        Likely duplicate; a human should decide.
    NO_ACTION : str
        Not confident enough to act.
    """

    AUTO_MERGE = "auto_merge"
    MANUAL_REVIEW = "manual_review"
    NO_ACTION = "no_action"


@dataclass(frozen=True)
class DetectionResult:
    """Verdict for one record against its candidate pool.

    Attributes
    ----------
    is_duplicate : bool
        True when at least one match survived the threshold.
    matches : list[MatchCandidate]
        One match per matched id, by descending confidence.
    suggested_action : SuggestedAction
        Action suggested for the top match.
    confidence : float
        Highest match confidence, 0.0 without matches.
    """

    is_duplicate: bool
    matches: list[MatchCandidate] = field(default_factory=list)
    suggested_action: SuggestedAction = SuggestedAction.NO_ACTION
    confidence: float = 0.0

    @property
    def top_match(self) -> MatchCandidate | None:
        """Highest-confidence match, if any."""
        return self.matches[0] if self.matches else None

    @staticmethod
    def empty() -> "DetectionResult":
        """Return the verdict for a record with no matches."""
        return DetectionResult(is_duplicate=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "is_duplicate": self.is_duplicate,
            "suggested_action": str(self.suggested_action),
            "confidence": self.confidence,
            "matches": [match.to_dict() for match in self.matches],
        }
