"""Match aggregation and suggested-action policy."""

from dealdedupe.decision.models import DetectionResult, SuggestedAction
from dealdedupe.decision.policy import aggregate_matches, build_result, suggest_action

__all__ = [
    "DetectionResult",
    "SuggestedAction",
    "aggregate_matches",
    "build_result",
    "suggest_action",
]
