"""Detection and cluster statistics."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from dealdedupe.clustering.models import ClusterStatus, DuplicateCluster
from dealdedupe.store.match_store import DETECTION_STATUSES, DetectionRecord
from dealdedupe.utils import utc_now

VERY_HIGH_CONFIDENCE = 0.95
HIGH_CONFIDENCE = 0.85


@dataclass(frozen=True)
class StrategyUsage:
    """Usage of one strategy among stored detections."""

    strategy: str
    usage_count: int
    avg_confidence: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "detection_strategy": self.strategy,
            "usage_count": self.usage_count,
            "avg_confidence": self.avg_confidence,
        }


@dataclass(frozen=True)
class DetectionStats:
    """Aggregate statistics for one entity type.

    Attributes
    ----------
    entity_type : str
        Entity kind.
    total_detections : int
        Stored pairs.
    status_counts : dict[str, int]
        Pairs per review status (every known status present).
    avg_confidence : float
        Mean confidence.
    very_high_confidence_count : int
        Pairs with confidence >= 0.95.
    high_confidence_count : int
        Pairs with confidence in [0.85, 0.95).
    """

    entity_type: str
    total_detections: int
    status_counts: dict[str, int]
    avg_confidence: float
    very_high_confidence_count: int
    high_confidence_count: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {
            "entity_type": self.entity_type,
            "total_detections": self.total_detections,
            "avg_confidence": self.avg_confidence,
            "very_high_confidence_count": self.very_high_confidence_count,
            "high_confidence_count": self.high_confidence_count,
        }
        for status, count in self.status_counts.items():
            data[f"{status}_count"] = count
        return data


@dataclass(frozen=True)
class DetectionSummary:
    """Detection statistics per entity type plus the strategy breakdown."""

    detection_stats: list[DetectionStats] = field(default_factory=list)
    strategy_breakdown: list[StrategyUsage] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "detection_stats": [s.to_dict() for s in self.detection_stats],
            "strategy_breakdown": [s.to_dict() for s in self.strategy_breakdown],
        }


def summarize_detections(
    rows: Iterable[DetectionRecord],
    entity_type: str | None = None,
    days: int | None = None,
    now: datetime | None = None,
) -> DetectionSummary:
    """Summarize stored detections.

    Parameters
    ----------
    rows : Iterable[DetectionRecord]
        Stored detection rows.
    entity_type : str | None, optional
        Only include this entity kind.
    days : int | None, optional
        Only include rows detected within the last *days* days.
    now : datetime | None, optional
        Reference time for *days*, by default the current UTC time.

    Returns
    -------
    DetectionSummary
        Per-entity-type statistics sorted by entity type, and per-strategy
        usage ordered by usage count (then name).
    """
    selected = list(rows)
    if entity_type is not None:
        selected = [r for r in selected if r.entity_type == entity_type]
    if days is not None:
        cutoff = (now if now is not None else utc_now()) - timedelta(days=days)
        selected = [r for r in selected if r.detected_at >= cutoff]

    by_type: dict[str, list[DetectionRecord]] = {}
    for row in selected:
        by_type.setdefault(row.entity_type, []).append(row)

    stats: list[DetectionStats] = []
    for kind in sorted(by_type):
        group = by_type[kind]
        confidences = [r.confidence_level for r in group]
        status_counts = dict.fromkeys(DETECTION_STATUSES, 0)
        for row in group:
            status_counts[row.status] = status_counts.get(row.status, 0) + 1

        stats.append(
            DetectionStats(
                entity_type=kind,
                total_detections=len(group),
                status_counts=status_counts,
                avg_confidence=sum(confidences) / len(confidences),
                very_high_confidence_count=sum(1 for c in confidences if c >= VERY_HIGH_CONFIDENCE),
                high_confidence_count=sum(
                    1 for c in confidences if HIGH_CONFIDENCE <= c < VERY_HIGH_CONFIDENCE
                ),
            )
        )

    by_strategy: dict[str, list[float]] = {}
    for row in selected:
        by_strategy.setdefault(row.detection_strategy, []).append(row.confidence_level)

    breakdown = [
        StrategyUsage(
            strategy=name,
            usage_count=len(values),
            avg_confidence=sum(values) / len(values),
        )
        for name, values in by_strategy.items()
    ]
    breakdown.sort(key=lambda u: (-u.usage_count, u.strategy))

    return DetectionSummary(detection_stats=stats, strategy_breakdown=breakdown)


def summarize_clusters(clusters: Iterable[DuplicateCluster]) -> dict[str, dict[str, Any]]:
    """Summarize clusters per entity type.

    Returns
    -------
    dict[str, dict[str, Any]]
        Entity type → total clusters, average and max size, active and
        merged counts.
    """
    by_type: dict[str, list[DuplicateCluster]] = {}
    for cluster in clusters:
        by_type.setdefault(cluster.entity_type.value, []).append(cluster)

    summary: dict[str, dict[str, Any]] = {}
    for kind in sorted(by_type):
        group = by_type[kind]
        sizes = [c.size for c in group]
        summary[kind] = {
            "total_clusters": len(group),
            "avg_cluster_size": sum(sizes) / len(sizes),
            "max_cluster_size": max(sizes),
            "active_clusters": sum(1 for c in group if c.status == ClusterStatus.ACTIVE),
            "merged_clusters": sum(1 for c in group if c.status == ClusterStatus.MERGED),
        }
    return summary
