"""Data models for duplicate clusters."""

import secrets
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from dealdedupe.models import EntityType
from dealdedupe.utils import utc_now


class ClusterStatus(StrEnum):
    """Lifecycle status of a cluster.

    Attributes
    ----------
    ACTIVE : str
        Freshly detected, awaiting administration.
    MERGED : str
        Members have been merged.
    SPLIT : str
        Cluster was rejected and split apart.
    """

    ACTIVE = "active"
    MERGED = "merged"
    SPLIT = "split"


@dataclass(frozen=True)
class ClusterEdge:
    """A duplicate link found while building clusters.

    Attributes
    ----------
    source_id : str
        Record whose detection produced the link.
    target_id : str
        Matched record.
    confidence : float
        Match confidence.
    strategy : str
        Strategy that produced the kept match.
    """

    source_id: str
    target_id: str
    confidence: float
    strategy: str


@dataclass(frozen=True)
class ClusterSupport:
    """Edge statistics behind a cluster.

    Attributes
    ----------
    edge_count : int
        Directed detection links inside the cluster.
    mean_confidence : float
        Mean confidence of those links.
    min_confidence : float
        Weakest link confidence.
    strategies : dict[str, int]
        Link counts per strategy, sorted by name.
    """

    edge_count: int = 0
    mean_confidence: float = 0.0
    min_confidence: float = 0.0
    strategies: dict[str, int] = field(default_factory=dict)

    @staticmethod
    def from_edges(edges: Iterable[ClusterEdge]) -> "ClusterSupport":
        """Summarize a cluster's edges."""
        edge_list = list(edges)
        if not edge_list:
            return ClusterSupport()

        confidences = [edge.confidence for edge in edge_list]
        counts: dict[str, int] = {}
        for edge in edge_list:
            counts[edge.strategy] = counts.get(edge.strategy, 0) + 1

        return ClusterSupport(
            edge_count=len(edge_list),
            mean_confidence=sum(confidences) / len(confidences),
            min_confidence=min(confidences),
            strategies=dict(sorted(counts.items())),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "edge_count": self.edge_count,
            "mean_confidence": self.mean_confidence,
            "min_confidence": self.min_confidence,
            "strategies": dict(self.strategies),
        }


@dataclass(frozen=True)
class DuplicateCluster:
    """Group of records that transitively duplicate each other.

    Attributes
    ----------
    cluster_id : str
        Generated, unique identifier.
    cluster_key : str
        Deterministic key: sorted member ids joined by ``|``.
    entity_type : EntityType
        Kind of entities clustered.
    entity_ids : tuple[str, ...]
        Sorted member ids (at least two).
    confidence_score : float
        Cluster confidence. Currently the clustering edge threshold rather
        than a value derived from the edges; see ``support`` for those.
    created_at : datetime
        Creation time (UTC).
    status : ClusterStatus
        Lifecycle status.
    support : ClusterSupport
        Statistics of the edges that formed the cluster.
    """

    cluster_id: str
    cluster_key: str
    entity_type: EntityType
    entity_ids: tuple[str, ...]
    confidence_score: float
    created_at: datetime
    status: ClusterStatus = ClusterStatus.ACTIVE
    support: ClusterSupport = field(default_factory=ClusterSupport)

    @property
    def size(self) -> int:
        """Number of members."""
        return len(self.entity_ids)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "cluster_id": self.cluster_id,
            "cluster_key": self.cluster_key,
            "entity_type": self.entity_type.value,
            "entity_ids": list(self.entity_ids),
            "cluster_size": self.size,
            "confidence_score": self.confidence_score,
            "created_at": self.created_at.isoformat().replace("+00:00", "Z"),
            "status": self.status.value,
            "support": self.support.to_dict(),
        }


def compute_cluster_key(entity_ids: Iterable[str]) -> str:
    """Compute the deterministic cluster key.

    Parameters
    ----------
    entity_ids : Iterable[str]
        Member ids in any order.

    Returns
    -------
    str
        Sorted ids joined by ``|``.
    """
    return "|".join(sorted(entity_ids))


def generate_cluster_id(now: datetime | None = None) -> str:
    """Generate a unique cluster id.

    Returns
    -------
    str
        Id in format "cluster_{epoch_millis}_{random_hex}".
    """
    moment = now if now is not None else utc_now()
    return f"cluster_{int(moment.timestamp() * 1000)}_{secrets.token_hex(5)}"
