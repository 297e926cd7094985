"""Build duplicate clusters from pairwise detections."""

from collections.abc import Iterable, Sequence

from dealdedupe.clustering.models import (
    ClusterEdge,
    ClusterStatus,
    ClusterSupport,
    DuplicateCluster,
    compute_cluster_key,
    generate_cluster_id,
)
from dealdedupe.clustering.union_find import UnionFind
from dealdedupe.engine.detector import DuplicateDetector
from dealdedupe.models import DealRecord, EntityType
from dealdedupe.utils import utc_now


def collect_edges(detector: DuplicateDetector, records: Sequence[DealRecord]) -> list[ClusterEdge]:
    """Detect every record against the others at the high-confidence threshold.

    Parameters
    ----------
    detector : DuplicateDetector
        Detector supplying config and strategies.
    records : Sequence[DealRecord]
        Records to cluster. Records without an id are skipped.

    Returns
    -------
    list[ClusterEdge]
        One edge per (record, kept match).
    """
    threshold = detector.config.high_confidence_threshold
    edges: list[ClusterEdge] = []

    for record in records:
        if record.id is None:
            continue
        result = detector.detect(record, candidates=records, threshold=threshold)
        for match in result.matches:
            edges.append(
                ClusterEdge(
                    source_id=record.id,
                    target_id=match.matched_entity_id,
                    confidence=match.confidence,
                    strategy=str(match.strategy),
                )
            )
    return edges


def build_adjacency(edges: Iterable[ClusterEdge]) -> dict[str, set[str]]:
    """Build an undirected adjacency map from detection edges.

    A link found in either direction connects both records.
    """
    adjacency: dict[str, set[str]] = {}
    for edge in edges:
        adjacency.setdefault(edge.source_id, set()).add(edge.target_id)
        adjacency.setdefault(edge.target_id, set()).add(edge.source_id)
    return adjacency


def connected_components(adjacency: dict[str, set[str]]) -> list[tuple[str, ...]]:
    """Extract connected components of size two or more.

    Parameters
    ----------
    adjacency : dict[str, set[str]]
        Undirected adjacency map.

    Returns
    -------
    list[tuple[str, ...]]
        Components as sorted id tuples, sorted by their cluster key.
    """
    uf = UnionFind()
    for node, neighbours in adjacency.items():
        uf.make_set(node)
        for neighbour in neighbours:
            uf.union(node, neighbour)

    components = [tuple(sorted(c)) for c in uf.get_components() if len(c) >= 2]
    components.sort(key=compute_cluster_key)
    return components


def cluster_records(
    detector: DuplicateDetector,
    records: Sequence[DealRecord],
    entity_type: EntityType = EntityType.DEAL,
) -> list[DuplicateCluster]:
    """Group transitively duplicated records into clusters.

    Parameters
    ----------
    detector : DuplicateDetector
        Detector used for the pairwise detections.
    records : Sequence[DealRecord]
        Records to cluster; each is compared against all the others.
    entity_type : EntityType, optional
        Tag carried by the clusters, by default DEAL.

    Returns
    -------
    list[DuplicateCluster]
        Active clusters sorted by cluster key.

    Notes
    -----
    Cost is quadratic in the number of records. Every detection finishes
    before components are extracted.
    """
    detector.audit("set_stage", "cluster")
    detector.audit("clustering_started", records=len(records), entity_type=entity_type.value)

    edges = collect_edges(detector, records)
    components = connected_components(build_adjacency(edges))

    created_at = utc_now()
    clusters: list[DuplicateCluster] = []
    for members in components:
        member_set = frozenset(members)
        component_edges = [
            e for e in edges if e.source_id in member_set and e.target_id in member_set
        ]
        clusters.append(
            DuplicateCluster(
                cluster_id=generate_cluster_id(created_at),
                cluster_key=compute_cluster_key(members),
                entity_type=entity_type,
                entity_ids=members,
                confidence_score=detector.config.high_confidence_threshold,
                created_at=created_at,
                status=ClusterStatus.ACTIVE,
                support=ClusterSupport.from_edges(component_edges),
            )
        )

    detector.audit(
        "clustering_finished",
        clusters=len(clusters),
        clustered_records=sum(c.size for c in clusters),
        edges=len(edges),
    )
    detector.audit("set_stage", None)

    return clusters
