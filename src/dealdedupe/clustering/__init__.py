"""Transitive duplicate clustering.

This module groups records linked by high-confidence detections into
clusters using union-find over an undirected adjacency map.
"""

from dealdedupe.clustering.cluster_builder import (
    build_adjacency,
    cluster_records,
    collect_edges,
    connected_components,
)
from dealdedupe.clustering.models import (
    ClusterEdge,
    ClusterStatus,
    ClusterSupport,
    DuplicateCluster,
    compute_cluster_key,
    generate_cluster_id,
)
from dealdedupe.clustering.union_find import UnionFind

__all__ = [
    # Models
    "ClusterEdge",
    "ClusterStatus",
    "ClusterSupport",
    "DuplicateCluster",
    "compute_cluster_key",
    "generate_cluster_id",
    # Union-Find
    "UnionFind",
    # Building
    "build_adjacency",
    "cluster_records",
    "collect_edges",
    "connected_components",
]
