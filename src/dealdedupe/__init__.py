"""Duplicate detection and clustering for sales deal records.

This package provides:
- Data models (dealdedupe.models): deal and contact records
- Normalization (dealdedupe.normalize): name and date canonicalization
- Scoring (dealdedupe.scoring): field comparators and weighted scoring
- Matching (dealdedupe.matching): the six detection strategies
- Decision (dealdedupe.decision): match aggregation and suggested action
- Engine (dealdedupe.engine): detector, configuration and ports
- Clustering (dealdedupe.clustering): transitive duplicate clusters
- Store (dealdedupe.store): JSONL repositories, match store, statistics
- Audit (dealdedupe.audit): structured event logging
- CLI (dealdedupe.cli): command-line interface
- Public API (dealdedupe.api): high-level convenience functions
"""

__version__ = "0.1.0"
__license__ = "MIT"

from dealdedupe.api import cluster, cross_source, detect, detect_batch, score
from dealdedupe.engine import DetectorConfig, DuplicateDetector
from dealdedupe.models import ContactRecord, DealRecord, EntityType

__all__ = [
    "__version__",
    "__license__",
    "ContactRecord",
    "DealRecord",
    "EntityType",
    "DetectorConfig",
    "DuplicateDetector",
    "detect",
    "detect_batch",
    "cluster",
    "score",
    "cross_source",
]
