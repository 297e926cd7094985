"""Public API for duplicate detection.

This module provides the main public API for dealdedupe, enabling:
- Detecting duplicates of one record or of a batch of records
- Clustering transitively duplicated records
- Scoring a single pair of records
- Finding duplicates across source files
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from dealdedupe.clustering import DuplicateCluster, cluster_records
from dealdedupe.decision import DetectionResult
from dealdedupe.engine import (
    CrossSourceDuplicate,
    DetectorConfig,
    DuplicateDetector,
    find_cross_source_duplicates,
)
from dealdedupe.matching import DuplicateStrategy
from dealdedupe.models import DealRecord, EntityType
from dealdedupe.scoring import FieldWeights, SimilarityScore, score_pair

if TYPE_CHECKING:
    from dealdedupe.audit import AuditLogger
    from dealdedupe.engine import MatchStore, Notifier, RecordRepository

__all__ = [
    "detect",
    "detect_batch",
    "cluster",
    "score",
    "cross_source",
]


def detect(
    record: DealRecord,
    candidates: Sequence[DealRecord] | None = None,
    *,
    repository: RecordRepository | None = None,
    config: DetectorConfig | None = None,
    threshold: float | None = None,
    strategies: Sequence[DuplicateStrategy | str] | None = None,
    match_store: MatchStore | None = None,
    notifier: Notifier | None = None,
    logger: AuditLogger | None = None,
) -> DetectionResult:
    """Detect duplicates of a single record.

    Parameters
    ----------
    record : DealRecord
        Record to check.
    candidates : Sequence[DealRecord] | None, optional
        Explicit candidate pool. When None, *repository* is queried.
    repository : RecordRepository | None, optional
        Candidate source used when no candidates are given.
    config : DetectorConfig | None, optional
        Detector configuration, by default ``DetectorConfig()``.
    threshold : float | None, optional
        Minimum match confidence, by default the config's minimum match
        threshold.
    strategies : Sequence[DuplicateStrategy | str] | None, optional
        Strategies to run, by default all.
    match_store : MatchStore | None, optional
        Receives the top match of repository-backed detections.
    notifier : Notifier | None, optional
        Receives ``duplicate.detected`` events.
    logger : AuditLogger | None, optional
        Audit logger for events, by default None.

    Returns
    -------
    DetectionResult
        Ranked verdict.

    Examples
    --------
    Check a new deal against known deals:

        >>> from dealdedupe import DealRecord, detect
        >>> new = DealRecord(deal_name="Acme CRM Rollout", customer_name="Acme Inc")
        >>> old = DealRecord(id="d1", deal_name="ACME CRM rollout", customer_name="Acme Corp.")
        >>> detect(new, [old]).suggested_action
        <SuggestedAction.AUTO_MERGE: 'auto_merge'>
    """
    detector = DuplicateDetector(
        config=config,
        repository=repository,
        match_store=match_store,
        notifier=notifier,
        logger=logger,
    )
    return detector.detect(record, candidates, threshold=threshold, strategies=strategies)


def detect_batch(
    records: Sequence[DealRecord],
    pool: Sequence[DealRecord] | None = None,
    *,
    repository: RecordRepository | None = None,
    config: DetectorConfig | None = None,
    logger: AuditLogger | None = None,
) -> dict[str, DetectionResult]:
    """Detect duplicates for many records against one shared pool.

    Parameters
    ----------
    records : Sequence[DealRecord]
        Records to check.
    pool : Sequence[DealRecord] | None, optional
        Shared candidate pool. When None, ``repository.all_records()`` is
        fetched once.
    repository : RecordRepository | None, optional
        Pool source used when no pool is given.
    config : DetectorConfig | None, optional
        Detector configuration.
    logger : AuditLogger | None, optional
        Audit logger for progress events.

    Returns
    -------
    dict[str, DetectionResult]
        Verdict per record id.
    """
    detector = DuplicateDetector(config=config, repository=repository, logger=logger)
    return detector.detect_batch(records, pool=pool)


def cluster(
    records: Sequence[DealRecord],
    *,
    config: DetectorConfig | None = None,
    entity_type: EntityType = EntityType.DEAL,
    logger: AuditLogger | None = None,
) -> list[DuplicateCluster]:
    """Group transitively duplicated records into clusters.

    Parameters
    ----------
    records : Sequence[DealRecord]
        Records to cluster; each is compared against all the others.
    config : DetectorConfig | None, optional
        Detector configuration; its high-confidence threshold is the edge
        threshold.
    entity_type : EntityType, optional
        Tag carried by the clusters.
    logger : AuditLogger | None, optional
        Audit logger for clustering events.

    Returns
    -------
    list[DuplicateCluster]
        Clusters of two or more records, sorted by cluster key.
    """
    detector = DuplicateDetector(config=config, logger=logger)
    return cluster_records(detector, records, entity_type=entity_type)


def score(
    record_a: DealRecord,
    record_b: DealRecord,
    weights: FieldWeights | Mapping[str, float] | None = None,
    *,
    config: DetectorConfig | None = None,
) -> SimilarityScore:
    """Weighted similarity of two records.

    Parameters
    ----------
    record_a : DealRecord
        First record.
    record_b : DealRecord
        Second record.
    weights : FieldWeights | Mapping[str, float] | None, optional
        Factor weights, by default the config's weights.
    config : DetectorConfig | None, optional
        Supplies tolerances and default weights.

    Returns
    -------
    SimilarityScore
        Overall score with every factor.
    """
    detector = DuplicateDetector(config=config)
    if weights is None:
        return detector.score(record_a, record_b)

    return score_pair(
        record_a,
        record_b,
        weights,
        value_tolerance_percent=detector.config.value_tolerance_percent,
        date_tolerance_days=detector.config.date_tolerance_days,
    )


def cross_source(
    records: Sequence[DealRecord],
    source_file_ids: Sequence[str] | None = None,
    *,
    config: DetectorConfig | None = None,
    logger: AuditLogger | None = None,
) -> list[CrossSourceDuplicate]:
    """Find duplicates spanning different source files.

    Raises
    ------
    ValueError
        If fewer than two source files are involved.
    """
    detector = DuplicateDetector(config=config, logger=logger)
    return find_cross_source_duplicates(detector, records, source_file_ids)
