"""Single-entity and batch duplicate detection.

``DuplicateDetector`` binds an immutable ``DetectorConfig`` to the
collaborator ports. Comparison itself is pure; the only I/O is the
candidate fetch (required) and the match-store / notification side effects
(best effort).
"""

from collections.abc import Sequence
from typing import Any

from dealdedupe.audit.logger import AuditLogger
from dealdedupe.decision.models import DetectionResult
from dealdedupe.decision.policy import build_result
from dealdedupe.engine.config import DetectorConfig
from dealdedupe.engine.ports import MatchStore, Notifier, RecordRepository, RepositoryError
from dealdedupe.matching.models import DuplicateStrategy
from dealdedupe.matching.strategies import resolve_strategies, run_strategies
from dealdedupe.models import DealRecord, EntityType
from dealdedupe.scoring.weighted import SimilarityScore, score_pair

DUPLICATE_DETECTED_EVENT = "duplicate.detected"

# Matches summarized in a notification payload
NOTIFY_MAX_MATCHES = 3


def exclude_self(record: DealRecord, candidates: Sequence[DealRecord]) -> list[DealRecord]:
    """Drop the record itself and id-less candidates from a pool."""
    return [c for c in candidates if c.id is not None and c.id != record.id]


class DuplicateDetector:
    """Detect duplicates of deal records against a candidate pool.

    Parameters
    ----------
    config : DetectorConfig | None, optional
        Thresholds and tolerances, by default ``DetectorConfig()``.
    repository : RecordRepository | None, optional
        Source of candidate pools when none is passed explicitly.
    match_store : MatchStore | None, optional
        Receives the top match of repository-backed detections.
    notifier : Notifier | None, optional
        Receives ``duplicate.detected`` events.
    logger : AuditLogger | None, optional
        Audit logger for events, by default None.

    Examples
    --------
        >>> detector = DuplicateDetector()
        >>> result = detector.detect(record, candidates=existing)
        >>> result.suggested_action
        <SuggestedAction.AUTO_MERGE: 'auto_merge'>
    """

    def __init__(
        self,
        config: DetectorConfig | None = None,
        repository: RecordRepository | None = None,
        match_store: MatchStore | None = None,
        notifier: Notifier | None = None,
        logger: AuditLogger | None = None,
    ) -> None:
        self.config = config if config is not None else DetectorConfig()
        self.repository = repository
        self.match_store = match_store
        self.notifier = notifier
        self.logger = logger

    # ------------------------------------------------------------------
    # Single entity
    # ------------------------------------------------------------------

    def detect(
        self,
        record: DealRecord,
        candidates: Sequence[DealRecord] | None = None,
        threshold: float | None = None,
        strategies: Sequence[DuplicateStrategy | str] | None = None,
    ) -> DetectionResult:
        """Detect duplicates of one record.

        Parameters
        ----------
        record : DealRecord
            Record to check.
        candidates : Sequence[DealRecord] | None, optional
            Explicit candidate pool. When None, the repository's bounded
            candidate query is used and side effects are enabled.
        threshold : float | None, optional
            Minimum match confidence, by default
            ``config.minimum_match_threshold``.
        strategies : Sequence[DuplicateStrategy | str] | None, optional
            Strategies to run, by default all of them.

        Returns
        -------
        DetectionResult
            Ranked verdict.

        Raises
        ------
        RepositoryError
            If the candidate pool cannot be fetched.
        ValueError
            If a strategy name is unknown.
        """
        enabled = resolve_strategies(strategies)
        supplied = candidates is not None

        pool = candidates if candidates is not None else self._fetch_candidates(record)
        pool = exclude_self(record, pool)

        if not pool:
            result = DetectionResult.empty()
        else:
            matches = run_strategies(record, pool, self.config, enabled)
            result = build_result(matches, self.config, threshold)

        if not supplied and record.id is not None and result.is_duplicate:
            self._record_top_match(record, result)
            self._notify(record, result)

        self.audit(
            "detection_completed",
            rid=record.id,
            candidates=len(pool),
            matches=len(result.matches),
            confidence=result.confidence,
            suggested_action=str(result.suggested_action),
        )

        return result

    def score(self, record_a: DealRecord, record_b: DealRecord) -> SimilarityScore:
        """Weighted similarity of two records under this detector's config."""
        return score_pair(
            record_a,
            record_b,
            self.config.weights,
            value_tolerance_percent=self.config.value_tolerance_percent,
            date_tolerance_days=self.config.date_tolerance_days,
        )

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def detect_batch(
        self,
        records: Sequence[DealRecord],
        pool: Sequence[DealRecord] | None = None,
    ) -> dict[str, DetectionResult]:
        """Detect duplicates for many records against one shared pool.

        The pool is fetched once (``repository.all_records()``) unless
        given. Records are processed sequentially in chunks of
        ``config.batch_size``; chunking only affects progress events.

        Parameters
        ----------
        records : Sequence[DealRecord]
            Records to check.
        pool : Sequence[DealRecord] | None, optional
            Shared candidate pool.

        Returns
        -------
        dict[str, DetectionResult]
            Verdict per record id, in input order. Records without an id
            are processed but not reported.

        Raises
        ------
        RepositoryError
            If the pool cannot be fetched.
        """
        if pool is None:
            pool = self._fetch_all()
        shared = list(pool)

        total = len(records)
        batch_size = self.config.batch_size

        self.audit("set_stage", "batch")
        self.audit("batch_started", total=total, batch_size=batch_size)

        results: dict[str, DetectionResult] = {}
        for start in range(0, total, batch_size):
            chunk = records[start : start + batch_size]
            for record in chunk:
                result = self.detect(record, candidates=shared)
                if record.id is not None:
                    results[record.id] = result

            self.audit(
                "batch_chunk_processed",
                batch_start=start,
                batch_size=len(chunk),
                total_processed=min(start + batch_size, total),
                total=total,
            )

        duplicates = sum(1 for r in results.values() if r.is_duplicate)
        self.audit("batch_finished", total=total, duplicates=duplicates)
        self.audit("set_stage", None)

        return results

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def _fetch_candidates(self, record: DealRecord) -> list[DealRecord]:
        if self.repository is None:
            raise RepositoryError("No record repository configured and no candidates given")
        try:
            return list(self.repository.find_candidates(record))
        except Exception as e:
            self._log_error(e, rid=record.id, operation="find_candidates")
            raise

    def _fetch_all(self) -> list[DealRecord]:
        if self.repository is None:
            raise RepositoryError("No record repository configured and no pool given")
        try:
            return list(self.repository.all_records())
        except Exception as e:
            self._log_error(e, operation="all_records")
            raise

    def _record_top_match(self, record: DealRecord, result: DetectionResult) -> None:
        top = result.top_match
        if self.match_store is None or top is None or record.id is None:
            return
        try:
            self.match_store.record_match(EntityType.DEAL, record.id, top.matched_entity_id, top)
        except Exception as e:
            self._log_error(e, rid=record.id, operation="record_match")

    def _notify(self, record: DealRecord, result: DetectionResult) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(DUPLICATE_DETECTED_EVENT, build_notification(record, result))
        except Exception as e:
            self._log_error(e, rid=record.id, operation="notify")

    def audit(self, event: str, *args: Any, **kwargs: Any) -> None:
        """Call an ``AuditLogger`` method, dropping any failure of the log itself.

        Parameters
        ----------
        event : str
            Logger method name, e.g. ``"detection_completed"``.
        *args, **kwargs
            Passed through to the logger method.
        """
        if not self.logger:
            return
        try:
            getattr(self.logger, event)(*args, **kwargs)
        except Exception:
            # Audit logging is best effort
            return

    def _log_error(
        self, error: Exception, rid: str | None = None, operation: str | None = None
    ) -> None:
        self.audit(
            "error",
            exception_class=type(error).__name__,
            message=str(error),
            rid=rid,
            operation=operation,
        )


def build_notification(record: DealRecord, result: DetectionResult) -> dict[str, Any]:
    """Build the ``duplicate.detected`` payload for a verdict.

    Parameters
    ----------
    record : DealRecord
        Record that was checked.
    result : DetectionResult
        Its verdict.

    Returns
    -------
    dict[str, Any]
        Entity id and name, match count, top confidence, suggested action
        and up to three summarized matches.
    """
    return {
        "entity_id": record.id,
        "entity_name": record.deal_name,
        "matches_count": len(result.matches),
        "top_confidence": result.confidence,
        "suggested_action": str(result.suggested_action),
        "matches": [
            {
                "matched_entity_id": match.matched_entity_id,
                "confidence": match.confidence,
                "reasoning": match.reasoning,
            }
            for match in result.matches[:NOTIFY_MAX_MATCHES]
        ],
    }
