"""File-backed adapters for the detector ports.

- Records: JSONL loading with schema validation
- Repository: bounded candidate queries over stored records
- Match store: upserted duplicate pairs and their statistics
- Notifier: notifications written to the audit log
"""

from dealdedupe.store.match_store import DetectionRecord, JsonlMatchStore
from dealdedupe.store.notifier import AuditNotifier
from dealdedupe.store.records import (
    DEAL_RECORD_SCHEMA,
    RecordValidationError,
    iter_records,
    load_records,
    validate_record,
    write_jsonl,
)
from dealdedupe.store.repository import (
    InMemoryRecordRepository,
    JsonlRecordRepository,
    select_candidates,
)
from dealdedupe.store.statistics import (
    DetectionStats,
    DetectionSummary,
    StrategyUsage,
    summarize_clusters,
    summarize_detections,
)

__all__ = [
    # Records
    "DEAL_RECORD_SCHEMA",
    "RecordValidationError",
    "iter_records",
    "load_records",
    "validate_record",
    "write_jsonl",
    # Repository
    "InMemoryRecordRepository",
    "JsonlRecordRepository",
    "select_candidates",
    # Match store
    "DetectionRecord",
    "JsonlMatchStore",
    # Notifier
    "AuditNotifier",
    # Statistics
    "DetectionStats",
    "DetectionSummary",
    "StrategyUsage",
    "summarize_clusters",
    "summarize_detections",
]
