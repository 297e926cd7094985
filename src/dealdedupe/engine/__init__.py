"""Duplicate detection engine.

This package binds the detector configuration to the collaborator ports
and exposes single-entity, batch and cross-source detection.
"""

from dealdedupe.engine.config import DetectorConfig
from dealdedupe.engine.detector import DuplicateDetector, build_notification
from dealdedupe.engine.ports import MatchStore, Notifier, RecordRepository, RepositoryError
from dealdedupe.engine.reports import CrossSourceDuplicate, find_cross_source_duplicates

__all__ = [
    "CrossSourceDuplicate",
    "DetectorConfig",
    "DuplicateDetector",
    "MatchStore",
    "Notifier",
    "RecordRepository",
    "RepositoryError",
    "build_notification",
    "find_cross_source_duplicates",
]
