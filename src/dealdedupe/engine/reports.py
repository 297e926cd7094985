"""Cross-source duplicate reports.

Records extracted from different source files often describe the same deal.
This module runs batch detection over records from several files and keeps
only the matches that cross a file boundary.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from dealdedupe.engine.detector import DuplicateDetector
from dealdedupe.matching.models import MatchCandidate
from dealdedupe.models import DealRecord

MIN_SOURCE_FILES = 2


@dataclass(frozen=True)
class CrossSourceDuplicate:
    """A record with duplicates in other source files.

    Attributes
    ----------
    entity_id : str
        Id of the record.
    deal_name : str
        Its deal name.
    source_file_id : str | None
        File it was extracted from.
    matches : list[MatchCandidate]
        Matches whose record comes from a different file.
    """

    entity_id: str
    deal_name: str
    source_file_id: str | None
    matches: list[MatchCandidate] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "entity_id": self.entity_id,
            "deal_name": self.deal_name,
            "source_file_id": self.source_file_id,
            "matches": [
                {**match.to_dict(), "source_file_id": match.matched_entity.source_file_id}
                for match in self.matches
            ],
        }


def find_cross_source_duplicates(
    detector: DuplicateDetector,
    records: Sequence[DealRecord],
    source_file_ids: Sequence[str] | None = None,
) -> list[CrossSourceDuplicate]:
    """Find duplicates that span different source files.

    Parameters
    ----------
    detector : DuplicateDetector
        Detector used for batch detection.
    records : Sequence[DealRecord]
        Records tagged with ``metadata["source_file_id"]``. They serve as
        both the records to check and the candidate pool; rejected
        registrations are left out of both.
    source_file_ids : Sequence[str] | None, optional
        Restrict the analysis to these files. When None, every source
        present in *records* is used.

    Returns
    -------
    list[CrossSourceDuplicate]
        One entry per record with at least one cross-source match, in
        input order.

    Raises
    ------
    ValueError
        If fewer than two source files are involved, or no record belongs
        to the requested files.
    """
    if source_file_ids is not None:
        wanted = set(source_file_ids)
        if len(wanted) < MIN_SOURCE_FILES:
            raise ValueError(f"At least {MIN_SOURCE_FILES} source file ids are required")
        selected = [r for r in records if r.source_file_id in wanted]
        if not selected:
            raise ValueError("No records found in the specified source files")
    else:
        selected = [r for r in records if r.source_file_id is not None]
        sources = {r.source_file_id for r in selected}
        if len(sources) < MIN_SOURCE_FILES:
            raise ValueError(
                f"At least {MIN_SOURCE_FILES} distinct source files are required, "
                f"found {len(sources)}"
            )

    selected = [r for r in selected if not r.is_rejected]
    by_id = {r.id: r for r in selected if r.id is not None}
    results = detector.detect_batch(selected, pool=selected)

    duplicates: list[CrossSourceDuplicate] = []
    for entity_id, detection in results.items():
        if not detection.is_duplicate:
            continue
        record = by_id[entity_id]
        crossing = [
            match
            for match in detection.matches
            if match.matched_entity.source_file_id != record.source_file_id
        ]
        if crossing:
            duplicates.append(
                CrossSourceDuplicate(
                    entity_id=entity_id,
                    deal_name=record.deal_name,
                    source_file_id=record.source_file_id,
                    matches=crossing,
                )
            )
    return duplicates
