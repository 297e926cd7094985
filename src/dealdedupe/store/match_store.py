"""File-backed store of detected duplicate pairs.

Rows are keyed by (entity_type, entity_id_1, entity_id_2) with the two ids
in sorted order, so recording A→B and later B→A updates one row.
"""

import json
import os
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any

from dealdedupe.matching.models import MatchCandidate
from dealdedupe.models import EntityType
from dealdedupe.utils import utc_now

PENDING_STATUS = "pending"
DETECTION_STATUSES: tuple[str, ...] = ("pending", "confirmed", "rejected", "auto_merged")

DEFAULT_HIGH_CONFIDENCE = 0.95
DEFAULT_HIGH_CONFIDENCE_LIMIT = 50


@dataclass(frozen=True)
class DetectionRecord:
    """One stored duplicate pair.

    Attributes
    ----------
    entity_type : str
        Entity kind of both ids.
    entity_id_1 : str
        Lexicographically smaller id.
    entity_id_2 : str
        Lexicographically larger id.
    similarity_score : float
        Match similarity score.
    confidence_level : float
        Match confidence.
    detection_strategy : str
        Strategy of the recorded match.
    similarity_factors : dict[str, float]
        Factors reported by the strategy.
    status : str
        Review status: pending, confirmed, rejected or auto_merged.
    detected_at : datetime
        Last time the pair was recorded (UTC).
    reasoning : str
        Match explanation.
    """

    entity_type: str
    entity_id_1: str
    entity_id_2: str
    similarity_score: float
    confidence_level: float
    detection_strategy: str
    similarity_factors: dict[str, float] = field(default_factory=dict)
    status: str = PENDING_STATUS
    detected_at: datetime = field(default_factory=utc_now)
    reasoning: str = ""

    @property
    def key(self) -> tuple[str, str, str]:
        """Upsert key."""
        return (self.entity_type, self.entity_id_1, self.entity_id_2)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "entity_type": self.entity_type,
            "entity_id_1": self.entity_id_1,
            "entity_id_2": self.entity_id_2,
            "similarity_score": self.similarity_score,
            "confidence_level": self.confidence_level,
            "detection_strategy": self.detection_strategy,
            "similarity_factors": dict(self.similarity_factors),
            "status": self.status,
            "detected_at": self.detected_at.isoformat().replace("+00:00", "Z"),
            "reasoning": self.reasoning,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "DetectionRecord":
        """Deserialize a stored row."""
        return DetectionRecord(
            entity_type=data["entity_type"],
            entity_id_1=data["entity_id_1"],
            entity_id_2=data["entity_id_2"],
            similarity_score=float(data["similarity_score"]),
            confidence_level=float(data["confidence_level"]),
            detection_strategy=data["detection_strategy"],
            similarity_factors=dict(data.get("similarity_factors") or {}),
            status=data.get("status", PENDING_STATUS),
            detected_at=datetime.fromisoformat(data["detected_at"].replace("Z", "+00:00")),
            reasoning=data.get("reasoning", ""),
        )


class JsonlMatchStore:
    """``MatchStore`` adapter persisting rows to a JSONL file.

    The file is loaded on construction and rewritten on every upsert.

    Parameters
    ----------
    path : str | Path
        JSONL file; created on first write.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._rows: dict[tuple[str, str, str], DetectionRecord] = {}
        if self.path.exists():
            with self.path.open("r", encoding="utf-8") as f:
                for line in f:
                    if line.strip():
                        row = DetectionRecord.from_dict(json.loads(line))
                        self._rows[row.key] = row

    def record_match(
        self,
        entity_type: EntityType,
        entity_id: str,
        matched_id: str,
        match: MatchCandidate,
    ) -> None:
        """Insert or update the row for an entity pair.

        An update refreshes score, confidence, strategy, factors and
        ``detected_at`` but keeps the review status.

        Raises
        ------
        ValueError
            If both ids are equal.
        """
        if entity_id == matched_id:
            raise ValueError(f"Cannot record a match of {entity_id!r} with itself")

        id_1, id_2 = sorted((entity_id, matched_id))
        key = (str(entity_type), id_1, id_2)
        existing = self._rows.get(key)

        if existing is None:
            row = DetectionRecord(
                entity_type=str(entity_type),
                entity_id_1=id_1,
                entity_id_2=id_2,
                similarity_score=match.similarity_score,
                confidence_level=match.confidence,
                detection_strategy=str(match.strategy),
                similarity_factors=dict(match.similarity_factors),
                reasoning=match.reasoning,
            )
        else:
            row = replace(
                existing,
                similarity_score=match.similarity_score,
                confidence_level=match.confidence,
                detection_strategy=str(match.strategy),
                similarity_factors=dict(match.similarity_factors),
                detected_at=utc_now(),
                reasoning=match.reasoning,
            )

        self._rows[key] = row
        self._flush()

    def set_status(self, entity_type: EntityType | str, id_a: str, id_b: str, status: str) -> None:
        """Change the review status of a stored pair.

        Raises
        ------
        KeyError
            If the pair is not stored.
        ValueError
            If the status is unknown.
        """
        if status not in DETECTION_STATUSES:
            raise ValueError(f"Unknown status: {status!r}. Available: {DETECTION_STATUSES}")
        id_1, id_2 = sorted((id_a, id_b))
        key = (str(entity_type), id_1, id_2)
        self._rows[key] = replace(self._rows[key], status=status)
        self._flush()

    def rows(self) -> list[DetectionRecord]:
        """Return every stored row in key order."""
        return [self._rows[key] for key in sorted(self._rows)]

    def high_confidence(
        self,
        threshold: float = DEFAULT_HIGH_CONFIDENCE,
        limit: int = DEFAULT_HIGH_CONFIDENCE_LIMIT,
        entity_type: EntityType | str = EntityType.DEAL,
    ) -> list[DetectionRecord]:
        """List pending pairs at or above a confidence threshold.

        Parameters
        ----------
        threshold : float, optional
            Minimum confidence, by default 0.95.
        limit : int, optional
            Maximum rows returned, by default 50.
        entity_type : EntityType | str, optional
            Entity kind, by default deal.

        Returns
        -------
        list[DetectionRecord]
            Rows by descending confidence.
        """
        selected = [
            row
            for row in self._rows.values()
            if row.entity_type == str(entity_type)
            and row.status == PENDING_STATUS
            and row.confidence_level >= threshold
        ]
        selected.sort(key=lambda r: (-r.confidence_level, r.key))
        return selected[:limit]

    def _flush(self) -> None:
        """Rewrite the file atomically: write to a sibling temp file, fsync, rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_name(self.path.name + ".tmp")
        with temp_path.open("w", encoding="utf-8", newline="\n") as f:
            for row in self.rows():
                f.write(json.dumps(row.to_dict(), ensure_ascii=False, sort_keys=True) + "\n")
            f.flush()
            os.fsync(f.fileno())
        temp_path.replace(self.path)
