"""Structured audit logger for JSONL event logging.

Events are appended one JSON object per line and flushed after each
write, so a crashed run still leaves a readable trail.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from dealdedupe.audit.models import LogEvent
from dealdedupe.utils import get_iso_timestamp

__all__ = ["AuditLogger"]


class AuditLogger:
    """JSONL audit logger with persistent file handle.

    Attributes
    ----------
    run_id : str
        Unique run identifier.
    log_path : Path
        Path to JSONL log file.
    current_stage : str | None
        Current stage name for context.
    """

    def __init__(self, run_id: str, log_path: Path) -> None:
        """Initialize audit logger and open file handle.

        Parameters
        ----------
        run_id : str
            Unique run identifier.
        log_path : Path
            Path to JSONL log file.
        """
        self.run_id = run_id
        self.log_path = Path(log_path)
        self.current_stage: str | None = None

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.log_path.open("a", encoding="utf-8")

    def __enter__(self) -> "AuditLogger":
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager and close file."""
        self.close()

    def close(self) -> None:
        """Flush and close the log file handle."""
        if not self._file.closed:
            self._file.flush()
            self._file.close()

    def set_stage(self, stage: str | None) -> None:
        """Set current stage context."""
        self.current_stage = stage

    def event(
        self,
        event_type: str,
        data: dict[str, Any] | None = None,
        level: str = "INFO",
        stage: str | None = None,
        rid: str | None = None,
    ) -> None:
        """Write structured event to log.

        Parameters
        ----------
        event_type : str
            Event type identifier (e.g., "detection_completed").
        data : dict[str, Any] | None, optional
            Event-specific data payload.
        level : str, optional
            Log level ("DEBUG", "INFO", "WARN", "ERROR").
        stage : str | None, optional
            Stage identifier, uses current_stage if not provided.
        rid : str | None, optional
            Record identifier if event is record-specific.
        """
        log_event = LogEvent(
            ts=get_iso_timestamp(),
            run_id=self.run_id,
            level=level,
            event=event_type,
            data=data if data is not None else {},
            stage=stage if stage is not None else self.current_stage,
            rid=rid,
        )
        self._write_event(log_event)

    def _write_event(self, event: LogEvent) -> None:
        json.dump(
            asdict(event), self._file, ensure_ascii=False, separators=(",", ":"), default=str
        )
        self._file.write("\n")
        self._file.flush()

    def detection_completed(
        self,
        rid: str | None,
        candidates: int,
        matches: int,
        confidence: float,
        suggested_action: str,
    ) -> None:
        """Log detection_completed event.

        Parameters
        ----------
        rid : str | None
            Id of the record checked.
        candidates : int
            Size of the candidate pool after self-exclusion.
        matches : int
            Matches kept after aggregation.
        confidence : float
            Top match confidence.
        suggested_action : str
            Suggested action for the record.
        """
        self.event(
            "detection_completed",
            data={
                "candidates": candidates,
                "matches": matches,
                "confidence": confidence,
                "suggested_action": suggested_action,
            },
            rid=rid,
        )

    def batch_started(self, total: int, batch_size: int) -> None:
        """Log batch_started event."""
        self.event("batch_started", data={"total": total, "batch_size": batch_size})

    def batch_chunk_processed(
        self, batch_start: int, batch_size: int, total_processed: int, total: int
    ) -> None:
        """Log batch_chunk_processed event.

        Parameters
        ----------
        batch_start : int
            Offset of the chunk's first record.
        batch_size : int
            Records in this chunk.
        total_processed : int
            Records processed so far.
        total : int
            Records in the whole batch.
        """
        self.event(
            "batch_chunk_processed",
            data={
                "batch_start": batch_start,
                "batch_size": batch_size,
                "total_processed": total_processed,
                "total": total,
            },
        )

    def batch_finished(self, total: int, duplicates: int) -> None:
        """Log batch_finished event."""
        self.event("batch_finished", data={"total": total, "duplicates": duplicates})

    def clustering_started(self, records: int, entity_type: str) -> None:
        """Log clustering_started event."""
        self.event("clustering_started", data={"records": records, "entity_type": entity_type})

    def clustering_finished(self, clusters: int, clustered_records: int, edges: int) -> None:
        """Log clustering_finished event."""
        self.event(
            "clustering_finished",
            data={"clusters": clusters, "clustered_records": clustered_records, "edges": edges},
        )

    def error(
        self,
        exception_class: str,
        message: str,
        stage: str | None = None,
        rid: str | None = None,
        operation: str | None = None,
    ) -> None:
        """Log error event.

        Parameters
        ----------
        exception_class : str
            Exception class name.
        message : str
            Error message.
        stage : str | None, optional
            Stage where error occurred.
        rid : str | None, optional
            Record identifier if error is record-specific.
        operation : str | None, optional
            Operation that failed (e.g. "record_match", "notify").
        """
        data: dict[str, Any] = {
            "exception_class": exception_class,
            "message": message,
        }
        if operation is not None:
            data["operation"] = operation
        if rid is not None:
            data["rid"] = rid

        self.event("error", data=data, stage=stage, rid=rid, level="ERROR")
