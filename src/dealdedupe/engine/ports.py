"""Collaborator ports used by the detector.

The detector depends on these structural protocols only; concrete
adapters live in ``dealdedupe.store``.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from dealdedupe.matching.models import MatchCandidate
from dealdedupe.models import DealRecord, EntityType


class RepositoryError(Exception):
    """Raised when candidate records cannot be fetched.

    Repositories raise this instead of returning a partial pool, so the
    detector never reports "no duplicates" because of a storage failure.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        """Initialize repository error.

        Parameters
        ----------
        message : str
            Error message.
        source : str | None, optional
            Backing store the error came from (path, URL, ...).
        """
        super().__init__(message)
        self.source = source


@runtime_checkable
class RecordRepository(Protocol):
    """Source of existing records to compare against."""

    def find_candidates(self, record: DealRecord) -> list[DealRecord]:
        """Return the bounded candidate pool for *record*.

        Non-rejected records whose customer name contains the record's
        customer name (case-insensitive) or that share its vendor id,
        most recent first, at most the repository's candidate limit.

        Raises
        ------
        RepositoryError
            If the pool cannot be fetched completely.
        """
        ...

    def all_records(self) -> list[DealRecord]:
        """Return every non-rejected record.

        Raises
        ------
        RepositoryError
            If the records cannot be fetched completely.
        """
        ...


@runtime_checkable
class MatchStore(Protocol):
    """Sink for detected matches awaiting review."""

    def record_match(
        self,
        entity_type: EntityType,
        entity_id: str,
        matched_id: str,
        match: MatchCandidate,
    ) -> None:
        """Upsert the match between two entities."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """Event notification sink."""

    def notify(self, event_type: str, payload: dict[str, Any]) -> None:
        """Publish *payload* under *event_type*."""
        ...
