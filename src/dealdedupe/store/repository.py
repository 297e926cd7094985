"""Record repository adapters.

Both adapters implement the ``RecordRepository`` port over an ordered list
of records where later records are considered more recent.
"""

from collections.abc import Iterable, Sequence
from pathlib import Path

from dealdedupe.engine.ports import RepositoryError
from dealdedupe.models import DealRecord
from dealdedupe.store.records import RecordValidationError, load_records

DEFAULT_CANDIDATE_LIMIT = 200


def select_candidates(
    record: DealRecord,
    existing: Sequence[DealRecord],
    limit: int = DEFAULT_CANDIDATE_LIMIT,
) -> list[DealRecord]:
    """Apply the bounded candidate query to an ordered record list.

    Parameters
    ----------
    record : DealRecord
        New record.
    existing : Sequence[DealRecord]
        Stored records, oldest first.
    limit : int, optional
        Maximum number of candidates, by default 200.

    Returns
    -------
    list[DealRecord]
        Non-rejected records whose customer name contains the new customer
        name (case-insensitive) or that share its vendor id, most recent
        first.
    """
    customer = (record.customer_name or "").lower()
    selected: list[DealRecord] = []

    for candidate in reversed(existing):
        if candidate.is_rejected:
            continue
        customer_hit = bool(customer) and customer in (candidate.customer_name or "").lower()
        vendor_hit = bool(record.vendor_id) and candidate.vendor_id == record.vendor_id
        if not (customer_hit or vendor_hit):
            continue
        selected.append(candidate)
        if len(selected) >= limit:
            break

    return selected


class InMemoryRecordRepository:
    """Repository over an in-memory record list.

    Parameters
    ----------
    records : Iterable[DealRecord] | None, optional
        Initial records, oldest first.
    candidate_limit : int, optional
        Maximum pool size for ``find_candidates``.
    """

    def __init__(
        self,
        records: Iterable[DealRecord] | None = None,
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> None:
        self._records: list[DealRecord] = list(records or [])
        self.candidate_limit = candidate_limit

    def add(self, record: DealRecord) -> None:
        """Append a record as the most recent one."""
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def find_candidates(self, record: DealRecord) -> list[DealRecord]:
        """Return the bounded candidate pool for *record*."""
        return select_candidates(record, self._records, self.candidate_limit)

    def all_records(self) -> list[DealRecord]:
        """Return every non-rejected record."""
        return [r for r in self._records if not r.is_rejected]


class JsonlRecordRepository:
    """Repository backed by a JSONL file, re-read on every query.

    Parameters
    ----------
    path : str | Path
        JSONL file of stored records, oldest first.
    candidate_limit : int, optional
        Maximum pool size for ``find_candidates``.
    """

    def __init__(self, path: str | Path, candidate_limit: int = DEFAULT_CANDIDATE_LIMIT) -> None:
        self.path = Path(path)
        self.candidate_limit = candidate_limit

    def _load(self) -> list[DealRecord]:
        try:
            return load_records(self.path)
        except (OSError, RecordValidationError) as e:
            raise RepositoryError(
                f"Failed to read records from {self.path}: {e}", source=str(self.path)
            ) from e

    def find_candidates(self, record: DealRecord) -> list[DealRecord]:
        """Return the bounded candidate pool for *record*.

        Raises
        ------
        RepositoryError
            If the file is missing or contains an invalid record.
        """
        return select_candidates(record, self._load(), self.candidate_limit)

    def all_records(self) -> list[DealRecord]:
        """Return every non-rejected record.

        Raises
        ------
        RepositoryError
            If the file is missing or contains an invalid record.
        """
        return [r for r in self._load() if not r.is_rejected]
