"""Pytest configuration and fixtures for test suite."""

import json
import sys
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

# Add src directory to path for imports
SRC_PATH = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_PATH))

from dealdedupe.models import ContactRecord, DealRecord  # noqa: E402


@pytest.fixture
def make_deal() -> Callable[..., DealRecord]:
    """Factory for deal records with minimal boilerplate.

    Dates may be given as ISO strings; everything else maps directly to
    ``DealRecord`` fields.
    """

    def _factory(
        id: str | None = "d1",
        deal_name: str = "Acme Renewal",
        customer_name: str = "Acme Inc",
        *,
        deal_value: float | None = None,
        currency: str | None = None,
        close_date: str | datetime | None = None,
        registration_date: str | datetime | None = None,
        vendor_id: str | None = None,
        vendor_name: str | None = None,
        products: list[str] | None = None,
        contacts: list[ContactRecord] | None = None,
        status: str | None = None,
        source_file_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> DealRecord:
        meta = dict(metadata or {})
        if source_file_id is not None:
            meta["source_file_id"] = source_file_id
        return DealRecord(
            id=id,
            deal_name=deal_name,
            customer_name=customer_name,
            deal_value=deal_value,
            currency=currency,
            close_date=_as_datetime(close_date),
            registration_date=_as_datetime(registration_date),
            vendor_id=vendor_id,
            vendor_name=vendor_name,
            products=list(products or []),
            contacts=list(contacts or []),
            status=status,
            metadata=meta,
        )

    return _factory


@pytest.fixture
def full_deal(make_deal: Callable[..., DealRecord]) -> DealRecord:
    """Deal with every comparable field populated."""
    return make_deal(
        "full",
        "Acme ERP Expansion",
        "Acme Inc",
        deal_value=250000.0,
        currency="USD",
        close_date="2024-06-30",
        vendor_id="v1",
        vendor_name="Contoso",
        products=["ERP Suite", "Analytics"],
        contacts=[ContactRecord(name="Jane Roe", email="jane@acme.example")],
    )


@pytest.fixture
def write_records() -> Callable[[Path, Iterable[DealRecord | dict[str, Any]]], Path]:
    """Write records (or raw dicts) to a JSONL file and return its path."""

    def _write(path: Path, records: Iterable[DealRecord | dict[str, Any]]) -> Path:
        with path.open("w", encoding="utf-8") as f:
            for record in records:
                data = record.to_dict() if isinstance(record, DealRecord) else record
                f.write(json.dumps(data) + "\n")
        return path

    return _write


def _as_datetime(value: str | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)
