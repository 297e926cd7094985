"""Deal record data models for dealdedupe.

This module defines the comparable record shape consumed by every
comparison stage. Records are immutable snapshots; the engine never
mutates or persists them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from dealdedupe.normalize.text import normalize_date

# Status of registrations excluded from every candidate pool
REJECTED_STATUS = "rejected"


class EntityType(StrEnum):
    """Entity kinds tracked by duplicate detection.

    Attributes
    ----------
    DEAL : str
        Deal registration.
    VENDOR : str
        Vendor / partner.
    CONTACT : str
        Contact person.
    """

    DEAL = "deal"
    VENDOR = "vendor"
    CONTACT = "contact"


@dataclass(frozen=True)
class ContactRecord:
    """Contact attached to a deal.

    Attributes
    ----------
    name : str
        Contact display name.
    email : str | None
        Email address, compared case-insensitively.
    phone : str | None
        Phone number as extracted.
    role : str | None
        Job title or role on the deal.
    company : str | None
        Company the contact belongs to.
    id : str | None
        Store identifier, absent for unsaved contacts.
    """

    name: str
    email: str | None = None
    phone: str | None = None
    role: str | None = None
    company: str | None = None
    id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, omitting unset optional fields."""
        data: dict[str, Any] = {"name": self.name}
        for key in ("email", "phone", "role", "company", "id"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ContactRecord":
        """Create a contact from its dictionary form.

        Parameters
        ----------
        data : dict[str, Any]
            Contact dictionary (``name`` plus optional fields).

        Returns
        -------
        ContactRecord
            Parsed contact.
        """
        return ContactRecord(
            name=data.get("name") or "",
            email=data.get("email"),
            phone=data.get("phone"),
            role=data.get("role"),
            company=data.get("company"),
            id=data.get("id"),
        )


@dataclass(frozen=True)
class DealRecord:
    """Comparable deal record.

    Known fields are typed; anything else extracted from the source file
    travels in ``metadata`` untouched.

    Attributes
    ----------
    deal_name : str
        Primary name of the deal.
    customer_name : str
        Counterparty (end customer) name.
    id : str | None
        Store identifier. None for records that are not persisted yet.
    deal_value : float | None
        Monetary value of the deal.
    currency : str | None
        ISO currency code for ``deal_value``.
    close_date : datetime | None
        Expected or actual close date.
    registration_date : datetime | None
        Date the deal was registered with the vendor.
    vendor_id : str | None
        Owning vendor identifier.
    vendor_name : str | None
        Owning vendor display name.
    products : list[str]
        Product names in source order.
    contacts : list[ContactRecord]
        Contacts in source order.
    description : str | None
        Free-text description.
    status : str | None
        Lifecycle status (e.g. ``registered``, ``rejected``).
    metadata : dict[str, Any]
        Opaque extra attributes (source file id, provenance, ...).
    """

    deal_name: str
    customer_name: str
    id: str | None = None
    deal_value: float | None = None
    currency: str | None = None
    close_date: datetime | None = None
    registration_date: datetime | None = None
    vendor_id: str | None = None
    vendor_name: str | None = None
    products: list[str] = field(default_factory=list)
    contacts: list[ContactRecord] = field(default_factory=list)
    description: str | None = None
    status: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def source_file_id(self) -> str | None:
        """Source file the record was extracted from, if known."""
        value = self.metadata.get("source_file_id")
        return str(value) if value is not None else None

    @property
    def is_rejected(self) -> bool:
        """Whether the registration was rejected."""
        return self.status == REJECTED_STATUS

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        Returns
        -------
        dict[str, Any]
            Dictionary representation with ISO-8601 dates.
        """
        return {
            "id": self.id,
            "deal_name": self.deal_name,
            "customer_name": self.customer_name,
            "deal_value": self.deal_value,
            "currency": self.currency,
            "close_date": _format_date(self.close_date),
            "registration_date": _format_date(self.registration_date),
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "products": list(self.products),
            "contacts": [contact.to_dict() for contact in self.contacts],
            "description": self.description,
            "status": self.status,
            "metadata": dict(self.metadata),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "DealRecord":
        """Create a record from its dictionary form.

        Unparseable dates become None rather than failing, so a bad date
        only weakens the date factor for that record.

        Parameters
        ----------
        data : dict[str, Any]
            Record dictionary (e.g. one JSONL line).

        Returns
        -------
        DealRecord
            Parsed record.
        """
        raw_value = data.get("deal_value")
        record_id = data.get("id")
        return DealRecord(
            id=str(record_id) if record_id is not None else None,
            deal_name=data.get("deal_name") or "",
            customer_name=data.get("customer_name") or "",
            deal_value=float(raw_value) if raw_value is not None else None,
            currency=data.get("currency"),
            close_date=normalize_date(data.get("close_date")),
            registration_date=normalize_date(data.get("registration_date")),
            vendor_id=data.get("vendor_id"),
            vendor_name=data.get("vendor_name"),
            products=list(data.get("products") or []),
            contacts=[ContactRecord.from_dict(c) for c in data.get("contacts") or []],
            description=data.get("description"),
            status=data.get("status"),
            metadata=dict(data.get("metadata") or {}),
        )


def _format_date(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
