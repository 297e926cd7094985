"""Normalization of names and dates prior to comparison."""

from dealdedupe.normalize.text import (
    LEGAL_SUFFIXES,
    normalize_company_name,
    normalize_date,
    normalize_string,
)

__all__ = [
    "LEGAL_SUFFIXES",
    "normalize_company_name",
    "normalize_date",
    "normalize_string",
]
