"""String and date canonicalization for comparisons.

All functions here are pure and total: they never raise on malformed
input and map missing values to an empty/neutral result.
"""

import re
from datetime import UTC, date, datetime

# Pre-compiled regex patterns
NON_WORD_RE = re.compile(r"[^\w\s]")
WHITESPACE_RE = re.compile(r"\s+")

LEGAL_SUFFIXES: tuple[str, ...] = (
    "inc",
    "corp",
    "corporation",
    "llc",
    "ltd",
    "limited",
    "co",
    "company",
)
LEGAL_SUFFIX_RE = re.compile(r"\b(?:" + "|".join(LEGAL_SUFFIXES) + r")$")


def normalize_string(text: str | None) -> str:
    """Canonicalize a string for format-insensitive comparison.

    Parameters
    ----------
    text : str | None
        Input text.

    Returns
    -------
    str
        Lowercased text without punctuation and with single spaces,
        or "" for None/empty input.

    Examples
    --------
        >>> normalize_string("  Acme,   Inc. ")
        'acme inc'
    """
    if not text:
        return ""
    lowered = text.lower().strip()
    stripped = NON_WORD_RE.sub("", lowered)
    return WHITESPACE_RE.sub(" ", stripped).strip()


def normalize_company_name(name: str | None) -> str:
    """Normalize a company name and drop trailing legal-entity suffixes.

    Suffixes are removed repeatedly, so "Acme Co Inc" and "Acme" both
    become "acme".

    Parameters
    ----------
    name : str | None
        Company name.

    Returns
    -------
    str
        Normalized name without legal suffixes.
    """
    result = normalize_string(name)
    while True:
        stripped = LEGAL_SUFFIX_RE.sub("", result).strip()
        if stripped == result:
            return result
        result = stripped


def normalize_date(value: datetime | date | str | None) -> datetime | None:
    """Coerce a date-like value to a naive UTC datetime.

    Parameters
    ----------
    value : datetime | date | str | None
        Datetime, date, or ISO-8601 string.

    Returns
    -------
    datetime | None
        Naive datetime in UTC, or None when missing or unparseable.
    """
    if value is None:
        return None

    parsed: datetime
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed
