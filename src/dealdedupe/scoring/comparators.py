"""Field comparators for pairwise scoring.

This module provides pure, deterministic functions comparing one semantic
field of two deal records. Text scores from ``fuzzy_string_similarity`` are
on the 0-100 scale; every other comparator returns a similarity in [0, 1].

Missing or malformed inputs never raise: the comparator returns 0.0 and the
pair simply becomes less likely to match.
"""

import math
from collections import Counter
from collections.abc import Iterable
from datetime import date, datetime

from rapidfuzz import fuzz

from dealdedupe.models import ContactRecord
from dealdedupe.normalize import normalize_company_name, normalize_date, normalize_string

DEFAULT_VALUE_TOLERANCE_PERCENT = 10.0
DEFAULT_DATE_TOLERANCE_DAYS = 7.0

# Similarity at the edge of the tolerance band
TOLERANCE_EDGE_SCORE = 0.7

VALUE_FAR_MULTIPLIER = 3
DATE_FAR_MULTIPLIER = 4

_SECONDS_PER_DAY = 86400.0


def dice_coefficient(text_a: str, text_b: str) -> float:
    """Calculate the bigram Dice coefficient between two strings.

    Whitespace is ignored and bigrams are counted as a multiset.

    Parameters
    ----------
    text_a : str
        First string.
    text_b : str
        Second string.

    Returns
    -------
    float
        Dice coefficient (0.0-1.0).

    Notes
    -----
    Dice = 2 * |bigrams(A) ∩ bigrams(B)| / (|bigrams(A)| + |bigrams(B)|)
    """
    first = "".join(text_a.split())
    second = "".join(text_b.split())

    if first == second:
        return 1.0 if first else 0.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    bigrams_a = Counter(first[i : i + 2] for i in range(len(first) - 1))
    bigrams_b = Counter(second[i : i + 2] for i in range(len(second) - 1))
    intersection = sum((bigrams_a & bigrams_b).values())

    return 2.0 * intersection / (len(first) + len(second) - 2)


def fuzzy_string_similarity(text_a: str | None, text_b: str | None) -> float:
    """Compare two strings with several fuzzy algorithms and keep the best.

    Parameters
    ----------
    text_a : str | None
        First string.
    text_b : str | None
        Second string.

    Returns
    -------
    float
        Similarity on the 0-100 scale.

    Notes
    -----
    Each algorithm tolerates a different kind of noise: Levenshtein ratio
    handles typos, partial ratio handles truncation, the token ratios handle
    reordering and extra words, and the Dice coefficient handles character
    transpositions. Taking the maximum favours recall, so more pairs reach
    the strategies' thresholds and precision is left to those thresholds.
    """
    norm_a = normalize_string(text_a)
    norm_b = normalize_string(text_b)

    if not norm_a or not norm_b:
        return 0.0
    if norm_a == norm_b:
        return 100.0

    # Fixed argument order keeps the result symmetric
    first, second = sorted((norm_a, norm_b))

    scores = (
        fuzz.ratio(first, second),
        fuzz.partial_ratio(first, second),
        fuzz.token_sort_ratio(first, second),
        fuzz.token_set_ratio(first, second),
        dice_coefficient(first, second) * 100.0,
    )
    return float(max(scores))


def deal_name_similarity(name_a: str | None, name_b: str | None) -> float:
    """Fuzzy similarity of two deal names in [0, 1]."""
    if not name_a or not name_b:
        return 0.0
    return fuzzy_string_similarity(name_a, name_b) / 100.0


def customer_name_similarity(name_a: str | None, name_b: str | None) -> float:
    """Fuzzy similarity of two customer names in [0, 1].

    Legal-entity suffixes are stripped first, so "Acme Inc" and
    "ACME Corp." compare as identical.

    Parameters
    ----------
    name_a : str | None
        First customer name.
    name_b : str | None
        Second customer name.

    Returns
    -------
    float
        Similarity (0.0-1.0).
    """
    if not name_a or not name_b:
        return 0.0
    return (
        fuzzy_string_similarity(normalize_company_name(name_a), normalize_company_name(name_b))
        / 100.0
    )


def _banded_similarity(difference: float, tolerance: float, far_multiplier: int) -> float:
    """Map a non-negative difference onto the tolerance band.

    Within tolerance the score falls linearly from 1.0 to 0.7; beyond it,
    down to 0.0 at ``far_multiplier`` times the tolerance.
    """
    if tolerance <= 0:
        return 1.0 if difference == 0 else 0.0

    if difference <= tolerance:
        return 1.0 - (difference / tolerance) * (1.0 - TOLERANCE_EDGE_SCORE)

    max_difference = tolerance * far_multiplier
    if difference > max_difference:
        return 0.0

    return TOLERANCE_EDGE_SCORE - (
        (difference - tolerance) / (max_difference - tolerance)
    ) * TOLERANCE_EDGE_SCORE


def _usable_value(value: float | None) -> float | None:
    if value is None or value == 0 or not math.isfinite(value):
        return None
    return value


def value_similarity(
    value_a: float | None,
    value_b: float | None,
    tolerance_percent: float = DEFAULT_VALUE_TOLERANCE_PERCENT,
) -> float:
    """Compare two monetary values with a percentage tolerance.

    Parameters
    ----------
    value_a : float | None
        First value.
    value_b : float | None
        Second value.
    tolerance_percent : float, optional
        Percentage difference (relative to the average of both values)
        still considered close, by default 10.

    Returns
    -------
    float
        Similarity (0.0-1.0).

    Notes
    -----
    Zero counts as missing. Differences up to the tolerance score
    1.0 → 0.7, up to 3x the tolerance 0.7 → 0.0, anything further 0.0.

    Examples
    --------
        >>> value_similarity(100, 100)
        1.0
        >>> value_similarity(100, 250)
        0.0
    """
    a = _usable_value(value_a)
    b = _usable_value(value_b)
    if a is None or b is None:
        return 0.0
    if a == b:
        return 1.0

    average = abs(a + b) / 2.0
    if average == 0:
        return 0.0

    percent_difference = abs(a - b) / average * 100.0
    return _banded_similarity(percent_difference, tolerance_percent, VALUE_FAR_MULTIPLIER)


def date_similarity(
    date_a: datetime | date | str | None,
    date_b: datetime | date | str | None,
    tolerance_days: float = DEFAULT_DATE_TOLERANCE_DAYS,
) -> float:
    """Compare two dates with a tolerance in days.

    Parameters
    ----------
    date_a : datetime | date | str | None
        First date (ISO-8601 strings accepted).
    date_b : datetime | date | str | None
        Second date.
    tolerance_days : float, optional
        Day difference still considered close, by default 7.

    Returns
    -------
    float
        Similarity (0.0-1.0). Same band shape as ``value_similarity`` but
        reaching 0.0 at 4x the tolerance.
    """
    parsed_a = normalize_date(date_a)
    parsed_b = normalize_date(date_b)

    if parsed_a is None or parsed_b is None:
        return 0.0
    if parsed_a == parsed_b:
        return 1.0

    day_difference = abs((parsed_a - parsed_b).total_seconds()) / _SECONDS_PER_DAY
    return _banded_similarity(day_difference, tolerance_days, DATE_FAR_MULTIPLIER)


def jaccard_similarity(set_a: set[str], set_b: set[str]) -> float:
    """Calculate Jaccard similarity between two sets.

    Parameters
    ----------
    set_a : set[str]
        First set.
    set_b : set[str]
        Second set.

    Returns
    -------
    float
        Jaccard similarity (0.0-1.0).

    Notes
    -----
    Jaccard = |A ∩ B| / |A ∪ B|

    An empty side yields 0.0: a missing product or contact list is no
    evidence of a match.
    """
    if not set_a or not set_b:
        return 0.0

    union = len(set_a | set_b)
    if union == 0:
        return 0.0

    return len(set_a & set_b) / union


def product_similarity(products_a: Iterable[str] | None, products_b: Iterable[str] | None) -> float:
    """Jaccard similarity of normalized product names."""
    if not products_a or not products_b:
        return 0.0
    set_a = {normalize_string(p) for p in products_a}
    set_b = {normalize_string(p) for p in products_b}
    return jaccard_similarity(set_a, set_b)


def contact_similarity(
    contacts_a: Iterable[ContactRecord] | None,
    contacts_b: Iterable[ContactRecord] | None,
) -> float:
    """Jaccard similarity of lower-cased contact emails.

    Contacts without an email are ignored; if either side has no email
    at all the similarity is 0.0.
    """
    if not contacts_a or not contacts_b:
        return 0.0
    emails_a = {c.email.lower() for c in contacts_a if c.email}
    emails_b = {c.email.lower() for c in contacts_b if c.email}
    return jaccard_similarity(emails_a, emails_b)
