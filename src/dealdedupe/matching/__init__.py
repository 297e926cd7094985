"""Duplicate detection strategies and their match type."""

from dealdedupe.matching.models import DuplicateStrategy, MatchCandidate
from dealdedupe.matching.strategies import (
    STRATEGY_REGISTRY,
    detect_customer_date_match,
    detect_customer_value_match,
    detect_exact_match,
    detect_fuzzy_name_match,
    detect_multi_factor_match,
    detect_vendor_customer_match,
    resolve_strategies,
    run_strategies,
)

__all__ = [
    # Models
    "DuplicateStrategy",
    "MatchCandidate",
    # Strategies
    "STRATEGY_REGISTRY",
    "detect_exact_match",
    "detect_fuzzy_name_match",
    "detect_customer_value_match",
    "detect_customer_date_match",
    "detect_vendor_customer_match",
    "detect_multi_factor_match",
    "resolve_strategies",
    "run_strategies",
]
