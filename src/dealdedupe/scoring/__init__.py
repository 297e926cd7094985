"""Pairwise similarity scoring.

Field comparators produce per-field similarities; the weighted scorer
combines them into one overall score.
"""

from dealdedupe.scoring.comparators import (
    contact_similarity,
    customer_name_similarity,
    date_similarity,
    deal_name_similarity,
    dice_coefficient,
    fuzzy_string_similarity,
    jaccard_similarity,
    product_similarity,
    value_similarity,
)
from dealdedupe.scoring.weighted import (
    Factor,
    FieldWeights,
    SimilarityScore,
    compute_factors,
    score_pair,
)

__all__ = [
    # Comparators
    "fuzzy_string_similarity",
    "dice_coefficient",
    "deal_name_similarity",
    "customer_name_similarity",
    "value_similarity",
    "date_similarity",
    "jaccard_similarity",
    "product_similarity",
    "contact_similarity",
    # Weighted scoring
    "Factor",
    "FieldWeights",
    "SimilarityScore",
    "compute_factors",
    "score_pair",
]
