"""Pairwise similarity scoring.

This module exposes the composite scorer, its dimension comparators and the
scored pair model.
"""

from transitalign.scoring.comparators import (
    NAME_METRICS,
    SPATIAL_DECAYS,
    compare_identifiers,
    compare_locations,
    compare_names,
    exponential_decay,
    get_name_metric,
    get_spatial_decay,
    jaro_winkler_similarity,
    levenshtein_similarity,
    linear_decay,
)
from transitalign.scoring.models import DimensionScore, ScoredPair, get_score_bucket
from transitalign.scoring.scorer import SimilarityScorer

__all__ = [
    "NAME_METRICS",
    "SPATIAL_DECAYS",
    "DimensionScore",
    "ScoredPair",
    "SimilarityScorer",
    "compare_identifiers",
    "compare_locations",
    "compare_names",
    "exponential_decay",
    "get_name_metric",
    "get_score_bucket",
    "get_spatial_decay",
    "jaro_winkler_similarity",
    "levenshtein_similarity",
    "linear_decay",
]
