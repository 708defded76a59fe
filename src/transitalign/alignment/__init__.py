"""Alignment graph: canonical entities and provenance."""

from transitalign.alignment.builder import AlignmentGraphBuilder
from transitalign.alignment.models import AlignmentResult, CanonicalEntity
from transitalign.alignment.representative import (
    centroid,
    completeness_score,
    majority_category,
    merged_identifiers,
    select_representative,
)

__all__ = [
    "AlignmentGraphBuilder",
    "AlignmentResult",
    "CanonicalEntity",
    "centroid",
    "completeness_score",
    "majority_category",
    "merged_identifiers",
    "select_representative",
]
