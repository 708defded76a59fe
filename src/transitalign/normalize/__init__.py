"""Record normalization: provider fields to canonical attributes."""

from transitalign.normalize._helpers import normalize_text_for_matching, strip_accents
from transitalign.normalize.categories import LocationCategory, normalize_category
from transitalign.normalize.normalizer import (
    NormalizationReport,
    SkippedRecord,
    normalize,
    normalize_all,
    normalize_coordinates,
    normalize_identifiers,
    skipped_inputs,
)

__all__ = [
    "LocationCategory",
    "NormalizationReport",
    "SkippedRecord",
    "normalize",
    "normalize_all",
    "normalize_category",
    "normalize_coordinates",
    "normalize_identifiers",
    "normalize_text_for_matching",
    "skipped_inputs",
    "strip_accents",
]
