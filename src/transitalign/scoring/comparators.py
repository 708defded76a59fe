"""Dimension comparators for pairwise scoring.

Pure, deterministic functions comparing one dimension of two normalized
records. Each returns ``None`` when the dimension is absent on either side.
Name metrics and distance decays are looked up by name in registries so
they can be swapped from configuration.
"""

import math
from collections.abc import Callable

from rapidfuzz.distance import JaroWinkler, Levenshtein

from transitalign.models.records import NormalizedRecord
from transitalign.utils.geo import haversine_meters

NameMetric = Callable[[str, str], float]
SpatialDecay = Callable[[float, float], float]

# Exponential decay rate: similarity at the radius is exp(-3) ≈ 0.05
EXPONENTIAL_DECAY_RATE = 3.0


# ---------------------------------------------------------------------------
# Name metrics
# ---------------------------------------------------------------------------


def levenshtein_similarity(a: str, b: str) -> float:
    """Normalized Levenshtein similarity, ``1 - distance / max(len)``."""
    return float(Levenshtein.normalized_similarity(a, b))


def jaro_winkler_similarity(a: str, b: str) -> float:
    """Jaro-Winkler similarity (prefix-weighted)."""
    return float(JaroWinkler.normalized_similarity(a, b))


NAME_METRICS: dict[str, NameMetric] = {
    "levenshtein": levenshtein_similarity,
    "jaro_winkler": jaro_winkler_similarity,
}


# ---------------------------------------------------------------------------
# Spatial decay functions
# ---------------------------------------------------------------------------


def linear_decay(distance: float, radius: float) -> float:
    """``max(0, 1 - d / R)``."""
    return max(0.0, 1.0 - distance / radius)


def exponential_decay(distance: float, radius: float) -> float:
    """``exp(-3 d / R)``; never reaches zero."""
    return math.exp(-EXPONENTIAL_DECAY_RATE * distance / radius)


SPATIAL_DECAYS: dict[str, SpatialDecay] = {
    "linear": linear_decay,
    "exponential": exponential_decay,
}


def get_name_metric(name: str) -> NameMetric:
    """Look up a name metric by registry key.

    Raises
    ------
    ValueError
        If *name* is not registered.
    """
    try:
        return NAME_METRICS[name]
    except KeyError:
        valid = ", ".join(sorted(NAME_METRICS))
        raise ValueError(f"Unknown name metric: {name!r}. Valid: {valid}") from None


def get_spatial_decay(name: str) -> SpatialDecay:
    """Look up a spatial decay function by registry key.

    Raises
    ------
    ValueError
        If *name* is not registered.
    """
    try:
        return SPATIAL_DECAYS[name]
    except KeyError:
        valid = ", ".join(sorted(SPATIAL_DECAYS))
        raise ValueError(f"Unknown spatial decay: {name!r}. Valid: {valid}") from None


# ---------------------------------------------------------------------------
# Comparators
# ---------------------------------------------------------------------------


def compare_names(a: NormalizedRecord, b: NormalizedRecord, metric: NameMetric) -> float | None:
    """Compare normalized names; None when either is empty."""
    if not a.name_norm or not b.name_norm:
        return None
    return min(1.0, max(0.0, metric(a.name_norm, b.name_norm)))


def compare_locations(
    a: NormalizedRecord,
    b: NormalizedRecord,
    radius_meters: float,
    decay: SpatialDecay,
) -> tuple[float | None, float | None]:
    """Compare coordinates.

    Parameters
    ----------
    a, b : NormalizedRecord
        Records to compare.
    radius_meters : float
        Decay radius.
    decay : SpatialDecay
        Decay function mapping (distance, radius) to [0, 1].

    Returns
    -------
    tuple[float | None, float | None]
        (similarity, distance in meters); both None when either record
        lacks coordinates.
    """
    if a.latitude is None or a.longitude is None or b.latitude is None or b.longitude is None:
        return None, None
    distance = haversine_meters(a.latitude, a.longitude, b.latitude, b.longitude)
    return min(1.0, max(0.0, decay(distance, radius_meters))), distance


def compare_identifiers(a: NormalizedRecord, b: NormalizedRecord) -> float | None:
    """1.0 when any aux identifier is shared, 0.0 otherwise; None if either has none."""
    if not a.aux_identifiers or not b.aux_identifiers:
        return None
    return 1.0 if a.aux_identifiers & b.aux_identifiers else 0.0
