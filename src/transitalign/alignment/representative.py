"""Attribute synthesis for canonical entities."""

from collections import Counter
from collections.abc import Sequence

from transitalign.models.records import NormalizedRecord

COORDINATE_DECIMALS = 7


def completeness_score(record: NormalizedRecord) -> int:
    """Count populated attributes among name, coordinates, category, identifiers.

    Parameters
    ----------
    record : NormalizedRecord
        Record to score.

    Returns
    -------
    int
        Completeness score (0-4).
    """
    return sum(
        (
            bool(record.display_name),
            record.has_coordinates,
            bool(record.category),
            bool(record.aux_identifiers),
        )
    )


def select_representative(members: Sequence[NormalizedRecord]) -> NormalizedRecord:
    """Select the member whose name represents the cluster.

    Selection is based on lexicographic tuple ranking:
    1. has a display name (named members first)
    2. completeness score (higher first)
    3. dataset load order (earlier first)
    4. tie-breaker: smallest ``(source_dataset, source_id)``

    An unnamed member is chosen only when no member carries a name.

    Raises
    ------
    ValueError
        If members list is empty.
    """
    if not members:
        raise ValueError("Cannot select representative from empty members list")

    def ranking_key(record: NormalizedRecord) -> tuple[bool, int, int, str, str]:
        unnamed = not record.display_name
        return (unnamed, -completeness_score(record), record.dataset_order, *record.key)

    return min(members, key=ranking_key)


def centroid(members: Sequence[NormalizedRecord]) -> tuple[float | None, float | None]:
    """Mean position of members with coordinates.

    Longitudes straddling the antimeridian are unwrapped before averaging.

    Returns
    -------
    tuple[float | None, float | None]
        (latitude, longitude), both None when no member is located.
    """
    located = [
        (r.latitude, r.longitude)
        for r in members
        if r.latitude is not None and r.longitude is not None
    ]
    if not located:
        return None, None

    lats = [lat for lat, _ in located]
    lons = [lon for _, lon in located]
    if max(lons) - min(lons) > 180.0:
        lons = [lon + 360.0 if lon < 0 else lon for lon in lons]

    lat = sum(lats) / len(lats)
    lon = sum(lons) / len(lons)
    if lon > 180.0:
        lon -= 360.0
    return round(lat, COORDINATE_DECIMALS), round(lon, COORDINATE_DECIMALS)


def majority_category(members: Sequence[NormalizedRecord], representative: NormalizedRecord) -> str:
    """Most frequent non-empty category.

    Ties go to the representative's category when it is among the tied
    values, otherwise to the alphabetically smallest.
    """
    counts = Counter(r.category for r in members if r.category)
    if not counts:
        return ""
    best = max(counts.values())
    tied = sorted(c for c, n in counts.items() if n == best)
    if representative.category in tied:
        return representative.category
    return tied[0]


def merged_identifiers(members: Sequence[NormalizedRecord]) -> tuple[str, ...]:
    """Sorted union of member identifiers."""
    identifiers: set[str] = set()
    for record in members:
        identifiers.update(record.aux_identifiers)
    return tuple(sorted(identifiers))
