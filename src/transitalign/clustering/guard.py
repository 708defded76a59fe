"""Cohesion guard against transitive over-merging.

Union-find links records transitively: A~B and B~C put A and C together
even when A and C look nothing alike. The guard is consulted before every
union that would produce a component of more than two members, and refuses
it unless every member pair of the merged component scores at least
``min_cluster_threshold``.

Checking at union time keeps the result a function of the processed edge
prefix, so raising the match threshold can only shrink clusters.
"""

from collections.abc import Callable, Sequence

from transitalign.models.records import NormalizedRecord

PairScoreLookup = Callable[[NormalizedRecord, NormalizedRecord], float]


def min_pairwise_score(
    record: NormalizedRecord,
    others: Sequence[NormalizedRecord],
    lookup: PairScoreLookup,
) -> float:
    """Lowest score between *record* and any record of *others*."""
    return min((lookup(record, other) for other in others if other.key != record.key), default=1.0)


def cohesion(members: Sequence[NormalizedRecord], lookup: PairScoreLookup) -> float | None:
    """Lowest pairwise score inside a cluster; None for singletons."""
    if len(members) < 2:
        return None
    return min(min_pairwise_score(m, members, lookup) for m in members)


def admits_union(
    left: Sequence[NormalizedRecord],
    right: Sequence[NormalizedRecord],
    lookup: PairScoreLookup,
    min_threshold: float,
) -> bool:
    """Decide whether two components may be merged.

    Parameters
    ----------
    left, right : Sequence[NormalizedRecord]
        Members of the two components.
    lookup : PairScoreLookup
        Symmetric pair score function.
    min_threshold : float
        Minimum score every member pair of the merged component must keep.

    Returns
    -------
    bool
        True when the merged component has at most two members, or when its
        cohesion is at least *min_threshold*.
    """
    merged = [*left, *right]
    if len(merged) <= 2:
        return True
    return all(min_pairwise_score(m, merged, lookup) >= min_threshold for m in merged)
