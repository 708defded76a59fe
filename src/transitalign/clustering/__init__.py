"""Match resolution and alignment clusters."""

from transitalign.clustering.guard import admits_union, cohesion
from transitalign.clustering.models import AlignmentCluster, compute_cluster_id
from transitalign.clustering.resolver import MatchResolver
from transitalign.clustering.union_find import UnionFind

__all__ = [
    "AlignmentCluster",
    "MatchResolver",
    "UnionFind",
    "admits_union",
    "cohesion",
    "compute_cluster_id",
]
