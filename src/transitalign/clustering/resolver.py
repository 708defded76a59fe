"""Match resolution: scored pairs to alignment clusters.

Edges at or above the match threshold are merged with a union-find in
descending score order. A union that would put two records of the same
dataset into one cluster is refused, so when a record could join either of
two components, the stronger edge wins. A union that would grow a component
past two members is also refused when the cohesion guard rejects it.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from transitalign.clustering.guard import admits_union, cohesion
from transitalign.clustering.models import AlignmentCluster
from transitalign.clustering.union_find import UnionFind
from transitalign.errors import ConfigurationError, InvariantViolation
from transitalign.models.records import NormalizedRecord, RecordKey, format_record_key
from transitalign.scoring.models import ScoredPair

if TYPE_CHECKING:
    from transitalign.engine.config import AlignmentConfig
    from transitalign.scoring.scorer import SimilarityScorer


def _pair_key(a: RecordKey, b: RecordKey) -> tuple[RecordKey, RecordKey]:
    return (a, b) if a <= b else (b, a)


def _edge_order(pair: ScoredPair) -> tuple[float, RecordKey, RecordKey]:
    return (-pair.score, pair.first.key, pair.second.key)


class MatchResolver:
    """Group records into alignment clusters.

    Parameters
    ----------
    config : AlignmentConfig | None, optional
        Supplies ``match_threshold`` and ``min_cluster_threshold``.
    scorer : SimilarityScorer | None, optional
        Used by the cohesion guard to score member pairs that blocking never
        proposed. Without a scorer such pairs count as 0.

    Attributes
    ----------
    stats : dict[str, int]
        Counters from the last ``resolve`` call.
    """

    def __init__(
        self,
        config: AlignmentConfig | None = None,
        scorer: SimilarityScorer | None = None,
    ) -> None:
        if config is None:
            from transitalign.engine.config import AlignmentConfig

            config = AlignmentConfig()
        self.config = config
        self.scorer = scorer
        self.stats: dict[str, int] = {}

    def resolve(
        self,
        scored_pairs: Iterable[ScoredPair],
        threshold: float | None = None,
        *,
        records: Iterable[NormalizedRecord],
    ) -> list[AlignmentCluster]:
        """Partition *records* into clusters.

        Parameters
        ----------
        scored_pairs : Iterable[ScoredPair]
            Scored candidate pairs (any order).
        threshold : float | None, optional
            Match threshold; defaults to ``config.match_threshold``.
        records : Iterable[NormalizedRecord]
            Every record of the run. Records without an edge become
            singletons.

        Returns
        -------
        list[AlignmentCluster]
            Clusters sorted by ``cluster_id``; every record appears in
            exactly one.

        Raises
        ------
        ConfigurationError
            If *threshold* is outside [0, 1].
        InvariantViolation
            If a record key is duplicated or a pair references an unknown
            record.
        """
        if threshold is None:
            threshold = self.config.match_threshold
        if not 0.0 <= threshold <= 1.0:
            raise ConfigurationError(f"threshold must be in [0, 1], got {threshold}")

        record_map = self._index_records(records)
        pairs = list(scored_pairs)

        scores: dict[tuple[RecordKey, RecordKey], float] = {}
        unknown: list[str] = []
        for pair in pairs:
            for key in pair.keys:
                if key not in record_map:
                    unknown.append(format_record_key(key))
            scores[_pair_key(*pair.keys)] = pair.score
        if unknown:
            raise InvariantViolation(
                "scored pairs reference records outside the run",
                records=sorted(set(unknown)),
            )

        uf = UnionFind()
        members: dict[Any, list[NormalizedRecord]] = {}
        datasets: dict[Any, set[str]] = {}
        for key in sorted(record_map):
            uf.make_set(key)
            members[key] = [record_map[key]]
            datasets[key] = {key[0]}

        def lookup(a: NormalizedRecord, b: NormalizedRecord) -> float:
            key = _pair_key(a.key, b.key)
            if key not in scores:
                scores[key] = self.scorer.score(a, b).score if self.scorer is not None else 0.0
            return scores[key]

        edges = sorted(
            (
                p
                for p in pairs
                if p.score >= threshold and p.first.source_dataset != p.second.source_dataset
            ),
            key=_edge_order,
        )
        min_cohesion = self.config.min_cluster_threshold
        unions = refused_dataset = refused_cohesion = 0
        guarded: set[RecordKey] = set()
        for edge in edges:
            root_a = uf.find(edge.first.key)
            root_b = uf.find(edge.second.key)
            if root_a == root_b:
                continue
            if datasets[root_a] & datasets[root_b]:
                refused_dataset += 1
                continue
            if not admits_union(members[root_a], members[root_b], lookup, min_cohesion):
                refused_cohesion += 1
                guarded.update(edge.keys)
                continue
            root = uf.union(root_a, root_b)
            merged_members = members.pop(root_a) + members.pop(root_b)
            merged_datasets = datasets.pop(root_a) | datasets.pop(root_b)
            members[root] = merged_members
            datasets[root] = merged_datasets
            unions += 1

        clusters: list[AlignmentCluster] = []
        for component in uf.get_components():
            group = [record_map[key] for key in component]
            if len(group) == 1:
                clusters.append(AlignmentCluster.of(group, split_off=group[0].key in guarded))
            else:
                clusters.append(AlignmentCluster.of(group, cohesion=cohesion(group, lookup)))

        clusters.sort(key=lambda c: c.cluster_id)

        self.stats = {
            "pairs_in": len(pairs),
            "edges_above_threshold": len(edges),
            "unions": unions,
            "unions_refused_same_dataset": refused_dataset,
            "unions_refused_cohesion": refused_cohesion,
            "clusters": len(clusters),
            "multi_record_clusters": sum(1 for c in clusters if c.size > 1),
            "singletons": sum(1 for c in clusters if c.size == 1),
        }
        return clusters

    @staticmethod
    def _index_records(records: Iterable[NormalizedRecord]) -> dict[RecordKey, NormalizedRecord]:
        record_map: dict[RecordKey, NormalizedRecord] = {}
        duplicates: list[str] = []
        for record in records:
            if record.key in record_map:
                duplicates.append(record.ref)
            record_map[record.key] = record
        if duplicates:
            raise InvariantViolation("duplicate record keys", records=sorted(set(duplicates)))
        return record_map
