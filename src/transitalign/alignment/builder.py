"""Assemble alignment clusters into the final result.

The builder validates that the clusters form a partition of the input
records, then synthesizes one canonical entity per cluster.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence

from transitalign.alignment.models import AlignmentResult, CanonicalEntity
from transitalign.alignment.representative import (
    centroid,
    majority_category,
    merged_identifiers,
    select_representative,
)
from transitalign.clustering.models import AlignmentCluster
from transitalign.errors import InvariantViolation
from transitalign.models.records import NormalizedRecord, RecordKey, format_record_key


class AlignmentGraphBuilder:
    """Build an ``AlignmentResult`` from clusters.

    Examples
    --------
    >>> result = AlignmentGraphBuilder().build(clusters, records)
    >>> result.entity_for(("gtfs", "S1")).display_name
    'Via Roma'
    """

    def build(
        self,
        clusters: Sequence[AlignmentCluster],
        records: Iterable[NormalizedRecord],
    ) -> AlignmentResult:
        """Validate the partition and synthesize canonical entities.

        Parameters
        ----------
        clusters : Sequence[AlignmentCluster]
            Clusters from the match resolver.
        records : Iterable[NormalizedRecord]
            Every record of the run.

        Returns
        -------
        AlignmentResult
            Entities sorted by id, with provenance.

        Raises
        ------
        InvariantViolation
            If a record appears in two clusters or in none, a cluster holds
            an unknown record, or two clusters share an id.
        """
        record_keys = {r.key for r in records}
        self._check_partition(clusters, record_keys)

        entities = tuple(sorted((self._entity(c) for c in clusters), key=lambda e: e.entity_id))
        record_to_entity = {key: e.entity_id for e in entities for key in e.members}
        return AlignmentResult(entities=entities, record_to_entity=record_to_entity)

    @staticmethod
    def _check_partition(clusters: Sequence[AlignmentCluster], record_keys: set[RecordKey]) -> None:
        owners: dict[RecordKey, list[str]] = defaultdict(list)
        seen_ids: dict[str, int] = defaultdict(int)
        empty: list[str] = []

        for cluster in clusters:
            seen_ids[cluster.cluster_id] += 1
            if not cluster.members:
                empty.append(cluster.cluster_id)
            for key in cluster.keys:
                owners[key].append(cluster.cluster_id)

        duplicate_ids = sorted(cid for cid, n in seen_ids.items() if n > 1)
        if duplicate_ids or empty:
            raise InvariantViolation(
                "cluster ids must be unique and clusters non-empty",
                clusters=duplicate_ids + sorted(empty),
            )

        multi = sorted(key for key, cids in owners.items() if len(cids) > 1)
        if multi:
            raise InvariantViolation(
                "records assigned to more than one cluster",
                records=[format_record_key(k) for k in multi],
                clusters=sorted({cid for k in multi for cid in owners[k]}),
            )

        missing = sorted(record_keys - owners.keys())
        if missing:
            raise InvariantViolation(
                "records not assigned to any cluster",
                records=[format_record_key(k) for k in missing],
            )

        unknown = sorted(owners.keys() - record_keys)
        if unknown:
            raise InvariantViolation(
                "clusters reference records outside the run",
                records=[format_record_key(k) for k in unknown],
                clusters=sorted({cid for k in unknown for cid in owners[k]}),
            )

    @staticmethod
    def _entity(cluster: AlignmentCluster) -> CanonicalEntity:
        members = cluster.members
        representative = select_representative(members)
        latitude, longitude = centroid(members)
        return CanonicalEntity(
            entity_id=cluster.cluster_id,
            display_name=representative.display_name,
            latitude=latitude,
            longitude=longitude,
            category=majority_category(members, representative),
            identifiers=merged_identifiers(members),
            representative=representative.key,
            members=cluster.keys,
            cohesion=cluster.cohesion,
        )
