"""Data models for alignment clusters."""

import hashlib
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from transitalign.models.records import NormalizedRecord, RecordKey


@dataclass(frozen=True)
class AlignmentCluster:
    """Records believed to denote one real-world entity.

    Attributes
    ----------
    cluster_id : str
        Deterministic content hash of the member keys.
    members : tuple[NormalizedRecord, ...]
        Member records, sorted by ``(source_dataset, source_id)``.
    cohesion : float | None
        Lowest pairwise score between members; None for singletons.
    split_off : bool
        True for a singleton whose above-threshold links were all refused
        by the cohesion guard.
    """

    cluster_id: str
    members: tuple[NormalizedRecord, ...]
    cohesion: float | None = None
    split_off: bool = False

    @classmethod
    def of(
        cls,
        members: Sequence[NormalizedRecord],
        cohesion: float | None = None,
        split_off: bool = False,
    ) -> "AlignmentCluster":
        """Build a cluster with sorted members and a computed id."""
        ordered = tuple(sorted(members, key=lambda r: r.key))
        return cls(
            cluster_id=compute_cluster_id([r.key for r in ordered]),
            members=ordered,
            cohesion=cohesion,
            split_off=split_off,
        )

    @property
    def keys(self) -> tuple[RecordKey, ...]:
        """Member keys, sorted."""
        return tuple(r.key for r in self.members)

    @property
    def size(self) -> int:
        """Number of member records."""
        return len(self.members)

    @property
    def datasets(self) -> tuple[str, ...]:
        """Distinct member datasets, sorted."""
        return tuple(sorted({r.source_dataset for r in self.members}))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "cluster_id": self.cluster_id,
            "members": [r.ref for r in self.members],
            "cohesion": self.cohesion,
            "split_off": self.split_off,
        }


def compute_cluster_id(keys: Sequence[RecordKey]) -> str:
    """Compute deterministic cluster ID from member keys.

    Parameters
    ----------
    keys : Sequence[RecordKey]
        ``(source_dataset, source_id)`` keys in the cluster.

    Returns
    -------
    str
        Cluster ID in format "c:{sha256_prefix}".
    """
    content = "\n".join(f"{dataset}\t{source_id}" for dataset, source_id in sorted(keys))
    hash_digest = hashlib.sha256(content.encode("utf-8")).hexdigest()
    return f"c:{hash_digest[:12]}"
