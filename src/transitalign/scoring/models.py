"""Data models for pairwise scoring.

This module defines the per-dimension breakdown and the scored pair
produced by the similarity scorer.
"""

from dataclasses import asdict, dataclass
from typing import Any

from transitalign.models.records import NormalizedRecord, RecordKey

# Score rounding keeps results byte-identical across platforms
SCORE_DECIMALS = 6


@dataclass(frozen=True, slots=True)
class DimensionScore:
    """Similarity along a single dimension.

    Attributes
    ----------
    name : str
        Dimension name: ``name``, ``spatial`` or ``identifier``.
    similarity : float | None
        Similarity in [0, 1], None when the dimension is absent.
    weight : float
        Effective weight after renormalization over present dimensions
        (0 when absent).
    distance_meters : float | None
        Great-circle distance, for the spatial dimension only.
    """

    name: str
    similarity: float | None
    weight: float
    distance_meters: float | None = None

    @property
    def present(self) -> bool:
        """Whether both records carry this dimension."""
        return self.similarity is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ScoredPair:
    """Candidate pair plus composite similarity and breakdown.

    Attributes
    ----------
    first : NormalizedRecord
        Record with the smaller ``(source_dataset, source_id)`` key.
    second : NormalizedRecord
        Record with the larger key.
    score : float
        Composite similarity in [0, 1].
    dimensions : tuple[DimensionScore, ...]
        Per-dimension breakdown, in fixed order.
    shared_identifier : bool
        True when the score was forced to 1.0 by a shared identifier.
    blocker : str
        Blocker that generated the pair, if known.
    """

    first: NormalizedRecord
    second: NormalizedRecord
    score: float
    dimensions: tuple[DimensionScore, ...]
    shared_identifier: bool = False
    blocker: str = ""

    @property
    def keys(self) -> tuple[RecordKey, RecordKey]:
        """Endpoint keys, smaller first."""
        return (self.first.key, self.second.key)

    @property
    def pair_id(self) -> str:
        """Deterministic pair identifier (``"ds:a|ds:b"``)."""
        return f"{self.first.ref}|{self.second.ref}"

    def dimension(self, name: str) -> DimensionScore | None:
        """Look up a dimension by name."""
        for dim in self.dimensions:
            if dim.name == name:
                return dim
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "pair_id": self.pair_id,
            "first": self.first.ref,
            "second": self.second.ref,
            "score": self.score,
            "shared_identifier": self.shared_identifier,
            "blocker": self.blocker,
            "dimensions": {d.name: d.to_dict() for d in self.dimensions},
        }


# ---------------------------------------------------------------------------
# Bucket calculation
# ---------------------------------------------------------------------------

_BUCKET_THRESHOLDS = (0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9)
_BUCKET_LABELS = (
    "0.0-0.1",
    "0.1-0.2",
    "0.2-0.3",
    "0.3-0.4",
    "0.4-0.5",
    "0.5-0.6",
    "0.6-0.7",
    "0.7-0.8",
    "0.8-0.9",
    "0.9-1.0",
)


def get_score_bucket(score: float) -> str:
    """Get histogram bucket label for a score.

    Parameters
    ----------
    score : float
        Composite score (0.0-1.0).

    Returns
    -------
    str
        Bucket label (e.g., '0.5-0.6').
    """
    for i, threshold in enumerate(_BUCKET_THRESHOLDS):
        if score < threshold:
            return _BUCKET_LABELS[i]
    return _BUCKET_LABELS[-1]


def empty_score_histogram() -> dict[str, int]:
    """All bucket labels mapped to zero."""
    return dict.fromkeys(_BUCKET_LABELS, 0)
