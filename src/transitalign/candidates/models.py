"""Data models for candidate pair representation.

This module defines the blocking keys and candidate pairs produced by the
blocking stage.
"""

from dataclasses import dataclass
from typing import Any

from transitalign.models.records import NormalizedRecord, RecordKey


@dataclass(frozen=True, order=True)
class BlockKey:
    """A grouping key derived from a record.

    Attributes
    ----------
    kind : str
        Key family: ``cell``, ``name``, ``id`` or ``minhash``.
    value : str
        Key value within the family.
    """

    kind: str
    value: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.value}"


@dataclass(frozen=True)
class CandidatePair:
    """A cross-dataset record pair worth scoring.

    Attributes
    ----------
    first : NormalizedRecord
        Record with the smaller ``(source_dataset, source_id)`` key.
    second : NormalizedRecord
        Record with the larger key.
    blocker : str
        Name of the blocker that first generated the pair.

    Notes
    -----
    Use ``CandidatePair.of`` to build pairs; it enforces the ordering.
    """

    first: NormalizedRecord
    second: NormalizedRecord
    blocker: str = ""

    @classmethod
    def of(cls, a: NormalizedRecord, b: NormalizedRecord, blocker: str = "") -> "CandidatePair":
        """Build a pair with its endpoints in canonical order."""
        if b.key < a.key:
            a, b = b, a
        return cls(first=a, second=b, blocker=blocker)

    @property
    def keys(self) -> tuple[RecordKey, RecordKey]:
        """Endpoint keys, smaller first."""
        return (self.first.key, self.second.key)

    @property
    def pair_id(self) -> str:
        """Deterministic pair identifier (``"ds:a|ds:b"``)."""
        return f"{self.first.ref}|{self.second.ref}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "pair_id": self.pair_id,
            "first": self.first.ref,
            "second": self.second.ref,
            "blocker": self.blocker,
        }
