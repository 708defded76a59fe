"""Record data models for transitalign.

This module defines the two record shapes the engine works with: the opaque
``RawRecord`` produced by input adapters and the canonical
``NormalizedRecord`` consumed by every downstream stage.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

# Schema version constant
SCHEMA_VERSION = "1.0.0"

# (source_dataset, source_id)
RecordKey = tuple[str, str]


def format_record_key(key: RecordKey) -> str:
    """Render a record key as ``dataset:source_id``."""
    return f"{key[0]}:{key[1]}"


@dataclass(frozen=True)
class RawRecord:
    """Provider-specific entity description.

    Attributes
    ----------
    dataset : str
        Stable tag of the dataset the record was loaded from.
    source_id : str
        Source-local identifier, unique within the dataset.
    fields : Mapping[str, Any]
        Provider fields, untouched. The engine never inspects their schema
        beyond the normalizer's alias lists.
    """

    dataset: str
    source_id: str
    fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Dataset:
    """A named batch of raw records, as supplied by one input adapter.

    Attributes
    ----------
    name : str
        Dataset tag. Every record in ``records`` should carry it.
    records : Sequence[RawRecord]
        Records in source order.
    warnings : Sequence[str]
        Input items the adapter could not turn into records, as
        ``"location: reason"`` messages.
    """

    name: str
    records: Sequence[RawRecord]
    warnings: Sequence[str] = ()

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class NormalizedRecord:
    """Canonical view of a raw record.

    Missing optional attributes use explicit sentinels: empty strings for
    names and category, ``None`` for coordinates and an empty frozenset for
    identifiers.

    Attributes
    ----------
    source_dataset : str
        Dataset tag.
    source_id : str
        Source-local identifier.
    display_name : str
        Original name, whitespace-trimmed, for output.
    name_norm : str
        Matching form of the name (casefolded, no accents or punctuation).
    latitude : float | None
        Latitude in degrees, ``None`` when absent or invalid.
    longitude : float | None
        Longitude in degrees, ``None`` when absent or invalid.
    category : str
        Location category (see ``transitalign.normalize.categories``).
    aux_identifiers : frozenset[str]
        External identifiers usable as exact cross-references.
    coords_low_confidence : bool
        True when the provider supplied coordinates that were rejected.
    dataset_order : int
        Load order of the dataset, used for tie-breaking.
    """

    source_dataset: str
    source_id: str
    display_name: str = ""
    name_norm: str = ""
    latitude: float | None = None
    longitude: float | None = None
    category: str = ""
    aux_identifiers: frozenset[str] = frozenset()
    coords_low_confidence: bool = False
    dataset_order: int = 0

    @property
    def key(self) -> RecordKey:
        """Sort and identity key ``(source_dataset, source_id)``."""
        return (self.source_dataset, self.source_id)

    @property
    def ref(self) -> str:
        """Printable record reference."""
        return format_record_key(self.key)

    @property
    def has_coordinates(self) -> bool:
        """Whether both coordinates are present."""
        return self.latitude is not None and self.longitude is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "schema_version": SCHEMA_VERSION,
            "source_dataset": self.source_dataset,
            "source_id": self.source_id,
            "display_name": self.display_name,
            "name_norm": self.name_norm,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "category": self.category,
            "aux_identifiers": sorted(self.aux_identifiers),
            "coords_low_confidence": self.coords_low_confidence,
            "dataset_order": self.dataset_order,
        }
