"""Data models for the alignment result."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from transitalign.models.records import SCHEMA_VERSION, RecordKey


@dataclass(frozen=True)
class CanonicalEntity:
    """Synthesized representative of one alignment cluster.

    Attributes
    ----------
    entity_id : str
        Cluster identifier the entity was built from.
    display_name : str
        Name of the representative member.
    latitude : float | None
        Centroid latitude of members with coordinates.
    longitude : float | None
        Centroid longitude of members with coordinates.
    category : str
        Most frequent non-empty member category.
    identifiers : tuple[str, ...]
        Union of member identifiers, sorted.
    representative : RecordKey
        Member whose name was chosen.
    members : tuple[RecordKey, ...]
        Provenance: every contributing ``(source_dataset, source_id)``.
    cohesion : float | None
        Lowest pairwise score inside the cluster.
    """

    entity_id: str
    display_name: str
    latitude: float | None
    longitude: float | None
    category: str
    identifiers: tuple[str, ...]
    representative: RecordKey
    members: tuple[RecordKey, ...]
    cohesion: float | None = None

    @property
    def datasets(self) -> tuple[str, ...]:
        """Distinct contributing datasets, sorted."""
        return tuple(sorted({dataset for dataset, _ in self.members}))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "entity_id": self.entity_id,
            "display_name": self.display_name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "category": self.category,
            "identifiers": list(self.identifiers),
            "representative": {
                "source_dataset": self.representative[0],
                "source_id": self.representative[1],
            },
            "provenance": [
                {"source_dataset": dataset, "source_id": source_id}
                for dataset, source_id in self.members
            ],
            "cohesion": self.cohesion,
        }


@dataclass(frozen=True)
class AlignmentResult:
    """Full partition of the input records plus provenance.

    Attributes
    ----------
    entities : tuple[CanonicalEntity, ...]
        Canonical entities, sorted by ``entity_id``.
    record_to_entity : Mapping[RecordKey, str]
        Entity id of every input record.
    """

    entities: tuple[CanonicalEntity, ...]
    record_to_entity: Mapping[RecordKey, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entities)

    @property
    def provenance(self) -> dict[str, list[RecordKey]]:
        """Entity id → contributing ``(source_dataset, source_id)`` keys."""
        return {e.entity_id: list(e.members) for e in self.entities}

    def entity(self, entity_id: str) -> CanonicalEntity:
        """Look up an entity by id.

        Raises
        ------
        KeyError
            If no entity has that id.
        """
        for e in self.entities:
            if e.entity_id == entity_id:
                return e
        raise KeyError(entity_id)

    def entity_for(self, key: RecordKey) -> CanonicalEntity:
        """Entity a source record was resolved to."""
        return self.entity(self.record_to_entity[key])

    def summary(self) -> dict[str, int]:
        """Counts of records and entities."""
        return {
            "records": len(self.record_to_entity),
            "entities": len(self.entities),
            "multi_source_entities": sum(1 for e in self.entities if len(e.members) > 1),
            "singletons": sum(1 for e in self.entities if len(e.members) == 1),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "schema_version": SCHEMA_VERSION,
            "summary": self.summary(),
            "entities": [e.to_dict() for e in self.entities],
        }
