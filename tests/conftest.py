"""Pytest configuration and fixtures for test suite."""

import random
import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pytest

# Add src directory to path for imports
SRC_PATH = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_PATH))

from transitalign.models import Dataset, NormalizedRecord, RawRecord  # noqa: E402
from transitalign.normalize import normalize_text_for_matching  # noqa: E402

SCHEMAS_DIR = Path(__file__).parent.parent / "schemas"

# Trento city centre; generated records scatter around it
_BASE_LAT = 46.0700
_BASE_LON = 11.1210

_STREET_NAMES = (
    "Via Roma",
    "Piazza Duomo",
    "Stazione Centrale",
    "Ponte San Lorenzo",
    "Largo Carducci",
    "Via Verdi",
    "Torre Vanga",
    "Piazza Dante",
    "Via Brennero",
    "Porta Nord",
)


@pytest.fixture
def make_record() -> Callable[..., NormalizedRecord]:
    """Factory for normalized records with minimal boilerplate.

    ``name_norm`` is derived from ``name`` the same way the normalizer
    does it.
    """

    def _factory(
        dataset: str = "gtfs",
        source_id: str = "1",
        *,
        name: str = "",
        lat: float | None = None,
        lon: float | None = None,
        category: str = "",
        identifiers: Iterable[str] = (),
        dataset_order: int = 0,
    ) -> NormalizedRecord:
        return NormalizedRecord(
            source_dataset=dataset,
            source_id=source_id,
            display_name=name,
            name_norm=normalize_text_for_matching(name),
            latitude=lat,
            longitude=lon,
            category=category,
            aux_identifiers=frozenset(identifiers),
            dataset_order=dataset_order,
        )

    return _factory


@pytest.fixture
def make_raw() -> Callable[..., RawRecord]:
    """Factory for raw provider records: keyword arguments become fields."""

    def _factory(dataset: str = "gtfs", source_id: str = "1", **fields: Any) -> RawRecord:
        return RawRecord(dataset=dataset, source_id=source_id, fields=fields)

    return _factory


def random_datasets(
    seed: int,
    *,
    datasets: int = 3,
    records_per_dataset: int = 25,
) -> list[Dataset]:
    """Generate overlapping datasets describing the same random places.

    Every dataset copies a subset of a shared pool of places with jittered
    coordinates, abbreviated or misspelled names and occasional shared
    stop codes, so alignment has real work to do.
    """
    rng = random.Random(seed)
    pool = []
    for i in range(records_per_dataset * 2):
        pool.append(
            {
                "name": f"{rng.choice(_STREET_NAMES)} {i}",
                "lat": _BASE_LAT + rng.uniform(-0.01, 0.01),
                "lon": _BASE_LON + rng.uniform(-0.01, 0.01),
                "code": f"STOP-{i:03d}",
            }
        )

    result = []
    for d in range(datasets):
        tag = f"ds{d}"
        records = []
        for j, place in enumerate(rng.sample(pool, records_per_dataset)):
            fields: dict[str, Any] = {"name": place["name"]}
            if rng.random() < 0.3:
                fields["name"] = place["name"].replace("Via ", "V. ").replace("Piazza ", "P.za ")
            if rng.random() < 0.85:
                fields["lat"] = place["lat"] + rng.uniform(-0.0002, 0.0002)
                fields["lon"] = place["lon"] + rng.uniform(-0.0002, 0.0002)
            if rng.random() < 0.2:
                fields["code"] = place["code"]
            records.append(RawRecord(dataset=tag, source_id=f"{tag}-{j}", fields=fields))
        result.append(Dataset(name=tag, records=records))
    return result


@pytest.fixture
def seeded_datasets() -> Callable[..., list[Dataset]]:
    """Expose ``random_datasets`` as a fixture."""
    return random_datasets
