"""Blocker plug-ins for candidate generation.

Each blocker maps records to block keys. Records sharing a key (or, for the
grid blocker, sitting in adjacent cells) become candidate pairs. The design
prioritises *recall*; precision is left to the scoring stage.

Architecture
------------
* ``Blocker`` is a structural protocol (one attribute + one method).
* Optional hooks are discovered with ``hasattr`` by the index:
  ``initialize(records)`` for a batch-level pre-pass, ``neighbour_keys(key)``
  for spatial adjacency, and ``accepts(a, b)`` to veto pairs.
"""

from __future__ import annotations

import hashlib
import math
from collections.abc import Iterable, Iterator
from dataclasses import asdict, dataclass
from typing import Protocol, runtime_checkable

from datasketch import MinHash

from transitalign.candidates.models import BlockKey
from transitalign.models.records import NormalizedRecord
from transitalign.utils.geo import meters_to_lat_degrees

# ============================================================================
# Constants
# ============================================================================

DEFAULT_CELL_SIZE_METERS = 250.0

# Cosine widening stops here so that polar batches keep a usable grid
MAX_GRID_LATITUDE = 89.0

MINHASH_NUM_PERM = 64
MINHASH_BANDS = 16
MINHASH_SHINGLE_SIZE = 3
MINHASH_SEED = 42


# ============================================================================
# Statistics
# ============================================================================


@dataclass
class BlockerStats:
    """Counters collected while running a single blocker.

    Attributes
    ----------
    records_seen : int
        Total records processed.
    records_keyed : int
        Records that produced at least one blocking key.
    unique_keys : int
        Distinct blocking keys generated.
    blocks_gt1 : int
        Blocks containing two or more records.
    max_block : int
        Largest block size encountered.
    oversized_blocks : int
        Blocks larger than the configured maximum.
    pairs_raw : int
        Cross-dataset pairs seen before cross-blocker dedup.
    pairs_unique : int
        Pairs first emitted by this blocker.
    """

    records_seen: int = 0
    records_keyed: int = 0
    unique_keys: int = 0
    blocks_gt1: int = 0
    max_block: int = 0
    oversized_blocks: int = 0
    pairs_raw: int = 0
    pairs_unique: int = 0

    def to_dict(self) -> dict[str, int]:
        """Serialise to a plain dict."""
        return asdict(self)


# ============================================================================
# Protocol
# ============================================================================


@runtime_checkable
class Blocker(Protocol):
    """Structural protocol every blocker must satisfy.

    Attributes
    ----------
    name : str
        Stable identifier used in audit logs and pair provenance.
    """

    name: str

    def block_keys(self, record: NormalizedRecord) -> Iterable[BlockKey]:
        """Yield zero or more blocking keys for *record*.

        Returns an empty iterable when the record lacks the data this
        blocker needs.
        """
        ...


def _lacks_coordinates(a: NormalizedRecord, b: NormalizedRecord) -> bool:
    return not (a.has_coordinates and b.has_coordinates)


# ============================================================================
# Spatial blocker
# ============================================================================


class GridCellBlocker:
    """Block records by geographic grid cell.

    The latitude step equals ``cell_size_meters``. ``initialize`` widens the
    longitude step by the cosine of the highest latitude in the batch, so
    two records closer than the cell size always land in the same or
    adjacent cells. Adjacent cells are exposed through ``neighbour_keys``.

    Attributes
    ----------
    cell_size_meters : float
        Edge length of a cell along the meridian.
    by_category : bool
        Append the record category to the cell key.
    """

    name: str = "grid_cell"

    def __init__(
        self,
        cell_size_meters: float = DEFAULT_CELL_SIZE_METERS,
        by_category: bool = False,
    ) -> None:
        if cell_size_meters <= 0:
            raise ValueError(f"cell_size_meters must be > 0, got {cell_size_meters}")
        self.cell_size_meters = cell_size_meters
        self.by_category = by_category
        self.lat_step = meters_to_lat_degrees(cell_size_meters)
        self.lon_step = self.lat_step
        self._columns: int | None = None

    def initialize(self, records: list[NormalizedRecord]) -> None:
        """Fix the longitude step for this batch."""
        max_abs_lat = max(
            (abs(r.latitude) for r in records if r.latitude is not None and r.has_coordinates),
            default=0.0,
        )
        # One extra row of margin covers great circles bulging poleward
        phi = min(max_abs_lat + self.lat_step, MAX_GRID_LATITUDE)
        min_lon_step = self.lat_step / math.cos(math.radians(phi))
        self._columns = max(1, math.floor(360.0 / min_lon_step))
        self.lon_step = 360.0 / self._columns

    def cell_of(self, latitude: float, longitude: float) -> tuple[int, int]:
        """Return the ``(row, column)`` of a coordinate.

        Raises
        ------
        RuntimeError
            If ``initialize()`` has not been called.
        """
        if self._columns is None:
            raise RuntimeError("initialize() must be called before cell_of()")
        row = math.floor((latitude + 90.0) / self.lat_step)
        col = math.floor((longitude + 180.0) / self.lon_step) % self._columns
        return row, col

    def _key(self, row: int, col: int, category: str | None) -> BlockKey:
        value = f"{row}:{col}"
        if category is not None:
            value = f"{value}:{category}"
        return BlockKey("cell", value)

    def block_keys(self, record: NormalizedRecord) -> Iterable[BlockKey]:
        """Yield the record's own cell."""
        if record.latitude is None or record.longitude is None:
            return
        row, col = self.cell_of(record.latitude, record.longitude)
        yield self._key(row, col, record.category if self.by_category else None)

    def neighbour_keys(self, key: BlockKey) -> Iterator[BlockKey]:
        """Yield the 8 cells around *key* (wrapping across the antimeridian)."""
        if self._columns is None:
            raise RuntimeError("initialize() must be called before neighbour_keys()")
        parts = key.value.split(":", 2)
        row, col = int(parts[0]), int(parts[1])
        category = parts[2] if len(parts) > 2 else None

        seen = {key}
        for d_row in (-1, 0, 1):
            for d_col in (-1, 0, 1):
                neighbour = self._key(row + d_row, (col + d_col) % self._columns, category)
                if neighbour not in seen:
                    seen.add(neighbour)
                    yield neighbour


# ============================================================================
# Identifier blocker
# ============================================================================


class IdentifierBlocker:
    """Block by exact external identifier."""

    name: str = "identifier"

    def block_keys(self, record: NormalizedRecord) -> Iterable[BlockKey]:
        """Yield one key per aux identifier."""
        for identifier in sorted(record.aux_identifiers):
            yield BlockKey("id", identifier)


# ============================================================================
# Name blockers (fallback for records without coordinates)
# ============================================================================


class NameTokenBlocker:
    """Block by the first token of the normalized name.

    Only pairs where at least one side lacks coordinates are accepted;
    located pairs are left to the grid.
    """

    name: str = "name_token"

    def block_keys(self, record: NormalizedRecord) -> Iterable[BlockKey]:
        """Yield the first name token if present."""
        tokens = record.name_norm.split()
        if tokens:
            yield BlockKey("name", tokens[0])

    def accepts(self, a: NormalizedRecord, b: NormalizedRecord) -> bool:
        """Veto pairs where both records are located."""
        return _lacks_coordinates(a, b)


def _char_shingles(text: str, size: int = MINHASH_SHINGLE_SIZE) -> set[str]:
    padded = f" {text} "
    if len(padded) <= size:
        return {padded}
    return {padded[i : i + size] for i in range(len(padded) - size + 1)}


class NameMinHashBlocker:
    """LSH banding over MinHash signatures of name character trigrams.

    A recall-oriented replacement for ``NameTokenBlocker`` that tolerates
    abbreviations in the first word ("V. Roma" / "Via Roma").

    Attributes
    ----------
    num_perm : int
        Number of MinHash permutations.
    bands : int
        Number of LSH bands.
    """

    name: str = "name_minhash"

    def __init__(self, num_perm: int = MINHASH_NUM_PERM, bands: int = MINHASH_BANDS) -> None:
        if bands <= 0 or num_perm % bands:
            raise ValueError(f"num_perm ({num_perm}) must be a multiple of bands ({bands})")
        self.num_perm = num_perm
        self.bands = bands
        self.rows_per_band = num_perm // bands

    def block_keys(self, record: NormalizedRecord) -> Iterable[BlockKey]:
        """Yield one band-hash key per LSH band."""
        if not record.name_norm:
            return

        mh = MinHash(num_perm=self.num_perm, seed=MINHASH_SEED)
        for shingle in sorted(_char_shingles(record.name_norm)):
            mh.update(shingle.encode("utf-8"))

        hv = mh.hashvalues
        for band in range(self.bands):
            start = band * self.rows_per_band
            band_bytes = ",".join(map(str, hv[start : start + self.rows_per_band]))
            band_hash = hashlib.sha256(band_bytes.encode("utf-8")).hexdigest()[:16]
            yield BlockKey("minhash", f"b{band}:{band_hash}")

    def accepts(self, a: NormalizedRecord, b: NormalizedRecord) -> bool:
        """Veto pairs where both records are located."""
        return _lacks_coordinates(a, b)
