"""Deterministic normalization of raw provider records.

This module maps provider-specific fields onto the canonical attribute set
(name, coordinates, category, identifiers). ``normalize`` is pure and
idempotent; ``normalize_all`` adds per-record error isolation, duplicate
detection and optional process-pool fan-out for a whole batch.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ProcessPoolExecutor
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from transitalign.errors import MalformedInput
from transitalign.models.records import Dataset, NormalizedRecord, RawRecord, RecordKey
from transitalign.normalize._helpers import (
    clean_display_text,
    first_present,
    is_null,
    normalize_text_for_matching,
    parse_float,
)
from transitalign.normalize.categories import normalize_category

if TYPE_CHECKING:
    from transitalign.audit.logger import AuditLogger

STAGE_NAME = "normalize"

# Provider field aliases, in priority order
NAME_FIELDS = (
    "name",
    "display_name",
    "stop_name",
    "zone_name",
    "nome",
    "nomepos",
    "desc",
    "park",
)
LAT_FIELDS = ("latitude", "lat", "stop_lat", "zone_lat")
LON_FIELDS = ("longitude", "lon", "lng", "stop_lon", "zone_lon")
POSITION_FIELDS = ("position",)
COORDINATES_FIELDS = ("coordinates",)
IDENTIFIER_FIELDS = ("identifiers", "aux_identifiers", "stop_code", "code", "ref", "external_id")
CATEGORY_FIELDS = ("category", "type", "ptype", "location_type")

# Below this many records a process pool costs more than it saves
_MIN_PARALLEL_BATCH = 256


# ---------------------------------------------------------------------------
# Field normalizers
# ---------------------------------------------------------------------------


def _valid_lat_lon(lat: float | None, lon: float | None) -> bool:
    if lat is None or lon is None:
        return False
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return False
    # (0, 0) is the usual "unknown" placeholder in transit feeds
    return not (lat == 0.0 and lon == 0.0)


def _split_coordinates(value: Any) -> tuple[Any, Any] | None:
    """Split a KML-style ``"lon,lat[,alt]"`` string or ``[lon, lat]`` list."""
    if isinstance(value, str):
        parts = [p for p in value.replace(";", ",").split(",") if p.strip()]
    elif isinstance(value, list | tuple):
        parts = list(value)
    else:
        return None
    if len(parts) < 2:
        return None
    return parts[1], parts[0]


def normalize_coordinates(fields: Mapping[str, Any]) -> tuple[float | None, float | None, bool]:
    """Resolve coordinates from provider fields.

    Parameters
    ----------
    fields : Mapping[str, Any]
        Provider fields.

    Returns
    -------
    tuple[float | None, float | None, bool]
        (latitude, longitude, low_confidence). Coordinates are both None
        unless both are valid; ``low_confidence`` is True when the provider
        supplied coordinates that had to be discarded.
    """
    raw_lat = first_present(fields, LAT_FIELDS)
    raw_lon = first_present(fields, LON_FIELDS)

    if raw_lat is None and raw_lon is None:
        position = first_present(fields, POSITION_FIELDS)
        if isinstance(position, list | tuple) and len(position) == 2:
            raw_lat, raw_lon = position
        else:
            split = _split_coordinates(first_present(fields, COORDINATES_FIELDS))
            if split is not None:
                raw_lat, raw_lon = split

    if raw_lat is None and raw_lon is None:
        return None, None, False

    lat = parse_float(raw_lat)
    lon = parse_float(raw_lon)
    if _valid_lat_lon(lat, lon):
        return lat, lon, False
    return None, None, True


def normalize_identifiers(fields: Mapping[str, Any]) -> frozenset[str]:
    """Collect external identifiers from every identifier alias.

    Identifiers are whitespace-trimmed and upper-cased; empty values are
    dropped. Scalar and iterable field values are both accepted.
    """
    lowered = {str(k).casefold(): v for k, v in fields.items()}
    identifiers: set[str] = set()

    for alias in IDENTIFIER_FIELDS:
        value = lowered.get(alias)
        if is_null(value):
            continue
        values: Iterable[Any]
        if isinstance(value, str | int | float):
            values = (value,)
        elif isinstance(value, Iterable):
            values = value
        else:
            continue
        for item in values:
            if is_null(item):
                continue
            text = " ".join(str(item).split()).upper()
            if text:
                identifiers.add(text)

    return frozenset(identifiers)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize(record: RawRecord, dataset_order: int = 0) -> NormalizedRecord:
    """Normalize a single raw record.

    This is the main entry point for normalization. Missing optional
    fields become explicit sentinels rather than errors.

    Parameters
    ----------
    record : RawRecord
        Input record from an input adapter.
    dataset_order : int, optional
        Load order of the record's dataset, by default 0.

    Returns
    -------
    NormalizedRecord
        Canonical view of the record.

    Raises
    ------
    MalformedInput
        If the dataset tag or the source identifier is missing.
    """
    dataset = clean_display_text(record.dataset)
    source_id = clean_display_text(record.source_id)

    if not dataset:
        raise MalformedInput("record has no dataset tag", source_id=source_id or None)
    if not source_id:
        raise MalformedInput("record has no source identifier", dataset=dataset)

    fields = record.fields if isinstance(record.fields, Mapping) else {}

    raw_name = first_present(fields, NAME_FIELDS)
    display_name = clean_display_text(raw_name)
    latitude, longitude, low_confidence = normalize_coordinates(fields)

    return NormalizedRecord(
        source_dataset=dataset,
        source_id=source_id,
        display_name=display_name,
        name_norm=normalize_text_for_matching(display_name),
        latitude=latitude,
        longitude=longitude,
        category=normalize_category(first_present(fields, CATEGORY_FIELDS)),
        aux_identifiers=normalize_identifiers(fields),
        coords_low_confidence=low_confidence,
        dataset_order=dataset_order,
    )


@dataclass
class SkippedRecord:
    """A record excluded from the run.

    Attributes
    ----------
    dataset : str | None
        Dataset tag, if known.
    source_id : str | None
        Source-local identifier, if known.
    reason : str
        Human-readable reason.
    """

    dataset: str | None
    source_id: str | None
    reason: str


@dataclass
class NormalizationReport:
    """Outcome of a batch normalization.

    Attributes
    ----------
    records_in : int
        Raw records received.
    records_out : int
        Records normalized successfully.
    low_confidence_coordinates : int
        Records whose supplied coordinates were discarded.
    skipped : list[SkippedRecord]
        Records excluded, with reasons.
    """

    records_in: int = 0
    records_out: int = 0
    low_confidence_coordinates: int = 0
    skipped: list[SkippedRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


def _normalize_safe(item: tuple[RawRecord, int]) -> NormalizedRecord | SkippedRecord:
    """Worker wrapper that turns ``MalformedInput`` into a ``SkippedRecord``."""
    record, order = item
    try:
        return normalize(record, order)
    except MalformedInput as e:
        return SkippedRecord(
            dataset=e.dataset or (str(record.dataset) if record.dataset else None),
            source_id=e.source_id or (str(record.source_id) if record.source_id else None),
            reason=str(e),
        )


def skipped_inputs(datasets: Iterable[Dataset]) -> list[SkippedRecord]:
    """Report the items input adapters could not turn into records."""
    return [
        SkippedRecord(dataset=d.name, source_id=None, reason=warning)
        for d in datasets
        for warning in d.warnings
    ]


def normalize_all(
    records: Sequence[RawRecord],
    *,
    rejected: Sequence[SkippedRecord] = (),
    dataset_orders: Mapping[str, int] | None = None,
    logger: AuditLogger | None = None,
    workers: int = 1,
) -> tuple[list[NormalizedRecord], NormalizationReport]:
    """Normalize a batch of raw records with per-record error isolation.

    Parameters
    ----------
    records : Sequence[RawRecord]
        Raw records, in load order.
    rejected : Sequence[SkippedRecord], optional
        Input items already refused by an adapter. They are reported with
        the records skipped here.
    dataset_orders : Mapping[str, int] | None, optional
        Load order per dataset tag. Unknown datasets get the next free slot
        in order of first appearance.
    logger : AuditLogger | None, optional
        Audit logger; each skipped record produces a WARN event.
    workers : int, optional
        Process-pool size. 1 keeps everything in-process.

    Returns
    -------
    tuple[list[NormalizedRecord], NormalizationReport]
        Normalized records in input order, and the batch report.
    """
    start = time.perf_counter()
    if logger:
        logger.stage_started(STAGE_NAME, expected_records=len(records) + len(rejected))

    orders = dict(dataset_orders or {})
    items: list[tuple[RawRecord, int]] = []
    for record in records:
        tag = str(record.dataset) if record.dataset else ""
        if tag not in orders:
            orders[tag] = len(orders)
        items.append((record, orders[tag]))

    if workers > 1 and len(items) >= _MIN_PARALLEL_BATCH:
        chunksize = max(1, len(items) // (workers * 4))
        with ProcessPoolExecutor(max_workers=workers) as ex:
            results = list(ex.map(_normalize_safe, items, chunksize=chunksize))
    else:
        results = [_normalize_safe(item) for item in items]

    report = NormalizationReport(records_in=len(records) + len(rejected))
    normalized: list[NormalizedRecord] = []
    seen: set[RecordKey] = set()

    for result in [*rejected, *results]:
        if isinstance(result, NormalizedRecord) and result.key in seen:
            result = SkippedRecord(
                dataset=result.source_dataset,
                source_id=result.source_id,
                reason="duplicate source identifier within dataset",
            )

        if isinstance(result, SkippedRecord):
            report.skipped.append(result)
            if logger:
                logger.event(
                    "record_skipped",
                    data={"dataset": result.dataset, "reason": result.reason},
                    level="WARN",
                    stage=STAGE_NAME,
                    rid=result.source_id,
                )
            continue

        seen.add(result.key)
        normalized.append(result)
        if result.coords_low_confidence:
            report.low_confidence_coordinates += 1

    report.records_out = len(normalized)

    if logger:
        logger.stage_finished(
            stage=STAGE_NAME,
            duration_seconds=time.perf_counter() - start,
            counters={
                "records_in": report.records_in,
                "records_out": report.records_out,
                "records_skipped": len(report.skipped),
                "low_confidence_coordinates": report.low_confidence_coordinates,
            },
        )

    return normalized, report
