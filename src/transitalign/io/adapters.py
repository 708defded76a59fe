"""Reference input adapters.

Adapters turn provider files into ``Dataset`` objects. They only split a
file into records and pick each record's source identifier; field
interpretation is left to the normalizer.

An item that cannot become a record (a line that is not JSON, an array
element that is not an object) is skipped and reported in
``Dataset.warnings``. A file that cannot be read as a whole raises
``MalformedInput``.
"""

import csv
import json
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from transitalign.errors import MalformedInput
from transitalign.models.records import Dataset, RawRecord

__all__ = [
    "ID_FIELDS",
    "SUPPORTED_SUFFIXES",
    "load_dataset",
    "read_gtfs_stops",
    "read_json_dataset",
    "read_jsonl_dataset",
    "read_kml_dataset",
    "source_id_of",
]

# Field names holding the source-local identifier, in priority order
ID_FIELDS = ("source_id", "id", "stop_id", "zone_id")

SUPPORTED_SUFFIXES = {
    ".jsonl": "jsonl",
    ".ndjson": "jsonl",
    ".json": "json",
    ".geojson": "json",
    ".kml": "kml",
    ".txt": "gtfs",
    ".csv": "gtfs",
}


def source_id_of(fields: Mapping[str, Any]) -> str:
    """Return the first non-blank identifier field, or an empty string.

    Field names are matched case-insensitively.
    """
    lowered = {str(k).casefold(): v for k, v in fields.items()}
    for key in ID_FIELDS:
        value = lowered.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _collect(
    dataset: str, items: Iterable[tuple[str, Any]], warnings: list[str]
) -> list[RawRecord]:
    """Turn ``(location, object)`` items into records, reporting non-objects."""
    records: list[RawRecord] = []
    for where, obj in items:
        if not isinstance(obj, dict):
            warnings.append(f"{where}: expected a JSON object, got {type(obj).__name__}")
            continue
        records.append(RawRecord(dataset=dataset, source_id=source_id_of(obj), fields=obj))
    return records


def _feature_fields(feature: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten a GeoJSON point feature into provider fields."""
    fields = dict(feature.get("properties") or {})
    if "id" in feature and "id" not in fields:
        fields["id"] = feature["id"]
    geometry = feature.get("geometry") or {}
    if geometry.get("type") == "Point" and "coordinates" not in fields:
        fields["coordinates"] = geometry.get("coordinates")
    return fields


def read_jsonl_dataset(path: Path | str, name: str | None = None) -> Dataset:
    """Read one JSON object per line.

    Parameters
    ----------
    path : Path | str
        JSONL file.
    name : str | None, optional
        Dataset tag; defaults to the file stem.

    Returns
    -------
    Dataset
        Records in file order. Blank lines are ignored; lines that are not
        JSON objects are skipped and listed in ``warnings``.
    """
    path = Path(path)
    dataset = name or path.stem
    warnings: list[str] = []
    items: list[tuple[str, Any]] = []

    with path.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            where = f"{path.name}:{lineno}"
            try:
                items.append((where, json.loads(line)))
            except json.JSONDecodeError as e:
                warnings.append(f"{where}: invalid JSON ({e.msg})")

    records = _collect(dataset, items, warnings)
    return Dataset(name=dataset, records=records, warnings=tuple(warnings))


def read_json_dataset(path: Path | str, name: str | None = None) -> Dataset:
    """Read a JSON array of objects, or a GeoJSON FeatureCollection.

    Point features contribute their ``[lon, lat]`` position as a
    ``coordinates`` field and their ``properties`` as the other fields.
    Array elements that are not objects are skipped and listed in
    ``warnings``.

    Raises
    ------
    MalformedInput
        If the document is not valid JSON, or is neither an array nor a
        FeatureCollection.
    """
    path = Path(path)
    dataset = name or path.stem

    with path.open("r", encoding="utf-8") as f:
        try:
            doc = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedInput(f"{path.name}: invalid JSON ({e.msg})", dataset=dataset) from e

    items: Iterable[Any]
    if isinstance(doc, dict) and doc.get("type") == "FeatureCollection":
        items = (
            _feature_fields(feat) if isinstance(feat, dict) else feat
            for feat in doc.get("features") or []
        )
    elif isinstance(doc, list):
        items = doc
    else:
        raise MalformedInput(
            f"{path.name}: expected a JSON array or a GeoJSON FeatureCollection",
            dataset=dataset,
        )

    warnings: list[str] = []
    located = ((f"{path.name}[{i}]", obj) for i, obj in enumerate(items))
    records = _collect(dataset, located, warnings)
    return Dataset(name=dataset, records=records, warnings=tuple(warnings))


def _local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on tags."""
    return tag.rsplit("}", 1)[-1]


def _placemark_fields(placemark: ET.Element) -> dict[str, Any]:
    """Collect ``SimpleData``/``Data`` values, name and point of a Placemark."""
    fields: dict[str, Any] = {}
    if placemark.get("id"):
        fields["id"] = placemark.get("id")

    for elem in placemark.iter():
        tag = _local_name(elem.tag)
        if tag == "SimpleData" and elem.get("name"):
            fields.setdefault(elem.get("name"), (elem.text or "").strip())
        elif tag == "Data" and elem.get("name"):
            value = next((c for c in elem if _local_name(c.tag) == "value"), None)
            if value is not None:
                fields.setdefault(elem.get("name"), (value.text or "").strip())

    for child in placemark:
        tag = _local_name(child.tag)
        if tag == "name" and child.text and child.text.strip():
            fields.setdefault("name", child.text.strip())
        elif tag == "Point":
            for coords in child.iter():
                if _local_name(coords.tag) == "coordinates" and coords.text:
                    fields.setdefault("coordinates", coords.text.strip())
    return fields


def read_kml_dataset(path: Path | str, name: str | None = None) -> Dataset:
    """Read the Placemarks of a KML document.

    Each Placemark becomes one record. ``ExtendedData`` values become
    fields under their ``name`` attribute, the Placemark ``<name>`` becomes
    ``name`` and a ``Point`` contributes its ``"lon,lat[,alt]"`` text as
    ``coordinates``. Placemarks without an identifier field are keyed by
    their position in the document.

    Parameters
    ----------
    path : Path | str
        KML file, with or without the KML namespace.
    name : str | None, optional
        Dataset tag; defaults to the file stem.

    Returns
    -------
    Dataset
        One record per Placemark, in document order.

    Raises
    ------
    MalformedInput
        If the file is not well-formed XML.
    """
    path = Path(path)
    dataset = name or path.stem

    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as e:
        raise MalformedInput(f"{path.name}: invalid KML ({e})", dataset=dataset) from e

    records: list[RawRecord] = []
    placemarks = (elem for elem in root.iter() if _local_name(elem.tag) == "Placemark")
    for index, placemark in enumerate(placemarks):
        fields = _placemark_fields(placemark)
        source_id = source_id_of(fields) or str(index)
        records.append(RawRecord(dataset=dataset, source_id=source_id, fields=fields))

    return Dataset(name=dataset, records=records)


def read_gtfs_stops(path: Path | str, name: str | None = None) -> Dataset:
    """Read a GTFS ``stops.txt`` (or any CSV with a header row).

    Parameters
    ----------
    path : Path | str
        CSV file; a UTF-8 BOM is tolerated.
    name : str | None, optional
        Dataset tag; defaults to the file stem.

    Returns
    -------
    Dataset
        One record per row, keyed by ``stop_id`` (or ``id``).
    """
    path = Path(path)
    dataset = name or path.stem
    records: list[RawRecord] = []

    with path.open("r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            fields = {
                (key or "").strip(): (value.strip() if isinstance(value, str) else value)
                for key, value in row.items()
                if key is not None
            }
            record = RawRecord(dataset=dataset, source_id=source_id_of(fields), fields=fields)
            records.append(record)

    return Dataset(name=dataset, records=records)


_READERS = {
    "jsonl": read_jsonl_dataset,
    "json": read_json_dataset,
    "kml": read_kml_dataset,
    "gtfs": read_gtfs_stops,
}


def load_dataset(path: Path | str, name: str | None = None) -> Dataset:
    """Load a dataset, choosing the reader from the file suffix.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the suffix is not supported.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    kind = SUPPORTED_SUFFIXES.get(path.suffix.lower())
    if kind is None:
        valid = ", ".join(sorted(SUPPORTED_SUFFIXES))
        raise ValueError(f"Unsupported dataset format: {path.suffix!r}. Supported: {valid}")
    return _READERS[kind](path, name)
