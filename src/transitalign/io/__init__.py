"""Reference input adapters and output sink."""

from transitalign.io.adapters import (
    load_dataset,
    read_gtfs_stops,
    read_json_dataset,
    read_jsonl_dataset,
    read_kml_dataset,
    source_id_of,
)
from transitalign.io.sink import ENTITIES_FILENAME, write_alignment, write_records_jsonl

__all__ = [
    "ENTITIES_FILENAME",
    "load_dataset",
    "read_gtfs_stops",
    "read_json_dataset",
    "read_jsonl_dataset",
    "read_kml_dataset",
    "source_id_of",
    "write_alignment",
    "write_records_jsonl",
]
