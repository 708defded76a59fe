"""Canonical record types shared by every stage."""

from transitalign.models.records import (
    SCHEMA_VERSION,
    Dataset,
    NormalizedRecord,
    RawRecord,
    RecordKey,
    format_record_key,
)

__all__ = [
    "SCHEMA_VERSION",
    "Dataset",
    "NormalizedRecord",
    "RawRecord",
    "RecordKey",
    "format_record_key",
]
