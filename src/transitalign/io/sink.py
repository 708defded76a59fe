"""Reference output sink.

Serializes an ``AlignmentResult`` as a JSON array of canonical entities,
each carrying its provenance. Output is deterministic: keys sorted,
entities ordered by id, UTF-8.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from transitalign.alignment.models import AlignmentResult
from transitalign.models.records import NormalizedRecord
from transitalign.utils import calculate_file_sha256

if TYPE_CHECKING:
    from transitalign.audit.logger import AuditLogger

__all__ = ["ENTITIES_FILENAME", "write_alignment", "write_records_jsonl"]

ENTITIES_FILENAME = "entities.json"


def write_alignment(
    result: AlignmentResult,
    output_dir: Path | str,
    *,
    logger: AuditLogger | None = None,
) -> Path:
    """Write ``entities.json`` into *output_dir*.

    Parameters
    ----------
    result : AlignmentResult
        Result to serialize.
    output_dir : Path | str
        Destination directory (created if missing).
    logger : AuditLogger | None, optional
        Receives an ``artifact_written`` event.

    Returns
    -------
    Path
        Path of the written file.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / ENTITIES_FILENAME

    entities = [entity.to_dict() for entity in result.entities]
    with path.open("w", encoding="utf-8", newline="\n") as f:
        json.dump(entities, f, ensure_ascii=False, sort_keys=True, indent=2)
        f.write("\n")

    if logger:
        logger.artifact_written(
            path=path.name,
            sha256=calculate_file_sha256(path),
            stage="output",
            bytes_written=path.stat().st_size,
            record_count=len(entities),
        )

    return path


def write_records_jsonl(records: Iterable[NormalizedRecord], path: Path | str) -> int:
    """Write normalized records to JSONL (one JSON object per line).

    Returns
    -------
    int
        Number of records written.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with file_path.open("w", encoding="utf-8", newline="\n") as f:
        for record in records:
            f.write(json.dumps(record.to_dict(), ensure_ascii=False, sort_keys=True) + "\n")
            count += 1
    return count
