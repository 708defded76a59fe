"""Tests for schema validation of audit events and the entities output."""

import json
from collections.abc import Callable
from pathlib import Path

import jsonschema
import pytest

from transitalign.audit import AuditLogger
from transitalign.engine import run_alignment
from transitalign.io import write_alignment
from transitalign.models import Dataset, RawRecord

_SCHEMAS_DIR = Path(__file__).parent.parent.parent / "schemas"


@pytest.fixture(scope="module")
def event_schema() -> dict:
    """Load log event JSON schema."""
    with (_SCHEMAS_DIR / "log_event.schema.json").open() as f:
        return json.load(f)


@pytest.fixture(scope="module")
def result_schema() -> dict:
    """Load alignment result JSON schema."""
    with (_SCHEMAS_DIR / "alignment_result.schema.json").open() as f:
        return json.load(f)


def _datasets(make_raw: Callable[..., RawRecord]) -> list[Dataset]:
    return [
        Dataset(
            "gtfs",
            [
                make_raw("gtfs", "S1", stop_name="Via Roma", stop_lat=46.070, stop_lon=11.121),
                make_raw("gtfs", "S2", stop_name="North Gate", stop_code="STOP-445"),
                make_raw("gtfs", "", stop_name="Broken"),
            ],
        ),
        Dataset(
            "kml",
            [
                make_raw("kml", "K1", name="V. Roma", coordinates="11.1211,46.0701"),
                make_raw("kml", "K2", name="Porta Nord", code="STOP-445"),
            ],
        ),
    ]


@pytest.mark.unit
def test_generated_events_validate(
    tmp_path: Path,
    event_schema: dict,
    make_raw: Callable[..., RawRecord],
) -> None:
    """Test every event of a real run validates against the schema."""
    log_path = tmp_path / "events.jsonl"

    with AuditLogger("2026-01-01T00:00:00Z__abcd1234", log_path) as logger:
        run = run_alignment(_datasets(make_raw), logger=logger)
        write_alignment(run.result, tmp_path, logger=logger)

    with log_path.open() as f:
        events = [json.loads(line) for line in f if line.strip()]

    for event in events:
        jsonschema.validate(instance=event, schema=event_schema)
    names = {e["event"] for e in events}
    assert {"run_started", "record_skipped", "artifact_written", "run_finished"} <= names


@pytest.mark.unit
def test_entities_output_validates(
    tmp_path: Path,
    result_schema: dict,
    make_raw: Callable[..., RawRecord],
) -> None:
    """Test the sink output validates against the schema."""
    run = run_alignment(_datasets(make_raw))
    path = write_alignment(run.result, tmp_path)

    with path.open(encoding="utf-8") as f:
        entities = json.load(f)

    jsonschema.validate(instance=entities, schema=result_schema)
    assert len(entities) == 2


@pytest.mark.unit
def test_invalid_data_rejected_by_schema(event_schema: dict, result_schema: dict) -> None:
    """Test schemas reject invalid levels, statuses and missing fields."""
    base = {
        "ts": "2026-01-01T00:00:00.000001Z",
        "run_id": "2026-01-01T00:00:00Z__abcd1234",
        "level": "INFO",
        "event": "run_finished",
        "data": {"status": "success", "duration_seconds": 1.0},
        "stage": None,
        "rid": None,
    }
    jsonschema.validate(instance=base, schema=event_schema)

    with pytest.raises(jsonschema.ValidationError):
        jsonschema.validate(instance={**base, "level": "TRACE"}, schema=event_schema)
    with pytest.raises(jsonschema.ValidationError):
        jsonschema.validate(
            instance={**base, "data": {"status": "partial", "duration_seconds": 1.0}},
            schema=event_schema,
        )
    missing_ts = {k: v for k, v in base.items() if k != "ts"}
    with pytest.raises(jsonschema.ValidationError):
        jsonschema.validate(instance=missing_ts, schema=event_schema)

    with pytest.raises(jsonschema.ValidationError):
        jsonschema.validate(
            instance=[{"entity_id": "c:abc", "provenance": []}],
            schema=result_schema,
        )
