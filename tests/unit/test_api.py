"""Tests for the public API module."""

import json
import subprocess
import sys
from pathlib import Path

import pytest

import transitalign
from transitalign import (
    AlignmentConfig,
    AlignmentRunResult,
    Dataset,
    RawRecord,
    align,
    align_files,
)
from transitalign.audit import AuditLogger


@pytest.fixture
def mapping_input() -> dict[str, list[dict]]:
    """Two providers describing the same stop."""
    return {
        "gtfs": [{"id": "1", "name": "Via Roma", "lat": 46.070, "lon": 11.121}],
        "osm": [{"id": "a", "name": "V. Roma", "lat": 46.0701, "lon": 11.1211}],
    }


@pytest.mark.unit
def test_package_exports() -> None:
    """Test the top-level package exposes the public API."""
    for name in transitalign.__all__:
        assert hasattr(transitalign, name)
    assert transitalign.__version__


@pytest.mark.unit
@pytest.mark.parametrize(
    "module",
    [
        "transitalign.clustering",
        "transitalign.clustering.resolver",
        "transitalign.scoring.scorer",
        "transitalign.alignment",
        "transitalign.engine.config",
    ],
)
def test_subpackages_import_in_any_order(module: str) -> None:
    """Test each subpackage imports on its own in a fresh interpreter."""
    result = subprocess.run(
        [sys.executable, "-c", f"import importlib; importlib.import_module({module!r})"],
        capture_output=True,
        text=True,
        check=False,
    )

    assert result.returncode == 0, result.stderr


@pytest.mark.unit
def test_align_mapping_input(mapping_input: dict[str, list[dict]]) -> None:
    """Test plain dict records are aligned by dataset name."""
    run = align(mapping_input)

    assert isinstance(run, AlignmentRunResult)
    assert len(run.result.entities) == 1
    entity = run.result.entities[0]
    assert entity.members == (("gtfs", "1"), ("osm", "a"))
    assert entity.display_name == "Via Roma"


@pytest.mark.unit
def test_align_dataset_input() -> None:
    """Test Dataset objects are accepted as-is."""
    datasets = [
        Dataset("gtfs", [RawRecord("gtfs", "S1", {"stop_name": "Piazza Duomo"})]),
        Dataset("kml", [RawRecord("kml", "K1", {"name": "Torre Vanga"})]),
    ]

    run = align(datasets)

    assert run.result.summary()["singletons"] == 2


@pytest.mark.unit
def test_align_with_config(mapping_input: dict[str, list[dict]]) -> None:
    """Test a strict threshold keeps the records apart."""
    run = align(mapping_input, config=AlignmentConfig(match_threshold=0.95))

    assert len(run.result.entities) == 2


@pytest.mark.unit
def test_align_with_logger(mapping_input: dict[str, list[dict]], tmp_path: Path) -> None:
    """Test the logger receives the run events."""
    log_path = tmp_path / "events.jsonl"

    with AuditLogger("api_run", log_path) as logger:
        align(mapping_input, logger=logger)

    events = [json.loads(line) for line in log_path.read_text().splitlines()]
    assert events[0]["event"] == "run_started"
    assert events[-1]["event"] == "run_finished"
    assert events[-1]["data"]["status"] == "success"


@pytest.mark.unit
def test_align_files(tmp_path: Path) -> None:
    """Test files are loaded by suffix and named by stem."""
    stops = tmp_path / "stops.txt"
    stops.write_text(
        "stop_id,stop_code,stop_name\nS2,STOP-445,North Gate\n",
        encoding="utf-8",
    )
    osm = tmp_path / "osm.jsonl"
    osm.write_text('{"id": "n2", "name": "Porta Nord", "ref": "stop-445"}\n', encoding="utf-8")

    run = align_files([stops, osm])

    assert len(run.result.entities) == 1
    assert run.result.entities[0].datasets == ("osm", "stops")
    assert run.result.entities[0].identifiers == ("STOP-445",)


@pytest.mark.unit
def test_align_files_missing(tmp_path: Path) -> None:
    """Test a missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        align_files([tmp_path / "missing.jsonl"])


@pytest.mark.unit
def test_align_files_skips_bad_lines(tmp_path: Path) -> None:
    """Test a malformed input line is reported instead of aborting the run."""
    osm = tmp_path / "osm.jsonl"
    osm.write_text(
        '{"id": "n1", "name": "Via Roma", "lat": 46.070, "lon": 11.121}\n'
        "{not json\n"
        '{"id": "n2", "name": "Torre Vanga", "lat": 46.080, "lon": 11.130}\n',
        encoding="utf-8",
    )
    log_path = tmp_path / "events.jsonl"

    with AuditLogger("skip_run", log_path) as logger:
        run = align_files([osm], logger=logger)

    assert run.result.summary()["records"] == 2
    assert len(run.normalization.skipped) == 1
    skipped = run.normalization.skipped[0]
    assert skipped.dataset == "osm"
    assert skipped.reason.startswith("osm.jsonl:2:")
    events = [json.loads(line) for line in log_path.read_text().splitlines()]
    warning = next(e for e in events if e["event"] == "record_skipped")
    assert warning["level"] == "WARN"
    assert warning["data"]["dataset"] == "osm"
