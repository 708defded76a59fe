"""Tests for CLI module."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from transitalign.cli.main import _split_dataset_arg, cli


@pytest.fixture
def runner() -> CliRunner:
    """Provide Click test CLI runner."""
    return CliRunner()


@pytest.fixture
def stops_file(tmp_path: Path) -> Path:
    """GTFS stops.txt with two stops."""
    path = tmp_path / "stops.txt"
    path.write_text(
        "stop_id,stop_code,stop_name,stop_lat,stop_lon\n"
        "S1,,Via Roma,46.070,11.121\n"
        "S2,STOP-445,North Gate,,\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def osm_file(tmp_path: Path) -> Path:
    """JSONL dataset describing the same stops."""
    path = tmp_path / "osm.jsonl"
    lines = [
        {"id": "n1", "name": "V. Roma", "lat": 46.0701, "lon": 11.1211},
        {"id": "n2", "name": "Porta Nord", "ref": "STOP-445"},
        {"id": "n3", "name": "Torre Vanga", "lat": 46.0800, "lon": 11.1300},
    ]
    path.write_text("".join(json.dumps(line) + "\n" for line in lines), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Top-level CLI
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_cli_version_flag(runner: CliRunner) -> None:
    """Test --version flag outputs version string."""
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "transitalign" in result.output


@pytest.mark.unit
def test_cli_help(runner: CliRunner) -> None:
    """Test --help output lists commands."""
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "normalize" in result.output
    assert "align" in result.output


@pytest.mark.unit
def test_cli_invalid_command(runner: CliRunner) -> None:
    """Test invalid command returns non-zero exit code."""
    result = runner.invoke(cli, ["invalid-command"])

    assert result.exit_code != 0


@pytest.mark.unit
def test_split_dataset_arg(tmp_path: Path) -> None:
    """Test NAME=PATH arguments, bare paths and paths containing '='."""
    assert _split_dataset_arg("gtfs=stops.txt") == ("gtfs", Path("stops.txt"))
    assert _split_dataset_arg("stops.txt") == (None, Path("stops.txt"))

    odd = tmp_path / "a=b.jsonl"
    odd.write_text("")
    assert _split_dataset_arg(str(odd)) == (None, odd)


# ---------------------------------------------------------------------------
# normalize command
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_normalize_help(runner: CliRunner) -> None:
    """Test normalize command help."""
    result = runner.invoke(cli, ["normalize", "--help"])

    assert result.exit_code == 0
    assert "Normalize one DATASET" in result.output


@pytest.mark.unit
def test_normalize_writes_jsonl(runner: CliRunner, stops_file: Path, tmp_path: Path) -> None:
    """Test normalize writes one canonical record per stop."""
    output = tmp_path / "records.jsonl"

    result = runner.invoke(cli, ["normalize", f"gtfs={stops_file}", "-o", str(output)])

    assert result.exit_code == 0
    assert "Wrote 2 normalized records" in result.output
    records = [json.loads(line) for line in output.read_text().splitlines()]
    assert [r["source_dataset"] for r in records] == ["gtfs", "gtfs"]
    assert records[0]["name_norm"] == "via roma"
    assert records[1]["latitude"] is None


@pytest.mark.unit
def test_normalize_missing_file(runner: CliRunner, tmp_path: Path) -> None:
    """Test normalize reports a missing file and exits 1."""
    result = runner.invoke(
        cli, ["normalize", str(tmp_path / "nope.jsonl"), "-o", str(tmp_path / "o.jsonl")]
    )

    assert result.exit_code == 1
    assert "Error" in result.output


# ---------------------------------------------------------------------------
# align command
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_align_help(runner: CliRunner) -> None:
    """Test align command help."""
    result = runner.invoke(cli, ["align", "--help"])

    assert result.exit_code == 0
    assert "--match-threshold" in result.output
    assert "--min-cluster-threshold" in result.output


@pytest.mark.unit
def test_align_requires_datasets(runner: CliRunner) -> None:
    """Test align without arguments is a usage error."""
    result = runner.invoke(cli, ["align"])

    assert result.exit_code != 0


@pytest.mark.integration
def test_align_writes_outputs(
    runner: CliRunner, stops_file: Path, osm_file: Path, tmp_path: Path
) -> None:
    """Test align writes entities.json and events.jsonl."""
    out_dir = tmp_path / "out"

    result = runner.invoke(
        cli,
        ["align", f"gtfs={stops_file}", str(osm_file), "-o", str(out_dir)],
    )

    assert result.exit_code == 0, result.output
    assert "Aligned 5 records into 3 entities (2 multi-source)" in result.output

    entities = json.loads((out_dir / "entities.json").read_text(encoding="utf-8"))
    sources = sorted(
        tuple(sorted(p["source_dataset"] for p in e["provenance"])) for e in entities
    )
    assert sources == [("gtfs", "osm"), ("gtfs", "osm"), ("osm",)]

    events = [json.loads(line) for line in (out_dir / "events.jsonl").read_text().splitlines()]
    assert events[0]["event"] == "run_started"
    assert events[0]["data"]["command"][:2] == ["transitalign", "align"]
    assert events[-1]["event"] == "artifact_written"


@pytest.mark.integration
def test_align_threshold_override(
    runner: CliRunner, stops_file: Path, osm_file: Path, tmp_path: Path
) -> None:
    """Test a threshold of 1.0 leaves only the exact identifier match."""
    out_dir = tmp_path / "strict"

    result = runner.invoke(
        cli,
        [
            "align",
            str(stops_file),
            str(osm_file),
            "-o",
            str(out_dir),
            "--match-threshold",
            "1.0",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "into 4 entities (1 multi-source)" in result.output


@pytest.mark.unit
def test_align_invalid_threshold(
    runner: CliRunner, stops_file: Path, osm_file: Path, tmp_path: Path
) -> None:
    """Test an out-of-range threshold fails with exit code 1."""
    result = runner.invoke(
        cli,
        ["align", str(stops_file), str(osm_file), "-o", str(tmp_path), "--match-threshold", "2"],
    )

    assert result.exit_code == 1
    assert "✗ Error" in result.output


@pytest.mark.unit
def test_align_config_file(
    runner: CliRunner, stops_file: Path, osm_file: Path, tmp_path: Path
) -> None:
    """Test options are read from a JSON config file and validated."""
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"nameWeight": 0.3}))
    args = ["align", str(stops_file), str(osm_file), "-o", str(tmp_path / "o")]

    result = runner.invoke(cli, [*args, "--config", str(config)])

    assert result.exit_code == 1
    assert "weights" in result.output


@pytest.mark.unit
def test_align_duplicate_dataset_names(runner: CliRunner, osm_file: Path, tmp_path: Path) -> None:
    """Test two datasets with the same name are rejected."""
    result = runner.invoke(cli, ["align", str(osm_file), str(osm_file), "-o", str(tmp_path)])

    assert result.exit_code == 1
    assert "unique" in result.output
