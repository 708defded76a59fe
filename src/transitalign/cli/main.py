"""Command-line interface for transitalign.

Provides CLI commands for normalizing and aligning transit datasets.
"""

import importlib.metadata
import sys
from pathlib import Path

import click

__all__ = ["cli"]

try:
    __version__ = importlib.metadata.version("transitalign")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback for development

EVENTS_FILENAME = "events.jsonl"


def _split_dataset_arg(value: str) -> tuple[str | None, Path]:
    """Split ``name=path`` into its parts; a bare path has no name."""
    name, sep, path = value.partition("=")
    if sep and name and not Path(value).exists():
        return name, Path(path)
    return None, Path(value)


@click.group()
@click.version_option(version=__version__, prog_name="transitalign")
def cli() -> None:
    """Align transit location records across heterogeneous datasets.

    Use 'transitalign COMMAND --help' for command-specific help.
    """


@cli.command()
@click.argument("dataset", type=str)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    required=True,
    help="Output JSONL file path",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
def normalize(dataset: str, output: str, verbose: bool) -> None:
    """Normalize one DATASET file to canonical JSONL records.

    DATASET is a file path, optionally prefixed with a dataset name
    (NAME=PATH). Supported formats: JSONL (.jsonl, .ndjson),
    JSON/GeoJSON (.json, .geojson), KML (.kml), GTFS stops (.txt, .csv)

    Examples
    --------
        transitalign normalize stops.txt -o stops.jsonl
        transitalign normalize osm=osm_stops.geojson -o osm.jsonl
    """
    from transitalign.io import load_dataset, write_records_jsonl
    from transitalign.normalize import normalize_all, skipped_inputs

    try:
        name, path = _split_dataset_arg(dataset)
        loaded = load_dataset(path, name)

        if verbose:
            click.echo(f"Loaded {len(loaded)} records from {path} as '{loaded.name}'", err=True)

        records, report = normalize_all(loaded.records, rejected=skipped_inputs([loaded]))
        count = write_records_jsonl(records, output)

        if verbose:
            for skipped in report.skipped:
                click.echo(f"  skipped {skipped.source_id or '-'}: {skipped.reason}", err=True)

        click.secho(
            f"✓ Wrote {count} normalized records to {output} ({len(report.skipped)} skipped)",
            fg="green",
        )

    except Exception as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)


@cli.command()
@click.argument("datasets", nargs=-1, required=True, type=str)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(),
    default="out",
    help="Output directory for results (default: out)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON configuration file",
)
@click.option(
    "--match-threshold",
    type=float,
    default=None,
    help="Minimum composite score for a match (default: 0.7)",
)
@click.option(
    "--min-cluster-threshold",
    type=float,
    default=None,
    help="Minimum pairwise score inside a cluster (default: 0.5)",
)
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Worker processes for normalization and scoring (default: 1)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
def align(
    datasets: tuple[str, ...],
    output_dir: str,
    config_path: str | None,
    match_threshold: float | None,
    min_cluster_threshold: float | None,
    workers: int | None,
    verbose: bool,
) -> None:
    """Align two or more DATASETS into canonical entities.

    Each DATASET is a file path, optionally prefixed with a dataset name
    (NAME=PATH); otherwise the file stem names the dataset.

    Writes entities.json (canonical entities with provenance) and
    events.jsonl (audit trail) to OUTPUT_DIR.

    Examples
    --------
        transitalign align gtfs/stops.txt osm.geojson
        transitalign align gtfs=stops.txt kml=stops.json -o results
        transitalign align a.jsonl b.jsonl --match-threshold 0.8 --workers 4
    """
    from transitalign.audit import AuditLogger, generate_run_id
    from transitalign.engine import AlignmentConfig, load_config, run_alignment
    from transitalign.io import load_dataset, write_alignment

    output_dir_obj = Path(output_dir)

    try:
        config = load_config(config_path) if config_path else AlignmentConfig()
        config = config.with_overrides(
            match_threshold=match_threshold,
            min_cluster_threshold=min_cluster_threshold,
            workers=workers,
        )

        loaded = []
        for arg in datasets:
            name, path = _split_dataset_arg(arg)
            dataset = load_dataset(path, name)
            if verbose:
                click.echo(f"Loaded {len(dataset)} records as '{dataset.name}'", err=True)
            loaded.append(dataset)

        names = [d.name for d in loaded]
        if len(set(names)) != len(names):
            raise click.UsageError(f"Dataset names must be unique, got {names}")

        if verbose:
            click.echo("Starting alignment...", err=True)
            click.echo(f"  Output: {output_dir}", err=True)
            click.echo(f"  match_threshold: {config.match_threshold}", err=True)
            click.echo(f"  min_cluster_threshold: {config.min_cluster_threshold}", err=True)

        output_dir_obj.mkdir(parents=True, exist_ok=True)
        command = ["transitalign", "align", *datasets]

        with AuditLogger(generate_run_id(), output_dir_obj / EVENTS_FILENAME) as logger:
            run = run_alignment(loaded, config=config, logger=logger, command=command)
            entities_path = write_alignment(run.result, output_dir_obj, logger=logger)

        summary = run.result.summary()
        if verbose:
            click.echo("\n✓ Alignment completed successfully!", err=True)
            click.echo("\nResults:", err=True)
            click.echo(f"  Records: {summary['records']}", err=True)
            click.echo(f"  Skipped: {len(run.normalization.skipped)}", err=True)
            click.echo(f"  Entities: {summary['entities']}", err=True)
            click.echo(f"  Multi-source entities: {summary['multi_source_entities']}", err=True)
            click.echo("\nOutputs:", err=True)
            click.echo(f"  entities: {entities_path}", err=True)
            click.echo(f"  events: {output_dir_obj / EVENTS_FILENAME}", err=True)
        else:
            click.secho(
                f"✓ Aligned {summary['records']} records into {summary['entities']} entities "
                f"({summary['multi_source_entities']} multi-source)",
                fg="green",
            )

    except Exception as e:
        click.secho(f"✗ Error: {e}", fg="red", err=True)
        if verbose:
            import traceback

            click.echo(traceback.format_exc(), err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
