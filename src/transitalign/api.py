"""Public API for transitalign.

This module provides the high-level entry point for aligning transit
location datasets without going through the CLI.
"""

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from transitalign.audit.logger import AuditLogger
from transitalign.engine.config import AlignmentConfig, AlignmentRunResult
from transitalign.engine.runner import run_alignment
from transitalign.io.adapters import load_dataset, source_id_of
from transitalign.models.records import Dataset, RawRecord

__all__ = [
    "align",
    "align_files",
]

DatasetsInput = Iterable[Dataset] | Mapping[str, Iterable[RawRecord | Mapping[str, Any]]]


def _as_raw(dataset: str, item: RawRecord | Mapping[str, Any]) -> RawRecord:
    if isinstance(item, RawRecord):
        return item
    return RawRecord(dataset=dataset, source_id=source_id_of(item), fields=dict(item))


def _as_datasets(datasets: DatasetsInput) -> list[Dataset]:
    if isinstance(datasets, Mapping):
        return [
            Dataset(name=name, records=[_as_raw(name, item) for item in items])
            for name, items in datasets.items()
        ]
    return list(datasets)


def align(
    datasets: DatasetsInput,
    config: AlignmentConfig | None = None,
    logger: AuditLogger | None = None,
) -> AlignmentRunResult:
    """Align records from several datasets into canonical entities.

    Parameters
    ----------
    datasets : Iterable[Dataset] | Mapping[str, Iterable[RawRecord | Mapping]]
        Datasets in load order. A mapping from dataset name to records is
        also accepted; plain dict records take their source id from
        ``source_id``, ``id``, ``stop_id`` or ``zone_id``.
    config : AlignmentConfig | None, optional
        Run configuration. If None, uses defaults.
    logger : AuditLogger | None, optional
        Audit logger receiving run and stage events.

    Returns
    -------
    AlignmentRunResult
        Canonical entities, normalization report and stage statistics.

    Raises
    ------
    ConfigurationError
        If *config* is invalid.
    InvariantViolation
        If the resulting partition is broken.

    Examples
    --------
    >>> from transitalign import align
    >>> run = align({
    ...     "gtfs": [{"id": "1", "name": "Via Roma", "lat": 46.070, "lon": 11.121}],
    ...     "osm": [{"id": "a", "name": "V. Roma", "lat": 46.0701, "lon": 11.1211}],
    ... })
    >>> len(run.result.entities)
    1
    """
    return run_alignment(_as_datasets(datasets), config=config, logger=logger)


def align_files(
    paths: Iterable[str | Path],
    config: AlignmentConfig | None = None,
    logger: AuditLogger | None = None,
) -> AlignmentRunResult:
    """Load each file with ``load_dataset`` and align them.

    Dataset names default to the file stems.

    Raises
    ------
    FileNotFoundError
        If a file does not exist.
    ValueError
        If a file format is not supported.
    """
    datasets = [load_dataset(path) for path in paths]
    return run_alignment(datasets, config=config, logger=logger)
