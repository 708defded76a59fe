"""End-to-end alignment runner.

This module chains the five stages of the engine into a single
deterministic, auditable run.

Architecture Flow:
    Stage 1: Normalization
    Stage 2: Blocking (candidate generation)
    Stage 3: Similarity scoring
    Stage 4: Match resolution (clustering + cohesion guard)
    Stage 5: Alignment graph build

Any failure after normalization aborts the run: an ``error`` event is
logged and the exception propagates, so no partial result is returned.
"""

from __future__ import annotations

import time
import traceback
from collections.abc import Iterable, Sequence
from typing import Any

from transitalign.alignment.builder import AlignmentGraphBuilder
from transitalign.alignment.models import AlignmentResult
from transitalign.audit.logger import AuditLogger
from transitalign.candidates.factory import blocker_configs_for, create_blockers
from transitalign.candidates.index import BlockingIndex
from transitalign.candidates.models import CandidatePair
from transitalign.clustering.models import AlignmentCluster
from transitalign.clustering.resolver import MatchResolver
from transitalign.engine.config import AlignmentConfig, AlignmentRunResult
from transitalign.models.records import Dataset, NormalizedRecord, RawRecord
from transitalign.normalize.normalizer import normalize_all, skipped_inputs
from transitalign.scoring.models import ScoredPair, empty_score_histogram, get_score_bucket
from transitalign.scoring.scorer import SimilarityScorer

DEFAULT_COMMAND = ["transitalign.align"]


# ---------------------------------------------------------------------------
# Individual stage functions
# ---------------------------------------------------------------------------


def _stage_blocking(
    records: list[NormalizedRecord],
    config: AlignmentConfig,
    logger: AuditLogger | None,
) -> tuple[list[CandidatePair], dict[str, Any]]:
    """Stage 2: Generate candidate pairs via blocking."""
    start = time.perf_counter()
    if logger:
        logger.stage_started("blocking", expected_records=len(records))

    index = BlockingIndex(
        create_blockers(blocker_configs_for(config)),
        max_block_size=config.max_block_size,
        logger=logger,
    )
    index.build(records)
    pairs = list(index.candidate_pairs())

    stats: dict[str, Any] = {
        "blockers": index.stats_dict(),
        "pairs_total_unique": len(pairs),
    }

    if logger:
        flat: dict[str, int] = {}
        for bname, bstats in stats["blockers"].items():
            for key, value in bstats.items():
                flat[f"{bname}_{key}"] = value
        flat["pairs_total_unique"] = len(pairs)
        logger.stage_finished("blocking", time.perf_counter() - start, counters=flat)

    return pairs, stats


def _stage_scoring(
    pairs: list[CandidatePair],
    scorer: SimilarityScorer,
    logger: AuditLogger | None,
) -> tuple[list[ScoredPair], dict[str, Any]]:
    """Stage 3: Score all candidate pairs."""
    start = time.perf_counter()
    if logger:
        logger.stage_started("scoring", expected_records=len(pairs))

    scored = list(scorer.score_all(pairs))

    buckets = empty_score_histogram()
    for pair in scored:
        buckets[get_score_bucket(pair.score)] += 1

    stats: dict[str, Any] = {
        "pairs_in": len(pairs),
        "pairs_scored": len(scored),
        "shared_identifier_pairs": sum(1 for p in scored if p.shared_identifier),
        "score_buckets": buckets,
    }

    if logger:
        logger.stage_finished("scoring", time.perf_counter() - start, counters=stats)

    return scored, stats


def _stage_resolution(
    scored: list[ScoredPair],
    records: list[NormalizedRecord],
    config: AlignmentConfig,
    scorer: SimilarityScorer,
    logger: AuditLogger | None,
) -> tuple[list[AlignmentCluster], dict[str, int]]:
    """Stage 4: Threshold, union and guard."""
    start = time.perf_counter()
    if logger:
        logger.stage_started("resolution", expected_records=len(records))

    resolver = MatchResolver(config, scorer=scorer)
    clusters = resolver.resolve(scored, records=records)

    if logger:
        logger.stage_finished("resolution", time.perf_counter() - start, counters=resolver.stats)

    return clusters, resolver.stats


def _stage_build(
    clusters: list[AlignmentCluster],
    records: list[NormalizedRecord],
    logger: AuditLogger | None,
) -> AlignmentResult:
    """Stage 5: Validate the partition and synthesize entities."""
    start = time.perf_counter()
    if logger:
        logger.stage_started("build", expected_records=len(clusters))

    result = AlignmentGraphBuilder().build(clusters, records)

    if logger:
        logger.stage_finished("build", time.perf_counter() - start, counters=result.summary())

    return result


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


def _flatten(datasets: Sequence[Dataset]) -> tuple[list[RawRecord], dict[str, int]]:
    """Concatenate datasets in load order and number them."""
    orders: dict[str, int] = {}
    raw: list[RawRecord] = []
    for dataset in datasets:
        if dataset.name not in orders:
            orders[dataset.name] = len(orders)
        raw.extend(dataset.records)
    return raw, orders


def run_alignment(
    datasets: Iterable[Dataset],
    config: AlignmentConfig | None = None,
    logger: AuditLogger | None = None,
    *,
    command: list[str] | None = None,
) -> AlignmentRunResult:
    """Run the complete alignment over *datasets*.

    Parameters
    ----------
    datasets : Iterable[Dataset]
        Datasets in load order. Load order breaks representative ties.
    config : AlignmentConfig | None, optional
        Run configuration. If None, uses defaults.
    logger : AuditLogger | None, optional
        Audit logger for tracking. If None, no logging.
    command : list[str] | None, optional
        Command recorded in the ``run_started`` event.

    Returns
    -------
    AlignmentRunResult
        Alignment result, normalization report and stage statistics.

    Raises
    ------
    AlignmentError
        Any configuration or invariant failure; the run is aborted.

    Examples
    --------
    >>> from transitalign.engine import run_alignment
    >>> run = run_alignment([gtfs, kml])
    >>> len(run.result.entities)
    42
    """
    if config is None:
        config = AlignmentConfig()

    datasets = list(datasets)
    raw_records, dataset_orders = _flatten(datasets)

    start = time.perf_counter()
    if logger:
        logger.run_started(command or DEFAULT_COMMAND, config.to_dict())

    stage = "normalize"
    try:
        records, report = normalize_all(
            raw_records,
            rejected=skipped_inputs(datasets),
            dataset_orders=dataset_orders,
            logger=logger,
            workers=config.workers,
        )

        scorer = SimilarityScorer(config)

        stage = "blocking"
        pairs, blocking_stats = _stage_blocking(records, config, logger)

        stage = "scoring"
        scored, scoring_stats = _stage_scoring(pairs, scorer, logger)

        stage = "resolution"
        clusters, resolution_stats = _stage_resolution(scored, records, config, scorer, logger)

        stage = "build"
        result = _stage_build(clusters, records, logger)

    except Exception as e:
        if logger:
            logger.error(
                type(e).__name__,
                str(e),
                stage=stage,
                traceback=traceback.format_exc(),
            )
            logger.run_finished("failed", time.perf_counter() - start)
        raise

    if logger:
        logger.set_stage(None)
        logger.run_finished(
            "success",
            time.perf_counter() - start,
            records_processed=report.records_out,
        )

    return AlignmentRunResult(
        result=result,
        normalization=report,
        stats={
            "datasets": {d.name: len(d) for d in datasets},
            "blocking": blocking_stats,
            "scoring": scoring_stats,
            "resolution": resolution_stats,
        },
        run_id=logger.run_id if logger else None,
    )
