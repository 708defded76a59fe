"""Composite similarity scoring of candidate pairs.

The scorer combines up to three dimensions (name, spatial, identifier).
Dimensions missing on either side are excluded and the remaining weights
renormalized, so a pair is never penalised for data a provider does not
publish.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from concurrent.futures import ProcessPoolExecutor
from typing import TYPE_CHECKING

from transitalign.candidates.models import CandidatePair
from transitalign.errors import ConfigurationError
from transitalign.models.records import NormalizedRecord
from transitalign.scoring.comparators import (
    compare_identifiers,
    compare_locations,
    compare_names,
    get_name_metric,
    get_spatial_decay,
)
from transitalign.scoring.models import SCORE_DECIMALS, DimensionScore, ScoredPair

if TYPE_CHECKING:
    from transitalign.engine.config import AlignmentConfig

# Below this many pairs a process pool costs more than it saves
_MIN_PARALLEL_BATCH = 512


def _round(value: float | None) -> float | None:
    return None if value is None else round(value, SCORE_DECIMALS)


class SimilarityScorer:
    """Score record pairs under an ``AlignmentConfig``.

    Parameters
    ----------
    config : AlignmentConfig | None, optional
        Weights, radius and metric choices. Defaults to ``AlignmentConfig()``.

    Raises
    ------
    ConfigurationError
        If the configured metric or decay is not registered.

    Notes
    -----
    ``score(a, b)`` orders its inputs by ``(source_dataset, source_id)``
    before comparing, so the result is exactly symmetric.
    """

    def __init__(self, config: AlignmentConfig | None = None) -> None:
        if config is None:
            from transitalign.engine.config import AlignmentConfig

            config = AlignmentConfig()
        self.config = config
        try:
            self._name_metric = get_name_metric(self.config.name_metric)
            self._decay = get_spatial_decay(self.config.spatial_decay)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    def score(self, a: NormalizedRecord, b: NormalizedRecord, *, blocker: str = "") -> ScoredPair:
        """Compute the composite similarity of two records.

        Parameters
        ----------
        a, b : NormalizedRecord
            Records to compare, in any order.
        blocker : str, optional
            Blocker that proposed the pair, kept for provenance.

        Returns
        -------
        ScoredPair
            Composite score in [0, 1] with per-dimension breakdown. A shared
            aux identifier forces the score to 1.0; no present dimension
            gives 0.0.
        """
        if b.key < a.key:
            a, b = b, a

        cfg = self.config
        name_sim = compare_names(a, b, self._name_metric)
        spatial_sim, distance = compare_locations(a, b, cfg.spatial_max_radius_meters, self._decay)
        id_sim = compare_identifiers(a, b)

        raw = (
            ("name", name_sim, cfg.name_weight, None),
            ("spatial", spatial_sim, cfg.spatial_weight, distance),
            ("identifier", id_sim, cfg.identifier_weight, None),
        )
        present_weight = sum(weight for _, sim, weight, _ in raw if sim is not None)

        composite = 0.0
        dimensions: list[DimensionScore] = []
        for name, sim, weight, dist in raw:
            effective = weight / present_weight if sim is not None and present_weight > 0 else 0.0
            if sim is not None:
                composite += effective * sim
            dimensions.append(
                DimensionScore(
                    name=name,
                    similarity=_round(sim),
                    weight=round(effective, SCORE_DECIMALS),
                    distance_meters=_round(dist),
                )
            )

        shared_identifier = id_sim == 1.0
        score = 1.0 if shared_identifier else round(min(1.0, max(0.0, composite)), SCORE_DECIMALS)

        return ScoredPair(
            first=a,
            second=b,
            score=score,
            dimensions=tuple(dimensions),
            shared_identifier=shared_identifier,
            blocker=blocker,
        )

    def score_pair(self, pair: CandidatePair) -> ScoredPair:
        """Score a candidate pair, keeping its blocker provenance."""
        return self.score(pair.first, pair.second, blocker=pair.blocker)

    def score_all(
        self,
        pairs: Iterable[CandidatePair],
        *,
        workers: int | None = None,
    ) -> Iterator[ScoredPair]:
        """Score many pairs, preserving input order.

        Parameters
        ----------
        pairs : Iterable[CandidatePair]
            Candidate pairs. Consumed lazily when running in-process.
        workers : int | None, optional
            Process-pool size; defaults to ``config.workers``.

        Yields
        ------
        ScoredPair
            One scored pair per input pair, in input order.
        """
        workers = self.config.workers if workers is None else workers

        if workers <= 1:
            for pair in pairs:
                yield self.score_pair(pair)
            return

        pairs_list = list(pairs)
        if len(pairs_list) < _MIN_PARALLEL_BATCH:
            for pair in pairs_list:
                yield self.score_pair(pair)
            return

        size = max(1, len(pairs_list) // (workers * 4))
        chunks = [(self.config, pairs_list[i : i + size]) for i in range(0, len(pairs_list), size)]
        with ProcessPoolExecutor(max_workers=workers) as ex:
            for batch in ex.map(_score_batch, chunks):
                yield from batch


def _score_batch(item: tuple[AlignmentConfig, list[CandidatePair]]) -> list[ScoredPair]:
    """Worker entry point: score one chunk with a fresh scorer."""
    config, pairs = item
    scorer = SimilarityScorer(config)
    return [scorer.score_pair(pair) for pair in pairs]
