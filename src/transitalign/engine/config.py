"""Alignment configuration and run result dataclasses."""

from __future__ import annotations

import json
import math
import re
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from transitalign.errors import ConfigurationError

if TYPE_CHECKING:
    from transitalign.alignment.models import AlignmentResult
    from transitalign.normalize.normalizer import NormalizationReport

WEIGHT_SUM_TOLERANCE = 1e-6
NAME_BLOCKING_CHOICES = ("token", "minhash")

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _to_snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def _check_unit_interval(name: str, value: float) -> None:
    if not (isinstance(value, int | float) and math.isfinite(value) and 0.0 <= value <= 1.0):
        raise ConfigurationError(f"{name} must be in [0, 1], got {value!r}")


def _check_min_int(name: str, value: Any, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigurationError(f"{name} must be an integer >= {minimum}, got {value!r}")


@dataclass(frozen=True)
class AlignmentConfig:
    """Configuration for an alignment run.

    Attributes
    ----------
    name_weight : float
        Weight of the name dimension (default: 0.4).
    spatial_weight : float
        Weight of the spatial dimension (default: 0.4).
    identifier_weight : float
        Weight of the identifier dimension (default: 0.2). The three weights
        must sum to 1.
    spatial_max_radius_meters : float
        Distance at which spatial similarity reaches (or approaches) zero.
    match_threshold : float
        Minimum composite score for a pair to link two records.
    min_cluster_threshold : float
        Minimum pairwise score every member of a multi-record cluster must
        keep with the rest of its cluster.
    name_metric : str
        Name similarity metric: ``"levenshtein"`` or ``"jaro_winkler"``.
    spatial_decay : str
        Distance decay: ``"linear"`` or ``"exponential"``.
    cell_size_meters : float | None
        Blocking grid cell size. None uses ``spatial_max_radius_meters``.
    name_blocking : str
        Name fallback blocker: ``"token"`` or ``"minhash"``.
    block_by_category : bool
        Only records of the same category share a grid cell.
    max_block_size : int
        Blocks larger than this raise a warning event.
    workers : int
        Process-pool size for normalization and scoring (1 = in-process).
    """

    name_weight: float = 0.4
    spatial_weight: float = 0.4
    identifier_weight: float = 0.2
    spatial_max_radius_meters: float = 250.0
    match_threshold: float = 0.7
    min_cluster_threshold: float = 0.5
    name_metric: str = "levenshtein"
    spatial_decay: str = "linear"
    cell_size_meters: float | None = None
    name_blocking: str = "token"
    block_by_category: bool = False
    max_block_size: int = 1000
    workers: int = 1

    def __post_init__(self) -> None:
        """Validate all options.

        Raises
        ------
        ConfigurationError
            If any option is out of range or unknown.
        """
        for name in ("name_weight", "spatial_weight", "identifier_weight"):
            _check_unit_interval(name, getattr(self, name))

        total = self.name_weight + self.spatial_weight + self.identifier_weight
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ConfigurationError(f"weights must sum to 1, got {total:.6f}")

        if not (
            isinstance(self.spatial_max_radius_meters, int | float)
            and math.isfinite(self.spatial_max_radius_meters)
            and self.spatial_max_radius_meters > 0
        ):
            raise ConfigurationError(
                f"spatial_max_radius_meters must be > 0, got {self.spatial_max_radius_meters!r}"
            )

        _check_unit_interval("match_threshold", self.match_threshold)
        _check_unit_interval("min_cluster_threshold", self.min_cluster_threshold)

        if self.cell_size_meters is not None and not (
            isinstance(self.cell_size_meters, int | float)
            and math.isfinite(self.cell_size_meters)
            and self.cell_size_meters > 0
        ):
            raise ConfigurationError(f"cell_size_meters must be > 0, got {self.cell_size_meters!r}")

        # Registries import this module, so they are resolved lazily
        from transitalign.scoring.comparators import NAME_METRICS, SPATIAL_DECAYS

        if self.name_metric not in NAME_METRICS:
            valid = ", ".join(sorted(NAME_METRICS))
            raise ConfigurationError(f"Unknown name_metric: {self.name_metric!r}. Valid: {valid}")
        if self.spatial_decay not in SPATIAL_DECAYS:
            valid = ", ".join(sorted(SPATIAL_DECAYS))
            raise ConfigurationError(
                f"Unknown spatial_decay: {self.spatial_decay!r}. Valid: {valid}"
            )
        if self.name_blocking not in NAME_BLOCKING_CHOICES:
            valid = ", ".join(NAME_BLOCKING_CHOICES)
            raise ConfigurationError(
                f"Unknown name_blocking: {self.name_blocking!r}. Valid: {valid}"
            )

        _check_min_int("max_block_size", self.max_block_size, 2)
        _check_min_int("workers", self.workers, 1)

    @property
    def effective_cell_size_meters(self) -> float:
        """Grid cell size actually used by the blocker."""
        if self.cell_size_meters is None:
            return float(self.spatial_max_radius_meters)
        return float(self.cell_size_meters)

    @property
    def weights(self) -> dict[str, float]:
        """Dimension weights keyed by dimension name."""
        return {
            "name": self.name_weight,
            "spatial": self.spatial_weight,
            "identifier": self.identifier_weight,
        }

    def with_overrides(self, **overrides: Any) -> AlignmentConfig:
        """Return a validated copy with *overrides* applied (None values ignored)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        try:
            return replace(self, **changes)
        except TypeError as e:
            raise ConfigurationError(str(e)) from e

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AlignmentConfig:
        """Build a config from a mapping.

        Keys may be snake_case (``match_threshold``) or camelCase
        (``matchThreshold``).

        Raises
        ------
        ConfigurationError
            If a key is unknown or a value invalid.
        """
        if not isinstance(data, dict):
            raise ConfigurationError(f"configuration must be a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = key if key in known else _to_snake(str(key))
            if name not in known:
                raise ConfigurationError(f"Unknown configuration option: {key!r}")
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


def load_config(path: Path | str) -> AlignmentConfig:
    """Load an ``AlignmentConfig`` from a JSON file.

    Parameters
    ----------
    path : Path | str
        JSON document holding an object of options.

    Returns
    -------
    AlignmentConfig
        Validated configuration.

    Raises
    ------
    ConfigurationError
        If the file cannot be read or parsed, or holds invalid options.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file {path}: {e}") from e
    return AlignmentConfig.from_dict(data)


@dataclass
class AlignmentRunResult:
    """Results from an alignment run.

    Attributes
    ----------
    result : AlignmentResult
        Canonical entities and provenance.
    normalization : NormalizationReport
        Records normalized and skipped.
    stats : dict[str, Any]
        Per-stage counters (blocking, scoring, resolution).
    run_id : str | None
        Audit run identifier, when a logger was attached.
    """

    result: AlignmentResult
    normalization: NormalizationReport
    stats: dict[str, Any] = field(default_factory=dict)
    run_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "run_id": self.run_id,
            "result": self.result.to_dict(),
            "normalization": self.normalization.to_dict(),
            "stats": self.stats,
        }
