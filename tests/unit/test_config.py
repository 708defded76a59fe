"""Tests for alignment configuration validation and loading."""

import dataclasses
import json
from pathlib import Path

import pytest

from transitalign.engine import AlignmentConfig, load_config
from transitalign.errors import AlignmentError, ConfigurationError


@pytest.mark.unit
def test_defaults() -> None:
    """Test the default configuration values."""
    config = AlignmentConfig()

    assert config.weights == {"name": 0.4, "spatial": 0.4, "identifier": 0.2}
    assert config.spatial_max_radius_meters == 250.0
    assert config.match_threshold == 0.7
    assert config.min_cluster_threshold == 0.5
    assert config.name_metric == "levenshtein"
    assert config.spatial_decay == "linear"
    assert config.effective_cell_size_meters == 250.0
    assert config.workers == 1


@pytest.mark.unit
def test_configuration_error_is_value_error() -> None:
    """Test configuration errors are catchable as ValueError and AlignmentError."""
    with pytest.raises(ValueError):
        AlignmentConfig(match_threshold=2.0)
    assert issubclass(ConfigurationError, AlignmentError)


@pytest.mark.unit
@pytest.mark.parametrize(
    "kwargs",
    [
        {"name_weight": -0.1, "spatial_weight": 0.9},
        {"name_weight": 0.5, "spatial_weight": 0.5, "identifier_weight": 0.5},
        {"name_weight": 0.3},
        {"spatial_max_radius_meters": 0},
        {"spatial_max_radius_meters": float("inf")},
        {"match_threshold": 1.01},
        {"min_cluster_threshold": -0.5},
        {"match_threshold": float("nan")},
        {"cell_size_meters": -10.0},
        {"name_metric": "soundex"},
        {"spatial_decay": "gaussian"},
        {"name_blocking": "phonetic"},
        {"max_block_size": 1},
        {"workers": 0},
        {"workers": True},
    ],
)
def test_invalid_values_rejected(kwargs: dict) -> None:
    """Test out-of-range or unknown options raise ConfigurationError."""
    with pytest.raises(ConfigurationError):
        AlignmentConfig(**kwargs)


@pytest.mark.unit
def test_weights_sum_tolerance() -> None:
    """Test weights summing to 1 within floating error are accepted."""
    config = AlignmentConfig(name_weight=0.1, spatial_weight=0.2, identifier_weight=0.7)

    assert sum(config.weights.values()) == pytest.approx(1.0)


@pytest.mark.unit
def test_cell_size_override() -> None:
    """Test an explicit cell size replaces the radius for blocking."""
    config = AlignmentConfig(spatial_max_radius_meters=300.0, cell_size_meters=150.0)

    assert config.effective_cell_size_meters == 150.0


@pytest.mark.unit
def test_with_overrides_ignores_none() -> None:
    """Test None overrides keep the current values."""
    config = AlignmentConfig(match_threshold=0.8)

    updated = config.with_overrides(match_threshold=None, workers=4)

    assert updated.match_threshold == 0.8
    assert updated.workers == 4
    assert config.workers == 1


@pytest.mark.unit
def test_with_overrides_validates() -> None:
    """Test overrides are validated like fresh configs."""
    with pytest.raises(ConfigurationError):
        AlignmentConfig().with_overrides(match_threshold=3.0)
    with pytest.raises(ConfigurationError):
        AlignmentConfig().with_overrides(threshold=0.5)


@pytest.mark.unit
def test_config_is_immutable() -> None:
    """Test a validated config cannot be changed after construction."""
    config = AlignmentConfig()

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.match_threshold = 7.0  # type: ignore[misc]

    assert config.match_threshold == 0.7
    assert config.with_overrides(match_threshold=0.9).match_threshold == 0.9


@pytest.mark.unit
def test_from_dict_accepts_camel_case() -> None:
    """Test camelCase option names map onto fields."""
    config = AlignmentConfig.from_dict(
        {
            "nameWeight": 0.5,
            "spatialWeight": 0.3,
            "identifierWeight": 0.2,
            "spatialMaxRadiusMeters": 100,
            "matchThreshold": 0.75,
            "min_cluster_threshold": 0.4,
        }
    )

    assert config.name_weight == 0.5
    assert config.spatial_max_radius_meters == 100
    assert config.match_threshold == 0.75
    assert config.min_cluster_threshold == 0.4


@pytest.mark.unit
def test_from_dict_rejects_unknown_keys() -> None:
    """Test unknown option names are rejected."""
    with pytest.raises(ConfigurationError, match="Unknown configuration option"):
        AlignmentConfig.from_dict({"fprAlpha": 0.01})


@pytest.mark.unit
def test_from_dict_rejects_non_mapping() -> None:
    """Test non-object documents are rejected."""
    with pytest.raises(ConfigurationError):
        AlignmentConfig.from_dict([0.4, 0.4, 0.2])  # type: ignore[arg-type]


@pytest.mark.unit
def test_to_dict_round_trip() -> None:
    """Test a config survives to_dict/from_dict."""
    config = AlignmentConfig(match_threshold=0.65, name_blocking="minhash")

    assert AlignmentConfig.from_dict(config.to_dict()) == config


@pytest.mark.unit
def test_load_config(tmp_path: Path) -> None:
    """Test loading options from a JSON file."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"matchThreshold": 0.8, "workers": 2}))

    config = load_config(path)

    assert config.match_threshold == 0.8
    assert config.workers == 2


@pytest.mark.unit
def test_load_config_errors(tmp_path: Path) -> None:
    """Test unreadable or malformed files raise ConfigurationError."""
    with pytest.raises(ConfigurationError, match="Cannot read"):
        load_config(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(ConfigurationError, match="Invalid JSON"):
        load_config(bad)
