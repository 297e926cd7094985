"""Tests for detector configuration."""

import pytest

from dealdedupe.engine import DetectorConfig
from dealdedupe.scoring import FieldWeights


@pytest.mark.unit
def test_defaults() -> None:
    """Test default thresholds, tolerances and sizes."""
    config = DetectorConfig()

    assert config.auto_merge_threshold == 0.95
    assert config.high_confidence_threshold == 0.85
    assert config.medium_confidence_threshold == 0.70
    assert config.low_confidence_threshold == 0.50
    assert config.minimum_match_threshold == 0.85
    assert config.fuzzy_high_threshold == 85.0
    assert config.fuzzy_medium_threshold == 70.0
    assert config.value_tolerance_percent == 10.0
    assert config.date_tolerance_days == 7.0
    assert config.batch_size == 100
    assert config.weights == FieldWeights()


@pytest.mark.unit
@pytest.mark.parametrize(
    "changes",
    [
        {"auto_merge_threshold": 1.5},
        {"minimum_match_threshold": -0.1},
        {"fuzzy_high_threshold": 120.0},
        {"high_confidence_threshold": 0.97},
        {"value_tolerance_percent": -1.0},
        {"date_tolerance_days": -1.0},
        {"batch_size": 0},
        {"candidate_limit": 0},
    ],
)
def test_invalid_values_rejected(changes: dict) -> None:
    """Test out-of-range values fail at construction."""
    with pytest.raises(ValueError):
        DetectorConfig(**changes)


@pytest.mark.unit
def test_config_is_immutable() -> None:
    """Test fields cannot be reassigned after construction."""
    config = DetectorConfig()

    with pytest.raises(AttributeError):
        config.batch_size = 5  # type: ignore[misc]


@pytest.mark.unit
def test_with_overrides_revalidates() -> None:
    """Test overrides produce a new validated config."""
    config = DetectorConfig()

    assert config.with_overrides(batch_size=10).batch_size == 10
    assert config.batch_size == 100
    with pytest.raises(ValueError, match="batch_size"):
        config.with_overrides(batch_size=0)


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_from_env_reads_known_variables() -> None:
    """Test environment variables map onto their fields."""
    config = DetectorConfig.from_env(
        {
            "DUPLICATE_AUTO_MERGE_THRESHOLD": "0.98",
            "DUPLICATE_DETECTION_THRESHOLD": "0.75",
            "DUPLICATE_BATCH_SIZE": "25",
        }
    )

    assert config.auto_merge_threshold == 0.98
    assert config.minimum_match_threshold == 0.75
    assert config.batch_size == 25


@pytest.mark.unit
def test_from_env_overrides_win_and_blanks_ignored() -> None:
    """Test explicit overrides beat the environment and blank values are skipped."""
    config = DetectorConfig.from_env(
        {"DUPLICATE_BATCH_SIZE": "25", "DUPLICATE_DETECTION_THRESHOLD": ""},
        batch_size=7,
    )

    assert config.batch_size == 7
    assert config.minimum_match_threshold == 0.85


@pytest.mark.unit
def test_from_env_rejects_unparseable_value() -> None:
    """Test a malformed environment value names the variable."""
    with pytest.raises(ValueError, match="DUPLICATE_BATCH_SIZE"):
        DetectorConfig.from_env({"DUPLICATE_BATCH_SIZE": "many"})


@pytest.mark.unit
def test_to_dict_includes_weights() -> None:
    """Test the dictionary form nests the factor weights."""
    data = DetectorConfig().to_dict()

    assert data["weights"]["deal_name"] == 0.25
    assert data["batch_size"] == 100
