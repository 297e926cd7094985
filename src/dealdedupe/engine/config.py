"""Detector configuration."""

import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, replace
from typing import Any

from dealdedupe.scoring.weighted import FieldWeights

ENV_AUTO_MERGE_THRESHOLD = "DUPLICATE_AUTO_MERGE_THRESHOLD"
ENV_DETECTION_THRESHOLD = "DUPLICATE_DETECTION_THRESHOLD"
ENV_BATCH_SIZE = "DUPLICATE_BATCH_SIZE"


@dataclass(frozen=True)
class DetectorConfig:
    """Thresholds and tolerances used by duplicate detection.

    Confidence thresholds are on the [0, 1] scale; fuzzy thresholds are on
    the 0-100 scale of ``fuzzy_string_similarity``.

    Attributes
    ----------
    auto_merge_threshold : float
        Confidence at or above which a match is suggested for auto-merge.
    high_confidence_threshold : float
        Confidence at or above which a match needs manual review. Also the
        edge threshold used by clustering.
    medium_confidence_threshold : float
        Overall score required by the multi-factor strategy.
    low_confidence_threshold : float
        Reported only.
    minimum_match_threshold : float
        Default filter applied to aggregated matches.
    fuzzy_exact_threshold : float
        Reported only.
    fuzzy_high_threshold : float
        Average name/customer similarity required by the fuzzy strategy.
    fuzzy_medium_threshold : float
        Per-field floor used by the fuzzy strategy.
    fuzzy_low_threshold : float
        Reported only.
    value_tolerance_percent : float
        Tolerance band for deal values.
    date_tolerance_days : float
        Tolerance band for close dates.
    batch_size : int
        Chunk size for batch detection.
    candidate_limit : int
        Maximum pool size returned by a repository candidate query.
    weights : FieldWeights
        Factor weights for multi-factor scoring.
    """

    auto_merge_threshold: float = 0.95
    high_confidence_threshold: float = 0.85
    medium_confidence_threshold: float = 0.70
    low_confidence_threshold: float = 0.50
    minimum_match_threshold: float = 0.85
    fuzzy_exact_threshold: float = 95.0
    fuzzy_high_threshold: float = 85.0
    fuzzy_medium_threshold: float = 70.0
    fuzzy_low_threshold: float = 50.0
    value_tolerance_percent: float = 10.0
    date_tolerance_days: float = 7.0
    batch_size: int = 100
    candidate_limit: int = 200
    weights: FieldWeights = field(default_factory=FieldWeights)

    def __post_init__(self) -> None:
        """Validate thresholds and sizes."""
        for name in (
            "auto_merge_threshold",
            "high_confidence_threshold",
            "medium_confidence_threshold",
            "low_confidence_threshold",
            "minimum_match_threshold",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")

        for name in (
            "fuzzy_exact_threshold",
            "fuzzy_high_threshold",
            "fuzzy_medium_threshold",
            "fuzzy_low_threshold",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 100.0:
                raise ValueError(f"{name} must be in [0, 100], got {value}")

        if self.high_confidence_threshold > self.auto_merge_threshold:
            raise ValueError(
                f"high_confidence_threshold ({self.high_confidence_threshold}) must not exceed "
                f"auto_merge_threshold ({self.auto_merge_threshold})"
            )

        if self.value_tolerance_percent < 0:
            raise ValueError(
                f"value_tolerance_percent must be non-negative, got {self.value_tolerance_percent}"
            )

        if self.date_tolerance_days < 0:
            raise ValueError(
                f"date_tolerance_days must be non-negative, got {self.date_tolerance_days}"
            )

        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")

        if self.candidate_limit < 1:
            raise ValueError(f"candidate_limit must be >= 1, got {self.candidate_limit}")

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: Any
    ) -> "DetectorConfig":
        """Build a config with environment overrides applied.

        Parameters
        ----------
        environ : Mapping[str, str] | None, optional
            Environment mapping, by default ``os.environ``.
        **overrides : Any
            Explicit field values, applied after the environment.

        Returns
        -------
        DetectorConfig
            Validated configuration.

        Raises
        ------
        ValueError
            If an environment value cannot be parsed or is out of range.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        if env.get(ENV_AUTO_MERGE_THRESHOLD):
            values["auto_merge_threshold"] = _parse_env(
                ENV_AUTO_MERGE_THRESHOLD, env[ENV_AUTO_MERGE_THRESHOLD], float
            )
        if env.get(ENV_DETECTION_THRESHOLD):
            values["minimum_match_threshold"] = _parse_env(
                ENV_DETECTION_THRESHOLD, env[ENV_DETECTION_THRESHOLD], float
            )
        if env.get(ENV_BATCH_SIZE):
            values["batch_size"] = _parse_env(ENV_BATCH_SIZE, env[ENV_BATCH_SIZE], int)

        values.update(overrides)
        return cls(**values)

    def with_overrides(self, **changes: Any) -> "DetectorConfig":
        """Return a validated copy with some fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


def _parse_env(name: str, raw: str, kind: type) -> Any:
    try:
        return kind(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a {kind.__name__}, got {raw!r}") from e
