"""
LOD builder configuration.

Provides the validated configuration structure consumed by LODBuilder.
Every field is optional; defaults live in gslod.constants.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import asdict, dataclass
from typing import Any

from gslod.constants import (
    DEFAULT_DIFFUSION_ALPHA,
    DEFAULT_DISTANCES,
    DEFAULT_FINE_TUNE_STEPS,
    DEFAULT_FOCAL_LENGTH,
    DEFAULT_MAX_WORKERS,
    DEFAULT_PRUNING_THRESHOLD,
    DEFAULT_SMOOTH_FACTOR,
    DEFAULT_VALIDATION_VIEWS,
    THRESHOLD_SCHEDULE,
)
from gslod.errors import InvalidConfigurationError


@dataclass
class LODConfig:
    """
    Configuration for building LOD levels.

    Validated eagerly: an invalid config raises InvalidConfigurationError on
    construction, before any level work starts.

    Attributes:
        distances: Strictly ascending viewing distances, one LOD level each
        smooth_factor: Smoothing factor s in ``blur = (s * d / f)^2``
        focal_length: Focal length f in pixels
        pruning_threshold: Base pruning threshold tau; the per-level schedule
            is ``[0.2 tau, 0.6 tau, tau]``
        fine_tune_steps: Opacity fine-tuning steps T after each pruning step
        diffusion_alpha: Opacity compensation alpha in ``exp(-alpha * (d / f)^2)``
        validation_views: Views requested from the importance scorer (ignored
            by the default opacity/distance scorer)
        max_workers: Levels built concurrently (1 = sequential)
    """

    distances: tuple[float, ...] = DEFAULT_DISTANCES
    smooth_factor: float = DEFAULT_SMOOTH_FACTOR
    focal_length: float = DEFAULT_FOCAL_LENGTH
    pruning_threshold: float = DEFAULT_PRUNING_THRESHOLD
    fine_tune_steps: int = DEFAULT_FINE_TUNE_STEPS
    diffusion_alpha: float = DEFAULT_DIFFUSION_ALPHA
    validation_views: int = DEFAULT_VALIDATION_VIEWS
    max_workers: int = DEFAULT_MAX_WORKERS

    def __post_init__(self):
        """Validate configuration parameters."""
        try:
            self.distances = tuple(float(d) for d in self.distances)
        except (TypeError, ValueError) as e:
            raise InvalidConfigurationError(
                f"distances must be a sequence of numbers, got {self.distances!r}"
            ) from e

        if not self.distances:
            raise InvalidConfigurationError("distances must contain at least one distance")

        if any(not math.isfinite(d) or d < 0.0 for d in self.distances):
            raise InvalidConfigurationError(
                f"distances must be finite and non-negative, got {self.distances}"
            )

        for previous, current in zip(self.distances, self.distances[1:]):
            if current <= previous:
                raise InvalidConfigurationError(
                    f"distances must be strictly ascending, got {self.distances}"
                )

        self.smooth_factor = self._validate_real("smooth_factor", self.smooth_factor)
        if self.smooth_factor <= 0.0:
            raise InvalidConfigurationError("smooth_factor must be positive")

        self.focal_length = self._validate_real("focal_length", self.focal_length)
        if self.focal_length <= 0.0:
            raise InvalidConfigurationError("focal_length must be positive")

        self.pruning_threshold = self._validate_real("pruning_threshold", self.pruning_threshold)
        if self.pruning_threshold < 0.0:
            raise InvalidConfigurationError("pruning_threshold must be non-negative")

        self.diffusion_alpha = self._validate_real("diffusion_alpha", self.diffusion_alpha)
        if self.diffusion_alpha < 0.0:
            raise InvalidConfigurationError("diffusion_alpha must be non-negative")

        self.fine_tune_steps = self._validate_count("fine_tune_steps", self.fine_tune_steps)
        self.validation_views = self._validate_count("validation_views", self.validation_views)
        self.max_workers = self._validate_count("max_workers", self.max_workers)

    @staticmethod
    def _validate_real(name: str, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidConfigurationError(f"{name} must be a number, got {value!r}")
        value = float(value)
        if not math.isfinite(value):
            raise InvalidConfigurationError(f"{name} must be finite, got {value}")
        return value

    @staticmethod
    def _validate_count(name: str, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            raise InvalidConfigurationError(f"{name} must be an integer, got {value!r}")
        if value <= 0:
            raise InvalidConfigurationError(f"{name} must be positive, got {value}")
        return int(value)

    @property
    def thresholds(self) -> tuple[float, ...]:
        """Pruning threshold schedule applied within each level."""
        return tuple(fraction * self.pruning_threshold for fraction in THRESHOLD_SCHEDULE)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation (used for LOD metadata)."""
        data = asdict(self)
        data["distances"] = list(self.distances)
        return data


# Default UI slider ranges for building interfaces
UI_RANGES = {
    "smooth_factor": {"min": 0.1, "max": 5.0, "step": 0.1, "default": DEFAULT_SMOOTH_FACTOR},
    "focal_length": {"min": 100.0, "max": 5000.0, "step": 10.0, "default": DEFAULT_FOCAL_LENGTH},
    "pruning_threshold": {
        "min": 0.0,
        "max": 1.0,
        "step": 0.005,
        "default": DEFAULT_PRUNING_THRESHOLD,
    },
    "fine_tune_steps": {"min": 1, "max": 1000, "step": 1, "default": DEFAULT_FINE_TUNE_STEPS},
    "diffusion_alpha": {"min": 0.0, "max": 1.0, "step": 0.01, "default": DEFAULT_DIFFUSION_ALPHA},
}
