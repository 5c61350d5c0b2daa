"""
Closed-form opacity fine-tuning after each pruning step.

Each step samples a viewing distance near the level's target and scales every
opacity by a Gaussian falloff of the sampling offset. One global factor is
drawn per step, so all surviving primitives decay identically.
"""

from __future__ import annotations

import logging

import numpy as np

from gslod.constants import (
    FINE_TUNE_FALLOFF,
    FINE_TUNE_SAMPLE_HIGH,
    FINE_TUNE_SAMPLE_LOW,
)
from gslod.primitives import PrimitiveSet

logger = logging.getLogger(__name__)


def fine_tune_factors(
    distance: float,
    steps: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Draw the per-step opacity factors for one fine-tuning pass.

    Args:
        distance: Target distance d
        steps: Number of steps T
        rng: Random generator supplying ``d_sample ~ U[0.7 d, 1.3 d]``

    Returns:
        Factors [T] (float64), ``exp(-0.01 * (d_sample - d)^2)`` each
    """
    samples = rng.uniform(
        FINE_TUNE_SAMPLE_LOW * distance, FINE_TUNE_SAMPLE_HIGH * distance, size=steps
    )
    return np.exp(-FINE_TUNE_FALLOFF * (samples - distance) ** 2)


def fine_tune(
    primitives: PrimitiveSet,
    distance: float,
    steps: int,
    rng: np.random.Generator | None = None,
) -> float:
    """
    Apply ``steps`` stochastic opacity adjustments in-place.

    Args:
        primitives: PrimitiveSet whose opacities are modified
        distance: Target distance d of the LOD level
        steps: Number of adjustment steps T (must be positive)
        rng: Random generator; pass a seeded ``np.random.default_rng(seed)``
            for reproducible results (unseeded generator if None)

    Returns:
        Cumulative factor applied to every opacity

    Raises:
        ValueError: If steps is not positive

    Example:
        >>> rng = np.random.default_rng(0)
        >>> total = fine_tune(prims, distance=10.0, steps=100, rng=rng)
    """
    if steps <= 0:
        raise ValueError(f"steps={steps} must be positive (> 0)")

    if rng is None:
        rng = np.random.default_rng()

    opacities = primitives.opacities
    cumulative = 1.0
    for factor in fine_tune_factors(distance, steps, rng):
        # Applied step by step to match repeated single-precision updates
        opacities *= np.float32(factor)
        cumulative *= float(factor)

    logger.debug(
        "[FineTune] d=%.3f, %d steps: cumulative opacity factor %.6f on %d primitives",
        distance,
        steps,
        cumulative,
        primitives.count,
    )
    return cumulative


__all__ = ["fine_tune", "fine_tune_factors"]
