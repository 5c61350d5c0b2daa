"""
Importance scoring for LOD pruning.

The score is a viewpoint-independent proxy: primitives that are both more
opaque and closer to the scene origin count as more significant. A multi-view
contribution scorer can be swapped in through the ImportanceScorer protocol.
"""

from __future__ import annotations

import logging

import numpy as np

from gslod.constants import IMPORTANCE_DISTANCE_FALLOFF, SCENE_ORIGIN
from gslod.lod.kernels import importance_numba, importance_serial_numba, select_kernel
from gslod.primitives import PrimitiveSet

logger = logging.getLogger(__name__)

_ORIGIN = np.asarray(SCENE_ORIGIN, dtype=np.float64)


def compute_importance(primitives: PrimitiveSet, *, parallel: bool = True) -> np.ndarray:
    """
    Compute per-primitive importance scores.

    ``score[i] = opacity[i] * exp(-0.1 * ||center[i] - (0, 0, 0)||)``

    Args:
        primitives: PrimitiveSet to score (not modified)
        parallel: Use the parallel kernel (False inside worker threads)

    Returns:
        Scores [N] (float32), same order as the primitives

    Example:
        >>> scores = compute_importance(prims)
        >>> print(f"max={scores.max():.3f}")
    """
    scores = np.empty(primitives.count, dtype=np.float32)
    if primitives.is_empty():
        return scores

    kernel = select_kernel(importance_numba, importance_serial_numba, parallel)
    kernel(
        primitives.centers,
        primitives.opacities,
        _ORIGIN,
        IMPORTANCE_DISTANCE_FALLOFF,
        scores,
    )

    logger.debug(
        "[Importance] Scored %d primitives: min=%.6f, max=%.6f, mean=%.6f",
        primitives.count,
        scores.min(),
        scores.max(),
        scores.mean(),
    )
    return scores


class OpacityDistanceScorer:
    """
    Default importance scorer (opacity times distance falloff).

    Satisfies the ImportanceScorer protocol. ``num_views`` is accepted for
    compatibility with multi-view scorers and ignored.

    Example:
        >>> scorer = OpacityDistanceScorer()
        >>> scores = scorer(prims, num_views=10)
    """

    __slots__ = ("parallel",)

    def __init__(self, parallel: bool = True):
        self.parallel = parallel

    def __call__(self, primitives: PrimitiveSet, num_views: int = 0) -> np.ndarray:
        return compute_importance(primitives, parallel=self.parallel)

    def __repr__(self) -> str:
        return f"OpacityDistanceScorer(parallel={self.parallel})"


__all__ = ["compute_importance", "OpacityDistanceScorer"]
