"""
Importance-threshold pruning for LOD levels.

Keeps every primitive whose score reaches the threshold and compacts the
survivors into a new PrimitiveSet. Pruning never returns an empty set: when
nothing passes, the highest-scoring 10% (at least one) are kept instead.

prune_by_opacity_fraction is the simpler percentile cut: it drops a fixed share
of the least opaque primitives.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from gslod.constants import FALLBACK_KEEP_FRACTION
from gslod.lod.kernels import gather_numba, gather_serial_numba, select_kernel
from gslod.primitives import PrimitiveSet

logger = logging.getLogger(__name__)


@dataclass
class PruneResult:
    """
    Outcome of one pruning step.

    Attributes:
        primitives: Surviving primitives (colors are not carried through)
        threshold: Threshold tau that was applied
        original_count: Primitive count before pruning
        fallback: True if no score reached tau and the top-10% fallback ran
        score_min: Smallest score seen
        score_max: Largest score seen
        score_mean: Mean score
    """

    primitives: PrimitiveSet
    threshold: float
    original_count: int
    fallback: bool
    score_min: float
    score_max: float
    score_mean: float

    @property
    def kept_count(self) -> int:
        return self.primitives.count

    @property
    def kept_fraction(self) -> float:
        """Fraction of primitives that survived."""
        return self.kept_count / self.original_count if self.original_count > 0 else 0.0


def fallback_keep_count(count: int) -> int:
    """Number of primitives kept by the fallback: ``max(1, floor(0.1 * count))``."""
    return max(1, math.floor(count * FALLBACK_KEEP_FRACTION))


def select_indices(scores: np.ndarray, threshold: float) -> tuple[np.ndarray, bool]:
    """
    Choose which primitives survive a pruning step.

    Args:
        scores: Importance scores [N] (N >= 1)
        threshold: Inclusive threshold tau

    Returns:
        Tuple of (indices to keep, fallback flag). Regular selections keep
        the original relative order; fallback selections are in descending
        score order, ties broken by original index.
    """
    indices = np.flatnonzero(scores >= threshold)
    if indices.size > 0:
        return indices.astype(np.int64, copy=False), False

    keep = fallback_keep_count(scores.shape[0])
    ranked = np.argsort(-scores, kind="stable")
    return ranked[:keep].astype(np.int64, copy=False), True


def prune(
    primitives: PrimitiveSet,
    scores: np.ndarray,
    threshold: float,
    *,
    parallel: bool = True,
) -> PruneResult:
    """
    Prune primitives whose importance is below ``threshold``.

    The input set is never modified. Ties at exactly ``threshold`` are kept.
    If no primitive qualifies, the top ``max(1, floor(0.1 * count))`` by score
    are kept and a warning is logged; the result's ``fallback`` flag reports it.

    Args:
        primitives: PrimitiveSet to prune (not modified, must be non-empty)
        scores: Importance scores [N], one per primitive
        threshold: Minimum score to survive (inclusive)
        parallel: Use the parallel gather kernel (False inside worker threads)

    Returns:
        PruneResult holding the new, compacted PrimitiveSet

    Raises:
        ValueError: If the set is empty or scores do not match its length

    Example:
        >>> result = prune(prims, compute_importance(prims), threshold=0.02)
        >>> if result.fallback:
        ...     print("threshold too aggressive")
        >>> prims = result.primitives
    """
    n = primitives.count
    if n == 0:
        raise ValueError("Cannot prune an empty primitive set")

    scores = np.asarray(scores, dtype=np.float32).reshape(-1)
    if scores.shape[0] != n:
        raise ValueError(f"scores length {scores.shape[0]} doesn't match primitive count {n}")

    indices, fallback = select_indices(scores, threshold)
    score_min = float(scores.min())
    score_max = float(scores.max())
    score_mean = float(scores.mean())

    if fallback:
        logger.warning(
            "[Prune] No primitive reached tau=%.6f (max score %.6f); "
            "falling back to top %d of %d by importance",
            threshold,
            score_max,
            indices.size,
            n,
        )

    m = indices.size
    out_centers = np.empty((m, 3), dtype=np.float32)
    out_covariances = np.empty((m, 6), dtype=np.float32)
    out_opacities = np.empty(m, dtype=np.float32)

    kernel = select_kernel(gather_numba, gather_serial_numba, parallel)
    kernel(
        primitives.centers,
        primitives.covariances,
        primitives.opacities,
        indices,
        out_centers,
        out_covariances,
        out_opacities,
    )

    pruned = PrimitiveSet(
        centers=out_centers,
        covariances=out_covariances,
        opacities=out_opacities,
        colors=None,
    )

    logger.debug(
        "[Prune] tau=%.6f: %d -> %d primitives (%.1f%%), scores min=%.6f max=%.6f mean=%.6f",
        threshold,
        n,
        m,
        m / n * 100,
        score_min,
        score_max,
        score_mean,
    )

    return PruneResult(
        primitives=pruned,
        threshold=float(threshold),
        original_count=n,
        fallback=fallback,
        score_min=score_min,
        score_max=score_max,
        score_mean=score_mean,
    )


def opacity_removal_count(count: int, percentage: int) -> int:
    """Primitives removed when pruning ``percentage``% by opacity: ``count * p // 100``."""
    return count * percentage // 100


def lowest_opacity_removed(opacities: np.ndarray, removed: int) -> np.ndarray:
    """
    Indices that survive dropping the ``removed`` least opaque primitives.

    Survivors are returned in ascending-opacity order, ties broken by original
    index.
    """
    order = np.argsort(np.asarray(opacities).reshape(-1), kind="stable")
    return order[removed:].astype(np.int64, copy=False)


def prune_by_opacity_fraction(
    primitives: PrimitiveSet,
    fraction: float,
    *,
    parallel: bool = True,
) -> PrimitiveSet:
    """
    Drop the least opaque ``floor(fraction * count)`` primitives.

    Unlike prune(), this is a plain opacity percentile cut with no scoring
    and no fallback. Colors are carried through.

    Args:
        primitives: PrimitiveSet to prune (not modified, must be non-empty)
        fraction: Share of primitives to remove, in [0, 1)
        parallel: Use the parallel gather kernel

    Returns:
        New PrimitiveSet with ``count - floor(fraction * count)`` primitives
        in ascending-opacity order

    Raises:
        ValueError: If the set is empty or fraction is outside [0, 1)

    Example:
        >>> lighter = prune_by_opacity_fraction(prims, 0.3)
    """
    n = primitives.count
    if n == 0:
        raise ValueError("Cannot prune an empty primitive set")
    if not 0.0 <= fraction < 1.0:
        raise ValueError(f"fraction={fraction} must be in [0, 1)")

    removed = math.floor(n * fraction)
    indices = lowest_opacity_removed(primitives.opacities, removed)
    m = indices.size

    out_centers = np.empty((m, 3), dtype=np.float32)
    out_covariances = np.empty((m, 6), dtype=np.float32)
    out_opacities = np.empty(m, dtype=np.float32)

    kernel = select_kernel(gather_numba, gather_serial_numba, parallel)
    kernel(
        primitives.centers,
        primitives.covariances,
        primitives.opacities,
        indices,
        out_centers,
        out_covariances,
        out_opacities,
    )

    logger.debug("[Prune] Opacity cut %.1f%%: %d -> %d primitives", fraction * 100, n, m)
    return PrimitiveSet(
        centers=out_centers,
        covariances=out_covariances,
        opacities=out_opacities,
        colors=None if primitives.colors is None else primitives.colors[indices],
    )


__all__ = [
    "PruneResult",
    "prune",
    "select_indices",
    "fallback_keep_count",
    "prune_by_opacity_fraction",
    "lowest_opacity_removed",
    "opacity_removal_count",
]
