"""
Numba-optimized kernels for LOD construction.

Every kernel is compiled twice:
- a ``parallel=True`` version that spreads primitives over Numba's thread pool,
- a serial ``nogil`` twin used when several LOD levels are built at once on
  Python threads (Numba's default threading layer rejects concurrent parallel
  launches from different threads).

The serial twins are not cached on disk: Numba keys its cache on the Python
function, so a second cached dispatcher for the same function would collide.
"""

import numpy as np
from numba import njit, prange


def _smooth_impl(
    covariances: np.ndarray,
    opacities: np.ndarray,
    blur: float,
    attenuation: float,
) -> None:
    """
    Inflate covariance diagonals and attenuate opacities in-place.

    Args:
        covariances: Packed covariances [N, 6] (modified in-place)
        opacities: Opacities [N] (modified in-place)
        blur: Value added to S00, S11 and S22
        attenuation: Opacity multiplier
    """
    n = covariances.shape[0]

    for i in prange(n):
        covariances[i, 0] += blur
        covariances[i, 3] += blur
        covariances[i, 5] += blur
        opacities[i] *= attenuation


def _importance_impl(
    centers: np.ndarray,
    opacities: np.ndarray,
    origin: np.ndarray,
    falloff: float,
    out: np.ndarray,
) -> None:
    """
    Score each primitive by opacity and distance to the scene origin.

    Args:
        centers: Positions [N, 3]
        opacities: Opacities [N]
        origin: Scene reference point [3]
        falloff: Exponential distance falloff
        out: Output scores [N] (modified in-place)
    """
    n = centers.shape[0]

    for i in prange(n):
        dx = centers[i, 0] - origin[0]
        dy = centers[i, 1] - origin[1]
        dz = centers[i, 2] - origin[2]
        dist = np.sqrt(dx * dx + dy * dy + dz * dz)

        out[i] = opacities[i] * np.exp(-falloff * dist)


def _gather_impl(
    centers: np.ndarray,
    covariances: np.ndarray,
    opacities: np.ndarray,
    indices: np.ndarray,
    out_centers: np.ndarray,
    out_covariances: np.ndarray,
    out_opacities: np.ndarray,
) -> None:
    """
    Copy the rows listed in ``indices`` into compact output arrays.

    Args:
        centers: Source positions [N, 3]
        covariances: Source covariances [N, 6]
        opacities: Source opacities [N]
        indices: Rows to keep [M], in output order
        out_centers: Output positions [M, 3] (modified in-place)
        out_covariances: Output covariances [M, 6] (modified in-place)
        out_opacities: Output opacities [M] (modified in-place)
    """
    m = indices.shape[0]

    for j in prange(m):
        src = indices[j]

        out_centers[j, 0] = centers[src, 0]
        out_centers[j, 1] = centers[src, 1]
        out_centers[j, 2] = centers[src, 2]

        for k in range(6):
            out_covariances[j, k] = covariances[src, k]

        out_opacities[j] = opacities[src]


smooth_numba = njit(parallel=True, cache=True, nogil=True)(_smooth_impl)
importance_numba = njit(parallel=True, cache=True, nogil=True)(_importance_impl)
gather_numba = njit(parallel=True, cache=True, nogil=True)(_gather_impl)

smooth_serial_numba = njit(nogil=True)(_smooth_impl)
importance_serial_numba = njit(nogil=True)(_importance_impl)
gather_serial_numba = njit(nogil=True)(_gather_impl)


def select_kernel(parallel_kernel, serial_kernel, parallel: bool):
    """Pick the parallel kernel or its serial twin."""
    return parallel_kernel if parallel else serial_kernel


# ============================================================================
# Helper Functions
# ============================================================================


def warmup_lod_kernels() -> None:
    """
    Warm up Numba JIT compilation for the parallel LOD kernels.

    Call this once at import time to avoid first-call compilation overhead.
    """
    n = 16
    centers = np.zeros((n, 3), dtype=np.float32)
    covariances = np.zeros((n, 6), dtype=np.float32)
    opacities = np.ones(n, dtype=np.float32)
    origin = np.zeros(3, dtype=np.float64)
    scores = np.empty(n, dtype=np.float32)
    indices = np.arange(n, dtype=np.int64)

    smooth_numba(covariances, opacities, 0.0, 1.0)
    importance_numba(centers, opacities, origin, 0.1, scores)
    gather_numba(
        centers,
        covariances,
        opacities,
        indices,
        np.empty_like(centers),
        np.empty_like(covariances),
        np.empty_like(opacities),
    )


# Warmup on import to avoid first-call overhead
warmup_lod_kernels()
