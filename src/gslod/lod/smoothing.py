"""
Distance-dependent smoothing filter (mip-style blur) for LOD levels.

Simulates the footprint a primitive covers at viewing distance ``d`` by adding
an isotropic blur to its covariance, then attenuates opacity to compensate for
the extra coverage.
"""

from __future__ import annotations

import logging
import math

from gslod.constants import (
    DEFAULT_DIFFUSION_ALPHA,
    DEFAULT_FOCAL_LENGTH,
    DEFAULT_SMOOTH_FACTOR,
)
from gslod.lod.kernels import select_kernel, smooth_numba, smooth_serial_numba
from gslod.primitives import PrimitiveSet

logger = logging.getLogger(__name__)


def smoothing_blur(distance: float, smooth_factor: float, focal_length: float) -> float:
    """Covariance blur ``(s * d / f)^2`` added to each diagonal term."""
    return (smooth_factor * distance / focal_length) ** 2


def opacity_attenuation(distance: float, focal_length: float, diffusion_alpha: float) -> float:
    """Opacity multiplier ``exp(-alpha * (d / f)^2)``."""
    return math.exp(-diffusion_alpha * (distance / focal_length) ** 2)


def apply_smoothing(
    primitives: PrimitiveSet,
    distance: float,
    smooth_factor: float = DEFAULT_SMOOTH_FACTOR,
    focal_length: float = DEFAULT_FOCAL_LENGTH,
    diffusion_alpha: float = DEFAULT_DIFFUSION_ALPHA,
    *,
    parallel: bool = True,
) -> None:
    """
    Apply the smoothing filter to a primitive set in-place.

    Adds ``blur = (s * d / f)^2`` to S00, S11 and S22 of every primitive and
    multiplies every opacity by ``exp(-alpha * (d / f)^2)``.

    Covariance growth is unbounded across repeated calls, so each LOD level
    must start from its own fresh copy of the base set.

    Args:
        primitives: PrimitiveSet to modify
        distance: Target viewing distance d
        smooth_factor: Smoothing factor s
        focal_length: Focal length f (must be positive)
        diffusion_alpha: Opacity compensation alpha
        parallel: Use the parallel kernel (False inside worker threads)

    Example:
        >>> level = base.copy()
        >>> apply_smoothing(level, distance=10.0)
    """
    if focal_length <= 0:
        raise ValueError(f"focal_length={focal_length} must be positive (> 0)")

    blur = smoothing_blur(distance, smooth_factor, focal_length)
    attenuation = opacity_attenuation(distance, focal_length, diffusion_alpha)

    if primitives.is_empty():
        return

    kernel = select_kernel(smooth_numba, smooth_serial_numba, parallel)
    kernel(primitives.covariances, primitives.opacities, blur, attenuation)

    logger.debug(
        "[Smoothing] d=%.3f: blur=%.3e, opacity x %.6f on %d primitives",
        distance,
        blur,
        attenuation,
        primitives.count,
    )


__all__ = ["apply_smoothing", "smoothing_blur", "opacity_attenuation"]
