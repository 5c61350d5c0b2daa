"""
Conversions between gsply GSData and PrimitiveSet.

Extraction (GSData -> PrimitiveSet):
  - log-scales and logit opacities are activated (unless already activated)
  - quaternion + scale -> packed 3x3 covariance ``R S S^T R^T``
  - SH DC coefficients -> 8-bit RGBA colors (alpha = opacity)

Export (PrimitiveSet / LODLevel -> GSData):
  - scales re-derived from the covariance diagonal, identity rotation
  - colors from the set or a default gray, opacities back to logits
"""

from __future__ import annotations

import logging
import math

import numpy as np
from gsply import GSData
from numba import njit, prange

from gslod.constants import (
    COVARIANCE_DIAGONAL,
    DEFAULT_EXPORT_COLOR,
    IDENTITY_QUATERNION,
    MAX_ACTIVATED_SCALE,
    MIN_ACTIVATED_SCALE,
    MIN_EXPORT_SCALE,
    OPACITY_EPSILON,
    SH_C0,
)
from gslod.lod.builder import LODLevel
from gslod.primitives import PrimitiveSet

logger = logging.getLogger(__name__)


@njit(parallel=True, fastmath=True, cache=True, nogil=True)
def covariance_from_scale_rotation_numba(
    scales: np.ndarray,
    quats: np.ndarray,
    out: np.ndarray,
) -> None:
    """
    Build packed covariances from linear scales and (w, x, y, z) quaternions.

    Args:
        scales: Linear scales [N, 3]
        quats: Quaternions [N, 4] in (w, x, y, z) order (normalized here)
        out: Output covariances [N, 6] as (S00, S01, S02, S11, S12, S22)
    """
    n = scales.shape[0]

    for i in prange(n):
        w = quats[i, 0]
        x = quats[i, 1]
        y = quats[i, 2]
        z = quats[i, 3]

        norm = np.sqrt(w * w + x * x + y * y + z * z)
        if norm < 1e-8:
            w = 1.0
            x = 0.0
            y = 0.0
            z = 0.0
        else:
            inv = 1.0 / norm
            w *= inv
            x *= inv
            y *= inv
            z *= inv

        r00 = 1.0 - 2.0 * (y * y + z * z)
        r01 = 2.0 * (x * y - w * z)
        r02 = 2.0 * (x * z + w * y)
        r10 = 2.0 * (x * y + w * z)
        r11 = 1.0 - 2.0 * (x * x + z * z)
        r12 = 2.0 * (y * z - w * x)
        r20 = 2.0 * (x * z - w * y)
        r21 = 2.0 * (y * z + w * x)
        r22 = 1.0 - 2.0 * (x * x + y * y)

        # M = R * diag(s); covariance = M M^T
        sx = scales[i, 0]
        sy = scales[i, 1]
        sz = scales[i, 2]

        m00 = r00 * sx
        m01 = r01 * sy
        m02 = r02 * sz
        m10 = r10 * sx
        m11 = r11 * sy
        m12 = r12 * sz
        m20 = r20 * sx
        m21 = r21 * sy
        m22 = r22 * sz

        out[i, 0] = m00 * m00 + m01 * m01 + m02 * m02
        out[i, 1] = m00 * m10 + m01 * m11 + m02 * m12
        out[i, 2] = m00 * m20 + m01 * m21 + m02 * m22
        out[i, 3] = m10 * m10 + m11 * m11 + m12 * m12
        out[i, 4] = m10 * m20 + m11 * m21 + m12 * m22
        out[i, 5] = m20 * m20 + m21 * m21 + m22 * m22


@njit(parallel=True, fastmath=True, cache=True, nogil=True)
def _activate_numba(
    scales: np.ndarray,
    opacities: np.ndarray,
    log_min_scale: np.float32,
    log_max_scale: np.float32,
) -> None:
    """
    Fused activation of PLY-space scales and opacities (in-place).

    Log-scales are clamped before ``exp`` so extreme values cannot overflow.

    Args:
        scales: Log-scales [N, 3], replaced by clamped ``exp`` values
        opacities: Logit opacities [N], replaced by sigmoid values
        log_min_scale: Lower clamp in log space
        log_max_scale: Upper clamp in log space
    """
    n = scales.shape[0]

    for i in prange(n):
        for k in range(3):
            log_scale = min(max(scales[i, k], log_min_scale), log_max_scale)
            scales[i, k] = np.exp(log_scale)

        # Numerically stable sigmoid
        logit = opacities[i]
        if logit >= 0.0:
            opacities[i] = 1.0 / (1.0 + np.exp(-logit))
        else:
            e = np.exp(logit)
            opacities[i] = e / (1.0 + e)


def activate(
    scales: np.ndarray,
    opacities: np.ndarray,
    *,
    min_scale: float = MIN_ACTIVATED_SCALE,
    max_scale: float = MAX_ACTIVATED_SCALE,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Activate log-scales and logit opacities.

    Args:
        scales: Log-scales [N, 3] (not modified)
        opacities: Logit opacities [N] or [N, 1] (not modified)
        min_scale: Minimum scale after exponentiation
        max_scale: Maximum scale after exponentiation

    Returns:
        Tuple of (linear scales [N, 3], opacities [N] in [0, 1]), float32
    """
    if min_scale <= 0 or max_scale < min_scale:
        raise ValueError("min_scale must be positive and max_scale >= min_scale")

    linear = np.array(scales, dtype=np.float32, order="C").reshape(-1, 3)
    sigmoid = np.array(opacities, dtype=np.float32, order="C").reshape(-1)
    if linear.shape[0] != sigmoid.shape[0]:
        raise ValueError("scales and opacities must have matching lengths")

    if linear.shape[0] > 0:
        _activate_numba(
            linear,
            sigmoid,
            np.float32(math.log(min_scale)),
            np.float32(math.log(max_scale)),
        )
    return linear, sigmoid


def colors_from_sh0(sh0: np.ndarray, opacities: np.ndarray) -> np.ndarray:
    """
    Convert SH DC coefficients and opacities to 8-bit RGBA.

    Args:
        sh0: DC coefficients [N, 3]
        opacities: Activated opacities [N] in [0, 1]

    Returns:
        RGBA colors [N, 4] (uint8)
    """
    rgb = 0.5 + SH_C0 * np.asarray(sh0, dtype=np.float32).reshape(-1, 3)
    colors = np.empty((rgb.shape[0], 4), dtype=np.uint8)
    colors[:, :3] = np.clip(np.rint(rgb * 255.0), 0, 255).astype(np.uint8)
    colors[:, 3] = np.clip(np.rint(np.asarray(opacities) * 255.0), 0, 255).astype(np.uint8)
    return colors


def sh0_from_colors(colors: np.ndarray) -> np.ndarray:
    """Inverse of the RGB part of colors_from_sh0."""
    rgb = np.asarray(colors, dtype=np.float32)[:, :3] / 255.0
    return ((rgb - 0.5) / SH_C0).astype(np.float32)


def primitives_from_gsdata(data: GSData, activated: bool = False) -> PrimitiveSet:
    """
    Extract a PrimitiveSet from GSData.

    Args:
        data: GSData as read by ``gsply.plyread``
        activated: True if scales/opacities are already linear/sigmoid

    Returns:
        PrimitiveSet with centers, covariances, opacities and RGBA colors

    Example:
        >>> data = gsply.plyread("scene.ply")
        >>> base = primitives_from_gsdata(data)
    """
    means = np.asarray(data.means, dtype=np.float32)
    scales = np.asarray(data.scales, dtype=np.float32)
    quats = np.ascontiguousarray(data.quats, dtype=np.float32)
    opacities = np.asarray(data.opacities, dtype=np.float32).reshape(-1)

    if not activated:
        scales, opacities = activate(scales, opacities)

    scales = np.ascontiguousarray(scales, dtype=np.float32)
    opacities = opacities.astype(np.float32, copy=False)

    covariances = np.empty((means.shape[0], 6), dtype=np.float32)
    if means.shape[0] > 0:
        covariance_from_scale_rotation_numba(scales, quats, covariances)

    colors = colors_from_sh0(data.sh0, opacities)

    logger.debug("[Convert] Extracted %d primitives from GSData", means.shape[0])
    return PrimitiveSet(
        centers=means.copy(),
        covariances=covariances,
        opacities=opacities.copy(),
        colors=colors,
    )


def primitives_to_gsdata(
    primitives: PrimitiveSet,
    default_color: int = DEFAULT_EXPORT_COLOR,
) -> GSData:
    """
    Convert a PrimitiveSet into GSData ready for ``gsply.plywrite``.

    Scales are ``sqrt(|diagonal|)`` of the covariance, stored as logs; rotation
    is the identity quaternion; opacities are stored as logits. When the set
    carries no colors (pruned sets never do), every primitive gets
    ``default_color`` on all three channels.

    Args:
        primitives: PrimitiveSet to convert
        default_color: Gray level used when colors are missing (0-255)

    Returns:
        GSData in PLY (log/logit) parameterization
    """
    if not 0 <= default_color <= 255:
        raise ValueError(f"default_color={default_color} must be in [0, 255]")

    n = primitives.count
    diagonal = primitives.covariances[:, list(COVARIANCE_DIAGONAL)]
    linear_scales = np.maximum(np.sqrt(np.abs(diagonal)), MIN_EXPORT_SCALE)
    scales = np.log(linear_scales).astype(np.float32)

    quats = np.tile(np.asarray(IDENTITY_QUATERNION, dtype=np.float32), (n, 1))

    if primitives.colors is not None:
        colors = primitives.colors
    else:
        colors = np.full((n, 4), default_color, dtype=np.uint8)
    sh0 = sh0_from_colors(colors)

    clipped = np.clip(primitives.opacities, OPACITY_EPSILON, 1.0 - OPACITY_EPSILON)
    opacities = np.log(clipped / (1.0 - clipped)).astype(np.float32)

    return GSData(
        means=primitives.centers.copy(),
        scales=scales,
        quats=quats,
        opacities=opacities,
        sh0=sh0,
        shN=None,
    )


def level_to_gsdata(level: LODLevel, default_color: int = DEFAULT_EXPORT_COLOR) -> GSData:
    """Convert one LODLevel into GSData (see primitives_to_gsdata)."""
    return primitives_to_gsdata(level.primitives, default_color=default_color)


__all__ = [
    "primitives_from_gsdata",
    "primitives_to_gsdata",
    "level_to_gsdata",
    "colors_from_sh0",
    "sh0_from_colors",
    "activate",
    "covariance_from_scale_rotation_numba",
]
