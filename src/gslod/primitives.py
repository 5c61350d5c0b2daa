"""
Primitive set container for Gaussian splat LOD construction.

A PrimitiveSet holds Gaussian primitives as parallel arrays. Index ``i`` across
every array describes the same primitive; primitives carry no identity beyond
their index, so reordering (as pruning does) is allowed.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from gslod.constants import COLOR_CHANNELS, COVARIANCE_TERMS, SPATIAL_DIMS


@dataclass
class PrimitiveSet:
    """
    Gaussian primitives stored as index-aligned arrays.

    Attributes:
        centers: Positions [N, 3] (float32)
        covariances: Packed symmetric covariances [N, 6] as
            (S00, S01, S02, S11, S12, S22) (float32)
        opacities: Opacities [N] in [0, 1] (float32)
        colors: RGBA colors [N, 4] (uint8), or None once dropped by pruning.
            The alpha channel is legacy; opacity lives in ``opacities``.
    """

    centers: NDArray[np.float32]
    covariances: NDArray[np.float32]
    opacities: NDArray[np.float32]
    colors: NDArray[np.uint8] | None = None

    def __post_init__(self) -> None:
        """Coerce arrays to their canonical dtypes and check alignment."""
        self.centers = np.ascontiguousarray(self.centers, dtype=np.float32).reshape(-1, SPATIAL_DIMS)
        self.covariances = np.ascontiguousarray(self.covariances, dtype=np.float32).reshape(
            -1, COVARIANCE_TERMS
        )
        self.opacities = np.ascontiguousarray(self.opacities, dtype=np.float32).reshape(-1)
        if self.colors is not None:
            self.colors = np.ascontiguousarray(self.colors, dtype=np.uint8).reshape(
                -1, COLOR_CHANNELS
            )
        self.validate()

    @classmethod
    def from_arrays(
        cls,
        centers: np.ndarray,
        covariances: np.ndarray,
        colors: np.ndarray | None = None,
        opacities: np.ndarray | None = None,
    ) -> PrimitiveSet:
        """
        Build a PrimitiveSet from flat or shaped attribute arrays.

        When ``opacities`` is omitted it is extracted from the color alpha
        channel as ``alpha / 255``, after which the two are stored independently.

        Args:
            centers: Positions, flat [3N] or [N, 3]
            covariances: Packed covariances, flat [6N] or [N, 6]
            colors: RGBA bytes, flat [4N] or [N, 4] (optional)
            opacities: Opacities [N] in [0, 1] (optional if colors given)

        Returns:
            New PrimitiveSet

        Raises:
            ValueError: If neither opacities nor colors are given, or arrays
                are not index-aligned

        Example:
            >>> prims = PrimitiveSet.from_arrays(centers, covariances, colors=rgba)
            >>> print(prims.count)
        """
        if opacities is None:
            if colors is None:
                raise ValueError("Either opacities or colors must be provided")
            rgba = np.asarray(colors, dtype=np.uint8).reshape(-1, COLOR_CHANNELS)
            opacities = rgba[:, 3].astype(np.float32) / np.float32(255.0)

        return cls(
            centers=np.array(centers, dtype=np.float32),
            covariances=np.array(covariances, dtype=np.float32),
            opacities=np.array(opacities, dtype=np.float32),
            colors=None if colors is None else np.array(colors, dtype=np.uint8),
        )

    @property
    def count(self) -> int:
        """Number of primitives."""
        return int(self.opacities.shape[0])

    @property
    def nbytes(self) -> int:
        """Total memory held by the attribute arrays."""
        total = self.centers.nbytes + self.covariances.nbytes + self.opacities.nbytes
        if self.colors is not None:
            total += self.colors.nbytes
        return total

    def __len__(self) -> int:
        return self.count

    def is_empty(self) -> bool:
        return self.count == 0

    def validate(self) -> None:
        """
        Check the index-alignment invariant and the opacity range.

        Raises:
            ValueError: If any array length disagrees with ``count``, or an
                opacity lies outside [0, 1] (NaN included)
        """
        n = self.count
        if self.centers.size != SPATIAL_DIMS * n:
            raise ValueError(
                f"centers has {self.centers.size} values, expected {SPATIAL_DIMS * n} "
                f"for {n} primitives"
            )
        if self.covariances.size != COVARIANCE_TERMS * n:
            raise ValueError(
                f"covariances has {self.covariances.size} values, expected "
                f"{COVARIANCE_TERMS * n} for {n} primitives"
            )
        if self.colors is not None and self.colors.size != COLOR_CHANNELS * n:
            raise ValueError(
                f"colors has {self.colors.size} values, expected {COLOR_CHANNELS * n} "
                f"for {n} primitives"
            )
        in_range = (self.opacities >= 0.0) & (self.opacities <= 1.0)
        if not in_range.all():
            bad = int(np.flatnonzero(~in_range)[0])
            raise ValueError(
                f"opacities must lie in [0, 1], got {self.opacities[bad]} at index {bad}"
            )

    def copy(self) -> PrimitiveSet:
        """
        Deep copy of every attribute array.

        Each LOD level works on its own copy so that in-place smoothing never
        leaks into the base set or other levels.
        """
        return PrimitiveSet(
            centers=self.centers.copy(),
            covariances=self.covariances.copy(),
            opacities=self.opacities.copy(),
            colors=None if self.colors is None else self.colors.copy(),
        )

    def __repr__(self) -> str:
        has_colors = self.colors is not None
        return f"PrimitiveSet(count={self.count}, colors={has_colors}, nbytes={self.nbytes})"


__all__ = ["PrimitiveSet"]
