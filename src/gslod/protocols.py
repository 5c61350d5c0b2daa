"""
Protocol definitions for gslod extension points.

Defines the interface an importance scorer must implement to replace the
default opacity/distance proxy in the LOD builder.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from gslod.primitives import PrimitiveSet


@runtime_checkable
class ImportanceScorer(Protocol):
    """
    Protocol for importance scorers used by LODBuilder.

    A richer scorer (for example one that renders ``num_views`` validation
    viewpoints and records each primitive's maximum per-pixel contribution)
    can be passed to the builder as long as it implements this interface.
    """

    def __call__(self, primitives: PrimitiveSet, num_views: int = 0) -> np.ndarray:
        """
        Score every primitive.

        Args:
            primitives: PrimitiveSet to score (must not be modified)
            num_views: Number of validation views requested by the config

        Returns:
            Scores [N], one per primitive, in primitive order
        """
        ...
