"""
Scene loading: PLY file -> PrimitiveSet.
"""

from __future__ import annotations

import logging
from pathlib import Path

import gsply

from gslod.io.convert import primitives_from_gsdata
from gslod.primitives import PrimitiveSet
from gslod.stats import LODStats, format_bytes

logger = logging.getLogger(__name__)


def load_primitives(path: str | Path, stats: LODStats | None = None) -> PrimitiveSet:
    """
    Read a Gaussian splat PLY and extract its PrimitiveSet.

    Args:
        path: PLY file path
        stats: Accumulator updated with the scene's splat count and memory

    Returns:
        Extracted PrimitiveSet

    Example:
        >>> stats = LODStats()
        >>> base = load_primitives("scene.ply", stats=stats)
        >>> print(stats.summary()["total_memory"])
    """
    path = Path(path)
    logger.info("[Loader] Loading scene: %s", path)

    data = gsply.plyread(str(path))
    primitives = primitives_from_gsdata(data)

    if stats is not None:
        stats.record(str(path), primitives.count, primitives.nbytes)

    logger.info(
        "[Loader] Scene loaded: %d primitives, %s in RAM",
        primitives.count,
        format_bytes(primitives.nbytes),
    )
    return primitives


__all__ = ["load_primitives"]
