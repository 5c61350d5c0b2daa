"""
Opacity-percentile pruning of PLY scenes.

Sorts a scene's splats by activated opacity and writes one reduced scene per
pruning percentage, keeping every original attribute (SH, scales, rotations)
of the surviving splats.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import gsply
import numpy as np

from gslod.constants import OPACITY_PRUNE_PERCENTAGES
from gslod.io.convert import activate
from gslod.lod.pruning import lowest_opacity_removed, opacity_removal_count

logger = logging.getLogger(__name__)


@dataclass
class OpacityPrunedFile:
    """
    One scene written by save_opacity_pruned().

    Attributes:
        path: Written PLY path
        percentage: Share of splats removed (percent)
        splat_count: Splats kept in the file
    """

    path: str
    percentage: int
    splat_count: int


def opacity_pruned_path(input_path: str | Path, output_dir: str | Path, percentage: int) -> Path:
    """Output path: ``<output_dir>/<stem>_pruned_opacity_<p>.ply``."""
    return Path(output_dir) / f"{Path(input_path).stem}_pruned_opacity_{percentage}.ply"


def save_opacity_pruned(
    input_path: str | Path,
    output_dir: str | Path,
    percentages: Sequence[int] = OPACITY_PRUNE_PERCENTAGES,
) -> list[OpacityPrunedFile]:
    """
    Write one scene per percentage with the least opaque splats removed.

    For each ``p`` the lowest ``N * p // 100`` splats by ``sigmoid(opacity)``
    are dropped. Survivors are written in ascending-opacity order with their
    original PLY attributes.

    Args:
        input_path: Source PLY file
        output_dir: Directory for the pruned scenes (created if missing)
        percentages: Integer percentages in [0, 100)

    Returns:
        OpacityPrunedFile per written scene, in percentage order

    Raises:
        ValueError: If a percentage is not an integer in [0, 100)

    Example:
        >>> files = save_opacity_pruned("scene.ply", "out/")
        >>> [f.splat_count for f in files]
    """
    for p in percentages:
        if isinstance(p, bool) or not isinstance(p, (int, np.integer)) or not 0 <= p < 100:
            raise ValueError(f"percentage={p!r} must be an integer in [0, 100)")

    input_path = Path(input_path)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    logger.info("[OpacityPrune] Loading scene: %s", input_path)
    data = gsply.plyread(str(input_path))
    count = len(data.means)

    _, opacities = activate(data.scales, data.opacities)
    logger.info(
        "[OpacityPrune] %d splats, opacity range [%.4f, %.4f]",
        count,
        opacities.min(initial=1.0),
        opacities.max(initial=0.0),
    )

    files = []
    for p in percentages:
        p = int(p)
        keep = lowest_opacity_removed(opacities, opacity_removal_count(count, p))
        path = opacity_pruned_path(input_path, output_dir, p)

        gsply.plywrite(
            str(path),
            np.asarray(data.means)[keep],
            np.asarray(data.scales)[keep],
            np.asarray(data.quats)[keep],
            np.asarray(data.opacities)[keep],
            np.asarray(data.sh0)[keep],
            None if data.shN is None else np.asarray(data.shN)[keep],
        )

        files.append(OpacityPrunedFile(path=str(path), percentage=p, splat_count=int(keep.size)))
        logger.info("[OpacityPrune] %d%% pruned: %s (%d splats)", p, path, keep.size)

    return files


__all__ = ["OpacityPrunedFile", "opacity_pruned_path", "save_opacity_pruned"]
