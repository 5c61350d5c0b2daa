"""
LOD export: one PLY per level plus a JSON metadata side-file.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import gsply

from gslod.constants import DEFAULT_EXPORT_COLOR, METADATA_VERSION
from gslod.io.convert import level_to_gsdata
from gslod.lod.builder import LODLevel
from gslod.lod.config import LODConfig

logger = logging.getLogger(__name__)


@dataclass
class LODFileInfo:
    """
    One written LOD file.

    Attributes:
        path: Written PLY path
        distance: Level's viewing distance
        splat_count: Primitives in the file
        reduction: Surviving fraction of the base set, e.g. ``"12.5%"``
    """

    path: str
    distance: float
    splat_count: int
    reduction: str


def lod_file_path(output_base: str | Path, index: int, distance: float) -> Path:
    """File path for level ``index``: ``<base>_lod_<index>_d<distance>.ply``."""
    return Path(f"{output_base}_lod_{index}_d{distance:g}.ply")


def metadata_path(output_base: str | Path) -> Path:
    """Metadata path: ``<base>_lod_metadata.json``."""
    return Path(f"{output_base}_lod_metadata.json")


def save_lod_levels(
    output_base: str | Path,
    levels: list[LODLevel],
    default_color: int = DEFAULT_EXPORT_COLOR,
) -> list[LODFileInfo]:
    """
    Write every LOD level to its own PLY file.

    Args:
        output_base: Path prefix for the level files
        levels: Levels from LODBuilder.build()
        default_color: Gray level for levels without colors

    Returns:
        LODFileInfo per written file, in level order

    Example:
        >>> files = save_lod_levels("out/scene", levels)
        >>> print([f.path for f in files])
    """
    files = []
    logger.info("[Writer] Saving %d LOD levels", len(levels))

    for level in levels:
        path = lod_file_path(output_base, level.index, level.distance)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = level_to_gsdata(level, default_color=default_color)
        gsply.plywrite(
            str(path), data.means, data.scales, data.quats, data.opacities, data.sh0, data.shN
        )

        files.append(
            LODFileInfo(
                path=str(path),
                distance=level.distance,
                splat_count=level.final_count,
                reduction=level.reduction_percent,
            )
        )
        logger.info("[Writer] Level %d saved: %s (%d primitives)", level.index, path, level.final_count)

    return files


def build_lod_metadata(
    output_base: str | Path,
    files: list[LODFileInfo],
    config: LODConfig | None = None,
) -> dict[str, Any]:
    """
    Assemble the metadata document describing a set of LOD files.

    Args:
        output_base: Path prefix the files were written under
        files: Output of save_lod_levels()
        config: Configuration used to build the levels

    Returns:
        Metadata dictionary (JSON-serializable)
    """
    distances = [info.distance for info in files]
    return {
        "version": METADATA_VERSION,
        "base_scene": str(output_base),
        "created_at": datetime.now(timezone.utc).isoformat(),
        "config": config.to_dict() if config is not None else {},
        "levels": [asdict(info) for info in files],
        "statistics": {
            "total_levels": len(files),
            "distance_range": {
                "min": min(distances) if distances else None,
                "max": max(distances) if distances else None,
            },
            "total_reduction": files[-1].reduction if files else "0%",
        },
    }


def write_lod_metadata(
    output_base: str | Path,
    files: list[LODFileInfo],
    config: LODConfig | None = None,
) -> dict[str, Any]:
    """
    Write ``<base>_lod_metadata.json`` and return its contents.

    Example:
        >>> metadata = write_lod_metadata("out/scene", files, config)
        >>> metadata["statistics"]["total_levels"]
        4
    """
    metadata = build_lod_metadata(output_base, files, config)
    path = metadata_path(output_base)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(metadata, indent=2))

    logger.info("[Writer] Metadata saved: %s", path)
    return metadata


__all__ = [
    "LODFileInfo",
    "lod_file_path",
    "metadata_path",
    "save_lod_levels",
    "build_lod_metadata",
    "write_lod_metadata",
]
