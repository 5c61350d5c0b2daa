"""
Scene I/O around the LOD core, built on gsply.

- load_primitives: PLY -> PrimitiveSet
- primitives_from_gsdata / primitives_to_gsdata / level_to_gsdata: conversions
- save_lod_levels / write_lod_metadata: per-level PLY files and JSON summary
- build_lod_pipeline: load -> build -> save -> metadata in one call
- save_opacity_pruned: opacity-percentile pruned copies of a scene
"""

from gslod.io.convert import level_to_gsdata, primitives_from_gsdata, primitives_to_gsdata
from gslod.io.loader import load_primitives
from gslod.io.opacity import OpacityPrunedFile, save_opacity_pruned
from gslod.io.pipeline import LODPipelineResult, build_lod_pipeline
from gslod.io.writer import (
    LODFileInfo,
    build_lod_metadata,
    save_lod_levels,
    write_lod_metadata,
)

__all__ = [
    "load_primitives",
    "primitives_from_gsdata",
    "primitives_to_gsdata",
    "level_to_gsdata",
    "save_lod_levels",
    "write_lod_metadata",
    "build_lod_metadata",
    "LODFileInfo",
    "build_lod_pipeline",
    "LODPipelineResult",
    "save_opacity_pruned",
    "OpacityPrunedFile",
]
