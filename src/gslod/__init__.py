"""
gslod - Gaussian Splatting Level of Detail

Distance-tuned level-of-detail construction for 3D Gaussian Splatting scenes.

Features:
- Mip-style smoothing: covariance blur (s * d / f)^2 with opacity compensation
- Importance scoring from opacity and distance to the scene origin
- Three-step pruning schedule [0.2 tau, 0.6 tau, tau] with top-10% fallback
- Seedable closed-form opacity fine-tuning
- Numba kernels, parallel per primitive and optionally per level
- gsply-based PLY loading, per-level export and JSON metadata
- Opacity-percentile pruning of whole scenes

Example - Core API:
    >>> import numpy as np
    >>> from gslod import LODBuilder, LODConfig, PrimitiveSet
    >>>
    >>> base = PrimitiveSet.from_arrays(centers, covariances, colors=rgba)
    >>> levels = LODBuilder(LODConfig(distances=(5, 10, 20, 50))).build(
    ...     base, rng=np.random.default_rng(0)
    ... )
    >>> for level in levels:
    ...     print(level.distance, level.final_count, level.reduction_percent)

Example - Fluent configuration:
    >>> levels = (
    ...     LODBuilder()
    ...     .distances([5, 10, 20])
    ...     .pruning_threshold(0.1)
    ...     .fine_tune_steps(50)
    ...     .workers(4)
    ... )(base)

Example - Files:
    >>> from gslod import build_lod_pipeline
    >>> result = build_lod_pipeline("scene.ply", "out/scene")
"""

__version__ = "0.1.0"

# Errors
from gslod.errors import InvalidConfigurationError, LODError, MissingInputError

# Scene I/O
from gslod.io import (
    LODFileInfo,
    LODPipelineResult,
    OpacityPrunedFile,
    build_lod_pipeline,
    level_to_gsdata,
    load_primitives,
    primitives_from_gsdata,
    primitives_to_gsdata,
    save_lod_levels,
    save_opacity_pruned,
    write_lod_metadata,
)

# LOD construction
from gslod.lod import (
    UI_RANGES,
    LODBuilder,
    LODConfig,
    LODLevel,
    OpacityDistanceScorer,
    PruneResult,
    apply_smoothing,
    build_lod_levels,
    compute_importance,
    fine_tune,
    prune,
    prune_by_opacity_fraction,
)

# Data structures
from gslod.primitives import PrimitiveSet

# Protocols
from gslod.protocols import ImportanceScorer

# Statistics
from gslod.stats import LODStats, format_bytes

__all__ = [
    # Version
    "__version__",
    # Data structures
    "PrimitiveSet",
    # Builder
    "LODBuilder",
    "LODLevel",
    "LODConfig",
    "UI_RANGES",
    "build_lod_levels",
    # Components
    "apply_smoothing",
    "compute_importance",
    "OpacityDistanceScorer",
    "prune",
    "PruneResult",
    "prune_by_opacity_fraction",
    "fine_tune",
    # Protocols
    "ImportanceScorer",
    # Errors
    "LODError",
    "MissingInputError",
    "InvalidConfigurationError",
    # Statistics
    "LODStats",
    "format_bytes",
    # Scene I/O
    "load_primitives",
    "primitives_from_gsdata",
    "primitives_to_gsdata",
    "level_to_gsdata",
    "save_lod_levels",
    "write_lod_metadata",
    "LODFileInfo",
    "build_lod_pipeline",
    "LODPipelineResult",
    "save_opacity_pruned",
    "OpacityPrunedFile",
]
