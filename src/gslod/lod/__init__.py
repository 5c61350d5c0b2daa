"""
Level-of-detail construction for Gaussian splats.

Reduces a base primitive set into progressively coarser levels, one per
viewing distance, via smoothing, importance pruning and opacity fine-tuning.

Features:
- Distance-dependent smoothing (covariance blur + opacity compensation)
- Opacity/distance importance scoring (pluggable via ImportanceScorer)
- Inclusive-threshold pruning with a top-10% fallback
- Seedable closed-form opacity fine-tuning
- Numba kernels, parallel per primitive and optionally per level

Example:
    >>> from gslod.lod import LODBuilder, LODConfig
    >>>
    >>> levels = LODBuilder(LODConfig(distances=(5, 10, 20))).build(base)
    >>> [level.final_count for level in levels]
"""

from gslod.lod.builder import LODBuilder, LODLevel, build_lod_levels
from gslod.lod.config import UI_RANGES, LODConfig
from gslod.lod.finetune import fine_tune
from gslod.lod.importance import OpacityDistanceScorer, compute_importance
from gslod.lod.pruning import PruneResult, prune, prune_by_opacity_fraction
from gslod.lod.smoothing import apply_smoothing

__all__ = [
    # Builder
    "LODBuilder",
    "LODLevel",
    "build_lod_levels",
    # Configuration
    "LODConfig",
    "UI_RANGES",
    # Components
    "apply_smoothing",
    "compute_importance",
    "OpacityDistanceScorer",
    "prune",
    "PruneResult",
    "prune_by_opacity_fraction",
    "fine_tune",
]
