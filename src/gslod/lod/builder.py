"""
LODBuilder: level-of-detail construction for Gaussian Splatting.

For every configured viewing distance the builder runs

    copy base -> smoothing -> {score -> prune -> fine-tune} x 3

with the pruning threshold schedule ``[0.2 tau, 0.6 tau, tau]``, and emits one
LODLevel per distance in input order.

Key Features:
- Fluent, validated configuration consistent with the other gslod APIs
- Injectable random generator for reproducible fine-tuning
- Pluggable importance scorer (ImportanceScorer protocol)
- Optional concurrent level construction on a thread pool
"""

from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Any, Self

import numpy as np

from gslod.errors import MissingInputError
from gslod.lod.config import LODConfig
from gslod.lod.finetune import fine_tune
from gslod.lod.importance import OpacityDistanceScorer
from gslod.lod.pruning import PruneResult, prune
from gslod.lod.smoothing import apply_smoothing
from gslod.primitives import PrimitiveSet
from gslod.protocols import ImportanceScorer
from gslod.validators import validate_positive, validate_range, validate_type

logger = logging.getLogger(__name__)


@dataclass
class LODLevel:
    """
    One finished level of detail.

    Attributes:
        index: Position of the level in the configured distance list
        distance: Target viewing distance
        primitives: Reduced primitive set (treat as read-only)
        original_count: Primitive count of the base set
        steps: PruneResult of each threshold step, in schedule order
    """

    index: int
    distance: float
    primitives: PrimitiveSet
    original_count: int
    steps: list[PruneResult] = field(default_factory=list, repr=False)

    @property
    def final_count(self) -> int:
        return self.primitives.count

    @property
    def reduction_ratio(self) -> float:
        """Surviving fraction of the base set (final / original)."""
        return self.final_count / self.original_count

    @property
    def reduction_percent(self) -> str:
        """Surviving fraction formatted as a percentage, e.g. ``"12.5%"``."""
        return f"{self.reduction_ratio * 100:.1f}%"

    @property
    def fallback_count(self) -> int:
        """Number of threshold steps that needed the top-10% fallback."""
        return sum(1 for step in self.steps if step.fallback)

    def to_dict(self) -> dict[str, Any]:
        """Summary without the attribute arrays."""
        return {
            "index": self.index,
            "distance": self.distance,
            "original_count": self.original_count,
            "final_count": self.final_count,
            "reduction": self.reduction_percent,
            "fallback_steps": self.fallback_count,
            "step_counts": [step.kept_count for step in self.steps],
        }


class LODBuilder:
    """
    Builds distance-tuned LOD levels from a base PrimitiveSet.

    Supported Configuration:
    - distances: Viewing distances, one level each (ascending)
    - smoothing: Smoothing factor s
    - focal_length: Focal length f
    - pruning_threshold: Base pruning threshold tau
    - fine_tune_steps: Opacity fine-tuning steps T
    - diffusion_alpha: Opacity compensation alpha
    - validation_views: Views forwarded to the importance scorer
    - workers: Levels built concurrently
    - scorer: Replacement importance scorer

    Example:
        >>> builder = (LODBuilder()
        ...     .distances([5, 10, 20, 50])
        ...     .pruning_threshold(0.1)
        ...     .fine_tune_steps(50)
        ... )
        >>> levels = builder.build(base, rng=np.random.default_rng(0))
        >>> for level in levels:
        ...     print(level.distance, level.final_count, level.reduction_percent)
    """

    __slots__ = ("_config", "_scorer")

    def __init__(self, config: LODConfig | None = None, scorer: ImportanceScorer | None = None):
        """
        Initialize the builder.

        Args:
            config: LODConfig to start from (defaults if None)
            scorer: Importance scorer (opacity/distance proxy if None)
        """
        self._config = config if config is not None else LODConfig()
        self._scorer = None
        if scorer is not None:
            self.scorer(scorer)

        logger.info("[LODBuilder] Initialized with %d distances", len(self._config.distances))

    @property
    def config(self) -> LODConfig:
        return self._config

    # ------------------------------------------------------------------
    # Fluent configuration
    # ------------------------------------------------------------------

    def distances(self, values: Sequence[float]) -> Self:
        """
        Set the viewing distances (strictly ascending, one level each).

        Raises:
            InvalidConfigurationError: If empty or not strictly ascending
        """
        self._config = replace(self._config, distances=tuple(values))
        logger.debug("[LODBuilder] Distances set: %s", self._config.distances)
        return self

    @validate_positive("factor")
    def smoothing(self, factor: float) -> Self:
        """Set the smoothing factor s."""
        self._config = replace(self._config, smooth_factor=float(factor))
        return self

    @validate_positive("focal_length")
    def focal_length(self, focal_length: float) -> Self:
        """Set the focal length f (pixels)."""
        self._config = replace(self._config, focal_length=float(focal_length))
        return self

    @validate_range(0.0, math.inf, "threshold")
    def pruning_threshold(self, threshold: float) -> Self:
        """Set the base pruning threshold tau."""
        self._config = replace(self._config, pruning_threshold=float(threshold))
        return self

    @validate_type(numbers.Integral, "steps")
    @validate_positive("steps")
    def fine_tune_steps(self, steps: int) -> Self:
        """Set the number of fine-tuning steps T per pruning step."""
        self._config = replace(self._config, fine_tune_steps=int(steps))
        return self

    @validate_range(0.0, math.inf, "alpha")
    def diffusion_alpha(self, alpha: float) -> Self:
        """Set the opacity compensation alpha (0 disables it)."""
        self._config = replace(self._config, diffusion_alpha=float(alpha))
        return self

    @validate_type(numbers.Integral, "views")
    @validate_positive("views")
    def validation_views(self, views: int) -> Self:
        """Set the number of validation views passed to the scorer."""
        self._config = replace(self._config, validation_views=int(views))
        return self

    @validate_type(numbers.Integral, "workers")
    @validate_positive("workers")
    def workers(self, workers: int) -> Self:
        """Set how many levels may be built concurrently."""
        self._config = replace(self._config, max_workers=int(workers))
        return self

    def scorer(self, scorer: ImportanceScorer) -> Self:
        """
        Replace the importance scorer.

        Raises:
            TypeError: If scorer does not implement ImportanceScorer
        """
        if not isinstance(scorer, ImportanceScorer):
            raise TypeError(
                f"scorer must implement ImportanceScorer, got {type(scorer).__name__}"
            )
        self._scorer = scorer
        return self

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def build(
        self,
        base: PrimitiveSet | None,
        rng: np.random.Generator | None = None,
    ) -> list[LODLevel]:
        """
        Build one LOD level per configured distance.

        The base set is never modified. Each level gets its own child
        generator spawned from ``rng`` up front, so results do not depend on
        whether levels run sequentially or concurrently.

        Args:
            base: Base PrimitiveSet
            rng: Random generator for fine-tuning (unseeded if None)

        Returns:
            LODLevel list in the same order as the configured distances

        Raises:
            MissingInputError: If base is None or empty
        """
        if base is None:
            raise MissingInputError("No base primitive set provided")
        if base.is_empty():
            raise MissingInputError("Base primitive set is empty")

        config = self._config
        distances = config.distances
        if rng is None:
            rng = np.random.default_rng()
        level_rngs = rng.spawn(len(distances))

        concurrent = config.max_workers > 1 and len(distances) > 1

        logger.info(
            "[LODBuilder] Building %d LOD levels from %d primitives (%s)",
            len(distances),
            base.count,
            f"{min(config.max_workers, len(distances))} workers" if concurrent else "sequential",
        )

        if concurrent:
            scorer = self._scorer if self._scorer is not None else OpacityDistanceScorer(False)
            with ThreadPoolExecutor(max_workers=min(config.max_workers, len(distances))) as pool:
                futures = [
                    pool.submit(self._build_level, base, i, d, level_rngs[i], scorer, False)
                    for i, d in enumerate(distances)
                ]
                levels = [future.result() for future in futures]
        else:
            scorer = self._scorer if self._scorer is not None else OpacityDistanceScorer(True)
            levels = [
                self._build_level(base, i, d, level_rngs[i], scorer, True)
                for i, d in enumerate(distances)
            ]

        logger.info("[LODBuilder] LOD construction complete: %d levels", len(levels))
        return levels

    def __call__(
        self,
        base: PrimitiveSet | None,
        rng: np.random.Generator | None = None,
    ) -> list[LODLevel]:
        """Build levels (callable interface)."""
        return self.build(base, rng=rng)

    def _build_level(
        self,
        base: PrimitiveSet,
        index: int,
        distance: float,
        rng: np.random.Generator,
        scorer: ImportanceScorer,
        parallel: bool,
    ) -> LODLevel:
        config = self._config
        total = len(config.distances)
        logger.debug("[LODBuilder] Level %d/%d (distance %g)", index + 1, total, distance)

        working = base.copy()
        apply_smoothing(
            working,
            distance,
            config.smooth_factor,
            config.focal_length,
            config.diffusion_alpha,
            parallel=parallel,
        )

        steps: list[PruneResult] = []
        for tau in config.thresholds:
            scores = scorer(working, config.validation_views)
            result = prune(working, scores, tau, parallel=parallel)
            fine_tune(result.primitives, distance, config.fine_tune_steps, rng)
            working = result.primitives
            steps.append(result)

        level = LODLevel(
            index=index,
            distance=distance,
            primitives=working,
            original_count=base.count,
            steps=steps,
        )

        logger.info(
            "[LODBuilder] Level %d/%d complete (distance %g): %d primitives (%s of original)",
            index + 1,
            total,
            distance,
            level.final_count,
            level.reduction_percent,
        )
        return level

    def __repr__(self) -> str:
        return f"LODBuilder(config={self._config!r}, scorer={self._scorer!r})"


def build_lod_levels(
    base: PrimitiveSet | None,
    config: LODConfig | None = None,
    rng: np.random.Generator | None = None,
    scorer: ImportanceScorer | None = None,
) -> list[LODLevel]:
    """
    Build LOD levels in one call.

    Args:
        base: Base PrimitiveSet
        config: LODConfig (defaults if None)
        rng: Random generator for fine-tuning (unseeded if None)
        scorer: Importance scorer (opacity/distance proxy if None)

    Returns:
        LODLevel list, one per configured distance

    Example:
        >>> levels = build_lod_levels(base, LODConfig(distances=(5, 10)), rng=np.random.default_rng(0))
    """
    return LODBuilder(config, scorer=scorer).build(base, rng=rng)


__all__ = ["LODBuilder", "LODLevel", "build_lod_levels"]
