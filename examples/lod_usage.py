"""
Example: building LOD levels for a Gaussian splat scene.

Demonstrates how to use gslod for:
- Building levels with the default configuration
- Fluent configuration and reproducible fine-tuning
- Per-level pruning statistics
- Exporting levels and metadata with gsply
"""

import logging
import tempfile
from pathlib import Path

import numpy as np

from gslod import (
    LODBuilder,
    LODConfig,
    PrimitiveSet,
    save_lod_levels,
    write_lod_metadata,
)

# Configure logging to see per-level statistics
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def generate_sample_scene(n: int = 20000) -> PrimitiveSet:
    """Generate a sample scene of n primitives around the origin."""
    rng = np.random.default_rng(42)

    centers = rng.standard_normal((n, 3)).astype(np.float32) * 4.0
    covariances = np.zeros((n, 6), dtype=np.float32)
    covariances[:, [0, 3, 5]] = rng.uniform(1e-4, 1e-2, (n, 3))
    colors = rng.integers(0, 256, (n, 4), dtype=np.uint8)

    # Opacity comes from the alpha channel
    return PrimitiveSet.from_arrays(centers, covariances, colors=colors)


def example_1_defaults():
    """Example 1: Default configuration."""
    print("\n" + "=" * 70)
    print("EXAMPLE 1: Default Configuration")
    print("=" * 70)

    base = generate_sample_scene()
    levels = LODBuilder().build(base, rng=np.random.default_rng(0))

    for level in levels:
        print(
            f"  d={level.distance:5.1f}: {level.final_count:6d} / {level.original_count} "
            f"primitives ({level.reduction_percent})"
        )


def example_2_fluent():
    """Example 2: Fluent configuration with concurrent levels."""
    print("\n" + "=" * 70)
    print("EXAMPLE 2: Fluent Configuration")
    print("=" * 70)

    base = generate_sample_scene()
    builder = (
        LODBuilder()
        .distances([2, 8, 32])
        .smoothing(1.5)
        .pruning_threshold(0.1)
        .fine_tune_steps(20)
        .workers(3)
    )

    for level in builder(base, rng=np.random.default_rng(1)):
        steps = " -> ".join(str(step.kept_count) for step in level.steps)
        print(f"  d={level.distance:5.1f}: {level.original_count} -> {steps}")
        if level.fallback_count:
            print(f"    fallback used in {level.fallback_count} step(s)")


def example_3_export():
    """Example 3: Export levels and metadata."""
    print("\n" + "=" * 70)
    print("EXAMPLE 3: Export")
    print("=" * 70)

    base = generate_sample_scene(5000)
    config = LODConfig(distances=(5, 10, 20))
    levels = LODBuilder(config).build(base, rng=np.random.default_rng(2))

    with tempfile.TemporaryDirectory() as tmp:
        output_base = Path(tmp) / "scene"
        files = save_lod_levels(output_base, levels)
        metadata = write_lod_metadata(output_base, files, config)

        for info in files:
            print(f"  {Path(info.path).name}: {info.splat_count} splats ({info.reduction})")
        print(f"  Total reduction: {metadata['statistics']['total_reduction']}")


if __name__ == "__main__":
    example_1_defaults()
    example_2_fluent()
    example_3_export()
