"""
Benchmark LOD construction performance.

Times the per-primitive kernels and full level construction at various scales.
"""

import logging
import time

import numpy as np

from gslod import LODBuilder, PrimitiveSet, apply_smoothing, compute_importance, prune

# Suppress logging for cleaner output
logging.getLogger("gslod").setLevel(logging.WARNING)


def generate_scene(n: int) -> PrimitiveSet:
    """Generate a sample scene."""
    rng = np.random.default_rng(42)

    covariances = np.zeros((n, 6), dtype=np.float32)
    covariances[:, [0, 3, 5]] = rng.uniform(1e-4, 1e-2, (n, 3))

    return PrimitiveSet(
        centers=rng.standard_normal((n, 3)).astype(np.float32) * 4.0,
        covariances=covariances,
        opacities=rng.random(n, dtype=np.float32),
    )


def time_ms(func, iterations: int) -> tuple[float, float]:
    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        func()
        times.append((time.perf_counter() - start) * 1000)
    return float(np.mean(times)), float(np.std(times))


def benchmark_kernels(n: int = 1_000_000, iterations: int = 50):
    """Benchmark smoothing, scoring and pruning kernels."""
    print("\n" + "=" * 80)
    print(f"KERNELS ({n:,} primitives, {iterations} iterations)")
    print("=" * 80)

    base = generate_scene(n)
    scores = compute_importance(base)

    cases = {
        "smoothing": lambda: apply_smoothing(base.copy(), 10.0),
        "importance": lambda: compute_importance(base),
        "prune": lambda: prune(base, scores, 0.1),
    }

    for name, func in cases.items():
        func()  # Warmup
        avg_time, std_time = time_ms(func, iterations)
        print(f"{name:12s} {avg_time:8.3f} ms +/- {std_time:.3f} ms")


def benchmark_build(n: int = 500_000, iterations: int = 5):
    """Benchmark full LOD construction, sequential vs concurrent levels."""
    print("\n" + "=" * 80)
    print(f"LOD BUILD ({n:,} primitives, {iterations} iterations)")
    print("=" * 80)

    base = generate_scene(n)

    for workers in (1, 4):
        builder = LODBuilder().workers(workers)
        builder(base, rng=np.random.default_rng(0))  # Warmup

        avg_time, std_time = time_ms(
            lambda: builder(base, rng=np.random.default_rng(0)), iterations
        )
        print(f"workers={workers}: {avg_time:8.1f} ms +/- {std_time:.1f} ms")


if __name__ == "__main__":
    benchmark_kernels()
    benchmark_build()
