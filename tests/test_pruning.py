"""
Tests for importance-threshold and opacity-percentile pruning.
"""

import logging

import numpy as np
import pytest

from gslod import PrimitiveSet, PruneResult, compute_importance, prune, prune_by_opacity_fraction
from gslod.lod.pruning import (
    fallback_keep_count,
    lowest_opacity_removed,
    opacity_removal_count,
    select_indices,
)


def create_primitives(n: int, seed: int = 0) -> PrimitiveSet:
    """Primitives whose centers/opacities encode their original index."""
    rng = np.random.default_rng(seed)
    centers = np.zeros((n, 3), dtype=np.float32)
    centers[:, 0] = np.arange(n, dtype=np.float32)
    covariances = np.repeat(np.arange(n, dtype=np.float32)[:, None], 6, axis=1)
    return PrimitiveSet(
        centers=centers,
        covariances=covariances,
        opacities=rng.random(n, dtype=np.float32),
        colors=np.full((n, 4), 200, dtype=np.uint8),
    )


class TestSelectIndices:
    """Test index selection rules."""

    def test_inclusive_threshold(self):
        """Scores equal to tau are kept."""
        scores = np.array([0.1, 0.5, 0.5, 0.9], dtype=np.float32)

        indices, fallback = select_indices(scores, 0.5)

        assert not fallback
        np.testing.assert_array_equal(indices, [1, 2, 3])

    def test_preserves_original_order(self):
        """Regular selection keeps original relative order."""
        scores = np.array([0.9, 0.1, 0.7, 0.8], dtype=np.float32)

        indices, _ = select_indices(scores, 0.5)

        np.testing.assert_array_equal(indices, [0, 2, 3])

    def test_fallback_ranked_order(self):
        """Fallback keeps the top scores in descending-score order."""
        scores = np.linspace(0.0, 0.4, 20, dtype=np.float32)

        indices, fallback = select_indices(scores, 1.0)

        assert fallback
        np.testing.assert_array_equal(indices, [19, 18])

    def test_fallback_count(self):
        """max(1, floor(0.1 * count))."""
        assert fallback_keep_count(1) == 1
        assert fallback_keep_count(9) == 1
        assert fallback_keep_count(10) == 1
        assert fallback_keep_count(19) == 1
        assert fallback_keep_count(20) == 2
        assert fallback_keep_count(1000) == 100


class TestPrune:
    """Test prune() on primitive sets."""

    def test_reference_scenario(self):
        """1000 opaque primitives at the origin: tau=0.5 keeps all, tau=1.5 keeps 100."""
        n = 1000
        prims = PrimitiveSet(np.zeros((n, 3)), np.zeros((n, 6)), np.ones(n))
        scores = compute_importance(prims)

        kept = prune(prims, scores, 0.5)
        fallback = prune(prims, scores, 1.5)

        assert kept.kept_count == 1000
        assert not kept.fallback
        assert fallback.kept_count == 100
        assert fallback.fallback

    def test_returns_prune_result(self):
        """Result records counts, threshold and score statistics."""
        prims = create_primitives(10)
        scores = np.arange(10, dtype=np.float32) / 10.0

        result = prune(prims, scores, 0.45)

        assert isinstance(result, PruneResult)
        assert result.original_count == 10
        assert result.kept_count == 5
        assert result.kept_fraction == pytest.approx(0.5)
        assert result.threshold == pytest.approx(0.45)
        assert result.score_min == pytest.approx(0.0)
        assert result.score_max == pytest.approx(0.9)
        assert result.score_mean == pytest.approx(0.45)

    def test_rows_stay_aligned(self):
        """Kept rows carry their own center, covariance and opacity."""
        prims = create_primitives(50)
        scores = np.zeros(50, dtype=np.float32)
        scores[[3, 17, 42]] = 1.0

        result = prune(prims, scores, 0.5)
        out = result.primitives

        np.testing.assert_array_equal(out.centers[:, 0], [3, 17, 42])
        np.testing.assert_array_equal(out.covariances[:, 0], [3, 17, 42])
        np.testing.assert_array_equal(out.covariances[:, 5], [3, 17, 42])
        np.testing.assert_array_equal(out.opacities, prims.opacities[[3, 17, 42]])

    def test_index_alignment_invariant(self):
        """Output sizes are 3N / 6N / N."""
        prims = create_primitives(200, seed=3)
        result = prune(prims, compute_importance(prims), 0.3)
        out = result.primitives

        assert out.centers.size == 3 * out.count
        assert out.covariances.size == 6 * out.count
        assert out.opacities.size == out.count

    def test_colors_are_dropped(self):
        """Pruned sets carry no colors."""
        prims = create_primitives(10)

        result = prune(prims, np.ones(10, dtype=np.float32), 0.5)

        assert result.primitives.colors is None

    def test_input_not_mutated(self):
        """prune() never modifies its input."""
        prims = create_primitives(100)
        centers = prims.centers.copy()
        opacities = prims.opacities.copy()

        prune(prims, compute_importance(prims), 0.5)

        assert prims.count == 100
        np.testing.assert_array_equal(prims.centers, centers)
        np.testing.assert_array_equal(prims.opacities, opacities)

    def test_output_is_not_a_view(self):
        """Pruned arrays do not alias the input."""
        prims = create_primitives(10)

        result = prune(prims, np.ones(10, dtype=np.float32), 0.5)
        result.primitives.opacities[:] = 0.0

        assert prims.opacities.any()

    @pytest.mark.parametrize("tau", [0.0, 0.2, 0.5, 0.9, 2.0, 100.0])
    def test_count_bounds(self, tau):
        """1 <= final <= original for any threshold."""
        prims = create_primitives(333, seed=11)

        result = prune(prims, compute_importance(prims), tau)

        assert 1 <= result.kept_count <= 333

    def test_fallback_keeps_highest_scores(self):
        """All scores below tau: exactly floor(10%) highest-scoring survive."""
        n = 250
        prims = create_primitives(n, seed=5)
        rng = np.random.default_rng(5)
        scores = rng.random(n, dtype=np.float32) * 0.1

        result = prune(prims, scores, 0.5)

        expected = np.argsort(-scores, kind="stable")[:25]
        assert result.fallback
        assert result.kept_count == 25
        np.testing.assert_array_equal(result.primitives.centers[:, 0], expected)

    def test_fallback_single_primitive(self):
        """A single primitive is always kept."""
        prims = create_primitives(1)

        result = prune(prims, np.array([0.0], dtype=np.float32), 1.0)

        assert result.kept_count == 1
        assert result.fallback

    def test_fallback_logs_warning(self, caplog):
        """The fallback is observable as a WARNING log record."""
        prims = create_primitives(30)

        with caplog.at_level(logging.WARNING, logger="gslod.lod.pruning"):
            prune(prims, np.zeros(30, dtype=np.float32), 0.5)

        assert any("falling back" in record.message for record in caplog.records)

    def test_no_warning_without_fallback(self, caplog):
        """Regular pruning logs no warning."""
        prims = create_primitives(30)

        with caplog.at_level(logging.WARNING, logger="gslod.lod.pruning"):
            prune(prims, np.ones(30, dtype=np.float32), 0.5)

        assert not caplog.records

    def test_serial_matches_parallel(self):
        """The serial gather kernel matches the parallel one."""
        prims = create_primitives(500, seed=2)
        scores = compute_importance(prims)

        a = prune(prims, scores, 0.01, parallel=True).primitives
        b = prune(prims, scores, 0.01, parallel=False).primitives

        np.testing.assert_array_equal(a.centers, b.centers)
        np.testing.assert_array_equal(a.covariances, b.covariances)
        np.testing.assert_array_equal(a.opacities, b.opacities)

    def test_score_length_mismatch(self):
        """Scores must match the primitive count."""
        prims = create_primitives(10)

        with pytest.raises(ValueError, match="scores length"):
            prune(prims, np.ones(9, dtype=np.float32), 0.5)

    def test_empty_set_rejected(self):
        """Pruning an empty set is an error."""
        prims = PrimitiveSet(np.zeros((0, 3)), np.zeros((0, 6)), np.zeros(0))

        with pytest.raises(ValueError, match="empty"):
            prune(prims, np.zeros(0, dtype=np.float32), 0.5)


class TestPruneByOpacityFraction:
    """Test the opacity percentile cut."""

    @pytest.mark.parametrize("fraction", [0.1, 0.2, 0.3, 0.4, 0.5])
    def test_counts(self, fraction):
        prims = create_primitives(1000)

        pruned = prune_by_opacity_fraction(prims, fraction)

        assert pruned.count == 1000 - int(np.floor(1000 * fraction))

    def test_lowest_opacities_removed_first(self):
        prims = create_primitives(200, seed=3)

        pruned = prune_by_opacity_fraction(prims, 0.25)

        expected = np.sort(prims.opacities)[50:]
        np.testing.assert_array_equal(np.sort(pruned.opacities), expected)
        assert pruned.opacities.min() >= np.sort(prims.opacities)[49]

    def test_survivors_in_ascending_opacity_order(self):
        pruned = prune_by_opacity_fraction(create_primitives(100), 0.3)

        assert np.all(np.diff(pruned.opacities) >= 0.0)

    def test_rows_stay_aligned(self):
        """Centers encode the original index, so rows must move together."""
        prims = create_primitives(100)

        pruned = prune_by_opacity_fraction(prims, 0.4)

        original = pruned.centers[:, 0].astype(np.int64)
        np.testing.assert_array_equal(pruned.opacities, prims.opacities[original])
        np.testing.assert_array_equal(pruned.covariances[:, 0], original.astype(np.float32))
        assert pruned.colors is not None
        assert pruned.colors.shape == (60, 4)

    def test_input_not_mutated(self):
        prims = create_primitives(50)
        before = prims.copy()

        prune_by_opacity_fraction(prims, 0.5)

        np.testing.assert_array_equal(prims.opacities, before.opacities)
        np.testing.assert_array_equal(prims.centers, before.centers)

    def test_zero_fraction_keeps_everything(self):
        pruned = prune_by_opacity_fraction(create_primitives(30), 0.0)

        assert pruned.count == 30

    def test_serial_kernel_matches_parallel(self):
        prims = create_primitives(500, seed=9)

        serial = prune_by_opacity_fraction(prims, 0.2, parallel=False)
        parallel = prune_by_opacity_fraction(prims, 0.2, parallel=True)

        np.testing.assert_array_equal(serial.opacities, parallel.opacities)
        np.testing.assert_array_equal(serial.centers, parallel.centers)

    @pytest.mark.parametrize("fraction", [1.0, -0.1, 1.5])
    def test_invalid_fraction(self, fraction):
        with pytest.raises(ValueError, match="fraction"):
            prune_by_opacity_fraction(create_primitives(10), fraction)

    def test_empty_set_raises(self):
        prims = PrimitiveSet(np.zeros((0, 3)), np.zeros((0, 6)), np.zeros(0))

        with pytest.raises(ValueError, match="empty"):
            prune_by_opacity_fraction(prims, 0.1)


class TestOpacityRemovalHelpers:
    """Test the integer removal count and survivor ordering."""

    @pytest.mark.parametrize(
        ("count", "percentage", "expected"),
        [(1000, 30, 300), (7, 50, 3), (9, 10, 0), (0, 40, 0)],
    )
    def test_removal_count(self, count, percentage, expected):
        assert opacity_removal_count(count, percentage) == expected

    def test_ties_broken_by_index(self):
        opacities = np.array([0.5, 0.1, 0.5, 0.1, 0.9], dtype=np.float32)

        keep = lowest_opacity_removed(opacities, 2)

        np.testing.assert_array_equal(keep, [0, 2, 4])
        assert keep.dtype == np.int64
