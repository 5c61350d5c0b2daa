"""
Tests for LODBuilder and LOD level construction.
"""

import logging

import numpy as np
import pytest

from gslod import (
    InvalidConfigurationError,
    LODBuilder,
    LODConfig,
    LODLevel,
    MissingInputError,
    PrimitiveSet,
    build_lod_levels,
)


def create_scene(n: int = 1000, seed: int = 42) -> PrimitiveSet:
    """Random scene clustered around the origin."""
    rng = np.random.default_rng(seed)
    covariances = np.zeros((n, 6), dtype=np.float32)
    covariances[:, [0, 3, 5]] = rng.uniform(0.001, 0.01, (n, 3))
    colors = rng.integers(0, 256, (n, 4), dtype=np.uint8)
    return PrimitiveSet(
        centers=rng.standard_normal((n, 3)) * 3.0,
        covariances=covariances,
        opacities=rng.uniform(0.2, 1.0, n),
        colors=colors,
    )


@pytest.fixture
def scene():
    return create_scene()


class RecordingScorer:
    """Constant scorer that remembers the requested view counts."""

    def __init__(self):
        self.views = []

    def __call__(self, primitives, num_views=0):
        self.views.append(num_views)
        return np.ones(primitives.count, dtype=np.float32)


class TestBuild:
    """Test LOD level construction."""

    def test_one_level_per_distance(self, scene):
        levels = LODBuilder().distances([5, 10, 20]).build(scene, np.random.default_rng(0))

        assert len(levels) == 3
        assert [level.distance for level in levels] == [5.0, 10.0, 20.0]
        assert [level.index for level in levels] == [0, 1, 2]
        assert all(isinstance(level, LODLevel) for level in levels)

    def test_count_bounds(self, scene):
        """1 <= final <= original, and counts never grow across steps."""
        levels = LODBuilder().build(scene, np.random.default_rng(0))

        for level in levels:
            assert level.original_count == scene.count
            assert 1 <= level.final_count <= scene.count
            counts = [scene.count] + [step.kept_count for step in level.steps]
            assert counts == sorted(counts, reverse=True)
            assert level.steps[-1].kept_count == level.final_count

    def test_three_step_schedule(self, scene):
        levels = LODBuilder().pruning_threshold(0.5).build(scene, np.random.default_rng(0))

        thresholds = [step.threshold for step in levels[0].steps]
        assert thresholds == pytest.approx([0.1, 0.3, 0.5])

    def test_index_alignment(self, scene):
        levels = LODBuilder().build(scene, np.random.default_rng(0))

        for level in levels:
            prims = level.primitives
            assert prims.centers.shape == (prims.count, 3)
            assert prims.covariances.shape == (prims.count, 6)
            assert prims.opacities.shape == (prims.count,)

    def test_base_not_mutated(self, scene):
        centers = scene.centers.copy()
        covariances = scene.covariances.copy()
        opacities = scene.opacities.copy()
        colors = scene.colors.copy()

        LODBuilder().build(scene, np.random.default_rng(0))

        np.testing.assert_array_equal(scene.centers, centers)
        np.testing.assert_array_equal(scene.covariances, covariances)
        np.testing.assert_array_equal(scene.opacities, opacities)
        np.testing.assert_array_equal(scene.colors, colors)

    def test_levels_do_not_share_arrays(self, scene):
        levels = LODBuilder().distances([1, 2]).pruning_threshold(0.0).build(scene)

        levels[0].primitives.opacities[:] = 0.0

        assert levels[1].primitives.opacities.any()
        assert scene.opacities.any()

    def test_zero_distance_zero_threshold_is_identity(self, scene):
        """d = 0 means no blur and unit fine-tune factors; tau = 0 keeps all."""
        levels = (
            LODBuilder().distances([0.0]).pruning_threshold(0.0).build(scene, np.random.default_rng(0))
        )
        level = levels[0]

        assert level.final_count == scene.count
        np.testing.assert_array_equal(level.primitives.centers, scene.centers)
        np.testing.assert_array_equal(level.primitives.covariances, scene.covariances)
        np.testing.assert_array_equal(level.primitives.opacities, scene.opacities)

    def test_colors_dropped(self, scene):
        levels = LODBuilder().distances([5]).build(scene, np.random.default_rng(0))

        assert levels[0].primitives.colors is None

    def test_fallback_every_step(self):
        """Thresholds above every score cascade through the top-10% fallback."""
        scene = create_scene(1000)

        levels = LODBuilder().distances([5]).pruning_threshold(5.0).build(scene)
        level = levels[0]

        assert [step.kept_count for step in level.steps] == [100, 10, 1]
        assert level.fallback_count == 3
        assert level.final_count == 1

    def test_single_primitive(self):
        prims = PrimitiveSet(np.zeros((1, 3)), np.zeros((1, 6)), np.ones(1) * 0.001)

        levels = LODBuilder().build(prims, np.random.default_rng(0))

        assert all(level.final_count == 1 for level in levels)

    def test_seeded_determinism(self, scene):
        a = LODBuilder().build(scene, np.random.default_rng(7))
        b = LODBuilder().build(scene, np.random.default_rng(7))

        for la, lb in zip(a, b):
            assert la.final_count == lb.final_count
            np.testing.assert_array_equal(la.primitives.opacities, lb.primitives.opacities)
            np.testing.assert_array_equal(la.primitives.centers, lb.primitives.centers)

    def test_workers_match_sequential(self, scene):
        """Concurrent level construction gives the sequential result."""
        sequential = LODBuilder().build(scene, np.random.default_rng(11))
        concurrent = LODBuilder().workers(4).build(scene, np.random.default_rng(11))

        assert [level.distance for level in concurrent] == [5.0, 10.0, 20.0, 50.0]
        for ls, lc in zip(sequential, concurrent):
            assert ls.final_count == lc.final_count
            np.testing.assert_array_equal(ls.primitives.centers, lc.primitives.centers)
            np.testing.assert_array_equal(ls.primitives.covariances, lc.primitives.covariances)
            np.testing.assert_array_equal(ls.primitives.opacities, lc.primitives.opacities)

    def test_custom_scorer(self, scene):
        scorer = RecordingScorer()

        levels = LODBuilder(scorer=scorer).distances([5, 10]).validation_views(3).build(scene)

        assert scorer.views == [3] * 6
        assert all(level.final_count == scene.count for level in levels)

    def test_callable_interface(self, scene):
        builder = LODBuilder().distances([5])

        levels = builder(scene, rng=np.random.default_rng(0))

        assert len(levels) == 1

    def test_build_lod_levels(self, scene):
        levels = build_lod_levels(
            scene, LODConfig(distances=(5, 10)), rng=np.random.default_rng(0)
        )

        assert [level.distance for level in levels] == [5.0, 10.0]

    def test_logs_level_completion(self, scene, caplog):
        with caplog.at_level(logging.INFO, logger="gslod.lod.builder"):
            LODBuilder().distances([5, 10]).build(scene, np.random.default_rng(0))

        messages = [record.message for record in caplog.records]
        assert any("Level 1/2 complete" in m for m in messages)
        assert any("Level 2/2 complete" in m for m in messages)


class TestMissingInput:
    """Test rejected inputs."""

    def test_none_base(self):
        with pytest.raises(MissingInputError, match="No base"):
            LODBuilder().build(None)

    def test_empty_base(self):
        empty = PrimitiveSet(np.zeros((0, 3)), np.zeros((0, 6)), np.zeros(0))

        with pytest.raises(MissingInputError, match="empty"):
            LODBuilder().build(empty)


class TestFluentConfiguration:
    """Test fluent setters and their validation."""

    def test_chaining_updates_config(self):
        builder = (
            LODBuilder()
            .distances([1, 2])
            .smoothing(2.0)
            .focal_length(500)
            .pruning_threshold(0.1)
            .fine_tune_steps(10)
            .diffusion_alpha(0.0)
            .validation_views(4)
            .workers(2)
        )
        config = builder.config

        assert config.distances == (1.0, 2.0)
        assert config.smooth_factor == 2.0
        assert config.focal_length == 500.0
        assert config.pruning_threshold == 0.1
        assert config.fine_tune_steps == 10
        assert config.diffusion_alpha == 0.0
        assert config.validation_views == 4
        assert config.max_workers == 2

    def test_invalid_distances(self):
        with pytest.raises(InvalidConfigurationError):
            LODBuilder().distances([10, 5])

    def test_invalid_distances_keep_previous_config(self):
        builder = LODBuilder().distances([1, 2])

        with pytest.raises(InvalidConfigurationError):
            builder.distances([])

        assert builder.config.distances == (1.0, 2.0)

    @pytest.mark.parametrize(
        "setter,value",
        [
            ("smoothing", 0.0),
            ("smoothing", float("nan")),
            ("focal_length", -1.0),
            ("focal_length", float("nan")),
            ("focal_length", float("inf")),
            ("pruning_threshold", -0.5),
            ("pruning_threshold", float("nan")),
            ("fine_tune_steps", 0),
            ("diffusion_alpha", -0.1),
            ("diffusion_alpha", float("nan")),
            ("validation_views", 0),
            ("workers", 0),
        ],
    )
    def test_out_of_range(self, setter, value):
        builder = LODBuilder()
        before = builder.config

        with pytest.raises(InvalidConfigurationError):
            getattr(builder, setter)(value)

        assert builder.config == before

    @pytest.mark.parametrize("setter", ["fine_tune_steps", "validation_views", "workers"])
    def test_counts_require_int(self, setter):
        with pytest.raises(InvalidConfigurationError):
            getattr(LODBuilder(), setter)(2.5)

    @pytest.mark.parametrize("setter", ["fine_tune_steps", "validation_views", "workers"])
    def test_counts_accept_numpy_ints(self, setter):
        builder = getattr(LODBuilder(), setter)(np.int64(3))

        config = builder.config
        value = {
            "fine_tune_steps": config.fine_tune_steps,
            "validation_views": config.validation_views,
            "workers": config.max_workers,
        }[setter]
        assert value == 3
        assert type(value) is int

    def test_numpy_float_accepted(self):
        builder = LODBuilder().smoothing(np.float32(2.0)).focal_length(np.float64(500.0))

        assert builder.config.smooth_factor == 2.0
        assert builder.config.focal_length == 500.0

    def test_non_numeric(self):
        with pytest.raises(InvalidConfigurationError):
            LODBuilder().smoothing("1.0")

    def test_nan_config_rejected_before_build(self, scene):
        """A NaN focal length never reaches the kernels."""
        with pytest.raises(InvalidConfigurationError, match="focal_length"):
            LODBuilder(LODConfig(focal_length=float("nan"), distances=(5,))).build(scene)

    def test_scorer_must_be_callable(self):
        with pytest.raises(TypeError, match="ImportanceScorer"):
            LODBuilder().scorer(42)


class TestLODLevel:
    """Test LODLevel reporting."""

    def test_reduction(self):
        prims = PrimitiveSet(np.zeros((1, 3)), np.zeros((1, 6)), np.ones(1))
        level = LODLevel(index=0, distance=5.0, primitives=prims, original_count=8)

        assert level.final_count == 1
        assert level.reduction_ratio == pytest.approx(0.125)
        assert level.reduction_percent == "12.5%"
        assert level.fallback_count == 0

    def test_to_dict(self, scene):
        level = LODBuilder().distances([5]).build(scene, np.random.default_rng(0))[0]

        data = level.to_dict()

        assert data["index"] == 0
        assert data["distance"] == 5.0
        assert data["original_count"] == scene.count
        assert data["final_count"] == level.final_count
        assert data["reduction"] == level.reduction_percent
        assert len(data["step_counts"]) == 3
