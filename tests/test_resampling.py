"""Tests for seeded streams, bootstrap indices and noise strategies."""

import numpy as np
import pytest

from rank_bootstrap._strategies import NoiseStrategy, resolve_noise
from rank_bootstrap._strategies.parametric import ParametricNoise
from rank_bootstrap._strategies.resampled import ResampledNoise
from rank_bootstrap.resampling import (
    bootstrap_indices,
    make_seed_sequence,
    spawn_generators,
)


class TestSeedSequence:
    def test_int_seed_reproducible(self):
        a = make_seed_sequence(7).generate_state(4)
        b = make_seed_sequence(7).generate_state(4)
        np.testing.assert_array_equal(a, b)

    def test_seed_sequence_passthrough(self):
        ss = np.random.SeedSequence(3)
        assert make_seed_sequence(ss) is ss

    def test_generator_accepted(self):
        ss = make_seed_sequence(np.random.default_rng(0))
        assert isinstance(ss, np.random.SeedSequence)

    def test_none_gives_fresh_entropy(self):
        assert isinstance(make_seed_sequence(None), np.random.SeedSequence)

    def test_negative_seed_rejected(self):
        with pytest.raises(ValueError):
            make_seed_sequence(-1)

    def test_bad_type_rejected(self):
        with pytest.raises(TypeError):
            make_seed_sequence("42")


class TestSpawnGenerators:
    def test_same_seed_same_streams(self):
        g1 = spawn_generators(11, 3)
        g2 = spawn_generators(11, 3)
        for a, b in zip(g1, g2):
            np.testing.assert_array_equal(a.random(5), b.random(5))

    def test_children_differ(self):
        g = spawn_generators(11, 2)
        assert not np.array_equal(g[0].random(5), g[1].random(5))

    def test_prefix_stable_when_more_spawned(self):
        short = spawn_generators(5, 2)
        long = spawn_generators(5, 4)
        np.testing.assert_array_equal(short[1].random(3), long[1].random(3))


class TestBootstrapIndices:
    def test_shape_and_range(self):
        idx = bootstrap_indices(10, 50, np.random.default_rng(0))
        assert idx.shape == (50, 10)
        assert idx.min() >= 0 and idx.max() <= 9

    def test_draws_with_replacement(self):
        idx = bootstrap_indices(20, 100, np.random.default_rng(0))
        # At least one row repeats an index
        assert any(len(np.unique(row)) < 20 for row in idx)

    @pytest.mark.parametrize("n, b", [(0, 5), (5, 0)])
    def test_non_positive_sizes(self, n, b):
        with pytest.raises(ValueError, match="must be positive"):
            bootstrap_indices(n, b, np.random.default_rng(0))


class TestResampledNoise:
    def test_values_come_from_residuals(self):
        resid = np.array([-2.0, -0.5, 0.0, 1.5, 3.0])
        noise = ResampledNoise().draw(resid, 40, np.random.default_rng(1))
        assert noise.shape == (40, 5)
        assert np.isin(noise, resid).all()

    def test_reproducible(self):
        resid = np.arange(8, dtype=float)
        a = ResampledNoise().draw(resid, 10, np.random.default_rng(3))
        b = ResampledNoise().draw(resid, 10, np.random.default_rng(3))
        np.testing.assert_array_equal(a, b)


class TestParametricNoise:
    def test_scale_matches_residual_sd(self):
        rng = np.random.default_rng(0)
        resid = rng.standard_normal(50) * 3.0
        noise = ParametricNoise().draw(resid, 2_000, np.random.default_rng(1))
        assert noise.shape == (2_000, 50)
        assert noise.std() == pytest.approx(np.std(resid, ddof=1), rel=0.05)
        assert abs(noise.mean()) < 0.05

    def test_non_positive_replicates(self):
        with pytest.raises(ValueError):
            ParametricNoise().draw(np.ones(5), 0, np.random.default_rng(0))


class TestResolveNoise:
    @pytest.mark.parametrize(
        "name, cls", [("resampled", ResampledNoise), ("parametric", ParametricNoise)]
    )
    def test_known_modes(self, name, cls):
        strategy = resolve_noise(name)
        assert isinstance(strategy, cls)
        assert isinstance(strategy, NoiseStrategy)
        assert strategy.name == name

    def test_unknown_mode_lists_choices(self):
        with pytest.raises(ValueError, match="parametric, resampled"):
            resolve_noise("wild")

    def test_non_string_rejected(self):
        with pytest.raises(ValueError):
            resolve_noise(None)
