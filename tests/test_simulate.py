"""Tests for trends_ar.simulate — trajectory generation, replication, forecasts."""

import numpy as np
import pytest

from trends_ar.sampling import ARDraws
from trends_ar.simulate import (
    divergence_flags,
    forecast,
    forecast_in_sampler,
    generate_trajectories,
    is_explosive,
    one_step_residuals,
    replicate_in_sample,
    summarize_steps,
)


def _constant_draws(intercept, coefs, sigma, n=200):
    coefs = np.asarray(coefs, dtype=float)
    return ARDraws(
        intercept=np.full(n, intercept),
        coefs=np.tile(coefs, (n, 1)),
        sigma=np.full(n, sigma),
    )


def _posterior_like_draws(n=2000, seed=0):
    """Draws scattered around AR(2) values, as a posterior would be."""
    rng = np.random.default_rng(seed)
    return ARDraws(
        intercept=0.2 + 0.05 * rng.standard_normal(n),
        coefs=np.column_stack([
            0.5 + 0.03 * rng.standard_normal(n),
            0.3 + 0.03 * rng.standard_normal(n),
        ]),
        sigma=1.0 + 0.05 * np.abs(rng.standard_normal(n)),
    )


class TestGenerateTrajectories:
    """Tests for generate_trajectories."""

    def test_ar1_first_generated_value(self):
        """With p = 1 the first generated point is c + phi * y1 + sigma * eps."""
        draws = _constant_draws(0.5, [0.6], 1.3, n=50)
        paths = generate_trajectories(np.array([2.0]), 5, draws, np.random.default_rng(9))

        eps = np.random.default_rng(9).standard_normal((50, 5))
        np.testing.assert_allclose(paths[:, 1], 0.5 + 0.6 * 2.0 + 1.3 * eps[:, 0])

    def test_lag_ordering(self):
        """coefs[0] multiplies the most recent value, coefs[1] the one before."""
        draws = _constant_draws(1.0, [0.5, 0.25], 0.0, n=3)
        paths = generate_trajectories(np.array([4.0, 8.0]), 2, draws, np.random.default_rng(0))
        # 1 + 0.5 * 8 + 0.25 * 4 = 6; then 1 + 0.5 * 6 + 0.25 * 8 = 6
        np.testing.assert_allclose(paths, [[4.0, 8.0, 6.0, 6.0]] * 3)

    def test_seed_columns_preserved(self):
        draws = _posterior_like_draws(100)
        seeds = np.array([0.7, -0.2])
        paths = generate_trajectories(seeds, 10, draws, np.random.default_rng(1))
        assert paths.shape == (100, 12)
        np.testing.assert_array_equal(paths[:, :2], np.tile(seeds, (100, 1)))

    def test_seeded_reproducibility(self):
        draws = _posterior_like_draws(100)
        a = generate_trajectories(np.zeros(2), 20, draws, np.random.default_rng(42))
        b = generate_trajectories(np.zeros(2), 20, draws, np.random.default_rng(42))
        c = generate_trajectories(np.zeros(2), 20, draws, np.random.default_rng(43))
        np.testing.assert_array_equal(a, b)
        assert not np.array_equal(a, c)

    def test_bad_seed_window(self):
        draws = _posterior_like_draws(10)
        with pytest.raises(ValueError, match='Seed window'):
            generate_trajectories(np.zeros(3), 5, draws, np.random.default_rng(0))

    def test_explosive_draws_do_not_raise(self):
        """Explosive coefficients overflow to non-finite values and are flagged."""
        draws = _constant_draws(0.0, [1.5], 1.0, n=20)
        paths = generate_trajectories(np.array([1.0]), 2000, draws, np.random.default_rng(0))
        flags = divergence_flags(paths)
        assert flags.all()
        assert not np.isfinite(paths[:, -1]).any()


class TestExplosive:
    """Tests for is_explosive and divergence_flags."""

    def test_stationary_and_explosive_coefficients(self):
        coefs = np.array([[0.5, 0.3], [0.5, 0.6], [1.2, 0.0], [-0.4, 0.2]])
        np.testing.assert_array_equal(is_explosive(coefs), [False, True, True, False])

    def test_single_lag_vector(self):
        np.testing.assert_array_equal(is_explosive(np.array([0.9, -1.1])), [False, True])

    def test_divergence_bound(self):
        paths = np.array([[0.0, 1.0], [0.0, 1e7], [np.nan, 0.0]])
        np.testing.assert_array_equal(divergence_flags(paths), [False, True, True])


class TestSubsample:
    """Tests for ARDraws.subsample."""

    def test_without_replacement(self):
        draws = ARDraws(np.arange(500.0), np.zeros((500, 1)), np.ones(500))
        sub = draws.subsample(100, np.random.default_rng(0))
        assert len(sub) == 100
        assert np.unique(sub.intercept).size == 100

    def test_all_draws_when_n_is_none_or_large(self):
        draws = _posterior_like_draws(50)
        rng = np.random.default_rng(0)
        assert draws.subsample(None, rng) is draws
        assert draws.subsample(500, rng) is draws

    def test_misaligned_draws(self):
        with pytest.raises(ValueError, match='misaligned'):
            ARDraws(np.zeros(5), np.zeros((4, 1)), np.ones(5))


class TestReplication:
    """Tests for replicate_in_sample and one_step_residuals."""

    def test_replication_shapes(self, ar2_series):
        draws = _posterior_like_draws(300)
        rep = replicate_in_sample(ar2_series, draws, np.random.default_rng(0))
        T = ar2_series.size
        assert rep.paths.shape == (300, T)
        assert rep.residuals.shape == (300, T)
        np.testing.assert_array_equal(rep.paths[:, :2], np.tile(ar2_series[:2], (300, 1)))
        np.testing.assert_allclose(rep.residuals[:, :2], 0.0)
        assert not rep.divergent.any()
        assert np.all(rep.lower <= rep.upper)

    def test_one_step_residuals_recover_innovations(self):
        """At the true parameters the residuals are the innovations / sigma."""
        rng = np.random.default_rng(6)
        eps = rng.standard_normal(100)
        y = np.empty(100)
        y[:2] = [0.1, -0.3]
        for t in range(2, 100):
            y[t] = 0.2 + 0.5 * y[t - 1] + 0.3 * y[t - 2] + 2.0 * eps[t]
        resid = one_step_residuals(y, _constant_draws(0.2, [0.5, 0.3], 2.0, n=10))
        np.testing.assert_allclose(resid, eps[2:])


class TestForecast:
    """Tests for forecast and summarize_steps."""

    def test_seeded_from_last_observations(self, ar2_series):
        draws = _constant_draws(0.2, [0.5, 0.3], 0.0, n=10)
        fc = forecast(ar2_series, draws, 3, np.random.default_rng(0))
        np.testing.assert_array_equal(fc.seeds, ar2_series[-2:])
        expected = 0.2 + 0.5 * ar2_series[-1] + 0.3 * ar2_series[-2]
        np.testing.assert_allclose(fc.paths[:, 0], expected)
        assert fc.start == ar2_series.size
        assert fc.horizon == 3

    def test_step_one_mean_inside_interval(self, ar2_series):
        fc = forecast(ar2_series, _posterior_like_draws(), 12, np.random.default_rng(1))
        step = fc.steps[0]
        assert step['ci_low'] < step['mean'] < step['ci_high']
        assert step['hpd_low'] < step['mean'] < step['hpd_high']

    def test_intervals_widen_with_horizon(self, ar2_series):
        fc = forecast(ar2_series, _posterior_like_draws(), 12, np.random.default_rng(2))
        first = fc.steps[0]['ci_high'] - fc.steps[0]['ci_low']
        last = fc.steps[-1]['ci_high'] - fc.steps[-1]['ci_low']
        assert last > first

    def test_subsampled_draw_count(self, ar2_series):
        fc = forecast(ar2_series, _posterior_like_draws(), 4, np.random.default_rng(3), n_draws=250)
        assert fc.n_draws == 250
        assert fc.explosive.shape == (250,)

    def test_reproducible(self, ar2_series):
        draws = _posterior_like_draws()
        a = forecast(ar2_series, draws, 6, np.random.default_rng(7), n_draws=500)
        b = forecast(ar2_series, draws, 6, np.random.default_rng(7), n_draws=500)
        np.testing.assert_array_equal(a.paths, b.paths)

    def test_missing_seed_rejected(self, ar2_series):
        y = ar2_series.copy()
        y[-1] = np.nan
        with pytest.raises(ValueError, match='finite'):
            forecast(y, _posterior_like_draws(20), 3, np.random.default_rng(0))

    def test_non_finite_steps_excluded(self):
        paths = np.array([[1.0, np.inf], [2.0, np.nan], [3.0, np.nan]])
        steps = summarize_steps(paths)
        assert steps[0]['mean'] == pytest.approx(2.0)
        assert steps[0]['n_nonfinite'] == 0
        assert steps[1]['n_nonfinite'] == 3
        assert np.isnan(steps[1]['mean'])


class TestForecastInSampler:
    """Argument checks of forecast_in_sampler that run before sampling."""

    @pytest.mark.parametrize('horizon', [0, -2])
    def test_non_positive_horizon_rejected(self, ar2_series, horizon):
        with pytest.raises(ValueError, match='horizon'):
            forecast_in_sampler(ar2_series, 2, horizon=horizon)
