"""Tests for trends_ar.compare — deviance and DIC."""

import arviz as az
import numpy as np
import pytest

from trends_ar.compare import (
    DevianceUnavailableError,
    ar_deviance,
    compare_loo,
    compare_models,
    compute_dic,
    dic_from_deviance,
)
from trends_ar.sampling import ARFit

LOG_2PI = np.log(2 * np.pi)


def _fake_fit(series, order, deviance, intercept=0.0, coef=0.5, sigma=1.0, first_target=3):
    """ARFit backed by a hand-built posterior (no sampling)."""
    rng = np.random.default_rng(order)
    shape = (2, 50)
    idata = az.from_dict(
        posterior={
            'intercept': intercept + 0.01 * rng.standard_normal(shape),
            'phi': np.full(shape + (order,), coef / order),
            'sigma': sigma + 0.01 * np.abs(rng.standard_normal(shape)),
        },
        coords={'lag': np.arange(1, order + 1)},
        dims={'phi': ['lag']},
    )
    return ARFit(
        series=series,
        order=order,
        first_target=first_target,
        idata=idata,
        deviance=deviance,
    )


class TestARDeviance:
    """Tests for ar_deviance."""

    def test_hand_computed(self):
        y = np.array([1.0, 2.0, 3.0, 5.0])
        # means 1.5, 2.5, 3.5 -> residuals 0.5, 0.5, 1.5
        d = ar_deviance(y, 1, intercept=0.5, coefs=[1.0], sigma=1.0)
        assert d == pytest.approx(3 * LOG_2PI + 2.75)

    def test_first_target_drops_early_terms(self):
        y = np.array([1.0, 2.0, 3.0, 5.0])
        d = ar_deviance(y, 1, intercept=0.5, coefs=[1.0], sigma=1.0, first_target=2)
        assert d == pytest.approx(2 * LOG_2PI + 2.5)

    def test_sigma_scaling(self):
        y = np.array([0.0, 2.0])
        # one residual of 2 with sigma 2: -2 log N(2 | 0, 2) = log(2 pi) + 2 log 2 + 1
        d = ar_deviance(y, 1, intercept=0.0, coefs=[0.0], sigma=2.0)
        assert d == pytest.approx(LOG_2PI + 2 * np.log(2.0) + 1.0)

    def test_missing_targets_skipped(self):
        y = np.array([1.0, 2.0, np.nan, 5.0, 6.0])
        d = ar_deviance(y, 1, intercept=0.0, coefs=[1.0], sigma=1.0)
        # usable pairs: (1 -> 2) residual 1, (5 -> 6) residual 1
        assert d == pytest.approx(2 * LOG_2PI + 2.0)

    def test_wrong_coefficient_count(self):
        with pytest.raises(ValueError, match='coefficients'):
            ar_deviance(np.arange(5.0), 2, 0.0, [0.5], 1.0)


class TestDIC:
    """Tests for dic_from_deviance and compute_dic."""

    def test_dic_with_point_deviance(self):
        d = np.array([10.0, 12.0, 14.0, 16.0])
        out = dic_from_deviance(d, point_deviance=12.0)
        p_d = np.var(d, ddof=1) / 2
        assert out['mean_deviance'] == pytest.approx(13.0)
        assert out['p_d'] == pytest.approx(p_d)
        assert out['dic'] == pytest.approx(12.0 + 2 * p_d)

    def test_dic_without_point_deviance(self):
        d = np.array([10.0, 12.0, 14.0, 16.0])
        out = dic_from_deviance(d)
        p_d = np.var(d, ddof=1) / 2
        assert out['dic'] == pytest.approx(13.0 + p_d)

    def test_missing_deviance_raises(self):
        with pytest.raises(DevianceUnavailableError):
            dic_from_deviance(None)

    def test_fit_without_deviance_raises(self):
        fit = ARFit(series=np.zeros(10), order=1, first_target=1, idata=None, deviance=None)
        with pytest.raises(DevianceUnavailableError, match='AR\\(1\\)'):
            compute_dic(fit)

    def test_error_is_runtime_error(self):
        assert issubclass(DevianceUnavailableError, RuntimeError)

    def test_too_few_draws(self):
        with pytest.raises(ValueError, match='two deviance draws'):
            dic_from_deviance(np.array([3.0]))

    def test_compute_dic_uses_posterior_mean(self):
        y = np.random.default_rng(0).standard_normal(40)
        deviance = np.random.default_rng(1).normal(100.0, 2.0, size=(2, 50))
        fit = _fake_fit(y, 1, deviance, first_target=1)
        c, phi, sigma = fit.draws().posterior_mean()
        out = compute_dic(fit)
        assert out['point_deviance'] == pytest.approx(ar_deviance(y, 1, c, phi, sigma, 1))
        assert out['dic'] == pytest.approx(out['point_deviance'] + 2 * out['p_d'])

    def test_interior_missing_values_raise(self):
        y = np.random.default_rng(4).standard_normal(40)
        y[20] = np.nan
        deviance = np.random.default_rng(5).normal(100.0, 2.0, size=(2, 50))
        with pytest.raises(DevianceUnavailableError, match='missing values'):
            compute_dic(_fake_fit(y, 1, deviance, first_target=1))

    def test_trailing_missing_values_allowed(self):
        """Appended forecast NaNs after the last observation do not block DIC."""
        y = np.random.default_rng(6).standard_normal(40)
        extended = np.concatenate([y, np.full(3, np.nan)])
        deviance = np.random.default_rng(7).normal(100.0, 2.0, size=(2, 50))
        fit = _fake_fit(extended, 1, deviance, first_target=1)
        c, phi, sigma = fit.draws().posterior_mean()
        out = compute_dic(fit)
        assert out['point_deviance'] == pytest.approx(ar_deviance(y, 1, c, phi, sigma, 1))


class TestCompareModels:
    """Tests for compare_models."""

    def test_sorted_best_first(self):
        y = np.random.default_rng(2).standard_normal(60)
        rng = np.random.default_rng(3)
        fits = [
            _fake_fit(y, 3, rng.normal(150.0, 2.0, size=(2, 50))),
            _fake_fit(y, 1, rng.normal(150.0, 2.0, size=(2, 50))),
        ]
        rows = compare_models(fits)
        assert [r['dic'] for r in rows] == sorted(r['dic'] for r in rows)
        assert rows[0]['delta_dic'] == 0.0
        assert all(r['delta_dic'] >= 0 for r in rows)
        assert {r['model'] for r in rows} == {'AR(1)', 'AR(3)'}


class TestCompareLOO:
    """Tests for compare_loo."""

    def _loo_fit(self, order, scale):
        rng = np.random.default_rng(10 + order)
        fit = _fake_fit(np.zeros(40), order, deviance=None)
        ll = -0.5 * (scale * rng.standard_normal((2, 50, 40))) ** 2 - 1.0
        fit.idata.add_groups(log_likelihood={'y_obs': ll})
        return fit

    def test_ranks_models(self):
        table = compare_loo([self._loo_fit(1, 1.0), self._loo_fit(2, 2.0)])
        assert list(table.index) == ['AR(1)', 'AR(2)']

    def test_requires_log_likelihood(self):
        fit = _fake_fit(np.zeros(40), 1, deviance=None)
        with pytest.raises(DevianceUnavailableError, match='log-likelihood'):
            compare_loo([fit])
