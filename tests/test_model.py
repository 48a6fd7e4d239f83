"""Tests for trends_ar.model — AR(p) model structure (no sampling)."""

import numpy as np
import pytest

from trends_ar.compare import ar_deviance
from trends_ar.config import ARPriors
from trends_ar.model import build_ar_model, model_variables


class TestBuildModel:
    """Tests for build_ar_model."""

    @pytest.mark.parametrize('order', [1, 2, 3])
    def test_free_variables(self, ar2_series, order):
        model = build_ar_model(ar2_series, order)
        assert {rv.name for rv in model.free_RVs} == {'intercept', 'phi', 'sigma'}
        assert [rv.name for rv in model.observed_RVs] == ['y_obs']
        assert list(model.coords['lag']) == list(range(1, order + 1))
        assert 'precision' in model.named_vars

    def test_observed_targets(self, ar2_series):
        """Targets start at first_target; earlier values only condition."""
        model = build_ar_model(ar2_series, 2, first_target=3)
        observed = model.rvs_to_values[model['y_obs']].eval()
        np.testing.assert_array_equal(observed, ar2_series[3:])

    def test_likelihood_matches_deviance(self, ar1_series):
        """log p(y_obs | θ) equals -D(θ)/2 at a fixed parameter value."""
        model = build_ar_model(ar1_series, 1)
        logp = model.compile_logp(vars=[model['y_obs']])
        point = {
            'intercept': np.array(0.4),
            'phi': np.array([0.55]),
            # Uniform(0, 10) interval transform of sigma = 1.2
            'sigma_interval__': np.array(np.log(1.2 / (10.0 - 1.2))),
        }
        expected = -0.5 * ar_deviance(ar1_series, 1, 0.4, [0.55], 1.2)
        assert float(logp(point)) == pytest.approx(expected, rel=1e-6)

    def test_missing_values_become_latent(self, ar2_series):
        y = np.concatenate([ar2_series, np.full(4, np.nan)])
        y[100] = np.nan
        model = build_ar_model(y, 2)
        assert 'y_missing' in {rv.name for rv in model.free_RVs}
        assert list(model.coords['missing']) == [100] + list(range(300, 304))
        assert 'y_missing_logp' in model.named_vars
        observed = model.rvs_to_values[model['y_obs']].eval()
        assert observed.size == 302 - 5  # targets 2..303 minus five gaps
        assert np.isfinite(model.compile_logp()(model.initial_point()))

    def test_custom_priors(self, ar1_series):
        priors = ARPriors(coef_tau=1.0, sigma_upper=5.0)
        model = build_ar_model(ar1_series, 1, priors=priors)
        assert 'sigma' in model.named_vars


class TestModelErrors:
    """Invalid inputs are rejected before any sampling."""

    def test_order_zero(self, ar1_series):
        with pytest.raises(ValueError, match='order'):
            build_ar_model(ar1_series, 0)

    def test_first_target_before_order(self, ar1_series):
        with pytest.raises(ValueError, match='first_target'):
            build_ar_model(ar1_series, 3, first_target=2)

    def test_series_too_short(self):
        with pytest.raises(ValueError, match='no targets'):
            build_ar_model(np.array([1.0, 2.0]), 2)

    def test_missing_in_conditioning_window(self, ar1_series):
        y = ar1_series.copy()
        y[0] = np.nan
        with pytest.raises(ValueError, match='conditioning window'):
            build_ar_model(y, 2)

    def test_no_observed_targets(self):
        y = np.array([1.0, 2.0, np.nan, np.nan])
        with pytest.raises(ValueError, match='no observed targets'):
            build_ar_model(y, 2)


class TestPriors:
    """Tests for ARPriors validation."""

    def test_defaults(self):
        p = ARPriors()
        assert (p.intercept_tau, p.coef_tau) == (0.01, 4.0)
        assert (p.sigma_lower, p.sigma_upper) == (0.0, 10.0)

    def test_non_positive_precision(self):
        with pytest.raises(ValueError, match='precisions'):
            ARPriors(coef_tau=0.0)

    def test_bad_sigma_bounds(self):
        with pytest.raises(ValueError, match='sigma_lower'):
            ARPriors(sigma_lower=5.0, sigma_upper=1.0)


def test_model_variables():
    assert model_variables() == ['intercept', 'phi', 'sigma']
    assert model_variables(with_missing=True)[-1] == 'y_missing'
