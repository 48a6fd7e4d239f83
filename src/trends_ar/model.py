# ---------------------------------------------------------------------------
# trends_ar.model — PyMC specification of the AR(p) candidates
# ---------------------------------------------------------------------------
"""Bayesian AR(p) model shared by every candidate order.

    intercept ~ Normal(0, tau=0.01)
    phi_i     ~ Normal(0, tau=4)            i = 1..p
    sigma     ~ Uniform(0, 10)
    y_t       ~ Normal(intercept + Σ_i phi_i · y_{t-i}, sigma)   t > p

Missing observations (NaN) at target positions become latent parameters
``y_missing`` sampled jointly with the model parameters; that is how
future weeks are forecast inside the sampler.
"""

from __future__ import annotations

import numpy as np
import pymc as pm
import pytensor.tensor as pt

from .config import DEFAULT_PRIORS, ARPriors


def build_ar_model(
    series: np.ndarray,
    order: int,
    priors: ARPriors | None = None,
    first_target: int | None = None,
) -> pm.Model:
    """Build the AR(*order*) PyMC model for *series*.

    Parameters
    ----------
    series : np.ndarray
        Model-scale series.  NaN entries at or after *first_target* are
        treated as latent values.
    order : int
        Number of lag coefficients ``p``.
    priors : ARPriors, optional
        Prior family.  Defaults to ``config.DEFAULT_PRIORS``.
    first_target : int, optional
        Zero-based index of the first modelled observation.  Defaults to
        *order*.  Fitting several orders with the same value conditions
        them on identical targets so their deviances are comparable.

    Returns
    -------
    pm.Model
        Free variables ``intercept``, ``phi`` (dim ``lag``), ``sigma``
        and, when the series has gaps, ``y_missing`` (dim ``missing``).
        The observed likelihood is ``y_obs``.
    """
    if priors is None:
        priors = DEFAULT_PRIORS
    if first_target is None:
        first_target = order

    y = np.asarray(series, dtype=float)
    T = y.size
    if order < 1:
        raise ValueError(f"AR order must be >= 1. Got {order}")
    if first_target < order:
        raise ValueError(
            f"first_target ({first_target}) must be >= order ({order}) so every "
            f"target has {order} lagged values"
        )
    if first_target >= T:
        raise ValueError(
            f"Series of length {T} leaves no targets after first_target={first_target}"
        )

    missing = ~np.isfinite(y)
    if missing[:first_target].any():
        bad = np.where(missing[:first_target])[0].tolist()
        raise ValueError(
            f"Missing values in the conditioning window (indices {bad}) cannot be "
            f"estimated; only positions >= {first_target} may be missing"
        )

    target_idx = np.arange(first_target, T)
    target_missing = missing[target_idx]
    obs_pos = np.where(~target_missing)[0]
    miss_pos = np.where(target_missing)[0]
    missing_idx = target_idx[miss_pos]

    if obs_pos.size == 0:
        raise ValueError("Series has no observed targets to condition on")

    coords = {"lag": np.arange(1, order + 1)}
    if missing_idx.size > 0:
        coords["missing"] = missing_idx

    with pm.Model(coords=coords) as model:

        # =============================================================
        # Priors
        # =============================================================

        intercept = pm.Normal("intercept", mu=priors.intercept_mu, tau=priors.intercept_tau)
        phi = pm.Normal("phi", mu=priors.coef_mu, tau=priors.coef_tau, dims="lag")
        sigma = pm.Uniform("sigma", lower=priors.sigma_lower, upper=priors.sigma_upper)
        pm.Deterministic("precision", 1.0 / sigma**2)

        # =============================================================
        # Series with latent gaps filled in
        # =============================================================

        if missing_idx.size > 0:
            fill = float(np.nanmean(y))
            y_missing = pm.Flat(
                "y_missing", dims="missing", initval=np.full(missing_idx.size, fill)
            )
            y_full = pt.set_subtensor(
                pt.as_tensor_variable(np.where(missing, fill, y))[missing_idx],
                y_missing,
            )
        else:
            y_full = pt.as_tensor_variable(y)

        # =============================================================
        # Conditional mean: column i-1 holds lag i for every target
        # =============================================================

        lags = pt.stack(
            [y_full[first_target - i : T - i] for i in range(1, order + 1)],
            axis=1,
        )
        mu = intercept + pt.dot(lags, phi)

        # =============================================================
        # Likelihood
        # =============================================================

        pm.Normal("y_obs", mu=mu[obs_pos], sigma=sigma, observed=y[target_idx][obs_pos])

        if missing_idx.size > 0:
            pm.Potential(
                "y_missing_logp",
                pm.logp(pm.Normal.dist(mu=mu[miss_pos], sigma=sigma), y_missing).sum(),
            )

    return model


def model_variables(with_missing: bool = False) -> list[str]:
    """Names of the recorded free parameters of an AR model."""
    names = ["intercept", "phi", "sigma"]
    if with_missing:
        names.append("y_missing")
    return names
