# ---------------------------------------------------------------------------
# trends_ar.simulate — Posterior-predictive replication and forecasting
# ---------------------------------------------------------------------------
"""Forward simulation from posterior AR draws.

In-sample replication, multi-step forecasting and the residual checks all
go through :func:`generate_trajectories`; they differ only in the seed
window and the horizon.  Every random number comes from the ``rng``
passed in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from .config import CREDIBLE_ALPHA, EXPLOSIVE_BOUND, RANDOM_SEED, ARPriors
from .sampling import ARDraws, ARFit, fit_ar
from .summary import equal_tailed_interval, hpd_interval

logger = logging.getLogger(__name__)


@dataclass
class Replication:
    """Synthetic in-sample trajectories, one row per posterior draw."""

    paths: np.ndarray  # (n_draws, T)
    mean: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    residuals: np.ndarray  # observed - synthetic, (n_draws, T)
    divergent: np.ndarray  # (n_draws,) bool


@dataclass
class Forecast:
    """Forecast distribution for ``horizon`` steps after the last observation."""

    paths: np.ndarray  # (n_draws, horizon)
    steps: list[dict]
    start: int  # time index of the first forecast step
    seeds: np.ndarray = field(default_factory=lambda: np.empty(0))
    divergent: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=bool))
    explosive: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=bool))
    method: str = "simulation"

    @property
    def horizon(self) -> int:
        return self.paths.shape[1]

    @property
    def n_draws(self) -> int:
        return self.paths.shape[0]


# =========================================================================
# Core generator
# =========================================================================


def generate_trajectories(
    seed_values: np.ndarray,
    horizon: int,
    draws: ARDraws,
    rng: np.random.Generator,
) -> np.ndarray:
    """Simulate AR paths forward from a seed window.

    Parameters
    ----------
    seed_values : np.ndarray
        The last ``p`` known values in time order, shape ``(p,)`` (shared
        by every draw) or ``(n_draws, p)``.
    horizon : int
        Number of steps generated after the seed window.
    draws : ARDraws
        Posterior draws; row ``k`` generates path ``k``.
    rng : np.random.Generator
        Source of the Gaussian innovations.

    Returns
    -------
    np.ndarray
        Shape ``(n_draws, p + horizon)``.  The first ``p`` columns are the
        seeds; column ``t >= p`` depends only on columns ``t-p .. t-1`` of
        the same row.  Explosive draws may overflow to inf/NaN; this is not
        an error.
    """
    p = draws.order
    n = len(draws)
    seeds = np.asarray(seed_values, dtype=float)
    if seeds.ndim == 1:
        seeds = np.broadcast_to(seeds, (n, seeds.size))
    if seeds.shape != (n, p):
        raise ValueError(
            f"Seed window must have shape ({p},) or ({n}, {p}); got {seeds.shape}"
        )
    if horizon < 0:
        raise ValueError(f"horizon must be non-negative. Got {horizon}")

    paths = np.empty((n, p + horizon))
    paths[:, :p] = seeds
    eps = rng.standard_normal((n, horizon))

    with np.errstate(over="ignore", invalid="ignore"):
        for h in range(horizon):
            t = p + h
            lagged = paths[:, t - p : t][:, ::-1]  # column i-1 is lag i
            paths[:, t] = (
                draws.intercept
                + np.sum(draws.coefs * lagged, axis=1)
                + draws.sigma * eps[:, h]
            )
    return paths


def divergence_flags(paths: np.ndarray, bound: float = EXPLOSIVE_BOUND) -> np.ndarray:
    """True for rows containing non-finite values or magnitudes above *bound*."""
    paths = np.asarray(paths, dtype=float)
    with np.errstate(invalid="ignore"):
        return ~np.isfinite(paths).all(axis=1) | (np.abs(paths) > bound).any(axis=1)


def is_explosive(coefs: np.ndarray) -> np.ndarray:
    """True for coefficient draws whose companion matrix has spectral radius >= 1."""
    coefs = np.asarray(coefs, dtype=float)
    if coefs.ndim == 1:
        coefs = coefs[:, None]
    n, p = coefs.shape
    companion = np.zeros((n, p, p))
    companion[:, 0, :] = coefs
    if p > 1:
        companion[:, 1:, :-1] = np.eye(p - 1)
    radius = np.abs(np.linalg.eigvals(companion)).max(axis=1)
    return radius >= 1.0


# =========================================================================
# Summaries
# =========================================================================


def summarize_steps(paths: np.ndarray, alpha: float = CREDIBLE_ALPHA) -> list[dict]:
    """Per-step forecast summaries over the finite draws of each column."""
    paths = np.asarray(paths, dtype=float)
    steps: list[dict] = []
    for h in range(paths.shape[1]):
        col = paths[:, h]
        finite = col[np.isfinite(col)]
        n_nonfinite = int(col.size - finite.size)
        if finite.size == 0:
            nan = float("nan")
            steps.append(dict(step=h + 1, mean=nan, median=nan, ci_low=nan, ci_high=nan,
                              hpd_low=nan, hpd_high=nan, n_nonfinite=n_nonfinite))
            continue
        ci_low, ci_high = equal_tailed_interval(finite, alpha)
        hpd_low, hpd_high = hpd_interval(finite, alpha)
        steps.append(
            dict(
                step=h + 1,
                mean=float(finite.mean()),
                median=float(np.median(finite)),
                ci_low=ci_low,
                ci_high=ci_high,
                hpd_low=hpd_low,
                hpd_high=hpd_high,
                n_nonfinite=n_nonfinite,
            )
        )
    return steps


# =========================================================================
# In-sample replication
# =========================================================================


def replicate_in_sample(
    series: np.ndarray,
    draws: ARDraws,
    rng: np.random.Generator,
    alpha: float = CREDIBLE_ALPHA,
) -> Replication:
    """One synthetic length-T trajectory per draw, seeded with the first p values."""
    y = np.asarray(series, dtype=float)
    p = draws.order
    if not np.isfinite(y[:p]).all():
        raise ValueError("The first p observations must be finite to seed replication")

    paths = generate_trajectories(y[:p], y.size - p, draws, rng)
    divergent = divergence_flags(paths)
    if divergent.any():
        logger.warning(f"{int(divergent.sum())} of {len(draws)} replicated paths diverged")

    with np.errstate(invalid="ignore"):
        mean = np.nanmean(np.where(np.isfinite(paths), paths, np.nan), axis=0)
        lower, upper = np.nanquantile(
            np.where(np.isfinite(paths), paths, np.nan), [alpha / 2, 1 - alpha / 2], axis=0
        )
    return Replication(
        paths=paths,
        mean=mean,
        lower=lower,
        upper=upper,
        residuals=y[None, :] - paths,
        divergent=divergent,
    )


def one_step_residuals(series: np.ndarray, draws: ARDraws) -> np.ndarray:
    """Standardised one-step-ahead residuals at the posterior mean.

    Element ``k`` is the residual of observation ``p + k``.
    """
    y = np.asarray(series, dtype=float)
    c, phi, sigma = draws.posterior_mean()
    p = phi.size
    lags = np.column_stack([y[p - i : y.size - i] for i in range(1, p + 1)])
    fitted = c + lags @ phi
    return (y[p:] - fitted) / sigma


# =========================================================================
# Forecasting
# =========================================================================


def forecast(
    series: np.ndarray,
    draws: ARDraws,
    horizon: int,
    rng: np.random.Generator,
    n_draws: int | None = None,
    alpha: float = CREDIBLE_ALPHA,
) -> Forecast:
    """Multi-step forecast by simulation from the last p observed values.

    Parameters
    ----------
    series : np.ndarray
        Observed model-scale series (fully observed at its end).
    draws : ARDraws
        Posterior draws.
    horizon : int
        Number of future steps.
    rng : np.random.Generator
        Drives both the draw subsample and the innovations.
    n_draws : int, optional
        Random subsample size; all draws when None.  Draws are
        exchangeable so subsampling adds no bias.
    alpha : float
        Credible level of the per-step intervals.
    """
    y = np.asarray(series, dtype=float)
    p = draws.order
    seeds = y[-p:]
    if not np.isfinite(seeds).all():
        raise ValueError(f"The last {p} observations must be finite to seed a forecast")

    used = draws.subsample(n_draws, rng)
    paths = generate_trajectories(seeds, horizon, used, rng)[:, p:]
    divergent = divergence_flags(paths)
    explosive = is_explosive(used.coefs)
    if divergent.any():
        logger.warning(
            f"{int(divergent.sum())} of {len(used)} forecast paths diverged "
            f"({int(explosive.sum())} draws have explosive coefficients)"
        )

    return Forecast(
        paths=paths,
        steps=summarize_steps(paths, alpha),
        start=y.size,
        seeds=seeds.copy(),
        divergent=divergent,
        explosive=explosive,
        method="simulation",
    )


def forecast_in_sampler(
    series: np.ndarray,
    order: int,
    horizon: int,
    priors: ARPriors | None = None,
    sampler_kwargs: dict | None = None,
    random_seed: int | None = RANDOM_SEED,
    alpha: float = CREDIBLE_ALPHA,
    first_target: int | None = None,
) -> tuple[Forecast, ARFit]:
    """Forecast by appending ``horizon`` missing values and sampling them.

    The sampler treats the appended NaNs as latent parameters, so their
    posterior is the forecast distribution under the same generative
    model as :func:`forecast`.
    """
    if horizon < 1:
        raise ValueError(f"horizon must be >= 1 to append latent future values. Got {horizon}")
    y = np.asarray(series, dtype=float)
    extended = np.concatenate([y, np.full(horizon, np.nan)])
    fit = fit_ar(
        extended,
        order,
        priors=priors,
        sampler_kwargs=sampler_kwargs,
        random_seed=random_seed,
        first_target=first_target,
    )

    missing_idx = np.asarray(fit.idata.posterior["y_missing"].coords["missing"].values)
    future = missing_idx >= y.size
    paths = fit.missing_draws[:, future]
    draws = fit.draws()

    return (
        Forecast(
            paths=paths,
            steps=summarize_steps(paths, alpha),
            start=y.size,
            seeds=y[-order:].copy(),
            divergent=divergence_flags(paths),
            explosive=is_explosive(draws.coefs),
            method="in-sampler",
        ),
        fit,
    )
