# ---------------------------------------------------------------------------
# trends_ar.compare — Deviance information criterion and model ranking
# ---------------------------------------------------------------------------
"""DIC for the AR candidates.

    p_D = var(D) / 2
    DIC = D(θ̄) + 2 p_D

where ``D`` is the per-draw deviance reported by the sampler and ``D(θ̄)``
the deviance at the posterior mean.  Lower is preferred; the ranking is
reported, not acted on.
"""

from __future__ import annotations

import logging
from typing import Sequence

import arviz as az
import numpy as np
from scipy import stats

from .sampling import ARFit

logger = logging.getLogger(__name__)


class DevianceUnavailableError(RuntimeError):
    """Raised when a fit carries no deviance draws (DIC unsupported)."""


def ar_deviance(
    series: np.ndarray,
    order: int,
    intercept: float,
    coefs: np.ndarray,
    sigma: float,
    first_target: int | None = None,
) -> float:
    """Deviance ``-2 log p(y | θ)`` of one parameter value.

    Sums the Gaussian conditional log-density over the observed targets
    ``t >= first_target`` (default *order*), skipping missing targets.
    """
    y = np.asarray(series, dtype=float)
    coefs = np.asarray(coefs, dtype=float).reshape(-1)
    if coefs.size != order:
        raise ValueError(f"Expected {order} coefficients, got {coefs.size}")
    if first_target is None:
        first_target = order

    lags = np.column_stack([y[first_target - i : y.size - i] for i in range(1, order + 1)])
    mu = intercept + lags @ coefs
    target = y[first_target:]
    keep = np.isfinite(target) & np.isfinite(mu)
    return float(-2.0 * stats.norm.logpdf(target[keep], loc=mu[keep], scale=sigma).sum())


def dic_from_deviance(
    deviance: np.ndarray,
    point_deviance: float | None = None,
) -> dict[str, float]:
    """DIC from deviance draws.

    Parameters
    ----------
    deviance : np.ndarray
        Per-draw deviance, any shape (flattened).
    point_deviance : float, optional
        Deviance at the posterior mean.  When omitted it is approximated by
        ``mean(D) - p_D``, giving ``DIC = mean(D) + p_D``.

    Returns
    -------
    dict
        ``mean_deviance``, ``point_deviance``, ``p_d`` and ``dic``.
    """
    if deviance is None:
        raise DevianceUnavailableError(
            "No deviance draws available; DIC is unsupported for this fit"
        )
    d = np.asarray(deviance, dtype=float).reshape(-1)
    if d.size < 2:
        raise ValueError(f"Need at least two deviance draws, got {d.size}")

    mean_d = float(d.mean())
    p_d = float(d.var(ddof=1) / 2.0)
    if point_deviance is None:
        point_deviance = mean_d - p_d
    return {
        "mean_deviance": mean_d,
        "point_deviance": float(point_deviance),
        "p_d": p_d,
        "dic": float(point_deviance) + 2.0 * p_d,
    }


def compute_dic(fit: ARFit) -> dict[str, float]:
    """DIC of a fit using its deviance draws and the plug-in posterior mean."""
    if fit.deviance is None:
        raise DevianceUnavailableError(
            f"{fit.name} has no deviance draws (log-likelihood was not recorded); "
            f"DIC is unsupported for this fit"
        )
    y = np.asarray(fit.series, dtype=float)
    observed = np.flatnonzero(np.isfinite(y))
    if observed.size and np.isnan(y[: observed[-1]]).any():
        # sampled deviance conditions on imputed lags, the plug-in deviance skips them
        raise DevianceUnavailableError(
            f"{fit.name} has missing values before its last observation; "
            f"DIC is unsupported for this fit"
        )
    c, phi, sigma = fit.draws().posterior_mean()
    point = ar_deviance(fit.series, fit.order, c, phi, sigma, fit.first_target)
    return dic_from_deviance(fit.deviance, point_deviance=point)


def compare_models(fits: Sequence[ARFit]) -> list[dict]:
    """DIC table for several fits, sorted best first.

    Fits should share ``first_target`` so the deviances cover the same
    observations; a mismatch is logged.
    """
    if len({f.first_target for f in fits}) > 1:
        logger.warning(
            "Compared fits condition on different targets "
            f"({[f.first_target for f in fits]}); deviances are not comparable"
        )

    rows = []
    for fit in fits:
        row = {"model": fit.name, "order": fit.order}
        row.update(compute_dic(fit))
        rows.append(row)

    rows.sort(key=lambda r: r["dic"])
    best = rows[0]["dic"] if rows else 0.0
    for row in rows:
        row["delta_dic"] = row["dic"] - best
    return rows


def compare_loo(fits: Sequence[ARFit]):
    """PSIS-LOO comparison (ArviZ) of fits that recorded the log-likelihood."""
    idatas = {}
    for fit in fits:
        if not hasattr(fit.idata, "log_likelihood"):
            raise DevianceUnavailableError(
                f"{fit.name} has no pointwise log-likelihood; LOO is unsupported"
            )
        idatas[fit.name] = fit.idata
    return az.compare(idatas, ic="loo")
