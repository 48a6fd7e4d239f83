# ---------------------------------------------------------------------------
# trends_ar.checks — Prior / posterior predictive checks
# ---------------------------------------------------------------------------
from __future__ import annotations

import logging

import numpy as np
import pymc as pm
from scipy import stats as sp_stats

from .config import RANDOM_SEED
from .simulate import Replication

logger = logging.getLogger(__name__)


def _lag1_acf(x: np.ndarray) -> float:
    if len(x) < 3:
        return 0.0
    xc = x - x.mean()
    c0 = np.dot(xc, xc)
    return float(np.dot(xc[:-1], xc[1:]) / c0) if c0 > 0 else 0.0


TEST_STATISTICS = {
    "mean": lambda x: float(np.mean(x)),
    "sd": lambda x: float(np.std(x, ddof=1)),
    "skewness": lambda x: float(sp_stats.skew(x)),
    "lag1_acf": _lag1_acf,
}


# =========================================================================
# Prior predictive
# =========================================================================


def run_prior_predictive_checks(
    model: pm.Model,
    series: np.ndarray,
    draws: int = 500,
    random_seed: int | None = RANDOM_SEED,
) -> dict:
    """Sample the prior predictive of ``y_obs`` and compare with the data.

    Validates that the priors generate values on the scale of the observed
    series before fitting.

    Returns
    -------
    dict
        ``draws`` (n_draws, n_obs), prior predictive 5%/95% range and the
        observed min/max.
    """
    if "y_missing" in model.named_vars:
        raise ValueError(
            "Prior predictive checks need a fully observed series "
            "(the latent missing values have an improper prior)"
        )

    with model:
        prior_idata = pm.sample_prior_predictive(draws=draws, random_seed=random_seed)

    pp = prior_idata.prior_predictive["y_obs"].values
    pp = pp.reshape(-1, pp.shape[-1])
    lo5, hi95 = np.percentile(pp, [5, 95])
    y = np.asarray(series, dtype=float)
    result = {
        "draws": pp,
        "prior_p05": float(lo5),
        "prior_p95": float(hi95),
        "obs_min": float(np.nanmin(y)),
        "obs_max": float(np.nanmax(y)),
    }
    logger.info(
        f"Prior predictive 90% range [{lo5:+.2f}, {hi95:+.2f}] vs observed "
        f"[{result['obs_min']:+.2f}, {result['obs_max']:+.2f}]"
    )
    return result


# =========================================================================
# Posterior predictive
# =========================================================================


def posterior_predictive_pvalues(
    replication: Replication,
    series: np.ndarray,
) -> dict[str, dict]:
    """Bayesian p-values ``P(T(y_rep) >= T(y))`` for the test statistics.

    Divergent replications are excluded.  Values near 0 or 1 flag aspects
    of the data the model does not reproduce.
    """
    y = np.asarray(series, dtype=float)
    reps = replication.paths[~replication.divergent]
    out: dict[str, dict] = {}
    for name, fn in TEST_STATISTICS.items():
        observed = fn(y)
        if reps.shape[0] == 0:
            out[name] = {"observed": observed, "pvalue": float("nan")}
            continue
        replicated = np.array([fn(r) for r in reps])
        out[name] = {
            "observed": observed,
            "replicated_mean": float(replicated.mean()),
            "pvalue": float(np.mean(replicated >= observed)),
        }
    return out
