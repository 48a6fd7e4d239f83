# ---------------------------------------------------------------------------
# trends_ar.summary — Point estimates, intervals, MCSE, point-null decisions
# ---------------------------------------------------------------------------
"""Deterministic summaries of posterior draws.

Nothing here draws random numbers: summarising the same draws twice gives
identical results.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import arviz as az
import numpy as np

from .config import CREDIBLE_ALPHA

if TYPE_CHECKING:
    from .sampling import ARFit

FAIL_TO_REJECT = "fail to reject"
REJECT = "reject"


def _check_alpha(alpha: float) -> None:
    if not 0 < alpha < 1:
        raise ValueError(f"alpha must lie in (0, 1). Got {alpha}")


def equal_tailed_interval(draws: np.ndarray, alpha: float = CREDIBLE_ALPHA) -> tuple[float, float]:
    """Empirical ``[alpha/2, 1 - alpha/2]`` quantiles."""
    _check_alpha(alpha)
    x = np.asarray(draws, dtype=float).reshape(-1)
    lo, hi = np.quantile(x, [alpha / 2, 1 - alpha / 2])
    return float(lo), float(hi)


def hpd_interval(draws: np.ndarray, alpha: float = CREDIBLE_ALPHA) -> tuple[float, float]:
    """Narrowest interval holding ``ceil((1 - alpha) * n)`` sorted draws.

    Every contiguous window of that many sorted draws is scanned and the
    narrowest kept (the first one on ties).
    """
    _check_alpha(alpha)
    x = np.sort(np.asarray(draws, dtype=float).reshape(-1))
    n = x.size
    if n == 0:
        raise ValueError("Cannot compute an HPD interval from zero draws")
    m = min(n, int(np.ceil((1 - alpha) * n)))
    widths = x[m - 1 :] - x[: n - m + 1]
    i = int(np.argmin(widths))
    return float(x[i]), float(x[i + m - 1])


def mcse_mean(draws: np.ndarray) -> float:
    """Monte Carlo standard error of the posterior mean.

    Uses the autocorrelation-aware effective sample size, so correlated
    consecutive draws inflate the error.  Accepts one chain ``(draws,)`` or
    ``(chains, draws)``.
    """
    x = np.asarray(draws, dtype=float)
    if x.ndim == 1:
        x = x[None, :]
    # ndarray input comes back as a length-1 array
    return float(np.asarray(az.mcse(x, method="mean")).reshape(-1)[0])


def summarize_draws(draws: np.ndarray, alpha: float = CREDIBLE_ALPHA) -> dict[str, float]:
    """Mean, median, equal-tailed and HPD intervals and MCSE of one scalar."""
    x = np.asarray(draws, dtype=float)
    flat = x.reshape(-1)
    ci_low, ci_high = equal_tailed_interval(flat, alpha)
    hpd_low, hpd_high = hpd_interval(flat, alpha)
    return {
        "mean": float(flat.mean()),
        "median": float(np.median(flat)),
        "ci_low": ci_low,
        "ci_high": ci_high,
        "hpd_low": hpd_low,
        "hpd_high": hpd_high,
        "mcse": mcse_mean(x),
    }


def summarize_fit(fit: ARFit, alpha: float = CREDIBLE_ALPHA) -> dict[str, dict]:
    """Per-parameter summary of an AR fit.

    Keys are ``intercept``, ``phi[1]`` .. ``phi[p]`` and ``sigma``; each
    value carries :func:`summarize_draws` plus ``r_hat`` and ``ess_bulk``.
    """
    post = fit.idata.posterior
    arrays: dict[str, np.ndarray] = {"intercept": post["intercept"].values}
    phi = post["phi"].values  # (chain, draw, lag)
    for i in range(phi.shape[-1]):
        arrays[f"phi[{i + 1}]"] = phi[..., i]
    arrays["sigma"] = post["sigma"].values

    out: dict[str, dict] = {}
    for name, vals in arrays.items():
        row = summarize_draws(vals, alpha)
        diag = fit.diagnostics.get(name, {})
        row["r_hat"] = diag.get("r_hat", float("nan"))
        row["ess_bulk"] = diag.get("ess_bulk", float("nan"))
        out[name] = row
    return out


# =========================================================================
# Point-null hypothesis decisions
# =========================================================================


def point_null_decision(theta0: float, interval: tuple[float, float]) -> str:
    """Two-sided point-null decision by interval membership.

    Returns ``"fail to reject"`` when *theta0* lies inside the closed
    interval and ``"reject"`` otherwise.  No multiplicity correction.
    """
    lo, hi = interval
    return FAIL_TO_REJECT if lo <= theta0 <= hi else REJECT


def point_null_table(
    summary: dict[str, dict],
    null: float | dict[str, float] = 0.0,
    interval: str = "ci",
) -> dict[str, dict]:
    """Apply :func:`point_null_decision` to every parameter in *summary*.

    Parameters
    ----------
    summary : dict
        Output of :func:`summarize_fit`.
    null : float or dict
        Null value for every parameter, or a per-parameter mapping
        (parameters missing from the mapping are skipped).
    interval : ``'ci'`` | ``'hpd'``
        Which interval to test against.
    """
    if interval not in ("ci", "hpd"):
        raise ValueError(f"interval must be 'ci' or 'hpd'. Got {interval!r}")

    rows: dict[str, dict] = {}
    for name, s in summary.items():
        if isinstance(null, dict):
            if name not in null:
                continue
            theta0 = null[name]
        else:
            theta0 = null
        bounds = (s[f"{interval}_low"], s[f"{interval}_high"])
        rows[name] = {
            "null": float(theta0),
            "low": bounds[0],
            "high": bounds[1],
            "decision": point_null_decision(theta0, bounds),
        }
    return rows
