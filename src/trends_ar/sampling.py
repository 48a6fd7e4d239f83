# ---------------------------------------------------------------------------
# trends_ar.sampling — MCMC sampling and posterior draw containers
# ---------------------------------------------------------------------------
"""Posterior sampler for the AR candidates.

``fit_ar(series, order, priors, chain-config) -> ARFit`` is the only entry
point the rest of the package relies on.  It is backed by PyMC's NUTS; any
backend returning the same :class:`ARFit` fields can replace it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import arviz as az
import numpy as np
import pymc as pm

from .config import RANDOM_SEED, ARPriors
from .diagnostics import convergence_table
from .model import build_ar_model, model_variables

logger = logging.getLogger(__name__)

# Default sampling configuration (report run)
DEFAULT_SAMPLER_KWARGS: dict = dict(
    draws=5000,
    tune=1000,  # burn-in
    chains=3,
    target_accept=0.9,
)

# Lighter configuration for tests and quick looks
LIGHT_SAMPLER_KWARGS: dict = dict(
    draws=1000,
    tune=1000,
    chains=2,
    cores=1,
    target_accept=0.9,
)


@dataclass
class ARDraws:
    """Posterior draws flattened across chains.

    ``coefs[:, i]`` multiplies the lag-(i+1) value.  Draw order carries no
    meaning; the three arrays are aligned row by row.
    """

    intercept: np.ndarray
    coefs: np.ndarray
    sigma: np.ndarray

    def __post_init__(self) -> None:
        self.intercept = np.asarray(self.intercept, dtype=float).reshape(-1)
        self.coefs = np.asarray(self.coefs, dtype=float)
        if self.coefs.ndim == 1:
            self.coefs = self.coefs[:, None]
        self.sigma = np.asarray(self.sigma, dtype=float).reshape(-1)
        n = self.intercept.size
        if self.coefs.shape[0] != n or self.sigma.size != n:
            raise ValueError(
                f"Draw arrays are misaligned: intercept {self.intercept.shape}, "
                f"coefs {self.coefs.shape}, sigma {self.sigma.shape}"
            )

    def __len__(self) -> int:
        return self.intercept.size

    @property
    def order(self) -> int:
        return self.coefs.shape[1]

    @classmethod
    def from_idata(cls, idata: az.InferenceData) -> ARDraws:
        post = idata.posterior
        order = post["phi"].shape[-1]
        return cls(
            intercept=post["intercept"].values.reshape(-1),
            coefs=post["phi"].values.reshape(-1, order),
            sigma=post["sigma"].values.reshape(-1),
        )

    def take(self, idx: np.ndarray) -> ARDraws:
        return ARDraws(self.intercept[idx], self.coefs[idx], self.sigma[idx])

    def subsample(self, n: int | None, rng: np.random.Generator) -> ARDraws:
        """Random subset of *n* draws without replacement (all if n is None)."""
        if n is None or n >= len(self):
            return self
        return self.take(np.sort(rng.choice(len(self), size=n, replace=False)))

    def posterior_mean(self) -> tuple[float, np.ndarray, float]:
        return (
            float(self.intercept.mean()),
            self.coefs.mean(axis=0),
            float(self.sigma.mean()),
        )


@dataclass
class ARFit:
    """Result of one sampler invocation for one AR order."""

    series: np.ndarray
    order: int
    first_target: int
    idata: az.InferenceData
    deviance: np.ndarray | None
    diagnostics: dict = field(default_factory=dict)
    n_divergent: int = 0
    priors: ARPriors | None = None

    def draws(self) -> ARDraws:
        return ARDraws.from_idata(self.idata)

    @property
    def missing_draws(self) -> np.ndarray | None:
        """Latent missing-value draws, shape ``(n_draws, n_missing)``."""
        if "y_missing" not in self.idata.posterior:
            return None
        vals = self.idata.posterior["y_missing"].values
        return vals.reshape(-1, vals.shape[-1])

    @property
    def name(self) -> str:
        return f"AR({self.order})"


# =========================================================================
# Sampling
# =========================================================================


def sample_model(
    model: pm.Model,
    sampler_kwargs: dict | None = None,
    random_seed: int | None = RANDOM_SEED,
    initvals: dict | list[dict] | None = None,
    var_names: list[str] | None = None,
    log_likelihood: bool = True,
) -> az.InferenceData:
    """Sample *model* with NUTS.

    Parameters
    ----------
    model : pm.Model
        Output of :func:`trends_ar.model.build_ar_model`.
    sampler_kwargs : dict, optional
        ``draws`` (kept per chain), ``tune`` (burn-in), ``chains`` and any
        other ``pm.sample`` option.  Defaults to ``DEFAULT_SAMPLER_KWARGS``.
    random_seed : int, optional
        Seed for reproducible chains.
    initvals : dict or list of dict, optional
        Starting values, one dict per chain when a list.
    var_names : list of str, optional
        Parameters to record.  Recording a subset disables the
        log-likelihood (and therefore deviance) computation.
    log_likelihood : bool
        Add the pointwise log-likelihood group used for deviance and LOO.
    """
    if sampler_kwargs is None:
        sampler_kwargs = DEFAULT_SAMPLER_KWARGS
    sampler_kwargs = dict(sampler_kwargs)
    sampler_kwargs.setdefault("progressbar", False)

    with model:
        idata = pm.sample(
            random_seed=random_seed,
            initvals=initvals,
            var_names=var_names,
            return_inferencedata=True,
            **sampler_kwargs,
        )

    if log_likelihood:
        free = {rv.name for rv in model.free_RVs}
        if var_names is not None and not free.issubset(var_names):
            logger.warning(
                f"Recorded variables {var_names} omit free parameters "
                f"{sorted(free - set(var_names))}; log-likelihood not computed"
            )
        else:
            with model:
                pm.compute_log_likelihood(
                    idata, var_names=["y_obs"], extend_inferencedata=True, progressbar=False
                )

    return idata


def deviance_draws(idata: az.InferenceData, var_name: str = "y_obs") -> np.ndarray | None:
    """Per-draw deviance ``-2 log p(y | θ)`` of shape ``(chain, draw)``."""
    if not hasattr(idata, "log_likelihood") or var_name not in idata.log_likelihood:
        return None
    ll = idata.log_likelihood[var_name]
    obs_dims = [d for d in ll.dims if d not in ("chain", "draw")]
    return -2.0 * ll.sum(dim=obs_dims).values


def fit_ar(
    series: np.ndarray,
    order: int,
    priors: ARPriors | None = None,
    sampler_kwargs: dict | None = None,
    random_seed: int | None = RANDOM_SEED,
    initvals: dict | list[dict] | None = None,
    var_names: list[str] | None = None,
    first_target: int | None = None,
) -> ARFit:
    """Fit an AR(*order*) model and collect draws plus diagnostics.

    Non-convergence never raises: R-hat, ESS and MCSE are returned in
    ``ARFit.diagnostics`` and the number of divergent transitions in
    ``ARFit.n_divergent``.
    """
    series = np.asarray(series, dtype=float)
    if first_target is None:
        first_target = order

    model = build_ar_model(series, order, priors=priors, first_target=first_target)
    logger.info(
        f"Sampling AR({order}) on {series.size} points "
        f"({int(np.isnan(series).sum())} missing)"
    )
    idata = sample_model(
        model,
        sampler_kwargs=sampler_kwargs,
        random_seed=random_seed,
        initvals=initvals,
        var_names=var_names,
    )

    n_divergent = 0
    if hasattr(idata, "sample_stats") and "diverging" in idata.sample_stats:
        n_divergent = int(idata.sample_stats.diverging.sum().values)
    if n_divergent > 0:
        logger.warning(f"AR({order}): {n_divergent} divergent transitions")

    recorded = [v for v in model_variables() if v in idata.posterior]
    return ARFit(
        series=series,
        order=order,
        first_target=first_target,
        idata=idata,
        deviance=deviance_draws(idata),
        diagnostics=convergence_table(idata, recorded),
        n_divergent=n_divergent,
        priors=priors,
    )
