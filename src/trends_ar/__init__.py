# ---------------------------------------------------------------------------
# trends_ar — Bayesian autoregressive analysis of weekly search interest
# ---------------------------------------------------------------------------
"""Deseasonalised, Box-Cox transformed Google Trends series fitted with
AR(1)/AR(2)/AR(3) models by MCMC, with DIC comparison and posterior-
predictive forecasting."""

from .analysis import run_analysis
from .compare import (
    DevianceUnavailableError,
    ar_deviance,
    compare_models,
    compute_dic,
    dic_from_deviance,
)
from .config import (
    AR_ORDERS,
    BASE_DIR,
    DATA_DIR,
    DEFAULT_PRIORS,
    OUTPUT_DIR,
    SEASONAL_PERIOD,
    ARPriors,
)
from .data import load_trends
from .model import build_ar_model
from .preprocess import PreparedSeries, prepare_series, to_original_units
from .sampling import (
    DEFAULT_SAMPLER_KWARGS,
    LIGHT_SAMPLER_KWARGS,
    ARDraws,
    ARFit,
    fit_ar,
    sample_model,
)
from .simulate import (
    Forecast,
    Replication,
    forecast,
    forecast_in_sampler,
    generate_trajectories,
    replicate_in_sample,
)
from .summary import (
    equal_tailed_interval,
    hpd_interval,
    mcse_mean,
    point_null_decision,
    summarize_draws,
    summarize_fit,
)

__all__ = [
    "AR_ORDERS",
    "BASE_DIR",
    "DATA_DIR",
    "DEFAULT_PRIORS",
    "OUTPUT_DIR",
    "SEASONAL_PERIOD",
    "ARPriors",
    "load_trends",
    "prepare_series",
    "to_original_units",
    "PreparedSeries",
    "build_ar_model",
    "fit_ar",
    "sample_model",
    "ARDraws",
    "ARFit",
    "DEFAULT_SAMPLER_KWARGS",
    "LIGHT_SAMPLER_KWARGS",
    "equal_tailed_interval",
    "hpd_interval",
    "mcse_mean",
    "point_null_decision",
    "summarize_draws",
    "summarize_fit",
    "generate_trajectories",
    "replicate_in_sample",
    "forecast",
    "forecast_in_sampler",
    "Forecast",
    "Replication",
    "ar_deviance",
    "dic_from_deviance",
    "compute_dic",
    "compare_models",
    "DevianceUnavailableError",
    "run_analysis",
]
