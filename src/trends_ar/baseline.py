# ---------------------------------------------------------------------------
# trends_ar.baseline — Frequentist ARIMA reference fit
# ---------------------------------------------------------------------------
"""Maximum-likelihood ARIMA fit on the same model-scale series.

Illustrative only: it gives a familiar point of comparison for the
Bayesian estimates and forecasts, not a result the analysis depends on.
"""

from __future__ import annotations

import numpy as np
from statsmodels.tsa.arima.model import ARIMA

from .config import CREDIBLE_ALPHA, FORECAST_HORIZON


def fit_arima_baseline(
    values: np.ndarray,
    order: tuple[int, int, int] = (2, 0, 0),
    horizon: int = FORECAST_HORIZON,
    alpha: float = CREDIBLE_ALPHA,
) -> dict:
    """Fit ``ARIMA(order)`` with a constant and forecast *horizon* steps.

    Returns
    -------
    dict
        ``order``, ``params`` (name → estimate), ``aic``, ``bic`` and the
        forecast ``mean`` / ``lower`` / ``upper`` arrays.
    """
    y = np.asarray(values, dtype=float)
    trend = "c" if order[1] == 0 else "n"
    result = ARIMA(y, order=order, trend=trend).fit()

    fc = result.get_forecast(steps=horizon)
    conf = np.asarray(fc.conf_int(alpha=alpha))
    names = result.model.param_names
    return {
        "order": order,
        "params": {name: float(v) for name, v in zip(names, np.asarray(result.params))},
        "aic": float(result.aic),
        "bic": float(result.bic),
        "mean": np.asarray(fc.predicted_mean, dtype=float),
        "lower": conf[:, 0],
        "upper": conf[:, 1],
    }
