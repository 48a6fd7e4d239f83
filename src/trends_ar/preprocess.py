# ---------------------------------------------------------------------------
# trends_ar.preprocess — Deseasonalise, detrend, Box-Cox, stationarity test
# ---------------------------------------------------------------------------
"""Turn the raw weekly interest series into the stationary, variance-
stabilised series the AR models are fitted to, and map model-scale values
back to original units."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
from scipy import special, stats
from statsmodels.tsa.seasonal import seasonal_decompose
from statsmodels.tsa.stattools import adfuller

from .config import SEASONAL_PERIOD

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StationarityResult:
    """Augmented Dickey-Fuller test (null hypothesis: unit root)."""

    statistic: float
    pvalue: float
    used_lag: int
    n_obs: int
    critical_values: dict[str, float]
    alpha: float = 0.05

    @property
    def stationary(self) -> bool:
        return self.pvalue < self.alpha


@dataclass
class PreparedSeries:
    """Transformed series plus everything needed to invert the transform.

    ``values = boxcox(raw - seasonal - trend + shift, lmbda)``
    """

    raw: np.ndarray
    seasonal: np.ndarray
    trend: np.ndarray
    adjusted: np.ndarray
    values: np.ndarray
    shift: float
    lmbda: float
    period: int
    stationarity: StationarityResult
    dates: list = field(default_factory=list)

    @property
    def T(self) -> int:
        return len(self.values)

    @property
    def seasonal_figure(self) -> np.ndarray:
        """One full cycle of the seasonal component, indexed by ``t % period``."""
        return self.seasonal[: self.period]


# =========================================================================
# Decomposition
# =========================================================================


def decompose(
    values: np.ndarray,
    period: int = SEASONAL_PERIOD,
) -> tuple[np.ndarray, np.ndarray]:
    """Additive seasonal decomposition with a gap-free trend.

    The centred moving-average trend is undefined for the first and last
    ``period // 2`` points; those edges are filled by linear interpolation
    that holds the nearest defined value.

    Returns
    -------
    seasonal, trend : np.ndarray
        Arrays of the same length as *values*.
    """
    values = np.asarray(values, dtype=float)
    if values.size < 2 * period:
        raise ValueError(
            f"Seasonal decomposition needs at least two full cycles "
            f"({2 * period} observations); got {values.size}"
        )

    result = seasonal_decompose(values, model="additive", period=period)
    seasonal = np.asarray(result.seasonal, dtype=float)
    trend = np.asarray(result.trend, dtype=float)

    t = np.arange(values.size)
    defined = np.isfinite(trend)
    trend = np.interp(t, t[defined], trend[defined])
    return seasonal, trend


# =========================================================================
# Box-Cox
# =========================================================================


def boxcox_transform(
    values: np.ndarray,
    lmbda: float | None = None,
) -> tuple[np.ndarray, float, float]:
    """Shift *values* to strictly positive support and apply Box-Cox.

    When *lmbda* is None it is chosen by maximum likelihood, which selects
    the power that best stabilises the variance / removes skew.

    Returns
    -------
    transformed, lmbda, shift
    """
    values = np.asarray(values, dtype=float)
    low = values.min()
    shift = float(1.0 - low) if low < 1.0 else 0.0
    positive = values + shift

    if lmbda is None:
        transformed, lmbda = stats.boxcox(positive)
    else:
        transformed = stats.boxcox(positive, lmbda=lmbda)
    return np.asarray(transformed, dtype=float), float(lmbda), shift


def inverse_boxcox(values: np.ndarray, lmbda: float, shift: float = 0.0) -> np.ndarray:
    """Closed-form inverse of :func:`boxcox_transform`.

    Values outside the transform's range (``1 + lmbda * y <= 0``) map to NaN.
    """
    with np.errstate(invalid="ignore", over="ignore"):
        return special.inv_boxcox(np.asarray(values, dtype=float), lmbda) - shift


# =========================================================================
# Stationarity
# =========================================================================


def adf_test(values: np.ndarray, alpha: float = 0.05) -> StationarityResult:
    """Augmented Dickey-Fuller unit-root test with AIC lag selection."""
    stat, pvalue, used_lag, n_obs, crit, _ = adfuller(
        np.asarray(values, dtype=float), autolag="AIC"
    )
    return StationarityResult(
        statistic=float(stat),
        pvalue=float(pvalue),
        used_lag=int(used_lag),
        n_obs=int(n_obs),
        critical_values={k: float(v) for k, v in crit.items()},
        alpha=alpha,
    )


# =========================================================================
# Pipeline
# =========================================================================


def prepare_series(
    values: np.ndarray,
    period: int = SEASONAL_PERIOD,
    lmbda: float | None = None,
    dates: list | None = None,
    alpha: float = 0.05,
) -> PreparedSeries:
    """Deseasonalise, detrend, Box-Cox transform and test for stationarity.

    The stationarity test is reported only; it does not alter the output.
    The input array is never modified.
    """
    raw = np.array(values, dtype=float)  # private copy
    seasonal, trend = decompose(raw, period=period)
    adjusted = raw - seasonal - trend
    transformed, lmbda, shift = boxcox_transform(adjusted, lmbda=lmbda)
    stationarity = adf_test(transformed, alpha=alpha)

    logger.info(
        f"Box-Cox lambda = {lmbda:.4f} (shift {shift:.4f}); ADF statistic "
        f"{stationarity.statistic:.3f}, p = {stationarity.pvalue:.4f}"
    )
    if not stationarity.stationary:
        logger.warning(
            f"ADF test does not reject a unit root at alpha={alpha} "
            f"(p = {stationarity.pvalue:.4f})"
        )

    return PreparedSeries(
        raw=raw,
        seasonal=seasonal,
        trend=trend,
        adjusted=adjusted,
        values=transformed,
        shift=shift,
        lmbda=lmbda,
        period=period,
        stationarity=stationarity,
        dates=list(dates) if dates is not None else [],
    )


def to_original_units(
    prepared: PreparedSeries,
    values: np.ndarray,
    start: int,
) -> np.ndarray:
    """Map model-scale values back to interest units.

    Parameters
    ----------
    prepared : PreparedSeries
        Output of :func:`prepare_series`.
    values : np.ndarray
        Model-scale values whose last axis is time, beginning at index
        *start* of the series (``start = T`` for the first forecast week).
    start : int
        Time offset of ``values[..., 0]``.

    Returns
    -------
    np.ndarray
        Same shape as *values*.  The seasonal component is added at the
        matching week of the cycle; the trend is held at its last value
        beyond the sample.
    """
    values = np.asarray(values, dtype=float)
    t = start + np.arange(values.shape[-1])
    seasonal = prepared.seasonal_figure[t % prepared.period]
    trend = prepared.trend[np.minimum(t, prepared.T - 1)]
    return inverse_boxcox(values, prepared.lmbda, prepared.shift) + seasonal + trend
