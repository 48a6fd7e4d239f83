# ---------------------------------------------------------------------------
# trends_ar.plots — Decomposition, MCMC diagnostic, PPC and forecast plots
# ---------------------------------------------------------------------------
from __future__ import annotations

import logging
from pathlib import Path

import arviz as az
import matplotlib.pyplot as plt
import numpy as np

from .config import MODEL_COLORS, OUTPUT_DIR
from .diagnostics import gelman_rubin_shrink
from .preprocess import PreparedSeries, to_original_units
from .sampling import ARFit
from .simulate import Forecast, Replication

logger = logging.getLogger(__name__)

_PARAMS = ["intercept", "phi", "sigma"]


def _save(fig, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved: {path}")
    return path


def _figure(axes):
    return np.ravel(axes)[0].get_figure()


def _slug(fit: ARFit) -> str:
    return f"ar{fit.order}"


# =========================================================================
# Data
# =========================================================================


def plot_decomposition(prepared: PreparedSeries, output_dir: Path = OUTPUT_DIR) -> Path:
    """Raw series, trend, seasonal component, and the transformed series."""
    x = prepared.dates if prepared.dates else np.arange(prepared.T)

    fig, axes = plt.subplots(4, 1, figsize=(14, 12), sharex=True)
    panels = [
        ("Observed interest", prepared.raw, "darkorange"),
        ("Trend (interpolated edges)", prepared.trend, "steelblue"),
        (f"Seasonal (period {prepared.period})", prepared.seasonal, "seagreen"),
        (f"Box-Cox series (λ = {prepared.lmbda:.3f})", prepared.values, "black"),
    ]
    for ax, (title, values, color) in zip(axes, panels):
        ax.plot(x, values, color=color, lw=1)
        ax.set_title(title)
    st = prepared.stationarity
    axes[-1].text(
        0.01, 0.95, f"ADF = {st.statistic:.2f}, p = {st.pvalue:.4f}",
        transform=axes[-1].transAxes, va="top", fontsize=9,
        bbox=dict(boxstyle="round,pad=0.3", fc="white", ec="gray", alpha=0.9),
    )

    fig.suptitle("Series Preprocessing", fontsize=13, fontweight="bold")
    plt.tight_layout()
    return _save(fig, output_dir / "decomposition.png")


# =========================================================================
# MCMC diagnostics
# =========================================================================


def plot_trace(fit: ARFit, output_dir: Path = OUTPUT_DIR) -> Path:
    axes = az.plot_trace(fit.idata, var_names=_PARAMS, compact=False)
    fig = _figure(axes)
    fig.suptitle(f"{fit.name}: trace", fontsize=13, fontweight="bold")
    return _save(fig, output_dir / f"trace_{_slug(fit)}.png")


def plot_autocorrelation(fit: ARFit, output_dir: Path = OUTPUT_DIR) -> Path:
    axes = az.plot_autocorr(fit.idata, var_names=_PARAMS, combined=True)
    fig = _figure(axes)
    fig.suptitle(f"{fit.name}: autocorrelation", fontsize=13, fontweight="bold")
    return _save(fig, output_dir / f"autocorr_{_slug(fit)}.png")


def plot_density(fit: ARFit, output_dir: Path = OUTPUT_DIR) -> Path:
    axes = az.plot_density(fit.idata, var_names=_PARAMS, hdi_prob=0.95)
    fig = _figure(axes)
    fig.suptitle(f"{fit.name}: posterior densities", fontsize=13, fontweight="bold")
    return _save(fig, output_dir / f"density_{_slug(fit)}.png")


def plot_pairs(fit: ARFit, output_dir: Path = OUTPUT_DIR) -> Path:
    axes = az.plot_pair(fit.idata, var_names=_PARAMS, kind="scatter", divergences=True)
    fig = _figure(axes)
    fig.suptitle(f"{fit.name}: pairs", fontsize=13, fontweight="bold")
    return _save(fig, output_dir / f"pairs_{_slug(fit)}.png")


def plot_shrink(fit: ARFit, output_dir: Path = OUTPUT_DIR) -> Path | None:
    """Gelman-Rubin shrink factor against iteration, one panel per parameter."""
    post = fit.idata.posterior
    if post.sizes["chain"] < 2:
        logger.info(f"{fit.name}: single chain, skipping shrink-factor plot")
        return None

    series: list[tuple[str, np.ndarray]] = [("intercept", post["intercept"].values)]
    phi = post["phi"].values
    for i in range(phi.shape[-1]):
        series.append((f"phi[{i + 1}]", phi[..., i]))
    series.append(("sigma", post["sigma"].values))

    n = len(series)
    n_cols = 2
    n_rows = (n + n_cols - 1) // n_cols
    fig, axes = plt.subplots(n_rows, n_cols, figsize=(12, 3.5 * n_rows))
    axes_flat = np.ravel(axes)

    for ax, (name, samples) in zip(axes_flat, series):
        iters, rhat = gelman_rubin_shrink(samples)
        ax.plot(iters, rhat, color="steelblue", lw=1.5)
        ax.axhline(1.0, color="k", lw=0.5, ls="--")
        ax.axhline(1.1, color="red", lw=0.5, ls=":", alpha=0.7)
        ax.set_xlabel("Last iteration in chain")
        ax.set_ylabel("Shrink factor")
        ax.set_title(name)

    for ax in axes_flat[n:]:
        ax.set_visible(False)

    fig.suptitle(f"{fit.name}: Gelman-Rubin shrink factor", fontsize=13, fontweight="bold")
    plt.tight_layout()
    return _save(fig, output_dir / f"shrink_{_slug(fit)}.png")


# =========================================================================
# Posterior predictive
# =========================================================================


def plot_replication(
    fit: ARFit,
    replication: Replication,
    dates: list | None = None,
    output_dir: Path = OUTPUT_DIR,
) -> Path:
    """Observed series against pointwise posterior-predictive bands."""
    y = fit.series
    x = dates[: y.size] if dates else np.arange(y.size)
    color = MODEL_COLORS.get(fit.order, "steelblue")

    fig, axes = plt.subplots(2, 1, figsize=(14, 9), sharex=True)

    ax = axes[0]
    ax.fill_between(x, replication.lower, replication.upper, alpha=0.25, color=color,
                    label="95% predictive band")
    ax.plot(x, replication.mean, color=color, lw=1.5, label="Replicated mean")
    ax.plot(x, y, color="black", lw=1, alpha=0.8, label="Observed")
    ax.set_title(f"{fit.name}: posterior-predictive replication")
    ax.legend(fontsize=8, loc="upper right")

    ax = axes[1]
    resid = np.nanmean(np.where(np.isfinite(replication.residuals), replication.residuals, np.nan), axis=0)
    ax.plot(x, resid, color="gray", lw=1)
    ax.axhline(0, color="k", lw=0.5, ls="--")
    ax.set_ylabel("Observed − replicated")
    ax.set_title("Mean replication residual")

    plt.tight_layout()
    return _save(fig, output_dir / f"replication_{_slug(fit)}.png")


# =========================================================================
# Forecasts
# =========================================================================


def plot_forecast(
    prepared: PreparedSeries,
    forecasts: dict[str, Forecast],
    n_history: int = 104,
    output_dir: Path = OUTPUT_DIR,
) -> Path:
    """Forecast fans in model units (top) and interest units (bottom)."""
    T = prepared.T
    start = max(0, T - n_history)
    hist_x = np.arange(start, T)

    fig, axes = plt.subplots(2, 1, figsize=(14, 10))
    colors = ["coral", "steelblue", "seagreen", "purple"]

    for ax, original in zip(axes, (False, True)):
        hist = prepared.raw[start:] if original else prepared.values[start:]
        ax.plot(hist_x, hist, color="black", lw=1, label="Observed")

        for k, (label, fc) in enumerate(forecasts.items()):
            paths = to_original_units(prepared, fc.paths, fc.start) if original else fc.paths
            fx = fc.start + np.arange(fc.horizon)
            with np.errstate(invalid="ignore"):
                mean = np.nanmean(np.where(np.isfinite(paths), paths, np.nan), axis=0)
                lo, hi = np.nanquantile(
                    np.where(np.isfinite(paths), paths, np.nan), [0.025, 0.975], axis=0
                )
            c = colors[k % len(colors)]
            ax.fill_between(fx, lo, hi, alpha=0.2, color=c)
            ax.plot(fx, mean, color=c, lw=2, ls="--", label=f"{label} (95% interval)")

        ax.axvline(T - 0.5, color="gray", ls=":", lw=1, alpha=0.7)
        ax.set_xlabel("Week index")
        ax.set_ylabel("Interest" if original else "Box-Cox scale")
        ax.set_title("Forecast, original units" if original else "Forecast, model scale")
        ax.legend(fontsize=8, loc="upper left")

    plt.tight_layout()
    return _save(fig, output_dir / "forecast.png")
