# ---------------------------------------------------------------------------
# trends_ar.residuals — Residual normality / whiteness tests and plots
# ---------------------------------------------------------------------------
from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from scipy import stats
from statsmodels.stats.diagnostic import acorr_ljungbox

from .config import OUTPUT_DIR


def residual_tests(residuals: np.ndarray, lags: int = 10) -> dict[str, float]:
    """Shapiro-Wilk normality and Ljung-Box autocorrelation tests.

    Residuals should be approximately iid N(0,1) if the model is
    well-specified; small p-values point to misfit.
    """
    r = np.asarray(residuals, dtype=float)
    r = r[np.isfinite(r)]
    if r.size <= lags + 1:
        raise ValueError(f"Need more than {lags + 1} finite residuals, got {r.size}")

    shapiro = stats.shapiro(r)
    lb = acorr_ljungbox(r, lags=[lags], return_df=True)
    return {
        "n": int(r.size),
        "mean": float(r.mean()),
        "sd": float(r.std(ddof=1)),
        "shapiro_stat": float(shapiro.statistic),
        "shapiro_pvalue": float(shapiro.pvalue),
        "ljung_box_lag": lags,
        "ljung_box_stat": float(lb["lb_stat"].iloc[0]),
        "ljung_box_pvalue": float(lb["lb_pvalue"].iloc[0]),
    }


def plot_residuals(
    residuals: np.ndarray,
    label: str,
    dates: list | None = None,
    output_dir: Path = OUTPUT_DIR,
) -> Path:
    """Standardised residuals over time plus a normal QQ plot."""
    r = np.asarray(residuals, dtype=float)
    x = dates[-r.size:] if dates else np.arange(r.size)

    fig, axes = plt.subplots(1, 2, figsize=(14, 4.5), gridspec_kw={"width_ratios": [2, 1]})

    ax = axes[0]
    ax.scatter(x, r, s=8, c="steelblue", alpha=0.6)
    ax.axhline(0, color="k", lw=0.5, ls="--")
    ax.axhline(2, color="red", lw=0.5, ls=":", alpha=0.5)
    ax.axhline(-2, color="red", lw=0.5, ls=":", alpha=0.5)
    ax.set_ylabel("Std. residual")
    ax.set_title(f"{label}: one-step residuals")

    ax = axes[1]
    (osm, osr), (slope, intercept, _) = stats.probplot(r[np.isfinite(r)], dist="norm")
    ax.scatter(osm, osr, s=8, c="steelblue", alpha=0.6)
    ax.plot(osm, slope * np.asarray(osm) + intercept, "r-", lw=1)
    ax.set_xlabel("Theoretical quantiles")
    ax.set_ylabel("Ordered residuals")
    ax.set_title("Normal QQ")

    fig.suptitle(
        "Standardised Residuals (should be approx. N(0,1))",
        fontsize=13, fontweight="bold",
    )
    plt.tight_layout()
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"residuals_{label.lower().replace('(', '').replace(')', '')}.png"
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return path
