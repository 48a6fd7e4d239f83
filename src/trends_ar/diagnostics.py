# ---------------------------------------------------------------------------
# trends_ar.diagnostics — Convergence statistics and printed summaries
# ---------------------------------------------------------------------------
from __future__ import annotations

from typing import TYPE_CHECKING

import arviz as az
import numpy as np

from .config import ESS_MIN, RHAT_MAX

if TYPE_CHECKING:
    from .sampling import ARFit


# =========================================================================
# Convergence table
# =========================================================================


def convergence_table(idata: az.InferenceData, var_names: list[str]) -> dict[str, dict]:
    """R-hat, bulk/tail ESS and MCSE of the mean per parameter element.

    Keys follow the ArviZ labelling (``phi[1]``, ``phi[2]``, ...).  R-hat
    is NaN when only one chain was run.
    """
    summary = az.summary(idata, var_names=var_names, kind="diagnostics")
    table: dict[str, dict] = {}
    for name, row in summary.iterrows():
        table[str(name)] = {
            "r_hat": float(row["r_hat"]),
            "ess_bulk": float(row["ess_bulk"]),
            "ess_tail": float(row["ess_tail"]),
            "mcse_mean": float(row["mcse_mean"]),
        }
    return table


def convergence_warnings(
    table: dict[str, dict],
    rhat_max: float = RHAT_MAX,
    ess_min: float = ESS_MIN,
) -> list[str]:
    """Human-readable list of parameters failing the convergence thresholds."""
    messages: list[str] = []
    for name, row in table.items():
        if np.isfinite(row["r_hat"]) and row["r_hat"] > rhat_max:
            messages.append(f"{name}: R-hat = {row['r_hat']:.4f} > {rhat_max}")
        if row["ess_bulk"] < ess_min:
            messages.append(f"{name}: ESS_bulk = {row['ess_bulk']:.0f} < {ess_min}")
    return messages


# =========================================================================
# Gelman-Rubin shrink factor
# =========================================================================


def gelman_rubin_shrink(
    samples: np.ndarray,
    n_bins: int = 50,
    min_draws: int = 50,
) -> tuple[np.ndarray, np.ndarray]:
    """Potential scale reduction factor over growing chain prefixes.

    Parameters
    ----------
    samples : np.ndarray
        Draws of one scalar parameter, shape ``(chains, draws)``.
    n_bins : int
        Number of prefix lengths evaluated.
    min_draws : int
        Shortest prefix.

    Returns
    -------
    iterations, rhat : np.ndarray
        Prefix lengths and the classic (non-split) R-hat at each.
    """
    samples = np.asarray(samples, dtype=float)
    if samples.ndim != 2 or samples.shape[0] < 2:
        raise ValueError(
            f"Shrink factor needs draws shaped (chains >= 2, draws); got {samples.shape}"
        )
    n_draws = samples.shape[1]
    start = min(min_draws, n_draws)
    iterations = np.unique(np.linspace(start, n_draws, n_bins).astype(int))
    rhat = np.array(
        [
            float(np.asarray(az.rhat(samples[:, :end], method="identity")).reshape(-1)[0])
            for end in iterations
        ]
    )
    return iterations, rhat


# =========================================================================
# Printed summary
# =========================================================================


def print_diagnostics(fit: ARFit, summary: dict[str, dict] | None = None) -> None:
    """Print sampling diagnostics and the parameter summary for one fit."""
    print("=" * 72)
    print(f"SAMPLING DIAGNOSTICS: {fit.name}")
    print("=" * 72)
    print(f"Divergences: {fit.n_divergent}")

    hdr = f"{'Parameter':<12} {'R-hat':>8} {'ESS bulk':>10} {'ESS tail':>10} {'MCSE':>10}"
    print(hdr)
    print("-" * len(hdr))
    for name, row in fit.diagnostics.items():
        print(
            f"{name:<12} {row['r_hat']:>8.4f} {row['ess_bulk']:>10.0f} "
            f"{row['ess_tail']:>10.0f} {row['mcse_mean']:>10.5f}"
        )

    warnings = convergence_warnings(fit.diagnostics)
    if warnings:
        print("\n** WARNING: convergence thresholds not met:")
        for msg in warnings:
            print(f"    {msg}")
    else:
        print(f"\nAll parameters converged (R-hat <= {RHAT_MAX}, ESS_bulk >= {ESS_MIN})")

    if summary is not None:
        print("\n" + "=" * 72)
        print(f"PARAMETER SUMMARY: {fit.name}")
        print("=" * 72)
        print(
            f"{'Parameter':<12} {'Mean':>9} {'Median':>9} "
            f"{'95% CI':>20} {'95% HPD':>20}"
        )
        for name, s in summary.items():
            print(
                f"{name:<12} {s['mean']:>9.4f} {s['median']:>9.4f} "
                f"[{s['ci_low']:>8.4f}, {s['ci_high']:>8.4f}] "
                f"[{s['hpd_low']:>8.4f}, {s['hpd_high']:>8.4f}]"
            )
