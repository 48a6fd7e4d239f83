# ---------------------------------------------------------------------------
# trends_ar.report — Markdown rendering of the analysis results
# ---------------------------------------------------------------------------
from __future__ import annotations

from pathlib import Path

import numpy as np


def _fmt(x: float, fmt: str = ".4f") -> str:
    return "NA" if x is None or not np.isfinite(x) else format(x, fmt)


def _parameter_table(summary: dict[str, dict]) -> list[str]:
    lines = [
        "| Parameter | Mean | Median | 95% CI | 95% HPD | MCSE | R-hat | ESS |",
        "|---|---:|---:|---|---|---:|---:|---:|",
    ]
    for name, s in summary.items():
        lines.append(
            f"| `{name}` | {_fmt(s['mean'])} | {_fmt(s['median'])} "
            f"| [{_fmt(s['ci_low'])}, {_fmt(s['ci_high'])}] "
            f"| [{_fmt(s['hpd_low'])}, {_fmt(s['hpd_high'])}] "
            f"| {_fmt(s['mcse'], '.5f')} | {_fmt(s['r_hat'])} | {_fmt(s['ess_bulk'], '.0f')} |"
        )
    return lines


def _forecast_table(steps: list[dict]) -> list[str]:
    lines = [
        "| Step | Mean | Median | 95% CI | 95% HPD |",
        "|---:|---:|---:|---|---|",
    ]
    for s in steps:
        lines.append(
            f"| {s['step']} | {_fmt(s['mean'], '.3f')} | {_fmt(s['median'], '.3f')} "
            f"| [{_fmt(s['ci_low'], '.3f')}, {_fmt(s['ci_high'], '.3f')}] "
            f"| [{_fmt(s['hpd_low'], '.3f')}, {_fmt(s['hpd_high'], '.3f')}] |"
        )
    return lines


def render_report(results: dict) -> str:
    """Render the result dict of :func:`trends_ar.analysis.run_analysis`."""
    prepared = results["prepared"]
    data = results["data"]
    st = prepared.stationarity

    lines: list[str] = ["# Bayesian AR analysis of weekly search interest", ""]

    # ----- Data -----
    lines += [
        "## Data",
        "",
        f"- Observations: {data['n']} weeks ({results['date_range'][0]} to "
        f"{results['date_range'][1]})",
        f"- Interest: mean {data['mean']:.2f}, sd {data['sd']:.2f}, "
        f"range [{data['min']:.0f}, {data['max']:.0f}]",
        f"- Seasonal period {prepared.period}; Box-Cox λ = {prepared.lmbda:.4f}, "
        f"shift = {prepared.shift:.4f}",
        f"- ADF statistic {st.statistic:.3f}, p = {st.pvalue:.4f} "
        f"({'stationary' if st.stationary else 'unit root not rejected'} at "
        f"α = {st.alpha})",
        "",
    ]

    # ----- Models -----
    lines += ["## Posterior estimates", ""]
    for order, summary in results["summaries"].items():
        fit = results["fits"][order]
        lines += [f"### AR({order})", "", f"Divergent transitions: {fit.n_divergent}", ""]
        prior = results.get("prior_checks", {}).get(order)
        if prior is not None:
            lines += [
                f"Prior predictive 90% range [{prior['prior_p05']:.3f}, {prior['prior_p95']:.3f}] "
                f"vs observed [{prior['obs_min']:.3f}, {prior['obs_max']:.3f}]",
                "",
            ]
        lines += _parameter_table(summary)
        lines.append("")
        warnings = results["warnings"].get(order, [])
        if warnings:
            lines += ["Convergence warnings:", ""] + [f"- {w}" for w in warnings] + [""]

        tests = results["tests"][order]
        lines += ["Point-null tests (H0: parameter = 0, 95% credible interval):", ""]
        for name, t in tests.items():
            lines.append(f"- `{name}`: {t['decision']}")
        lines.append("")

        if order in results.get("ppc", {}):
            lines += ["Posterior predictive p-values:", ""]
            for stat, row in results["ppc"][order].items():
                lines.append(f"- {stat}: observed {row['observed']:.3f}, p = {_fmt(row['pvalue'], '.3f')}")
            lines.append("")
        if order in results.get("residual_tests", {}):
            r = results["residual_tests"][order]
            lines += [
                f"Residuals: Shapiro-Wilk p = {r['shapiro_pvalue']:.4f}, "
                f"Ljung-Box({r['ljung_box_lag']}) p = {r['ljung_box_pvalue']:.4f}",
                "",
            ]

    # ----- DIC -----
    lines += [
        "## Model comparison (DIC)",
        "",
        "| Model | D̄ | D(θ̄) | pD | DIC | ΔDIC |",
        "|---|---:|---:|---:|---:|---:|",
    ]
    for row in results["dic"]:
        lines.append(
            f"| {row['model']} | {row['mean_deviance']:.2f} | {row['point_deviance']:.2f} "
            f"| {row['p_d']:.2f} | {row['dic']:.2f} | {row['delta_dic']:.2f} |"
        )
    lines.append("")

    loo = results.get("loo")
    if loo is not None:
        lines += [
            "## Model comparison (PSIS-LOO)",
            "",
            "| Model | Rank | elpd_loo | p_loo | Δelpd | Weight |",
            "|---|---:|---:|---:|---:|---:|",
        ]
        for model, row in loo.iterrows():
            lines.append(
                f"| {model} | {int(row['rank'])} | {row['elpd_loo']:.2f} | {row['p_loo']:.2f} "
                f"| {row['elpd_diff']:.2f} | {row['weight']:.3f} |"
            )
        lines.append("")

    # ----- Forecasts -----
    lines += ["## Forecasts", ""]
    for label, fc in results["forecasts"].items():
        lines += [f"### {label} (model scale, {fc.n_draws} draws)", ""]
        lines += _forecast_table(fc.steps)
        lines.append("")
        if label in results["forecasts_original"]:
            lines += [f"### {label} (interest units)", ""]
            lines += _forecast_table(results["forecasts_original"][label])
            lines.append("")

    baseline = results.get("baseline")
    if baseline is not None:
        lines += [
            f"## Frequentist baseline: ARIMA{baseline['order']}",
            "",
            f"AIC {baseline['aic']:.2f}, BIC {baseline['bic']:.2f}",
            "",
        ]
        for name, v in baseline["params"].items():
            lines.append(f"- `{name}`: {v:.4f}")
        lines.append("")

    plots = results.get("plots", [])
    if plots:
        lines += ["## Figures", ""]
        for p in plots:
            lines.append(f"![{Path(p).stem}]({Path(p).name})")
        lines.append("")

    return "\n".join(lines)


def write_report(results: dict, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_report(results), encoding="utf-8")
    return path
