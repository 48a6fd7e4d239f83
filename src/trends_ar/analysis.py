# ---------------------------------------------------------------------------
# trends_ar.analysis — End-to-end analysis run
# ---------------------------------------------------------------------------
"""Load → preprocess → fit AR(1..3) → summarise → compare → forecast →
report.  Every stochastic step draws from one seeded generator."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from . import plots as plotting
from .baseline import fit_arima_baseline
from .checks import posterior_predictive_pvalues, run_prior_predictive_checks
from .compare import compare_loo, compare_models
from .config import (
    AR_ORDERS,
    CREDIBLE_ALPHA,
    FORECAST_HORIZON,
    N_FORECAST_DRAWS,
    OUTPUT_DIR,
    RANDOM_SEED,
    SEASONAL_PERIOD,
    ARPriors,
)
from .data import load_trends, summarize_series
from .diagnostics import convergence_warnings, print_diagnostics
from .model import build_ar_model
from .preprocess import prepare_series, to_original_units
from .report import write_report
from .residuals import plot_residuals, residual_tests
from .sampling import fit_ar
from .simulate import (
    forecast,
    forecast_in_sampler,
    one_step_residuals,
    replicate_in_sample,
    summarize_steps,
)
from .summary import point_null_table, summarize_fit

logger = logging.getLogger(__name__)


def run_analysis(
    path: str | Path | None = None,
    orders: tuple[int, ...] = AR_ORDERS,
    forecast_order: int = 2,
    horizon: int = FORECAST_HORIZON,
    priors: ARPriors | None = None,
    sampler_kwargs: dict | None = None,
    seed: int = RANDOM_SEED,
    n_forecast_draws: int | None = N_FORECAST_DRAWS,
    period: int = SEASONAL_PERIOD,
    alpha: float = CREDIBLE_ALPHA,
    output_dir: Path = OUTPUT_DIR,
    joint_forecast: bool = True,
    make_plots: bool = True,
    verbose: bool = True,
) -> dict:
    """Run the full analysis and write ``report.md`` to *output_dir*.

    Parameters
    ----------
    path : str or Path, optional
        Weekly interest CSV.  Defaults to ``config.DEFAULT_DATA_FILE``.
    orders : tuple of int
        Candidate AR orders.  All are conditioned on the same targets
        (from index ``max(orders)``) so their DICs are comparable.
    forecast_order : int
        Order used for forecasting.  Model choice stays with the reader;
        the DIC table is reported alongside.
    horizon : int
        Forecast steps (weeks).
    seed : int
        Seeds the sampler and the generator shared by replication,
        draw subsampling and forecasting.
    joint_forecast : bool
        Also forecast by sampling appended missing values, as a cross-check
        on the simulation forecast.

    Returns
    -------
    dict
        Everything rendered into the report.
    """
    if forecast_order not in orders:
        raise ValueError(f"forecast_order {forecast_order} is not among orders {orders}")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    rng = np.random.default_rng(seed)
    plots: list[Path] = []

    # 1. Data ------------------------------------------------------------------
    data = load_trends(path)
    prepared = prepare_series(data["interest"], period=period, dates=data["dates"])
    y = prepared.values

    # 2. Fit candidates --------------------------------------------------------
    first_target = max(orders)
    fits = {}
    summaries = {}
    tests = {}
    warnings = {}
    ppc = {}
    resid_tests = {}
    prior_checks = {}
    for order in orders:
        prior = run_prior_predictive_checks(
            build_ar_model(y, order, priors=priors, first_target=first_target), y, random_seed=seed
        )
        prior_checks[order] = {k: v for k, v in prior.items() if k != "draws"}

        fit = fit_ar(
            y, order, priors=priors, sampler_kwargs=sampler_kwargs,
            random_seed=seed, first_target=first_target,
        )
        fits[order] = fit
        summaries[order] = summarize_fit(fit, alpha)
        tests[order] = point_null_table(
            summaries[order], null={k: 0.0 for k in summaries[order] if k != "sigma"}
        )
        warnings[order] = convergence_warnings(fit.diagnostics)
        if verbose:
            print_diagnostics(fit, summaries[order])

        # 3. Posterior-predictive checks ---------------------------------------
        draws = fit.draws()
        replication = replicate_in_sample(y, draws.subsample(n_forecast_draws, rng), rng, alpha)
        ppc[order] = posterior_predictive_pvalues(replication, y)
        resid = one_step_residuals(y, draws)
        resid_tests[order] = residual_tests(resid)

        if make_plots:
            plots += [
                plotting.plot_trace(fit, output_dir),
                plotting.plot_autocorrelation(fit, output_dir),
                plotting.plot_density(fit, output_dir),
                plotting.plot_pairs(fit, output_dir),
                plotting.plot_replication(fit, replication, data["dates"], output_dir),
                plot_residuals(resid, fit.name, data["dates"], output_dir),
            ]
            shrink = plotting.plot_shrink(fit, output_dir)
            if shrink is not None:
                plots.append(shrink)

    # 4. Model comparison ------------------------------------------------------
    dic = compare_models(list(fits.values()))
    logger.info("DIC: " + ", ".join(f"{r['model']} {r['dic']:.2f}" for r in dic))
    loo = compare_loo(list(fits.values()))

    # 5. Forecasts -------------------------------------------------------------
    fit = fits[forecast_order]
    forecasts = {
        f"AR({forecast_order}) simulation": forecast(
            y, fit.draws(), horizon, rng, n_draws=n_forecast_draws, alpha=alpha
        )
    }
    if joint_forecast:
        joint, _ = forecast_in_sampler(
            y, forecast_order, horizon, priors=priors, sampler_kwargs=sampler_kwargs,
            random_seed=seed, alpha=alpha, first_target=first_target,
        )
        forecasts[f"AR({forecast_order}) in-sampler"] = joint

    forecasts_original = {
        label: summarize_steps(to_original_units(prepared, fc.paths, fc.start), alpha)
        for label, fc in forecasts.items()
    }

    baseline = fit_arima_baseline(y, order=(forecast_order, 0, 0), horizon=horizon, alpha=alpha)

    if make_plots:
        plots.insert(0, plotting.plot_decomposition(prepared, output_dir))
        plots.append(plotting.plot_forecast(prepared, forecasts, output_dir=output_dir))

    results = dict(
        data=summarize_series(data["interest"]),
        date_range=(data["dates"][0], data["dates"][-1]),
        prepared=prepared,
        fits=fits,
        summaries=summaries,
        tests=tests,
        warnings=warnings,
        prior_checks=prior_checks,
        ppc=ppc,
        residual_tests=resid_tests,
        dic=dic,
        loo=loo,
        forecasts=forecasts,
        forecasts_original=forecasts_original,
        baseline=baseline,
        plots=plots,
    )
    report_path = write_report(results, output_dir / "report.md")
    results["report_path"] = report_path
    logger.info(f"Report written to {report_path}")
    return results
