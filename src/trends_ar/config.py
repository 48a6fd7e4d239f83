# ---------------------------------------------------------------------------
# trends_ar.config — Paths, analysis constants, and prior specification
# ---------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

BASE_DIR = Path(__file__).resolve().parents[2]  # repo root
DATA_DIR = BASE_DIR / "data"
OUTPUT_DIR = BASE_DIR / "output"

DEFAULT_DATA_FILE = DATA_DIR / "trends_weekly.csv"

# ---------------------------------------------------------------------------
# Analysis constants
# ---------------------------------------------------------------------------

# Weekly data with an annual cycle
SEASONAL_PERIOD = 52

# Candidate autoregressive orders
AR_ORDERS: tuple[int, ...] = (1, 2, 3)

# Forecast horizon (weeks) and number of posterior draws used for forecasting
FORECAST_HORIZON = 12
N_FORECAST_DRAWS = 1000

RANDOM_SEED = 42

# Two-sided credible level: intervals are [alpha/2, 1 - alpha/2]
CREDIBLE_ALPHA = 0.05

# Simulated values beyond this magnitude are flagged as divergent
EXPLOSIVE_BOUND = 1e6

# Convergence thresholds used for warnings
RHAT_MAX = 1.01
ESS_MIN = 400

# Plot colours
MODEL_COLORS = {
    1: "#1f77b4",  # blue
    2: "#d62728",  # red
    3: "#2ca02c",  # green
}


# ---------------------------------------------------------------------------
# Prior specification
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ARPriors:
    """Prior family shared by every AR(p) candidate.

    Normal priors are given in precision form (``tau = 1 / variance``).

    Parameters
    ----------
    intercept_mu, intercept_tau : float
        Intercept ~ Normal(mu, 1/tau).  Default precision 0.01 (variance 100).
    coef_mu, coef_tau : float
        Each lag coefficient ~ Normal(mu, 1/tau).  Default precision 4
        (variance 0.25).
    sigma_lower, sigma_upper : float
        Noise standard deviation ~ Uniform(lower, upper).
    """

    intercept_mu: float = 0.0
    intercept_tau: float = 0.01
    coef_mu: float = 0.0
    coef_tau: float = 4.0
    sigma_lower: float = 0.0
    sigma_upper: float = 10.0

    def __post_init__(self) -> None:
        if self.intercept_tau <= 0 or self.coef_tau <= 0:
            raise ValueError(
                f"Prior precisions must be positive. Got intercept_tau="
                f"{self.intercept_tau}, coef_tau={self.coef_tau}"
            )
        if not 0 <= self.sigma_lower < self.sigma_upper:
            raise ValueError(
                f"Need 0 <= sigma_lower < sigma_upper. Got "
                f"[{self.sigma_lower}, {self.sigma_upper}]"
            )


DEFAULT_PRIORS = ARPriors()
