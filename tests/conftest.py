"""Shared fixtures for the trends_ar tests."""

from datetime import date, timedelta

import matplotlib

matplotlib.use('Agg')

import numpy as np
import pytest


def simulate_ar(intercept, coefs, sigma, n, seed=0, burn=200):
    """Stationary AR(p) sample of length *n* (after *burn* discarded steps)."""
    rng = np.random.default_rng(seed)
    coefs = np.asarray(coefs, dtype=float)
    p = coefs.size
    mean = intercept / (1.0 - coefs.sum())
    y = np.full(n + burn + p, mean)
    eps = rng.standard_normal(y.size) * sigma
    for t in range(p, y.size):
        y[t] = intercept + coefs @ y[t - p:t][::-1] + eps[t]
    return y[burn + p:]


def weekly_dates(n, start=date(2019, 1, 6)):
    return [start + timedelta(days=7 * i) for i in range(n)]


def seasonal_interest(n=208, seed=1):
    """Synthetic weekly interest: annual cycle, mild trend, AR(1) noise."""
    t = np.arange(n)
    noise = simulate_ar(0.0, [0.5], 2.0, n, seed=seed)
    return 40 + 10 * np.sin(2 * np.pi * t / 52) + 0.05 * t + noise


@pytest.fixture
def ar1_series():
    return simulate_ar(0.5, [0.6], 1.0, 200, seed=11)


@pytest.fixture
def ar2_series():
    return simulate_ar(0.2, [0.5, 0.3], 1.0, 300, seed=5)


@pytest.fixture
def interest_values():
    return seasonal_interest()


@pytest.fixture
def write_csv(tmp_path):
    """Write ``(date, value)`` rows to a CSV in tmp_path and return the path."""

    def _write(rows, header='date,interest', name='trends.csv'):
        path = tmp_path / name
        lines = [header] + [f'{d},{v}' for d, v in rows]
        path.write_text('\n'.join(lines) + '\n')
        return path

    return _write
