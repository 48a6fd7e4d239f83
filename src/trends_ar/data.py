# ---------------------------------------------------------------------------
# trends_ar.data — Loading and validation of the weekly Trends series
# ---------------------------------------------------------------------------
"""Load a weekly Google Trends export (``date`` / ``interest`` columns) and
fail fast on anything that is not a clean, gap-free weekly series."""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path

import numpy as np
import polars as pl

from .config import DEFAULT_DATA_FILE

logger = logging.getLogger(__name__)

_WEEK = timedelta(days=7)


def load_trends(
    path: str | Path | None = None,
    date_col: str = "date",
    value_col: str = "interest",
) -> dict:
    """Read and validate the weekly interest series.

    Parameters
    ----------
    path : str or Path, optional
        CSV file.  Defaults to ``config.DEFAULT_DATA_FILE``.
    date_col : str
        Column holding ISO dates (``YYYY-MM-DD``).
    value_col : str
        Column holding the non-negative interest values.

    Returns
    -------
    dict
        ``frame`` (polars DataFrame with ``date`` and ``interest``),
        ``dates`` (list of ``date``), ``interest`` (read-only float array)
        and ``T``.

    Raises
    ------
    ValueError
        If the file is missing, a column is absent, a date or value cannot
        be parsed, a value is negative, or the dates are not consecutive
        weeks in increasing order.
    """
    path = Path(path) if path is not None else DEFAULT_DATA_FILE
    if not path.exists():
        raise ValueError(f"Data file not found: {path}")

    raw = pl.read_csv(str(path), infer_schema_length=0)  # all columns as strings
    missing = {date_col, value_col} - set(raw.columns)
    if missing:
        raise ValueError(
            f"{path.name}: missing required columns {sorted(missing)}; "
            f"found {raw.columns}"
        )

    frame = validate_trends(raw.select([date_col, value_col]), date_col, value_col)

    dates = frame["date"].to_list()
    interest = frame["interest"].to_numpy().astype(float)
    interest.setflags(write=False)

    logger.info(
        f"Loaded {len(dates)} weekly observations ({dates[0]} → {dates[-1]}) "
        f"from {path.name}"
    )
    return dict(frame=frame, dates=dates, interest=interest, T=len(dates))


def validate_trends(
    raw: pl.DataFrame,
    date_col: str = "date",
    value_col: str = "interest",
) -> pl.DataFrame:
    """Parse string columns into a typed ``date`` / ``interest`` frame.

    Raises ``ValueError`` describing the first offending row.
    """
    if raw.height == 0:
        raise ValueError("Data file contains no rows")

    parsed = raw.with_row_index("row").with_columns(
        pl.col(date_col).str.strip_chars().str.to_date("%Y-%m-%d", strict=False).alias("_date"),
        pl.col(value_col).str.strip_chars().cast(pl.Float64, strict=False).alias("_value"),
    )

    bad_dates = parsed.filter(pl.col("_date").is_null())
    if bad_dates.height > 0:
        row = bad_dates.row(0, named=True)
        raise ValueError(
            f"Unparsable or missing date {row[date_col]!r} at row {row['row'] + 1} "
            f"({bad_dates.height} bad date(s) in total)"
        )

    bad_values = parsed.filter(pl.col("_value").is_null() | pl.col("_value").is_nan())
    if bad_values.height > 0:
        row = bad_values.row(0, named=True)
        raise ValueError(
            f"Non-numeric or missing {value_col} value {row[value_col]!r} at row "
            f"{row['row'] + 1} ({bad_values.height} bad value(s) in total)"
        )

    negative = parsed.filter(pl.col("_value") < 0)
    if negative.height > 0:
        row = negative.row(0, named=True)
        raise ValueError(
            f"Negative {value_col} value {row['_value']} at row {row['row'] + 1}"
        )

    frame = parsed.select(pl.col("_date").alias("date"), pl.col("_value").alias("interest"))
    dates = frame["date"].to_list()
    for i in range(1, len(dates)):
        step = dates[i] - dates[i - 1]
        if step <= timedelta(0):
            raise ValueError(
                f"Dates must be strictly increasing: {dates[i - 1]} followed by "
                f"{dates[i]} at row {i + 1}"
            )
        if step != _WEEK:
            raise ValueError(
                f"Expected weekly spacing, found a {step.days}-day gap between "
                f"{dates[i - 1]} and {dates[i]} at row {i + 1}"
            )

    return frame


def summarize_series(values: np.ndarray) -> dict:
    """Descriptive statistics for the report header."""
    values = np.asarray(values, dtype=float)
    return {
        "n": int(values.size),
        "mean": float(values.mean()),
        "sd": float(values.std(ddof=1)) if values.size > 1 else 0.0,
        "min": float(values.min()),
        "max": float(values.max()),
    }
