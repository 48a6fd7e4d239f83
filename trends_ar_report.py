#!/usr/bin/env python
# ---------------------------------------------------------------------------
# trends_ar_report.py — Thin runner for the trends_ar package
# ---------------------------------------------------------------------------
"""Bayesian AR(1)/AR(2)/AR(3) analysis of a weekly Google Trends series.

Usage:
    python trends_ar_report.py [path/to/trends.csv]
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

# Allow running from repo root without installing the package
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from trends_ar.analysis import run_analysis
from trends_ar.config import OUTPUT_DIR


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

    path = sys.argv[1] if len(sys.argv) > 1 else None
    results = run_analysis(path, output_dir=OUTPUT_DIR)

    print("\n" + "=" * 72)
    print("MODEL COMPARISON (DIC, lower is preferred)")
    print("=" * 72)
    for row in results["dic"]:
        print(
            f"  {row['model']:6}  DIC = {row['dic']:9.2f}  pD = {row['p_d']:5.2f}  "
            f"ΔDIC = {row['delta_dic']:6.2f}"
        )

    print("\n" + "=" * 72)
    print(f"Report: {results['report_path']}")
    print("=" * 72)


if __name__ == "__main__":
    main()
