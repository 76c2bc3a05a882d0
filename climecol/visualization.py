#!/usr/bin/env python
"""
visualization.py
================

Plots for cleaned weather, seasonal fits and rainfall scenarios.

The computational modules never draw; these functions only consume their
outputs:
1. Daily rainfall bars, optionally one panel per year
2. Day-of-year means with every fitted seasonal curve
3. Rainfall scenarios as monthly totals

Usage:
    from climecol.visualization import plot_seasonal_fit

    ax = plot_seasonal_fit(result)
    ax.figure.savefig("reports/seasonal_fit.png")

Author: climecol Team
"""

from __future__ import annotations

import logging
from typing import Optional

import pandas as pd
import matplotlib.pyplot as plt

from .models.registry import PREDICTOR
from .models.seasonal_fit import SeasonalFitResult
from .utils import validate_dataframe

plt.rcParams.update({
    "figure.dpi": 150,
    "font.size": 11,
    "axes.titlesize": 13,
    "axes.labelsize": 11,
    "legend.fontsize": 10,
    "figure.facecolor": "white",
    "axes.facecolor": "white",
    "savefig.bbox": "tight",
})

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

COLORS = {
    "rain": "#3498db",     # Blue
    "observed": "#7f8c8d", # Dark gray
    "baseline": "#2c3e50",
    "dry": "#e67e22",      # Orange
    "wet": "#2980b9",
    "erratic": "#8e44ad",  # Purple
}

_CURVE_COLORS = ["#e74c3c", "#2ecc71", "#9b59b6", "#f39c12", "#1abc9c"]


# =============================================================================
# 1. RAINFALL
# =============================================================================

def plot_rainfall(
    df: pd.DataFrame,
    color: str = COLORS["rain"],
    linewidth: float = 0.6,
    facet_by_year: bool = False,
) -> plt.Figure:
    """
    Daily rainfall as vertical bars.

    Parameters
    ----------
    df : pd.DataFrame
        Table with ``date`` and ``rain_mm``.
    color : str
        Bar colour.
    linewidth : float
        Bar width in points.
    facet_by_year : bool
        One panel per calendar year, stacked vertically.

    Returns
    -------
    plt.Figure
    """
    validate_dataframe(df, ["date", "rain_mm"], context="plot_rainfall")

    data = df[["date", "rain_mm"]].copy()
    data["date"] = pd.to_datetime(data["date"])
    data = data.dropna().sort_values("date")

    years = sorted(data["date"].dt.year.unique()) if facet_by_year else [None]
    fig, axes = plt.subplots(
        len(years) or 1, 1, figsize=(12, 2.5 * max(len(years), 1) + 1), squeeze=False
    )

    for ax, year in zip(axes[:, 0], years):
        subset = data if year is None else data[data["date"].dt.year == year]
        ax.vlines(subset["date"], 0, subset["rain_mm"], color=color, linewidth=linewidth)
        ax.set_ylabel("Rain (mm)")
        ax.set_ylim(bottom=0)
        if year is not None:
            ax.set_title(str(year), loc="left")
        ax.grid(True, alpha=0.3)

    axes[-1, 0].set_xlabel("Date")
    fig.suptitle("Daily rainfall")
    fig.tight_layout()
    return fig


# =============================================================================
# 2. SEASONAL FITS
# =============================================================================

def plot_seasonal_fit(
    result: SeasonalFitResult,
    title: Optional[str] = None,
    ax: Optional[plt.Axes] = None,
) -> plt.Axes:
    """Day-of-year means as points with each fitted curve overlaid."""
    if ax is None:
        fig, ax = plt.subplots(figsize=(12, 5))

    daily = result.daily_average
    ax.scatter(
        daily[PREDICTOR], daily[result.response_col],
        s=8, color=COLORS["observed"], alpha=0.6, label="Day-of-year mean",
    )

    for i, name in enumerate(result.model_names):
        fit = result.fits[name]
        ax.plot(
            daily[PREDICTOR], daily[result.fitted_column(name)],
            color=_CURVE_COLORS[i % len(_CURVE_COLORS)], linewidth=2,
            label=f"{name} (AIC {fit.aic:.1f}, R² {fit.r2:.3f})",
        )

    ax.set_xlabel("Day of year")
    ax.set_ylabel(result.response_col)
    ax.set_xlim(1, 366)
    ax.set_title(title or f"Seasonal fit: {result.response_col}")
    ax.legend(loc="best")
    ax.grid(True, alpha=0.3)
    return ax


# =============================================================================
# 3. RAINFALL SCENARIOS
# =============================================================================

def plot_rainfall_scenarios(
    series: pd.DataFrame,
    ax: Optional[plt.Axes] = None,
) -> plt.Axes:
    """Monthly totals per scenario from ``simulate_rainfall_scenarios`` output."""
    validate_dataframe(series, ["date", "scenario", "rain_mm"], context="plot_rainfall_scenarios")
    if ax is None:
        fig, ax = plt.subplots(figsize=(12, 5))

    monthly = (
        series.assign(period=pd.to_datetime(series["date"]).dt.to_period("M").dt.to_timestamp())
        .groupby(["scenario", "period"], observed=True)["rain_mm"]
        .sum()
        .reset_index()
    )

    for scenario, group in monthly.groupby("scenario", observed=True, sort=False):
        ax.plot(
            group["period"], group["rain_mm"],
            marker="o", markersize=3, linewidth=1.5,
            color=COLORS.get(str(scenario)), label=str(scenario),
        )

    ax.set_xlabel("Month")
    ax.set_ylabel("Monthly rain (mm)")
    ax.set_title("Rainfall scenarios")
    ax.legend(loc="best")
    ax.grid(True, alpha=0.3)
    return ax
