"""
rainfall.py
===========

Stochastic daily rainfall from an observed record.

**APPROACH:**
Daily rainfall is too skewed and intermittent for a smooth seasonal curve, so
scenarios are built by resampling: every simulated day draws one observed
daily total from the same calendar month (pooled over stations and years).
Scenario variants then rescale the resampled baseline:

    baseline   resampled totals
    dry / wet  baseline * constant scale (default 0.5 / 1.5)
    erratic    baseline * U(low, high), one draw per simulated day

**REPRODUCIBILITY:**
A seed fixes the whole output. Baseline draws and erratic multipliers come
from two independent child streams of one ``numpy.random.SeedSequence``, so
the result does not depend on the order scenarios are listed in.

Usage:
    from climecol.scenarios.rainfall import simulate_rainfall_scenarios

    series = simulate_rainfall_scenarios(df, seed=42)
    series.pivot(index="date", columns="scenario", values="rain_mm")

Author: climecol Team
"""

from __future__ import annotations

import logging
import re
import warnings
from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..data_pipeline import normalize_weather_names
from ..utils import validate_dataframe

logger = logging.getLogger(__name__)

KNOWN_SCENARIOS = ("baseline", "dry", "wet", "erratic")
DEFAULT_SCALES: Dict[str, float] = {"dry": 0.5, "wet": 1.5}


# =============================================================================
# Helpers
# =============================================================================

def _as_dates(values, origin: str) -> pd.DatetimeIndex:
    """Dates from date-likes, or from integer day offsets after ``origin``."""
    arr = np.atleast_1d(np.asarray(values))
    if np.issubdtype(arr.dtype, np.number):
        return pd.Timestamp(origin) + pd.to_timedelta(arr.astype(int), unit="D")
    return pd.DatetimeIndex(pd.to_datetime(arr)).normalize()


def _rain_column(df: pd.DataFrame, rain_col: Optional[str]) -> str:
    if rain_col is not None:
        if rain_col not in df.columns:
            raise ValueError(f"Rain column {rain_col!r} not found; columns: {list(df.columns)}")
        return rain_col
    if "rain_mm" in df.columns:
        return "rain_mm"
    for col in df.columns:
        if re.search(r"rain|precip", str(col), flags=re.IGNORECASE):
            return col
    raise ValueError("No rain column found: expected rain_mm or a column matching 'rain|precip'")


def _month_of(df: pd.DataFrame) -> pd.Series:
    if "date" in df.columns and df["date"].notna().any():
        return pd.to_datetime(df["date"]).dt.month
    for col in ("Month", "month"):
        if col in df.columns:
            return pd.to_numeric(df[col], errors="coerce")
    raise ValueError("Cannot determine month: need a date or Month/month column")


def _monthly_pools(
    df: pd.DataFrame,
    rain_col: Optional[str],
    drop_na: bool,
) -> Dict[int, np.ndarray]:
    data = normalize_weather_names(df)
    col = _rain_column(data, rain_col)
    values = pd.to_numeric(data[col], errors="coerce")
    months = _month_of(data)

    pools = {}
    for month in range(1, 13):
        pool = values[months == month].to_numpy(dtype=float)
        if drop_na:
            pool = pool[~np.isnan(pool)]
        pools[month] = pool
    return pools


# =============================================================================
# Resampling
# =============================================================================

def sample_rainfall_by_month(
    dates,
    df: pd.DataFrame,
    rain_col: Optional[str] = None,
    drop_na: bool = True,
    na_as_zero: bool = True,
    replace: bool = True,
    origin: str = "2000-01-01",
    seed=None,
) -> np.ndarray:
    """
    Draw one observed daily rainfall value per target date from its month.

    Parameters
    ----------
    dates : array-like
        Target dates, or integer day offsets from ``origin``.
    df : pd.DataFrame
        Observed history. Column names are normalized first; months come
        from ``date`` or a ``Month``/``month`` column.
    rain_col : str, optional
        Rain column; default ``rain_mm``, else the first column matching
        ``rain|precip``.
    drop_na : bool
        Remove nulls from the monthly pools.
    na_as_zero : bool
        Return 0 instead of null for drawn nulls.
    replace : bool
        Draw with replacement. Without replacement a month's pool is used
        up first, then drawing continues with replacement.
    origin : str
        Origin for integer ``dates``.
    seed : int or SeedSequence, optional
        Seed for ``numpy.random.default_rng``.

    Returns
    -------
    np.ndarray
        One value per target date; 0 where the month has no observations.
    """
    targets = _as_dates(dates, origin)
    pools = _monthly_pools(df, rain_col, drop_na)
    rng = np.random.default_rng(seed)

    out = np.zeros(len(targets), dtype=float)
    target_months = targets.month.to_numpy()
    for month in range(1, 13):
        positions = np.flatnonzero(target_months == month)
        pool = pools[month]
        if len(positions) == 0:
            continue
        if len(pool) == 0:
            logger.debug(f"Empty rainfall pool for month {month}; using 0")
            continue
        if replace:
            out[positions] = pool[rng.integers(0, len(pool), size=len(positions))]
        else:
            n_unique = min(len(pool), len(positions))
            draws = rng.permutation(len(pool))[:n_unique]
            extra = rng.integers(0, len(pool), size=len(positions) - n_unique)
            out[positions] = pool[np.concatenate([draws, extra])]

    if na_as_zero:
        out = np.nan_to_num(out, nan=0.0)
    return out


# =============================================================================
# Scenarios
# =============================================================================

def simulate_rainfall_scenarios(
    df: pd.DataFrame,
    times=None,
    scenarios: Sequence[str] = KNOWN_SCENARIOS,
    scales: Optional[Mapping[str, float]] = None,
    erratic_range: Tuple[float, float] = (0.1, 2.0),
    origin: str = "2008-01-01",
    seed=None,
    rain_col: Optional[str] = None,
) -> pd.DataFrame:
    """
    Simulate daily rainfall under baseline, dry, wet and erratic scenarios.

    Parameters
    ----------
    df : pd.DataFrame
        Observed history with a date and a rain column.
    times : array-like, optional
        Simulation dates, or integer day offsets from ``origin``. Defaults
        to every day between the first and last observed date.
    scenarios : sequence of str
        Scenario labels. Unknown labels warn and reuse the baseline values.
    scales : mapping, optional
        Multipliers for ``dry`` and ``wet`` (defaults 0.5 and 1.5).
    erratic_range : (low, high)
        Range of the per-day uniform multiplier of ``erratic``.
    seed : int, optional
        Makes the whole output reproducible.

    Returns
    -------
    pd.DataFrame
        Long table: date, month, scenario, rain_mm.
    """
    data = normalize_weather_names(df)
    validate_dataframe(data, ["date"], context="simulate_rainfall_scenarios")
    col = _rain_column(data, rain_col)

    low, high = erratic_range
    if low > high:
        raise ValueError(f"erratic_range must be (low, high), got {erratic_range}")
    if not len(scenarios):
        raise ValueError("simulate_rainfall_scenarios: no scenarios requested")

    factors = dict(DEFAULT_SCALES)
    factors.update(scales or {})

    if times is None:
        observed = data["date"].dropna()
        if observed.empty:
            raise ValueError("simulate_rainfall_scenarios: no valid dates in df")
        sim_dates = pd.date_range(observed.min(), observed.max(), freq="D")
    else:
        sim_dates = _as_dates(times, origin)

    base_seed, erratic_seed = np.random.SeedSequence(seed).spawn(2)
    baseline = sample_rainfall_by_month(sim_dates, data, rain_col=col, seed=base_seed)
    multiplier = np.random.default_rng(erratic_seed).uniform(low, high, size=len(sim_dates))

    frames = []
    for name in scenarios:
        if name == "baseline":
            values = baseline
        elif name in ("dry", "wet"):
            values = baseline * factors[name]
        elif name == "erratic":
            values = baseline * multiplier
        else:
            warnings.warn(
                f"Unknown rainfall scenario {name!r}; using baseline values",
                UserWarning,
                stacklevel=2,
            )
            values = baseline
        frames.append(pd.DataFrame({
            "date": sim_dates,
            "month": sim_dates.month,
            "scenario": name,
            "rain_mm": values,
        }))

    series = pd.concat(frames, ignore_index=True)
    series["scenario"] = pd.Categorical(
        series["scenario"], categories=list(dict.fromkeys(scenarios)), ordered=True
    )
    logger.info(
        f"Simulated {len(sim_dates):,} days of rainfall for scenarios: {', '.join(scenarios)}"
    )
    return series


# =============================================================================
# Monthly totals
# =============================================================================

def summarise_rainfall_monthly(df: pd.DataFrame, rain_col: Optional[str] = None) -> pd.DataFrame:
    """
    Monthly rainfall totals with every month of the record present.

    Returns
    -------
    pd.DataFrame
        Year, Month, Rain_mm. Nulls are ignored in the sums; months with no
        rows at all get NaN.
    """
    data = normalize_weather_names(df)
    validate_dataframe(data, ["date"], context="summarise_rainfall_monthly")
    col = _rain_column(data, rain_col)

    data = data[data["date"].notna()]
    if data.empty:
        return pd.DataFrame(columns=["Year", "Month", "Rain_mm"])

    period = data["date"].dt.to_period("M")
    totals = pd.to_numeric(data[col], errors="coerce").groupby(period).sum()
    months = pd.period_range(period.min(), period.max(), freq="M")
    totals = totals.reindex(months)

    return pd.DataFrame({
        "Year": months.year,
        "Month": months.month,
        "Rain_mm": totals.to_numpy(dtype=float),
    })
