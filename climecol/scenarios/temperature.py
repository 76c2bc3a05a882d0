"""
temperature.py
==============

Uniform warming scenarios from a fitted seasonal temperature curve.

Each scenario is the baseline curve shifted by a constant number of degrees,
labelled ``Temp+1C``, ``Temp+2C``, ... The baseline comes from the best (lowest
AIC) converged model or a named one, evaluated either on the fitted day-of-year
grid or on arbitrary dates.

Usage:
    from climecol.scenarios.temperature import simulate_temp_shifts

    long = simulate_temp_shifts(fit, deltas=[1, 2, 3])
    wide = simulate_temp_shifts(fit, dates=pd.date_range("2030-01-01", periods=365),
                                as_long=False)

Author: climecol Team
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from ..models.registry import PREDICTOR
from ..models.seasonal_fit import SeasonalFitResult
from ..utils import to_day

logger = logging.getLogger(__name__)


def shift_label(delta: float) -> str:
    """Scenario label for a shift of ``delta`` degrees, e.g. 'Temp+1C', 'Temp-0.5C'."""
    return f"Temp{delta:+g}C"


def _clean_deltas(deltas: Sequence[float]) -> List[float]:
    """Unique non-zero shifts in their original order."""
    cleaned: List[float] = []
    for d in deltas:
        d = float(d)
        if d != 0 and d not in cleaned:
            cleaned.append(d)
    return cleaned


def simulate_temp_shifts(
    fit: SeasonalFitResult,
    deltas: Sequence[float] = (1, 2, 3, 4, 5),
    model: str = "best",
    dates=None,
    as_long: bool = True,
) -> pd.DataFrame:
    """
    Baseline seasonal temperature plus uniformly shifted scenarios.

    Parameters
    ----------
    fit : SeasonalFitResult
        Output of ``fit_seasonal_temp``.
    deltas : sequence of float
        Shifts in °C. Zero and repeated values are dropped (zero is the
        baseline itself).
    model : str
        ``"best"`` for the lowest-AIC model, or the name of a converged model.
    dates : array-like of dates, optional
        Evaluate on these dates instead of the fitted day-of-year grid. The
        curve is linearly interpolated by day of year and clamped outside
        the fitted range.
    as_long : bool
        Long table (key, scenario, temp_c) or wide (key, baseline, one
        column per shift).

    Returns
    -------
    pd.DataFrame
        Keyed by ``date`` when ``dates`` is given, otherwise ``day_of_year``.

    Raises
    ------
    ValueError
        If the fit has no converged model, ``model`` is unknown, or no
        non-zero delta remains.
    """
    if not fit.fits:
        raise ValueError("simulate_temp_shifts: the fit result has no converged models")

    if model == "best":
        model_name = fit.best_model()
    elif model in fit.fits:
        model_name = model
    else:
        raise ValueError(
            f"simulate_temp_shifts: model {model!r} not found; available: {fit.model_names}"
        )

    shifts = _clean_deltas(deltas)
    if not shifts:
        raise ValueError("simulate_temp_shifts: deltas must contain at least one non-zero value")

    curve = fit.daily_average[[PREDICTOR, fit.fitted_column(model_name)]].sort_values(PREDICTOR)
    grid = curve[PREDICTOR].to_numpy(dtype=float)
    values = curve[fit.fitted_column(model_name)].to_numpy(dtype=float)

    if dates is not None:
        key = "date"
        keys = to_day(dates)
        baseline = np.interp(keys.dt.dayofyear.to_numpy(dtype=float), grid, values)
        keys = keys.to_numpy()
    else:
        key = PREDICTOR
        keys = grid.astype(int)
        baseline = values

    wide = pd.DataFrame({key: keys, "baseline": baseline})
    labels = [shift_label(d) for d in shifts]
    for label, d in zip(labels, shifts):
        wide[label] = baseline + d

    logger.info(
        f"Temperature scenarios from '{model_name}': {', '.join(labels)} "
        f"over {len(wide)} {key} values"
    )

    if not as_long:
        return wide

    long = wide.melt(id_vars=key, var_name="scenario", value_name="temp_c")
    long["scenario"] = pd.Categorical(
        long["scenario"], categories=["baseline"] + labels, ordered=True
    )
    return long
