"""
seasonal_fit.py
===============

Seasonal curve fitting for daily temperature and photoperiod.

The daily series is collapsed to a mean per day of year (1..366, leap day
kept as its own ordinal), then every requested curve is fitted
independently by nonlinear least squares. A curve that fails to converge is
reported with a warning and left out; the call only fails when no curve was
requested at all.

Usage:
    from climecol.models.seasonal_fit import fit_seasonal_temp
    from climecol.models.registry import CustomModel

    result = fit_seasonal_temp(
        df,
        funcs=["sin1", "sin2"],
        custom={"cos1": CustomModel("a + b*cos(2*pi*(day_of_year - c)/365)",
                                    {"a": 10, "b": 8, "c": 200})},
    )
    result.metrics            # model, AIC, R2, RMSE, n_params
    result.best_model()       # lowest AIC
    result.daily_average      # day_of_year, mean_temp, fitted_<name>...

Author: climecol Team
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.optimize import least_squares

from ..config import SeasonalFitConfig
from ..metrics import compute_fit_metrics
from ..utils import validate_dataframe
from .photoperiod import photoperiod_year
from .registry import BUILTIN_MODELS, PREDICTOR, SeasonalModel, as_custom_model

logger = logging.getLogger(__name__)

DEFAULT_FUNCS: Tuple[str, ...] = ("sin1", "sin2")


# =============================================================================
# Result Types
# =============================================================================

@dataclass(frozen=True)
class SeasonalFit:
    """
    One converged curve.

    Attributes
    ----------
    model : SeasonalModel
        The curve definition.
    params : dict
        Fitted parameter values.
    aic, r2, rmse : float
        Goodness of fit against the day-of-year means. ``r2`` is NaN when
        the means have zero variance.
    n_obs : int
        Number of day-of-year means used in the fit.
    """

    model: SeasonalModel
    params: Dict[str, float]
    aic: float
    r2: float
    rmse: float
    n_obs: int

    @property
    def name(self) -> str:
        return self.model.name

    def predict(self, day_of_year) -> np.ndarray:
        """Curve value at the given day(s) of year."""
        return self.model.evaluate(day_of_year, self.params)


@dataclass(frozen=True)
class SeasonalFitResult:
    """Output of ``fit_seasonal_temp`` / ``fit_seasonal_photo``."""

    daily_average: pd.DataFrame
    fits: Dict[str, SeasonalFit]
    metrics: pd.DataFrame
    response_col: str = "mean_temp"
    failed: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def model_names(self) -> List[str]:
        return list(self.fits)

    def fitted_column(self, name: str) -> str:
        return f"fitted_{name}"

    def best_model(self) -> str:
        """Name of the converged model with the lowest AIC."""
        if not self.fits:
            raise ValueError("No converged models in this fit result")
        return min(self.fits, key=lambda name: self.fits[name].aic)


class _FitFailure(RuntimeError):
    """A single curve did not produce a usable fit."""


# =============================================================================
# Helpers
# =============================================================================

def _daily_means(dates: pd.Series, values: pd.Series, response_col: str) -> pd.DataFrame:
    """Mean of ``values`` per day of year, nulls ignored."""
    frame = pd.DataFrame({
        PREDICTOR: pd.to_datetime(dates).dt.dayofyear,
        response_col: pd.to_numeric(values, errors="coerce"),
    }).dropna(subset=[PREDICTOR])
    daily = frame.groupby(PREDICTOR, sort=True)[response_col].mean().reset_index()
    daily[PREDICTOR] = daily[PREDICTOR].astype(int)
    return daily


def _resolve_models(
    funcs: Optional[Sequence[str]],
    custom: Optional[Mapping[str, Any]],
    response_col: str,
) -> List[Tuple[str, Any]]:
    """Requested models as (name, SeasonalModel | CustomModel), built-ins first."""
    funcs = list(DEFAULT_FUNCS if funcs is None else funcs)

    unknown = [f for f in funcs if f not in BUILTIN_MODELS]
    if unknown:
        warnings.warn(
            f"Ignoring unknown built-in model(s): {', '.join(unknown)}",
            UserWarning,
            stacklevel=4,
        )

    requested: List[Tuple[str, Any]] = []
    for name in funcs:
        if name in BUILTIN_MODELS and name not in dict(requested):
            requested.append((name, BUILTIN_MODELS[name]))

    for name, spec in (custom or {}).items():
        if name in dict(requested):
            raise ValueError(f"Custom model name '{name}' clashes with a requested built-in model")
        requested.append((name, as_custom_model(name, spec)))

    if not requested:
        raise ValueError("No models to fit: request at least one built-in or custom model")
    return requested


def _fit_one(
    model: SeasonalModel,
    t: np.ndarray,
    y: np.ndarray,
    max_nfev: int,
) -> SeasonalFit:
    """Least-squares fit of one curve; raises _FitFailure when unusable."""
    if len(y) < model.n_params:
        raise _FitFailure(f"{len(y)} observations for {model.n_params} parameters")

    start = model.start(y)
    x0 = np.array([start[p] for p in model.param_names], dtype=float)

    def residuals(theta: np.ndarray) -> np.ndarray:
        return model.evaluate(t, dict(zip(model.param_names, theta))) - y

    with np.errstate(all="ignore"):
        if not np.all(np.isfinite(residuals(x0))):
            raise _FitFailure("non-finite residuals at the start values")

        solution = least_squares(residuals, x0, method="lm", max_nfev=max_nfev)
        if not solution.success:
            raise _FitFailure(solution.message)

        params = dict(zip(model.param_names, map(float, solution.x)))
        fitted = model.evaluate(t, params)

    if not (np.all(np.isfinite(solution.x)) and np.all(np.isfinite(fitted))):
        raise _FitFailure("non-finite parameters or predictions")

    stats = compute_fit_metrics(y, fitted, model.n_params)
    if not np.isfinite(stats["aic"]):
        raise _FitFailure("non-finite AIC")

    return SeasonalFit(
        model=model,
        params=params,
        aic=stats["aic"],
        r2=stats["r2"],
        rmse=stats["rmse"],
        n_obs=len(y),
    )


def _fit_seasonal(
    daily: pd.DataFrame,
    response_col: str,
    funcs: Optional[Sequence[str]],
    custom: Optional[Mapping[str, Any]],
    config: SeasonalFitConfig,
) -> SeasonalFitResult:
    """Fit every requested model to the day-of-year means in ``daily``."""
    requested = _resolve_models(funcs, custom, response_col)

    usable = daily[response_col].notna().to_numpy()
    t = daily[PREDICTOR].to_numpy(dtype=float)[usable]
    y = daily[response_col].to_numpy(dtype=float)[usable]

    fits: Dict[str, SeasonalFit] = {}
    failed: List[str] = []
    for name, spec in requested:
        try:
            model = spec if isinstance(spec, SeasonalModel) else spec.compile(name, response_col)
            fits[name] = _fit_one(model, t, y, config.max_nfev)
        except Exception as exc:  # user formulas may raise anything
            logger.debug(f"Model '{name}' failed: {exc}")
            warnings.warn(
                f"Model '{name}' failed to converge; skipping.",
                RuntimeWarning,
                stacklevel=3,
            )
            failed.append(name)
            continue
        logger.info(
            f"✓ Fitted {name}: AIC={fits[name].aic:.2f}, R²={fits[name].r2:.4f}"
        )

    daily_average = daily.copy()
    for name, fit in fits.items():
        daily_average[f"fitted_{name}"] = fit.predict(daily_average[PREDICTOR])

    metrics = pd.DataFrame(
        [
            {
                "model": name,
                "AIC": fit.aic,
                "R2": fit.r2,
                "RMSE": fit.rmse,
                "n_params": fit.model.n_params,
            }
            for name, fit in fits.items()
        ],
        columns=["model", "AIC", "R2", "RMSE", "n_params"],
    )

    return SeasonalFitResult(
        daily_average=daily_average,
        fits=fits,
        metrics=metrics,
        response_col=response_col,
        failed=tuple(failed),
    )


# =============================================================================
# Public API
# =============================================================================

def mean_temperature(df: pd.DataFrame) -> pd.Series:
    """
    Daily mean temperature per row.

    ``tavg_c`` when present (its nulls back-filled from the min/max mean when
    both bounds exist), otherwise the mean of ``tmin_c`` and ``tmax_c``
    ignoring nulls.

    Raises
    ------
    ValueError
        If neither ``tavg_c`` nor both ``tmin_c`` and ``tmax_c`` exist.
    """
    has_bounds = "tmin_c" in df.columns and "tmax_c" in df.columns
    if "tavg_c" not in df.columns and not has_bounds:
        raise ValueError("Input must contain tavg_c or both tmin_c and tmax_c")

    bounds_mean = None
    if has_bounds:
        bounds = df[["tmin_c", "tmax_c"]].apply(pd.to_numeric, errors="coerce")
        bounds_mean = bounds.mean(axis=1, skipna=True)

    if "tavg_c" in df.columns:
        mean = pd.to_numeric(df["tavg_c"], errors="coerce")
        if bounds_mean is not None:
            mean = mean.fillna(bounds_mean)
        return mean
    return bounds_mean


def fit_seasonal_temp(
    df: pd.DataFrame,
    funcs: Optional[Sequence[str]] = DEFAULT_FUNCS,
    custom: Optional[Mapping[str, Any]] = None,
    config: Optional[SeasonalFitConfig] = None,
    date_col: str = "date",
) -> SeasonalFitResult:
    """
    Fit seasonal curves to daily mean temperature.

    Parameters
    ----------
    df : pd.DataFrame
        Daily weather with ``date`` and ``tavg_c`` and/or ``tmin_c`` +
        ``tmax_c``. Multiple stations and years are pooled.
    funcs : sequence of str
        Built-in curves to fit (see ``BUILTIN_MODELS``). Unknown names are
        ignored with a warning.
    custom : mapping, optional
        ``name -> CustomModel`` (or ``(formula, start)`` / ``{"formula",
        "start"}``). Fitted after the built-ins, in insertion order.
    config : SeasonalFitConfig, optional
        Solver settings (``max_nfev``).

    Returns
    -------
    SeasonalFitResult
        ``daily_average`` (day_of_year, mean_temp, fitted_<name>), converged
        ``fits`` and a ``metrics`` table.

    Raises
    ------
    ValueError
        If the date or temperature columns are missing, or no model is
        requested.
    """
    config = config or SeasonalFitConfig()
    config.validate()
    validate_dataframe(df, [date_col], context="fit_seasonal_temp")

    temperature = mean_temperature(df)
    daily = _daily_means(df[date_col], temperature, "mean_temp")
    logger.info(
        f"Fitting seasonal temperature curves on {len(daily)} day-of-year means "
        f"from {len(df):,} rows"
    )
    return _fit_seasonal(daily, "mean_temp", funcs, custom, config)


def fit_seasonal_photo(
    df: Optional[pd.DataFrame] = None,
    location: Optional[str] = None,
    lat: Optional[float] = None,
    years: Optional[Sequence[int]] = None,
    funcs: Optional[Sequence[str]] = DEFAULT_FUNCS,
    custom: Optional[Mapping[str, Any]] = None,
    config: Optional[SeasonalFitConfig] = None,
) -> SeasonalFitResult:
    """
    Fit seasonal curves to daily photoperiod.

    Parameters
    ----------
    df : pd.DataFrame, optional
        Columns ``date`` and ``photoperiod_hours``. When omitted, the series
        is computed with ``photoperiod_year`` for ``years`` at ``location``
        or ``lat``.
    location : str, optional
        Built-in site name.
    lat : float, optional
        Latitude, used when no location is given.
    years : sequence of int, optional
        Years to generate; defaults to the last two completed years.
    funcs, custom, config
        As for ``fit_seasonal_temp``.

    Returns
    -------
    SeasonalFitResult
        Response column ``avg_photo``.
    """
    config = config or SeasonalFitConfig()
    config.validate()

    if df is None:
        if location is None and lat is None:
            raise ValueError("fit_seasonal_photo: provide df, location or lat")
        if years is None:
            this_year = date.today().year
            years = [this_year - 2, this_year - 1]
        df = pd.concat(
            [photoperiod_year(y, lat=lat, location=location) for y in years],
            ignore_index=True,
        ).rename(columns={"daylength_hours": "photoperiod_hours"})

    validate_dataframe(df, ["date", "photoperiod_hours"], context="fit_seasonal_photo")

    daily = _daily_means(df["date"], df["photoperiod_hours"], "avg_photo")
    logger.info(f"Fitting seasonal photoperiod curves on {len(daily)} day-of-year means")
    return _fit_seasonal(daily, "avg_photo", funcs, custom, config)
