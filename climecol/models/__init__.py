# climecol/models/__init__.py
"""
Seasonal curve models for daily weather drivers.

Modules:
    - registry: Built-in curves (sin1, sin2) and user-defined CustomModel
    - seasonal_fit: Nonlinear least-squares fitting of temperature / photoperiod
    - photoperiod: Forsythe (1995) daylength and built-in study sites

Example Usage:
    from climecol.models import fit_seasonal_temp, CustomModel
    result = fit_seasonal_temp(df, funcs=["sin1"])
"""

from .photoperiod import (
    PHOTOPERIOD_SITES,
    daylength_f95,
    normalize_location_key,
    photoperiod_sites,
    photoperiod_year,
    resolve_site,
)
from .registry import BUILTIN_MODELS, CustomModel, SeasonalModel
from .seasonal_fit import (
    SeasonalFit,
    SeasonalFitResult,
    fit_seasonal_photo,
    fit_seasonal_temp,
    mean_temperature,
)

__all__ = [
    "BUILTIN_MODELS",
    "CustomModel",
    "SeasonalModel",
    "SeasonalFit",
    "SeasonalFitResult",
    "fit_seasonal_temp",
    "fit_seasonal_photo",
    "mean_temperature",
    "PHOTOPERIOD_SITES",
    "daylength_f95",
    "normalize_location_key",
    "photoperiod_sites",
    "photoperiod_year",
    "resolve_site",
]
