# climecol - daily weather cleaning and seasonal curve fitting
# for ecological and epidemiological driver data

"""
climecol - Daily Weather Cleaning & Seasonal Fitting

This package turns raw daily weather exports into quality-controlled,
gap-filled climate drivers and smooth seasonal curves.

Modules:
    config: Centralized configuration (thresholds, column names, defaults)
    data_pipeline: CSV reading, column normalization, export, cleaning pipeline
    preprocessing: Calendar completion, gap summaries, bounded imputation
    validation: Physical plausibility checks
    models: Seasonal curve registry, nonlinear fitting, photoperiod
    scenarios: Temperature shifts and rainfall resampling
    visualization: Matplotlib renderers (imported separately)

Usage:
    from climecol import (
        read_weather_csv, complete_daily_calendar, impute_weather,
        validate_weather, fit_seasonal_temp, simulate_temp_shifts,
    )

    df = read_weather_csv("data/st_johns_daily.csv")
    df_full = complete_daily_calendar(df)
    df_filled = impute_weather(df_full, method="linear", max_gap=3)
    report = validate_weather(df)
    fit = fit_seasonal_temp(df_filled)
    scenarios = simulate_temp_shifts(fit, deltas=[1, 2, 3])

Version: 0.1.0
Author: climecol Team
"""

__version__ = "0.1.0"
__author__ = "climecol Team"

# Expose key classes and functions at package level
from .config import PipelineConfig, DEFAULT_CONFIG
from .data_pipeline import (
    default_weather_mapping,
    export_weather,
    normalize_weather_names,
    read_weather_csv,
    run_data_pipeline,
)
from .preprocessing import complete_daily_calendar, impute_weather, missing_mask, summarise_gaps
from .validation import ValidationReport, validate_weather
from .models import (
    CustomModel,
    SeasonalFitResult,
    daylength_f95,
    fit_seasonal_photo,
    fit_seasonal_temp,
    photoperiod_sites,
    photoperiod_year,
)
from .scenarios import (
    sample_rainfall_by_month,
    simulate_rainfall_scenarios,
    simulate_temp_shifts,
    summarise_rainfall_monthly,
)

__all__ = [
    "__version__",
    "PipelineConfig",
    "DEFAULT_CONFIG",
    "default_weather_mapping",
    "export_weather",
    "normalize_weather_names",
    "read_weather_csv",
    "run_data_pipeline",
    "complete_daily_calendar",
    "impute_weather",
    "missing_mask",
    "summarise_gaps",
    "ValidationReport",
    "validate_weather",
    "CustomModel",
    "SeasonalFitResult",
    "daylength_f95",
    "fit_seasonal_photo",
    "fit_seasonal_temp",
    "photoperiod_sites",
    "photoperiod_year",
    "sample_rainfall_by_month",
    "simulate_rainfall_scenarios",
    "simulate_temp_shifts",
    "summarise_rainfall_monthly",
]
