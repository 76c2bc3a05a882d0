"""
preprocessing
=============

Calendar completion, gap classification and bounded imputation for daily
weather tables.

Modules:
    calendar: Contiguous daily calendar per station
    gaps: Missing-day predicate and coverage summaries
    imputation: Nearest / linear / spline gap filling

Usage:
    from climecol.preprocessing import (
        complete_daily_calendar,
        summarise_gaps,
        impute_weather,
    )

    df_full = complete_daily_calendar(df)
    coverage = summarise_gaps(df_full, by="month")
    df_filled = impute_weather(df_full, method="linear", max_gap=3)
"""

from .calendar import complete_daily_calendar
from .gaps import GapGrouping, missing_mask, summarise_gaps
from .imputation import ImputeMethod, impute_weather

__all__ = [
    "complete_daily_calendar",
    "GapGrouping",
    "missing_mask",
    "summarise_gaps",
    "ImputeMethod",
    "impute_weather",
]
