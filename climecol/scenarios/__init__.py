"""
climecol/scenarios/__init__.py

Temperature shift and rainfall resampling scenarios.
"""

from .rainfall import (
    KNOWN_SCENARIOS,
    sample_rainfall_by_month,
    simulate_rainfall_scenarios,
    summarise_rainfall_monthly,
)
from .temperature import shift_label, simulate_temp_shifts

__all__ = [
    "KNOWN_SCENARIOS",
    "sample_rainfall_by_month",
    "simulate_rainfall_scenarios",
    "summarise_rainfall_monthly",
    "shift_label",
    "simulate_temp_shifts",
]
