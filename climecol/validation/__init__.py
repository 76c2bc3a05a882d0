"""
climecol/validation/__init__.py

Physical plausibility checks for daily weather tables.
"""

from .weather_checks import FLAG_KINDS, ValidationReport, validate_weather

__all__ = ["FLAG_KINDS", "ValidationReport", "validate_weather"]
