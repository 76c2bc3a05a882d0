"""
weather_checks.py
=================

Physical plausibility checks for daily weather tables.

**PURPOSE:**
Flag rows that cannot be right before they feed any model:
    1. Calendar holes (a station skipping days)
    2. Negative rain, snow or precipitation
    3. Daily totals above a configurable ceiling
    4. Maximum temperature below minimum, or outside plausible bounds
    5. Wind direction outside the compass
    6. Total precipitation smaller than its rain or snow-water component

Each check runs only when its columns exist, so partial tables (rain-only
stations, temperature-only loggers) validate cleanly. The engine never
modifies data; it returns a fresh ``ValidationReport`` per call.

**USAGE:**
    from climecol.validation import validate_weather

    report = validate_weather(df, rain_max=150, swe_ratio=12)
    print(report.summary.T)
    report.flags[report.flags["flag"] == "tmax_lt_tmin"]

Author: climecol Team
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..config import ValidationConfig
from ..utils import to_day, validate_dataframe

logger = logging.getLogger(__name__)


# Flag kinds, in the order the checks run
FLAG_KINDS: Tuple[str, ...] = (
    "missing_date",
    "negative_rain",
    "negative_snow",
    "negative_precip",
    "rain_gt_max",
    "snow_gt_max",
    "tmax_lt_tmin",
    "temp_out_of_range",
    "gust_dir_out_of_range",
    "precip_inconsistent",
)

_NEGATIVE_CHECKS = (
    ("rain_mm", "negative_rain"),
    ("snow_cm", "negative_snow"),
    ("precip_mm", "negative_precip"),
)


@dataclass(frozen=True)
class ValidationReport:
    """
    Result of one ``validate_weather`` call.

    Attributes
    ----------
    summary : pd.DataFrame
        Single-row table of counts per flag family plus the table span.
    flags : pd.DataFrame
        One row per flagged (row, flag kind): station, date, flag and the
        offending row's fields. Sorted by station then date.
    """

    summary: pd.DataFrame
    flags: pd.DataFrame

    @property
    def n_flags(self) -> int:
        return len(self.flags)

    @property
    def is_clean(self) -> bool:
        return self.flags.empty

    def counts(self) -> pd.Series:
        """Number of flags per kind, every kind listed."""
        counts = self.flags["flag"].value_counts() if not self.flags.empty else pd.Series(dtype=int)
        return counts.reindex(list(FLAG_KINDS), fill_value=0).astype(int)


# =============================================================================
# Individual checks
# =============================================================================

def _missing_dates(df: pd.DataFrame, entity_col: str, date_col: str) -> pd.DataFrame:
    """Days absent from each station's observed min..max daily calendar."""
    frames = []
    for entity, dates in df.groupby(entity_col, sort=True)[date_col]:
        dates = dates.dropna()
        if dates.empty:
            continue
        full = pd.date_range(dates.min(), dates.max(), freq="D")
        absent = full.difference(pd.DatetimeIndex(dates.unique()))
        if len(absent):
            frames.append(pd.DataFrame({entity_col: entity, date_col: absent}))
    if not frames:
        return pd.DataFrame(columns=[entity_col, date_col])
    return pd.concat(frames, ignore_index=True)


def _column(df: pd.DataFrame, name: str) -> Optional[pd.Series]:
    if name not in df.columns:
        return None
    return pd.to_numeric(df[name], errors="coerce")


def _row_checks(
    df: pd.DataFrame,
    temp_bounds: Tuple[float, float],
    rain_max: float,
    snow_max: float,
    check_precip_consistency: bool,
    swe_ratio: float,
) -> List[Tuple[str, pd.Series]]:
    """Boolean masks for every applicable row-level check, in check order."""
    masks: List[Tuple[str, pd.Series]] = []

    for col, kind in _NEGATIVE_CHECKS:
        values = _column(df, col)
        if values is not None:
            masks.append((kind, values < 0))

    rain = _column(df, "rain_mm")
    snow = _column(df, "snow_cm")
    precip = _column(df, "precip_mm")

    if rain is not None and math.isfinite(rain_max):
        masks.append(("rain_gt_max", rain > rain_max))
    if snow is not None and math.isfinite(snow_max):
        masks.append(("snow_gt_max", snow > snow_max))

    tmax = _column(df, "tmax_c")
    tmin = _column(df, "tmin_c")
    if tmax is not None and tmin is not None:
        masks.append(("tmax_lt_tmin", tmax < tmin))

    if tmax is not None or tmin is not None:
        low, high = temp_bounds
        out_of_range = pd.Series(False, index=df.index)
        for values in (tmax, tmin):
            if values is not None:
                out_of_range |= (values < low) | (values > high)
        masks.append(("temp_out_of_range", out_of_range))

    wind_dir = _column(df, "wind_dir_deg")
    if wind_dir is not None:
        masks.append(("gust_dir_out_of_range", (wind_dir < 0) | (wind_dir > 360)))

    if check_precip_consistency and precip is not None and (rain is not None or snow is not None):
        inconsistent = pd.Series(False, index=df.index)
        if rain is not None:
            inconsistent |= precip < rain
        if snow is not None and math.isfinite(swe_ratio):
            inconsistent |= precip < snow * swe_ratio
        masks.append(("precip_inconsistent", inconsistent))

    return masks


# =============================================================================
# Engine
# =============================================================================

def validate_weather(
    df: pd.DataFrame,
    temp_bounds: Tuple[float, float] = (-60.0, 60.0),
    rain_max: float = 200.0,
    snow_max: float = math.inf,
    check_precip_consistency: bool = True,
    swe_ratio: float = 10.0,
    config: Optional[ValidationConfig] = None,
    entity_col: str = "station",
    date_col: str = "date",
) -> ValidationReport:
    """
    Run the plausibility checks and collect every violation.

    Parameters
    ----------
    df : pd.DataFrame
        Weather table with ``entity_col`` and ``date_col``.
    temp_bounds : (low, high)
        Plausible temperature range in °C; an infinite side is not checked.
    rain_max, snow_max : float
        Daily ceilings (mm, cm); infinite disables the check.
    check_precip_consistency : bool
        Flag ``precip_mm`` smaller than ``rain_mm`` or than
        ``snow_cm * swe_ratio``.
    swe_ratio : float
        Snow-water equivalent ratio; infinite skips the snow comparison.
    config : ValidationConfig, optional
        When given, its thresholds replace the keyword values.

    Returns
    -------
    ValidationReport
        Summary counts and the flat flags table.

    Raises
    ------
    ValueError
        If the key columns are missing.
    """
    if config is not None:
        config.validate()
        temp_bounds = config.temp_bounds
        rain_max, snow_max = config.rain_max, config.snow_max
        check_precip_consistency = config.check_precip_consistency
        swe_ratio = config.swe_ratio

    validate_dataframe(df, [entity_col, date_col], context="validate_weather")

    work = df.copy()
    work[date_col] = to_day(work[date_col]).values

    flag_frames = []

    holes = _missing_dates(work, entity_col, date_col)
    if not holes.empty:
        flag_frames.append(holes.assign(flag="missing_date"))

    masks = _row_checks(
        work, temp_bounds, rain_max, snow_max, check_precip_consistency, swe_ratio
    )
    for kind, mask in masks:
        mask = mask.fillna(False).astype(bool)
        if mask.any():
            flag_frames.append(work.loc[mask].assign(flag=kind))

    row_cols = [c for c in work.columns if c not in (entity_col, date_col)]
    flag_cols = [entity_col, date_col, "flag"] + row_cols
    if flag_frames:
        flags = pd.concat(flag_frames, ignore_index=True)
        flags = flags.reindex(columns=flag_cols)
        flags = flags.sort_values([entity_col, date_col], kind="mergesort").reset_index(drop=True)
    else:
        flags = pd.DataFrame(columns=flag_cols)

    counts: Dict[str, int] = flags["flag"].value_counts().to_dict() if not flags.empty else {}

    def n(*kinds: str) -> int:
        return int(sum(counts.get(k, 0) for k in kinds))

    dates = work[date_col].dropna()
    summary = pd.DataFrame([{
        "n_rows": len(work),
        "stations": int(work[entity_col].nunique()),
        "span_start": dates.min() if not dates.empty else pd.NaT,
        "span_end": dates.max() if not dates.empty else pd.NaT,
        "n_missing_dates": n("missing_date"),
        "n_negative_values": n("negative_rain", "negative_snow", "negative_precip"),
        "n_tmax_lt_tmin": n("tmax_lt_tmin"),
        "n_temp_oob": n("temp_out_of_range"),
        "n_rain_gt_max": n("rain_gt_max"),
        "n_snow_gt_max": n("snow_gt_max"),
        "n_gust_dir_oob": n("gust_dir_out_of_range"),
        "n_precip_inconsistent": n("precip_inconsistent"),
    }])

    if flags.empty:
        logger.info(f"✓ Validation passed: {len(work):,} rows, no flags")
    else:
        logger.warning(
            f"Validation raised {len(flags):,} flags on {len(work):,} rows: "
            + ", ".join(f"{k}={v}" for k, v in sorted(counts.items()))
        )

    return ValidationReport(summary=summary, flags=flags)
