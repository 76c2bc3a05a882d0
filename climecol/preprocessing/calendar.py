"""
calendar.py
===========

Daily calendar completion for multi-station weather tables.

Observed weather exports skip days silently: a station that was offline for a
week simply has no rows for that week. Downstream steps (gap statistics,
interpolation, seasonal fitting) need every day to be present, so this module
builds the full daily calendar per station and marks the rows that had to be
invented.

Usage:
    from climecol.preprocessing.calendar import complete_daily_calendar

    df_full = complete_daily_calendar(df)                      # observed span
    df_2020 = complete_daily_calendar(df, "2020-01-01", "2020-12-31")

Author: climecol Team
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import pandas as pd

from ..config import SYNTHETIC_FLAG_COL
from ..utils import to_day, validate_dataframe

logger = logging.getLogger(__name__)

DateLike = Union[str, pd.Timestamp]


def complete_daily_calendar(
    df: pd.DataFrame,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    by: str = "day",
    entity_col: str = "station",
    date_col: str = "date",
) -> pd.DataFrame:
    """
    Expand each station to a contiguous daily calendar.

    Parameters
    ----------
    df : pd.DataFrame
        Weather table with at least ``entity_col`` and ``date_col``.
    start, end : str or Timestamp, optional
        Calendar bounds applied to every station. When omitted, each station
        uses its own observed first/last date.
    by : str
        Calendar step. Only ``"day"`` is supported.
    entity_col : str
        Station identifier column.
    date_col : str
        Date column.

    Returns
    -------
    pd.DataFrame
        One row per (station, day) in the effective range, sorted by station
        and date, with an ``is_synthetic`` column that is True for rows
        generated only to fill the calendar (their measurements are null).
        Rows outside explicit bounds are dropped.

    Raises
    ------
    ValueError
        If a key column is missing, ``by`` is not ``"day"`` or
        ``start > end``.

    Notes
    -----
    - Duplicate (station, date) rows are collapsed to their first occurrence.
    - Running the completion twice keeps the synthetic flags of the first run.
    """
    validate_dataframe(df, [entity_col, date_col], context="complete_daily_calendar")

    if by != "day":
        raise ValueError(f"complete_daily_calendar: only by='day' is supported, got {by!r}")

    start_ts = pd.Timestamp(start).normalize() if start is not None else None
    end_ts = pd.Timestamp(end).normalize() if end is not None else None
    if start_ts is not None and end_ts is not None and start_ts > end_ts:
        raise ValueError(f"complete_daily_calendar: start {start_ts.date()} is after end {end_ts.date()}")

    df = df.copy()
    df[date_col] = to_day(df[date_col]).values

    n_bad_dates = int(df[date_col].isna().sum())
    if n_bad_dates:
        logger.warning(f"Dropping {n_bad_dates} rows with unparseable dates")
        df = df[df[date_col].notna()]

    n_dups = int(df.duplicated(subset=[entity_col, date_col]).sum())
    if n_dups:
        logger.warning(f"Collapsing {n_dups} duplicate ({entity_col}, {date_col}) rows")
        df = df.drop_duplicates(subset=[entity_col, date_col], keep="first")

    calendars = []
    for entity, group in df.groupby(entity_col, sort=True):
        lo = start_ts if start_ts is not None else group[date_col].min()
        hi = end_ts if end_ts is not None else group[date_col].max()
        if lo > hi:
            # Explicit bound on one side only, station entirely outside it
            continue
        days = pd.date_range(lo, hi, freq="D")
        calendars.append(pd.DataFrame({entity_col: entity, date_col: days}))

    if calendars:
        calendar = pd.concat(calendars, ignore_index=True)
    else:
        calendar = pd.DataFrame({
            entity_col: pd.Series(dtype=df[entity_col].dtype),
            date_col: pd.Series(dtype="datetime64[ns]"),
        })

    had_flag = SYNTHETIC_FLAG_COL in df.columns
    out = calendar.merge(df, on=[entity_col, date_col], how="left", indicator=True)

    generated = out["_merge"].eq("left_only")
    if had_flag:
        previous = out[SYNTHETIC_FLAG_COL].astype("boolean").fillna(False).astype(bool)
        out[SYNTHETIC_FLAG_COL] = generated | previous
    else:
        out[SYNTHETIC_FLAG_COL] = generated
    out = out.drop(columns="_merge")

    out = out.sort_values([entity_col, date_col], kind="mergesort").reset_index(drop=True)

    logger.info(
        f"✓ Calendar completed: {out[entity_col].nunique()} stations, "
        f"{len(out):,} rows ({int(generated.sum()):,} generated)"
    )
    return out
