"""
gaps.py
=======

Gap classification and coverage summaries for daily weather tables.

A day counts as missing when it was generated by calendar completion
(``is_synthetic``) or when every measurement on it is null. ``missing_mask``
is the only place that rule lives; ``summarise_gaps`` and anything else that
needs it call the predicate.

Usage:
    from climecol.preprocessing.gaps import summarise_gaps

    by_station = summarise_gaps(df_full, by="station")
    by_month = summarise_gaps(df_full, by="month")

Author: climecol Team
"""

from __future__ import annotations

import logging
from typing import List, Literal, Optional, Sequence

import numpy as np
import pandas as pd

from ..config import MEASUREMENT_COLUMNS, SYNTHETIC_FLAG_COL
from ..utils import run_lengths, validate_dataframe

logger = logging.getLogger(__name__)


# =============================================================================
# TYPE DEFINITIONS
# =============================================================================

GapGrouping = Literal["station", "month"]

_NON_MEASUREMENT = {SYNTHETIC_FLAG_COL, "month"}


# =============================================================================
# MISSINGNESS PREDICATE
# =============================================================================

def measurement_columns(
    df: pd.DataFrame,
    entity_col: str = "station",
    date_col: str = "date",
    candidates: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Columns whose joint nullness marks a row as missing.

    The known measurement columns present in ``df`` are used. When none of
    them is present, every column except the keys and flags is used.
    """
    candidates = MEASUREMENT_COLUMNS if candidates is None else candidates
    cols = [c for c in candidates if c in df.columns]
    if cols:
        return cols
    excluded = {entity_col, date_col} | _NON_MEASUREMENT
    return [c for c in df.columns if c not in excluded]


def missing_mask(
    df: pd.DataFrame,
    entity_col: str = "station",
    date_col: str = "date",
) -> pd.Series:
    """
    Boolean Series: True where the row is synthetic or holds no measurement.

    Parameters
    ----------
    df : pd.DataFrame
        Weather table, completed or not.
    entity_col, date_col : str
        Key columns, never treated as measurements.

    Returns
    -------
    pd.Series
        Missingness per row, aligned to ``df.index``.
    """
    if SYNTHETIC_FLAG_COL in df.columns:
        synthetic = df[SYNTHETIC_FLAG_COL].astype("boolean").fillna(False).astype(bool)
    else:
        synthetic = pd.Series(False, index=df.index)

    cols = measurement_columns(df, entity_col, date_col)
    if cols:
        empty = df[cols].isna().all(axis=1)
    else:
        empty = pd.Series(False, index=df.index)

    return synthetic | empty


# =============================================================================
# SUMMARY
# =============================================================================

def summarise_gaps(
    df: pd.DataFrame,
    by: GapGrouping = "station",
    entity_col: str = "station",
    date_col: str = "date",
) -> pd.DataFrame:
    """
    Summarise coverage and gap runs per station or per station-month.

    Parameters
    ----------
    df : pd.DataFrame
        Weather table, normally the output of ``complete_daily_calendar``.
        Without calendar completion, days absent from the table are not seen.
    by : {"station", "month"}
        Grouping: whole station record, or station × calendar month.
    entity_col, date_col : str
        Key columns.

    Returns
    -------
    pd.DataFrame
        One row per non-empty group with columns:
        - station (and ``month`` as ``YYYY-MM`` when ``by="month"``)
        - n_days: rows in the group
        - n_missing: rows flagged by ``missing_mask``
        - coverage: (n_days - n_missing) / n_days
        - n_gaps: number of maximal runs of missing rows
        - longest_gap: length of the longest run (0 when none)

    Raises
    ------
    ValueError
        If a key column is missing or ``by`` is unknown.

    Examples
    --------
    >>> summary = summarise_gaps(df_full, by="month")
    >>> summary[summary["coverage"] < 0.8]
    """
    validate_dataframe(df, [entity_col, date_col], context="summarise_gaps")
    if by not in ("station", "month"):
        raise ValueError(f"summarise_gaps: by must be 'station' or 'month', got {by!r}")

    work = df.copy()
    work[date_col] = pd.to_datetime(work[date_col])
    work["_missing"] = missing_mask(work, entity_col, date_col).values

    group_cols = [entity_col]
    if by == "month":
        work["month"] = work[date_col].dt.strftime("%Y-%m")
        group_cols.append("month")

    work = work.sort_values(group_cols + [date_col], kind="mergesort")

    results = []
    for keys, group in work.groupby(group_cols, sort=True):
        keys = keys if isinstance(keys, tuple) else (keys,)
        flags = group["_missing"].to_numpy(dtype=bool)
        _, lengths = run_lengths(flags)

        n_days = len(group)
        n_missing = int(flags.sum())
        row = dict(zip(group_cols, keys))
        row.update({
            "n_days": n_days,
            "n_missing": n_missing,
            "coverage": (n_days - n_missing) / n_days,
            "n_gaps": int(len(lengths)),
            "longest_gap": int(lengths.max()) if len(lengths) else 0,
        })
        results.append(row)

    columns = group_cols + ["n_days", "n_missing", "coverage", "n_gaps", "longest_gap"]
    summary = pd.DataFrame(results, columns=columns)

    if not summary.empty:
        logger.info(
            f"Gap summary by {by}: {len(summary)} groups, "
            f"mean coverage {summary['coverage'].mean():.1%}, "
            f"longest gap {int(summary['longest_gap'].max())} days"
        )
    return summary
