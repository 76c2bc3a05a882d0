"""
utils.py

Shared helpers for the climecol modules.

GOALS:
- Fail fast on structurally invalid input (missing columns, wrong type)
  with messages that name the failing precondition.
- Provide one run-length encoder used by both the gap summarizer and the
  bounded imputer, so "gap run" means the same thing everywhere.
- Normalize date columns to day resolution.
- Save JSON artifacts for the pipeline entry script.
"""

import json
from pathlib import Path
from typing import Any, Sequence, Tuple

import numpy as np
import pandas as pd


def validate_dataframe(
    df: pd.DataFrame,
    required_cols: Sequence[str],
    context: str = "DataFrame",
    allow_empty: bool = True,
) -> None:
    """
    Validate that a DataFrame has the required columns.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to validate.
    required_cols : sequence of str
        Required column names.
    context : str
        Context string for error messages (usually the calling function).
    allow_empty : bool
        When False, a zero-row frame is rejected too.

    Raises
    ------
    TypeError
        If ``df`` is not a DataFrame.
    ValueError
        If a required column is missing, or the frame is empty and
        ``allow_empty`` is False.
    """
    if df is None:
        raise ValueError(f"{context}: DataFrame is None")

    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"{context}: Expected DataFrame, got {type(df).__name__}")

    missing = [c for c in required_cols if c not in df.columns]
    if missing:
        raise ValueError(f"{context}: Missing required columns: {missing}")

    if not allow_empty and df.empty:
        raise ValueError(f"{context}: DataFrame is empty (0 rows)")


def to_day(values: Any) -> pd.Series:
    """Coerce values to datetime64 truncated to the day; unparseable values become NaT."""
    return pd.Series(pd.to_datetime(values, errors="coerce")).dt.normalize()


def run_lengths(mask: Sequence[bool]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Locate the runs of consecutive True values in a boolean sequence.

    Returns
    -------
    (starts, lengths) : tuple of np.ndarray
        Start index and length of every run, in order of appearance.
        Both are empty when the mask holds no True value.

    Examples
    --------
    >>> run_lengths([False, True, True, False, True])
    (array([1, 4]), array([2, 1]))
    """
    arr = np.asarray(mask, dtype=bool)
    if arr.size == 0:
        return np.array([], dtype=int), np.array([], dtype=int)

    padded = np.concatenate(([False], arr, [False])).astype(np.int8)
    edges = np.diff(padded)
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1)
    return starts, ends - starts


def run_length_mask(mask: Sequence[bool], max_len: float) -> np.ndarray:
    """Boolean mask of positions that belong to a True run no longer than ``max_len``."""
    arr = np.asarray(mask, dtype=bool)
    keep = np.zeros(arr.size, dtype=bool)
    starts, lengths = run_lengths(arr)
    for start, length in zip(starts, lengths):
        if length <= max_len:
            keep[start:start + length] = True
    return keep


def save_json(obj: Any, path: Path) -> None:
    """Save obj as JSON to the given path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(obj, f, indent=2, default=str)
