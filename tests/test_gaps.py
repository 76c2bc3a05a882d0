"""
tests/test_gaps.py

Missingness predicate and per-station / per-month gap summaries.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from climecol.preprocessing.calendar import complete_daily_calendar
from climecol.preprocessing.gaps import missing_mask, summarise_gaps


# ---------------------------------------------------------------------------
# Predicate
# ---------------------------------------------------------------------------


class TestMissingMask:
    def test_synthetic_rows_are_missing(self) -> None:
        df = pd.DataFrame({
            "station": "A",
            "date": pd.date_range("2021-01-01", periods=3),
            "tmax_c": [1.0, 2.0, 3.0],
            "is_synthetic": [False, True, False],
        })
        assert missing_mask(df).tolist() == [False, True, False]

    def test_all_null_measurements_are_missing(self) -> None:
        df = pd.DataFrame({
            "station": "A",
            "date": pd.date_range("2021-01-01", periods=3),
            "tmax_c": [1.0, np.nan, np.nan],
            "rain_mm": [np.nan, np.nan, 0.0],
        })
        assert missing_mask(df).tolist() == [False, True, False]

    def test_metadata_columns_do_not_mask_missing_measurements(self) -> None:
        df = pd.DataFrame({
            "station": "A",
            "date": pd.date_range("2021-01-01", periods=2),
            "lat": [47.5, 47.5],
            "tmax_c": [np.nan, 4.0],
        })
        assert missing_mask(df).tolist() == [True, False]

    def test_unknown_columns_fall_back_to_non_key_columns(self) -> None:
        df = pd.DataFrame({
            "station": "A",
            "date": pd.date_range("2021-01-01", periods=2),
            "humidity": [np.nan, 80.0],
        })
        assert missing_mask(df).tolist() == [True, False]


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


class TestSummariseByStation:
    def test_counts_runs_and_coverage(self, gappy_weather) -> None:
        completed = complete_daily_calendar(gappy_weather)
        summary = summarise_gaps(completed, by="station").set_index("station")

        north = summary.loc["north"]
        assert north["n_days"] == 20
        assert north["n_missing"] == 4
        assert north["coverage"] == pytest.approx(0.8)
        assert north["n_gaps"] == 2
        assert north["longest_gap"] == 3

    def test_complete_station_has_no_gaps(self, gappy_weather) -> None:
        summary = summarise_gaps(complete_daily_calendar(gappy_weather)).set_index("station")
        south = summary.loc["south"]
        assert south["n_missing"] == 0
        assert south["n_gaps"] == 0
        assert south["longest_gap"] == 0
        assert south["coverage"] == 1.0

    def test_coverage_within_unit_interval(self, weather_daily) -> None:
        summary = summarise_gaps(weather_daily)
        assert summary["coverage"].between(0, 1).all()
        assert list(summary.columns) == [
            "station", "n_days", "n_missing", "coverage", "n_gaps", "longest_gap",
        ]

    def test_run_at_series_edges_counted(self, series_frame) -> None:
        df = series_frame([np.nan, np.nan, 1.0, 2.0, np.nan])
        row = summarise_gaps(df).iloc[0]
        assert row["n_gaps"] == 2
        assert row["longest_gap"] == 2
        assert row["n_missing"] == 3


class TestSummariseByMonth:
    def test_month_day_counts(self, series_frame) -> None:
        df = series_frame(np.arange(36.0), start="2020-01-01")
        summary = summarise_gaps(df, by="month")

        assert summary["month"].tolist() == ["2020-01", "2020-02"]
        assert summary["n_days"].tolist() == [31, 5]

    def test_runs_do_not_span_months(self, series_frame) -> None:
        values = np.ones(40)
        values[29:33] = np.nan  # Jan 30 .. Feb 2
        summary = summarise_gaps(series_frame(values), by="month").set_index("month")

        assert summary.loc["2020-01", "longest_gap"] == 2
        assert summary.loc["2020-02", "longest_gap"] == 2


class TestErrors:
    def test_unknown_grouping(self, gappy_weather) -> None:
        with pytest.raises(ValueError, match="by must be"):
            summarise_gaps(gappy_weather, by="year")

    def test_missing_key_column(self, gappy_weather) -> None:
        with pytest.raises(ValueError, match="Missing required columns"):
            summarise_gaps(gappy_weather.drop(columns="station"))
