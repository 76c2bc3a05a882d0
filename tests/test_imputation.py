"""
tests/test_imputation.py

Bounded imputation: nearest-neighbour, linear and spline filling, gap-length
gating, station isolation and column handling.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from climecol.config import ImputationConfig
from climecol.preprocessing.imputation import (
    fill_linear,
    fill_nearest,
    fill_spline,
    impute_weather,
)

NA = np.nan


# ---------------------------------------------------------------------------
# Series fillers
# ---------------------------------------------------------------------------


class TestFillNearest:
    def test_documented_example(self) -> None:
        out = fill_nearest(np.array([NA, 1, NA, NA, 4]))
        np.testing.assert_array_equal(out, [1, 1, 1, 4, 4])

    def test_tie_goes_to_following_value(self) -> None:
        out = fill_nearest(np.array([1, NA, 3]))
        np.testing.assert_array_equal(out, [1, 3, 3])

    def test_all_missing_unchanged(self) -> None:
        out = fill_nearest(np.array([NA, NA]))
        assert np.isnan(out).all()


class TestFillLinear:
    def test_max_gap_gates_long_runs(self) -> None:
        values = np.array([0, NA, NA, 3, NA, NA, NA, NA, NA, 9])
        out = fill_linear(values, np.arange(10.0), max_gap=2)

        np.testing.assert_allclose(out[:4], [0, 1, 2, 3])
        assert np.isnan(out[4:9]).all()
        assert out[9] == 9

    def test_no_extrapolation(self) -> None:
        out = fill_linear(np.array([NA, 2, NA, 4, NA]), np.arange(5.0))
        assert np.isnan(out[0]) and np.isnan(out[4])
        assert out[2] == pytest.approx(3.0)

    def test_single_observation_unchanged(self) -> None:
        values = np.array([NA, 5, NA])
        out = fill_linear(values, np.arange(3.0))
        assert np.isnan(out[[0, 2]]).all()

    def test_uses_day_axis(self) -> None:
        # Observations on days 0 and 10, missing value sits on day 2
        out = fill_linear(np.array([0, NA, 10]), np.array([0.0, 2.0, 10.0]))
        assert out[1] == pytest.approx(2.0)


class TestFillSpline:
    def test_reproduces_quadratic(self) -> None:
        x = np.arange(7.0)
        values = np.array([0, NA, 4, NA, 16, NA, 36])
        out = fill_spline(values, x)
        np.testing.assert_allclose(out, x ** 2, atol=1e-9)

    def test_gating_leaves_long_runs(self) -> None:
        values = np.array([0, NA, 2, NA, NA, NA, 6, 7])
        out = fill_spline(values, np.arange(8.0), max_gap=1)
        assert not np.isnan(out[1])
        assert np.isnan(out[3:6]).all()


# ---------------------------------------------------------------------------
# Table-level imputation
# ---------------------------------------------------------------------------


class TestImputeWeather:
    def test_locf_fills_everything(self, series_frame) -> None:
        df = series_frame([NA, 1, NA, NA, 4])
        out = impute_weather(df, method="locf")
        assert out["tmax_c"].tolist() == [1, 1, 1, 4, 4]

    def test_linear_respects_max_gap(self, series_frame) -> None:
        df = series_frame([0, NA, NA, 3, NA, NA, NA, NA, NA, 9])
        out = impute_weather(df, method="linear", max_gap=2)
        assert out["tmax_c"].iloc[1:3].tolist() == pytest.approx([1, 2])
        assert out["tmax_c"].iloc[4:9].isna().all()

    def test_stations_are_independent(self, series_frame) -> None:
        df = pd.concat([
            series_frame([NA, NA, NA], station="A"),
            series_frame([1, NA, 3], station="B"),
        ], ignore_index=True)
        out = impute_weather(df, method="locf")

        assert out.loc[out["station"] == "A", "tmax_c"].isna().all()
        assert out.loc[out["station"] == "B", "tmax_c"].tolist() == [1, 3, 3]

    def test_rows_keep_input_order_and_index(self, series_frame) -> None:
        df = series_frame([1, NA, 3]).iloc[::-1]
        df.index = [10, 11, 12]
        out = impute_weather(df, method="linear")

        assert list(out.index) == [10, 11, 12]
        assert out["tmax_c"].tolist() == pytest.approx([3, 2, 1])

    def test_skips_missing_and_non_numeric_columns(self, series_frame) -> None:
        df = series_frame([1, NA, 3])
        df["note"] = ["a", None, "c"]
        out = impute_weather(df, method="locf", cols=["tmax_c", "note", "tmin_c"])

        assert out["note"].isna().sum() == 1
        assert "tmin_c" not in out.columns
        assert out["tmax_c"].notna().all()

    def test_default_columns_only(self, series_frame) -> None:
        df = series_frame([1, NA, 3])
        df["rain_mm"] = [0.0, NA, 1.0]
        out = impute_weather(df, method="locf")
        assert np.isnan(out["rain_mm"].iloc[1])

    def test_input_not_mutated(self, series_frame) -> None:
        df = series_frame([1, NA, 3])
        before = df.copy()
        impute_weather(df, method="spline")
        pd.testing.assert_frame_equal(df, before)

    def test_add_flags(self, series_frame) -> None:
        df = series_frame([1, NA, 3])
        out = impute_weather(df, method="linear", add_flags=True)
        assert out["tmax_c_was_imputed"].tolist() == [False, True, False]

    def test_config_overrides_keywords(self, series_frame) -> None:
        df = series_frame([0, NA, NA, 3])
        config = ImputationConfig(method="linear", cols=["tmax_c"], max_gap=1)
        out = impute_weather(df, method="locf", config=config)
        assert out["tmax_c"].iloc[1:3].isna().all()

    def test_parallel_matches_sequential(self, gappy_weather) -> None:
        from climecol.preprocessing.calendar import complete_daily_calendar

        df = complete_daily_calendar(gappy_weather)
        sequential = impute_weather(df, method="spline")
        parallel = impute_weather(df, method="spline", n_jobs=2)
        pd.testing.assert_frame_equal(sequential, parallel)

    def test_unknown_method(self, series_frame) -> None:
        with pytest.raises(ValueError, match="unknown method"):
            impute_weather(series_frame([1, NA]), method="mean")

    def test_invalid_max_gap(self, series_frame) -> None:
        with pytest.raises(ValueError, match="max_gap"):
            impute_weather(series_frame([1, NA]), method="linear", max_gap=0)
