"""
tests/test_calendar.py

Daily calendar completion: contiguity, synthetic flags, bounds and errors.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import pytest

from climecol.preprocessing.calendar import complete_daily_calendar


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


class TestObservedSpan:
    def test_fills_holes_with_synthetic_rows(self, gappy_weather) -> None:
        out = complete_daily_calendar(gappy_weather)
        north = out[out["station"] == "north"]

        assert len(north) == 20
        synthetic = north.loc[north["is_synthetic"], "date"].dt.strftime("%m-%d").tolist()
        assert synthetic == ["01-05", "01-10", "01-11", "01-12"]
        assert north.loc[north["is_synthetic"], "tmax_c"].isna().all()
        assert not north.loc[~north["is_synthetic"], "tmax_c"].isna().any()

    def test_each_station_uses_its_own_span(self, gappy_weather) -> None:
        out = complete_daily_calendar(gappy_weather)
        south = out[out["station"] == "south"]

        assert south["date"].min() == pd.Timestamp("2020-01-03")
        assert south["date"].max() == pd.Timestamp("2020-01-15")
        assert not south["is_synthetic"].any()

    def test_dates_contiguous_and_unique(self, gappy_weather) -> None:
        out = complete_daily_calendar(gappy_weather)
        for _, group in out.groupby("station"):
            steps = group["date"].diff().dropna().dt.days
            assert (steps == 1).all()
        assert not out.duplicated(["station", "date"]).any()

    def test_output_sorted(self, gappy_weather) -> None:
        shuffled = gappy_weather.sample(frac=1.0, random_state=3)
        out = complete_daily_calendar(shuffled)
        expected = out.sort_values(["station", "date"]).reset_index(drop=True)
        pd.testing.assert_frame_equal(out, expected)

    def test_input_not_mutated(self, gappy_weather) -> None:
        before = gappy_weather.copy()
        complete_daily_calendar(gappy_weather)
        pd.testing.assert_frame_equal(gappy_weather, before)


class TestExplicitBounds:
    def test_row_count_matches_bounds(self, gappy_weather) -> None:
        out = complete_daily_calendar(gappy_weather, start="2019-12-25", end="2020-01-31")
        counts = out.groupby("station").size()
        assert (counts == 38).all()

    def test_rows_outside_bounds_are_dropped(self, gappy_weather) -> None:
        out = complete_daily_calendar(gappy_weather, start="2020-01-08", end="2020-01-09")
        assert set(out["date"].dt.day) == {8, 9}
        assert len(out) == 4

    def test_extension_rows_are_synthetic(self, gappy_weather) -> None:
        out = complete_daily_calendar(gappy_weather, start="2019-12-31", end="2020-01-20")
        south = out[out["station"] == "south"]
        early = south[south["date"] < "2020-01-03"]
        assert len(early) == 3
        assert early["is_synthetic"].all()


# ---------------------------------------------------------------------------
# Edge cases
# ---------------------------------------------------------------------------


class TestEdgeCases:
    def test_idempotent_flags(self, gappy_weather) -> None:
        once = complete_daily_calendar(gappy_weather)
        twice = complete_daily_calendar(once)
        assert twice["is_synthetic"].tolist() == once["is_synthetic"].tolist()

    def test_duplicate_rows_collapsed(self) -> None:
        df = pd.DataFrame({
            "station": ["A", "A", "A"],
            "date": pd.to_datetime(["2021-03-01", "2021-03-01", "2021-03-03"]),
            "tmax_c": [1.0, 99.0, 3.0],
        })
        out = complete_daily_calendar(df)
        assert len(out) == 3
        assert out["tmax_c"].iloc[0] == 1.0

    def test_string_dates_accepted(self) -> None:
        df = pd.DataFrame({"station": "A", "date": ["2021-01-01", "2021-01-03"], "rain_mm": [0.0, 1.0]})
        out = complete_daily_calendar(df)
        assert out["is_synthetic"].tolist() == [False, True, False]
        assert np.isnan(out["rain_mm"].iloc[1])

    def test_unparseable_dates_dropped_with_warning(self, caplog) -> None:
        df = pd.DataFrame({
            "station": "A",
            "date": ["2021-01-01", "garbage", "2021-01-03"],
            "rain_mm": [0.0, 5.0, 1.0],
        })
        with caplog.at_level(logging.WARNING, logger="climecol.preprocessing.calendar"):
            out = complete_daily_calendar(df)

        assert "Dropping 1 rows with unparseable dates" in caplog.text
        assert out["date"].dt.strftime("%m-%d").tolist() == ["01-01", "01-02", "01-03"]
        assert out["rain_mm"].tolist()[::2] == [0.0, 1.0]

    def test_custom_entity_column(self) -> None:
        df = pd.DataFrame({
            "site": ["x", "x"],
            "date": pd.to_datetime(["2021-01-01", "2021-01-04"]),
        })
        out = complete_daily_calendar(df, entity_col="site")
        assert len(out) == 4


class TestErrors:
    def test_unsupported_step(self, gappy_weather) -> None:
        with pytest.raises(ValueError, match="by='day'"):
            complete_daily_calendar(gappy_weather, by="week")

    def test_missing_date_column(self, gappy_weather) -> None:
        with pytest.raises(ValueError, match="Missing required columns"):
            complete_daily_calendar(gappy_weather.drop(columns="date"))

    def test_missing_station_column(self, gappy_weather) -> None:
        with pytest.raises(ValueError, match="Missing required columns"):
            complete_daily_calendar(gappy_weather.drop(columns="station"))

    def test_start_after_end(self, gappy_weather) -> None:
        with pytest.raises(ValueError, match="after end"):
            complete_daily_calendar(gappy_weather, start="2020-02-01", end="2020-01-01")
