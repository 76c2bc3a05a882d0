"""
Shared fixtures for the climecol test suite.

Weather tables are synthetic and seeded: a cosine temperature cycle peaking
around mid-July plus noise, intermittent gamma rainfall, and gust data, for
two stations over three years (including the 2020 leap day).
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest


def _station_frame(station: str, dates: pd.DatetimeIndex, offset: float, rng) -> pd.DataFrame:
    n = len(dates)
    doy = dates.dayofyear.to_numpy()
    tavg = 8 + offset + 10 * np.cos(2 * np.pi * (doy - 200) / 365) + rng.normal(0, 1.0, n)
    wet = rng.random(n) < 0.4
    rain = np.where(wet, rng.gamma(0.8, 6.0, n), 0.0).round(1)
    return pd.DataFrame({
        "station": station,
        "date": dates,
        "tmax_c": (tavg + 4).round(1),
        "tmin_c": (tavg - 4).round(1),
        "tavg_c": tavg.round(1),
        "rain_mm": rain,
        "snow_cm": 0.0,
        "precip_mm": rain,
        "wind_spd_kmh": rng.uniform(10, 60, n).round(0),
        "wind_dir_deg": rng.integers(0, 36, n) * 10.0,
    })


@pytest.fixture(scope="session")
def weather_daily() -> pd.DataFrame:
    """Two complete, plausible station records for 2019-2021. Do not mutate."""
    rng = np.random.default_rng(2024)
    dates = pd.date_range("2019-01-01", "2021-12-31", freq="D")
    return pd.concat(
        [
            _station_frame("north", dates, 0.0, rng),
            _station_frame("south", dates, 4.0, rng),
        ],
        ignore_index=True,
    )


@pytest.fixture()
def gappy_weather(weather_daily: pd.DataFrame) -> pd.DataFrame:
    """
    Short record with holes.

    north: 2020-01-01..2020-01-20 with 01-05 and 01-10..01-12 removed
    south: 2020-01-03..2020-01-15, complete
    """
    north = weather_daily[
        (weather_daily["station"] == "north")
        & weather_daily["date"].between("2020-01-01", "2020-01-20")
    ]
    drop = pd.to_datetime(["2020-01-05", "2020-01-10", "2020-01-11", "2020-01-12"])
    north = north[~north["date"].isin(drop)]
    south = weather_daily[
        (weather_daily["station"] == "south")
        & weather_daily["date"].between("2020-01-03", "2020-01-15")
    ]
    return pd.concat([north, south], ignore_index=True)


@pytest.fixture()
def series_frame():
    """Build a one-station daily frame from a list of values for ``tmax_c``."""
    def _make(values, station="A", start="2020-01-01", col="tmax_c"):
        return pd.DataFrame({
            "station": station,
            "date": pd.date_range(start, periods=len(values), freq="D"),
            col: np.array(values, dtype=float),
        })
    return _make
