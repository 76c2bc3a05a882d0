"""
tests/test_scenarios_temperature.py

Uniform warming scenarios derived from a seasonal temperature fit.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from climecol.models.seasonal_fit import SeasonalFitResult, fit_seasonal_temp
from climecol.scenarios.temperature import shift_label, simulate_temp_shifts


@pytest.fixture(scope="module")
def temp_fit(weather_daily) -> SeasonalFitResult:
    return fit_seasonal_temp(weather_daily, funcs=["sin1"])


class TestLabels:
    @pytest.mark.parametrize(
        "delta, label",
        [(1, "Temp+1C"), (2.0, "Temp+2C"), (-0.5, "Temp-0.5C"), (1.5, "Temp+1.5C")],
    )
    def test_shift_label(self, delta, label) -> None:
        assert shift_label(delta) == label


class TestSimulateTempShifts:
    def test_long_layout(self, temp_fit) -> None:
        out = simulate_temp_shifts(temp_fit)

        assert list(out.columns) == ["day_of_year", "scenario", "temp_c"]
        assert len(out) == 366 * 6
        assert list(out["scenario"].cat.categories) == [
            "baseline", "Temp+1C", "Temp+2C", "Temp+3C", "Temp+4C", "Temp+5C",
        ]

    def test_wide_layout_is_shifted_baseline(self, temp_fit) -> None:
        wide = simulate_temp_shifts(temp_fit, deltas=[1, 2.5], as_long=False)

        assert list(wide.columns) == ["day_of_year", "baseline", "Temp+1C", "Temp+2.5C"]
        np.testing.assert_allclose(wide["Temp+2.5C"] - wide["baseline"], 2.5)
        np.testing.assert_allclose(
            wide["baseline"], temp_fit.daily_average["fitted_sin1"].to_numpy()
        )

    def test_zero_and_repeated_deltas_dropped(self, temp_fit) -> None:
        wide = simulate_temp_shifts(temp_fit, deltas=[0, 1, 1, -0.5], as_long=False)
        assert list(wide.columns[2:]) == ["Temp+1C", "Temp-0.5C"]

    def test_named_model(self, weather_daily) -> None:
        fit = fit_seasonal_temp(
            weather_daily,
            funcs=["sin1"],
            custom={"flat": ("a + 0*day_of_year", {"a": 5})},
        )
        wide = simulate_temp_shifts(fit, deltas=[1], model="flat", as_long=False)
        assert wide["baseline"].nunique() == 1

    def test_on_dates(self, temp_fit) -> None:
        dates = pd.date_range("2030-01-01", "2030-12-31", freq="D")
        wide = simulate_temp_shifts(temp_fit, deltas=[2], dates=dates, as_long=False)

        assert len(wide) == 365
        assert wide["date"].iloc[0] == pd.Timestamp("2030-01-01")
        daily = temp_fit.daily_average.set_index("day_of_year")["fitted_sin1"]
        assert wide["baseline"].iloc[99] == pytest.approx(daily.loc[100])


class TestErrors:
    def test_only_zero_delta(self, temp_fit) -> None:
        with pytest.raises(ValueError, match="non-zero"):
            simulate_temp_shifts(temp_fit, deltas=[0])

    def test_unknown_model(self, temp_fit) -> None:
        with pytest.raises(ValueError, match="not found"):
            simulate_temp_shifts(temp_fit, model="sin2")

    def test_no_converged_models(self) -> None:
        empty = SeasonalFitResult(
            daily_average=pd.DataFrame({"day_of_year": [1, 2], "mean_temp": [1.0, 2.0]}),
            fits={},
            metrics=pd.DataFrame(columns=["model", "AIC", "R2", "RMSE", "n_params"]),
        )
        with pytest.raises(ValueError, match="no converged models"):
            simulate_temp_shifts(empty)
