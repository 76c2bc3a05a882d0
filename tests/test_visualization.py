"""
tests/test_visualization.py

Smoke tests for the matplotlib renderers (Agg backend, nothing displayed).
"""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pytest  # noqa: E402

from climecol.models.seasonal_fit import fit_seasonal_temp  # noqa: E402
from climecol.scenarios.rainfall import simulate_rainfall_scenarios  # noqa: E402
from climecol.visualization import (  # noqa: E402
    plot_rainfall,
    plot_rainfall_scenarios,
    plot_seasonal_fit,
)


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    plt.close("all")


def test_rainfall_single_panel(weather_daily) -> None:
    fig = plot_rainfall(weather_daily)
    assert len(fig.axes) == 1


def test_rainfall_faceted_by_year(weather_daily) -> None:
    fig = plot_rainfall(weather_daily, facet_by_year=True)
    assert [ax.get_title(loc="left") for ax in fig.axes] == ["2019", "2020", "2021"]


def test_rainfall_requires_columns(weather_daily) -> None:
    with pytest.raises(ValueError, match="Missing required columns"):
        plot_rainfall(weather_daily.drop(columns="rain_mm"))


def test_seasonal_fit_draws_each_curve(weather_daily) -> None:
    result = fit_seasonal_temp(
        weather_daily, funcs=["sin1"], custom={"flat": ("a + 0*day_of_year", {"a": 5})}
    )
    ax = plot_seasonal_fit(result, title="North and south")

    assert ax.get_title() == "North and south"
    assert len(ax.get_lines()) == 2
    labels = [text.get_text() for text in ax.get_legend().get_texts()]
    assert any(label.startswith("sin1") for label in labels)


def test_rainfall_scenarios_on_given_axes(weather_daily) -> None:
    series = simulate_rainfall_scenarios(weather_daily, seed=1)
    fig, ax = plt.subplots()
    out = plot_rainfall_scenarios(series, ax=ax)

    assert out is ax
    assert len(ax.get_lines()) == 4
