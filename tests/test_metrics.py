"""
tests/test_metrics.py

Goodness-of-fit statistics.
"""

import math

import numpy as np
import pytest

from climecol.metrics import aic_least_squares, compute_fit_metrics, r_squared


class TestAIC:
    def test_matches_formula(self) -> None:
        rss, n, k = 12.5, 100, 3
        expected = n * (math.log(2 * math.pi) + 1 - math.log(n) + math.log(rss)) + 2 * (k + 1)
        assert aic_least_squares(rss, n, k) == pytest.approx(expected)

    def test_extra_parameter_costs_two(self) -> None:
        assert aic_least_squares(5.0, 50, 4) - aic_least_squares(5.0, 50, 3) == pytest.approx(2.0)

    def test_zero_rss_is_minus_infinity(self) -> None:
        assert aic_least_squares(0.0, 10, 2) == -math.inf


class TestRSquared:
    def test_perfect_prediction(self) -> None:
        y = np.array([1.0, 2.0, 4.0])
        assert r_squared(y, y) == pytest.approx(1.0)

    def test_mean_prediction_is_zero(self) -> None:
        y = np.array([1.0, 2.0, 3.0])
        assert r_squared(y, np.full(3, 2.0)) == pytest.approx(0.0)

    def test_constant_observations_give_nan(self) -> None:
        assert math.isnan(r_squared(np.ones(4), np.zeros(4)))


def test_compute_fit_metrics_keys_and_values() -> None:
    y_true = np.array([1.0, 2.0, 3.0, 4.0])
    y_pred = np.array([1.0, 2.0, 3.0, 6.0])
    metrics = compute_fit_metrics(y_true, y_pred, n_params=2)

    assert set(metrics) == {"aic", "r2", "rmse", "mae", "rss"}
    assert metrics["rss"] == pytest.approx(4.0)
    assert metrics["rmse"] == pytest.approx(1.0)
    assert metrics["mae"] == pytest.approx(0.5)
