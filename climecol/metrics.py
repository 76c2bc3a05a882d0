"""
metrics.py

Goodness-of-fit statistics for seasonal curves.

AIC follows the Gaussian log-likelihood used for nonlinear least squares
fits, counting the residual variance as one extra parameter:

    AIC = n * (log(2*pi) + 1 - log(n) + log(RSS)) + 2 * (k + 1)

R² is computed against the mean of the observations and is NaN when the
observations have zero variance.
"""

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error


def aic_least_squares(rss: float, n_obs: int, n_params: int) -> float:
    """AIC of a least-squares fit with ``n_params`` free parameters."""
    if n_obs <= 0:
        return float("nan")
    if rss <= 0:
        return float("-inf")
    return float(
        n_obs * (np.log(2 * np.pi) + 1 - np.log(n_obs) + np.log(rss))
        + 2 * (n_params + 1)
    )


def r_squared(y_true, y_pred) -> float:
    """Coefficient of determination, NaN when SS_tot is zero."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    ss_tot = float(np.sum((y_true - y_true.mean()) ** 2))
    if ss_tot <= 0:
        return float("nan")
    ss_res = float(np.sum((y_true - y_pred) ** 2))
    return 1.0 - ss_res / ss_tot


def compute_fit_metrics(y_true, y_pred, n_params: int) -> dict:
    """Compute AIC, R², RMSE and MAE for a fitted curve."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    rss = float(np.sum((y_true - y_pred) ** 2))
    rmse = np.sqrt(mean_squared_error(y_true, y_pred))
    mae = mean_absolute_error(y_true, y_pred)

    return {
        "aic": aic_least_squares(rss, len(y_true), n_params),
        "r2": r_squared(y_true, y_pred),
        "rmse": float(rmse),
        "mae": float(mae),
        "rss": rss,
    }
