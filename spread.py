"""
research helpers that build the inputs for the signal engine + backtester:
log returns from price levels, OLS hedge ratio, residual spread, rolling z-score.
"""
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from statsmodels.regression.linear_model import OLS
from statsmodels.tools.tools import add_constant

from errors import ParameterError
from series_utils import as_series, require_same_length


def log_returns(prices: Sequence[float]) -> np.ndarray:
    """
    ln(p[t] / p[t-1]); first element is 0 so the output lines up with the price index.
    """
    p = as_series(prices, name="prices")
    if (p <= 0).any():
        raise ParameterError("prices must be strictly positive for log returns")
    out = np.zeros(len(p), dtype=float)
    out[1:] = np.diff(np.log(p))
    return out


def hedge_ratio(series_1: Sequence[float], series_2: Sequence[float]) -> float:
    """OLS beta of series_1 on series_2 (with intercept): s1 ~ alpha + beta * s2"""
    y = as_series(series_1, name="series_1")
    x = as_series(series_2, name="series_2")
    require_same_length(series_1=y, series_2=x)
    if len(y) < 3:
        raise ParameterError("need at least 3 observations to fit a hedge ratio")

    model = OLS(y, add_constant(x)).fit()
    beta = float(model.params[1])
    if not np.isfinite(beta):
        raise ParameterError("hedge ratio fit did not produce a finite beta")
    return beta


def spread_standard(
    series_1: Sequence[float],
    series_2: Sequence[float],
    hedge: Optional[float] = None,
) -> np.ndarray:
    """s1 - beta * s2. beta is fitted with OLS unless given."""
    a = as_series(series_1, name="series_1")
    b = as_series(series_2, name="series_2")
    require_same_length(series_1=a, series_2=b)
    beta = hedge_ratio(a, b) if hedge is None else float(hedge)
    return a - beta * b


def rolling_zscore(spread: Sequence[float], window: int = 21) -> np.ndarray:
    """
    (x - rolling mean) / rolling std (ddof=0). NaN during warm-up and where the window is flat;
    the signal engine treats NaN as "no data".
    """
    if int(window) < 2:
        raise ParameterError(f"window must be >= 2, got {window}")
    s = pd.Series(as_series(spread, name="spread"))

    roll_mean = s.rolling(window=int(window)).mean()
    roll_std = s.rolling(window=int(window)).std(ddof=0)

    # rolling std of a flat window can come out as ~1e-17 instead of 0
    z = (s - roll_mean) / roll_std.where(roll_std > 1e-12)
    return z.to_numpy(dtype=float)
