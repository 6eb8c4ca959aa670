"""
ss31
small numpy helpers shared by the signal engine and the backtester:
coercion + validation of input series, cumulative log returns, log -> simple returns.
"""
from typing import Sequence

import numpy as np

from errors import EmptySeriesError, LengthMismatchError, ParameterError


def as_series(values: Sequence[float], name: str = "series", allow_nan: bool = False) -> np.ndarray:
    """
    copy `values` into a 1-d float array.
    raises EmptySeriesError on zero length, ParameterError on inf (and on NaN unless allow_nan).
    """
    try:
        arr = np.array(values, dtype=float)
    except (TypeError, ValueError) as e:
        raise ParameterError(f"{name} is not numeric: {e}") from e

    if arr.ndim != 1:
        raise ParameterError(f"{name} must be 1-dimensional, got shape {arr.shape}")
    if arr.size == 0:
        raise EmptySeriesError(f"{name} is empty")

    if np.isinf(arr).any():
        raise ParameterError(f"{name} contains infinite values")
    if not allow_nan and np.isnan(arr).any():
        raise ParameterError(f"{name} contains NaN values")
    return arr


def require_same_length(**series) -> int:
    """all keyword series must share one length; returns it."""
    lengths = {name: len(s) for name, s in series.items()}
    distinct = set(lengths.values())
    if len(distinct) > 1:
        detail = ", ".join(f"{k}={v}" for k, v in lengths.items())
        raise LengthMismatchError(f"series lengths differ: {detail}")
    return distinct.pop() if distinct else 0


def cumulative_returns(log_returns: np.ndarray) -> np.ndarray:
    """running sum of log returns."""
    return np.cumsum(np.asarray(log_returns, dtype=float))


def normalise_returns(log_returns: np.ndarray) -> np.ndarray:
    """log returns -> simple returns, elementwise."""
    return np.expm1(np.asarray(log_returns, dtype=float))
