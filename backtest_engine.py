"""
backtest-only

ss22 (reworked)
vectorised pair backtest on log returns. the position decided at t-1 earns the return realised over t-1 -> t,
and a flat cost per unit of position change is charged on the step the position changes.

    strat[t] = pos[t-1] * (w1 * r1[t] - w2 * r2[t]) - cost * |pos[t] - pos[t-1]|     (t >= 1)
    strat[0] = 0
"""
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from backtest_report import BacktestReport, build_report
from errors import ParameterError
from logger import get_logger, log_debug
from series_utils import as_series, require_same_length

log = get_logger("backtest")


def _finite(name: str, value) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ParameterError(f"{name} is not a number: {value!r}")
    if not math.isfinite(v):
        raise ParameterError(f"{name} must be finite, got {value}")
    return v


@dataclass(frozen=True)
class BacktestConfig:
    trading_costs: float = 0.001
    weight_asset_1: float = 1.0
    weight_asset_2: Optional[float] = None
    periods_per_year: int = 252

    def __post_init__(self):
        costs = _finite("trading_costs", self.trading_costs)
        if costs < 0:
            raise ParameterError(f"trading_costs must be a non-negative number, got {self.trading_costs}")
        object.__setattr__(self, "trading_costs", costs)
        object.__setattr__(self, "weight_asset_1", _finite("weight_asset_1", self.weight_asset_1))
        if self.weight_asset_2 is not None:
            object.__setattr__(self, "weight_asset_2", _finite("weight_asset_2", self.weight_asset_2))

        ppy = _finite("periods_per_year", self.periods_per_year)
        if ppy <= 0 or ppy != int(ppy):
            raise ParameterError(f"periods_per_year must be a positive integer, got {self.periods_per_year}")
        object.__setattr__(self, "periods_per_year", int(ppy))


def trade_costs(positions: np.ndarray, cost_rate: float) -> np.ndarray:
    """cost charged on each step, proportional to the size of the position change. step 0 is free."""
    costs = np.zeros(len(positions), dtype=float)
    costs[1:] = cost_rate * np.abs(np.diff(positions))
    return costs


def gross_returns(
    positions: np.ndarray,
    log_rets_1: np.ndarray,
    weight_1: float,
    log_rets_2: Optional[np.ndarray] = None,
    weight_2: Optional[float] = None,
) -> np.ndarray:
    # asset 2 is the other leg of the pair, so it enters with the opposite sign
    leg = weight_1 * log_rets_1
    if log_rets_2 is not None:
        leg = leg - weight_2 * log_rets_2

    gross = np.zeros(len(positions), dtype=float)
    gross[1:] = positions[:-1] * leg[1:]
    return gross


def simulate(
    positions: Sequence[float],
    config: BacktestConfig,
    log_rets_1: Sequence[float],
    log_rets_2: Optional[Sequence[float]] = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """validated inputs -> (positions, per-step strategy returns, per-step costs)."""
    if (log_rets_2 is None) != (config.weight_asset_2 is None):
        raise ParameterError(
            "two-asset backtest needs both log_rets_2 and weight_asset_2 (or neither)"
        )

    pos = as_series(positions, name="positions")
    r1 = as_series(log_rets_1, name="log_rets_1")
    r2 = None
    if log_rets_2 is not None:
        r2 = as_series(log_rets_2, name="log_rets_2")
        require_same_length(positions=pos, log_rets_1=r1, log_rets_2=r2)
    else:
        require_same_length(positions=pos, log_rets_1=r1)

    costs = trade_costs(pos, config.trading_costs)
    strat = gross_returns(pos, r1, config.weight_asset_1, r2, config.weight_asset_2) - costs
    return pos, strat, costs


def run_backtest(
    positions: Sequence[float],
    config: BacktestConfig,
    log_rets_1: Sequence[float],
    log_rets_2: Optional[Sequence[float]] = None,
) -> BacktestReport:
    pos, strat, costs = simulate(positions, config, log_rets_1, log_rets_2)
    report = build_report(pos, strat, costs, periods_per_year=int(config.periods_per_year))

    log_debug(log, "backtest_done", n_steps=len(pos), two_asset=log_rets_2 is not None,
              position_changes=report.position_changes, total_return=report.total_return)
    return report
