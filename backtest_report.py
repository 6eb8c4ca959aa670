"""
backtest-only

ss23 (reworked)
turns a per-step strategy log-return series into evaluation metrics (total return, max drawdown,
sharpe / sortino, ARR, trade win rate) and the BacktestReport that carries them.
everything here is derived from the return + position series alone, no hidden state.
"""
import json
import math
from dataclasses import asdict, dataclass, field
from typing import Dict, List

import numpy as np

from series_utils import cumulative_returns, normalise_returns


@dataclass
class TradeStats:
    opened: int = 0
    closed: int = 0
    closed_profit: int = 0
    win_rate: float = 0.0


@dataclass
class BacktestReport:
    strategy_returns: List[float]
    cumulative_returns: List[float]
    equity_curve: List[float]
    drawdowns: List[float]
    total_return: float
    total_log_return: float
    position_changes: int
    total_costs: float
    mean_return: float
    volatility: float
    annual_volatility: float
    arr: float
    sharpe_ratio: float
    sortino_ratio: float
    max_drawdown: float
    trade_stats: TradeStats = field(default_factory=TradeStats)

    def to_dict(self) -> Dict:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def summary(self) -> Dict[str, float]:
        return {
            "total_return_pct": self.total_return * 100,
            "max_drawdown_pct": self.max_drawdown * 100,
            "arr_pct": self.arr * 100,
            "sharpe": self.sharpe_ratio,
            "sortino": self.sortino_ratio,
            "win_rate_pct": self.trade_stats.win_rate * 100,
            "round_trips": self.trade_stats.closed,
            "position_changes": self.position_changes,
            "total_costs": self.total_costs,
        }


def total_return(log_returns: np.ndarray) -> float:
    if len(log_returns) == 0:
        return 0.0
    return float(math.expm1(float(np.sum(log_returns))))


def mean_return(log_returns: np.ndarray) -> float:
    """mean of the non-zero log returns, as a simple return. flat steps don't dilute it."""
    active = log_returns[log_returns != 0.0]
    if active.size == 0:
        return 0.0
    return float(math.expm1(float(active.mean())))


def annual_rate_of_return(log_returns: np.ndarray, periods_per_year: int = 252) -> float:
    return (1.0 + mean_return(log_returns)) ** periods_per_year - 1.0


def volatility(log_returns: np.ndarray) -> float:
    if len(log_returns) == 0:
        return 0.0
    return float(np.std(log_returns))


def sharpe_ratio(log_returns: np.ndarray) -> float:
    # per period, no risk-free rate
    if len(log_returns) == 0:
        return 0.0
    mu = float(np.mean(log_returns))
    sd = float(np.std(log_returns))
    if mu == 0.0 or sd == 0.0:
        return 0.0
    return mu / sd


def sortino_ratio(log_returns: np.ndarray) -> float:
    if len(log_returns) == 0:
        return 0.0
    mu = float(np.mean(log_returns))
    neg = log_returns[log_returns < 0.0]
    if mu == 0.0 or neg.size == 0:
        return 0.0
    downside = math.sqrt(float(np.mean(neg ** 2)))
    if downside == 0.0:
        return 0.0
    return mu / downside


def drawdowns(log_returns: np.ndarray) -> np.ndarray:
    """wealth / running peak - 1 at every step. wealth starts at 1.0, so the peak never drops below it."""
    wealth = np.exp(cumulative_returns(log_returns))
    peak = np.maximum.accumulate(np.maximum(wealth, 1.0))
    return wealth / peak - 1.0


def max_drawdown(log_returns: np.ndarray) -> float:
    if len(log_returns) == 0:
        return 0.0
    return float(min(0.0, float(np.min(drawdowns(log_returns)))))


def trade_stats(positions: np.ndarray, log_returns: np.ndarray) -> TradeStats:
    """
    a trade is a run of non-zero positions with one sign. resizing inside a run is not a new trade.
    the return on the step a trade closes (last held interval + exit cost) belongs to the closing trade,
    so on a flip the new trade starts accumulating from the next step.
    """
    stats = TradeStats()
    is_open = False
    curr = 0.0

    for i in range(1, len(positions)):
        prev_side = np.sign(positions[i - 1])
        side = np.sign(positions[i])

        if is_open:
            curr += log_returns[i]

        if side != prev_side:
            if prev_side != 0 and is_open:
                stats.closed += 1
                if curr > 0.0:
                    stats.closed_profit += 1
                is_open = False
            if side != 0:
                stats.opened += 1
                is_open = True
                # entry step from flat carries only the entry cost
                curr = log_returns[i] if prev_side == 0 else 0.0

    if stats.closed:
        stats.win_rate = stats.closed_profit / stats.closed
    return stats


def build_report(
    positions: np.ndarray,
    strat: np.ndarray,
    costs: np.ndarray,
    periods_per_year: int = 252,
) -> BacktestReport:
    cum = cumulative_returns(strat)
    vol = volatility(strat)
    dd = drawdowns(strat)
    deltas = np.diff(positions)

    return BacktestReport(
        strategy_returns=strat.tolist(),
        cumulative_returns=cum.tolist(),
        equity_curve=normalise_returns(cum).tolist(),
        drawdowns=dd.tolist(),
        total_return=total_return(strat),
        total_log_return=float(cum[-1]) if len(cum) else 0.0,
        position_changes=int(np.count_nonzero(deltas)),
        total_costs=float(np.sum(costs)),
        mean_return=mean_return(strat),
        volatility=vol,
        annual_volatility=vol * math.sqrt(periods_per_year),
        arr=annual_rate_of_return(strat, periods_per_year),
        sharpe_ratio=sharpe_ratio(strat),
        sortino_ratio=sortino_ratio(strat),
        max_drawdown=max_drawdown(strat),
        trade_stats=trade_stats(positions, strat),
    )


def print_report(s: Dict[str, float]):
    print("=== BACKTEST REPORT ===")
    print(f"Total return:     {s['total_return_pct']:.2f}%")
    print(f"Max drawdown:     {s['max_drawdown_pct']:.2f}%")
    print(f"ARR:              {s['arr_pct']:.2f}%")
    print(f"Sharpe:           {s['sharpe']:.2f}")
    print(f"Sortino:          {s['sortino']:.2f}")
    print(f"Win rate:         {s['win_rate_pct']:.2f}%")
    print(f"Round trips:      {int(s['round_trips'])}")
    print(f"Position changes: {int(s['position_changes'])}")
    print(f"Total costs:      {s['total_costs']:.4f}")
