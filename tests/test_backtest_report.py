import math

import numpy as np

from backtest_report import (
    annual_rate_of_return,
    drawdowns,
    max_drawdown,
    mean_return,
    sharpe_ratio,
    sortino_ratio,
    total_return,
    trade_stats,
)


def test_total_and_mean_return():
    r = np.array([0.0, 0.01, -0.005, 0.0, 0.02])
    assert abs(total_return(r) - math.expm1(0.025)) < 1e-12
    # zeros are skipped when averaging
    assert abs(mean_return(r) - math.expm1(0.025 / 3)) < 1e-12
    assert mean_return(np.zeros(4)) == 0.0
    assert annual_rate_of_return(np.zeros(4)) == 0.0


def test_drawdown_from_running_peak():
    r = np.log(np.array([1.0, 1.1, 0.9 / 1.1 * 1.0, 1.2 / 0.9]))
    # wealth: 1.0, 1.1, 0.9, 1.2
    dd = drawdowns(r)
    assert abs(dd[0]) < 1e-12
    assert abs(dd[1]) < 1e-12
    assert abs(dd[2] - (0.9 / 1.1 - 1.0)) < 1e-12
    assert abs(dd[3]) < 1e-12
    assert abs(max_drawdown(r) - (0.9 / 1.1 - 1.0)) < 1e-12


def test_drawdown_when_first_step_loses():
    r = np.array([-0.1, 0.0])
    assert abs(max_drawdown(r) - math.expm1(-0.1)) < 1e-12


def test_ratios_are_zero_when_undefined():
    assert sharpe_ratio(np.zeros(5)) == 0.0
    assert sortino_ratio(np.array([0.01, 0.02])) == 0.0
    assert sharpe_ratio(np.array([0.01, 0.01])) == 0.0


def test_ratios_sign_follows_mean():
    r = np.array([0.02, -0.01, 0.03, -0.005])
    assert sharpe_ratio(r) > 0
    assert sortino_ratio(r) > 0
    assert sharpe_ratio(-r) < 0


def test_trade_stats_round_trips_and_flip():
    positions = np.array([0.0, 1.0, 1.0, 0.0, -1.0, 1.0, 1.0])
    rets = np.array([0.0, -0.001, 0.02, -0.011, -0.001, -0.03, 0.01])

    stats = trade_stats(positions, rets)

    # long (closed, +0.008), short (closed on the flip, -0.03), long still open
    assert stats.opened == 3
    assert stats.closed == 2
    assert stats.closed_profit == 1
    assert stats.win_rate == 0.5


def test_resizing_is_not_a_new_trade():
    stats = trade_stats(np.array([0.0, 1.0, 2.0, 1.0, 0.0]), np.array([0.0, 0.0, 0.01, 0.01, 0.01]))
    assert stats.opened == 1
    assert stats.closed == 1
    assert stats.closed_profit == 1
