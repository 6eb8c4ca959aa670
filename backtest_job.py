"""
backtest-only

ss35
end-to-end research run for one pair: prices -> log returns + spread -> rolling z-score ->
Long/Short engines -> net positions -> backtest report.
validation failures come back as {"ok": False, ...} instead of blowing up the caller.

usage: python backtest_job.py prices.csv [signals.json]
(csv needs series_1 and series_2 columns)
"""
import sys
import uuid
from typing import Dict, List, Optional, Sequence

import pandas as pd

import config
from backtest_engine import BacktestConfig, run_backtest
from backtest_report import print_report
from conditions import SignalConfig
from errors import ConfigurationError, StatArbError
from logger import get_logger, log_error, log_event
from signal_engine import compute_pair_positions
from spread import hedge_ratio, log_returns, rolling_zscore, spread_standard

log = get_logger("backtest_job")


def run_pair_backtest(
    series_1: Sequence[float],
    series_2: Sequence[float],
    signal_configs: List[SignalConfig],
    bt_config: BacktestConfig,
    window: int = 21,
    hedge: Optional[float] = None,
    run_id: Optional[str] = None,
) -> Dict:
    run_id = run_id or f"bt_{uuid.uuid4().hex[:12]}"
    log_event(log, "backtest_start", run_id=run_id, n_steps=len(series_1), window=window,
              signals=[c.to_dict() for c in signal_configs])

    try:
        rets_1 = log_returns(series_1)
        rets_2 = log_returns(series_2)

        beta = hedge_ratio(series_1, series_2) if hedge is None else float(hedge)
        spread = spread_standard(series_1, series_2, hedge=beta)
        zscore = rolling_zscore(spread, window=window)

        positions = compute_pair_positions(zscore, signal_configs)
        report = run_backtest(
            positions,
            bt_config,
            rets_1,
            rets_2 if bt_config.weight_asset_2 is not None else None,
        )

    except StatArbError as e:
        log_error(log, "backtest_rejected", e, run_id=run_id)
        return {"ok": False, "run_id": run_id, **e.to_dict()}
    except Exception as e:
        log_error(log, "backtest_failed", e, run_id=run_id)
        raise

    log_event(log, "backtest_done", run_id=run_id, hedge_ratio=beta, **report.summary())
    return {
        "ok": True,
        "run_id": run_id,
        "hedge_ratio": beta,
        "positions": positions.tolist(),
        "summary": report.summary(),
        "report": report.to_dict(),
    }


def load_prices_csv(path: str) -> pd.DataFrame:
    try:
        df = pd.read_csv(path)
    except FileNotFoundError as e:
        raise ConfigurationError(f"price file not found: {path}") from e
    except pd.errors.EmptyDataError as e:
        raise ConfigurationError(f"price file is empty: {path}") from e
    missing = {"series_1", "series_2"} - set(df.columns)
    if missing:
        raise ConfigurationError(f"{path} is missing columns: {sorted(missing)}")
    try:
        return df[["series_1", "series_2"]].dropna().astype(float)
    except ValueError as e:
        raise ConfigurationError(f"{path} has non-numeric prices: {e}") from e


def main(argv: List[str]) -> int:
    if len(argv) < 2:
        print(__doc__)
        return 2

    try:
        prices = load_prices_csv(argv[1])
        signals = config.load_signal_configs(argv[2] if len(argv) > 2 else None)
        bt_config = config.backtest_config(two_asset=True)
    except StatArbError as e:
        log_error(log, "backtest_config_invalid", e)
        return 1

    result = run_pair_backtest(
        prices["series_1"].to_numpy(),
        prices["series_2"].to_numpy(),
        signals,
        bt_config,
        window=config.ZSCORE_WINDOW,
    )
    if not result["ok"]:
        print(f"[FAILED] {result['error_type']}: {result['error']}")
        return 1

    print(f"[PAIR] hedge_ratio={result['hedge_ratio']:.4f} run_id={result['run_id']}")
    print_report(result["summary"])
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
