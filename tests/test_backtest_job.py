import json

import numpy as np
import pytest

import backtest_job
import config
from backtest_engine import BacktestConfig
from conditions import Direction
from errors import ConfigurationError


def test_pair_backtest_end_to_end(pair_prices, long_config, short_config):
    s1, s2 = pair_prices
    cfg = BacktestConfig(trading_costs=0.001, weight_asset_1=1.0, weight_asset_2=1.0)

    result = backtest_job.run_pair_backtest(s1, s2, [long_config, short_config], cfg, window=21, run_id="itest")

    assert result["ok"] is True
    assert result["run_id"] == "itest"
    assert len(result["positions"]) == len(s1)
    assert set(result["positions"]) <= {-1.0, 0.0, 1.0}
    # the spread is mean-reverting, both sides should trade
    assert 1.0 in result["positions"] and -1.0 in result["positions"]

    rep = result["report"]
    assert len(rep["strategy_returns"]) == len(s1)
    assert rep["strategy_returns"][0] == 0.0
    assert rep["position_changes"] > 0
    assert rep["total_costs"] > 0
    json.dumps(result)


def test_validation_failure_comes_back_as_payload(long_config):
    cfg = BacktestConfig(weight_asset_2=1.0)
    result = backtest_job.run_pair_backtest([100.0, 101.0, 102.0], [50.0, 51.0], [long_config], cfg)

    assert result["ok"] is False
    assert result["error_type"] == "LengthMismatchError"
    assert result["kind"] == "length_mismatch"


def test_non_positive_prices_are_rejected(long_config):
    result = backtest_job.run_pair_backtest([100.0, -1.0, 102.0], [50.0, 51.0, 52.0], [long_config],
                                            BacktestConfig(weight_asset_2=1.0))
    assert result["ok"] is False
    assert result["kind"] == "parameter"


def test_single_asset_when_weight_2_absent(pair_prices, long_config):
    s1, s2 = pair_prices
    result = backtest_job.run_pair_backtest(s1, s2, [long_config], BacktestConfig(), window=21)
    assert result["ok"] is True
    assert min(result["positions"]) >= 0.0


def test_load_prices_csv_and_main(tmp_path, pair_prices, capsys):
    s1, s2 = pair_prices
    path = tmp_path / "prices.csv"
    lines = ["series_1,series_2"] + [f"{a},{b}" for a, b in zip(s1, s2)]
    path.write_text("\n".join(lines) + "\n")

    df = backtest_job.load_prices_csv(str(path))
    assert np.allclose(df["series_1"].to_numpy(), s1)

    assert backtest_job.main(["backtest_job.py", str(path)]) == 0
    assert "BACKTEST REPORT" in capsys.readouterr().out


def test_load_prices_csv_missing_columns(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("a,b\n1,2\n")
    with pytest.raises(ConfigurationError):
        backtest_job.load_prices_csv(str(path))


def test_signal_configs_from_file(tmp_path):
    path = tmp_path / "signals.json"
    path.write_text(json.dumps(config.DEFAULT_SIGNALS))

    configs = config.load_signal_configs(str(path))

    assert [c.direction for c in configs] == [Direction.LONG, Direction.SHORT]
    assert configs[0].spec.lt == (-1.5, None)


def test_default_signal_configs_and_bad_json(tmp_path):
    assert len(config.load_signal_configs()) == 2

    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(ConfigurationError):
        config.load_signal_configs(str(path))


def test_backtest_config_from_env_settings():
    cfg = config.backtest_config(two_asset=False)
    assert cfg.weight_asset_2 is None
    assert cfg.trading_costs == config.TRADING_COSTS


def test_missing_or_malformed_inputs_are_configuration_errors(tmp_path):
    with pytest.raises(ConfigurationError):
        backtest_job.load_prices_csv(str(tmp_path / "nope.csv"))
    with pytest.raises(ConfigurationError):
        config.load_signal_configs(str(tmp_path / "nope.json"))

    path = tmp_path / "text.csv"
    path.write_text("series_1,series_2\n1.0,2.0\nabc,3.0\n")
    with pytest.raises(ConfigurationError):
        backtest_job.load_prices_csv(str(path))


def test_main_returns_1_on_bad_input_files(tmp_path, pair_prices):
    assert backtest_job.main(["backtest_job.py", str(tmp_path / "nope.csv")]) == 1

    s1, s2 = pair_prices
    path = tmp_path / "prices.csv"
    path.write_text("series_1,series_2\n" + "".join(f"{a},{b}\n" for a, b in zip(s1, s2)))
    assert backtest_job.main(["backtest_job.py", str(path), str(tmp_path / "nope.json")]) == 1
