"""
ss34
settings for research runs. env (via .env) for the numeric knobs, json files for the signal documents.
"""
import json
import os
from typing import List, Optional

from dotenv import load_dotenv

from backtest_engine import BacktestConfig
from conditions import SignalConfig
from errors import ConfigurationError

load_dotenv(dotenv_path=".env")


def env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return float(default)
    try:
        return float(v)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {v!r}")


def env_int(name: str, default: Optional[int]) -> Optional[int]:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    try:
        return int(v)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {v!r}")


TRADING_COSTS = env_float("TRADING_COSTS", 0.001)
WEIGHT_ASSET_1 = env_float("WEIGHT_ASSET_1", 1.0)
WEIGHT_ASSET_2 = env_float("WEIGHT_ASSET_2", 1.0)
ZSCORE_WINDOW = env_int("ZSCORE_WINDOW", 21)
PERIODS_PER_YEAR = env_int("PERIODS_PER_YEAR", 252)
SWEEP_WORKERS = env_int("SWEEP_WORKERS", None)

# the classic symmetric pair: long the spread below -1.5, short above +1.5, flat once it crosses 0
DEFAULT_SIGNALS = [
    {"eq": [None, None], "neq": [None, None], "gt": [None, 0.0], "lt": [-1.5, None], "signal_type": "Long"},
    {"eq": [None, None], "neq": [None, None], "gt": [1.5, None], "lt": [None, 0.0], "signal_type": "Short"},
]


def backtest_config(two_asset: bool = True) -> BacktestConfig:
    return BacktestConfig(
        trading_costs=TRADING_COSTS,
        weight_asset_1=WEIGHT_ASSET_1,
        weight_asset_2=WEIGHT_ASSET_2 if two_asset else None,
        periods_per_year=PERIODS_PER_YEAR,
    )


def parse_signal_configs(docs) -> List[SignalConfig]:
    if isinstance(docs, dict):
        docs = [docs]
    if not isinstance(docs, list) or not docs:
        raise ConfigurationError("signal config must be an object or a non-empty list of objects")
    return [SignalConfig.from_dict(d) for d in docs]


def load_signal_configs(path: Optional[str] = None) -> List[SignalConfig]:
    """json file with one signal document or a list of them. no path -> DEFAULT_SIGNALS"""
    if path is None:
        return parse_signal_configs(DEFAULT_SIGNALS)
    try:
        with open(path) as f:
            docs = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"signal file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{path} is not valid json: {e}") from e
    return parse_signal_configs(docs)
