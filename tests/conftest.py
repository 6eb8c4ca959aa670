import numpy as np
import pytest
from dotenv import load_dotenv

from conditions import Direction, SignalConfig, ThresholdSpec

load_dotenv(dotenv_path=".env")


@pytest.fixture()
def long_config():
    # long below -1.5, out once the z-score climbs back above 0
    return SignalConfig(spec=ThresholdSpec(lt=(-1.5, None), gt=(None, 0.0)), direction=Direction.LONG)


@pytest.fixture()
def short_config():
    return SignalConfig(spec=ThresholdSpec(gt=(1.5, None), lt=(None, 0.0)), direction=Direction.SHORT)


@pytest.fixture()
def pair_prices():
    """two cointegrated price paths: s1 = 1.2 * s2 + mean-reverting noise."""
    rng = np.random.default_rng(7)
    n = 300
    s2 = 100.0 + np.cumsum(rng.normal(0.0, 0.5, n))
    noise = np.zeros(n)
    for i in range(1, n):
        noise[i] = 0.8 * noise[i - 1] + rng.normal(0.0, 1.0)
    s1 = 10.0 + 1.2 * s2 + noise
    return s1, s2
