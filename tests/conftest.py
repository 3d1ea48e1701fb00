"""
Shared pytest fixtures for the folioscope test suite.

This module provides fixtures for:
- Price series with known shapes (uptrend, downtrend, flat, volatile)
- Seeded random-walk series
- Sample OHLCV DataFrames
- Test settings overrides
- A frozen clock for the analysis engine
"""

from datetime import datetime, timedelta

import numpy as np
import pandas as pd
import pytest

from folioscope.config import Settings, get_settings
from folioscope.data import PriceData, generate_sample_price_data

START_DATE = datetime(2024, 1, 1)

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow-running tests")


# ============================================================================
# Series Builders
# ============================================================================


def make_series(
    closes,
    volumes=None,
    spread: float = 0.01,
    start: datetime = START_DATE,
) -> list[PriceData]:
    """Build a daily series around the given closes.

    Each bar opens at the previous close and its high/low sit ``spread``
    (fractional) outside the open/close range.
    """
    closes = [float(c) for c in closes]
    if volumes is None:
        volumes = [1_000_000.0] * len(closes)

    series = []
    prev = closes[0]
    for i, (close, volume) in enumerate(zip(closes, volumes)):
        top = max(prev, close)
        bottom = min(prev, close)
        series.append(
            PriceData(
                date=start + timedelta(days=i),
                open=prev,
                high=top * (1 + spread),
                low=bottom * (1 - spread),
                close=close,
                volume=float(volume),
            )
        )
        prev = close
    return series


@pytest.fixture
def series_builder():
    """Expose make_series to tests."""
    return make_series


# ============================================================================
# Market Data Fixtures
# ============================================================================


@pytest.fixture
def uptrend_data() -> list[PriceData]:
    """60 bars rising 1 per bar from 100."""
    return make_series([100 + i for i in range(60)])


@pytest.fixture
def downtrend_data() -> list[PriceData]:
    """60 bars falling 1 per bar from 160."""
    return make_series([160 - i for i in range(60)])


@pytest.fixture
def flat_data() -> list[PriceData]:
    """40 identical bars with no intraday range."""
    return [
        PriceData(
            date=START_DATE + timedelta(days=i),
            open=50.0,
            high=50.0,
            low=50.0,
            close=50.0,
            volume=1000.0,
        )
        for i in range(40)
    ]


@pytest.fixture
def volatile_data() -> list[PriceData]:
    """60 bars alternating +/-8% around 100."""
    return make_series([100 * (1.08 if i % 2 else 0.92) for i in range(60)], spread=0.005)


@pytest.fixture
def sample_price_data() -> list[PriceData]:
    """250 bars of seeded random walk, enough for every indicator family."""
    return generate_sample_price_data("TEST", 250, seed=42, start_date=START_DATE)


@pytest.fixture
def sample_ohlcv_dataframe(sample_price_data) -> pd.DataFrame:
    """Sample OHLCV DataFrame with a timestamp column."""
    return pd.DataFrame(
        {
            "timestamp": [bar.date for bar in sample_price_data],
            "open": [bar.open for bar in sample_price_data],
            "high": [bar.high for bar in sample_price_data],
            "low": [bar.low for bar in sample_price_data],
            "close": [bar.close for bar in sample_price_data],
            "volume": [bar.volume for bar in sample_price_data],
        }
    )


@pytest.fixture
def macd_reversal_data() -> list[PriceData]:
    """60 bars: an accelerating decline for 40 bars, then a steady rally."""
    closes = [120 - 0.02 * t**2 for t in range(40)]
    closes += [closes[-1] + 2.5 * (i + 1) for i in range(20)]
    return make_series(closes)


@pytest.fixture
def macd_pullback_data() -> list[PriceData]:
    """60 bars: a steady uptrend, a five-bar pullback at bars 45-49, then the climb resumes."""
    closes = [100.0 + t for t in range(45)]
    closes += [closes[-1] - 2 * (i + 1) for i in range(5)]
    closes += [closes[-1] + 1.5 * (i + 1) for i in range(10)]
    return make_series(closes)


@pytest.fixture
def random_closes() -> np.ndarray:
    rng = np.random.default_rng(7)
    return 100 + np.cumsum(rng.normal(0, 1, 120))


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Override settings for testing environment."""
    from folioscope.config.settings import AnalysisSettings, LoggingSettings

    return Settings(
        analysis=AnalysisSettings(divergence_lookback=10, include_ema=False, volume_min_bars=30),
        logging=LoggingSettings(level="DEBUG", environment="test"),
    )


# ============================================================================
# Utility Fixtures
# ============================================================================


@pytest.fixture
def freeze_time():
    """Fixture to freeze time for testing."""
    frozen_time = datetime(2024, 6, 1, 12, 0, 0)

    class FrozenTime:
        def __init__(self, dt):
            self.dt = dt

        def now(self):
            return self.dt

        def advance(self, **kwargs):
            self.dt += timedelta(**kwargs)

    return FrozenTime(frozen_time)


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset the cached Settings singleton between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
