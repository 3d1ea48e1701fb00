"""
Windowed statistics primitives shared by all indicators.

Functions take plain float sequences (or PriceData series) and return new
numpy arrays; inputs are never modified. Window functions return only the
fully-populated windows, so an N-period result is ``len(values) - N + 1`` long.
"""

from collections.abc import Sequence
from typing import Literal

import numpy as np
import pandas as pd

from folioscope.data.models import PriceData, extract
from folioscope.exceptions import InvalidPeriodError, SeriesLengthError

Crossover = Literal["bullish", "bearish", "none"]


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float)


def _check_period(period: int, length: int, name: str) -> None:
    if period <= 0 or period > length:
        raise InvalidPeriodError(f"Invalid period for {name} calculation")


def calculate_sma(values: Sequence[float], period: int) -> np.ndarray:
    """Simple moving average of each trailing window of ``period`` values.

    Raises:
        InvalidPeriodError: If period <= 0 or period > len(values)
    """
    arr = _as_array(values)
    _check_period(period, len(arr), "SMA")
    return pd.Series(arr).rolling(window=period).mean().to_numpy()[period - 1 :]


def calculate_ema(values: Sequence[float], period: int) -> np.ndarray:
    """Exponential moving average seeded with the SMA of the first ``period`` values.

    EMA[i] = value[i] * k + EMA[i-1] * (1 - k) with k = 2 / (period + 1).

    Raises:
        InvalidPeriodError: If period <= 0 or period > len(values)
    """
    arr = _as_array(values)
    _check_period(period, len(arr), "EMA")

    seed = arr[:period].sum() / period
    seeded = np.concatenate(([seed], arr[period:]))
    multiplier = 2 / (period + 1)
    return pd.Series(seeded).ewm(alpha=multiplier, adjust=False).mean().to_numpy()


def calculate_standard_deviation(values: Sequence[float], period: int) -> np.ndarray:
    """Population standard deviation (divide by period) of each trailing window."""
    arr = _as_array(values)
    _check_period(period, len(arr), "standard deviation")
    std = pd.Series(arr).rolling(window=period).std(ddof=0).to_numpy()[period - 1 :]
    # rolling variance can go marginally negative on flat windows
    return np.nan_to_num(std, nan=0.0)


def calculate_true_range(data: Sequence[PriceData]) -> np.ndarray:
    """Wilder's true range for every bar after the first."""
    high = extract(data, "high")
    low = extract(data, "low")
    close = extract(data, "close")

    prev_close = close[:-1]
    tr1 = high[1:] - low[1:]
    tr2 = np.abs(high[1:] - prev_close)
    tr3 = np.abs(low[1:] - prev_close)
    return np.maximum.reduce([tr1, tr2, tr3])


def calculate_atr(data: Sequence[PriceData], period: int) -> np.ndarray:
    """Average true range: SMA of the true range series."""
    return calculate_sma(calculate_true_range(data), period)


def calculate_price_changes(prices: Sequence[float]) -> np.ndarray:
    """Bar-over-bar differences; one element shorter than the input."""
    return np.diff(_as_array(prices))


def calculate_gains_and_losses(prices: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
    """Split bar-over-bar changes into non-negative gains and non-negative losses."""
    changes = calculate_price_changes(prices)
    gains = np.where(changes > 0, changes, 0.0)
    losses = np.where(changes < 0, -changes, 0.0)
    return gains, losses


def rolling_max(values: Sequence[float], period: int) -> np.ndarray:
    arr = _as_array(values)
    _check_period(period, len(arr), "rolling maximum")
    return pd.Series(arr).rolling(window=period).max().to_numpy()[period - 1 :]


def rolling_min(values: Sequence[float], period: int) -> np.ndarray:
    arr = _as_array(values)
    _check_period(period, len(arr), "rolling minimum")
    return pd.Series(arr).rolling(window=period).min().to_numpy()[period - 1 :]


def find_highest_high(data: Sequence[PriceData], start_index: int, period: int) -> float:
    """Highest high in data[start_index : start_index + period]."""
    window = data[start_index : min(start_index + period, len(data))]
    return max(bar.high for bar in window)


def find_lowest_low(data: Sequence[PriceData], start_index: int, period: int) -> float:
    """Lowest low in data[start_index : start_index + period]."""
    window = data[start_index : min(start_index + period, len(data))]
    return min(bar.low for bar in window)


def detect_crossovers(series1: Sequence[float], series2: Sequence[float]) -> list[Crossover]:
    """Classify each step of ``series1 - series2``.

    Element ``i - 1`` of the result describes the move from index ``i - 1`` to
    ``i``: bullish when the difference goes from <= 0 to > 0, bearish when it
    goes from >= 0 to < 0, otherwise none.

    Raises:
        SeriesLengthError: If the series differ in length
    """
    if len(series1) != len(series2):
        raise SeriesLengthError("Series must have the same length")
    if len(series1) < 2:
        return []

    diff = _as_array(series1) - _as_array(series2)
    prev, curr = diff[:-1], diff[1:]

    labels: list[Crossover] = []
    for p, c in zip(prev, curr):
        if p <= 0 and c > 0:
            labels.append("bullish")
        elif p >= 0 and c < 0:
            labels.append("bearish")
        else:
            labels.append("none")
    return labels


def calculate_percentage_change(old_value: float, new_value: float) -> float:
    """Percent change from old to new; 0 when old is 0."""
    if old_value == 0:
        return 0.0
    return (new_value - old_value) / old_value * 100


def normalize_values(values: Sequence[float]) -> np.ndarray:
    """Min-max scale to [0, 1]; a flat series maps to 0.5."""
    arr = _as_array(values)
    if arr.size == 0:
        return arr
    value_range = arr.max() - arr.min()
    if value_range == 0:
        return np.full_like(arr, 0.5)
    return (arr - arr.min()) / value_range


def calculate_correlation(series1: Sequence[float], series2: Sequence[float]) -> float:
    """Pearson correlation coefficient.

    Returns 0.0 when either series has zero variance.

    Raises:
        SeriesLengthError: If lengths differ or are zero
    """
    a = _as_array(series1)
    b = _as_array(series2)
    if len(a) != len(b) or len(a) == 0:
        raise SeriesLengthError("Series must have the same non-zero length")

    da = a - a.mean()
    db = b - b.mean()
    denominator = np.sqrt(np.sum(da * da) * np.sum(db * db))
    if denominator == 0:
        return 0.0
    return float(np.sum(da * db) / denominator)
