"""Bollinger Bands.

Middle band = SMA(period) of closes, upper/lower = middle +/- k population
standard deviations. %B places the close inside the bands (0 = lower,
1 = upper) and bandwidth measures band width relative to the middle band.
A bandwidth under 0.1 is a squeeze.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Literal

import numpy as np

from folioscope.analysis.series import calculate_sma, calculate_standard_deviation
from folioscope.analysis.types import (
    BollingerBandsAnalysis,
    BollingerBandsResult,
    TechnicalSignal,
)
from folioscope.config.constants import (
    BAND_TOUCH_TOLERANCE,
    BAND_WALK_MIN_PERIODS,
    BAND_WALK_TOLERANCE,
    MAX_STRENGTH,
    PERCENT_B_HIGH,
    PERCENT_B_LOW,
    SQUEEZE_BANDWIDTH_THRESHOLD,
    SQUEEZE_EXPANSION_RATIO,
)
from folioscope.config.indicators import BollingerBandsConfig, coerce_config
from folioscope.data.models import PriceData, extract
from folioscope.data.validation import validate_price_data
from folioscope.exceptions import InvalidPeriodError

Band = Literal["upper", "lower"]

INDICATOR_NAME = "Bollinger Bands"


def calculate_bollinger_bands(
    data: Sequence[PriceData],
    period: int = 20,
    standard_deviations: float = 2.0,
) -> list[BollingerBandsResult]:
    """Calculate the bands for every bar from index ``period - 1`` on.

    When the bands collapse (zero deviation) %B is reported as 0.5.

    Raises:
        DataIntegrityError: If the series fails validation
        InvalidPeriodError: If period <= 0 or period > len(data)
    """
    validate_price_data(data)
    if period <= 0 or period > len(data):
        raise InvalidPeriodError("Invalid period for Bollinger Bands calculation")

    closes = extract(data, "close")
    middle = calculate_sma(closes, period)
    deviation = calculate_standard_deviation(closes, period) * standard_deviations
    upper = middle + deviation
    lower = middle - deviation
    prices = closes[period - 1 :]

    width = upper - lower
    with np.errstate(divide="ignore", invalid="ignore"):
        percent_b = np.where(width > 0, (prices - lower) / width, 0.5)
        bandwidth = np.where(middle != 0, width / middle, 0.0)

    return [
        BollingerBandsResult(
            date=data[i + period - 1].date,
            upper=float(upper[i]),
            middle=float(middle[i]),
            lower=float(lower[i]),
            bandwidth=float(bandwidth[i]),
            percent_b=float(percent_b[i]),
            squeeze=bool(bandwidth[i] < SQUEEZE_BANDWIDTH_THRESHOLD),
        )
        for i in range(len(middle))
    ]


def _relative_distance(price: float, band: float) -> float:
    if band == 0:
        return abs(price)
    return abs(price - band) / band


def _band_touch(
    price: float,
    previous_price: float,
    current: BollingerBandsResult,
    previous: BollingerBandsResult,
) -> Band | None:
    if (
        _relative_distance(price, current.upper) < BAND_TOUCH_TOLERANCE
        and _relative_distance(previous_price, previous.upper) >= BAND_TOUCH_TOLERANCE
    ):
        return "upper"
    if (
        _relative_distance(price, current.lower) < BAND_TOUCH_TOLERANCE
        and _relative_distance(previous_price, previous.lower) >= BAND_TOUCH_TOLERANCE
    ):
        return "lower"
    return None


def _band_breakout(
    price: float,
    previous_price: float,
    current: BollingerBandsResult,
    previous: BollingerBandsResult,
) -> Band | None:
    if price > current.upper and previous_price <= previous.upper:
        return "upper"
    if price < current.lower and previous_price >= previous.lower:
        return "lower"
    return None


def _touch_strength(result: BollingerBandsResult, band: Band) -> float:
    strength = 0.6
    if band == "upper" and result.percent_b > PERCENT_B_HIGH:
        strength += 0.2
    elif band == "lower" and result.percent_b < PERCENT_B_LOW:
        strength += 0.2
    if result.squeeze:
        strength += 0.1
    return min(MAX_STRENGTH, strength)


def _breakout_strength(result: BollingerBandsResult, band: Band) -> float:
    if band == "upper":
        extremeness = max(0.0, result.percent_b - 1)
    else:
        extremeness = max(0.0, -result.percent_b)
    strength = 0.7 + min(0.2, extremeness * 2)
    if result.squeeze:
        strength += 0.1
    return min(MAX_STRENGTH, strength)


def generate_bollinger_bands_signals(
    data: Sequence[PriceData],
    bollinger_results: Sequence[BollingerBandsResult],
    symbol: str,
) -> list[TechnicalSignal]:
    """Derive touch, breakout, squeeze-ending and extreme %B signals.

    Results must come from calculate_bollinger_bands over ``data``; the close
    for result ``i`` is taken from the matching bar.
    """
    signals: list[TechnicalSignal] = []
    if not bollinger_results:
        return signals

    closes = extract(data, "close")
    offset = len(data) - len(bollinger_results)

    for i in range(1, len(bollinger_results)):
        current = bollinger_results[i]
        previous = bollinger_results[i - 1]
        price = float(closes[i + offset])
        previous_price = float(closes[i + offset - 1])

        touch = _band_touch(price, previous_price, current, previous)
        if touch:
            signal = "sell" if touch == "upper" else "buy"
            signals.append(
                TechnicalSignal(
                    indicator=INDICATOR_NAME,
                    signal=signal,
                    strength=_touch_strength(current, touch),
                    value=price,
                    timestamp=current.date,
                    description=(
                        f"Price touched {touch} Bollinger Band - potential "
                        f"{'bounce up' if signal == 'buy' else 'bounce down'}"
                    ),
                )
            )

        breakout = _band_breakout(price, previous_price, current, previous)
        if breakout:
            upward = breakout == "upper"
            signals.append(
                TechnicalSignal(
                    indicator=INDICATOR_NAME,
                    signal="buy" if upward else "sell",
                    strength=_breakout_strength(current, breakout),
                    value=price,
                    timestamp=current.date,
                    description=(
                        f"Price broke {'above upper' if upward else 'below lower'} Bollinger Band"
                        f" - potential {'upward' if upward else 'downward'} momentum"
                    ),
                )
            )

        if (
            previous.squeeze
            and not current.squeeze
            and current.bandwidth > previous.bandwidth * SQUEEZE_EXPANSION_RATIO
        ):
            signals.append(
                TechnicalSignal(
                    indicator=INDICATOR_NAME,
                    signal="hold",
                    strength=0.6,
                    value=current.bandwidth,
                    timestamp=current.date,
                    description="Bollinger Band squeeze ending - volatility expansion expected",
                )
            )

        if current.percent_b < PERCENT_B_LOW or current.percent_b > PERCENT_B_HIGH:
            oversold = current.percent_b < PERCENT_B_LOW
            signals.append(
                TechnicalSignal(
                    indicator=INDICATOR_NAME,
                    signal="buy" if oversold else "sell",
                    strength=0.7,
                    value=current.percent_b,
                    timestamp=current.date,
                    description=(
                        f"%B at {current.percent_b * 100:.1f}% - extremely "
                        f"{'oversold' if oversold else 'overbought'} condition"
                    ),
                )
            )

    return signals


def detect_band_walking(
    data: Sequence[PriceData],
    bollinger_results: Sequence[BollingerBandsResult],
    min_periods: int = BAND_WALK_MIN_PERIODS,
) -> list[Band | None]:
    """Classify each result as walking the upper band, the lower band, or neither.

    A walk needs ``min_periods`` consecutive closes within 2% of the same band.
    """
    closes = extract(data, "close")
    offset = len(data) - len(bollinger_results)
    upper_limit = 1 - BAND_WALK_TOLERANCE
    lower_limit = 1 + BAND_WALK_TOLERANCE

    walking: list[Band | None] = []
    for i in range(len(bollinger_results)):
        if i < min_periods - 1:
            walking.append(None)
            continue

        window = range(i - min_periods + 1, i + 1)
        if all(closes[j + offset] >= bollinger_results[j].upper * upper_limit for j in window):
            walking.append("upper")
        elif all(closes[j + offset] <= bollinger_results[j].lower * lower_limit for j in window):
            walking.append("lower")
        else:
            walking.append(None)
    return walking


def analyze_bollinger_bands(
    data: Sequence[PriceData],
    symbol: str,
    config: BollingerBandsConfig | Mapping[str, Any] | None = None,
) -> BollingerBandsAnalysis:
    cfg = coerce_config(BollingerBandsConfig, config)
    results = calculate_bollinger_bands(data, cfg.period, cfg.standard_deviations)
    signals = generate_bollinger_bands_signals(data, results, symbol)
    walking = detect_band_walking(data, results) if cfg.detect_walking else None
    return BollingerBandsAnalysis(results=results, signals=signals, walking=walking)
