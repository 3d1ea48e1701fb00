"""Moving Average Convergence Divergence.

MACD line = EMA(fast) - EMA(slow) of closes, signal line = EMA(signal) of the
MACD line, histogram = MACD - signal. The first result lands on bar
``slow + signal - 2``.
"""

from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any, Literal

import numpy as np

from folioscope.analysis.series import calculate_ema, detect_crossovers
from folioscope.analysis.types import IndicatorAnalysis, MACDResult, TechnicalSignal
from folioscope.config.constants import (
    DEFAULT_DIVERGENCE_LOOKBACK,
    MACD_CROSSOVER_BASE_STRENGTH,
    MACD_HISTOGRAM_MAX_STRENGTH,
    MACD_HISTOGRAM_MIN_STRENGTH,
    MACD_ZERO_LINE_STRENGTH,
    MAX_STRENGTH,
)
from folioscope.config.indicators import MACDConfig, coerce_config
from folioscope.data.models import PriceData, extract
from folioscope.data.validation import validate_price_data
from folioscope.exceptions import InsufficientDataError, InvalidParameterError

from .divergence import scan_divergences

Direction = Literal["bullish", "bearish"]


def calculate_macd(
    data: Sequence[PriceData],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> list[MACDResult]:
    """Calculate MACD, signal line, histogram and signal-line crossovers.

    ``crossover`` on a result describes the cross completed on that bar, so
    the first result is always ``none``.

    Raises:
        DataIntegrityError: If the series fails validation
        InvalidParameterError: If fast_period >= slow_period
        InsufficientDataError: If len(data) < slow_period + signal_period
    """
    validate_price_data(data)
    if fast_period >= slow_period:
        raise InvalidParameterError("Fast period must be less than slow period")
    if len(data) < slow_period + signal_period:
        raise InsufficientDataError("Insufficient data for MACD calculation")

    closes = extract(data, "close")
    fast_ema = calculate_ema(closes, fast_period)
    slow_ema = calculate_ema(closes, slow_period)

    # fast EMA starts (slow - fast) bars earlier than the slow EMA
    macd_line = fast_ema[slow_period - fast_period :] - slow_ema
    signal_line = calculate_ema(macd_line, signal_period)
    aligned_macd = macd_line[signal_period - 1 :]
    histogram = aligned_macd - signal_line

    crossovers = ["none", *detect_crossovers(aligned_macd, signal_line)]

    start = slow_period + signal_period - 2
    return [
        MACDResult(
            date=data[start + i].date,
            macd=float(aligned_macd[i]),
            signal=float(signal_line[i]),
            histogram=float(histogram[i]),
            crossover=crossovers[i],
        )
        for i in range(len(signal_line))
    ]


def _crossover_strength(result: MACDResult, direction: Direction) -> float:
    strength = MACD_CROSSOVER_BASE_STRENGTH
    strength += min(0.2, abs(result.macd) * 0.1)
    strength += min(0.2, abs(result.histogram) * 0.05)
    if direction == "bullish" and result.macd > 0 and result.histogram > 0:
        strength += 0.1
    elif direction == "bearish" and result.macd < 0 and result.histogram < 0:
        strength += 0.1
    return min(MAX_STRENGTH, strength)


def _histogram_turning(previous: MACDResult, current: MACDResult) -> Direction | None:
    if previous.histogram < 0 and current.histogram < 0 and current.histogram > previous.histogram:
        return "bullish"
    if previous.histogram > 0 and current.histogram > 0 and current.histogram < previous.histogram:
        return "bearish"
    return None


def _zero_line_cross(previous: MACDResult, current: MACDResult) -> Direction | None:
    if previous.macd <= 0 and current.macd > 0:
        return "bullish"
    if previous.macd >= 0 and current.macd < 0:
        return "bearish"
    return None


def generate_macd_signals(macd_results: Sequence[MACDResult], symbol: str) -> list[TechnicalSignal]:
    """Derive crossover, histogram, zero-line and divergence signals.

    Every result after the first is compared with its predecessor, so one bar
    may yield several signals.
    """
    signals: list[TechnicalSignal] = []

    for previous, current in zip(macd_results, macd_results[1:]):
        if current.crossover != "none":
            above = current.crossover == "bullish"
            signals.append(
                TechnicalSignal(
                    indicator="MACD",
                    signal="buy" if above else "sell",
                    strength=_crossover_strength(current, current.crossover),
                    value=current.macd,
                    timestamp=current.date,
                    description=(
                        f"MACD {current.crossover} crossover - MACD line ({current.macd:.4f}) "
                        f"crossed {'above' if above else 'below'} signal line ({current.signal:.4f})"
                    ),
                )
            )

        turning = _histogram_turning(previous, current)
        if turning:
            ratio = abs(current.histogram) / max(abs(current.macd), 0.001)
            signals.append(
                TechnicalSignal(
                    indicator="MACD",
                    signal="buy" if turning == "bullish" else "sell",
                    strength=min(MACD_HISTOGRAM_MAX_STRENGTH, max(MACD_HISTOGRAM_MIN_STRENGTH, ratio)),
                    value=current.histogram,
                    timestamp=current.date,
                    description=(
                        f"MACD histogram {turning} momentum - histogram turning "
                        f"{'positive' if turning == 'bullish' else 'negative'}"
                    ),
                )
            )

        zero_cross = _zero_line_cross(previous, current)
        if zero_cross:
            signals.append(
                TechnicalSignal(
                    indicator="MACD",
                    signal="buy" if zero_cross == "bullish" else "sell",
                    strength=MACD_ZERO_LINE_STRENGTH,
                    value=current.macd,
                    timestamp=current.date,
                    description=(
                        "MACD zero line crossover - MACD line crossed "
                        f"{'above' if zero_cross == 'bullish' else 'below'} zero line"
                    ),
                )
            )

        if current.divergence != "none":
            signals.append(
                TechnicalSignal(
                    indicator="MACD",
                    signal="buy" if current.divergence == "bullish" else "sell",
                    strength=_crossover_strength(current, current.divergence),
                    value=current.macd,
                    timestamp=current.date,
                    description=(
                        f"{current.divergence.capitalize()} MACD divergence detected - "
                        f"price momentum may reverse {'upward' if current.divergence == 'bullish' else 'downward'}"
                    ),
                )
            )

    return signals


def detect_macd_divergence(
    data: Sequence[PriceData],
    macd_results: Sequence[MACDResult],
    lookback_period: int = DEFAULT_DIVERGENCE_LOOKBACK,
) -> list[MACDResult]:
    """Mark divergences between closes and the MACD line.

    Bullish needs both MACD readings below zero, bearish both above. The
    result goes into ``divergence``; ``crossover`` is left untouched.
    """
    results = list(macd_results)
    if len(results) < lookback_period * 2:
        return results

    offset = len(data) - len(results)
    labels = scan_divergences(
        extract(data, "close")[offset:],
        np.array([r.macd for r in results]),
        lookback_period,
        bullish_zone=lambda value, past: (value < 0) & (past < 0),
        bearish_zone=lambda value, past: (value > 0) & (past > 0),
    )
    return [
        replace(result, divergence=label) if label != "none" else result
        for result, label in zip(results, labels)
    ]


def analyze_macd(
    data: Sequence[PriceData],
    symbol: str,
    config: MACDConfig | Mapping[str, Any] | None = None,
) -> IndicatorAnalysis:
    cfg = coerce_config(MACDConfig, config)
    results = calculate_macd(data, cfg.fast_period, cfg.slow_period, cfg.signal_period)
    if cfg.detect_divergence:
        results = detect_macd_divergence(data, results, cfg.divergence_lookback)
    return IndicatorAnalysis(results=results, signals=generate_macd_signals(results, symbol))
