"""Relative Strength Index.

RSI measures the speed of price changes on a 0-100 scale. Average gains and
losses are smoothed with the SMA-seeded EMA, so the first reading appears on
bar ``period``. Readings at or below ``oversold`` are buy candidates, readings
at or above ``overbought`` are sell candidates.
"""

from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

import numpy as np

from folioscope.analysis.series import calculate_ema, calculate_gains_and_losses
from folioscope.analysis.types import IndicatorAnalysis, RSIResult, TechnicalSignal
from folioscope.config.constants import (
    DEFAULT_DIVERGENCE_LOOKBACK,
    DIVERGENCE_STRENGTH_BOOST,
    MAX_STRENGTH,
    RSI_MIDPOINT,
    RSI_ZERO_LOSS_RS,
)
from folioscope.config.indicators import RSIConfig, coerce_config
from folioscope.data.models import PriceData, extract
from folioscope.data.validation import validate_price_data
from folioscope.exceptions import InvalidPeriodError

from .divergence import scan_divergences


def _signal_for(rsi: float, overbought: float, oversold: float) -> tuple[str, float]:
    if rsi <= oversold:
        return "buy", max(0.6, (oversold - rsi) / oversold + 0.5)
    if rsi >= overbought:
        return "sell", max(0.6, (rsi - overbought) / (100 - overbought) + 0.5)
    # 0.3 at the midpoint, rising toward 0.7 at the scale ends
    return "hold", 0.3 + abs(rsi - RSI_MIDPOINT) / RSI_MIDPOINT * 0.4


def calculate_rsi(
    data: Sequence[PriceData],
    period: int = 14,
    overbought: float = 70,
    oversold: float = 30,
) -> list[RSIResult]:
    """Calculate RSI for every bar from index ``period`` on.

    Args:
        data: Price series ordered by date
        period: Smoothing period
        overbought: Sell threshold
        oversold: Buy threshold

    Returns:
        ``len(data) - period`` results

    Raises:
        DataIntegrityError: If the series fails validation
        InvalidPeriodError: If period <= 0 or period >= len(data)
    """
    validate_price_data(data)
    if period <= 0 or period >= len(data):
        raise InvalidPeriodError("Invalid period for RSI calculation")

    gains, losses = calculate_gains_and_losses(extract(data, "close"))
    avg_gains = calculate_ema(gains, period)
    avg_losses = calculate_ema(losses, period)

    with np.errstate(divide="ignore", invalid="ignore"):
        rs = np.where(avg_losses == 0, RSI_ZERO_LOSS_RS, avg_gains / avg_losses)
    rsi_values = 100 - 100 / (1 + rs)

    results = []
    for i, rsi in enumerate(rsi_values):
        rsi = float(rsi)
        signal, strength = _signal_for(rsi, overbought, oversold)
        results.append(
            RSIResult(
                date=data[i + period].date,
                value=rsi,
                signal=signal,
                strength=min(MAX_STRENGTH, strength),
                overbought=rsi >= overbought,
                oversold=rsi <= oversold,
            )
        )
    return results


def detect_rsi_divergence(
    data: Sequence[PriceData],
    rsi_results: Sequence[RSIResult],
    lookback_period: int = DEFAULT_DIVERGENCE_LOOKBACK,
) -> list[RSIResult]:
    """Mark bullish/bearish divergences between closes and RSI.

    Bullish: the close is below an earlier close within the lookback while RSI
    is above the earlier reading, both readings under 50. Bearish is the
    mirror, both readings over 50. A divergence overrides the zone signal and
    adds 0.2 strength.

    Returns a new list; the input is not modified.
    """
    results = list(rsi_results)
    if len(results) < lookback_period * 2:
        return results

    # RSI result i belongs to bar offset + i
    offset = len(data) - len(results)
    closes = extract(data, "close")[offset:]
    labels = scan_divergences(
        closes,
        [r.value for r in results],
        lookback_period,
        bullish_zone=lambda value, past: (value < RSI_MIDPOINT) & (past < RSI_MIDPOINT),
        bearish_zone=lambda value, past: (value > RSI_MIDPOINT) & (past > RSI_MIDPOINT),
    )

    for i, label in enumerate(labels):
        if label == "none":
            continue
        result = results[i]
        results[i] = replace(
            result,
            divergence=label,
            signal="buy" if label == "bullish" else "sell",
            strength=min(MAX_STRENGTH, result.strength + DIVERGENCE_STRENGTH_BOOST),
        )
    return results


def _describe(result: RSIResult) -> str:
    if result.signal == "buy":
        if result.oversold:
            return f"RSI oversold at {result.value:.2f} - potential buying opportunity"
        if result.divergence == "bullish":
            return "Bullish RSI divergence detected - price momentum may reverse upward"
        return f"RSI showing bullish momentum at {result.value:.2f}"
    if result.overbought:
        return f"RSI overbought at {result.value:.2f} - potential selling opportunity"
    if result.divergence == "bearish":
        return "Bearish RSI divergence detected - price momentum may reverse downward"
    return f"RSI showing bearish momentum at {result.value:.2f}"


def generate_rsi_signals(rsi_results: Sequence[RSIResult], symbol: str) -> list[TechnicalSignal]:
    """One signal per non-hold RSI result."""
    return [
        TechnicalSignal(
            indicator="RSI",
            signal=result.signal,
            strength=result.strength,
            value=result.value,
            timestamp=result.date,
            description=_describe(result),
        )
        for result in rsi_results
        if result.signal != "hold"
    ]


def analyze_rsi(
    data: Sequence[PriceData],
    symbol: str,
    config: RSIConfig | Mapping[str, Any] | None = None,
) -> IndicatorAnalysis:
    """Calculate RSI, optionally mark divergences, and derive signals."""
    cfg = coerce_config(RSIConfig, config)
    results = calculate_rsi(data, cfg.period, cfg.overbought, cfg.oversold)
    if cfg.detect_divergence:
        results = detect_rsi_divergence(data, results, cfg.divergence_lookback)
    return IndicatorAnalysis(results=results, signals=generate_rsi_signals(results, symbol))
