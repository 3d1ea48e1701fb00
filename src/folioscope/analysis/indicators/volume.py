"""Volume indicators: On-Balance Volume, Volume Price Trend and the Accumulation/Distribution line.

All three produce one result per bar. OBV and VPT classify their trend by
correlating the trailing 10 readings with the trailing 10 closes; the A/D
line classifies each bar by its money flow multiplier.
"""

from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any, TypeVar

import numpy as np

from folioscope.analysis.series import calculate_correlation
from folioscope.analysis.types import (
    AccumulationDistributionResult,
    OBVResult,
    TechnicalSignal,
    VolumeAnalysis,
    VolumePriceTrendResult,
)
from folioscope.config.constants import (
    AD_MONEY_FLOW_THRESHOLD,
    DEFAULT_DIVERGENCE_LOOKBACK,
    DIVERGENCE_STRENGTH_BOOST,
    MAX_STRENGTH,
    OBV_CORRELATION_THRESHOLD,
    VOLUME_SIGNAL_MAX_STRENGTH,
    VOLUME_TREND_WINDOW,
    VPT_CORRELATION_THRESHOLD,
)
from folioscope.config.indicators import VolumeConfig, coerce_config
from folioscope.data.models import PriceData, extract
from folioscope.data.validation import validate_price_data

from .divergence import scan_divergences

ResultT = TypeVar("ResultT", OBVResult, AccumulationDistributionResult)


def _correlation_trends(
    values: np.ndarray,
    closes: np.ndarray,
    threshold: float,
) -> list[tuple[str, str, float]]:
    """(trend, signal, strength) per bar from the rolling indicator/close correlation."""
    trends = []
    for i in range(len(values)):
        if i < VOLUME_TREND_WINDOW:
            trends.append(("neutral", "hold", 0.5))
            continue
        window = slice(i - VOLUME_TREND_WINDOW + 1, i + 1)
        correlation = calculate_correlation(values[window], closes[window])
        strength = min(VOLUME_SIGNAL_MAX_STRENGTH, 0.5 + abs(correlation) * 0.3)
        if correlation > threshold:
            trends.append(("bullish", "buy", strength))
        elif correlation < -threshold:
            trends.append(("bearish", "sell", strength))
        else:
            trends.append(("neutral", "hold", 0.5))
    return trends


def calculate_obv(data: Sequence[PriceData]) -> list[OBVResult]:
    """On-Balance Volume.

    Starts at the first bar's volume, then adds the volume on up closes and
    subtracts it on down closes. Unchanged closes leave OBV unchanged.
    """
    validate_price_data(data)
    closes = extract(data, "close")
    volumes = extract(data, "volume")

    direction = np.sign(np.diff(closes))
    obv = np.concatenate(([volumes[0]], volumes[0] + np.cumsum(direction * volumes[1:])))

    return [
        OBVResult(
            date=bar.date,
            value=float(value),
            signal=signal,
            strength=strength,
            trend=trend,
        )
        for bar, value, (trend, signal, strength) in zip(
            data, obv, _correlation_trends(obv, closes, OBV_CORRELATION_THRESHOLD)
        )
    ]


def calculate_volume_price_trend(data: Sequence[PriceData]) -> list[VolumePriceTrendResult]:
    """Volume Price Trend: cumulative volume weighted by the fractional close change.

    Starts at 0; a zero previous close contributes nothing.
    """
    validate_price_data(data)
    closes = extract(data, "close")
    volumes = extract(data, "volume")

    prev_close = closes[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        change = np.where(prev_close != 0, np.diff(closes) / prev_close, 0.0)
    vpt = np.concatenate(([0.0], np.cumsum(volumes[1:] * change)))

    return [
        VolumePriceTrendResult(
            date=bar.date,
            value=float(value),
            signal=signal,
            strength=strength,
            trend=trend,
        )
        for bar, value, (trend, signal, strength) in zip(
            data, vpt, _correlation_trends(vpt, closes, VPT_CORRELATION_THRESHOLD)
        )
    ]


def calculate_accumulation_distribution(
    data: Sequence[PriceData],
) -> list[AccumulationDistributionResult]:
    """Accumulation/Distribution line.

    Money flow multiplier = ((close - low) - (high - close)) / (high - low),
    0 for a bar with no range. The line accumulates multiplier * volume.
    """
    validate_price_data(data)
    highs = extract(data, "high")
    lows = extract(data, "low")
    closes = extract(data, "close")
    volumes = extract(data, "volume")

    bar_range = highs - lows
    with np.errstate(divide="ignore", invalid="ignore"):
        mfm = np.where(
            bar_range != 0, ((closes - lows) - (highs - closes)) / bar_range, 0.0
        )
    ad_line = np.cumsum(mfm * volumes)

    results = []
    for bar, value, multiplier in zip(data, ad_line, mfm):
        strength = min(VOLUME_SIGNAL_MAX_STRENGTH, 0.5 + abs(multiplier) * 0.3)
        if multiplier > AD_MONEY_FLOW_THRESHOLD:
            trend, signal = "accumulation", "buy"
        elif multiplier < -AD_MONEY_FLOW_THRESHOLD:
            trend, signal = "distribution", "sell"
        else:
            trend, signal, strength = "neutral", "hold", 0.5
        results.append(
            AccumulationDistributionResult(
                date=bar.date,
                value=float(value),
                signal=signal,
                strength=float(strength),
                trend=trend,
            )
        )
    return results


def detect_volume_divergences(
    data: Sequence[PriceData],
    volume_indicator: Sequence[ResultT],
    lookback_period: int = DEFAULT_DIVERGENCE_LOOKBACK,
) -> list[ResultT]:
    """Mark price/volume divergences on OBV or A/D results.

    For each scanned bar the earliest earlier bar within the lookback where
    price and indicator moved in opposite directions decides the label. A
    divergence overrides the trend signal and adds 0.2 strength.
    """
    results = list(volume_indicator)
    if len(results) < lookback_period * 2:
        return results

    offset = len(data) - len(results)
    labels = scan_divergences(
        extract(data, "close")[offset:],
        [r.value for r in results],
        lookback_period,
        first_match=True,
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


def _obv_description(result: OBVResult) -> str | None:
    if result.divergence == "bullish":
        return "OBV bullish divergence - volume supporting potential price reversal"
    if result.divergence == "bearish":
        return "OBV bearish divergence - volume suggesting potential price weakness"
    if result.trend == "bullish":
        return "OBV showing bullish trend - buying pressure increasing"
    if result.trend == "bearish":
        return "OBV showing bearish trend - selling pressure increasing"
    return None


def _vpt_description(result: VolumePriceTrendResult) -> str | None:
    if result.trend == "bullish":
        return "Volume Price Trend bullish - volume confirming price movement"
    if result.trend == "bearish":
        return "Volume Price Trend bearish - volume confirming price decline"
    return None


def _ad_description(result: AccumulationDistributionResult) -> str | None:
    if result.divergence == "bullish":
        return "A/D Line bullish divergence - accumulation despite price weakness"
    if result.divergence == "bearish":
        return "A/D Line bearish divergence - distribution despite price strength"
    if result.trend == "accumulation":
        return "A/D Line showing accumulation - smart money buying"
    if result.trend == "distribution":
        return "A/D Line showing distribution - smart money selling"
    return None


def generate_volume_signals(
    obv: Sequence[OBVResult] | None = None,
    vpt: Sequence[VolumePriceTrendResult] | None = None,
    ad: Sequence[AccumulationDistributionResult] | None = None,
    symbol: str = "",
) -> list[TechnicalSignal]:
    """One signal per non-hold result that has a describable reason."""
    signals: list[TechnicalSignal] = []
    sources = (
        ("OBV", obv, _obv_description),
        ("VPT", vpt, _vpt_description),
        ("A/D Line", ad, _ad_description),
    )
    for indicator, results, describe in sources:
        for result in results or ():
            if result.signal == "hold":
                continue
            description = describe(result)
            if description is None:
                continue
            signals.append(
                TechnicalSignal(
                    indicator=indicator,
                    signal=result.signal,
                    strength=result.strength,
                    value=result.value,
                    timestamp=result.date,
                    description=description,
                )
            )
    return signals


def analyze_volume(
    data: Sequence[PriceData],
    symbol: str,
    config: VolumeConfig | Mapping[str, Any] | None = None,
) -> VolumeAnalysis:
    cfg = coerce_config(VolumeConfig, config)
    obv = calculate_obv(data)
    vpt = calculate_volume_price_trend(data)
    ad = calculate_accumulation_distribution(data)

    if cfg.detect_divergences:
        obv = detect_volume_divergences(data, obv, cfg.lookback_period)
        ad = detect_volume_divergences(data, ad, cfg.lookback_period)

    return VolumeAnalysis(obv=obv, vpt=vpt, ad=ad, signals=generate_volume_signals(obv, vpt, ad, symbol))
