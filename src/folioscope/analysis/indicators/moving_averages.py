"""Simple and exponential moving averages with price-position and crossover signals."""

from collections.abc import Mapping, Sequence
from itertools import combinations
from typing import Any, Literal

from folioscope.analysis.series import calculate_ema, calculate_sma, detect_crossovers
from folioscope.analysis.types import (
    MovingAverageResult,
    MovingAveragesAnalysis,
    TechnicalSignal,
)
from folioscope.config.constants import (
    EMA_DEVIATION_THRESHOLD_PCT,
    MA_CROSSOVER_AGREEMENT_BONUS,
    MA_CROSSOVER_BASE_STRENGTH,
    MA_CROSSOVER_SEPARATION_BONUS,
    MA_SIGNAL_MAX_STRENGTH,
    MAX_STRENGTH,
    SMA_DEVIATION_THRESHOLD_PCT,
)
from folioscope.config.indicators import MovingAveragesConfig, coerce_config
from folioscope.data.models import PriceData, extract
from folioscope.data.validation import validate_price_data

MAType = Literal["SMA", "EMA"]

_THRESHOLDS: dict[str, float] = {
    "SMA": SMA_DEVIATION_THRESHOLD_PCT,
    "EMA": EMA_DEVIATION_THRESHOLD_PCT,
}


def _position_signal(price: float, average: float, threshold: float) -> tuple[str, float]:
    if average == 0:
        return "hold", 0.5
    deviation = (price - average) / average * 100
    if deviation > threshold:
        return "buy", min(MA_SIGNAL_MAX_STRENGTH, 0.4 + abs(deviation) / 10)
    if deviation < -threshold:
        return "sell", min(MA_SIGNAL_MAX_STRENGTH, 0.4 + abs(deviation) / 10)
    return "hold", 0.5


def _with_signals(
    data: Sequence[PriceData],
    values: Sequence[float],
    ma_type: MAType,
    period: int,
) -> list[MovingAverageResult]:
    closes = extract(data, "close")
    threshold = _THRESHOLDS[ma_type]
    results = []
    for i, value in enumerate(values):
        bar = i + period - 1
        signal, strength = _position_signal(float(closes[bar]), float(value), threshold)
        results.append(
            MovingAverageResult(
                date=data[bar].date,
                value=float(value),
                type=ma_type,
                period=period,
                signal=signal,
                strength=strength,
            )
        )
    return results


def calculate_sma_with_signals(data: Sequence[PriceData], period: int) -> list[MovingAverageResult]:
    """SMA of closes with a signal from the close's deviation from the average.

    Buy when the close is more than 2% above the SMA, sell when more than 2%
    below, otherwise hold.

    Raises:
        DataIntegrityError: If the series fails validation
        InvalidPeriodError: If period <= 0 or period > len(data)
    """
    validate_price_data(data)
    return _with_signals(data, calculate_sma(extract(data, "close"), period), "SMA", period)


def calculate_ema_with_signals(data: Sequence[PriceData], period: int) -> list[MovingAverageResult]:
    """EMA counterpart of calculate_sma_with_signals, using a 1.5% band."""
    validate_price_data(data)
    return _with_signals(data, calculate_ema(extract(data, "close"), period), "EMA", period)


def _crossover_strength(
    fast: MovingAverageResult,
    slow: MovingAverageResult,
    signal: str,
) -> float:
    separation_pct = abs(fast.value - slow.value) / slow.value * 100 if slow.value else 0.0
    strength = MA_CROSSOVER_BASE_STRENGTH + min(MA_CROSSOVER_SEPARATION_BONUS, separation_pct * 0.1)
    if fast.signal == signal and slow.signal == signal:
        strength += MA_CROSSOVER_AGREEMENT_BONUS
    return min(MAX_STRENGTH, strength)


def detect_moving_average_crossovers(
    fast: Sequence[MovingAverageResult],
    slow: Sequence[MovingAverageResult],
) -> list[TechnicalSignal]:
    """Signals for every bar on which the fast average crosses the slow one.

    Both series must come from the same price series; they are aligned on
    their common trailing bars.
    """
    length = min(len(fast), len(slow))
    if length < 2:
        return []

    fast_aligned = list(fast)[len(fast) - length :]
    slow_aligned = list(slow)[len(slow) - length :]
    ma_type = slow_aligned[0].type
    fast_period = fast_aligned[0].period
    slow_period = slow_aligned[0].period
    if ma_type == "EMA":
        name = f"MA Crossover (EMA {fast_period}/{slow_period})"
    else:
        name = f"MA Crossover ({fast_period}/{slow_period})"

    crossovers = detect_crossovers(
        [r.value for r in fast_aligned], [r.value for r in slow_aligned]
    )

    signals = []
    for i, crossover in enumerate(crossovers, start=1):
        if crossover == "none":
            continue
        f, s = fast_aligned[i], slow_aligned[i]
        signal = "buy" if crossover == "bullish" else "sell"
        signals.append(
            TechnicalSignal(
                indicator=name,
                signal=signal,
                strength=_crossover_strength(f, s, signal),
                value=f.value,
                timestamp=f.date,
                description=(
                    f"{ma_type}({fast_period}) crossed {'above' if signal == 'buy' else 'below'} "
                    f"{ma_type}({slow_period}) - {'bullish' if signal == 'buy' else 'bearish'} "
                    f"{'golden' if signal == 'buy' else 'death'} cross"
                ),
            )
        )
    return signals


def _position_signals(series: Sequence[MovingAverageResult]) -> list[TechnicalSignal]:
    if not series:
        return []
    latest = series[-1]
    if latest.signal == "hold":
        return []
    return [
        TechnicalSignal(
            indicator=f"{latest.type}({latest.period})",
            signal=latest.signal,
            strength=latest.strength,
            value=latest.value,
            timestamp=latest.date,
            description=(
                f"Price trading {'above' if latest.signal == 'buy' else 'below'} "
                f"{latest.type}({latest.period}) at {latest.value:.2f}"
            ),
        )
    ]


def analyze_moving_averages(
    data: Sequence[PriceData],
    symbol: str,
    config: MovingAveragesConfig | Mapping[str, Any] | None = None,
) -> MovingAveragesAnalysis:
    """Compute every configured SMA (and EMA) plus position and crossover signals.

    Periods longer than the series are skipped. Position signals describe only
    the most recent bar; crossover signals cover the whole series.
    """
    cfg = coerce_config(MovingAveragesConfig, config)
    validate_price_data(data)

    periods = [p for p in cfg.periods if p <= len(data)]
    sma = {p: calculate_sma_with_signals(data, p) for p in periods}
    ema = {p: calculate_ema_with_signals(data, p) for p in periods} if cfg.include_ema else {}

    signals: list[TechnicalSignal] = []
    for series_by_period in (sma, ema):
        for series in series_by_period.values():
            signals.extend(_position_signals(series))

    if cfg.detect_crossovers:
        for series_by_period in (sma, ema):
            for fast_period, slow_period in combinations(sorted(series_by_period), 2):
                signals.extend(
                    detect_moving_average_crossovers(
                        series_by_period[fast_period], series_by_period[slow_period]
                    )
                )

    return MovingAveragesAnalysis(sma=sma, ema=ema, signals=signals)
