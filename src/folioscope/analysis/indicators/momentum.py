"""Momentum oscillators: Stochastic, Williams %R and ADX.

Each calculator raises on bad parameters; analyze_momentum runs only the
oscillators the series is long enough for and returns empty lists for the rest.
"""

from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np

from folioscope.analysis.series import (
    calculate_sma,
    calculate_true_range,
    rolling_max,
    rolling_min,
)
from folioscope.analysis.types import (
    ADXResult,
    MomentumAnalysis,
    StochasticResult,
    TechnicalSignal,
    WilliamsRResult,
)
from folioscope.config.constants import (
    ADX_SIGNAL_MAX_STRENGTH,
    ADX_WEAK_TREND,
    STOCHASTIC_SIGNAL_STRENGTH,
    WILLIAMS_R_MAX_STRENGTH,
    WILLIAMS_R_REVERSAL_STRENGTH,
)
from folioscope.config.indicators import (
    ADXConfig,
    IndicatorConfig,
    StochasticConfig,
    WilliamsRConfig,
    coerce_config,
)
from folioscope.data.models import PriceData, extract
from folioscope.data.validation import validate_price_data
from folioscope.exceptions import InvalidPeriodError

# ============================================================================
# Stochastic
# ============================================================================


def _range_position(data: Sequence[PriceData], period: int) -> tuple[np.ndarray, np.ndarray]:
    """Distance of each close below the window high, and the window's high-low range."""
    highest = rolling_max(extract(data, "high"), period)
    lowest = rolling_min(extract(data, "low"), period)
    closes = extract(data, "close")[period - 1 :]
    return highest - closes, highest - lowest


def calculate_stochastic(
    data: Sequence[PriceData],
    k_period: int = 14,
    d_period: int = 3,
    overbought: float = 80,
    oversold: float = 20,
) -> list[StochasticResult]:
    """Stochastic oscillator with crossover signals.

    %K = 100 * (close - lowest low) / (highest high - lowest low) over
    ``k_period`` bars; %D = SMA(%K, d_period). A flat window gives %K = 50.
    Buy when %K crosses above %D while both are below ``oversold``, sell on
    the mirror cross above ``overbought``.

    Raises:
        DataIntegrityError: If the series fails validation
        InvalidPeriodError: If k_period <= 0, k_period >= len(data), or there
            are fewer %K values than d_period
    """
    validate_price_data(data)
    if k_period <= 0 or k_period >= len(data):
        raise InvalidPeriodError("Invalid K period for Stochastic calculation")

    below_high, window_range = _range_position(data, k_period)
    with np.errstate(divide="ignore", invalid="ignore"):
        k_values = np.where(window_range > 0, (1 - below_high / window_range) * 100, 50.0)
    d_values = calculate_sma(k_values, d_period)
    k_aligned = k_values[d_period - 1 :]

    results: list[StochasticResult] = []
    start = k_period + d_period - 2
    for i, (k, d) in enumerate(zip(k_aligned, d_values)):
        k, d = float(k), float(d)
        is_overbought = k > overbought and d > overbought
        is_oversold = k < oversold and d < oversold

        signal = "hold"
        if i > 0:
            prev_k, prev_d = k_aligned[i - 1], d_values[i - 1]
            if k > d and prev_k <= prev_d and is_oversold:
                signal = "buy"
            elif k < d and prev_k >= prev_d and is_overbought:
                signal = "sell"

        results.append(
            StochasticResult(
                date=data[start + i].date,
                k=k,
                d=d,
                signal=signal,
                overbought=is_overbought,
                oversold=is_oversold,
            )
        )
    return results


# ============================================================================
# Williams %R
# ============================================================================


def calculate_williams_r(
    data: Sequence[PriceData],
    period: int = 14,
    overbought: float = -20,
    oversold: float = -80,
) -> list[WilliamsRResult]:
    """Williams %R = -100 * (highest high - close) / (highest high - lowest low).

    The scale runs from -100 (close at the window low) to 0 (close at the
    window high). A flat window gives -50.

    Raises:
        DataIntegrityError: If the series fails validation
        InvalidPeriodError: If period <= 0 or period >= len(data)
    """
    validate_price_data(data)
    if period <= 0 or period >= len(data):
        raise InvalidPeriodError("Invalid period for Williams %R calculation")

    below_high, window_range = _range_position(data, period)
    with np.errstate(divide="ignore", invalid="ignore"):
        values = np.where(window_range > 0, -100 * below_high / window_range, -50.0)

    results = []
    for i, value in enumerate(values):
        value = float(value)
        if value <= oversold:
            signal = "buy"
            strength = min(WILLIAMS_R_MAX_STRENGTH, 0.6 + abs(value - oversold) / 20)
        elif value >= overbought:
            signal = "sell"
            strength = min(WILLIAMS_R_MAX_STRENGTH, 0.6 + abs(value - overbought) / 20)
        else:
            signal, strength = "hold", 0.5

        results.append(
            WilliamsRResult(
                date=data[i + period - 1].date,
                value=value,
                signal=signal,
                strength=strength,
                overbought=value >= overbought,
                oversold=value <= oversold,
            )
        )
    return results


# ============================================================================
# ADX
# ============================================================================


def calculate_adx(
    data: Sequence[PriceData],
    period: int = 14,
    strong_trend: float = 25,
) -> list[ADXResult]:
    """Average Directional Index with +DI/-DI and a trend classification.

    True range and directional movement are smoothed with an SMA over
    ``period``; ADX is the SMA of DX over another ``period``, so the first
    result lands on bar ``2 * period - 1``.

    Raises:
        DataIntegrityError: If the series fails validation
        InvalidPeriodError: If period <= 0 or period >= len(data) - 1, or the
            series is shorter than 2 * period
    """
    validate_price_data(data)
    if period <= 0 or period >= len(data) - 1:
        raise InvalidPeriodError("Invalid period for ADX calculation")

    highs = extract(data, "high")
    lows = extract(data, "low")
    high_diff = np.diff(highs)
    low_diff = -np.diff(lows)

    plus_dm = np.where((high_diff > low_diff) & (high_diff > 0), high_diff, 0.0)
    minus_dm = np.where((low_diff > high_diff) & (low_diff > 0), low_diff, 0.0)

    smoothed_tr = calculate_sma(calculate_true_range(data), period)
    smoothed_plus = calculate_sma(plus_dm, period)
    smoothed_minus = calculate_sma(minus_dm, period)

    with np.errstate(divide="ignore", invalid="ignore"):
        plus_di = np.where(smoothed_tr > 0, smoothed_plus / smoothed_tr * 100, 0.0)
        minus_di = np.where(smoothed_tr > 0, smoothed_minus / smoothed_tr * 100, 0.0)
        di_sum = plus_di + minus_di
        dx = np.where(di_sum > 0, np.abs(plus_di - minus_di) / di_sum * 100, 0.0)

    adx_values = calculate_sma(dx, period)

    results = []
    for i, adx in enumerate(adx_values):
        adx = float(adx)
        plus, minus = float(plus_di[i + period - 1]), float(minus_di[i + period - 1])
        if adx >= strong_trend:
            trend = "strong"
        elif adx >= ADX_WEAK_TREND:
            trend = "weak"
        else:
            trend = "no_trend"

        if trend == "no_trend":
            direction = "neutral"
        else:
            direction = "bullish" if plus > minus else "bearish"

        results.append(
            ADXResult(
                date=data[i + period * 2 - 1].date,
                adx=adx,
                plus_di=plus,
                minus_di=minus,
                trend=trend,
                direction=direction,
            )
        )
    return results


# ============================================================================
# Signals
# ============================================================================


def generate_momentum_signals(
    stochastic: Sequence[StochasticResult] | None = None,
    williams_r: Sequence[WilliamsRResult] | None = None,
    adx: Sequence[ADXResult] | None = None,
    symbol: str = "",
    williams_r_thresholds: tuple[float, float] = (-20, -80),
    strong_trend: float = 25,
) -> list[TechnicalSignal]:
    """Turn oscillator results into signals.

    Williams %R yields a zone signal for every bar inside a zone plus a
    reversal signal on the bar that leaves one.

    Args:
        stochastic: Stochastic results
        williams_r: Williams %R results
        adx: ADX results
        symbol: Ticker the results belong to
        williams_r_thresholds: (overbought, oversold) used for reversal detection
        strong_trend: ADX level the strength formula measures from
    """
    signals: list[TechnicalSignal] = []

    for result in stochastic or ():
        if result.signal == "hold":
            continue
        bullish = result.signal == "buy"
        signals.append(
            TechnicalSignal(
                indicator="Stochastic",
                signal=result.signal,
                strength=STOCHASTIC_SIGNAL_STRENGTH,
                value=result.k,
                timestamp=result.date,
                description=(
                    f"Stochastic {'bullish' if bullish else 'bearish'} crossover in "
                    f"{'oversold' if bullish else 'overbought'} territory "
                    f"(%K: {result.k:.1f}, %D: {result.d:.1f})"
                ),
            )
        )

    overbought, oversold = williams_r_thresholds
    previous: WilliamsRResult | None = None
    for result in williams_r or ():
        if result.signal != "hold":
            signals.append(
                TechnicalSignal(
                    indicator="Williams %R",
                    signal=result.signal,
                    strength=result.strength,
                    value=result.value,
                    timestamp=result.date,
                    description=(
                        f"Williams %R {'oversold' if result.signal == 'buy' else 'overbought'} "
                        f"at {result.value:.1f}% - potential reversal"
                    ),
                )
            )
        if previous is not None:
            if result.value > oversold and previous.value <= oversold:
                signals.append(
                    TechnicalSignal(
                        indicator="Williams %R",
                        signal="buy",
                        strength=WILLIAMS_R_REVERSAL_STRENGTH,
                        value=result.value,
                        timestamp=result.date,
                        description=f"Williams %R bullish reversal from oversold ({result.value:.1f})",
                    )
                )
            elif result.value < overbought and previous.value >= overbought:
                signals.append(
                    TechnicalSignal(
                        indicator="Williams %R",
                        signal="sell",
                        strength=WILLIAMS_R_REVERSAL_STRENGTH,
                        value=result.value,
                        timestamp=result.date,
                        description=f"Williams %R bearish reversal from overbought ({result.value:.1f})",
                    )
                )
        previous = result

    for result in adx or ():
        if result.trend != "strong":
            continue
        signals.append(
            TechnicalSignal(
                indicator="ADX",
                signal="buy" if result.direction == "bullish" else "sell",
                strength=min(ADX_SIGNAL_MAX_STRENGTH, 0.5 + (result.adx - strong_trend) / 50),
                value=result.adx,
                timestamp=result.date,
                description=f"Strong {result.direction} trend detected - ADX at {result.adx:.1f}",
            )
        )

    return signals


# ============================================================================
# Analysis
# ============================================================================


def stochastic_min_bars(cfg: StochasticConfig) -> int:
    return max(cfg.k_period + 1, cfg.k_period + cfg.d_period - 1)


def williams_r_min_bars(cfg: WilliamsRConfig) -> int:
    return cfg.period + 1


def adx_min_bars(cfg: ADXConfig) -> int:
    return max(cfg.period * 2, cfg.period + 2)


def momentum_min_bars(config: IndicatorConfig) -> int | None:
    """Shortest series any enabled oscillator can run on, or None if all are disabled."""
    requirements = []
    if config.stochastic is not None:
        requirements.append(stochastic_min_bars(config.stochastic))
    if config.williams_r is not None:
        requirements.append(williams_r_min_bars(config.williams_r))
    if config.adx is not None:
        requirements.append(adx_min_bars(config.adx))
    return min(requirements) if requirements else None


def analyze_momentum(
    data: Sequence[PriceData],
    symbol: str,
    config: IndicatorConfig | Mapping[str, Any] | None = None,
) -> MomentumAnalysis:
    """Run Stochastic, Williams %R and ADX where the series is long enough.

    Only the ``stochastic``, ``williams_r`` and ``adx`` sections of the config
    are used; a section set to None is not run.
    """
    cfg = coerce_config(IndicatorConfig, config)
    validate_price_data(data)
    n = len(data)

    stochastic: list[StochasticResult] = []
    if cfg.stochastic is not None and n >= stochastic_min_bars(cfg.stochastic):
        s = cfg.stochastic
        stochastic = calculate_stochastic(data, s.k_period, s.d_period, s.overbought, s.oversold)

    williams_r: list[WilliamsRResult] = []
    if cfg.williams_r is not None and n >= williams_r_min_bars(cfg.williams_r):
        w = cfg.williams_r
        williams_r = calculate_williams_r(data, w.period, w.overbought, w.oversold)

    adx: list[ADXResult] = []
    if cfg.adx is not None and n >= adx_min_bars(cfg.adx):
        adx = calculate_adx(data, cfg.adx.period, cfg.adx.strong_trend)

    williams_cfg = cfg.williams_r or WilliamsRConfig()
    adx_cfg = cfg.adx or ADXConfig()
    signals = generate_momentum_signals(
        stochastic,
        williams_r,
        adx,
        symbol,
        williams_r_thresholds=(williams_cfg.overbought, williams_cfg.oversold),
        strong_trend=adx_cfg.strong_trend,
    )
    return MomentumAnalysis(stochastic=stochastic, williams_r=williams_r, adx=adx, signals=signals)
