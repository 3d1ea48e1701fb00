"""Technical Analysis Engine.

Runs every enabled indicator family over one price series and merges the
results into a TechnicalAnalysisResult with a consensus summary.

Validation errors propagate to the caller. After that, each family is
independent: a series too short for a family marks it ``skipped``, and an
exception inside a family is logged and marks it ``failed`` while the other
families and the summary are still produced.
"""

from collections import defaultdict
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
import math
from typing import Any

import numpy as np

from folioscope.config.constants import (
    BEARISH_RATIO_THRESHOLD,
    BULLISH_RATIO_THRESHOLD,
    CONFIDENCE_SIGNAL_SCALE,
    HIGH_VOLATILITY_THRESHOLD,
    LOW_VOLATILITY_THRESHOLD,
    MAX_CONFIDENCE,
    MIN_CONFIDENCE,
    MOMENTUM_CHANGE_THRESHOLD,
    MOMENTUM_WINDOW,
    SUMMARY_MAX_STRENGTH,
    SUMMARY_WINDOW,
    TRADING_DAYS_PER_YEAR,
    TREND_CHANGE_THRESHOLD,
)
from folioscope.config.indicators import DEFAULT_CONFIG, IndicatorConfig
from folioscope.data.models import PriceData, extract
from folioscope.data.validation import assess_data_quality, sort_price_data, validate_price_data
from folioscope.utils import add_context, get_logger

from .indicators import (
    analyze_bollinger_bands,
    analyze_macd,
    analyze_momentum,
    analyze_moving_averages,
    analyze_rsi,
    analyze_volume,
    momentum_min_bars,
)
from .types import AnalysisSummary, FamilyOutcome, TechnicalAnalysisResult, TechnicalSignal

logger = get_logger(__name__)

FamilyOutput = tuple[dict[str, list[Any]], list[TechnicalSignal]]

FAMILIES = ("rsi", "macd", "bollinger_bands", "moving_averages", "momentum", "volume")


# ============================================================================
# Summary
# ============================================================================


def _daily_returns(closes: np.ndarray) -> np.ndarray:
    prev = closes[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(prev != 0, np.diff(closes) / prev, 0.0)


def calculate_trend_direction(data: Sequence[PriceData]) -> str:
    """Compare the mean close of the first and second half of the window.

    Fewer than 10 bars is always ``sideways``.
    """
    if len(data) < 10:
        return "sideways"
    closes = extract(data, "close")
    half = len(closes) // 2
    first_avg = closes[:half].mean()
    second_avg = closes[half:].mean()
    if first_avg == 0:
        return "sideways"

    change = (second_avg - first_avg) / first_avg
    if change > TREND_CHANGE_THRESHOLD:
        return "up"
    if change < -TREND_CHANGE_THRESHOLD:
        return "down"
    return "sideways"


def calculate_momentum(data: Sequence[PriceData]) -> str:
    """Compare mean absolute return of the last 5 bars with the 5 before them."""
    if len(data) < MOMENTUM_WINDOW:
        return "stable"
    changes = np.abs(_daily_returns(extract(data, "close")))
    recent = changes[-MOMENTUM_WINDOW:]
    earlier = changes[-2 * MOMENTUM_WINDOW : -MOMENTUM_WINDOW]
    if earlier.size == 0 or recent.size == 0:
        return "stable"

    earlier_avg = earlier.mean()
    if earlier_avg == 0:
        return "stable"
    momentum_change = (recent.mean() - earlier_avg) / earlier_avg
    if momentum_change > MOMENTUM_CHANGE_THRESHOLD:
        return "increasing"
    if momentum_change < -MOMENTUM_CHANGE_THRESHOLD:
        return "decreasing"
    return "stable"


def calculate_volatility(data: Sequence[PriceData]) -> str:
    """Bucket the annualised population standard deviation of daily returns."""
    if len(data) < 10:
        return "medium"
    returns = _daily_returns(extract(data, "close"))
    annualized = float(np.std(returns)) * math.sqrt(TRADING_DAYS_PER_YEAR)
    if annualized < LOW_VOLATILITY_THRESHOLD:
        return "low"
    if annualized > HIGH_VOLATILITY_THRESHOLD:
        return "high"
    return "medium"


def generate_summary(
    signals: Sequence[TechnicalSignal], data: Sequence[PriceData]
) -> AnalysisSummary:
    """Derive the consensus summary from all signals and the last 20 bars.

    Sentiment comes from the share of buy strength in total buy+sell
    strength; hold signals only count towards confidence.
    """
    buy_strength = sum(s.strength for s in signals if s.signal == "buy")
    sell_strength = sum(s.strength for s in signals if s.signal == "sell")
    total_strength = buy_strength + sell_strength

    overall, strength = "neutral", 0.5
    if total_strength > 0:
        bullish_ratio = buy_strength / total_strength
        if bullish_ratio > BULLISH_RATIO_THRESHOLD:
            overall = "bullish"
            strength = min(SUMMARY_MAX_STRENGTH, 0.5 + (bullish_ratio - 0.5) * 0.8)
        elif bullish_ratio < BEARISH_RATIO_THRESHOLD:
            overall = "bearish"
            strength = min(SUMMARY_MAX_STRENGTH, 0.5 + (0.5 - bullish_ratio) * 0.8)

    confidence = min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, len(signals) / CONFIDENCE_SIGNAL_SCALE))

    recent = list(data)[-SUMMARY_WINDOW:]
    return AnalysisSummary(
        overall=overall,
        strength=strength,
        confidence=confidence,
        trend_direction=calculate_trend_direction(recent),
        momentum=calculate_momentum(recent),
        volatility=calculate_volatility(recent),
    )


# ============================================================================
# Engine
# ============================================================================


class TechnicalAnalysisEngine:
    """Combines all indicator families into one analysis.

    Example:
        ```python
        engine = TechnicalAnalysisEngine({"rsi": {"period": 10}, "volume": None})
        result = engine.analyze(prices, "AAPL")
        result.summary.overall      # "bullish" | "bearish" | "neutral"
        result.skipped_families     # e.g. ["moving_averages"] for a short series
        ```
    """

    def __init__(
        self,
        config: IndicatorConfig | Mapping[str, Any] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the engine.

        Args:
            config: Full IndicatorConfig, or a partial mapping merged over the defaults
            clock: Source of the result timestamp
        """
        if isinstance(config, IndicatorConfig):
            self.config = config
        else:
            self.config = DEFAULT_CONFIG.merged(config)
        self._clock = clock

    # ==================== Families ====================

    def _rsi(self, data: Sequence[PriceData], symbol: str) -> FamilyOutput:
        analysis = analyze_rsi(data, symbol, self.config.rsi)
        return {"rsi": analysis.results}, analysis.signals

    def _macd(self, data: Sequence[PriceData], symbol: str) -> FamilyOutput:
        analysis = analyze_macd(data, symbol, self.config.macd)
        return {"macd": analysis.results}, analysis.signals

    def _bollinger_bands(self, data: Sequence[PriceData], symbol: str) -> FamilyOutput:
        analysis = analyze_bollinger_bands(data, symbol, self.config.bollinger_bands)
        return {"bollinger_bands": analysis.results}, analysis.signals

    def _moving_averages(self, data: Sequence[PriceData], symbol: str) -> FamilyOutput:
        analysis = analyze_moving_averages(data, symbol, self.config.moving_averages)
        indicators = {"sma": [r for series in analysis.sma.values() for r in series]}
        if analysis.ema:
            indicators["ema"] = [r for series in analysis.ema.values() for r in series]
        return indicators, analysis.signals

    def _momentum(self, data: Sequence[PriceData], symbol: str) -> FamilyOutput:
        analysis = analyze_momentum(data, symbol, self.config)
        indicators = {
            "stochastic": analysis.stochastic,
            "williams_r": analysis.williams_r,
            "adx": analysis.adx,
        }
        return indicators, analysis.signals

    def _volume(self, data: Sequence[PriceData], symbol: str) -> FamilyOutput:
        analysis = analyze_volume(data, symbol, self.config.volume)
        indicators = {
            "obv": analysis.obv,
            "volume_price_trend": analysis.vpt,
            "accumulation_distribution": analysis.ad,
        }
        return indicators, analysis.signals

    def _min_bars(self, family: str) -> int | None:
        """Bars a family needs, or None when the config disables it."""
        cfg = self.config
        if family == "rsi":
            return cfg.rsi.period + 1 if cfg.rsi else None
        if family == "macd":
            return cfg.macd.slow_period + cfg.macd.signal_period if cfg.macd else None
        if family == "bollinger_bands":
            return cfg.bollinger_bands.period if cfg.bollinger_bands else None
        if family == "moving_averages":
            if cfg.moving_averages is None or not cfg.moving_averages.periods:
                return None
            return min(cfg.moving_averages.periods)
        if family == "momentum":
            return momentum_min_bars(cfg)
        if family == "volume":
            return cfg.volume.min_bars if cfg.volume else None
        raise ValueError(f"Unknown indicator family: {family}")

    def _run_family(
        self,
        family: str,
        data: Sequence[PriceData],
        symbol: str,
    ) -> tuple[FamilyOutcome, FamilyOutput | None]:
        min_bars = self._min_bars(family)
        if min_bars is None:
            return FamilyOutcome(family=family, status="disabled"), None
        if len(data) < min_bars:
            reason = f"insufficient data: need {min_bars} bars, got {len(data)}"
            logger.debug("indicator_family_skipped", family=family, reason=reason)
            return FamilyOutcome(family=family, status="skipped", reason=reason), None

        runner: Callable[[Sequence[PriceData], str], FamilyOutput] = getattr(self, f"_{family}")
        try:
            output = runner(data, symbol)
        except Exception as e:
            logger.error(
                "indicator_family_failed",
                family=family,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return (
                FamilyOutcome(
                    family=family, status="failed", reason=str(e), error_type=type(e).__name__
                ),
                None,
            )
        return FamilyOutcome(family=family, status="ok"), output

    # ==================== Public API ====================

    def analyze(self, data: Sequence[PriceData], symbol: str) -> TechnicalAnalysisResult:
        """Analyze a price series with every enabled indicator family.

        Args:
            data: Price series in any order
            symbol: Ticker the series belongs to

        Returns:
            TechnicalAnalysisResult with per-family outcomes

        Raises:
            DataIntegrityError: If the series fails validation
        """
        validate_price_data(data)
        sorted_data = sort_price_data(data)

        with add_context(symbol=symbol):
            report = assess_data_quality(sorted_data)
            if not report.is_acceptable:
                logger.warning("data_quality_issues", issues=report.issues)

            signals: list[TechnicalSignal] = []
            indicators: dict[str, tuple[Any, ...]] = {}
            families: dict[str, FamilyOutcome] = {}

            for family in FAMILIES:
                outcome, output = self._run_family(family, sorted_data, symbol)
                families[family] = outcome
                if output is None:
                    continue
                family_indicators, family_signals = output
                indicators.update({name: tuple(results) for name, results in family_indicators.items()})
                signals.extend(family_signals)

            summary = generate_summary(signals, sorted_data)

            logger.info(
                "analysis_completed",
                bars=len(sorted_data),
                signals=len(signals),
                overall=summary.overall,
                skipped=[f for f, o in families.items() if o.status == "skipped"],
                failed=[f for f, o in families.items() if o.status == "failed"],
            )

        return TechnicalAnalysisResult(
            symbol=symbol,
            timestamp=self._clock(),
            signals=tuple(signals),
            indicators=indicators,
            summary=summary,
            families=families,
        )

    def get_strong_signals(
        self, result: TechnicalAnalysisResult, min_strength: float = 0.7
    ) -> list[TechnicalSignal]:
        return [s for s in result.signals if s.strength >= min_strength]

    def get_signals_by_indicator(
        self, result: TechnicalAnalysisResult, indicator: str
    ) -> list[TechnicalSignal]:
        return [s for s in result.signals if s.indicator == indicator]

    def get_consensus_signals(
        self, result: TechnicalAnalysisResult, min_consensus: int = 2
    ) -> list[TechnicalSignal]:
        """Combine signals of the same direction on the same bar.

        Groups with at least ``min_consensus`` members become one signal with
        the group's average strength, keeping the first member's value and
        timestamp.
        """
        groups: dict[tuple[str, datetime], list[TechnicalSignal]] = defaultdict(list)
        for signal in result.signals:
            groups[(signal.signal, signal.timestamp)].append(signal)

        consensus = []
        for members in groups.values():
            if len(members) < min_consensus:
                continue
            first = members[0]
            consensus.append(
                TechnicalSignal(
                    indicator=f"Consensus ({', '.join(s.indicator for s in members)})",
                    signal=first.signal,
                    strength=sum(s.strength for s in members) / len(members),
                    value=first.value,
                    timestamp=first.timestamp,
                    description=f"Multiple indicators agree: {first.description}",
                )
            )
        return consensus


def analyze_technicals(
    data: Sequence[PriceData],
    symbol: str,
    config: IndicatorConfig | Mapping[str, Any] | None = None,
) -> TechnicalAnalysisResult:
    """Run a one-off analysis with a fresh engine."""
    return TechnicalAnalysisEngine(config).analyze(data, symbol)
