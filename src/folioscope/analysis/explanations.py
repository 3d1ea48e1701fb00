"""Plain-language explanations of technical signals.

Turns TechnicalSignal records into investor-facing explanation text with an
actionable insight, a risk level and a timeframe. RSI, MACD and Bollinger
Bands have dedicated templates; every other indicator gets a generic one.
An optional MarketContext appends market-condition, volatility, sector and
market-cap remarks.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from .types import TechnicalSignal

RiskLevel = Literal["low", "medium", "high"]


@dataclass(frozen=True)
class MarketContext:
    """Market backdrop an explanation is written against."""

    condition: Literal["bull", "bear", "sideways"] = "sideways"
    volatility: Literal["low", "medium", "high"] = "medium"
    sector: str = "unknown"
    market_cap: Literal["small", "mid", "large"] | None = None


@dataclass(frozen=True)
class IndicatorExplanation:
    indicator: str
    value: float
    explanation: str
    actionable_insight: str
    risk_level: RiskLevel
    confidence: float
    timeframe: str


@dataclass(frozen=True)
class _RangeTemplate:
    explanation: str
    action: str
    risk_level: RiskLevel
    timeframe: str


@dataclass(frozen=True)
class MultipleExplanations:
    explanations: list[IndicatorExplanation]
    conflicts: list[str] = field(default_factory=list)
    overall_sentiment: Literal["bullish", "bearish", "neutral"] = "neutral"


# ============================================================================
# Templates
# ============================================================================

RSI_TEMPLATES: dict[str, _RangeTemplate] = {
    "oversold": _RangeTemplate(
        explanation=(
            "shows oversold conditions, which historically has led to short-term bounces in "
            "this price range. This suggests the stock may have been sold down more than "
            "fundamentals justify."
        ),
        action=(
            "This could be a buying opportunity, but confirm with other indicators and monitor "
            "for 2-3 trading days to ensure the reversal is sustainable."
        ),
        risk_level="low",
        timeframe="2-3 trading days",
    ),
    "neutral": _RangeTemplate(
        explanation=(
            "is in neutral territory, indicating balanced buying and selling pressure. The "
            "stock is neither overbought nor oversold at current levels."
        ),
        action=(
            "No immediate action required. Monitor for trend changes above 70 (overbought) or "
            "below 30 (oversold) for potential trading opportunities."
        ),
        risk_level="low",
        timeframe="ongoing monitoring",
    ),
    "overbought": _RangeTemplate(
        explanation=(
            "indicates the stock is in overbought territory, suggesting potential selling "
            "pressure may emerge soon. This typically occurs when buying momentum has pushed "
            "the stock price higher than fundamental value would support."
        ),
        action=(
            "Consider waiting for RSI to drop below 50 before entering a position, or take "
            "profits if currently holding. Watch for confirmation from other indicators."
        ),
        risk_level="medium",
        timeframe="1-2 weeks",
    ),
}

MACD_TEMPLATES: dict[str, _RangeTemplate] = {
    "bullish": _RangeTemplate(
        explanation=(
            "shows a bullish crossover, suggesting upward momentum is building. This occurs "
            "when the faster moving average crosses above the slower one, indicating "
            "strengthening buying interest."
        ),
        action=(
            "This MACD crossover suggests potential upward momentum - monitor for confirmation "
            "over next 2-3 trading days. Consider entering positions if other indicators align."
        ),
        risk_level="medium",
        timeframe="2-3 trading days",
    ),
    "bearish": _RangeTemplate(
        explanation=(
            "indicates bearish momentum with the signal line crossing below the MACD line. "
            "This suggests weakening buying pressure and potential downward price movement ahead."
        ),
        action=(
            "Consider reducing position size or setting stop-loss orders as downward pressure "
            "may continue. Wait for bullish crossover before re-entering."
        ),
        risk_level="high",
        timeframe="1-2 weeks",
    ),
    "neutral": _RangeTemplate(
        explanation=(
            "is showing mixed signals with no clear directional bias at the current price "
            "level. The indicator lines are converging without a definitive crossover pattern."
        ),
        action=(
            "Wait for clearer MACD signals before making position changes. Look for decisive "
            "crossovers above or below the signal line."
        ),
        risk_level="low",
        timeframe="ongoing monitoring",
    ),
}

BOLLINGER_BANDS_TEMPLATES: dict[str, _RangeTemplate] = {
    "lower_band": _RangeTemplate(
        explanation=(
            "is approaching or touching the lower Bollinger Band, suggesting the stock may be "
            "oversold relative to its recent trading range. This often indicates a potential "
            "bounce back toward the middle band."
        ),
        action=(
            "Consider this a potential buying opportunity, especially if supported by other "
            "indicators. Target the middle band for profit-taking."
        ),
        risk_level="medium",
        timeframe="1-2 weeks",
    ),
    "upper_band": _RangeTemplate(
        explanation=(
            "is near or touching the upper Bollinger Band, indicating the stock may be "
            "overbought relative to its recent volatility. This suggests potential resistance "
            "and possible pullback."
        ),
        action=(
            "Consider taking profits or reducing position size. Watch for a move back toward "
            "the middle band before re-entering."
        ),
        risk_level="medium",
        timeframe="1-2 weeks",
    ),
    "middle_range": _RangeTemplate(
        explanation=(
            "is trading within the middle range of its Bollinger Bands, indicating normal "
            "price action relative to recent volatility. No extreme conditions are present."
        ),
        action=(
            "Monitor for moves toward the upper or lower bands for potential trading "
            "opportunities. Current levels suggest balanced conditions."
        ),
        risk_level="low",
        timeframe="ongoing monitoring",
    ),
}


def apply_market_context(
    explanation: str,
    action: str,
    market_context: MarketContext | None = None,
) -> tuple[str, str]:
    """Append market-context remarks to an explanation and its action text."""
    if market_context is None:
        return explanation, action

    if market_context.condition == "bull":
        explanation += (
            " In the current bull market environment, this signal may have increased "
            "reliability for upward moves."
        )
    elif market_context.condition == "bear":
        explanation += (
            " Given the current bear market conditions, exercise extra caution and consider "
            "shorter timeframes."
        )
        action += " Bear market conditions suggest using tighter stop-losses."
    elif market_context.condition == "sideways":
        explanation += (
            " In the current sideways market, this signal may indicate range-bound trading "
            "opportunities."
        )

    if market_context.volatility == "high":
        action += (
            " High market volatility suggests using smaller position sizes and wider stop-losses."
        )
    elif market_context.volatility == "low":
        action += " Low volatility environment may lead to more reliable technical signals."

    if market_context.sector:
        explanation += (
            f" As a {market_context.sector} stock, consider sector-specific factors that may "
            "influence this signal."
        )

    if market_context.market_cap == "small":
        action += " Small-cap stocks tend to be more volatile - consider this in position sizing."
    elif market_context.market_cap == "large":
        action += " Large-cap stocks typically show more stable technical patterns."

    return explanation, action


def _build(
    signal: TechnicalSignal,
    template: _RangeTemplate,
    explanation: str,
    value: float,
    market_context: MarketContext | None,
    default_confidence: float,
) -> IndicatorExplanation:
    explanation, action = apply_market_context(explanation, template.action, market_context)
    return IndicatorExplanation(
        indicator=signal.indicator,
        value=value,
        explanation=explanation,
        actionable_insight=action,
        risk_level=template.risk_level,
        confidence=signal.strength or default_confidence,
        timeframe=template.timeframe,
    )


def generate_rsi_explanation(
    signal: TechnicalSignal,
    symbol: str,
    current_price: float,
    market_context: MarketContext | None = None,
) -> IndicatorExplanation:
    value = signal.value
    if value < 30:
        key = "oversold"
    elif value > 70:
        key = "overbought"
    else:
        key = "neutral"
    template = RSI_TEMPLATES[key]
    text = f"{symbol}'s RSI of {value:.1f} {template.explanation}"
    return _build(signal, template, text, value, market_context, 0.7)


def generate_macd_explanation(
    signal: TechnicalSignal,
    symbol: str,
    current_price: float,
    market_context: MarketContext | None = None,
) -> IndicatorExplanation:
    key = {"buy": "bullish", "sell": "bearish"}.get(signal.signal, "neutral")
    template = MACD_TEMPLATES[key]
    if key == "bullish":
        text = (
            f"{symbol}'s MACD shows a bullish signal at current price of ${current_price:.2f}, "
            "suggesting upward momentum is building. This bullish crossover occurs when the "
            "faster moving average crosses above the slower one, indicating strengthening "
            "buying interest."
        )
    else:
        text = f"{symbol}'s MACD {template.explanation}"
    return _build(signal, template, text, signal.value, market_context, 0.7)


def generate_bollinger_bands_explanation(
    signal: TechnicalSignal,
    symbol: str,
    current_price: float,
    market_context: MarketContext | None = None,
) -> IndicatorExplanation:
    key = {"buy": "lower_band", "sell": "upper_band"}.get(signal.signal, "middle_range")
    template = BOLLINGER_BANDS_TEMPLATES[key]
    text = f"{symbol} {template.explanation}"
    return _build(signal, template, text, signal.value, market_context, 0.6)


def generate_fallback_explanation(
    signal: TechnicalSignal,
    symbol: str,
    current_price: float,
    market_context: MarketContext | None = None,
) -> IndicatorExplanation:
    explanation, action = apply_market_context(
        (
            f"{signal.indicator} value of {signal.value:.2f} for {symbol} requires additional "
            f"context for interpretation. This indicator is showing {signal.signal} conditions "
            "based on its current reading."
        ),
        (
            "Monitor this indicator alongside other technical signals for better decision "
            "making. Consider the overall market context when interpreting this signal."
        ),
        market_context,
    )
    return IndicatorExplanation(
        indicator=signal.indicator,
        value=signal.value,
        explanation=explanation,
        actionable_insight=action,
        risk_level="medium",
        confidence=signal.strength or 0.5,
        timeframe="ongoing monitoring",
    )


def generate_technical_indicator_explanation(
    signal: TechnicalSignal,
    symbol: str,
    current_price: float,
    market_context: MarketContext | None = None,
) -> IndicatorExplanation:
    """Explain one signal, picking the template by indicator name (case-insensitive)."""
    name = signal.indicator.upper()
    if name == "RSI":
        return generate_rsi_explanation(signal, symbol, current_price, market_context)
    if name == "MACD":
        return generate_macd_explanation(signal, symbol, current_price, market_context)
    if name in ("BOLLINGER_BANDS", "BOLLINGER BANDS"):
        return generate_bollinger_bands_explanation(signal, symbol, current_price, market_context)
    return generate_fallback_explanation(signal, symbol, current_price, market_context)


def generate_multiple_indicator_explanations(
    signals: Sequence[TechnicalSignal],
    symbol: str,
    current_price: float,
    market_context: MarketContext | None = None,
) -> MultipleExplanations:
    """Explain several signals and flag buy/sell disagreement.

    Overall sentiment is bullish only when buy signals outnumber sell and hold
    signals combined; bearish is the mirror.
    """
    explanations = [
        generate_technical_indicator_explanation(s, symbol, current_price, market_context)
        for s in signals
    ]

    buys = [s for s in signals if s.signal == "buy"]
    sells = [s for s in signals if s.signal == "sell"]
    holds = [s for s in signals if s.signal == "hold"]

    conflicts = []
    if buys and sells:
        conflicts.append(
            f"Mixed signals detected: {', '.join(s.indicator for s in buys)} suggest buying, "
            f"while {', '.join(s.indicator for s in sells)} suggest selling. Consider waiting "
            "for clearer consensus or use smaller position sizes."
        )

    if len(buys) > len(sells) + len(holds):
        sentiment = "bullish"
    elif len(sells) > len(buys) + len(holds):
        sentiment = "bearish"
    else:
        sentiment = "neutral"

    return MultipleExplanations(
        explanations=explanations, conflicts=conflicts, overall_sentiment=sentiment
    )


def infer_market_context(
    symbol: str,
    sector: str | None = None,
    market_cap: float | None = None,
) -> MarketContext:
    """Build a MarketContext from what is known about a symbol.

    Market condition and volatility default to sideways/medium; market cap
    buckets are large above $10B and mid above $2B.
    """
    category = None
    if market_cap:
        if market_cap > 10_000_000_000:
            category = "large"
        elif market_cap > 2_000_000_000:
            category = "mid"
        else:
            category = "small"
    return MarketContext(sector=sector or "unknown", market_cap=category)
