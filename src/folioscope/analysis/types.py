"""
Result types for the technical analysis library.

Every indicator produces a list of frozen dataclasses, one per eligible bar.
Result lists are shorter than the input by the indicator's warm-up period.
All records expose ``to_dict`` for JSON responses and LLM payloads.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Literal

SignalType = Literal["buy", "sell", "hold"]
CrossoverType = Literal["bullish", "bearish", "none"]
DivergenceType = Literal["bullish", "bearish", "none"]
TrendType = Literal["bullish", "bearish", "neutral"]
FamilyStatus = Literal["ok", "skipped", "failed", "disabled"]


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


class _Serializable:
    def to_dict(self) -> dict[str, Any]:
        return _serialize(asdict(self))  # type: ignore[call-overload]


@dataclass(frozen=True)
class RSIResult(_Serializable):
    date: datetime
    value: float
    signal: SignalType
    strength: float
    overbought: bool
    oversold: bool
    divergence: DivergenceType = "none"


@dataclass(frozen=True)
class MACDResult(_Serializable):
    date: datetime
    macd: float
    signal: float
    histogram: float
    crossover: CrossoverType = "none"
    divergence: DivergenceType = "none"


@dataclass(frozen=True)
class BollingerBandsResult(_Serializable):
    date: datetime
    upper: float
    middle: float
    lower: float
    bandwidth: float
    percent_b: float
    squeeze: bool


@dataclass(frozen=True)
class MovingAverageResult(_Serializable):
    date: datetime
    value: float
    type: Literal["SMA", "EMA"]
    period: int
    signal: SignalType = "hold"
    strength: float = 0.5


@dataclass(frozen=True)
class StochasticResult(_Serializable):
    date: datetime
    k: float
    d: float
    signal: SignalType
    overbought: bool
    oversold: bool


@dataclass(frozen=True)
class WilliamsRResult(_Serializable):
    date: datetime
    value: float
    signal: SignalType
    strength: float
    overbought: bool
    oversold: bool


@dataclass(frozen=True)
class ADXResult(_Serializable):
    date: datetime
    adx: float
    plus_di: float
    minus_di: float
    trend: Literal["strong", "weak", "no_trend"]
    direction: TrendType


@dataclass(frozen=True)
class OBVResult(_Serializable):
    date: datetime
    value: float
    signal: SignalType
    strength: float
    trend: TrendType
    divergence: DivergenceType = "none"


@dataclass(frozen=True)
class VolumePriceTrendResult(_Serializable):
    date: datetime
    value: float
    signal: SignalType
    strength: float
    trend: TrendType


@dataclass(frozen=True)
class AccumulationDistributionResult(_Serializable):
    date: datetime
    value: float
    signal: SignalType
    strength: float
    trend: Literal["accumulation", "distribution", "neutral"]
    divergence: DivergenceType = "none"


@dataclass(frozen=True)
class TechnicalSignal(_Serializable):
    """
    A normalized trading signal produced by one indicator.

    Attributes:
        indicator: Indicator name (e.g. "RSI", "MA Crossover (20/50)")
        signal: buy, sell or hold
        strength: Heuristic confidence from 0 to 1
        value: Indicator reading that triggered the signal
        timestamp: Date of the bar the signal refers to
        description: Human-readable rationale
    """

    indicator: str
    signal: SignalType
    strength: float
    value: float
    timestamp: datetime
    description: str


@dataclass(frozen=True)
class AnalysisSummary(_Serializable):
    """
    Consensus derived from all signals and recent price action.

    Attributes:
        overall: Sentiment from the buy/sell strength ratio
        strength: Sentiment strength (0.5 when neutral, at most 0.9)
        confidence: Signal-count based confidence in [0.1, 0.9]
        trend_direction: Direction of the last 20 closes
        momentum: Change in average absolute daily return
        volatility: Annualised return volatility bucket
    """

    overall: Literal["bullish", "bearish", "neutral"] = "neutral"
    strength: float = 0.5
    confidence: float = 0.5
    trend_direction: Literal["up", "down", "sideways"] = "sideways"
    momentum: Literal["increasing", "decreasing", "stable"] = "stable"
    volatility: Literal["low", "medium", "high"] = "medium"


@dataclass(frozen=True)
class FamilyOutcome(_Serializable):
    """
    What happened to one indicator family during an analysis run.

    ``skipped`` means the series was too short (expected), ``failed`` means the
    calculation raised (a fault), ``disabled`` means the config turned it off.
    """

    family: str
    status: FamilyStatus
    reason: str | None = None
    error_type: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@dataclass(frozen=True)
class TechnicalAnalysisResult(_Serializable):
    """
    Aggregate output of one TechnicalAnalysisEngine.analyze call.

    Attributes:
        symbol: Analysed ticker
        timestamp: When the analysis ran (not a trading date)
        signals: Every signal from every family, in family order
        indicators: Indicator name -> result list (e.g. "rsi", "macd", "sma")
        summary: Derived consensus
        families: Family name -> FamilyOutcome
    """

    symbol: str
    timestamp: datetime
    signals: tuple[TechnicalSignal, ...]
    indicators: dict[str, tuple[Any, ...]]
    summary: AnalysisSummary
    families: dict[str, FamilyOutcome] = field(default_factory=dict)

    @property
    def skipped_families(self) -> list[str]:
        return [name for name, outcome in self.families.items() if outcome.status == "skipped"]

    @property
    def failed_families(self) -> list[str]:
        return [name for name, outcome in self.families.items() if outcome.status == "failed"]

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "timestamp": self.timestamp.isoformat(),
            "signals": [s.to_dict() for s in self.signals],
            "indicators": {
                name: [r.to_dict() for r in results] for name, results in self.indicators.items()
            },
            "summary": self.summary.to_dict(),
            "families": {name: o.to_dict() for name, o in self.families.items()},
        }


@dataclass(frozen=True)
class IndicatorAnalysis:
    """Results and derived signals of a single-series indicator (RSI, MACD, ...)."""

    results: list[Any]
    signals: list[TechnicalSignal]


@dataclass(frozen=True)
class BollingerBandsAnalysis(IndicatorAnalysis):
    walking: list[Literal["upper", "lower"] | None] | None = None


@dataclass(frozen=True)
class MovingAveragesAnalysis:
    """Per-period SMA/EMA result lists plus price and crossover signals."""

    sma: dict[int, list[MovingAverageResult]]
    ema: dict[int, list[MovingAverageResult]]
    signals: list[TechnicalSignal]


@dataclass(frozen=True)
class MomentumAnalysis:
    stochastic: list[StochasticResult]
    williams_r: list[WilliamsRResult]
    adx: list[ADXResult]
    signals: list[TechnicalSignal]


@dataclass(frozen=True)
class VolumeAnalysis:
    obv: list[OBVResult]
    vpt: list[VolumePriceTrendResult]
    ad: list[AccumulationDistributionResult]
    signals: list[TechnicalSignal]
