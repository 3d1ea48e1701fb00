"""
Analysis module for folioscope.

Provides the series utilities, indicator calculators and signal generators,
the TechnicalAnalysisEngine that merges them into one consensus, plain-language
explanations, and the compact payload used for LLM insights.
"""

from folioscope.data.validation import sort_price_data, validate_price_data

from .engine import TechnicalAnalysisEngine, analyze_technicals, generate_summary
from .explanations import (
    IndicatorExplanation,
    MarketContext,
    MultipleExplanations,
    generate_multiple_indicator_explanations,
    generate_technical_indicator_explanation,
    infer_market_context,
)
from .indicators import (
    analyze_bollinger_bands,
    analyze_macd,
    analyze_momentum,
    analyze_moving_averages,
    analyze_rsi,
    analyze_volume,
    calculate_accumulation_distribution,
    calculate_adx,
    calculate_bollinger_bands,
    calculate_macd,
    calculate_obv,
    calculate_rsi,
    calculate_stochastic,
    calculate_volume_price_trend,
    calculate_williams_r,
)
from .insight import build_technical_prompt, compact_technical_analysis
from .series import (
    calculate_atr,
    calculate_correlation,
    calculate_ema,
    calculate_gains_and_losses,
    calculate_price_changes,
    calculate_sma,
    calculate_standard_deviation,
    calculate_true_range,
    detect_crossovers,
)
from .types import (
    AccumulationDistributionResult,
    ADXResult,
    AnalysisSummary,
    BollingerBandsResult,
    FamilyOutcome,
    MACDResult,
    MovingAverageResult,
    OBVResult,
    RSIResult,
    StochasticResult,
    TechnicalAnalysisResult,
    TechnicalSignal,
    VolumePriceTrendResult,
    WilliamsRResult,
)

__all__ = [
    # Engine
    "TechnicalAnalysisEngine",
    "analyze_technicals",
    "generate_summary",
    # Validation
    "validate_price_data",
    "sort_price_data",
    # Series utilities
    "calculate_sma",
    "calculate_ema",
    "calculate_standard_deviation",
    "calculate_true_range",
    "calculate_atr",
    "calculate_price_changes",
    "calculate_gains_and_losses",
    "detect_crossovers",
    "calculate_correlation",
    # Indicators
    "calculate_rsi",
    "calculate_macd",
    "calculate_bollinger_bands",
    "calculate_stochastic",
    "calculate_williams_r",
    "calculate_adx",
    "calculate_obv",
    "calculate_volume_price_trend",
    "calculate_accumulation_distribution",
    "analyze_rsi",
    "analyze_macd",
    "analyze_bollinger_bands",
    "analyze_moving_averages",
    "analyze_momentum",
    "analyze_volume",
    # Explanations
    "MarketContext",
    "IndicatorExplanation",
    "MultipleExplanations",
    "generate_technical_indicator_explanation",
    "generate_multiple_indicator_explanations",
    "infer_market_context",
    # Insight payload
    "compact_technical_analysis",
    "build_technical_prompt",
    # Types
    "TechnicalSignal",
    "TechnicalAnalysisResult",
    "AnalysisSummary",
    "FamilyOutcome",
    "RSIResult",
    "MACDResult",
    "BollingerBandsResult",
    "MovingAverageResult",
    "StochasticResult",
    "WilliamsRResult",
    "ADXResult",
    "OBVResult",
    "VolumePriceTrendResult",
    "AccumulationDistributionResult",
]
