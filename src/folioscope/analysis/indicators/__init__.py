"""
Indicator calculators and signal generators.

Each module exposes ``calculate_*`` functions returning result lists, a
``generate_*_signals`` function, and an ``analyze_*`` entry point combining both.
"""

from .bollinger import (
    analyze_bollinger_bands,
    calculate_bollinger_bands,
    detect_band_walking,
    generate_bollinger_bands_signals,
)
from .divergence import scan_divergences
from .macd import analyze_macd, calculate_macd, detect_macd_divergence, generate_macd_signals
from .momentum import (
    analyze_momentum,
    calculate_adx,
    calculate_stochastic,
    calculate_williams_r,
    generate_momentum_signals,
    momentum_min_bars,
)
from .moving_averages import (
    analyze_moving_averages,
    calculate_ema_with_signals,
    calculate_sma_with_signals,
    detect_moving_average_crossovers,
)
from .rsi import analyze_rsi, calculate_rsi, detect_rsi_divergence, generate_rsi_signals
from .volume import (
    analyze_volume,
    calculate_accumulation_distribution,
    calculate_obv,
    calculate_volume_price_trend,
    detect_volume_divergences,
    generate_volume_signals,
)

__all__ = [
    # RSI
    "calculate_rsi",
    "detect_rsi_divergence",
    "generate_rsi_signals",
    "analyze_rsi",
    # MACD
    "calculate_macd",
    "detect_macd_divergence",
    "generate_macd_signals",
    "analyze_macd",
    # Bollinger Bands
    "calculate_bollinger_bands",
    "generate_bollinger_bands_signals",
    "detect_band_walking",
    "analyze_bollinger_bands",
    # Moving averages
    "calculate_sma_with_signals",
    "calculate_ema_with_signals",
    "detect_moving_average_crossovers",
    "analyze_moving_averages",
    # Momentum
    "calculate_stochastic",
    "calculate_williams_r",
    "calculate_adx",
    "generate_momentum_signals",
    "analyze_momentum",
    "momentum_min_bars",
    # Volume
    "calculate_obv",
    "calculate_volume_price_trend",
    "calculate_accumulation_distribution",
    "detect_volume_divergences",
    "generate_volume_signals",
    "analyze_volume",
    # Shared
    "scan_divergences",
]
