"""
Technical Analysis Constants for folioscope.

Fixed thresholds used by the indicator signal generators and by the analysis
engine's summary. Tunable periods and overbought/oversold levels live in
IndicatorConfig instead; the values here are part of the signal definitions.

All constants are immutable (Final) to prevent accidental modification during runtime.
"""

from typing import Final


# =============================================================================
# Signal Strength
# =============================================================================

MIN_STRENGTH: Final[float] = 0.0
MAX_STRENGTH: Final[float] = 1.0

DIVERGENCE_STRENGTH_BOOST: Final[float] = 0.2
"""
Strength added to a signal when a price/indicator divergence is detected.
"""

DEFAULT_DIVERGENCE_LOOKBACK: Final[int] = 20
"""
Number of preceding bars scanned for divergence against the current bar.
"""


# =============================================================================
# RSI
# =============================================================================

RSI_ZERO_LOSS_RS: Final[float] = 100.0
"""
Relative strength used when the average loss is exactly zero.
"""

RSI_MIDPOINT: Final[float] = 50.0


# =============================================================================
# MACD
# =============================================================================

MACD_CROSSOVER_BASE_STRENGTH: Final[float] = 0.6
MACD_ZERO_LINE_STRENGTH: Final[float] = 0.7
MACD_HISTOGRAM_MIN_STRENGTH: Final[float] = 0.4
MACD_HISTOGRAM_MAX_STRENGTH: Final[float] = 0.8


# =============================================================================
# Moving Averages
# =============================================================================

SMA_DEVIATION_THRESHOLD_PCT: Final[float] = 2.0
"""
Price must be more than 2% away from an SMA for a directional signal.
"""

EMA_DEVIATION_THRESHOLD_PCT: Final[float] = 1.5
"""
Price must be more than 1.5% away from an EMA for a directional signal.
"""

MA_SIGNAL_MAX_STRENGTH: Final[float] = 0.8
MA_CROSSOVER_BASE_STRENGTH: Final[float] = 0.7
MA_CROSSOVER_SEPARATION_BONUS: Final[float] = 0.2
MA_CROSSOVER_AGREEMENT_BONUS: Final[float] = 0.1


# =============================================================================
# Bollinger Bands
# =============================================================================

SQUEEZE_BANDWIDTH_THRESHOLD: Final[float] = 0.1
"""
Bandwidth below 10% of the middle band is treated as a squeeze.
"""

BAND_TOUCH_TOLERANCE: Final[float] = 0.001
"""
Price within 0.1% of a band counts as touching it.
"""

SQUEEZE_EXPANSION_RATIO: Final[float] = 1.2
"""
Bandwidth must grow by more than 20% for a squeeze to be considered over.
"""

PERCENT_B_LOW: Final[float] = 0.05
PERCENT_B_HIGH: Final[float] = 0.95

BAND_WALK_TOLERANCE: Final[float] = 0.02
BAND_WALK_MIN_PERIODS: Final[int] = 3


# =============================================================================
# Momentum
# =============================================================================

STOCHASTIC_SIGNAL_STRENGTH: Final[float] = 0.7
WILLIAMS_R_REVERSAL_STRENGTH: Final[float] = 0.6
WILLIAMS_R_MAX_STRENGTH: Final[float] = 0.9
ADX_WEAK_TREND: Final[float] = 20.0
ADX_SIGNAL_MAX_STRENGTH: Final[float] = 0.8


# =============================================================================
# Volume
# =============================================================================

VOLUME_TREND_WINDOW: Final[int] = 10
OBV_CORRELATION_THRESHOLD: Final[float] = 0.7
VPT_CORRELATION_THRESHOLD: Final[float] = 0.6
AD_MONEY_FLOW_THRESHOLD: Final[float] = 0.5
VOLUME_SIGNAL_MAX_STRENGTH: Final[float] = 0.8


# =============================================================================
# Engine Summary
# =============================================================================

BULLISH_RATIO_THRESHOLD: Final[float] = 0.6
BEARISH_RATIO_THRESHOLD: Final[float] = 0.4
SUMMARY_MAX_STRENGTH: Final[float] = 0.9

MIN_CONFIDENCE: Final[float] = 0.1
MAX_CONFIDENCE: Final[float] = 0.9
CONFIDENCE_SIGNAL_SCALE: Final[int] = 10
"""
Confidence grows linearly with signal count and saturates at this many signals.
"""

SUMMARY_WINDOW: Final[int] = 20
"""
Number of most recent bars used for trend, momentum and volatility classification.
"""

TREND_CHANGE_THRESHOLD: Final[float] = 0.02
MOMENTUM_CHANGE_THRESHOLD: Final[float] = 0.2
MOMENTUM_WINDOW: Final[int] = 5

TRADING_DAYS_PER_YEAR: Final[int] = 252
LOW_VOLATILITY_THRESHOLD: Final[float] = 0.15
HIGH_VOLATILITY_THRESHOLD: Final[float] = 0.30
