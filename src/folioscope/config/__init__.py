"""
Configuration module for folioscope.

Exports the Settings class, get_settings, and the per-analysis IndicatorConfig.
"""

from .indicators import (
    DEFAULT_CONFIG,
    ADXConfig,
    BollingerBandsConfig,
    IndicatorConfig,
    MACDConfig,
    MovingAveragesConfig,
    RSIConfig,
    StochasticConfig,
    VolumeConfig,
    WilliamsRConfig,
    coerce_config,
)
from .settings import AnalysisSettings, LoggingSettings, Settings, get_settings

__all__ = [
    "Settings",
    "AnalysisSettings",
    "LoggingSettings",
    "get_settings",
    "IndicatorConfig",
    "DEFAULT_CONFIG",
    "RSIConfig",
    "MACDConfig",
    "BollingerBandsConfig",
    "MovingAveragesConfig",
    "StochasticConfig",
    "WilliamsRConfig",
    "ADXConfig",
    "VolumeConfig",
    "coerce_config",
]
