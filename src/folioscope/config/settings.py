"""
Configuration settings for folioscope.

Uses pydantic-settings for environment variable management with nested models
for the analysis defaults and the logging setup.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from folioscope.utils.logger import LogConfig

from .constants import DEFAULT_DIVERGENCE_LOOKBACK


class AnalysisSettings(BaseSettings):
    """Defaults applied to IndicatorConfig.from_settings."""

    divergence_lookback: int = Field(
        default=DEFAULT_DIVERGENCE_LOOKBACK, gt=0, description="Bars scanned for divergences"
    )
    detect_divergence: bool = Field(
        default=True, description="Run divergence detection for RSI, MACD and volume"
    )
    include_ema: bool = Field(
        default=True, description="Compute EMAs alongside SMAs for moving averages"
    )
    volume_min_bars: int = Field(
        default=20, gt=0, description="Minimum bars before volume indicators run"
    )

    model_config = SettingsConfigDict(
        env_prefix="TA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "pretty"] = Field(default="pretty", description="Renderer")
    file_path: Optional[str] = Field(default=None, description="Optional log file path")
    environment: str = Field(default="dev", description="Deployment environment")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class Settings(BaseSettings):
    """
    Main settings class combining all configuration domains.

    Loads configuration from environment variables and .env file.
    """

    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def log_config(self) -> LogConfig:
        """Translate the logging section into a LogConfig for setup_logging."""
        return LogConfig(
            level=self.logging.level,
            format=self.logging.format,
            file_path=self.logging.file_path,
            environment=self.logging.environment,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance (singleton pattern).

    Returns:
        Singleton Settings instance
    """
    return Settings()
