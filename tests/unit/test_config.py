"""
Unit tests for settings and indicator configuration models.
"""

import pytest
from pydantic import ValidationError

from folioscope.config import (
    DEFAULT_CONFIG,
    IndicatorConfig,
    MACDConfig,
    MovingAveragesConfig,
    RSIConfig,
    Settings,
    coerce_config,
    get_settings,
)
from folioscope.utils import LogConfig


@pytest.mark.unit
class TestIndicatorConfig:
    """Tests for IndicatorConfig and its sub-models."""

    def test_defaults(self):
        config = IndicatorConfig()
        assert config.rsi.period == 14
        assert config.rsi.overbought == 70
        assert config.macd.fast_period == 12
        assert config.macd.slow_period == 26
        assert config.macd.signal_period == 9
        assert config.bollinger_bands.period == 20
        assert config.bollinger_bands.standard_deviations == 2.0
        assert config.moving_averages.periods == (20, 50, 200)
        assert config.stochastic.k_period == 14
        assert config.williams_r.oversold == -80
        assert config.adx.strong_trend == 25
        assert config.volume.min_bars == 20

    def test_partial_merge_keeps_defaults(self):
        config = DEFAULT_CONFIG.merged({"rsi": {"period": 10}})
        assert config.rsi.period == 10
        assert config.rsi.overbought == 70
        assert config.macd == DEFAULT_CONFIG.macd

    def test_camel_case_keys(self):
        config = DEFAULT_CONFIG.merged({"bollingerBands": {"standardDeviations": 2.5}})
        assert config.bollinger_bands.standard_deviations == 2.5
        assert config.bollinger_bands.period == 20

    def test_single_letter_and_acronym_keys(self):
        config = DEFAULT_CONFIG.merged({"williamsR": {"overbought": -10}, "RSI": {"period": 9}})
        assert config.williams_r.overbought == -10
        assert config.rsi.period == 9

    def test_nested_camel_case_keys(self):
        config = DEFAULT_CONFIG.merged({"stochastic": {"kPeriod": 5, "dPeriod": 2}})
        assert config.stochastic.k_period == 5
        assert config.stochastic.d_period == 2

    def test_none_disables_family(self):
        config = DEFAULT_CONFIG.merged({"macd": None})
        assert config.macd is None
        assert config.rsi is not None

    def test_reenable_disabled_family(self):
        config = IndicatorConfig(macd=None).merged({"macd": {"fastPeriod": 5}})
        assert config.macd.fast_period == 5
        assert config.macd.slow_period == 26

    def test_empty_overrides_return_same_config(self):
        assert DEFAULT_CONFIG.merged(None) is DEFAULT_CONFIG
        assert DEFAULT_CONFIG.merged({}) is DEFAULT_CONFIG

    def test_unknown_family_rejected(self):
        with pytest.raises(ValueError, match="Unknown indicator family: ichimoku"):
            DEFAULT_CONFIG.merged({"ichimoku": {"period": 9}})

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            DEFAULT_CONFIG.merged({"rsi": {"length": 10}})

    @pytest.mark.parametrize(
        "values",
        [{"period": 0}, {"oversold": 80, "overbought": 70}, {"overbought": 120}],
    )
    def test_invalid_rsi_values(self, values):
        with pytest.raises(ValidationError):
            RSIConfig(**values)

    @pytest.mark.parametrize(
        "values", [{"fast_period": 26, "slow_period": 12}, {"fast_period": 12, "slow_period": 12}]
    )
    def test_macd_fast_must_be_below_slow(self, values):
        with pytest.raises(ValidationError, match="fast period must be less than slow period"):
            MACDConfig(**values)

    def test_engine_rejects_inverted_macd_periods(self):
        with pytest.raises(ValidationError):
            DEFAULT_CONFIG.merged({"macd": {"fastPeriod": 30}})

    def test_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_CONFIG.rsi.period = 3

    def test_periods_sorted_and_deduplicated(self):
        assert MovingAveragesConfig(periods=(50, 20, 50)).periods == (20, 50)
        with pytest.raises(ValidationError):
            MovingAveragesConfig(periods=(0, 20))


@pytest.mark.unit
class TestCoerceConfig:
    """Tests for coerce_config."""

    def test_none_gives_defaults(self):
        assert coerce_config(RSIConfig, None) == RSIConfig()

    def test_instance_passes_through(self):
        config = RSIConfig(period=9)
        assert coerce_config(RSIConfig, config) is config

    def test_mapping_is_validated(self):
        assert coerce_config(RSIConfig, {"period": 9}).period == 9
        with pytest.raises(ValidationError):
            coerce_config(RSIConfig, {"period": -1})


@pytest.mark.unit
class TestSettings:
    """Tests for environment-driven Settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.analysis.divergence_lookback == 20
        assert settings.analysis.detect_divergence is True
        assert settings.logging.level == "INFO"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("TA_DIVERGENCE_LOOKBACK", "15")
        monkeypatch.setenv("TA_INCLUDE_EMA", "false")
        monkeypatch.setenv("LOG_FORMAT", "json")

        settings = get_settings()
        assert settings.analysis.divergence_lookback == 15
        assert settings.analysis.include_ema is False
        assert settings.logging.format == "json"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_log_config(self, test_settings):
        log_config = test_settings.log_config()
        assert isinstance(log_config, LogConfig)
        assert log_config.level == "DEBUG"
        assert log_config.environment == "test"
        assert log_config.format == "pretty"

    def test_indicator_config_from_settings(self, test_settings):
        config = IndicatorConfig.from_settings(test_settings)
        assert config.rsi.divergence_lookback == 10
        assert config.macd.divergence_lookback == 10
        assert config.moving_averages.include_ema is False
        assert config.volume.lookback_period == 10
        assert config.volume.min_bars == 30
        assert config.bollinger_bands == DEFAULT_CONFIG.bollinger_bands
