"""
Indicator configuration models.

IndicatorConfig carries one optional sub-model per indicator family. Every
field has the documented default, so a partial mapping (for example the JSON
body the dashboard sends, which uses camelCase keys) is merged over the
defaults field by field. Setting a family to None disables it.
"""

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel, to_snake

from .constants import DEFAULT_DIVERGENCE_LOOKBACK


class _FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class RSIConfig(_FrozenModel):
    """RSI period and overbought/oversold thresholds."""

    period: int = Field(default=14, gt=0)
    overbought: float = Field(default=70.0, gt=0, lt=100)
    oversold: float = Field(default=30.0, gt=0, lt=100)
    detect_divergence: bool = True
    divergence_lookback: int = Field(default=DEFAULT_DIVERGENCE_LOOKBACK, gt=0)

    @model_validator(mode="after")
    def _check_thresholds(self) -> "RSIConfig":
        if self.oversold >= self.overbought:
            raise ValueError("RSI oversold threshold must be below overbought threshold")
        return self


class MACDConfig(_FrozenModel):
    """MACD EMA periods; the fast EMA must be shorter than the slow one."""

    fast_period: int = Field(default=12, gt=0)
    slow_period: int = Field(default=26, gt=0)
    signal_period: int = Field(default=9, gt=0)
    detect_divergence: bool = True
    divergence_lookback: int = Field(default=DEFAULT_DIVERGENCE_LOOKBACK, gt=0)

    @model_validator(mode="after")
    def _check_periods(self) -> "MACDConfig":
        if self.fast_period >= self.slow_period:
            raise ValueError("MACD fast period must be less than slow period")
        return self


class BollingerBandsConfig(_FrozenModel):
    """Bollinger Bands SMA period and standard deviation multiplier."""

    period: int = Field(default=20, gt=0)
    standard_deviations: float = Field(default=2.0, gt=0)
    detect_walking: bool = True


class MovingAveragesConfig(_FrozenModel):
    """Moving average periods and whether EMAs and crossovers are computed."""

    periods: tuple[int, ...] = (20, 50, 200)
    include_ema: bool = True
    detect_crossovers: bool = True

    @field_validator("periods")
    @classmethod
    def _check_periods(cls, periods: tuple[int, ...]) -> tuple[int, ...]:
        if any(p <= 0 for p in periods):
            raise ValueError("Moving average periods must be positive")
        return tuple(sorted(set(periods)))


class StochasticConfig(_FrozenModel):
    k_period: int = Field(default=14, gt=0)
    d_period: int = Field(default=3, gt=0)
    overbought: float = 80.0
    oversold: float = 20.0


class WilliamsRConfig(_FrozenModel):
    period: int = Field(default=14, gt=0)
    overbought: float = Field(default=-20.0, le=0, ge=-100)
    oversold: float = Field(default=-80.0, le=0, ge=-100)


class ADXConfig(_FrozenModel):
    period: int = Field(default=14, gt=0)
    strong_trend: float = Field(default=25.0, gt=0)


class VolumeConfig(_FrozenModel):
    """Volume indicator settings; min_bars gates the whole family in the engine."""

    detect_divergences: bool = True
    lookback_period: int = Field(default=DEFAULT_DIVERGENCE_LOOKBACK, gt=0)
    min_bars: int = Field(default=20, gt=0)


class IndicatorConfig(_FrozenModel):
    """Configuration for one analysis run.

    Example:
        ```python
        config = IndicatorConfig.model_validate({"rsi": {"period": 10}, "macd": None})
        config.rsi.period        # 10
        config.rsi.overbought    # 70.0 (default kept)
        config.macd              # None -> MACD family disabled
        ```
    """

    rsi: RSIConfig | None = Field(default_factory=RSIConfig)
    macd: MACDConfig | None = Field(default_factory=MACDConfig)
    bollinger_bands: BollingerBandsConfig | None = Field(default_factory=BollingerBandsConfig)
    moving_averages: MovingAveragesConfig | None = Field(default_factory=MovingAveragesConfig)
    stochastic: StochasticConfig | None = Field(default_factory=StochasticConfig)
    williams_r: WilliamsRConfig | None = Field(default_factory=WilliamsRConfig)
    adx: ADXConfig | None = Field(default_factory=ADXConfig)
    volume: VolumeConfig | None = Field(default_factory=VolumeConfig)

    def merged(self, overrides: Mapping[str, Any] | None) -> "IndicatorConfig":
        """Return a new config with ``overrides`` merged over this one.

        Nested mappings are merged key by key; a None value disables a family.
        Keys may be given in snake_case or camelCase.
        """
        if not overrides:
            return self

        base = self.model_dump(by_alias=False)
        for key, value in overrides.items():
            name = _field_name(key)
            if isinstance(value, Mapping) and isinstance(base.get(name), dict):
                nested = dict(base[name])
                nested.update({to_snake(k): v for k, v in value.items()})
                base[name] = nested
            elif isinstance(value, BaseModel):
                base[name] = value.model_dump(by_alias=False)
            else:
                base[name] = value
        return IndicatorConfig.model_validate(base)

    @classmethod
    def from_settings(cls, settings: Any) -> "IndicatorConfig":
        """Build a config from the ``analysis`` section of Settings."""
        analysis = settings.analysis
        lookback = analysis.divergence_lookback
        return cls(
            rsi=RSIConfig(
                detect_divergence=analysis.detect_divergence, divergence_lookback=lookback
            ),
            macd=MACDConfig(
                detect_divergence=analysis.detect_divergence, divergence_lookback=lookback
            ),
            moving_averages=MovingAveragesConfig(include_ema=analysis.include_ema),
            volume=VolumeConfig(
                detect_divergences=analysis.detect_divergence,
                lookback_period=lookback,
                min_bars=analysis.volume_min_bars,
            ),
        )


def _field_name(key: str) -> str:
    name = to_snake(key)
    if name not in IndicatorConfig.model_fields:
        raise ValueError(f"Unknown indicator family: {key}")
    return name


DEFAULT_CONFIG = IndicatorConfig()


ModelT = TypeVar("ModelT", bound=BaseModel)


def coerce_config(model: type[ModelT], config: ModelT | Mapping[str, Any] | None) -> ModelT:
    """Accept a config model, a (possibly partial) mapping, or None for defaults."""
    if config is None:
        return model()
    if isinstance(config, model):
        return config
    return model.model_validate(config)
