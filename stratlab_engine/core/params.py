"""
Strategy parameter records.

StrategyParams is a closed union: one frozen dataclass per StrategyFamily.
Every variant carries a keyword-only ``performance`` slot holding the
rendement it achieved during optimization (NaN until evaluated, -inf for
the "nothing could be evaluated" sentinel).

Example:
    params = SmaCrossoverParams(short_period=5, long_period=20)
    scored = params.with_performance(0.12)
    scored.tunable()  # {'short_period': 5, 'long_period': 20}
"""
import math
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, ClassVar, Dict, Type, Union


class StrategyFamily(str, Enum):
    """Supported strategy families."""

    SMA_CROSSOVER = 'sma_crossover'
    RSI = 'rsi'
    MACD = 'macd'
    BREAKOUT = 'breakout'
    MEAN_REVERSION = 'mean_reversion'
    TREND_FOLLOWING = 'trend_following'
    IMPROVED_TREND_FOLLOWING = 'improved_trend_following'

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    StrategyFamily.SMA_CROSSOVER: 'SMA Crossover',
    StrategyFamily.RSI: 'RSI',
    StrategyFamily.MACD: 'MACD',
    StrategyFamily.BREAKOUT: 'Breakout',
    StrategyFamily.MEAN_REVERSION: 'Mean Reversion',
    StrategyFamily.TREND_FOLLOWING: 'Trend Following',
    StrategyFamily.IMPROVED_TREND_FOLLOWING: 'Improved Trend Following',
}


@dataclass(frozen=True)
class _ParamsBase:
    """Shared behaviour for every params variant."""

    family: ClassVar[StrategyFamily]

    performance: float = field(default=math.nan, compare=False, kw_only=True)

    def tunable(self) -> Dict[str, Any]:
        """Tunable fields only (performance excluded)."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != 'performance'
        }

    def with_performance(self, performance: float) -> 'StrategyParams':
        return replace(self, performance=performance)

    @property
    def is_sentinel(self) -> bool:
        """True when no candidate could be evaluated for this family."""
        return self.performance == -math.inf

    @property
    def param_count(self) -> int:
        return len(self.tunable())

    def to_dict(self) -> Dict[str, Any]:
        data = self.tunable()
        data['family'] = self.family.value
        data['performance'] = self.performance
        return data


@dataclass(frozen=True)
class SmaCrossoverParams(_ParamsBase):
    family: ClassVar[StrategyFamily] = StrategyFamily.SMA_CROSSOVER

    short_period: int
    long_period: int


@dataclass(frozen=True)
class RsiParams(_ParamsBase):
    family: ClassVar[StrategyFamily] = StrategyFamily.RSI

    period: int
    oversold: float
    overbought: float


@dataclass(frozen=True)
class MacdParams(_ParamsBase):
    family: ClassVar[StrategyFamily] = StrategyFamily.MACD

    short_period: int
    long_period: int
    signal_period: int


@dataclass(frozen=True)
class BreakoutParams(_ParamsBase):
    family: ClassVar[StrategyFamily] = StrategyFamily.BREAKOUT

    lookback: int


@dataclass(frozen=True)
class MeanReversionParams(_ParamsBase):
    """threshold is a percentage: 2.0 means 2% away from the SMA."""

    family: ClassVar[StrategyFamily] = StrategyFamily.MEAN_REVERSION

    sma_period: int
    threshold: float


@dataclass(frozen=True)
class TrendFollowingParams(_ParamsBase):
    family: ClassVar[StrategyFamily] = StrategyFamily.TREND_FOLLOWING

    period: int


@dataclass(frozen=True)
class ImprovedTrendFollowingParams(_ParamsBase):
    """breakout_threshold_pct is a fraction: 0.005 means 0.5%."""

    family: ClassVar[StrategyFamily] = StrategyFamily.IMPROVED_TREND_FOLLOWING

    trend_period: int
    short_ma_period: int
    long_ma_period: int
    breakout_threshold_pct: float
    use_rsi_filter: bool = True
    rsi_period: int = 14


StrategyParams = Union[
    SmaCrossoverParams,
    RsiParams,
    MacdParams,
    BreakoutParams,
    MeanReversionParams,
    TrendFollowingParams,
    ImprovedTrendFollowingParams,
]

PARAMS_BY_FAMILY: Dict[StrategyFamily, Type[_ParamsBase]] = {
    cls.family: cls
    for cls in (
        SmaCrossoverParams,
        RsiParams,
        MacdParams,
        BreakoutParams,
        MeanReversionParams,
        TrendFollowingParams,
        ImprovedTrendFollowingParams,
    )
}


def params_from_dict(family: StrategyFamily, data: Dict[str, Any]) -> StrategyParams:
    """
    Build the params variant for a family from a plain mapping.

    Keys other than the variant's fields (e.g. 'family') are ignored.

    Args:
        family: Strategy family (enum or its string value)
        data: Field values, optionally including 'performance'

    Returns:
        Params variant instance

    Raises:
        KeyError: If a required field is missing
    """
    cls = PARAMS_BY_FAMILY[StrategyFamily(family)]
    names = {f.name for f in fields(cls)}
    kwargs = {k: v for k, v in data.items() if k in names}
    return cls(**kwargs)
