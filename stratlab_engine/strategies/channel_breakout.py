"""
Price channel breakout strategies.

Breakout and Trend Following share the same Donchian-style channel rule and
differ only in the name of their lookback parameter:

- ENTER when the close crosses above the highest high of the previous N bars
- EXIT when the close crosses below the lowest low of the previous N bars

Example:
    strategy = Breakout(lookback=20)
    trend = TrendFollowing(period=30)
"""
from stratlab_engine.core.bars import BarSeries
from stratlab_engine.core.params import (
    BreakoutParams,
    StrategyFamily,
    TrendFollowingParams,
)
from stratlab_engine.core.strategy_base import Rule, Strategy
from stratlab_engine.indicators.technical import (
    crossed_down,
    crossed_up,
    highest,
    lowest,
)


class _ChannelStrategy(Strategy):
    """Channel rule over a lookback window."""

    def __init__(self, lookback: int, name: str):
        super().__init__(name=name)
        self.lookback = lookback

    def entry_rule(self, series: BarSeries) -> Rule:
        upper = highest(series.high, self.lookback)
        return Rule(crossed_up(series.close, upper))

    def exit_rule(self, series: BarSeries) -> Rule:
        lower = lowest(series.low, self.lookback)
        return Rule(crossed_down(series.close, lower))


class Breakout(_ChannelStrategy):

    def __init__(self, lookback: int = 20):
        super().__init__(lookback, StrategyFamily.BREAKOUT.display_name)

    @classmethod
    def from_params(cls, params: BreakoutParams) -> 'Breakout':
        return cls(lookback=params.lookback)

    @property
    def params(self) -> BreakoutParams:
        return BreakoutParams(lookback=self.lookback)


class TrendFollowing(_ChannelStrategy):

    def __init__(self, period: int = 20):
        super().__init__(period, StrategyFamily.TREND_FOLLOWING.display_name)

    @property
    def period(self) -> int:
        return self.lookback

    @classmethod
    def from_params(cls, params: TrendFollowingParams) -> 'TrendFollowing':
        return cls(period=params.period)

    @property
    def params(self) -> TrendFollowingParams:
        return TrendFollowingParams(period=self.lookback)
