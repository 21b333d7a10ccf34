"""
Improved Trend Following strategy.

Combines a moving-average regime filter with a breakout band and an optional
RSI guard against buying into overbought conditions.

Strategy Logic:
- ENTER when either
    * close is above the long SMA by more than the breakout threshold while
      the short SMA is above the long SMA, or
    * the short SMA is above the long SMA and the close crosses back above
      the short SMA (pullback re-entry)
  and, when the RSI filter is on, RSI is below 80.
- EXIT when either
    * close crosses below the short SMA, or
    * close is below the long SMA by more than the threshold while the
      short SMA is below the long SMA.

``trend_period`` is carried for reporting and search but does not enter the
rules.
"""
from stratlab_engine.core.bars import BarSeries
from stratlab_engine.core.params import ImprovedTrendFollowingParams, StrategyFamily
from stratlab_engine.core.strategy_base import Rule, Strategy
from stratlab_engine.indicators.technical import crossed_down, crossed_up, rsi, sma

RSI_CEILING = 80.0


class ImprovedTrendFollowing(Strategy):
    """
    Trend following with breakout band and RSI guard.

    Attributes:
        trend_period: Trend horizon (informational)
        short_ma_period: Short SMA period
        long_ma_period: Long SMA period
        breakout_threshold_pct: Band width as a fraction (0.005 = 0.5%)
        use_rsi_filter: Require RSI < 80 on entry
        rsi_period: RSI period for the filter
    """

    def __init__(
        self,
        trend_period: int = 20,
        short_ma_period: int = 10,
        long_ma_period: int = 20,
        breakout_threshold_pct: float = 0.005,
        use_rsi_filter: bool = True,
        rsi_period: int = 14,
    ):
        super().__init__(name=StrategyFamily.IMPROVED_TREND_FOLLOWING.display_name)
        self.trend_period = trend_period
        self.short_ma_period = short_ma_period
        self.long_ma_period = long_ma_period
        self.breakout_threshold_pct = breakout_threshold_pct
        self.use_rsi_filter = use_rsi_filter
        self.rsi_period = rsi_period

    @classmethod
    def from_params(cls, params: ImprovedTrendFollowingParams) -> 'ImprovedTrendFollowing':
        return cls(**params.tunable())

    @property
    def params(self) -> ImprovedTrendFollowingParams:
        return ImprovedTrendFollowingParams(
            trend_period=self.trend_period,
            short_ma_period=self.short_ma_period,
            long_ma_period=self.long_ma_period,
            breakout_threshold_pct=self.breakout_threshold_pct,
            use_rsi_filter=self.use_rsi_filter,
            rsi_period=self.rsi_period,
        )

    def entry_rule(self, series: BarSeries) -> Rule:
        close = series.close
        short_sma = sma(close, self.short_ma_period)
        long_sma = sma(close, self.long_ma_period)
        uptrend = short_sma > long_sma

        breakout = (close > long_sma * (1 + self.breakout_threshold_pct)) & uptrend
        pullback = uptrend & crossed_up(close, short_sma)
        entry = breakout | pullback

        if self.use_rsi_filter:
            entry = entry & (rsi(close, self.rsi_period) < RSI_CEILING)

        return Rule(entry)

    def exit_rule(self, series: BarSeries) -> Rule:
        close = series.close
        short_sma = sma(close, self.short_ma_period)
        long_sma = sma(close, self.long_ma_period)

        breakdown = (close < long_sma * (1 - self.breakout_threshold_pct)) & (
            short_sma < long_sma
        )
        return Rule(crossed_down(close, short_sma) | breakdown)
