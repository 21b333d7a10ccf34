"""
Simple Moving Average (SMA) Crossover Strategy.

Classic trend-following strategy driven by crossovers between a short-term
and a long-term moving average of the close.

Strategy Logic:
- ENTER when short SMA crosses above long SMA (golden cross)
- EXIT when short SMA crosses below long SMA (death cross)

Example:
    from stratlab_engine.strategies.sma_crossover import SMA_Crossover

    strategy = SMA_Crossover(short_period=5, long_period=20)
    entries = strategy.entry_rule(series)
"""
from stratlab_engine.core.bars import BarSeries
from stratlab_engine.core.params import SmaCrossoverParams, StrategyFamily
from stratlab_engine.core.strategy_base import Rule, Strategy
from stratlab_engine.indicators.technical import crossed_down, crossed_up, sma


class SMA_Crossover(Strategy):
    """
    SMA Crossover trading strategy.

    Attributes:
        short_period: Period for short-term SMA
        long_period: Period for long-term SMA
    """

    def __init__(self, short_period: int = 20, long_period: int = 50):
        """
        Initialize SMA Crossover strategy.

        Args:
            short_period: Short-term SMA period (default: 20)
            long_period: Long-term SMA period (default: 50)
        """
        super().__init__(name=StrategyFamily.SMA_CROSSOVER.display_name)
        self.short_period = short_period
        self.long_period = long_period

    @classmethod
    def from_params(cls, params: SmaCrossoverParams) -> 'SMA_Crossover':
        return cls(short_period=params.short_period, long_period=params.long_period)

    @property
    def params(self) -> SmaCrossoverParams:
        return SmaCrossoverParams(
            short_period=self.short_period, long_period=self.long_period
        )

    def _averages(self, series: BarSeries):
        return sma(series.close, self.short_period), sma(series.close, self.long_period)

    def entry_rule(self, series: BarSeries) -> Rule:
        short_sma, long_sma = self._averages(series)
        return Rule(crossed_up(short_sma, long_sma))

    def exit_rule(self, series: BarSeries) -> Rule:
        short_sma, long_sma = self._averages(series)
        return Rule(crossed_down(short_sma, long_sma))
