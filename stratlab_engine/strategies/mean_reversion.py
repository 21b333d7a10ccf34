"""
SMA band mean reversion strategy.

Strategy Logic:
- ENTER when the close is more than ``threshold`` percent below its SMA
- EXIT when the close is more than ``threshold`` percent above its SMA
"""
from stratlab_engine.core.bars import BarSeries
from stratlab_engine.core.params import MeanReversionParams, StrategyFamily
from stratlab_engine.core.strategy_base import Rule, Strategy
from stratlab_engine.indicators.technical import sma


class MeanReversion(Strategy):
    """
    Mean reversion around a simple moving average.

    Attributes:
        sma_period: Period of the reference SMA
        threshold: Band half-width in percent (2.0 = 2%)
    """

    def __init__(self, sma_period: int = 20, threshold: float = 2.0):
        super().__init__(name=StrategyFamily.MEAN_REVERSION.display_name)
        self.sma_period = sma_period
        self.threshold = threshold

    @classmethod
    def from_params(cls, params: MeanReversionParams) -> 'MeanReversion':
        return cls(sma_period=params.sma_period, threshold=params.threshold)

    @property
    def params(self) -> MeanReversionParams:
        return MeanReversionParams(sma_period=self.sma_period, threshold=self.threshold)

    def entry_rule(self, series: BarSeries) -> Rule:
        mean = sma(series.close, self.sma_period)
        return Rule(series.close < mean * (1 - self.threshold / 100.0))

    def exit_rule(self, series: BarSeries) -> Rule:
        mean = sma(series.close, self.sma_period)
        return Rule(series.close > mean * (1 + self.threshold / 100.0))
