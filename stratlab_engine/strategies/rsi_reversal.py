"""
RSI threshold strategy.

Strategy Logic:
- ENTER when RSI drops below the oversold level
- EXIT when RSI rises above the overbought level
"""
from stratlab_engine.core.bars import BarSeries
from stratlab_engine.core.params import RsiParams, StrategyFamily
from stratlab_engine.core.strategy_base import Rule, Strategy
from stratlab_engine.indicators.technical import rsi


class RSI_Reversal(Strategy):
    """RSI oversold/overbought strategy."""

    def __init__(self, period: int = 14, oversold: float = 30.0, overbought: float = 70.0):
        super().__init__(name=StrategyFamily.RSI.display_name)
        self.period = period
        self.oversold = oversold
        self.overbought = overbought

    @classmethod
    def from_params(cls, params: RsiParams) -> 'RSI_Reversal':
        return cls(
            period=params.period,
            oversold=params.oversold,
            overbought=params.overbought,
        )

    @property
    def params(self) -> RsiParams:
        return RsiParams(
            period=self.period, oversold=self.oversold, overbought=self.overbought
        )

    def entry_rule(self, series: BarSeries) -> Rule:
        return Rule(rsi(series.close, self.period) < self.oversold)

    def exit_rule(self, series: BarSeries) -> Rule:
        return Rule(rsi(series.close, self.period) > self.overbought)
