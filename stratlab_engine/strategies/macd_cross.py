"""
MACD signal-line crossover strategy.

Strategy Logic:
- ENTER when the MACD line crosses above its signal EMA
- EXIT when the MACD line crosses below its signal EMA
"""
from stratlab_engine.core.bars import BarSeries
from stratlab_engine.core.params import MacdParams, StrategyFamily
from stratlab_engine.core.strategy_base import Rule, Strategy
from stratlab_engine.indicators.technical import crossed_down, crossed_up, macd


class MACD_Cross(Strategy):
    """
    MACD crossover strategy.

    Attributes:
        short_period: Fast EMA period
        long_period: Slow EMA period
        signal_period: Signal line EMA period
    """

    def __init__(self, short_period: int = 12, long_period: int = 26, signal_period: int = 9):
        super().__init__(name=StrategyFamily.MACD.display_name)
        self.short_period = short_period
        self.long_period = long_period
        self.signal_period = signal_period

    @classmethod
    def from_params(cls, params: MacdParams) -> 'MACD_Cross':
        return cls(
            short_period=params.short_period,
            long_period=params.long_period,
            signal_period=params.signal_period,
        )

    @property
    def params(self) -> MacdParams:
        return MacdParams(
            short_period=self.short_period,
            long_period=self.long_period,
            signal_period=self.signal_period,
        )

    def _lines(self, series: BarSeries):
        macd_line, signal_line, _ = macd(
            series.close,
            fast_period=self.short_period,
            slow_period=self.long_period,
            signal_period=self.signal_period,
        )
        return macd_line, signal_line

    def entry_rule(self, series: BarSeries) -> Rule:
        macd_line, signal_line = self._lines(series)
        return Rule(crossed_up(macd_line, signal_line))

    def exit_rule(self, series: BarSeries) -> Rule:
        macd_line, signal_line = self._lines(series)
        return Rule(crossed_down(macd_line, signal_line))
