"""
Base strategy interface for the Strategy Lab engine.

A Strategy is nothing more than two rules over a BarSeries: when to enter a
long position and when to leave it. Rules are evaluated once per series into
a boolean mask, so the simulator can query any bar index in O(1).
"""
from abc import ABC, abstractmethod
from typing import Optional, Union

import numpy as np
import pandas as pd

from stratlab_engine.core.bars import BarSeries


class Rule:
    """
    Boolean condition evaluated at every bar of a series.

    Positions outside the series are never satisfied.

    Example:
        rule = Rule(closes > sma_20) & Rule(rsi_14 < 70)
        rule.is_satisfied(42)
    """

    def __init__(self, mask: Union[pd.Series, np.ndarray, list]):
        if isinstance(mask, pd.Series):
            mask = mask.fillna(False).to_numpy()
        self._mask = np.asarray(mask, dtype=bool)

    def is_satisfied(self, index: int) -> bool:
        if index < 0 or index >= len(self._mask):
            return False
        return bool(self._mask[index])

    def __and__(self, other: 'Rule') -> 'Rule':
        return Rule(self._mask & other._mask)

    def __or__(self, other: 'Rule') -> 'Rule':
        return Rule(self._mask | other._mask)

    def __len__(self) -> int:
        return len(self._mask)

    @property
    def mask(self) -> np.ndarray:
        return self._mask.copy()

    def __repr__(self) -> str:
        return f"Rule({int(self._mask.sum())}/{len(self._mask)} bars satisfied)"


class Strategy(ABC):
    """
    Abstract base class for trading strategies.

    Subclasses implement entry_rule() and exit_rule(). Strategies hold only
    their parameters, never simulation state, so one instance can be
    evaluated against many series concurrently.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name or self.__class__.__name__

    @abstractmethod
    def entry_rule(self, series: BarSeries) -> Rule:
        """Rule that opens a long position when flat."""
        pass

    @abstractmethod
    def exit_rule(self, series: BarSeries) -> Rule:
        """Rule that closes an open position."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class CombinedStrategy(Strategy):
    """
    Strategy taking its entry rule from one strategy and its exit from another.

    Example:
        combo = CombinedStrategy(rsi_strategy, breakout_strategy)
        combo.name  # 'Combined(RSI / Breakout)'
    """

    def __init__(self, entry_strategy: Strategy, exit_strategy: Strategy):
        super().__init__(
            name=f"Combined({entry_strategy.name} / {exit_strategy.name})"
        )
        self.entry_strategy = entry_strategy
        self.exit_strategy = exit_strategy

    def entry_rule(self, series: BarSeries) -> Rule:
        return self.entry_strategy.entry_rule(series)

    def exit_rule(self, series: BarSeries) -> Rule:
        return self.exit_strategy.exit_rule(series)
