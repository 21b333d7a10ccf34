"""
Strategy registry.

Maps each params variant type to the strategy class that consumes it, so
building a strategy never depends on matching a name string.

Example:
    from stratlab_engine.strategies.registry import create_strategy

    strategy = create_strategy(RsiParams(period=14, oversold=30, overbought=70))
"""
from typing import Dict, Type

from stratlab_engine.core.params import (
    BreakoutParams,
    ImprovedTrendFollowingParams,
    MacdParams,
    MeanReversionParams,
    RsiParams,
    SmaCrossoverParams,
    StrategyParams,
    TrendFollowingParams,
)
from stratlab_engine.core.strategy_base import Strategy
from stratlab_engine.strategies.channel_breakout import Breakout, TrendFollowing
from stratlab_engine.strategies.improved_trend_following import ImprovedTrendFollowing
from stratlab_engine.strategies.macd_cross import MACD_Cross
from stratlab_engine.strategies.mean_reversion import MeanReversion
from stratlab_engine.strategies.rsi_reversal import RSI_Reversal
from stratlab_engine.strategies.sma_crossover import SMA_Crossover

STRATEGY_REGISTRY: Dict[type, Type[Strategy]] = {
    SmaCrossoverParams: SMA_Crossover,
    RsiParams: RSI_Reversal,
    MacdParams: MACD_Cross,
    BreakoutParams: Breakout,
    MeanReversionParams: MeanReversion,
    TrendFollowingParams: TrendFollowing,
    ImprovedTrendFollowingParams: ImprovedTrendFollowing,
}


def create_strategy(params: StrategyParams) -> Strategy:
    """
    Build the strategy described by a params variant.

    Args:
        params: Any StrategyParams variant

    Returns:
        Strategy instance configured with the params' tunable values

    Raises:
        TypeError: If params is not a registered variant
    """
    strategy_class = STRATEGY_REGISTRY.get(type(params))
    if strategy_class is None:
        raise TypeError(
            f"No strategy registered for params type {type(params).__name__}"
        )
    return strategy_class.from_params(params)
