"""
Strategy families for the Strategy Lab engine.

Each family is a Strategy subclass with ``from_params``/``params`` helpers;
``create_strategy`` builds one from any StrategyParams variant.
"""
from stratlab_engine.strategies.channel_breakout import Breakout, TrendFollowing
from stratlab_engine.strategies.improved_trend_following import ImprovedTrendFollowing
from stratlab_engine.strategies.macd_cross import MACD_Cross
from stratlab_engine.strategies.mean_reversion import MeanReversion
from stratlab_engine.strategies.registry import STRATEGY_REGISTRY, create_strategy
from stratlab_engine.strategies.rsi_reversal import RSI_Reversal
from stratlab_engine.strategies.sma_crossover import SMA_Crossover

__all__ = [
    'SMA_Crossover',
    'RSI_Reversal',
    'MACD_Cross',
    'Breakout',
    'TrendFollowing',
    'MeanReversion',
    'ImprovedTrendFollowing',
    'STRATEGY_REGISTRY',
    'create_strategy',
]
