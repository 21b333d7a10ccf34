"""
Indicators module for the Strategy Lab engine.

Stateless indicators (technical.py):
    - Moving Averages: sma, ema
    - Momentum: rsi, macd
    - Channels: highest, lowest
    - Cross detection: crossed_up, crossed_down
"""
from stratlab_engine.indicators.technical import (
    crossed_down,
    crossed_up,
    ema,
    highest,
    lowest,
    macd,
    rsi,
    sma,
)

__all__ = [
    'sma',
    'ema',
    'rsi',
    'macd',
    'highest',
    'lowest',
    'crossed_up',
    'crossed_down',
]
