"""
Technical indicators for strategy rules.

Provides the indicators the strategy families need, computed with pandas.
All indicators accept either pandas Series or lists and return pandas Series
aligned with their input (NaN where there is not enough history).

Example:
    from stratlab_engine.indicators.technical import sma, crossed_up

    fast = sma(series.close, period=5)
    slow = sma(series.close, period=20)
    entries = crossed_up(fast, slow)
"""
from typing import List, Union
import pandas as pd
import numpy as np


def _to_series(data: Union[pd.Series, List[float]]) -> pd.Series:
    """
    Convert input data to pandas Series.

    Args:
        data: Price data as Series or list

    Returns:
        pandas Series with float values
    """
    if isinstance(data, pd.Series):
        return data.astype(float)
    return pd.Series(data, dtype=float)


def sma(data: Union[pd.Series, List], period: int) -> pd.Series:
    """
    Calculate Simple Moving Average (SMA).

    SMA is the arithmetic mean of the last N periods.

    Args:
        data: Price data (typically close prices)
        period: Number of periods for moving average

    Returns:
        pandas Series with SMA values (NaN for insufficient data)

    Example:
        closes = [100, 102, 101, 103, 105, 104, 106]
        sma_3 = sma(closes, period=3)
        # Returns: [NaN, NaN, 101.0, 102.0, 103.0, 104.0, 105.0]
    """
    series = _to_series(data)
    return series.rolling(window=period).mean()


def ema(data: Union[pd.Series, List], period: int) -> pd.Series:
    """
    Calculate Exponential Moving Average (EMA).

    Args:
        data: Price data (typically close prices)
        period: Number of periods for moving average

    Returns:
        pandas Series with EMA values
    """
    series = _to_series(data)
    return series.ewm(span=period, adjust=False).mean()


def rsi(data: Union[pd.Series, List], period: int = 14) -> pd.Series:
    """
    Calculate Relative Strength Index (RSI) with Wilder smoothing.

    Args:
        data: Price data (typically close prices)
        period: Number of periods for RSI calculation (default: 14)

    Returns:
        pandas Series with RSI values (0-100 scale). Values are NaN for the
        first ``period`` bars and wherever price did not move at all.

    Note:
        RSI = 100 - (100 / (1 + RS))
        where RS = Average Gain / Average Loss, smoothed with alpha = 1/period
    """
    series = _to_series(data)
    delta = series.diff()

    gain = delta.where(delta > 0, 0.0)
    loss = -delta.where(delta < 0, 0.0)
    gain.iloc[0:1] = np.nan
    loss.iloc[0:1] = np.nan

    avg_gain = gain.ewm(alpha=1.0 / period, adjust=False, min_periods=period).mean()
    avg_loss = loss.ewm(alpha=1.0 / period, adjust=False, min_periods=period).mean()

    with np.errstate(divide='ignore', invalid='ignore'):
        rs = avg_gain / avg_loss
    rsi_values = 100 - (100 / (1 + rs))

    # No losses at all: fully overbought
    rsi_values = rsi_values.where(~((avg_loss == 0) & (avg_gain > 0)), 100.0)

    return rsi_values


def macd(
    data: Union[pd.Series, List],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9
) -> tuple[pd.Series, pd.Series, pd.Series]:
    """
    Calculate MACD (Moving Average Convergence Divergence).

    Args:
        data: Price data (typically close prices)
        fast_period: Period for fast EMA (default: 12)
        slow_period: Period for slow EMA (default: 26)
        signal_period: Period for signal line (default: 9)

    Returns:
        Tuple of (macd_line, signal_line, histogram)
        - macd_line: Fast EMA - Slow EMA
        - signal_line: EMA of MACD line
        - histogram: MACD line - Signal line
    """
    series = _to_series(data)

    macd_line = ema(series, fast_period) - ema(series, slow_period)
    signal_line = ema(macd_line, signal_period)
    histogram = macd_line - signal_line

    return macd_line, signal_line, histogram


def highest(data: Union[pd.Series, List], period: int) -> pd.Series:
    """
    Highest value of the ``period`` bars before each bar.

    The current bar is excluded so a close can break out above it.
    """
    series = _to_series(data)
    return series.rolling(window=period).max().shift(1)


def lowest(data: Union[pd.Series, List], period: int) -> pd.Series:
    """Lowest value of the ``period`` bars before each bar (current excluded)."""
    series = _to_series(data)
    return series.rolling(window=period).min().shift(1)


def _above(a: Union[pd.Series, float], b: Union[pd.Series, float]) -> pd.Series:
    # NaN comparisons evaluate to False
    return (a > b).astype(bool)


def crossed_up(a: pd.Series, b: Union[pd.Series, float]) -> pd.Series:
    """
    True where ``a`` moves from at-or-below ``b`` to strictly above it.

    Index 0 is never a cross. A bar where either side is NaN is never a
    cross; a previous bar with NaN counts as "not above".

    Example:
        crossed_up(pd.Series([1, 2, 3]), pd.Series([2, 2, 2]))
        # [False, False, True]
    """
    above = _above(a, b)
    prev = above.shift(1, fill_value=True).astype(bool)
    return above & ~prev


def crossed_down(a: pd.Series, b: Union[pd.Series, float]) -> pd.Series:
    """True where ``a`` moves from at-or-above ``b`` to strictly below it."""
    below = _above(b, a)
    prev = below.shift(1, fill_value=True).astype(bool)
    return below & ~prev
