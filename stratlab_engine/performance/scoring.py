"""
Result scoring and screening.

Functions:
    - swing_trade_score: default composite score stored on every RiskResult
    - is_stable_and_simple: screen that rejects fragile or over-fit results

Key Principles:
    - All ratios are decimals (0.05 = 5%), never percentages
    - Profit factor is capped at 10 inside the score so a single lucky
      loss-free run cannot dominate
"""
from typing import Callable, Optional, Sequence

from stratlab_engine.core.params import StrategyParams
from stratlab_engine.core.results import RiskResult

Scorer = Callable[[RiskResult], float]

PROFIT_FACTOR_CAP = 10.0

# Stability screen limits
MAX_STABLE_DRAWDOWN = 0.3
MIN_STABLE_PROFIT_FACTOR = 1.2
MIN_STABLE_WIN_RATE = 0.3
MIN_AVG_TRADE_BARS = 2.0
MAX_AVG_TRADE_BARS = 20.0
MIN_GAIN_LOSS_RATIO = 1.0
MAX_PARAM_COUNT = 10


def swing_trade_score(result: RiskResult) -> float:
    """
    Composite swing-trading score.

    score = 2.0 * rendement
          + 1.5 * win_rate
          + 1.0 * min(profit_factor, 10)
          - 2.0 * max_drawdown
          + 1.0 * avg_pnl

    Args:
        result: Finalized metrics (score field is ignored)

    Returns:
        Score as float (higher is better)

    Example:
        >>> swing_trade_score(RiskResult.empty())
        0.0
    """
    return (
        result.rendement * 2.0
        + result.win_rate * 1.5
        + min(result.profit_factor, PROFIT_FACTOR_CAP) * 1.0
        - result.max_drawdown * 2.0
        + result.avg_pnl * 1.0
    )


def is_stable_and_simple(
    result: RiskResult,
    params: Optional[Sequence[StrategyParams]] = None,
) -> bool:
    """
    Check that a result is robust enough to be worth trading.

    Rejects results with deep drawdowns, thin edges, very short or very long
    holding periods, losses larger than gains, or too many tuned parameters.

    Args:
        result: Simulation metrics
        params: Params the result was produced with; their tunable fields
            are counted against MAX_PARAM_COUNT

    Returns:
        True when every criterion passes
    """
    if result.max_drawdown > MAX_STABLE_DRAWDOWN:
        return False
    if result.profit_factor < MIN_STABLE_PROFIT_FACTOR:
        return False
    if result.win_rate < MIN_STABLE_WIN_RATE:
        return False
    if not MIN_AVG_TRADE_BARS <= result.avg_trade_bars <= MAX_AVG_TRADE_BARS:
        return False
    if result.max_trade_loss != 0:
        ratio = abs(result.max_trade_gain) / abs(result.max_trade_loss)
        if ratio < MIN_GAIN_LOSS_RATIO:
            return False
    if params:
        if sum(p.param_count for p in params) > MAX_PARAM_COUNT:
            return False
    return True
