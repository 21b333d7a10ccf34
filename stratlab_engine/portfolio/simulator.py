"""
Risk-managed long-only trade simulator.

Replays a strategy over a bar series with fixed-fraction position sizing,
a protective stop and a profit target, and summarizes the closed trades
into a RiskResult.

Example:
    from stratlab_engine.portfolio.simulator import RiskSimulator

    simulator = RiskSimulator(RiskModel(initial_capital=10000))
    run = simulator.run(series, SMA_Crossover(5, 20))

    print(f"Return: {run.result.rendement:.2%}")
    print(f"Trades: {len(run.trades)}")
"""
import logging
import math
from dataclasses import dataclass, field, replace
from typing import List, Optional

from stratlab_engine.core.bars import BarSeries
from stratlab_engine.core.results import (
    EXIT_END_OF_SERIES,
    EXIT_SIGNAL,
    EXIT_STOP_LOSS,
    EXIT_TAKE_PROFIT,
    RiskModel,
    RiskResult,
    Trade,
)
from stratlab_engine.core.strategy_base import Strategy
from stratlab_engine.performance.scoring import Scorer, swing_trade_score
from stratlab_engine.utils.logging_config import get_simulator_logger

logger = get_simulator_logger()


@dataclass(frozen=True)
class SimulationRun:
    """Outcome of one simulation: metrics plus the trade ledger."""

    result: RiskResult
    trades: List[Trade] = field(default_factory=list)
    final_capital: float = 0.0


class RiskSimulator:
    """
    Two-state (flat/long) simulator with stop-loss and take-profit exits.

    The simulator holds only its configuration; every run() call builds its
    own state, so one instance can be shared across threads or processes.

    Attributes:
        risk_model: Sizing and protective exit settings
        scorer: Function producing score_swing_trade from finalized metrics
    """

    def __init__(self, risk_model: Optional[RiskModel] = None, scorer: Scorer = swing_trade_score):
        self.risk_model = risk_model or RiskModel()
        self.scorer = scorer

    def run(self, series: BarSeries, strategy: Strategy) -> SimulationRun:
        """
        Simulate a strategy over a series.

        Per bar, while flat: an entry signal opens a position at the close
        sized at ``capital * risk_per_trade``. Bars with a non-positive close
        never open a position. The entry bar is never checked for an exit. While long: the position closes when the close is at or
        below the stop, at or above the target, or the exit rule fires. The
        exit fills at the close, replaced by the stop price on a stop and by
        the target price on a target (target wins when both trigger). A
        position still open after the last bar closes at the last close.

        Args:
            series: Bars to simulate over
            strategy: Strategy providing entry and exit rules

        Returns:
            SimulationRun with metrics, trades and final capital
        """
        model = self.risk_model
        capital = model.initial_capital
        trades: List[Trade] = []

        if len(series) == 0:
            return SimulationRun(self._finalize(capital, [], 0.0), trades, capital)

        closes = series.close.to_numpy()
        entry_rule = strategy.entry_rule(series)
        exit_rule = strategy.exit_rule(series)

        in_position = False
        entry_price = 0.0
        position_size = 0.0
        entry_index = 0
        peak = capital
        max_drawdown = 0.0

        for i in range(len(closes)):
            price = float(closes[i])

            if not in_position and price > 0 and entry_rule.is_satisfied(i):
                in_position = True
                entry_price = price
                position_size = capital * model.risk_per_trade
                entry_index = i
            elif in_position:
                stop_price = entry_price * (1 - model.stop_loss_pct)
                target_price = entry_price * (1 + model.take_profit_pct)

                stop_hit = price <= stop_price
                target_hit = price >= target_price
                signal = exit_rule.is_satisfied(i)

                if stop_hit or target_hit or signal:
                    exit_price = price
                    reason = EXIT_SIGNAL
                    if stop_hit:
                        exit_price = stop_price
                        reason = EXIT_STOP_LOSS
                    if target_hit:
                        exit_price = target_price
                        reason = EXIT_TAKE_PROFIT

                    pnl = position_size * (exit_price - entry_price) / entry_price
                    capital += pnl
                    trades.append(
                        Trade(
                            entry_index=entry_index,
                            exit_index=i,
                            entry_price=entry_price,
                            exit_price=exit_price,
                            position_size=position_size,
                            pnl=pnl,
                            exit_reason=reason,
                        )
                    )

                    peak = max(peak, capital)
                    max_drawdown = max(max_drawdown, (peak - capital) / peak)
                    in_position = False

        if in_position:
            # Forced close: no stop/target check and no drawdown update
            last_index = len(closes) - 1
            exit_price = float(closes[last_index])
            pnl = position_size * (exit_price - entry_price) / entry_price
            capital += pnl
            trades.append(
                Trade(
                    entry_index=entry_index,
                    exit_index=last_index,
                    entry_price=entry_price,
                    exit_price=exit_price,
                    position_size=position_size,
                    pnl=pnl,
                    exit_reason=EXIT_END_OF_SERIES,
                )
            )

        result = self._finalize(capital, trades, max_drawdown)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"{strategy.name} on {len(series)} bars: {result.trade_count} trades, "
                f"rendement={result.rendement:.4f}"
            )
        return SimulationRun(result, trades, capital)

    def _finalize(self, capital: float, trades: List[Trade], max_drawdown: float) -> RiskResult:
        """Derive metrics from closed trades and apply the scorer once."""
        n = len(trades)
        wins = 0
        total_pnl = 0.0
        total_gain = 0.0
        total_loss = 0.0
        total_bars = 0
        max_gain = -math.inf
        max_loss = math.inf

        for trade in trades:
            total_pnl += trade.pnl
            total_bars += trade.bars_held
            if trade.pnl > 0:
                wins += 1
                total_gain += trade.pnl
                max_gain = max(max_gain, trade.pnl)
            else:
                total_loss += abs(trade.pnl)
                max_loss = min(max_loss, trade.pnl)

        result = RiskResult(
            rendement=capital / self.risk_model.initial_capital - 1,
            trade_count=n,
            win_rate=wins / n if n > 0 else 0.0,
            max_drawdown=max_drawdown,
            avg_pnl=total_pnl / n if n > 0 else 0.0,
            profit_factor=total_gain / total_loss if total_loss > 0 else 0.0,
            avg_trade_bars=total_bars / n if n > 0 else 0.0,
            max_trade_gain=max_gain if math.isfinite(max_gain) else 0.0,
            max_trade_loss=max_loss if math.isfinite(max_loss) else 0.0,
        )
        return replace(result, score_swing_trade=self.scorer(result))


def simulate(
    series: BarSeries,
    strategy: Strategy,
    risk_model: Optional[RiskModel] = None,
    scorer: Scorer = swing_trade_score,
) -> RiskResult:
    """
    Simulate a strategy and return only its metrics.

    Args:
        series: Bars to simulate over
        strategy: Strategy to evaluate
        risk_model: Sizing and exits (defaults to RiskModel())
        scorer: Score function (defaults to swing_trade_score)

    Returns:
        RiskResult
    """
    return RiskSimulator(risk_model, scorer).run(series, strategy).result


def simple_return(series: BarSeries, strategy: Strategy) -> float:
    """
    Compounded return of a strategy with full allocation and no risk exits.

    Each trade enters at the close of its entry bar and exits at the close
    of the bar its exit rule fires; an open position is closed at the last
    close. Bars with a non-positive close never open a trade.

    Args:
        series: Bars to evaluate over
        strategy: Strategy to evaluate

    Returns:
        Total compounded return as a decimal (0.10 = 10%)
    """
    if len(series) == 0:
        return 0.0

    closes = series.close.to_numpy()
    entry_rule = strategy.entry_rule(series)
    exit_rule = strategy.exit_rule(series)

    growth = 1.0
    entry_price: Optional[float] = None
    for i in range(len(closes)):
        price = float(closes[i])
        if entry_price is None and price > 0 and entry_rule.is_satisfied(i):
            entry_price = price
        elif entry_price is not None and exit_rule.is_satisfied(i):
            growth *= price / entry_price
            entry_price = None

    if entry_price is not None:
        growth *= float(closes[-1]) / entry_price

    return growth - 1.0
