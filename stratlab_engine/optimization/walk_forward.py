"""
Walk-forward and rolling-window analysis for out-of-sample validation.

Both harnesses cut a series into (optimization, test) window pairs, optimize
on each optimization window and judge the chosen params only on the test
window that immediately follows it. They differ in how the next window
starts:

- WalkForwardHarness: the next optimization window starts right after the
  previous test window, so windows never overlap.
- RollingWindowHarness: windows start every ``step_size`` bars and may
  overlap.

All ranges are inclusive bar indices into the analyzed series.
"""
import math
from abc import ABC, abstractmethod
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from stratlab_engine.core.bars import BarSeries, IndexRange
from stratlab_engine.core.params import StrategyFamily
from stratlab_engine.core.results import RiskResult, WindowResult
from stratlab_engine.optimization.base import Optimizer
from stratlab_engine.optimization.grid_search import resolve_seed
from stratlab_engine.optimization.parallel import ParallelExecutor, spawn_seeds
from stratlab_engine.optimization.results import window_results_to_frame
from stratlab_engine.optimization.search_space import Axis
from stratlab_engine.portfolio.simulator import simulate
from stratlab_engine.strategies.registry import create_strategy
from stratlab_engine.utils.logging_config import get_optimization_logger

logger = get_optimization_logger('WALKFORWARD')

WindowPlan = List[Tuple[IndexRange, IndexRange]]

# Out-of-sample over in-sample return below this flags overfitting
OVERFIT_RATIO_THRESHOLD = 0.7


def _run_window(task: tuple) -> WindowResult:
    """Optimize on one window's optimization bars, then test out of sample."""
    optimizer, family, ranges, window_id, opt_range, test_range, opt_series, test_series, seed = task

    params = optimizer.optimize(opt_series, family, ranges=ranges, seed=seed)

    if params.is_sentinel:
        logger.warning(
            f"Window {window_id}: no params for {StrategyFamily(family).value}, "
            f"recording an empty result"
        )
        result = RiskResult.empty()
    else:
        result = simulate(
            test_series, create_strategy(params), optimizer.risk_model, optimizer.scorer
        )

    logger.info(
        f"Window {window_id}: opt [{opt_range.start}, {opt_range.end}] -> "
        f"test [{test_range.start}, {test_range.end}], params={params.tunable()}, "
        f"in-sample={params.performance:.4f}, out-of-sample={result.rendement:.4f}"
    )
    return WindowResult(
        window_id=window_id,
        opt_range=opt_range,
        test_range=test_range,
        params=params,
        result=result,
    )


class WindowHarness(ABC):
    """
    Shared window planning and execution.

    Attributes:
        optimizer: Optimizer run on every optimization window
        opt_size: Bars per optimization window
        test_size: Bars per test window
        n_jobs: Worker processes for independent windows
    """

    def __init__(
        self,
        optimizer: Optimizer,
        opt_size: int,
        test_size: int,
        n_jobs: int = 1,
    ):
        """
        Raises:
            ValueError: If a window size is not positive
        """
        if opt_size < 1:
            raise ValueError(f"opt_size must be positive, got {opt_size}")
        if test_size < 1:
            raise ValueError(f"test_size must be positive, got {test_size}")

        self.optimizer = optimizer
        self.opt_size = opt_size
        self.test_size = test_size
        self.n_jobs = n_jobs

    @abstractmethod
    def _next_start(self, start: int, test_range: IndexRange) -> int:
        """First optimization bar of the window after the one at ``start``."""
        pass

    def plan(self, total_bars: int) -> WindowPlan:
        """
        Lay out (optimization, test) ranges in ascending start order.

        Returns:
            Window ranges; empty when the series cannot hold one window
        """
        windows: WindowPlan = []
        start = 0
        while start + self.opt_size + self.test_size <= total_bars:
            opt_range = IndexRange(start, start + self.opt_size - 1)
            test_range = IndexRange(opt_range.end + 1, opt_range.end + self.test_size)
            windows.append((opt_range, test_range))
            start = self._next_start(start, test_range)
        return windows

    def run(
        self,
        series: BarSeries,
        family: StrategyFamily,
        ranges: Optional[Mapping[str, Axis]] = None,
        seed: Optional[int] = None,
    ) -> List[WindowResult]:
        """
        Run every window.

        Args:
            series: Bars to analyze
            family: Strategy family to optimize
            ranges: Optional per-axis overrides of the family defaults
            seed: Root seed; each window gets its own spawned seed

        Returns:
            WindowResults in ascending start order (empty when the series is
            too short for a single window)
        """
        windows = self.plan(len(series))
        if not windows:
            logger.warning(
                f"{len(series)} bars cannot hold one window of "
                f"{self.opt_size}+{self.test_size} bars"
            )
            return []

        seed = resolve_seed(seed)
        logger.info(
            f"{self.__class__.__name__}: {len(windows)} windows for "
            f"{StrategyFamily(family).value} on {len(series)} bars (seed={seed})"
        )

        tasks = [
            (
                self.optimizer,
                family,
                ranges,
                window_id,
                opt_range,
                test_range,
                series.slice_range(opt_range),
                series.slice_range(test_range),
                window_seed,
            )
            for window_id, ((opt_range, test_range), window_seed) in enumerate(
                zip(windows, spawn_seeds(seed, len(windows)))
            )
        ]
        executor = ParallelExecutor(n_jobs=self.n_jobs, show_progress=True)
        return executor.map(_run_window, tasks, task_description="Windows")

    def summarize(self, results: Sequence[WindowResult]) -> Dict[str, Any]:
        return summarize_windows(results)

    def to_frame(self, results: Sequence[WindowResult]) -> pd.DataFrame:
        return window_results_to_frame(results)


class WalkForwardHarness(WindowHarness):
    """
    Non-overlapping walk-forward windows.

    Example:
        >>> harness = WalkForwardHarness(AdaptiveSearchOptimizer(), opt_size=250, test_size=50)
        >>> results = harness.run(series, StrategyFamily.SMA_CROSSOVER, seed=1)
        >>> harness.summarize(results)['compounded_rendement']
    """

    def _next_start(self, start: int, test_range: IndexRange) -> int:
        return test_range.end + 1


class RollingWindowHarness(WindowHarness):
    """
    Windows starting every ``step_size`` bars; they overlap when
    ``step_size < opt_size + test_size``.
    """

    def __init__(
        self,
        optimizer: Optimizer,
        opt_size: int,
        test_size: int,
        step_size: int,
        n_jobs: int = 1,
    ):
        if step_size < 1:
            raise ValueError(f"step_size must be positive, got {step_size}")
        super().__init__(optimizer, opt_size, test_size, n_jobs=n_jobs)
        self.step_size = step_size

    def _next_start(self, start: int, test_range: IndexRange) -> int:
        return start + self.step_size


def _dispersion(rendements: Sequence[float]) -> Tuple[float, float, float]:
    """Sample standard deviation, Sharpe and Sortino ratios of per-window returns."""
    n = len(rendements)
    if n < 2:
        return 0.0, 0.0, 0.0

    mean = sum(rendements) / n
    deviations = [r - mean for r in rendements]
    std = math.sqrt(sum(d * d for d in deviations) / (n - 1))
    sharpe = mean / std if std != 0 else 0.0

    # Downside deviation measured against the mean
    downside = [d for d in deviations if d < 0]
    downside_dev = math.sqrt(sum(d * d for d in downside) / len(downside)) if downside else 0.0
    sortino = mean / downside_dev if downside_dev != 0 else 0.0

    return std, sharpe, sortino


def summarize_windows(results: Sequence[WindowResult]) -> Dict[str, Any]:
    """
    Aggregate out-of-sample results across windows.

    Returns:
        Dictionary with:
        - 'n_windows'
        - 'mean_rendement': average test-window rendement
        - 'compounded_rendement': product of (1 + rendement) minus 1
        - 'mean_win_rate', 'mean_max_drawdown', 'mean_profit_factor',
          'mean_trade_bars'
        - 'total_trades'
        - 'mean_in_sample_rendement': average in-sample performance of the
          chosen params, over windows whose optimization found any
        - 'mean_out_of_sample_rendement': same as 'mean_rendement'
        - 'overfit_ratio': out-of-sample mean over in-sample mean (0 when the
          in-sample mean is 0)
        - 'is_overfit': overfit_ratio below 0.7
        - 'rendement_std', 'sharpe_ratio', 'sortino_ratio': dispersion of
          test-window rendements (0 with fewer than two windows)
        - 'param_stability': most frequent params and the share of windows
          that chose them
    """
    if not results:
        return {
            'n_windows': 0,
            'mean_rendement': 0.0,
            'compounded_rendement': 0.0,
            'mean_win_rate': 0.0,
            'mean_max_drawdown': 0.0,
            'mean_profit_factor': 0.0,
            'mean_trade_bars': 0.0,
            'total_trades': 0,
            'mean_in_sample_rendement': 0.0,
            'mean_out_of_sample_rendement': 0.0,
            'overfit_ratio': 0.0,
            'is_overfit': False,
            'rendement_std': 0.0,
            'sharpe_ratio': 0.0,
            'sortino_ratio': 0.0,
            'param_stability': {'params': None, 'share': 0.0},
        }

    n = len(results)
    rendements = [w.result.rendement for w in results]
    counts = Counter(tuple(sorted(w.params.tunable().items())) for w in results)
    most_common, frequency = counts.most_common(1)[0]

    # Sentinel windows carry -inf in-sample performance
    in_sample = [w.params.performance for w in results if math.isfinite(w.params.performance)]
    mean_in_sample = sum(in_sample) / len(in_sample) if in_sample else 0.0
    mean_out_of_sample = sum(rendements) / n
    overfit_ratio = mean_out_of_sample / mean_in_sample if mean_in_sample != 0 else 0.0
    std, sharpe, sortino = _dispersion(rendements)

    return {
        'n_windows': n,
        'mean_rendement': mean_out_of_sample,
        'compounded_rendement': math.prod(1 + r for r in rendements) - 1,
        'mean_win_rate': sum(w.result.win_rate for w in results) / n,
        'mean_max_drawdown': sum(w.result.max_drawdown for w in results) / n,
        'mean_profit_factor': sum(w.result.profit_factor for w in results) / n,
        'mean_trade_bars': sum(w.result.avg_trade_bars for w in results) / n,
        'total_trades': sum(w.result.trade_count for w in results),
        'mean_in_sample_rendement': mean_in_sample,
        'mean_out_of_sample_rendement': mean_out_of_sample,
        'overfit_ratio': overfit_ratio,
        'is_overfit': overfit_ratio < OVERFIT_RATIO_THRESHOLD,
        'rendement_std': std,
        'sharpe_ratio': sharpe,
        'sortino_ratio': sortino,
        'param_stability': {'params': dict(most_common), 'share': frequency / n},
    }
