"""
Parameter Optimization Module for the Strategy Lab engine.

This module provides tools for choosing strategy parameters:
- Adaptive Search: grid enumeration or bounded random sampling
- Cross Search: best entry/exit family pairing
- Walk-Forward / Rolling Windows: strict out-of-sample validation

Example:
    from stratlab_engine.optimization import AdaptiveSearchOptimizer, WalkForwardHarness

    optimizer = AdaptiveSearchOptimizer()
    harness = WalkForwardHarness(optimizer, opt_size=250, test_size=50)
    windows = harness.run(series, StrategyFamily.SMA_CROSSOVER, seed=42)

    print(harness.summarize(windows)['compounded_rendement'])
"""

from stratlab_engine.optimization.base import Optimizer, OptimizerSettings, SearchDriver
from stratlab_engine.optimization.grid_search import AdaptiveSearchOptimizer
from stratlab_engine.optimization.cross_search import CrossSearch
from stratlab_engine.optimization.walk_forward import (
    RollingWindowHarness,
    WalkForwardHarness,
    summarize_windows,
)
from stratlab_engine.optimization.results import OptimizationResult, Trial
from stratlab_engine.optimization.search_space import ParamChoices, ParamRange, SearchSpace
from stratlab_engine.optimization.parallel import ParallelExecutor

__all__ = [
    'Optimizer',
    'OptimizerSettings',
    'SearchDriver',
    'AdaptiveSearchOptimizer',
    'CrossSearch',
    'WalkForwardHarness',
    'RollingWindowHarness',
    'summarize_windows',
    'OptimizationResult',
    'Trial',
    'ParamRange',
    'ParamChoices',
    'SearchSpace',
    'ParallelExecutor',
]
