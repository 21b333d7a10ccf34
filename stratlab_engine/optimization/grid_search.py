"""
Adaptive grid/random search optimizer.

Discretizes each parameter axis with an adaptive step, then either walks the
whole grid (small spaces) or samples it randomly with a fixed budget (large
spaces). Optionally stops as soon as a candidate clears a rendement
threshold.
"""
import math
from typing import Iterator, Mapping, Optional

import numpy as np

from stratlab_engine.core.bars import BarSeries
from stratlab_engine.core.params import StrategyFamily, StrategyParams
from stratlab_engine.optimization.base import Optimizer, SearchDriver
from stratlab_engine.optimization.results import (
    MODE_EMPTY,
    MODE_GRID,
    MODE_RANDOM,
    OptimizationResult,
)
from stratlab_engine.optimization.search_space import Axis, SearchSpace
from stratlab_engine.utils.logging_config import get_optimization_logger

logger = get_optimization_logger('GRID')


def resolve_seed(seed: Optional[int]) -> int:
    """Return ``seed`` or a fresh entropy-derived one."""
    if seed is not None:
        return int(seed)
    return int(np.random.SeedSequence().entropy)


class AdaptiveSearchOptimizer(Optimizer):
    """
    Grid search for small spaces, bounded random search for large ones.

    If the coarsened grid has more than ``settings.random_search_threshold``
    combinations, the optimizer draws the family's random budget of samples
    (with replacement) instead of enumerating. With
    ``settings.early_stopping`` on, the search ends right after the running
    best rendement exceeds ``settings.early_stop_threshold``; the result
    records that it stopped early. That policy returns the first acceptable
    candidate in iteration order, not necessarily the best one.

    Example:
        >>> optimizer = AdaptiveSearchOptimizer(
        ...     risk_model=RiskModel(initial_capital=10000),
        ...     settings=OptimizerSettings(early_stopping=True),
        ... )
        >>> result = optimizer.search(series, StrategyFamily.SMA_CROSSOVER, seed=7)
        >>> print(result.best_params.tunable(), result.objective_value)
    """

    def search(
        self,
        series: BarSeries,
        family: StrategyFamily,
        ranges: Optional[Mapping[str, Axis]] = None,
        seed: Optional[int] = None,
    ) -> OptimizationResult:
        """
        Run the adaptive search.

        Args:
            series: Bars to optimize on
            family: Strategy family
            ranges: Optional per-axis overrides of the family defaults
            seed: Seed for random sampling; generated and logged when None

        Returns:
            OptimizationResult with best params, every trial and the seed
        """
        space = SearchSpace.for_family(family, ranges)
        total = space.valid_combination_count
        seed = resolve_seed(seed)

        if total == 0:
            logger.warning(
                f"{space.family.value}: no valid parameter combinations, returning sentinel params"
            )
            return self._sentinel_result(space, seed)

        use_random = total > self.settings.random_search_threshold
        if use_random:
            budget = space.random_budget(self.settings.max_random_tests)
            rng = np.random.default_rng(seed)
            candidates = self._build(space, space.iter_random(rng, budget))
            mode = MODE_RANDOM
            logger.info(
                f"{space.family.value}: random search, {budget} samples from "
                f"{total} combinations (seed={seed})"
            )
        else:
            candidates = self._build(space, space.iter_grid())
            mode = MODE_GRID
            logger.info(
                f"{space.family.value}: grid search over {total} combinations (seed={seed})"
            )

        driver = SearchDriver(
            evaluate=lambda params: self.evaluate_parameters(series, params),
            should_stop=self._stop_predicate(),
        )
        trials, best, stopped_early = driver.run(candidates)

        if best is None:
            logger.warning(
                f"{space.family.value}: no candidate satisfied the space constraint, "
                f"returning sentinel params"
            )
            return self._sentinel_result(space, seed)

        best_params = best.params.with_performance(best.objective)
        logger.info(
            f"{space.family.value}: best rendement={best.objective:.4f} with "
            f"{best_params.tunable()} after {len(trials)} evaluations"
            + (" (stopped early)" if stopped_early else "")
        )

        return OptimizationResult(
            family=space.family,
            best_params=best_params,
            best_result=best.result,
            trials=trials,
            total_combinations=total,
            mode=mode,
            seed=seed,
            stopped_early=stopped_early,
        )

    @staticmethod
    def _build(space: SearchSpace, values: Iterator[dict]) -> Iterator[StrategyParams]:
        for candidate in values:
            yield space.build(candidate)

    @staticmethod
    def _sentinel_result(space: SearchSpace, seed: int) -> OptimizationResult:
        return OptimizationResult(
            family=space.family,
            best_params=space.minimum_params().with_performance(-math.inf),
            best_result=None,
            trials=[],
            total_combinations=space.valid_combination_count,
            mode=MODE_EMPTY,
            seed=seed,
        )
