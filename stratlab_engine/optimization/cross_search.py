"""
Entry/exit cross search.

Optimizes every strategy family independently, then tries every pairing of
one family's entry rule with another family's exit rule (a family may pair
with itself) and keeps the pairing with the highest rendement.

Cost is one optimization per family plus F x F simulations.

Example:
    from stratlab_engine.optimization.cross_search import CrossSearch

    search = CrossSearch(AdaptiveSearchOptimizer())
    best = search.best_pairing(series, seed=42)
    if best is not None:
        print(best.entry_name, best.exit_name, best.result.rendement)
"""
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, TYPE_CHECKING

from stratlab_engine.core.bars import BarSeries
from stratlab_engine.core.params import StrategyFamily, StrategyParams
from stratlab_engine.core.results import BestInOutStrategy, FamilyRanking, RiskResult
from stratlab_engine.core.strategy_base import CombinedStrategy
from stratlab_engine.optimization.base import Optimizer
from stratlab_engine.optimization.grid_search import AdaptiveSearchOptimizer, resolve_seed
from stratlab_engine.optimization.parallel import ParallelExecutor, spawn_seeds
from stratlab_engine.optimization.search_space import Axis
from stratlab_engine.portfolio.simulator import simulate
from stratlab_engine.strategies.registry import create_strategy
from stratlab_engine.utils.logging_config import get_optimization_logger

if TYPE_CHECKING:
    from stratlab_engine.utils.config import Config

logger = get_optimization_logger('CROSS')

StabilityFilter = Callable[[RiskResult, Sequence[StrategyParams]], bool]
FamilyRanges = Mapping[StrategyFamily, Mapping[str, Axis]]

_FamilyTask = Tuple[Optimizer, BarSeries, StrategyFamily, Optional[Mapping[str, Axis]], int]


def _optimize_family(task: _FamilyTask) -> StrategyParams:
    optimizer, series, family, ranges, seed = task
    return optimizer.optimize(series, family, ranges=ranges, seed=seed)


class CrossSearch:
    """
    Best entry/exit family pairing for one series.

    Attributes:
        optimizer: Optimizer used per family; its risk model and scorer are
            also used to evaluate pairings
        families: Families taking part, in pairing order
        stability_filter: Optional predicate a pairing must pass to qualify
        n_jobs: Worker processes for the per-family optimizations
        holdout_fraction: Default trailing share of bars reserved for
            judging pairings (None evaluates on the full series)
    """

    def __init__(
        self,
        optimizer: Optional[Optimizer] = None,
        families: Optional[Sequence[StrategyFamily]] = None,
        stability_filter: Optional[StabilityFilter] = None,
        n_jobs: int = 1,
        holdout_fraction: Optional[float] = None,
    ):
        self.optimizer = optimizer or AdaptiveSearchOptimizer()
        self.families: List[StrategyFamily] = [
            StrategyFamily(f) for f in (families or list(StrategyFamily))
        ]
        self.stability_filter = stability_filter
        self.n_jobs = n_jobs
        self.holdout_fraction = holdout_fraction

    @classmethod
    def from_config(
        cls,
        optimizer: Optional[Optimizer] = None,
        config: Optional['Config'] = None,
        **kwargs: Any,
    ) -> 'CrossSearch':
        """Build a CrossSearch whose default holdout comes from HOLDOUT_FRACTION."""
        if config is None:
            from stratlab_engine.utils.config import get_config
            config = get_config()
        return cls(optimizer, holdout_fraction=config.holdout_fraction, **kwargs)

    def rank_families(
        self,
        series: BarSeries,
        family_ranges: Optional[FamilyRanges] = None,
        seed: Optional[int] = None,
    ) -> FamilyRanking:
        """
        Optimize every family on ``series``.

        Each family gets its own seed spawned from ``seed``.

        Returns:
            FamilyRanking with one params record per family (possibly sentinel)
        """
        family_ranges = family_ranges or {}
        seed = resolve_seed(seed)
        child_seeds = spawn_seeds(seed, len(self.families))

        logger.info(
            f"Optimizing {len(self.families)} families on {len(series)} bars "
            f"(seed={seed})"
        )

        tasks = [
            (self.optimizer, series, family, family_ranges.get(family), child_seed)
            for family, child_seed in zip(self.families, child_seeds)
        ]
        executor = ParallelExecutor(n_jobs=self.n_jobs, show_progress=False)
        best = executor.map(_optimize_family, tasks, task_description="Families")

        params: Dict[StrategyFamily, StrategyParams] = dict(zip(self.families, best))
        return FamilyRanking(params=params, symbol=series.symbol)

    def best_pairing(
        self,
        series: BarSeries,
        family_ranges: Optional[FamilyRanges] = None,
        seed: Optional[int] = None,
        holdout_fraction: Optional[float] = None,
    ) -> Optional[BestInOutStrategy]:
        """
        Find the best (entry family, exit family) pairing.

        ``holdout_fraction`` defaults to the instance setting. Without one,
        families are optimized and pairings are evaluated on the full series.
        With it, families are optimized on the leading
        ``1 - holdout_fraction`` of the bars and pairings are judged on the
        trailing part only.

        Args:
            series: Bars to search on
            family_ranges: Optional per-family axis overrides
            seed: Root seed for the per-family searches
            holdout_fraction: Trailing share of bars reserved for evaluation
                (overrides the instance default)

        Returns:
            BestInOutStrategy, or None when no pairing qualifies

        Raises:
            ValueError: If holdout_fraction is outside (0, 1) or leaves one
                side of the split empty
        """
        if holdout_fraction is None:
            holdout_fraction = self.holdout_fraction
        opt_series, eval_series = self._split(series, holdout_fraction)
        ranking = self.rank_families(opt_series, family_ranges, seed)

        valid = ranking.valid_families()
        for family in self.families:
            if family not in valid:
                logger.warning(f"Skipping {family.value}: optimization produced no params")

        best: Optional[Tuple[StrategyParams, StrategyParams, RiskResult]] = None
        evaluated = 0
        for entry_family in valid:
            entry_params = ranking.params[entry_family]
            for exit_family in valid:
                exit_params = ranking.params[exit_family]
                combined = CombinedStrategy(
                    create_strategy(entry_params), create_strategy(exit_params)
                )
                result = simulate(
                    eval_series, combined, self.optimizer.risk_model, self.optimizer.scorer
                )
                evaluated += 1

                if self.stability_filter is not None and not self.stability_filter(
                    result, (entry_params, exit_params)
                ):
                    logger.debug(f"{combined.name} rejected by stability filter")
                    continue

                if best is None or result.rendement > best[2].rendement:
                    best = (entry_params, exit_params, result)

        if best is None:
            logger.warning(f"No qualifying pairing among {evaluated} evaluated")
            return None

        entry_params, exit_params, result = best
        logger.info(
            f"Best pairing: {entry_params.family.display_name} / "
            f"{exit_params.family.display_name}, rendement={result.rendement:.4f} "
            f"({evaluated} pairings on {len(eval_series)} bars)"
        )
        return BestInOutStrategy(
            entry_name=entry_params.family.display_name,
            entry_params=entry_params,
            exit_name=exit_params.family.display_name,
            exit_params=exit_params,
            result=result,
            risk_model=self.optimizer.risk_model,
            bar_count=len(eval_series),
            symbol=series.symbol,
        )

    @staticmethod
    def _split(
        series: BarSeries, holdout_fraction: Optional[float]
    ) -> Tuple[BarSeries, BarSeries]:
        if holdout_fraction is None:
            return series, series
        if not 0 < holdout_fraction < 1:
            raise ValueError(
                f"holdout_fraction must be in (0, 1), got {holdout_fraction}"
            )
        n = len(series)
        split = int(round(n * (1 - holdout_fraction)))
        if split <= 0 or split >= n:
            raise ValueError(
                f"holdout_fraction {holdout_fraction} leaves an empty split "
                f"for {n} bars"
            )
        return series.sub_series(0, split), series.sub_series(split, n)
