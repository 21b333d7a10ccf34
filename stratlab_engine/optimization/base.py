"""
Base class for parameter optimizers.

Provides the common interface, candidate evaluation and the search driver
that every concrete optimizer iterates. The driver consumes a lazily
generated candidate stream and stops on an explicit predicate, which keeps
"what to search" apart from "when to stop".
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Mapping, Optional, TYPE_CHECKING

from stratlab_engine.core.bars import BarSeries
from stratlab_engine.core.params import StrategyFamily, StrategyParams
from stratlab_engine.core.results import RiskModel, RiskResult
from stratlab_engine.optimization.results import OptimizationResult, Trial
from stratlab_engine.optimization.search_space import Axis
from stratlab_engine.performance.scoring import Scorer, swing_trade_score
from stratlab_engine.portfolio.simulator import simulate
from stratlab_engine.strategies.registry import create_strategy
from stratlab_engine.utils.logging_config import setup_logger

if TYPE_CHECKING:
    from stratlab_engine.utils.config import Config

logger = setup_logger('OPTIMIZATION')


@dataclass(frozen=True)
class OptimizerSettings:
    """
    Search policy knobs.

    Attributes:
        random_search_threshold: Grids larger than this are sampled randomly
        max_random_tests: Default random sample budget
        early_stopping: Stop as soon as the running best exceeds the threshold
        early_stop_threshold: Rendement that ends an early-stopping search
    """

    random_search_threshold: int = 250
    max_random_tests: int = 80
    early_stopping: bool = False
    early_stop_threshold: float = 0.30

    def __post_init__(self):
        if self.random_search_threshold < 0:
            raise ValueError(
                f"random_search_threshold must be non-negative, got {self.random_search_threshold}"
            )
        if self.max_random_tests < 1:
            raise ValueError(
                f"max_random_tests must be positive, got {self.max_random_tests}"
            )

    @classmethod
    def from_config(cls, config: Optional['Config'] = None) -> 'OptimizerSettings':
        if config is None:
            from stratlab_engine.utils.config import get_config
            config = get_config()
        return cls(
            random_search_threshold=config.random_search_threshold,
            max_random_tests=config.max_random_tests,
            early_stopping=config.early_stopping,
            early_stop_threshold=config.early_stop_threshold,
        )


@dataclass
class SearchDriver:
    """
    Evaluate candidates in order until exhausted or the stop predicate fires.

    "Better" means strictly greater rendement, so the first-seen candidate
    wins ties.

    Attributes:
        evaluate: Maps params to metrics
        should_stop: Called with the running best after every evaluation
    """

    evaluate: Callable[[StrategyParams], RiskResult]
    should_stop: Callable[[Trial], bool] = field(default=lambda best: False)

    def run(self, candidates: Iterable[StrategyParams]):
        """
        Returns:
            (trials, best_trial or None, stopped_early)
        """
        trials: List[Trial] = []
        best: Optional[Trial] = None

        for params in candidates:
            trial = Trial(params, self.evaluate(params))
            trials.append(trial)
            if best is None or trial.objective > best.objective:
                best = trial
            if self.should_stop(best):
                return trials, best, True

        return trials, best, False


class Optimizer(ABC):
    """
    Abstract base class for all optimization strategies.

    Handles parameter evaluation by simulating the family's strategy under
    a fixed risk model. Concrete optimizers decide which candidates to try.

    Attributes:
        risk_model: Risk model every candidate is simulated with
        settings: Search policy
        scorer: Score function stored on each RiskResult

    Example:
        class MyOptimizer(Optimizer):
            def search(self, series, family, ranges=None, seed=None):
                ...
    """

    def __init__(
        self,
        risk_model: Optional[RiskModel] = None,
        settings: Optional[OptimizerSettings] = None,
        scorer: Scorer = swing_trade_score,
    ):
        self.risk_model = risk_model or RiskModel()
        self.settings = settings or OptimizerSettings()
        self.scorer = scorer

        logger.debug(
            f"Initialized {self.__class__.__name__}: threshold="
            f"{self.settings.random_search_threshold}, early_stopping="
            f"{self.settings.early_stopping}"
        )

    @abstractmethod
    def search(
        self,
        series: BarSeries,
        family: StrategyFamily,
        ranges: Optional[Mapping[str, Axis]] = None,
        seed: Optional[int] = None,
    ) -> OptimizationResult:
        """
        Search a family's parameter space on a series.

        Args:
            series: Bars to optimize on
            family: Strategy family
            ranges: Optional per-axis overrides of the family defaults
            seed: Seed for random sampling (generated and logged when None)

        Returns:
            OptimizationResult
        """
        raise NotImplementedError("Subclasses must implement search()")

    def optimize(
        self,
        series: BarSeries,
        family: StrategyFamily,
        ranges: Optional[Mapping[str, Axis]] = None,
        seed: Optional[int] = None,
    ) -> StrategyParams:
        """
        Best params for a family, with performance set to the best rendement.

        Callers must check ``params.is_sentinel``: an empty space yields the
        range-minimum params with performance = -inf.
        """
        return self.search(series, family, ranges=ranges, seed=seed).best_params

    def evaluate_parameters(self, series: BarSeries, params: StrategyParams) -> RiskResult:
        """
        Simulate one candidate.

        Raises:
            Exception: Simulation failures are logged and re-raised
        """
        try:
            result = simulate(series, create_strategy(params), self.risk_model, self.scorer)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"Evaluated {params.tunable()}: rendement={result.rendement:.4f}")
            return result
        except Exception as e:
            logger.error(
                f"Failed to evaluate parameters {params.tunable()}: {e}",
                exc_info=True,
            )
            raise

    def _stop_predicate(self) -> Callable[[Trial], bool]:
        if not self.settings.early_stopping:
            return lambda best: False
        threshold = self.settings.early_stop_threshold
        return lambda best: best.objective > threshold
