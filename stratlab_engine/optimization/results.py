"""
Optimization result records and tabular exports.

OptimizationResult keeps every evaluated candidate in evaluation order so
callers can rank, plot or audit a search after the fact.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from stratlab_engine.core.params import StrategyFamily, StrategyParams
from stratlab_engine.core.results import RiskResult, WindowResult

MODE_GRID = 'grid'
MODE_RANDOM = 'random'
MODE_EMPTY = 'empty'


@dataclass(frozen=True)
class Trial:
    """One evaluated candidate."""

    params: StrategyParams
    result: RiskResult

    @property
    def objective(self) -> float:
        return self.result.rendement


@dataclass
class OptimizationResult:
    """
    Outcome of one optimizer search.

    Attributes:
        family: Family searched
        best_params: Best params with performance = best rendement, or the
            range-minimum params with performance = -inf when nothing ran
        best_result: Metrics of the best candidate (None when nothing ran)
        trials: Every evaluated candidate in evaluation order
        total_combinations: Size of the coarsened grid
        mode: 'grid', 'random' or 'empty'
        seed: Seed the random generator was built from
        stopped_early: Whether the early-stop threshold ended the search
    """

    family: StrategyFamily
    best_params: StrategyParams
    best_result: Optional[RiskResult]
    trials: List[Trial] = field(default_factory=list)
    total_combinations: int = 0
    mode: str = MODE_GRID
    seed: Optional[int] = None
    stopped_early: bool = False

    @property
    def n_evaluated(self) -> int:
        return len(self.trials)

    @property
    def objective_value(self) -> float:
        return self.best_params.performance

    def get_top_n_results(self, n: int = 10) -> List[Trial]:
        """
        Get top N trials by rendement (ties keep evaluation order).

        Raises:
            ValueError: If nothing was evaluated
        """
        if not self.trials:
            raise ValueError("No trials available for this search")
        return sorted(self.trials, key=lambda t: t.objective, reverse=True)[:n]

    def get_heatmap_data(self, param_x: str, param_y: str) -> Dict[str, Any]:
        """
        Get data for creating a 2D heatmap of rendement.

        When several trials share an (x, y) cell, the best one is kept.

        Args:
            param_x: Parameter name for x-axis
            param_y: Parameter name for y-axis

        Returns:
            Dictionary with x_values, y_values, z_values and axis labels

        Raises:
            ValueError: If parameters are unknown or no trials exist
        """
        if not self.trials:
            raise ValueError("No trials available for this search")

        names = self.trials[0].params.tunable()
        for name in (param_x, param_y):
            if name not in names:
                raise ValueError(f"Parameter '{name}' not in search space")

        x_values = sorted({t.params.tunable()[param_x] for t in self.trials})
        y_values = sorted({t.params.tunable()[param_y] for t in self.trials})
        z_values: List[List[Optional[float]]] = [[None for _ in x_values] for _ in y_values]

        for trial in self.trials:
            tunable = trial.params.tunable()
            x_idx = x_values.index(tunable[param_x])
            y_idx = y_values.index(tunable[param_y])
            current = z_values[y_idx][x_idx]
            if current is None or trial.objective > current:
                z_values[y_idx][x_idx] = trial.objective

        return {
            'x_values': x_values,
            'y_values': y_values,
            'z_values': z_values,
            'x_label': param_x,
            'y_label': param_y,
            'z_label': 'rendement',
        }

    def to_frame(self) -> pd.DataFrame:
        """One row per trial: tunable params followed by metrics."""
        rows = []
        for trial in self.trials:
            row = dict(trial.params.tunable())
            row.update(trial.result.to_dict())
            rows.append(row)
        return pd.DataFrame(rows)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'family': self.family.value,
            'parameters': self.best_params.tunable(),
            'objective_value': self.objective_value,
            'best_result': self.best_result.to_dict() if self.best_result else None,
            'n_evaluated': self.n_evaluated,
            'total_combinations': self.total_combinations,
            'mode': self.mode,
            'seed': self.seed,
            'stopped_early': self.stopped_early,
        }

    @property
    def found(self) -> bool:
        return not math.isinf(self.best_params.performance)


def window_results_to_frame(results: Sequence[WindowResult]) -> pd.DataFrame:
    """
    Flatten window results into a DataFrame, one row per window.

    Params are expanded into ``param_<name>`` columns.
    """
    rows = []
    for window in results:
        row = window.to_dict()
        params = row.pop('params')
        for name, value in params.items():
            row[f'param_{name}'] = value
        rows.append(row)
    return pd.DataFrame(rows)
