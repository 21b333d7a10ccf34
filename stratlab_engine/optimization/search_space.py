"""
Parameter search spaces.

A SearchSpace is a set of named axes for one strategy family. Each axis is
either a ParamRange (numeric, discretized with an adaptive step) or a
ParamChoices (explicit values). Spaces enumerate their coarsened grid lazily
with itertools.product, or draw random candidates from it with a numpy
Generator.

Example:
    space = SearchSpace.for_family(StrategyFamily.SMA_CROSSOVER)
    space.combination_count      # 8 * 11 = 88
    next(space.iter_grid())      # {'short_period': 5, 'long_period': 10}
"""
import itertools
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from stratlab_engine.core.params import PARAMS_BY_FAMILY, StrategyFamily, StrategyParams

WIDE_SPAN = 20
NARROW_INT_STEP = 2
WIDE_INT_STEP = 4


@dataclass(frozen=True)
class ParamRange:
    """
    Numeric axis from ``minimum`` to ``maximum`` (inclusive).

    Without an explicit step the step is 4 when the span exceeds 20, else 2.
    With a base step ``s`` the step doubles to ``2s`` when the span exceeds
    ``20s``. Set ``adaptive=False`` to use ``step`` exactly.

    Attributes:
        minimum: Lowest value
        maximum: Highest value (values never exceed it)
        step: Optional base step
        adaptive: Whether wide spans coarsen the step
    """

    minimum: Union[int, float]
    maximum: Union[int, float]
    step: Optional[Union[int, float]] = None
    adaptive: bool = True

    def __post_init__(self):
        if self.step is not None and self.step <= 0:
            raise ValueError(f"step must be positive, got {self.step}")

    @property
    def span(self) -> float:
        return self.maximum - self.minimum

    @property
    def effective_step(self) -> Union[int, float]:
        if self.step is None:
            return WIDE_INT_STEP if self.span > WIDE_SPAN else NARROW_INT_STEP
        if self.adaptive and self.span > WIDE_SPAN * self.step:
            return self.step * 2
        return self.step

    @property
    def is_integer(self) -> bool:
        return all(
            isinstance(v, int) and not isinstance(v, bool)
            for v in (self.minimum, self.maximum, self.effective_step)
        )

    @property
    def count(self) -> int:
        if self.maximum < self.minimum:
            return 0
        return int(math.floor(self.span / self.effective_step + 1e-9)) + 1

    def value_at(self, index: int) -> Union[int, float]:
        value = self.minimum + index * self.effective_step
        if self.is_integer:
            return int(value)
        return round(float(value), 10)

    @property
    def values(self) -> List[Union[int, float]]:
        return [self.value_at(i) for i in range(self.count)]


@dataclass(frozen=True)
class ParamChoices:
    """Axis over an explicit, non-empty list of values (e.g. booleans)."""

    choices: Tuple[Any, ...]

    def __init__(self, choices: Sequence[Any]):
        choices = tuple(choices)
        if not choices:
            raise ValueError("ParamChoices requires at least one value")
        object.__setattr__(self, 'choices', choices)

    @property
    def minimum(self) -> Any:
        return self.choices[0]

    @property
    def count(self) -> int:
        return len(self.choices)

    def value_at(self, index: int) -> Any:
        return self.choices[index]

    @property
    def values(self) -> List[Any]:
        return list(self.choices)


Axis = Union[ParamRange, ParamChoices]
Constraint = Callable[[Mapping[str, Any]], bool]


def _short_below_long(values: Mapping[str, Any]) -> bool:
    return values['short_ma_period'] < values['long_ma_period']


DEFAULT_RANGES: Dict[StrategyFamily, Dict[str, Axis]] = {
    StrategyFamily.IMPROVED_TREND_FOLLOWING: {
        'trend_period': ParamRange(10, 30),
        'short_ma_period': ParamRange(5, 15),
        'long_ma_period': ParamRange(15, 25),
        'breakout_threshold_pct': ParamRange(0.001, 0.01, 0.002),
        'use_rsi_filter': ParamChoices([True, False]),
        'rsi_period': ParamRange(14, 14),
    },
    StrategyFamily.SMA_CROSSOVER: {
        'short_period': ParamRange(5, 20),
        'long_period': ParamRange(10, 50),
    },
    StrategyFamily.RSI: {
        'period': ParamRange(10, 20),
        'oversold': ParamRange(20, 40, 5),
        'overbought': ParamRange(60, 80, 5),
    },
    StrategyFamily.BREAKOUT: {
        'lookback': ParamRange(5, 50),
    },
    StrategyFamily.MACD: {
        'short_period': ParamRange(8, 16),
        'long_period': ParamRange(20, 30),
        'signal_period': ParamRange(6, 12),
    },
    StrategyFamily.MEAN_REVERSION: {
        'sma_period': ParamRange(10, 30),
        'threshold': ParamRange(1.0, 5.0, 0.5),
    },
    StrategyFamily.TREND_FOLLOWING: {
        'period': ParamRange(10, 50, 1, adaptive=False),
    },
}

FAMILY_CONSTRAINTS: Dict[StrategyFamily, Constraint] = {
    StrategyFamily.IMPROVED_TREND_FOLLOWING: _short_below_long,
}

# Random-search sample budgets; None means "proportional to the space size"
RANDOM_BUDGETS: Dict[StrategyFamily, Optional[int]] = {
    StrategyFamily.SMA_CROSSOVER: 100,
    StrategyFamily.BREAKOUT: 50,
    StrategyFamily.IMPROVED_TREND_FOLLOWING: None,
}


class SearchSpace:
    """
    Named axes for one strategy family plus an optional validity constraint.

    Attributes:
        family: Strategy family the candidates belong to
        axes: Ordered mapping of parameter name to axis
        constraint: Predicate a candidate must satisfy to be evaluated
    """

    def __init__(
        self,
        family: StrategyFamily,
        axes: Mapping[str, Axis],
        constraint: Optional[Constraint] = None,
    ):
        self.family = StrategyFamily(family)
        self.axes: Dict[str, Axis] = dict(axes)
        self.constraint = constraint

    @classmethod
    def for_family(
        cls,
        family: StrategyFamily,
        ranges: Optional[Mapping[str, Axis]] = None,
    ) -> 'SearchSpace':
        """
        Build a family's space, overriding default axes with ``ranges``.

        Args:
            family: Strategy family
            ranges: Optional per-axis overrides; unknown names raise

        Raises:
            ValueError: If ``ranges`` names an axis the family does not have
        """
        family = StrategyFamily(family)
        axes = dict(DEFAULT_RANGES[family])
        if ranges:
            unknown = set(ranges) - set(axes)
            if unknown:
                raise ValueError(
                    f"Unknown parameters for {family.value}: {sorted(unknown)}"
                )
            axes.update(ranges)
        return cls(family, axes, FAMILY_CONSTRAINTS.get(family))

    @property
    def param_names(self) -> List[str]:
        return list(self.axes)

    @property
    def combination_count(self) -> int:
        """Product of axis counts, before any constraint filtering."""
        count = 1
        for axis in self.axes.values():
            count *= axis.count
        return count

    @property
    def valid_combination_count(self) -> int:
        """Number of grid candidates that satisfy the constraint."""
        if self.constraint is None:
            return self.combination_count
        return sum(1 for _ in self.iter_grid())

    def is_valid(self, values: Mapping[str, Any]) -> bool:
        return self.constraint is None or self.constraint(values)

    def iter_grid(self) -> Iterator[Dict[str, Any]]:
        """Yield every valid grid candidate in itertools.product order."""
        names = self.param_names
        for combo in itertools.product(*(axis.values for axis in self.axes.values())):
            values = dict(zip(names, combo))
            if self.is_valid(values):
                yield values

    def iter_random(self, rng: np.random.Generator, n_samples: int) -> Iterator[Dict[str, Any]]:
        """
        Draw ``n_samples`` grid points with replacement.

        Draws that violate the constraint use up budget but are not yielded.
        Nothing is drawn from an empty space.
        """
        if self.combination_count == 0:
            return
        names = self.param_names
        axes = list(self.axes.values())
        for _ in range(n_samples):
            values = {
                name: axis.value_at(int(rng.integers(axis.count)))
                for name, axis in zip(names, axes)
            }
            if self.is_valid(values):
                yield values

    def build(self, values: Mapping[str, Any]) -> StrategyParams:
        return PARAMS_BY_FAMILY[self.family](**values)

    def minimum_params(self) -> StrategyParams:
        """Params at every axis minimum (used for the sentinel result)."""
        return self.build({name: axis.minimum for name, axis in self.axes.items()})

    def random_budget(self, default_budget: int) -> int:
        """
        Number of random draws for this family.

        Families without a fixed budget sample a quarter of a space larger
        than ten times the default budget, and never more than the space.
        The space size counts only candidates that satisfy the constraint.
        """
        if self.family in RANDOM_BUDGETS:
            budget = RANDOM_BUDGETS[self.family]
            if budget is not None:
                return budget
            total = self.valid_combination_count
            scaled = total // 4 if total > 10 * default_budget else default_budget
            return min(total, max(default_budget, scaled))
        return default_budget

    def __repr__(self) -> str:
        return (
            f"SearchSpace({self.family.value}, {len(self.axes)} axes, "
            f"{self.combination_count} combinations)"
        )
