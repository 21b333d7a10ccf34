"""
Unit tests for parameter axes and search spaces.
"""
import numpy as np
import pytest

from stratlab_engine.core.params import (
    ImprovedTrendFollowingParams,
    SmaCrossoverParams,
    StrategyFamily,
)
from stratlab_engine.optimization.search_space import ParamChoices, ParamRange, SearchSpace


class TestParamRange:
    """Tests for adaptive step discretization."""

    def test_default_step_narrow_span(self):
        """Spans up to 20 use step 2."""
        axis = ParamRange(5, 15)

        assert axis.effective_step == 2
        assert axis.values == [5, 7, 9, 11, 13, 15]

    def test_default_step_wide_span(self):
        """Spans above 20 use step 4."""
        axis = ParamRange(10, 50)

        assert axis.effective_step == 4
        assert axis.count == 11
        assert axis.values[-1] == 50

    def test_explicit_step_doubles_on_wide_span(self):
        """A base step doubles when the span exceeds 20 steps."""
        assert ParamRange(0, 100, 2).effective_step == 4
        assert ParamRange(0, 40, 2).effective_step == 2

    def test_non_adaptive_uses_exact_step(self):
        """adaptive=False keeps the given step."""
        axis = ParamRange(10, 50, 1, adaptive=False)

        assert axis.effective_step == 1
        assert axis.count == 41

    def test_values_never_exceed_maximum(self):
        """The last value stays at or below the maximum."""
        axis = ParamRange(5, 50)

        assert max(axis.values) <= 50
        assert axis.values[-1] == 49

    def test_float_values_are_rounded(self):
        """Float axes do not accumulate representation error."""
        axis = ParamRange(0.001, 0.01, 0.002)

        assert axis.values == [0.001, 0.003, 0.005, 0.007, 0.009]
        assert not axis.is_integer

    def test_single_value_range(self):
        """min == max gives one value."""
        assert ParamRange(14, 14).values == [14]

    def test_inverted_range_is_empty(self):
        """max < min has no values."""
        assert ParamRange(10, 5).count == 0

    def test_rejects_non_positive_step(self):
        """Step must be positive."""
        with pytest.raises(ValueError, match="step must be positive"):
            ParamRange(1, 10, 0)


class TestParamChoices:
    """Tests for explicit value axes."""

    def test_choices(self):
        """Choices enumerate in order."""
        axis = ParamChoices([True, False])

        assert axis.count == 2
        assert axis.values == [True, False]
        assert axis.minimum is True

    def test_rejects_empty(self):
        """At least one choice is required."""
        with pytest.raises(ValueError):
            ParamChoices([])


class TestSearchSpace:
    """Tests for family spaces."""

    @pytest.mark.parametrize(
        'family,expected',
        [
            (StrategyFamily.SMA_CROSSOVER, 88),
            (StrategyFamily.RSI, 150),
            (StrategyFamily.MACD, 120),
            (StrategyFamily.BREAKOUT, 12),
            (StrategyFamily.MEAN_REVERSION, 99),
            (StrategyFamily.TREND_FOLLOWING, 41),
            (StrategyFamily.IMPROVED_TREND_FOLLOWING, 3960),
        ],
    )
    def test_default_combination_counts(self, family, expected):
        """Default spaces have the expected coarsened sizes."""
        assert SearchSpace.for_family(family).combination_count == expected

    def test_grid_order_is_product_order(self):
        """The last axis varies fastest."""
        space = SearchSpace.for_family(
            StrategyFamily.SMA_CROSSOVER,
            {'short_period': ParamRange(5, 7), 'long_period': ParamRange(10, 12)},
        )

        grid = list(space.iter_grid())

        assert grid == [
            {'short_period': 5, 'long_period': 10},
            {'short_period': 5, 'long_period': 12},
            {'short_period': 7, 'long_period': 10},
            {'short_period': 7, 'long_period': 12},
        ]

    def test_valid_count_applies_constraint(self):
        """Only candidates with short < long count as valid."""
        improved = SearchSpace.for_family(StrategyFamily.IMPROVED_TREND_FOLLOWING)
        sma = SearchSpace.for_family(StrategyFamily.SMA_CROSSOVER)

        assert improved.combination_count == 3960
        assert improved.valid_combination_count == 3850
        assert sma.valid_combination_count == sma.combination_count

    def test_overrides_keep_other_defaults(self):
        """Overriding one axis leaves the others at their defaults."""
        space = SearchSpace.for_family(
            StrategyFamily.SMA_CROSSOVER, {'short_period': ParamRange(5, 5)}
        )

        assert space.combination_count == 11

    def test_unknown_override_raises(self):
        """Overrides must name real axes."""
        with pytest.raises(ValueError, match="Unknown parameters"):
            SearchSpace.for_family(StrategyFamily.RSI, {'lookback': ParamRange(1, 2)})

    def test_constraint_filters_grid(self):
        """Improved trend following requires short < long."""
        space = SearchSpace.for_family(
            StrategyFamily.IMPROVED_TREND_FOLLOWING,
            {
                'trend_period': ParamRange(20, 20),
                'short_ma_period': ParamRange(10, 14),
                'long_ma_period': ParamRange(10, 14),
                'breakout_threshold_pct': ParamRange(0.005, 0.005),
                'use_rsi_filter': ParamChoices([False]),
            },
        )

        grid = list(space.iter_grid())

        assert space.combination_count == 9
        assert len(grid) == 3
        assert space.valid_combination_count == 3
        assert all(c['short_ma_period'] < c['long_ma_period'] for c in grid)

    def test_build_and_minimum_params(self):
        """Candidates become typed params; minimum uses every axis minimum."""
        space = SearchSpace.for_family(StrategyFamily.SMA_CROSSOVER)

        assert space.build({'short_period': 7, 'long_period': 30}) == SmaCrossoverParams(7, 30)
        assert space.minimum_params() == SmaCrossoverParams(5, 10)

    def test_improved_minimum_params(self):
        """Choice axes contribute their first value to the minimum."""
        params = SearchSpace.for_family(StrategyFamily.IMPROVED_TREND_FOLLOWING).minimum_params()

        assert isinstance(params, ImprovedTrendFollowingParams)
        assert params.use_rsi_filter is True
        assert params.rsi_period == 14


class TestRandomSampling:
    """Tests for seeded random draws."""

    def test_same_seed_same_samples(self):
        """A seeded generator reproduces its draws."""
        space = SearchSpace.for_family(StrategyFamily.MACD)

        first = list(space.iter_random(np.random.default_rng(7), 20))
        second = list(space.iter_random(np.random.default_rng(7), 20))

        assert first == second
        assert len(first) == 20

    def test_samples_lie_on_grid(self):
        """Random draws are grid points."""
        space = SearchSpace.for_family(StrategyFamily.MACD)
        grid = list(space.iter_grid())

        for sample in space.iter_random(np.random.default_rng(1), 30):
            assert sample in grid

    def test_invalid_draws_consume_budget(self):
        """Constraint violations are dropped but still counted."""
        space = SearchSpace.for_family(
            StrategyFamily.IMPROVED_TREND_FOLLOWING,
            {'short_ma_period': ParamRange(20, 24), 'long_ma_period': ParamRange(10, 14)},
        )

        assert list(space.iter_random(np.random.default_rng(0), 50)) == []

    def test_empty_space_yields_nothing(self):
        """Nothing is drawn from an empty space."""
        space = SearchSpace.for_family(StrategyFamily.BREAKOUT, {'lookback': ParamRange(10, 5)})

        assert list(space.iter_random(np.random.default_rng(0), 10)) == []


class TestRandomBudget:
    """Tests for per-family random budgets."""

    def test_fixed_budgets(self):
        """SMA and breakout have fixed budgets."""
        assert SearchSpace.for_family(StrategyFamily.SMA_CROSSOVER).random_budget(80) == 100
        assert SearchSpace.for_family(StrategyFamily.BREAKOUT).random_budget(80) == 50

    def test_default_budget(self):
        """Other families use the default budget."""
        assert SearchSpace.for_family(StrategyFamily.MACD).random_budget(80) == 80

    def test_proportional_budget(self):
        """Improved trend following samples a quarter of a large space."""
        space = SearchSpace.for_family(StrategyFamily.IMPROVED_TREND_FOLLOWING)

        # 3850 of the 3960 grid points satisfy short < long
        assert space.random_budget(80) == 962
        # Not more than ten times the default: default budget applies
        assert space.random_budget(500) == 500
