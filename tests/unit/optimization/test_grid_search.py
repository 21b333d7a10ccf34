"""
Unit tests for AdaptiveSearchOptimizer and SearchDriver.
"""
import math
from dataclasses import replace

import pytest

from stratlab_engine.core.params import BreakoutParams, StrategyFamily
from stratlab_engine.core.results import RiskResult
from stratlab_engine.optimization.base import OptimizerSettings, SearchDriver
from stratlab_engine.optimization.grid_search import AdaptiveSearchOptimizer, resolve_seed
from stratlab_engine.optimization.results import MODE_EMPTY, MODE_GRID, MODE_RANDOM
from stratlab_engine.optimization.search_space import ParamChoices, ParamRange

BREAKOUT_5_TO_9 = {'lookback': ParamRange(5, 9, 1, adaptive=False)}


def result_with(rendement):
    return replace(RiskResult.empty(), rendement=rendement)


class TestModeSelection:
    """Grid for small spaces, random for large ones."""

    def test_small_space_uses_full_grid(self, wave_series, settings):
        """SMA defaults (88 combinations) are enumerated exhaustively."""
        optimizer = AdaptiveSearchOptimizer(settings=settings)

        result = optimizer.search(wave_series, StrategyFamily.SMA_CROSSOVER, seed=1)

        assert result.mode == MODE_GRID
        assert result.n_evaluated == 88
        assert result.total_combinations == 88
        assert result.found
        assert result.best_params.performance == pytest.approx(result.best_result.rendement)

    def test_large_space_uses_random_budget(self, wave_series):
        """Above the threshold the family budget is sampled."""
        settings = OptimizerSettings(random_search_threshold=10, max_random_tests=5)
        optimizer = AdaptiveSearchOptimizer(settings=settings)

        result = optimizer.search(wave_series, StrategyFamily.MACD, seed=3)

        assert result.mode == MODE_RANDOM
        assert result.n_evaluated == 5
        assert result.seed == 3

    def test_mode_decision_counts_valid_candidates(self, wave_series):
        """Candidates rejected by the constraint do not push a space into random mode."""
        settings = OptimizerSettings(random_search_threshold=5, max_random_tests=80)
        optimizer = AdaptiveSearchOptimizer(settings=settings)
        ranges = {
            'trend_period': ParamRange(20, 20),
            'short_ma_period': ParamRange(10, 14),
            'long_ma_period': ParamRange(10, 14),
            'breakout_threshold_pct': ParamRange(0.005, 0.005),
            'use_rsi_filter': ParamChoices([False]),
        }

        # 9 raw grid points, 3 with short < long
        result = optimizer.search(
            wave_series, StrategyFamily.IMPROVED_TREND_FOLLOWING, ranges, seed=1
        )

        assert result.mode == MODE_GRID
        assert result.n_evaluated == 3
        assert result.total_combinations == 3

    def test_random_search_is_reproducible(self, wave_series):
        """The same seed evaluates the same candidates."""
        settings = OptimizerSettings(random_search_threshold=10, max_random_tests=5)
        optimizer = AdaptiveSearchOptimizer(settings=settings)

        first = optimizer.search(wave_series, StrategyFamily.MACD, seed=11)
        second = optimizer.search(wave_series, StrategyFamily.MACD, seed=11)

        assert [t.params for t in first.trials] == [t.params for t in second.trials]
        assert first.best_params == second.best_params

    def test_missing_seed_is_generated_and_recorded(self, wave_series, settings):
        """Without a seed one is generated and kept on the result."""
        optimizer = AdaptiveSearchOptimizer(settings=settings)

        result = optimizer.search(wave_series, StrategyFamily.BREAKOUT)

        assert isinstance(result.seed, int)

    def test_best_is_max_rendement(self, wave_series, settings):
        """The reported best has the highest rendement of all trials."""
        optimizer = AdaptiveSearchOptimizer(settings=settings)

        result = optimizer.search(wave_series, StrategyFamily.BREAKOUT, seed=0)

        assert result.objective_value == max(t.objective for t in result.trials)


class TestSentinel:
    """Empty or fully rejected spaces return the sentinel params."""

    def test_empty_range(self, wave_series, settings):
        """An inverted range yields the sentinel."""
        optimizer = AdaptiveSearchOptimizer(settings=settings)

        result = optimizer.search(
            wave_series, StrategyFamily.BREAKOUT, {'lookback': ParamRange(10, 5)}, seed=0
        )

        assert result.mode == MODE_EMPTY
        assert result.best_result is None
        assert result.n_evaluated == 0
        assert result.best_params.is_sentinel
        assert result.best_params.lookback == 10
        assert not result.found

    def test_all_candidates_rejected(self, wave_series, settings):
        """A space whose every candidate violates the constraint yields the sentinel."""
        optimizer = AdaptiveSearchOptimizer(settings=settings)

        params = optimizer.optimize(
            wave_series,
            StrategyFamily.IMPROVED_TREND_FOLLOWING,
            {'short_ma_period': ParamRange(20, 24), 'long_ma_period': ParamRange(10, 14)},
            seed=0,
        )

        assert params.performance == -math.inf
        assert params.short_ma_period == 20
        assert params.long_ma_period == 10


class TestEarlyStopping:
    """Tests for the opt-in early stop."""

    def test_stops_after_threshold_exceeded(self, wave_series, mocker):
        """The search ends right after the running best clears the threshold."""
        settings = OptimizerSettings(early_stopping=True, early_stop_threshold=0.30)
        optimizer = AdaptiveSearchOptimizer(settings=settings)
        mocker.patch.object(
            optimizer,
            'evaluate_parameters',
            side_effect=[result_with(r) for r in (0.1, 0.35, 0.5, 0.2, 0.0)],
        )

        result = optimizer.search(wave_series, StrategyFamily.BREAKOUT, BREAKOUT_5_TO_9, seed=0)

        assert result.stopped_early
        assert result.n_evaluated == 2
        assert result.best_params == BreakoutParams(lookback=6)
        assert result.objective_value == pytest.approx(0.35)

    def test_disabled_by_default(self, wave_series, mocker):
        """Without early stopping every candidate is evaluated."""
        optimizer = AdaptiveSearchOptimizer()
        mocker.patch.object(
            optimizer,
            'evaluate_parameters',
            side_effect=[result_with(r) for r in (0.1, 0.35, 0.5, 0.2, 0.0)],
        )

        result = optimizer.search(wave_series, StrategyFamily.BREAKOUT, BREAKOUT_5_TO_9, seed=0)

        assert not result.stopped_early
        assert result.n_evaluated == 5
        assert result.best_params == BreakoutParams(lookback=7)

    def test_threshold_must_be_exceeded(self, wave_series, mocker):
        """Reaching the threshold exactly does not stop."""
        settings = OptimizerSettings(early_stopping=True, early_stop_threshold=0.30)
        optimizer = AdaptiveSearchOptimizer(settings=settings)
        mocker.patch.object(
            optimizer,
            'evaluate_parameters',
            side_effect=[result_with(0.30)] * 5,
        )

        result = optimizer.search(wave_series, StrategyFamily.BREAKOUT, BREAKOUT_5_TO_9, seed=0)

        assert not result.stopped_early
        assert result.n_evaluated == 5


class TestTies:
    """First-seen candidate wins ties."""

    def test_first_candidate_kept_on_tie(self, wave_series, mocker):
        """Equal rendement never replaces the current best."""
        optimizer = AdaptiveSearchOptimizer()
        mocker.patch.object(
            optimizer,
            'evaluate_parameters',
            side_effect=[result_with(0.2)] * 5,
        )

        params = optimizer.optimize(wave_series, StrategyFamily.BREAKOUT, BREAKOUT_5_TO_9, seed=0)

        assert params == BreakoutParams(lookback=5)
        assert params.performance == pytest.approx(0.2)


class TestSearchDriver:
    """Tests for the candidate driver."""

    def test_empty_candidates(self):
        """No candidates, no best."""
        trials, best, stopped = SearchDriver(evaluate=lambda p: result_with(0.0)).run([])

        assert trials == []
        assert best is None
        assert not stopped

    def test_stop_predicate_sees_running_best(self):
        """The predicate is called with the best trial so far."""
        seen = []
        values = iter([0.1, 0.05, 0.2])

        def should_stop(best):
            seen.append(best.objective)
            return False

        driver = SearchDriver(evaluate=lambda p: result_with(next(values)), should_stop=should_stop)
        driver.run([BreakoutParams(5), BreakoutParams(6), BreakoutParams(7)])

        assert seen == [0.1, 0.1, 0.2]


class TestEvaluateParameters:
    """Tests for error propagation."""

    def test_simulation_errors_propagate(self, wave_series, mocker):
        """A failing simulation is logged and re-raised."""
        mocker.patch(
            'stratlab_engine.optimization.base.simulate',
            side_effect=RuntimeError("boom"),
        )
        optimizer = AdaptiveSearchOptimizer()

        with pytest.raises(RuntimeError, match="boom"):
            optimizer.evaluate_parameters(wave_series, BreakoutParams(lookback=10))

    def test_debug_record_skipped_above_debug(self, wave_series, mocker):
        """No per-candidate debug record is built when DEBUG is off."""
        optimizer = AdaptiveSearchOptimizer()
        logger = mocker.patch('stratlab_engine.optimization.base.logger')
        logger.isEnabledFor.return_value = False

        optimizer.evaluate_parameters(wave_series, BreakoutParams(lookback=10))

        logger.debug.assert_not_called()

    def test_debug_record_emitted_at_debug(self, wave_series, mocker):
        """With DEBUG on, each evaluation is logged with its rendement."""
        optimizer = AdaptiveSearchOptimizer()
        logger = mocker.patch('stratlab_engine.optimization.base.logger')
        logger.isEnabledFor.return_value = True

        result = optimizer.evaluate_parameters(wave_series, BreakoutParams(lookback=10))

        logger.debug.assert_called_once()
        assert f"rendement={result.rendement:.4f}" in logger.debug.call_args[0][0]


class TestResolveSeed:
    """Tests for seed resolution."""

    def test_explicit_seed_kept(self):
        """A given seed is returned unchanged."""
        assert resolve_seed(42) == 42

    def test_generated_seeds_differ(self):
        """Fresh seeds come from OS entropy."""
        assert resolve_seed(None) != resolve_seed(None)
