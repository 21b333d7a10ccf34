"""
Unit tests for the strategy families and the params registry.
"""
import numpy as np
import pytest

from stratlab_engine.core.params import (
    BreakoutParams,
    ImprovedTrendFollowingParams,
    MacdParams,
    MeanReversionParams,
    RsiParams,
    SmaCrossoverParams,
    StrategyFamily,
    TrendFollowingParams,
)
from stratlab_engine.strategies import (
    Breakout,
    ImprovedTrendFollowing,
    MACD_Cross,
    MeanReversion,
    RSI_Reversal,
    SMA_Crossover,
    TrendFollowing,
    create_strategy,
)
from tests.fixtures.sample_data import create_series


ALL_PARAMS = [
    SmaCrossoverParams(short_period=5, long_period=20),
    RsiParams(period=14, oversold=30, overbought=70),
    MacdParams(short_period=12, long_period=26, signal_period=9),
    BreakoutParams(lookback=10),
    MeanReversionParams(sma_period=20, threshold=2.0),
    TrendFollowingParams(period=20),
    ImprovedTrendFollowingParams(
        trend_period=20,
        short_ma_period=5,
        long_ma_period=20,
        breakout_threshold_pct=0.005,
        use_rsi_filter=True,
        rsi_period=14,
    ),
]


class TestRegistry:
    """Tests for create_strategy dispatch."""

    @pytest.mark.parametrize('params', ALL_PARAMS, ids=lambda p: p.family.value)
    def test_round_trip_params(self, params):
        """Every variant builds a strategy that reports the same params."""
        strategy = create_strategy(params)

        assert strategy.params == params
        assert strategy.name == params.family.display_name

    def test_dispatch_types(self):
        """Each variant maps to its own class."""
        expected = [
            SMA_Crossover,
            RSI_Reversal,
            MACD_Cross,
            Breakout,
            MeanReversion,
            TrendFollowing,
            ImprovedTrendFollowing,
        ]
        assert [type(create_strategy(p)) for p in ALL_PARAMS] == expected

    def test_unknown_params_type_raises(self):
        """Unregistered param types are a programming error."""
        with pytest.raises(TypeError, match="No strategy registered"):
            create_strategy({'short_period': 5})


class TestFlatSeries:
    """A constant price never triggers trend, breakout or crossover entries."""

    @pytest.mark.parametrize('params', ALL_PARAMS, ids=lambda p: p.family.value)
    def test_no_entries_on_flat_prices(self, params, flat_series):
        """No entry signal fires anywhere on a flat series."""
        strategy = create_strategy(params)

        mask = strategy.entry_rule(flat_series).mask

        assert not mask.any()


class TestSMACrossover:
    """Tests for SMA crossover rules."""

    def test_entry_on_first_defined_bar_of_uptrend(self, linear_series):
        """On a steady rise the cross fires as soon as the long SMA exists."""
        strategy = SMA_Crossover(short_period=5, long_period=20)

        mask = strategy.entry_rule(linear_series).mask

        assert np.flatnonzero(mask).tolist() == [19]

    def test_exit_on_death_cross(self):
        """Falling after a rise produces a death cross."""
        closes = list(range(100, 130)) + list(range(130, 100, -1))
        strategy = SMA_Crossover(short_period=3, long_period=10)

        mask = strategy.exit_rule(create_series(closes)).mask

        assert mask.sum() == 1
        assert np.flatnonzero(mask)[0] > 30


class TestRSIReversal:
    """Tests for RSI threshold rules."""

    def test_entry_when_oversold(self):
        """A persistent decline drives RSI below the oversold level."""
        closes = list(np.linspace(150, 100, 40))
        strategy = RSI_Reversal(period=14, oversold=30, overbought=70)

        series = create_series(closes)

        assert strategy.entry_rule(series).is_satisfied(39)
        assert not strategy.exit_rule(series).is_satisfied(39)

    def test_exit_when_overbought(self):
        """A persistent rise drives RSI above the overbought level."""
        strategy = RSI_Reversal(period=14, oversold=30, overbought=70)

        series = create_series(list(np.linspace(100, 150, 40)))

        assert strategy.exit_rule(series).is_satisfied(39)


class TestChannelStrategies:
    """Tests for breakout and trend following."""

    def test_breakout_above_previous_high(self):
        """A close above the previous highs is an entry."""
        closes = [100.0] * 10 + [105.0]
        strategy = Breakout(lookback=5)

        mask = strategy.entry_rule(create_series(closes)).mask

        assert np.flatnonzero(mask).tolist() == [10]

    def test_breakdown_below_previous_low(self):
        """A close below the previous lows is an exit."""
        closes = [100.0] * 10 + [95.0]
        strategy = Breakout(lookback=5)

        mask = strategy.exit_rule(create_series(closes)).mask

        assert np.flatnonzero(mask).tolist() == [10]

    def test_trend_following_matches_breakout(self, wave_series):
        """Trend following uses the same channel rule as breakout."""
        breakout = Breakout(lookback=12)
        trend = TrendFollowing(period=12)

        assert (breakout.entry_rule(wave_series).mask == trend.entry_rule(wave_series).mask).all()
        assert (breakout.exit_rule(wave_series).mask == trend.exit_rule(wave_series).mask).all()


class TestMeanReversion:
    """Tests for SMA band rules."""

    def test_entry_below_band(self):
        """A close far below its SMA is an entry."""
        closes = [100.0] * 10 + [90.0]
        strategy = MeanReversion(sma_period=5, threshold=2.0)

        series = create_series(closes)

        assert strategy.entry_rule(series).is_satisfied(10)
        assert not strategy.entry_rule(series).is_satisfied(9)

    def test_exit_above_band(self):
        """A close far above its SMA is an exit."""
        closes = [100.0] * 10 + [110.0]
        strategy = MeanReversion(sma_period=5, threshold=2.0)

        assert strategy.exit_rule(create_series(closes)).is_satisfied(10)


class TestImprovedTrendFollowing:
    """Tests for the improved trend following rules."""

    def test_breakout_entry_in_uptrend(self, linear_series):
        """A steady rise clears the breakout band once both SMAs exist."""
        strategy = ImprovedTrendFollowing(
            short_ma_period=5, long_ma_period=20, breakout_threshold_pct=0.005,
            use_rsi_filter=False,
        )

        mask = strategy.entry_rule(linear_series).mask

        assert mask[19]
        assert not mask[:19].any()

    def test_rsi_filter_blocks_overbought_entries(self, linear_series):
        """A relentless rise has RSI at 100, so the filter blocks every entry."""
        strategy = ImprovedTrendFollowing(
            short_ma_period=5, long_ma_period=20, breakout_threshold_pct=0.005,
            use_rsi_filter=True,
        )

        assert not strategy.entry_rule(linear_series).mask.any()

    def test_exit_on_close_below_short_sma(self):
        """Dropping through the short SMA exits."""
        closes = list(np.linspace(100, 130, 30)) + [120.0]
        strategy = ImprovedTrendFollowing(short_ma_period=5, long_ma_period=20)

        assert strategy.exit_rule(create_series(closes)).is_satisfied(30)

    def test_family_display_name(self):
        """Name comes from the family."""
        assert ImprovedTrendFollowing().name == StrategyFamily.IMPROVED_TREND_FOLLOWING.display_name
