"""
Global pytest fixtures for the Strategy Lab test suite.

Provides shared bar series, risk models and optimizer settings.
"""
import pytest

from stratlab_engine.core.results import RiskModel
from stratlab_engine.optimization.base import OptimizerSettings
from tests.fixtures.sample_data import (
    create_flat_series,
    create_linear_series,
    create_wave_series,
)


@pytest.fixture
def linear_series():
    """100 bars rising linearly from 100 to 200."""
    return create_linear_series(100, 100.0, 200.0)


@pytest.fixture
def flat_series():
    """50 bars at a constant price of 100."""
    return create_flat_series(50, 100.0)


@pytest.fixture
def wave_series():
    """200 oscillating bars that trigger most strategy families."""
    return create_wave_series(200)


@pytest.fixture
def risk_model():
    """Default risk model: 10k capital, 15% per trade, 5% stop, 10% target."""
    return RiskModel()


@pytest.fixture
def settings():
    """Optimizer settings with early stopping off."""
    return OptimizerSettings(random_search_threshold=250, max_random_tests=80)
