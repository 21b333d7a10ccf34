"""
Unit tests for layered configuration.
"""
import pytest
import yaml

from stratlab_engine.core.results import RiskModel
from stratlab_engine.optimization.base import OptimizerSettings
from stratlab_engine.utils.config import Config

ENV_KEYS = [
    'INITIAL_CAPITAL',
    'RISK_PER_TRADE',
    'STOP_LOSS_PCT',
    'TAKE_PROFIT_PCT',
    'RANDOM_SEARCH_THRESHOLD',
    'MAX_RANDOM_TESTS',
    'EARLY_STOPPING',
    'EARLY_STOP_THRESHOLD',
    'HOLDOUT_FRACTION',
    'LOG_LEVEL',
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the host environment out of every test."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def make_config(tmp_path):
    """Build a Config from a YAML mapping written to a temp file."""
    def _make(data=None):
        config_file = tmp_path / 'config.yaml'
        if data is not None:
            config_file.write_text(yaml.safe_dump(data))
        return Config(env_file=str(tmp_path / '.env'), config_file=str(config_file))

    return _make


class TestDefaults:
    """Tests for hard defaults."""

    def test_defaults_without_files(self, make_config):
        """No YAML and no env gives the built-in defaults."""
        config = make_config()

        assert config.initial_capital == 10000.0
        assert config.risk_per_trade == 0.15
        assert config.stop_loss_pct == 0.05
        assert config.take_profit_pct == 0.10
        assert config.random_search_threshold == 250
        assert config.max_random_tests == 80
        assert config.early_stopping is False
        assert config.early_stop_threshold == 0.30
        assert config.holdout_fraction == 0.3
        assert config.log_level == 'INFO'

    def test_example_file_fallback(self, tmp_path):
        """A missing config file falls back to its .example copy."""
        example = tmp_path / 'config.yaml.example'
        example.write_text(yaml.safe_dump({'optimization': {'max_random_tests': 12}}))

        config = Config(env_file=str(tmp_path / '.env'), config_file=str(tmp_path / 'config.yaml'))

        assert config.max_random_tests == 12


class TestLayering:
    """Environment beats YAML beats defaults."""

    def test_yaml_values(self, make_config):
        """Nested YAML keys are read with dot notation."""
        config = make_config(
            {
                'backtesting': {'risk': {'initial_capital': 50000, 'stop_loss_pct': 0.02}},
                'optimization': {'early_stopping': True, 'random_search_threshold': 100},
            }
        )

        assert config.initial_capital == 50000.0
        assert config.stop_loss_pct == 0.02
        assert config.early_stopping is True
        assert config.random_search_threshold == 100
        assert config.get('backtesting.risk.initial_capital') == 50000

    def test_env_overrides_yaml(self, make_config, monkeypatch):
        """Environment variables win over YAML values."""
        monkeypatch.setenv('INITIAL_CAPITAL', '25000')
        monkeypatch.setenv('EARLY_STOPPING', 'yes')
        config = make_config({'backtesting': {'risk': {'initial_capital': 50000}}})

        assert config.initial_capital == 25000.0
        assert config.early_stopping is True

    def test_missing_nested_key_gives_default(self, make_config):
        """Unknown dotted keys fall back to the default."""
        config = make_config({'optimization': {}})

        assert config.get('optimization.nope', 'fallback') == 'fallback'
        assert config.get_int('optimization.nope', 5) == 5


class TestFromConfig:
    """Records built from configuration."""

    def test_risk_model_from_config(self, make_config, monkeypatch):
        """RiskModel.from_config reads the layered values."""
        monkeypatch.setenv('RISK_PER_TRADE', '0.5')
        config = make_config({'backtesting': {'risk': {'take_profit_pct': 0.2}}})

        model = RiskModel.from_config(config)

        assert model == RiskModel(
            initial_capital=10000.0,
            risk_per_trade=0.5,
            stop_loss_pct=0.05,
            take_profit_pct=0.2,
        )

    def test_settings_from_config(self, make_config):
        """OptimizerSettings.from_config reads the optimization section."""
        config = make_config({'optimization': {'max_random_tests': 40, 'early_stopping': True}})

        settings = OptimizerSettings.from_config(config)

        assert settings.max_random_tests == 40
        assert settings.early_stopping is True
        assert settings.random_search_threshold == 250
