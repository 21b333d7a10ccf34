"""
Configuration management for the Strategy Lab engine.

Loads configuration from environment variables and YAML files. Environment
variables always win over YAML values, which win over hard defaults.
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional
import yaml
from dotenv import load_dotenv

from stratlab_engine.utils.logging_config import setup_logger

logger = setup_logger('CONFIG', level=logging.INFO, log_to_console=False)


class Config:
    """
    Application configuration manager.

    Loads settings from:
    1. .env file (environment variables)
    2. config/config.yaml (application config)
    3. Environment variables (override everything)

    Example:
        config = Config()
        capital = config.initial_capital
        threshold = config.get_int('RANDOM_SEARCH_THRESHOLD', default=250)
    """

    def __init__(self, env_file: str = '.env', config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            env_file: Path to .env file
            config_file: Path to config YAML file (defaults to config/config.yaml)
        """
        load_dotenv(env_file)

        if config_file is None:
            config_file = 'config/config.yaml'

        self._config = self._load_yaml(config_file)

    def _load_yaml(self, config_file: str) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        config_path = Path(config_file)

        if not config_path.exists():
            example_path = Path(f"{config_file}.example")
            if example_path.exists():
                logger.warning(
                    f"{config_file} not found, using {config_file}.example. "
                    f"Copy it to {config_file} and customize."
                )
                config_path = example_path
            else:
                logger.info(f"No config file found at {config_file}, using defaults")
                return {}

        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Checks in order:
        1. Environment variable
        2. YAML config (nested keys with dot notation)
        3. Default value

        Args:
            key: Configuration key
            default: Default value if not found

        Returns:
            Configuration value
        """
        env_value = os.getenv(key)
        if env_value is not None:
            return env_value

        value = self._config
        for part in key.split('.'):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value if value is not self._config else default

    def get_float(self, key: str, default: float = 0.0) -> float:
        """Get configuration value as float."""
        value = self.get(key)
        if value is None:
            return default
        return float(value)

    def get_int(self, key: str, default: int = 0) -> int:
        """Get configuration value as integer."""
        value = self.get(key)
        if value is None:
            return default
        return int(value)

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get configuration value as boolean."""
        value = self.get(key)
        if value is None:
            return default

        if isinstance(value, bool):
            return value

        if isinstance(value, str):
            return value.lower() in ('true', '1', 'yes', 'on')

        return bool(value)

    def _layered_float(self, env_key: str, yaml_key: str, default: float) -> float:
        return self.get_float(env_key, default=self.get_float(yaml_key, default))

    def _layered_int(self, env_key: str, yaml_key: str, default: int) -> int:
        return self.get_int(env_key, default=self.get_int(yaml_key, default))

    def _layered_bool(self, env_key: str, yaml_key: str, default: bool) -> bool:
        return self.get_bool(env_key, default=self.get_bool(yaml_key, default))

    # Risk model defaults

    @property
    def initial_capital(self) -> float:
        """Starting capital for every simulation."""
        return self._layered_float(
            'INITIAL_CAPITAL', 'backtesting.risk.initial_capital', 10000.0
        )

    @property
    def risk_per_trade(self) -> float:
        """Fraction of current capital committed to each trade."""
        return self._layered_float(
            'RISK_PER_TRADE', 'backtesting.risk.risk_per_trade', 0.15
        )

    @property
    def stop_loss_pct(self) -> float:
        return self._layered_float(
            'STOP_LOSS_PCT', 'backtesting.risk.stop_loss_pct', 0.05
        )

    @property
    def take_profit_pct(self) -> float:
        return self._layered_float(
            'TAKE_PROFIT_PCT', 'backtesting.risk.take_profit_pct', 0.10
        )

    # Optimizer defaults

    @property
    def random_search_threshold(self) -> int:
        """Combination count above which random search replaces the grid."""
        return self._layered_int(
            'RANDOM_SEARCH_THRESHOLD', 'optimization.random_search_threshold', 250
        )

    @property
    def max_random_tests(self) -> int:
        return self._layered_int(
            'MAX_RANDOM_TESTS', 'optimization.max_random_tests', 80
        )

    @property
    def early_stopping(self) -> bool:
        return self._layered_bool(
            'EARLY_STOPPING', 'optimization.early_stopping', False
        )

    @property
    def early_stop_threshold(self) -> float:
        return self._layered_float(
            'EARLY_STOP_THRESHOLD', 'optimization.early_stop_threshold', 0.30
        )

    @property
    def holdout_fraction(self) -> float:
        """Trailing share of a series kept out of cross-search optimization."""
        return self._layered_float(
            'HOLDOUT_FRACTION', 'optimization.holdout_fraction', 0.3
        )

    @property
    def log_level(self) -> str:
        """Get log level."""
        return self.get('LOG_LEVEL', self.get('logging.level', 'INFO'))


_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get global configuration instance.

    Creates singleton Config instance on first call.

    Example:
        from stratlab_engine.utils.config import get_config

        config = get_config()
        threshold = config.random_search_threshold
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config():
    """Reload configuration (useful for testing)."""
    global _config
    _config = Config()
