"""
Logging configuration for the Strategy Lab engine.

Provides module-based loggers with timestamps and consistent formatting.
Every logger writes to one shared session file: stratlab_log_<datetime>.log
"""
import logging
import logging.handlers
from pathlib import Path
from datetime import datetime
from typing import Optional

_SHARED_LOG_FILE: Optional[Path] = None

LOG_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _get_shared_log_file() -> Path:
    """
    Get or create the shared log file path.

    The file is named once per session:
    stratlab_log_YYYY-MM-DD_HHMMSS.log

    Returns:
        Path to shared log file
    """
    global _SHARED_LOG_FILE

    if _SHARED_LOG_FILE is None:
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)

        timestamp = datetime.now().strftime('%Y-%m-%d_%H%M%S')
        _SHARED_LOG_FILE = log_dir / f"stratlab_log_{timestamp}.log"

    return _SHARED_LOG_FILE


def _configured_level() -> int:
    """Resolve LOG_LEVEL from configuration, falling back to INFO."""
    from stratlab_engine.utils.config import get_config

    level = getattr(logging, str(get_config().log_level).upper(), None)
    return level if isinstance(level, int) else logging.INFO


def setup_logger(
    name: str, level: Optional[int] = None, log_to_console: bool = True
) -> logging.Logger:
    """
    Setup a logger with file and optional console handlers.

    Format: "YYYY-MM-DD HH:MM:SS | MODULE.NAME | LEVEL | Message"

    Args:
        name: Logger name (e.g., 'OPTIMIZATION.GRID', 'SIMULATOR')
        level: Logging level (logging.DEBUG, INFO, ...). Defaults to the
            configured LOG_LEVEL.
        log_to_console: Whether to also output to console

    Returns:
        Configured Logger instance

    Example:
        logger = setup_logger('OPTIMIZATION.GRID', level=logging.DEBUG)
        logger.info("Grid search over 120 combinations")
        # 2026-10-18 14:30:22 | OPTIMIZATION.GRID | INFO | Grid search over ...
    """
    if level is None:
        level = _configured_level()

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    file_handler = logging.handlers.RotatingFileHandler(
        _get_shared_log_file(),
        maxBytes=50 * 1024 * 1024,
        backupCount=10,
    )
    file_handler.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get existing logger or create new one with default settings.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logger(name)
    return logger


def get_optimization_logger(component: str) -> logging.Logger:
    """Get logger for an optimization component (GRID, CROSS, WALKFORWARD...)."""
    return get_logger(f'OPTIMIZATION.{component.upper()}')


def get_simulator_logger() -> logging.Logger:
    """Get logger for the risk simulator."""
    return get_logger('SIMULATOR')
