"""
Logging setup for grid sweeps.

Sweeps log to the console and to a rotating sweep log under the configured
logs directory. The level comes from config.log_level unless the caller (the
CLI's --log-level) overrides it; re-running setup on a configured logger only
changes its level.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Union

from .config import config
from .exceptions import ConfigurationError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
SWEEP_LOG_FILE = "cusum_sweep.log"


def resolve_level(level: Optional[str] = None) -> int:
    """
    Translate a level name into its numeric value.

    Args:
        level: Level name such as "debug" or "WARNING"; None uses config.log_level

    Raises:
        ConfigurationError: If the name is not a standard logging level
    """
    name = (level if level is not None else config.log_level).strip().upper()
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ConfigurationError(f"Unknown log level: {name!r}")
    return value


def setup_logging(
    logger_name: str = "src",
    level: Optional[str] = None,
    logs_dir: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Attach console and sweep-log handlers to a logger.

    Args:
        logger_name: Logger to configure; "src" covers every module logger
        level: Level override; defaults to config.log_level
        logs_dir: Directory for the sweep log; defaults to config.logs_dir

    Returns:
        The configured logger
    """
    resolved = resolve_level(level)
    logger = logging.getLogger(logger_name)
    logger.setLevel(resolved)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(resolved)
        return logger

    directory = Path(logs_dir) if logs_dir is not None else config.logs_dir
    directory.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    file_handler = logging.handlers.RotatingFileHandler(
        directory / SWEEP_LOG_FILE,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    for handler in (console_handler, file_handler):
        handler.setLevel(resolved)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Logging %s at %s to %s", logger_name, logging.getLevelName(resolved), directory / SWEEP_LOG_FILE)
    return logger
