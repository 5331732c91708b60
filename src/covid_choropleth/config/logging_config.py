"""
COVID-19 Choropleth - Logging Configuration

Output goes through a single stdout handler on the root logger. Package loggers
only carry a level and propagate their records to it.
"""

import logging
import sys

from .constants import LOG_FORMAT, LOG_LEVEL

PACKAGE_LOGGER_PREFIX = "covid_choropleth"

QUIET_LOGGERS = ("urllib3", "requests", "plotly", "asyncio")


def _to_level(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def get_logger(name: str, level: str = LOG_LEVEL) -> logging.Logger:
    """
    Logger for a package module.

    Args:
        name: Logger name, normally the module's ``__name__``
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger without handlers of its own
    """
    logger = logging.getLogger(name)
    if logger.level == logging.NOTSET:
        logger.setLevel(_to_level(level))
    return logger


def configure_logging(level: str = LOG_LEVEL, format_string: str = LOG_FORMAT, stream=None) -> None:
    """
    Install the root stdout handler and quiet chatty third-party loggers.

    Args:
        level: Root logging level
        format_string: Log message format
        stream: Output stream (defaults to stdout)
    """
    logging.basicConfig(
        level=_to_level(level),
        format=format_string,
        stream=stream or sys.stdout,
        force=True,
    )

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def set_log_level(level: str) -> None:
    """Change the level of every covid_choropleth logger."""
    numeric_level = _to_level(level)

    for name in list(logging.root.manager.loggerDict):
        if isinstance(name, str) and name.startswith(PACKAGE_LOGGER_PREFIX):
            logging.getLogger(name).setLevel(numeric_level)


configure_logging()
