"""
Logging setup for Scribe.

Thin wrapper over loguru so modules can keep the familiar
``logger = get_logger(__name__)`` pattern.
"""

import sys
from typing import Optional

from loguru import logger as _logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)

_logger.configure(extra={"name": "scribe"})


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure loguru sinks.

    Args:
        level: Minimum level for all sinks (e.g. "DEBUG", "INFO")
        log_file: Optional path for a rotating file sink
    """
    _logger.remove()
    _logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)
    if log_file:
        _logger.add(
            log_file,
            level=level.upper(),
            format=LOG_FORMAT,
            rotation="10 MB",
            retention=3,
            encoding="utf-8",
        )


def get_logger(name: str):
    """Return a logger bound to the given module name."""
    return _logger.bind(name=name)
