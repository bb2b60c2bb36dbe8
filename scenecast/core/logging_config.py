"""Structured logging configuration."""

import sys
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message} | {extra}"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Configure console logging and, optionally, a rotating log file.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path to log file
        rotation: Log rotation size
        retention: Log retention period
    """
    logger.remove()

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=log_level, colorize=True)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level=log_level,
            rotation=rotation,
            retention=retention,
            compression="zip",
        )


def get_logger(name: str, **context: Any) -> Any:
    """
    Get a logger bound to a module name and optional context.

    Args:
        name: Logger name (typically __name__)
        **context: Extra fields such as session_id or scene_id

    Returns:
        Logger instance with bound context
    """
    return logger.bind(name=name, **context)


setup_logging()
