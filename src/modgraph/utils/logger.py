"""Logging for modgraph.

Library modules log through ``get_logger`` children of the ``modgraph``
logger; only the command line installs handlers, via ``setup_logger``.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

from ..errors import ConfigError


ROOT_LOGGER = "modgraph"

PLAIN_FORMAT = "[%(levelname)s] %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_level(level: Union[str, int]) -> int:
    """Numeric level for a name like ``"debug"``; raises ConfigError otherwise."""
    if isinstance(level, int):
        return level
    name = str(level).strip().upper()
    if name not in LEVELS:
        raise ConfigError(f"logging.level must be one of {LEVELS}, got {level!r}")
    return getattr(logging, name)


def setup_logger(
    level: Union[str, int] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    rich_output: Optional[bool] = None
) -> logging.Logger:
    """Install console (and optional file) handlers on the package logger.

    Args:
        level: Log level name or number
        log_file: Optional file that receives every record at ``level``
        rich_output: Rich console formatting; by default only when stderr
            is a terminal, so piped JSON runs get plain lines

    Returns:
        The ``modgraph`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(parse_level(level))
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if rich_output is None:
        rich_output = sys.stderr.isatty()

    if rich_output:
        console_handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            markup=False
        )
        console_handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the package logger, e.g. ``modgraph.resolver``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


# Silent until the command line configures output
logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())
