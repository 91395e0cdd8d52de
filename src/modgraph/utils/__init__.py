"""Configuration and logging helpers."""

from .config import Config, config
from .logger import setup_logger, get_logger

__all__ = ["Config", "config", "setup_logger", "get_logger"]
