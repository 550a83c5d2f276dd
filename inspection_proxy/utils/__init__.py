"""Utility modules for configuration, logging, images and error handling."""

from .config import Config, load_config
from .logger import get_logger

__all__ = [
    "Config",
    "load_config",
    "get_logger",
]
