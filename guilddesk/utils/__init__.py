"""Utility modules for GuildDesk."""

from .config import Config
from .logger import setup_logger
from .lock import SingleInstanceLock

__all__ = ["Config", "setup_logger", "SingleInstanceLock"]
