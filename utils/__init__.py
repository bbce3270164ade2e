"""
Utilities module for the News Trending Service.
"""
from .logger import logger, init_logging, setup_logging

__all__ = ["logger", "init_logging", "setup_logging"]
