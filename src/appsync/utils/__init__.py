"""Configuration and logging helpers."""

from appsync.utils.config import Config
from appsync.utils.logging_setup import setup_logging

__all__ = ["Config", "setup_logging"]
