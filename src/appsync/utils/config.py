"""Configuration management for the AppSync client."""

import os
import tempfile
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

_NEVER_EXPIRES = ("none", "never", "")


def parse_cache_expiry(value: str) -> Optional[timedelta]:
    """Parse a cache expiry in hours; 'none' or 'never' disables expiry."""
    if value.strip().lower() in _NEVER_EXPIRES:
        return None
    return timedelta(hours=float(value))


class Config:
    """Central configuration for the AppSync client."""

    # Cache database location
    CACHE_DIR = Path(os.getenv("APPSYNC_CACHE_DIR", tempfile.gettempdir()))

    # Cache settings
    CACHE_EXPIRY = parse_cache_expiry(os.getenv("APPSYNC_CACHE_EXPIRY_HOURS", "24"))

    # Pagination
    PAGE_SIZE = int(os.getenv("APPSYNC_PAGE_SIZE", "100"))

    LOG_LEVEL = os.getenv("APPSYNC_LOG_LEVEL", "INFO")

    @classmethod
    def get_summary(cls) -> dict[str, Any]:
        """Get configuration summary for debugging."""
        return {
            "cache_dir": str(cls.CACHE_DIR),
            "cache_expiry_hours": (
                cls.CACHE_EXPIRY.total_seconds() / 3600 if cls.CACHE_EXPIRY is not None else None
            ),
            "page_size": cls.PAGE_SIZE,
            "log_level": cls.LOG_LEVEL,
        }
