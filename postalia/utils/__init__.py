"""Utility modules for Postalia.

- **errors** -- Domain exception hierarchy rooted at PostaliaError.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from postalia.utils.errors import (
    ConfigurationError,
    PostaliaError,
)
from postalia.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "PostaliaError",
    "configure_logging",
    "get_logger",
]
