"""Configuration module: exports Settings and load_config."""

from postalia.config.loader import load_config
from postalia.config.settings import Settings

__all__ = ["Settings", "load_config"]
