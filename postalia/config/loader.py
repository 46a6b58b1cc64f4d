"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  : Static defaults checked into the repo
#                            (adapter timeouts, CORS origins)
#   2. .env file           : Local developer overrides (not committed)
#   3. Environment vars    : Set at deploy time
#
# _deep_merge does recursive dict merging:
#   base = {"providers": {"timeouts": {"geonames": 5.0}}}
#   overrides = {"providers": {"deadline_seconds": 20.0}}
#   result = {"providers": {"timeouts": {...}, "deadline_seconds": 20.0}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from postalia.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings instance to merge; a fresh one is read when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "providers": {
            "deadline_seconds": settings.lookup_deadline_seconds,
        },
        "cache": {
            "ttl_seconds": settings.cache_ttl_seconds,
            "check_period_seconds": settings.get_cache_check_period(),
        },
        "rate_limit": {
            "window_ms": settings.rate_limit_window_ms,
            "max": settings.rate_limit_max,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
