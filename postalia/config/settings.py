"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from TWO sources (in priority order):
#
#   1. **Environment variables** (e.g., GEONAMES_USERNAME=demo)
#      (highest priority, always wins)
#   2. **.env file**: key=value lines in the project root .env file
#
# The mapping is automatic: field name `geonames_username` maps to env var
# `GEONAMES_USERNAME`.  Defaults apply when neither source sets a field.
#
# Provider credentials default to "" meaning "not configured".  What that
# means depends on the adapter: GeoNames raises ConfigurationError, a
# template provider with no template is simply disabled.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Postalia application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # === Rate limiting ===
    rate_limit_window_ms: int = 60000
    rate_limit_max: int = 200

    # === Cache ===
    # 0 = entries never expire and no sweep runs.
    cache_ttl_seconds: int = Field(default=600, ge=0)
    # 0 = derive from TTL (20% of it, at least one second).
    cache_check_period_seconds: int = Field(default=0, ge=0)

    # === Provider fallback ===
    providers_order: str = "geonames"
    # Overall budget for one fallback chain; 0 disables the deadline.
    lookup_deadline_seconds: float = 20.0

    # === Providers ===
    geonames_username: str = ""
    postalcodesapp_template: str = ""
    postalcodesapp_key: str = ""
    zipcodestack_template: str = ""
    zipcodestack_key: str = ""
    zipbase_template: str = ""
    zipbase_key: str = ""
    zipapi_template: str = ""
    zipapi_key: str = ""
    openplz_template: str = ""

    # === App Config ===
    app_host: str = "0.0.0.0"
    port: int = 3000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_provider_order(self) -> list[str]:
        """Return the configured fallback order, trimmed, blanks removed.

        Duplicates are kept on purpose: a repeated identifier is simply
        tried again.
        """
        return [p.strip() for p in self.providers_order.split(",") if p.strip()]

    def get_cache_check_period(self) -> int:
        """Return the cache sweep interval in seconds; 0 when nothing expires."""
        if self.cache_ttl_seconds == 0:
            return 0
        if self.cache_check_period_seconds > 0:
            return self.cache_check_period_seconds
        return max(1, round(self.cache_ttl_seconds * 0.2))

    def get_setting(self, env_name: str) -> str:
        """Look up a string setting by its environment variable name.

        Returns "" for empty names and unknown settings.
        """
        if not env_name:
            return ""
        value = getattr(self, env_name.lower(), "")
        return value if isinstance(value, str) else str(value)
