"""
Settings and logging configuration.

Settings are read from ANALYTICS_* environment variables; DEBUG_MODE=true
turns on debug logging.
"""
import logging
import os
from typing import Optional

from pydantic import BaseModel, Field

from .cache_utils import DEFAULT_CACHE_DIR


class AnalyticsSettings(BaseModel):
    view_id: str = Field("", description="Google Analytics view ID")
    service_account_credentials_json: Optional[str] = Field(
        None, description="Path to the service account credentials JSON file"
    )
    cache_lifetime_in_minutes: int = Field(60 * 24, ge=0, description="0 disables caching")
    cache_dir: str = DEFAULT_CACHE_DIR
    cache_size_limit: int = 500 * 1024 * 1024  # 500MB
    cache_prefix: str = ""

    @classmethod
    def from_env(cls, **overrides) -> "AnalyticsSettings":
        values = {
            "view_id": os.environ.get("ANALYTICS_VIEW_ID", ""),
            "service_account_credentials_json": os.environ.get("ANALYTICS_CREDENTIALS_JSON") or None,
            "cache_lifetime_in_minutes": int(os.environ.get("ANALYTICS_CACHE_LIFETIME_IN_MINUTES", 60 * 24)),
            "cache_dir": os.environ.get("ANALYTICS_CACHE_DIR", DEFAULT_CACHE_DIR),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def configure_logging(debug: Optional[bool] = None) -> None:
    if debug is None:
        debug = os.environ.get("DEBUG_MODE", "false").lower() == "true"
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
