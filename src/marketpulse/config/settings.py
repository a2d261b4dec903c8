# src/marketpulse/config/settings.py
"""
Settings - Pydantic-based Configuration Management

Provides centralized configuration management using Pydantic Settings.
Every tunable of the bot (API keys, cache TTL, schedule, registry backend,
logging) is read from environment variables or the .env file.

Files that USE this module:
- marketpulse.app (composition root reads everything from here)
- marketpulse.adapters.providers.* (API keys, URLs and HTTP timeout)
- marketpulse.adapters.translation.google_script (translate endpoint)
- marketpulse.adapters.serverless.handler (builds the pipeline from settings)

Files that this module USES:
- marketpulse.shared.validators (format checks used by the field validators)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from datetime import time, timedelta  # Schedule time and cache durations
from pathlib import Path  # Object-oriented filesystem paths
from typing import Annotated, List, Optional  # Type hints
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError  # IANA timezone lookup

from pydantic import Field, field_validator  # Data validation and field configuration
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict  # Settings management with Pydantic

from marketpulse.shared.validators import (
    validate_api_key,  # Validate API key format
    validate_bot_token,  # Validate Telegram bot token format
    validate_clock_time,  # Validate HH:MM schedule strings
)

REGISTRY_BACKENDS = ("file", "redis")
LANGUAGES = ("vi", "en")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- Telegram ---
    bot_token: str = Field(..., alias="TELEGRAM_TOKEN")

    # --- Upstream providers ---
    twelve_data_api_key: str = Field(default="", alias="TWELVE_DATA_API_KEY")
    twelve_data_url: str = Field(default="https://api.twelvedata.com/quote", alias="TWELVE_DATA_URL")
    google_script_url: str = Field(default="", alias="GOOGLE_SCRIPT_URL")
    news_feed_url: str = Field(
        default="https://www.investing.com/rss/news_25.rss", alias="NEWS_FEED_URL"
    )

    # --- HTTP Settings ---
    http_timeout_seconds: int = Field(default=10, alias="HTTP_TIMEOUT_SECONDS", ge=1, le=60)

    # --- Report contents ---
    anchor_symbol: str = Field(default="XAU/USD", alias="ANCHOR_SYMBOL")
    quote_symbols: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["XAU/USD", "EUR/USD", "BTC/USD"], alias="QUOTE_SYMBOLS"
    )
    local_rate_symbol: str = Field(default="USD/VND", alias="LOCAL_RATE_SYMBOL")
    news_limit: int = Field(default=7, alias="NEWS_LIMIT", ge=1, le=20)
    default_language: str = Field(default="vi", alias="DEFAULT_LANGUAGE")

    # --- Cache Settings (in hours) ---
    rate_cache_hours: float = Field(default=6.0, alias="RATE_CACHE_HOURS", gt=0, le=168)
    rate_stale_grace_hours: float = Field(default=18.0, alias="RATE_STALE_GRACE_HOURS", ge=0, le=168)

    # --- Broadcasting ---
    send_timeout_seconds: float = Field(default=15.0, alias="SEND_TIMEOUT_SECONDS", gt=0, le=120)
    broadcast_concurrency: int = Field(default=10, alias="BROADCAST_CONCURRENCY", ge=1, le=100)

    # --- Scheduling ---
    broadcast_time: str = Field(default="08:00", alias="BROADCAST_TIME")
    broadcast_interval_minutes: int = Field(default=0, alias="BROADCAST_INTERVAL_MINUTES", ge=0, le=1440)
    timezone: str = Field(default="Asia/Ho_Chi_Minh", alias="TIMEZONE")

    # --- /update throttling ---
    update_command_limit: int = Field(default=5, alias="UPDATE_COMMAND_LIMIT", ge=1)
    update_command_window_seconds: int = Field(default=60, alias="UPDATE_COMMAND_WINDOW_SECONDS", ge=1)

    # --- Subscriber registry ---
    registry_backend: str = Field(default="file", alias="REGISTRY_BACKEND")
    subscribers_file: Path = Field(default=Path("./data/subscribers.json"), alias="SUBSCRIBERS_FILE")
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    redis_key: str = Field(default="marketpulse:subscribers", alias="REDIS_KEY")

    # --- Logging (for server deployment) ---
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_dir: Optional[str] = Field(default=None, alias="LOG_DIR")
    log_stdout: bool = Field(default=True, alias="MARKETPULSE_LOG_STDOUT")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, alias="LOG_MAX_BYTES")  # 10MB
    log_backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    # Computed properties for convenience
    @property
    def rate_cache_ttl(self) -> timedelta:
        return timedelta(hours=self.rate_cache_hours)

    @property
    def rate_stale_grace(self) -> timedelta:
        return timedelta(hours=self.rate_stale_grace_hours)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def daily_broadcast_time(self) -> time:
        """Daily broadcast time as a timezone-aware ``datetime.time``."""
        hours, minutes = (int(part) for part in self.broadcast_time.split(":"))
        return time(hours, minutes, 0, tzinfo=self.tzinfo)

    @field_validator("bot_token")
    @classmethod
    def validate_bot_token(cls, v: str) -> str:
        """Validate bot token format."""
        if not validate_bot_token(v):
            raise ValueError("Invalid TELEGRAM_TOKEN format")
        return v

    @field_validator("twelve_data_api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate API key format (an empty key is allowed and disables quotes)."""
        if v and not validate_api_key(v):
            raise ValueError("Invalid TWELVE_DATA_API_KEY format")
        return v

    @field_validator("default_language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        v = v.lower()
        if v not in LANGUAGES:
            raise ValueError("DEFAULT_LANGUAGE must be 'vi' or 'en'")
        return v

    @field_validator("registry_backend")
    @classmethod
    def validate_registry_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in REGISTRY_BACKENDS:
            raise ValueError(f"REGISTRY_BACKEND must be one of {', '.join(REGISTRY_BACKENDS)}")
        return v

    @field_validator("broadcast_time")
    @classmethod
    def validate_broadcast_time(cls, v: str) -> str:
        if not validate_clock_time(v):
            raise ValueError("BROADCAST_TIME must be HH:MM (24h)")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown TIMEZONE: {v}") from e
        return v

    @field_validator("quote_symbols", mode="before")
    @classmethod
    def validate_quote_symbols(cls, v) -> List[str]:
        # QUOTE_SYMBOLS=XAU/USD,EUR/USD,BTC/USD
        if isinstance(v, str):
            v = v.split(",")
        cleaned = [s.strip().upper() for s in v if s and s.strip()]
        if not cleaned:
            raise ValueError("QUOTE_SYMBOLS must name at least one symbol")
        return cleaned


# Global settings instance
settings = Settings()


# ============================================================================
# Deployment Instructions
# ============================================================================
#
# Long-running bot (polling + daily job):
#    nohup python -m marketpulse > bot.log 2>&1 &
#
# Serverless (one cycle per invocation): point the function at
#    marketpulse.adapters.serverless.handler.handler
# and use REGISTRY_BACKEND=redis, since the function filesystem is ephemeral.
#
# ============================================================================
