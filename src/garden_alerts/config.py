"""Runtime configuration.

Values come from the environment (or a `.env` file in the working directory);
names are the field names upper-cased, e.g. EMAIL_USER, POLL_INTERVAL_SECONDS.
"""
from functools import lru_cache
from typing import Literal

import pydantic
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from garden_alerts.exceptions import ConfigurationError

UpstreamMode = Literal["poll", "stream"]
LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class Settings(BaseSettings):
    """Process-wide settings. Build via load_settings() at startup."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Mail relay (both required) ---------------------------------------------
    email_user: str = ""
    email_pass: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_use_ssl: bool = True
    mail_sender_name: str = "Grow A Garden Bot"

    # --- Public links -----------------------------------------------------------
    public_base_url: str = "http://localhost:3000"

    # --- Upstream game API ------------------------------------------------------
    upstream_mode: UpstreamMode = "poll"
    stock_url: str = "https://api.joshlei.com/v2/growagarden/stock"
    weather_url: str = "https://api.joshlei.com/v2/growagarden/weather"
    item_info_url: str = "https://api.joshlei.com/v2/growagarden/info/"
    icon_base_url: str = "https://image.joshlei.com"
    stream_url: str = "wss://websocket.joshlei.com/growagarden"
    poll_interval_seconds: float = Field(15.0, gt=0)
    reconnect_delay_seconds: float = Field(5.0, ge=0)
    http_timeout_seconds: float = Field(15.0, gt=0)
    catalog_max_attempts: int = Field(3, ge=1)
    catalog_backoff_seconds: float = Field(1.0, ge=0)

    # --- Subscriptions ----------------------------------------------------------
    require_verification: bool = True
    verification_ttl_hours: float = Field(24.0, gt=0)
    sweep_interval_seconds: float = Field(3600.0, gt=0)

    # --- Operations -------------------------------------------------------------
    log_level: LogLevel = "INFO"
    log_backlog_size: int = Field(200, ge=0)
    enable_test_email: bool = False
    host: str = "0.0.0.0"
    port: int = 3000

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    @property
    def mail_sender(self) -> str:
        """RFC 5322 From header value."""
        return f'"{self.mail_sender_name}" <{self.email_user}>'


def load_settings(**overrides) -> Settings:
    """Build Settings from the environment and fail fast on missing credentials.

    Raises:
        ConfigurationError: EMAIL_USER / EMAIL_PASS absent, or a value is invalid.
    """
    try:
        settings = Settings(**overrides)
    except pydantic.ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
    if not settings.email_user.strip() or not settings.email_pass.strip():
        raise ConfigurationError(
            "EMAIL_USER or EMAIL_PASS environment variables are not set."
        )
    return settings


@lru_cache
def get_settings() -> Settings:
    """Cached settings for entry points that run outside the app factory."""
    return load_settings()
