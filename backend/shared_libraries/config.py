"""
Shared configuration for the iclock gateway.
Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    metrics_enabled: bool = True

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    api_prefix: str = "/api/v1"

    # Terminal wire protocol
    iclock_prefix: str = "/iclock"
    ack_success_code: int = 0
    body_read_timeout: float = 30.0
    keep_alive_timeout: int = 15

    # Tenant resolution
    default_tenant_id: str | None = None
    tenant_query_params: list[str] = [
        "id",
        "customId",
        "custom_id",
        "pin",
        "license",
        "licenseId",
    ]
    tenant_mount_prefixes: list[str] = ["biometricos"]

    # Capability block returned on terminal init
    error_delay: int = 30
    delay: int = 10
    trans_times: str = "00:00;14:05"
    trans_interval: int = 1
    trans_flag: str = (
        "TransData AttLog OpLog AttPhoto EnrollUser ChgUser EnrollFP ChgFP UserPic"
    )
    timezone_offset: int = 8
    realtime: int = 1
    server_version: str = "2.4.2"
    push_protocol_version: str = "2.4.2"

    @property
    def effective_log_level(self) -> str:
        """Log level, forced to DEBUG when debug mode is on."""
        return "DEBUG" if self.debug else self.log_level.upper()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
