"""Configuration helpers for the Ghostfolio sync service."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncSettings(BaseSettings):
    """Settings for the EIC -> Ghostfolio synchronisation worker."""

    app_name: str = Field(default="Ghostfolio EIC Sync Service")

    ghostfolio_url: str = Field("http://localhost:3333", description="Ghostfolio base URL")
    ghostfolio_security_token: str | None = Field(
        None, description="Ghostfolio security token exchanged for a bearer token"
    )
    ghostfolio_eic_account_name: str = Field("EIC", description="Ghostfolio account holding EIC activity")
    ghostfolio_eic_target_tag: str = Field("EIC", description="Tag attached to every synced activity")
    gather_data: bool = Field(False, description="Mark created profiles as active for data gathering")
    fee_symbol: str = Field("EIC-MNG-FEE", description="Symbol prefix used for management fee activities")

    eic_login: str | None = Field(None, description="EIC portal login")
    eic_password: str | None = Field(None, description="EIC portal password")

    request_timeout_seconds: float = Field(10.0, description="Timeout for a single outbound HTTP request")
    retry_delay_seconds: float = Field(300.0, description="Wait before retrying a rate-limited call")
    create_retry_delay_seconds: float = Field(30.0, description="Wait before retrying a rate-limited create call")
    max_retries: int = Field(3, ge=0, description="Retries allowed for rate-limited (429) calls")

    price_batch_size: int = Field(500, gt=0, description="Market price points pushed per request")
    price_batch_delay_seconds: float = Field(1.0, ge=0.0, description="Pause between market price batches")
    item_delay_seconds: float = Field(1.0, ge=0.0, description="Pause between profile/order creations")

    log_level: str = Field("INFO", description="Root log level")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a sanitised dict for logging purposes."""

        hidden = {"ghostfolio_security_token", "eic_password"}
        return {k: ("***" if k in hidden and v else v) for k, v in self.model_dump().items()}


@lru_cache()
def get_settings() -> SyncSettings:
    """Return cached sync settings."""

    return SyncSettings()


__all__ = ["SyncSettings", "get_settings"]
