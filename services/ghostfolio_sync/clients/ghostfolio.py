"""Ghostfolio REST client scoped to a single sync run.

The bearer token is obtained lazily from the anonymous-auth endpoint, cached on
the client for the run and cleared when the client is closed.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from ..core.config import SyncSettings
from ..core.errors import ConfigurationError, PayloadValidationError
from ..schemas import (
    Account,
    AccountCreate,
    Activity,
    ActivityCreate,
    CreatedActivity,
    CreatedProfile,
    MarketDataForSymbol,
    MarketDataProfile,
    MarketPrice,
    Platform,
    PlatformCreate,
    ProfileUpdate,
    Tag,
    TagCreate,
    User,
    validate_many,
    validate_model,
)
from .base import BaseHttpClient

logger = logging.getLogger("services.ghostfolio_sync.ghostfolio")

AUTH_TOKEN_PATH = "/api/v1/auth/anonymous"
PROFILE_DATA_PATH = "/api/v1/admin/profile-data"
ADMIN_MARKET_DATA_PATH = "/api/v1/admin/market-data"
MARKET_DATA_PATH = "/api/v1/market-data"
ACCOUNT_PATH = "/api/v1/account"
USER_PATH = "/api/v1/user"
ORDER_PATH = "/api/v1/order"
PLATFORM_PATH = "/api/v1/platform"
TAGS_PATH = "/api/v1/tags"


def _manual(path: str, symbol: str) -> str:
    return f"{path}/MANUAL/{quote(symbol, safe='')}"


def _field(payload: Any, key: str, name: str) -> Any:
    if not isinstance(payload, dict) or key not in payload:
        raise PayloadValidationError(f"Error occurred in {name}: response has no '{key}' field.")
    return payload[key]


class GhostfolioClient(BaseHttpClient):
    """Async Ghostfolio API session."""

    def __init__(
        self,
        base_url: str,
        security_token: str | None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
        retry_delay: float = 300.0,
        create_retry_delay: float = 30.0,
        max_retries: int = 3,
    ) -> None:
        super().__init__(
            base_url=base_url.rstrip("/"),
            client=client,
            timeout_seconds=timeout_seconds,
            retry_delay=retry_delay,
            max_retries=max_retries,
        )
        self._security_token = security_token
        self.create_retry_delay = create_retry_delay
        self.auth_token: str | None = None

    @classmethod
    def from_settings(cls, settings: SyncSettings, client: httpx.AsyncClient | None = None) -> "GhostfolioClient":
        return cls(
            settings.ghostfolio_url,
            settings.ghostfolio_security_token,
            client=client,
            timeout_seconds=settings.request_timeout_seconds,
            retry_delay=settings.retry_delay_seconds,
            create_retry_delay=settings.create_retry_delay_seconds,
            max_retries=settings.max_retries,
        )

    # Session handling

    async def _get_auth_token(self) -> str:
        if self.auth_token is not None:
            return self.auth_token
        if not self._security_token:
            raise ConfigurationError("No ghostfolio security token provided during retrieving ghostfolio auth token.")
        payload = await self._request_json(
            "POST",
            AUTH_TOKEN_PATH,
            name="get_auth_token",
            json={"accessToken": self._security_token},
        )
        token = _field(payload, "authToken", "get_auth_token")
        if not isinstance(token, str) or not token:
            raise PayloadValidationError("Error occurred in get_auth_token: authToken must be a non-empty string.")
        self.auth_token = token
        logger.debug("Obtained Ghostfolio auth token")
        return token

    def clear_token(self) -> None:
        self.auth_token = None

    async def _headers(self) -> dict[str, str]:
        token = await self._get_auth_token()
        return {"Authorization": f"Bearer {token}"}

    async def _call(self, method: str, path: str, *, name: str, **kwargs: Any) -> Any:
        headers = await self._headers()
        return await self._request_json(method, path, name=name, headers=headers, **kwargs)

    async def aclose(self) -> None:
        self.clear_token()
        await super().aclose()

    # User

    async def get_user(self) -> User:
        payload = await self._call("GET", USER_PATH, name="get_user")
        return validate_model(User, payload)

    async def get_base_currency(self) -> str:
        user = await self.get_user()
        return user.settings.base_currency

    # Platforms

    async def get_platforms(self) -> list[Platform]:
        payload = await self._call("GET", PLATFORM_PATH, name="get_platforms")
        return validate_many(Platform, payload)

    async def create_platform(self, platform: PlatformCreate) -> Platform:
        payload = await self._call(
            "POST",
            PLATFORM_PATH,
            name="create_platform",
            json=platform.to_payload(),
            retry_delay=self.create_retry_delay,
        )
        return validate_model(Platform, payload)

    # Tags

    async def get_tags(self) -> list[Tag]:
        payload = await self._call("GET", TAGS_PATH, name="get_tags")
        return validate_many(Tag, payload)

    async def create_tag(self, tag: TagCreate) -> Tag:
        payload = await self._call(
            "POST",
            TAGS_PATH,
            name="create_tag",
            json=tag.to_payload(),
            retry_delay=self.create_retry_delay,
        )
        return validate_model(Tag, payload)

    # Accounts

    async def get_accounts(self) -> list[Account]:
        payload = await self._call("GET", ACCOUNT_PATH, name="get_accounts")
        return validate_many(Account, _field(payload, "accounts", "get_accounts"))

    async def create_account(self, account: AccountCreate) -> Account:
        payload = await self._call(
            "POST",
            ACCOUNT_PATH,
            name="create_account",
            json=account.to_payload(),
            retry_delay=self.create_retry_delay,
        )
        return validate_model(Account, payload)

    # Profiles and market data

    async def get_profiles(self) -> list[MarketDataProfile]:
        payload = await self._call("GET", ADMIN_MARKET_DATA_PATH, name="get_profiles")
        return validate_many(MarketDataProfile, _field(payload, "marketData", "get_profiles"))

    async def create_profile(self, symbol: str) -> CreatedProfile:
        payload = await self._call("POST", _manual(PROFILE_DATA_PATH, symbol), name="create_profile")
        return validate_model(CreatedProfile, payload)

    async def update_profile(self, symbol: str, profile: ProfileUpdate) -> None:
        headers = await self._headers()
        await self._request(
            "PATCH",
            _manual(PROFILE_DATA_PATH, symbol),
            name="update_profile",
            headers=headers,
            json=profile.to_payload(),
        )

    async def get_market_data(self, symbol: str) -> MarketDataForSymbol:
        payload = await self._call("GET", _manual(MARKET_DATA_PATH, symbol), name="get_market_data")
        return validate_model(MarketDataForSymbol, payload)

    async def set_market_data(self, symbol: str, points: list[MarketPrice]) -> None:
        body = {"marketData": [point.to_payload() for point in points]}
        await self._call("POST", _manual(MARKET_DATA_PATH, symbol), name="set_market_data", json=body)

    # Orders

    async def get_orders(self) -> list[Activity]:
        payload = await self._call("GET", ORDER_PATH, name="get_orders")
        return validate_many(Activity, _field(payload, "activities", "get_orders"))

    async def create_order(self, activity: ActivityCreate) -> CreatedActivity:
        payload = await self._call("POST", ORDER_PATH, name="create_order", json=activity.to_payload())
        return validate_model(CreatedActivity, payload)


__all__ = ["GhostfolioClient"]
