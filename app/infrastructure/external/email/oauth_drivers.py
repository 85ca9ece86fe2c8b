"""OAuth token drivers: refresh access tokens at the provider token endpoint."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, ClassVar

import httpx
from msal import ConfidentialClientApplication

from app.core.config import Settings
from app.domain.enums import ProviderKind
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now

logger = get_logger(__name__)

DEFAULT_EXPIRES_IN = 3600


class TokenRefreshError(Exception):
    """Raised by a driver when the token endpoint rejects a refresh."""


@dataclass
class OAuthTokens:
    """Normalized OAuth token response."""

    access_token: str
    refresh_token: str | None
    token_type: str
    expires_in: int
    expires_at: datetime
    scope: str


class OAuthDriver(ABC):
    """Abstract OAuth driver: exchanges a refresh token for a new access token."""

    PROVIDER_NAME: ClassVar[str]
    PROVIDER_KIND: ClassVar[ProviderKind]
    TOKEN_ENDPOINT: ClassVar[str]

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        scopes: list[str] | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.scopes = scopes or []
        self._shared_http = http_client
        self._timeout = timeout

    @property
    def provider_name(self) -> str:
        return self.PROVIDER_NAME

    @asynccontextmanager
    async def _http_cm(self):
        """Yield shared HTTP client or a short-lived one (connection reuse when shared)."""
        if self._shared_http is not None:
            yield self._shared_http
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    @abstractmethod
    async def refresh_access_token(self, refresh_token: str) -> OAuthTokens:
        """Return fresh tokens; keeps the old refresh token when none is returned.

        Raises:
            TokenRefreshError: If the provider rejects the refresh.
        """
        ...

    def _normalize_token_response(
        self, token_data: dict[str, Any], previous_refresh_token: str
    ) -> OAuthTokens:
        """Normalize provider response to OAuthTokens."""
        access_token = token_data.get("access_token")
        if not access_token:
            raise TokenRefreshError(
                f"{self.provider_name} token response has no access_token"
            )
        expires_in = int(token_data.get("expires_in") or DEFAULT_EXPIRES_IN)
        return OAuthTokens(
            access_token=access_token,
            refresh_token=token_data.get("refresh_token") or previous_refresh_token,
            token_type=token_data.get("token_type", "Bearer"),
            expires_in=expires_in,
            expires_at=utc_now() + timedelta(seconds=expires_in),
            scope=token_data.get("scope", " ".join(self.scopes)),
        )


class GmailDriver(OAuthDriver):
    """Google OAuth driver (form POST to the Google token endpoint)."""

    PROVIDER_NAME = "Gmail"
    PROVIDER_KIND = ProviderKind.GMAIL
    TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"

    async def refresh_access_token(self, refresh_token: str) -> OAuthTokens:
        async with self._http_cm() as client:
            response = await client.post(
                self.TOKEN_ENDPOINT,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
            )
        if response.status_code != 200:
            logger.error(
                "%s token refresh failed: status=%d",
                self.provider_name,
                response.status_code,
            )
            raise TokenRefreshError(
                f"Token refresh failed with status {response.status_code}"
            )
        return self._normalize_token_response(response.json(), refresh_token)


class OutlookDriver(OAuthDriver):
    """Microsoft identity platform driver (msal confidential client).

    Microsoft may rotate the refresh token; the new one is returned in
    OAuthTokens.refresh_token and must be persisted by the caller.
    """

    PROVIDER_NAME = "Microsoft 365"
    PROVIDER_KIND = ProviderKind.OUTLOOK
    TOKEN_ENDPOINT = "https://login.microsoftonline.com/common/oauth2/v2.0/token"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        scopes: list[str] | None = None,
        *,
        authority: str = "https://login.microsoftonline.com/common",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(
            client_id, client_secret, scopes, http_client=http_client, timeout=timeout
        )
        self.authority = authority
        self._msal_app: ConfidentialClientApplication | None = None

    def _get_msal_app(self) -> ConfidentialClientApplication:
        if self._msal_app is None:
            self._msal_app = ConfidentialClientApplication(
                self.client_id,
                authority=self.authority,
                client_credential=self.client_secret,
            )
        return self._msal_app

    async def refresh_access_token(self, refresh_token: str) -> OAuthTokens:
        msal_app = self._get_msal_app()
        result = await asyncio.to_thread(
            msal_app.acquire_token_by_refresh_token,
            refresh_token,
            scopes=self.scopes,
        )
        if "access_token" not in result:
            logger.error(
                "%s token refresh failed: error=%s",
                self.provider_name,
                result.get("error"),
            )
            raise TokenRefreshError(
                f"Token refresh failed: {result.get('error_description') or result.get('error')}"
            )
        return self._normalize_token_response(result, refresh_token)


class OAuthDriverRegistry:
    """Registry for OAuth drivers by provider kind."""

    _drivers: ClassVar[dict[ProviderKind, type[OAuthDriver]]] = {
        ProviderKind.GMAIL: GmailDriver,
        ProviderKind.OUTLOOK: OutlookDriver,
    }

    @classmethod
    def get_driver(
        cls,
        provider: ProviderKind,
        settings: Settings,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> OAuthDriver:
        """Build the driver for provider from application settings."""
        if provider == ProviderKind.GMAIL:
            return GmailDriver(
                settings.google_client_id,
                settings.google_client_secret.get_secret_value(),
                http_client=http_client,
                timeout=settings.provider_http_timeout_seconds,
            )
        if provider == ProviderKind.OUTLOOK:
            return OutlookDriver(
                settings.microsoft_client_id,
                settings.microsoft_client_secret.get_secret_value(),
                settings.microsoft_scope_list,
                authority=settings.microsoft_authority,
                http_client=http_client,
                timeout=settings.provider_http_timeout_seconds,
            )
        raise ValueError(
            f"Unsupported provider: {provider}. "
            f"Supported: {', '.join(p.value for p in cls._drivers)}"
        )

    @classmethod
    def list_providers(cls) -> list[str]:
        return [p.value for p in cls._drivers]
