"""Mail provider client factory: resolves the client for an account's provider."""

from typing import ClassVar

import httpx

from app.application.dtos.email_account import MailboxAccount
from app.application.interfaces.repositories import ITransactionScope
from app.application.interfaces.services import IMailProviderClient
from app.core.config import Settings
from app.domain.enums import ProviderKind
from app.domain.exceptions import UnsupportedProviderException
from app.infrastructure.external.email.oauth_drivers import (
    GmailDriver,
    OAuthDriver,
    OAuthDriverRegistry,
    OutlookDriver,
)
from app.infrastructure.external.email.providers.base import BaseMailProviderClient
from app.infrastructure.external.email.providers.gmail_provider import GmailClient
from app.infrastructure.external.email.providers.outlook_provider import OutlookClient
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class MailProviderClientFactory:
    """IMailProviderClientFactory: one client per provider kind, created lazily.

    Account state lives in the database, so a single instance per provider
    serves every account. Per-token caches inside a client (Gmail services)
    are bounded.
    """

    _clients: ClassVar[dict[ProviderKind, type[BaseMailProviderClient]]] = {
        ProviderKind.GMAIL: GmailClient,
        ProviderKind.OUTLOOK: OutlookClient,
    }

    def __init__(
        self,
        scope: ITransactionScope,
        settings: Settings,
        *,
        http_client: httpx.AsyncClient | None = None,
        drivers: dict[ProviderKind, OAuthDriver] | None = None,
    ) -> None:
        self._scope = scope
        self._settings = settings
        self._http_client = http_client
        self._drivers: dict[ProviderKind, OAuthDriver] = dict(drivers or {})
        self._instances: dict[ProviderKind, IMailProviderClient] = {}

    def _driver_for(self, provider: ProviderKind) -> OAuthDriver:
        if provider not in self._drivers:
            self._drivers[provider] = OAuthDriverRegistry.get_driver(
                provider, self._settings, http_client=self._http_client
            )
        return self._drivers[provider]

    def for_account(self, account: MailboxAccount) -> IMailProviderClient:
        """Return the client for account.provider.

        Raises:
            UnsupportedProviderException: If no client handles the provider.
        """
        try:
            provider = ProviderKind(account.provider)
        except ValueError as e:
            raise UnsupportedProviderException(str(account.provider)) from e
        if provider not in self._clients:
            raise UnsupportedProviderException(provider.value)
        if provider not in self._instances:
            self._instances[provider] = self._create(provider)
            logger.debug("Created %s client", self._clients[provider].__name__)
        return self._instances[provider]

    def _create(self, provider: ProviderKind) -> IMailProviderClient:
        settings = self._settings
        driver = self._driver_for(provider)
        if provider == ProviderKind.GMAIL:
            assert isinstance(driver, GmailDriver)
            return GmailClient(
                driver,
                self._scope,
                page_size=settings.sync_page_size,
                refresh_window_seconds=settings.token_refresh_window_seconds,
            )
        assert isinstance(driver, OutlookDriver)
        return OutlookClient(
            driver,
            self._scope,
            page_size=settings.sync_page_size,
            refresh_window_seconds=settings.token_refresh_window_seconds,
            http_client=self._http_client,
            timeout=settings.provider_http_timeout_seconds,
        )

    @classmethod
    def list_supported_providers(cls) -> list[str]:
        """Return list of supported provider kinds."""
        return [p.value for p in cls._clients]
