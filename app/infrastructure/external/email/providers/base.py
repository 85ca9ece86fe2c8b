"""Shared token lifecycle for provider clients.

Every provider call goes through BaseMailProviderClient._call, which
refreshes a soon-to-expire token up front and, on a 401, refreshes once
and repeats the same request once. Provider-specific subclasses only
implement the raw requests with an access token in hand.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import ClassVar, TypeVar

import httpx

from app.application.dtos.email_account import MailboxAccount
from app.application.dtos.mail import ListFilter, MailFolder, PageResult
from app.application.interfaces.repositories import ITransactionScope
from app.domain.enums import AccountSyncStatus, ProviderKind
from app.domain.exceptions import (
    ProviderAuthenticationException,
    ProviderRequestException,
    TokenRefreshException,
)
from app.infrastructure.external.email.oauth_drivers import OAuthDriver, TokenRefreshError
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import ensure_utc, utc_now

logger = get_logger(__name__)

T = TypeVar("T")

AUTH_EXPIRED_MESSAGE = "Token expired - need to re-authenticate"
NO_REFRESH_TOKEN_MESSAGE = "No refresh token available - need to re-authenticate"


class ProviderUnauthorized(Exception):
    """Raised by a raw provider request when the access token is rejected (HTTP 401)."""


class BaseMailProviderClient(ABC):
    """IMailProviderClient skeleton: token refresh, retry-once and account status."""

    PROVIDER_KIND: ClassVar[ProviderKind]

    def __init__(
        self,
        driver: OAuthDriver,
        scope: ITransactionScope,
        *,
        page_size: int = 100,
        refresh_window_seconds: int = 300,
    ) -> None:
        self._driver = driver
        self._scope = scope
        self._page_size = page_size
        self._refresh_window = timedelta(seconds=refresh_window_seconds)

    # ---- token lifecycle ----

    def _needs_refresh(self, account: MailboxAccount) -> bool:
        """True when there is no access token or it expires within the refresh window."""
        if not account.access_token:
            return True
        expires_at = ensure_utc(account.token_expires_at)
        if expires_at is None:
            return False
        return expires_at - utc_now() < self._refresh_window

    async def refresh_token(self, account: MailboxAccount) -> None:
        """Refresh the access token and persist it on the account.

        Raises:
            TokenRefreshException: No refresh token, or the token endpoint rejected it.
        """
        if not account.refresh_token:
            await self._record_refresh_failure(account, NO_REFRESH_TOKEN_MESSAGE)
            raise TokenRefreshException(NO_REFRESH_TOKEN_MESSAGE, account.id)
        try:
            tokens = await self._driver.refresh_access_token(account.refresh_token)
        except (TokenRefreshError, httpx.HTTPError) as e:
            message = f"Token refresh failed: {e}"
            await self._record_refresh_failure(account, message)
            raise TokenRefreshException(message, account.id) from e

        account.access_token = tokens.access_token
        account.token_expires_at = tokens.expires_at
        if tokens.refresh_token:
            account.refresh_token = tokens.refresh_token
        account.token_last_refreshed_at = utc_now()
        account.token_refresh_count += 1
        account.sync_status = AccountSyncStatus.SYNCED
        account.sync_error = None
        await self._save(account)
        logger.info(
            "Refreshed %s access token for account %s",
            self.PROVIDER_KIND.value,
            account.id,
        )

    async def _record_refresh_failure(self, account: MailboxAccount, message: str) -> None:
        account.token_refresh_failures += 1
        await self._mark_error(account, message)
        logger.warning("Token refresh failed for account %s: %s", account.id, message)

    async def _mark_error(self, account: MailboxAccount, message: str) -> None:
        account.sync_status = AccountSyncStatus.ERROR
        account.sync_error = message
        await self._save(account)

    async def _save(self, account: MailboxAccount) -> None:
        async with self._scope() as repos:
            await repos.accounts.save(account)

    async def _call(
        self,
        account: MailboxAccount,
        operation: Callable[[str], Awaitable[T]],
    ) -> T:
        """Run operation(access_token) with proactive refresh and one 401 retry."""
        if self._needs_refresh(account):
            await self.refresh_token(account)
        try:
            try:
                return await operation(account.access_token or "")
            except ProviderUnauthorized:
                logger.info(
                    "%s rejected token for account %s; refreshing and retrying once",
                    self.PROVIDER_KIND.value,
                    account.id,
                )
            await self.refresh_token(account)
            try:
                return await operation(account.access_token or "")
            except ProviderUnauthorized as e:
                await self._mark_error(account, AUTH_EXPIRED_MESSAGE)
                raise ProviderAuthenticationException(account_id=account.id) from e
        except ProviderRequestException as e:
            await self._mark_error(account, e.message)
            raise

    # ---- IMailProviderClient ----

    async def list_page(
        self,
        account: MailboxAccount,
        page_cursor: str | None = None,
        list_filter: ListFilter | None = None,
    ) -> PageResult:
        """Fetch one page of summaries; marks the account SYNCED on success."""
        effective_filter = list_filter or ListFilter()
        page = await self._call(
            account,
            lambda token: self._fetch_page(token, page_cursor, effective_filter),
        )
        account.sync_status = AccountSyncStatus.SYNCED
        account.sync_error = None
        account.last_sync_at = utc_now()
        await self._save(account)
        return page

    async def list_folders(self, account: MailboxAccount) -> list[MailFolder]:
        return await self._call(account, self._fetch_folders)

    async def create_folder(
        self, account: MailboxAccount, name: str, parent_id: str | None = None
    ) -> MailFolder:
        folder = await self._call(
            account, lambda token: self._create_folder(token, name, parent_id)
        )
        logger.info("Created %s folder %r for account %s", self.PROVIDER_KIND.value, name, account.id)
        return folder

    async def get_or_create_folder(self, account: MailboxAccount, name: str) -> MailFolder:
        existing = await self._call(account, lambda token: self._find_folder(token, name))
        if existing is not None:
            return existing
        return await self.create_folder(account, name)

    async def move_messages(
        self,
        account: MailboxAccount,
        message_ids: list[str],
        folder_id: str,
        remove_folder_id: str | None = None,
    ) -> int:
        if not message_ids:
            return 0
        return await self._call(
            account,
            lambda token: self._move_messages(token, message_ids, folder_id, remove_folder_id),
        )

    async def move_messages_by_senders(
        self, account: MailboxAccount, senders: list[str], folder_id: str
    ) -> int:
        cleaned = [s.strip().lower() for s in senders if s and s.strip()]
        if not cleaned:
            return 0
        moved = await self._call(
            account, lambda token: self._move_by_senders(token, cleaned, folder_id)
        )
        logger.info(
            "Moved %d messages from %d senders for account %s",
            moved,
            len(cleaned),
            account.id,
        )
        return moved

    # ---- raw provider requests (token already valid) ----

    @abstractmethod
    async def _fetch_page(
        self, token: str, page_cursor: str | None, list_filter: ListFilter
    ) -> PageResult: ...

    @abstractmethod
    async def _fetch_folders(self, token: str) -> list[MailFolder]: ...

    @abstractmethod
    async def _create_folder(
        self, token: str, name: str, parent_id: str | None
    ) -> MailFolder: ...

    @abstractmethod
    async def _find_folder(self, token: str, name: str) -> MailFolder | None: ...

    @abstractmethod
    async def _move_messages(
        self,
        token: str,
        message_ids: list[str],
        folder_id: str,
        remove_folder_id: str | None,
    ) -> int: ...

    @abstractmethod
    async def _move_by_senders(self, token: str, senders: list[str], folder_id: str) -> int: ...
