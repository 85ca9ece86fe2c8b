"""Service interfaces (ports) for the application layer.

Protocols define contracts for provider clients and notifications (DIP).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.application.dtos.email_account import MailboxAccount
    from app.application.dtos.mail import ListFilter, MailFolder, PageResult
    from app.application.dtos.sync_job import SyncJobResult


# Mail provider client interface
class IMailProviderClient(Protocol):
    """Capability interface implemented once per provider (Gmail, Outlook).

    Every call refreshes the access token when it expires soon, and on a 401
    refreshes once and retries the same request once. Token and status changes
    are persisted on the account.
    """

    async def list_page(
        self,
        account: MailboxAccount,
        page_cursor: str | None = None,
        list_filter: ListFilter | None = None,
    ) -> PageResult:
        """Fetch one page of message summaries (up to the configured page size)."""
        ...

    async def refresh_token(self, account: MailboxAccount) -> None:
        """Refresh and persist the account's access token.

        Raises TokenRefreshException on failure (account set to ERROR).
        """
        ...

    async def list_folders(self, account: MailboxAccount) -> list[MailFolder]:
        """List Gmail labels or Outlook mail folders."""
        ...

    async def create_folder(
        self, account: MailboxAccount, name: str, parent_id: str | None = None
    ) -> MailFolder:
        """Create a label/folder (parent_id is Outlook only)."""
        ...

    async def get_or_create_folder(self, account: MailboxAccount, name: str) -> MailFolder:
        """Return the folder with this display name, creating it when missing."""
        ...

    async def move_messages(
        self,
        account: MailboxAccount,
        message_ids: list[str],
        folder_id: str,
        remove_folder_id: str | None = None,
    ) -> int:
        """Move messages into folder_id; return how many moved."""
        ...

    async def move_messages_by_senders(
        self, account: MailboxAccount, senders: list[str], folder_id: str
    ) -> int:
        """Move every message from the given senders into folder_id; return how many moved."""
        ...


class IMailProviderClientFactory(Protocol):
    """Selects the provider client for an account's provider kind."""

    def for_account(self, account: MailboxAccount) -> IMailProviderClient:
        """Raises UnsupportedProviderException for unknown providers."""
        ...


# Notification service interface
class INotificationService(Protocol):
    """Writes the user-facing record of a finished or failed sync job."""

    async def notify_sync_complete(self, job: SyncJobResult) -> None: ...

    async def notify_sync_failed(self, job: SyncJobResult, error: str) -> None: ...
