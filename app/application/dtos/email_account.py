"""DTOs for connected mailbox accounts (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from app.domain.enums import AccountSyncStatus, ProviderKind


@dataclass(kw_only=True)
class MailboxAccount:
    """One connected mailbox, as seen by provider clients and the sync engine.

    Mutable: provider clients update tokens and sync status in place and
    then persist it through IEmailAccountRepository.save.
    """

    id: str
    user_id: str
    provider: ProviderKind
    email_address: str
    access_token: str | None = None
    refresh_token: str | None = None
    token_expires_at: datetime | None = None
    sync_status: AccountSyncStatus = AccountSyncStatus.PENDING
    last_sync_at: datetime | None = None
    sync_error: str | None = None
    token_last_refreshed_at: datetime | None = None
    token_refresh_count: int = 0
    token_refresh_failures: int = 0
