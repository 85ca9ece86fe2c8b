"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from app.domain.enums import NotificationType, SyncJobStatus, SyncJobType

if TYPE_CHECKING:
    from app.application.dtos.email_account import MailboxAccount
    from app.application.dtos.email_metadata import EmailMetadataCreate
    from app.application.dtos.notification import NotificationResult
    from app.application.dtos.sync_job import SyncJobResult, SyncProgressUpdate


# Email account repository interface
class IEmailAccountRepository(Protocol):
    """Protocol for connected mailbox accounts."""

    async def find_by_user_id(self, user_id: str) -> list[MailboxAccount]:
        """Return the user's accounts in a stable order (creation time, then id)."""
        ...

    async def count_by_user_id(self, user_id: str) -> int: ...

    async def get_account(self, account_id: str) -> MailboxAccount | None: ...

    async def save(self, account: MailboxAccount) -> None:
        """Persist tokens, expiry and sync status of an existing account."""
        ...


# Message metadata repository interface
class IEmailMetadataRepository(Protocol):
    """Protocol for deduplicated message metadata."""

    async def exists_by_message_id(self, message_id: str) -> bool: ...

    async def find_existing_message_ids(self, message_ids: Iterable[str]) -> set[str]:
        """Return the subset of message_ids already stored (one query)."""
        ...

    async def save(self, metadata: EmailMetadataCreate) -> bool:
        """Insert one row; return False when message_id already exists."""
        ...

    async def save_many(self, items: list[EmailMetadataCreate]) -> int:
        """Insert rows whose message_id is not stored yet; return rows written."""
        ...

    async def count_by_account(self, account_id: str) -> int: ...


# Sync job ledger interface
class ISyncJobRepository(Protocol):
    """Protocol for the sync job ledger."""

    async def create_job(
        self,
        user_id: str,
        job_type: SyncJobType,
        total_accounts: int,
        status_message: str,
    ) -> SyncJobResult:
        """Insert a PENDING job. Raises SyncJobAlreadyRunningException on an active job."""
        ...

    async def get_job(self, job_id: str) -> SyncJobResult | None: ...

    async def get_status(self, job_id: str) -> SyncJobStatus | None:
        """Status only (cheap cancellation check)."""
        ...

    async def exists_by_user_id_and_status(
        self, user_id: str, statuses: Iterable[SyncJobStatus]
    ) -> bool: ...

    async def find_latest_for_user(
        self, user_id: str, statuses: Iterable[SyncJobStatus] | None = None
    ) -> SyncJobResult | None: ...

    async def transition(
        self,
        job_id: str,
        from_statuses: Iterable[SyncJobStatus],
        to_status: SyncJobStatus,
        **fields: Any,
    ) -> bool:
        """Conditionally move a job to to_status and set fields; False if not in from_statuses."""
        ...

    async def update_fields(
        self, job_id: str, require_status: SyncJobStatus, **fields: Any
    ) -> bool:
        """Set live fields while the job is in require_status."""
        ...

    async def update_progress(self, job_id: str, progress: SyncProgressUpdate) -> bool:
        """Append one page's counters while RUNNING; False when the job left RUNNING."""
        ...

    async def fail_active_jobs(self, message: str, completed_at: datetime) -> int:
        """Mark every PENDING/RUNNING job FAILED (startup recovery)."""
        ...


# Notification repository interface
class INotificationRepository(Protocol):
    """Protocol for user notifications."""

    async def save(
        self,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        related_job_id: str | None = None,
        action_url: str | None = None,
    ) -> NotificationResult: ...

    async def list_for_user(
        self, user_id: str, *, unread_only: bool = False, limit: int = 50
    ) -> list[NotificationResult]: ...

    async def count_unread(self, user_id: str) -> int: ...

    async def mark_read(self, notification_id: str, user_id: str) -> bool: ...

    async def mark_all_read(self, user_id: str) -> int: ...

    async def delete(self, notification_id: str, user_id: str) -> bool: ...


@dataclass(frozen=True)
class SyncRepositories:
    """Repositories sharing one transaction."""

    accounts: IEmailAccountRepository
    metadata: IEmailMetadataRepository
    jobs: ISyncJobRepository
    notifications: INotificationRepository


class ITransactionScope(Protocol):
    """Opens a short transaction and yields repositories bound to it.

    Commits on normal exit, rolls back on exception.
    """

    def __call__(self) -> AbstractAsyncContextManager[SyncRepositories]: ...
