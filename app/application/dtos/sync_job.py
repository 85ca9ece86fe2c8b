"""DTOs for sync jobs (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from app.domain.entities.sync_job import progress_percent
from app.domain.enums import SyncJobStatus, SyncJobType


@dataclass(frozen=True, kw_only=True)
class SyncJobResult:
    """Snapshot of a sync job as of its last persisted update."""

    id: str
    user_id: str
    status: SyncJobStatus
    job_type: SyncJobType
    total_accounts: int
    processed_accounts: int
    total_emails_synced: int
    total_emails_skipped: int
    total_emails_processed: int
    estimated_total_emails: int
    current_account: str | None
    current_page: int
    status_message: str | None
    emails_per_second: float
    estimated_seconds_remaining: int | None
    started_at: datetime
    completed_at: datetime | None
    error_message: str | None

    @property
    def progress_percent(self) -> int:
        return progress_percent(self.processed_accounts, self.total_accounts)


@dataclass(frozen=True, kw_only=True)
class SyncProgressUpdate:
    """Counters appended to a running job after one page.

    Deltas are added to the stored totals; the live fields replace theirs.
    All of it is written in a single statement.
    """

    synced_delta: int
    skipped_delta: int
    processed_delta: int
    current_page: int
    emails_per_second: float
    estimated_seconds_remaining: int | None
    status_message: str
