"""Sync job API schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from app.domain.entities.sync_job import progress_percent
from app.domain.enums import SyncJobStatus, SyncJobType


class SyncJobResponse(BaseModel):
    """Snapshot of a sync job for status polling."""

    model_config = ConfigDict(from_attributes=True)

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
    current_account: str | None = None
    current_page: int
    status_message: str | None = None
    emails_per_second: float
    estimated_seconds_remaining: int | None = None
    started_at: datetime
    completed_at: datetime | None = None
    error_message: str | None = None

    @computed_field
    @property
    def progress_percent(self) -> int:
        return progress_percent(self.processed_accounts, self.total_accounts)


class NoSyncJobResponse(BaseModel):
    """Response for GET /sync/status when the user has never synced."""

    status: Literal["NO_JOBS"] = "NO_JOBS"
    message: str = Field(default="No sync jobs found")
