"""Sync job ledger repository.

Every state change is a conditional UPDATE on the job's status, so a cancel
request and the processing loop never overwrite each other: progress writes
only land while the job is RUNNING, and terminal rows never change again.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.sync_job import SyncJobResult, SyncProgressUpdate
from app.domain.entities.sync_job import SyncJobEntity
from app.domain.enums import ACTIVE_JOB_STATUSES, SyncJobStatus, SyncJobType
from app.domain.exceptions import SyncJobAlreadyRunningException
from app.infrastructure.persistence.models.sync_job import SyncJob
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.utils.datetime import ensure_utc, utc_now
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def _to_result(j: SyncJob) -> SyncJobResult:
    """Map SyncJob ORM to SyncJobResult DTO."""
    return SyncJobResult(
        id=j.id,
        user_id=j.user_id,
        status=SyncJobStatus(j.status),
        job_type=SyncJobType(j.job_type),
        total_accounts=j.total_accounts,
        processed_accounts=j.processed_accounts,
        total_emails_synced=j.total_emails_synced,
        total_emails_skipped=j.total_emails_skipped,
        total_emails_processed=j.total_emails_processed,
        estimated_total_emails=j.estimated_total_emails,
        current_account=j.current_account,
        current_page=j.current_page,
        status_message=j.status_message,
        emails_per_second=j.emails_per_second,
        estimated_seconds_remaining=j.estimated_seconds_remaining,
        started_at=ensure_utc(j.started_at),
        completed_at=ensure_utc(j.completed_at),
        error_message=j.error_message,
    )


def _status_values(statuses: Iterable[SyncJobStatus]) -> list[str]:
    return [SyncJobStatus(s).value for s in statuses]


class SyncJobRepository(BaseRepository[SyncJob]):
    """Sync job repository. Implements ISyncJobRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, SyncJob)

    async def create_job(
        self,
        user_id: str,
        job_type: SyncJobType,
        total_accounts: int,
        status_message: str,
    ) -> SyncJobResult:
        """Insert a PENDING job for the user.

        The partial unique index on active jobs makes the insert fail when
        another PENDING/RUNNING job exists, even if the pre-check raced.

        Raises:
            SyncJobAlreadyRunningException: If the user already has an active job.
        """
        if await self.exists_by_user_id_and_status(user_id, ACTIVE_JOB_STATUSES):
            raise SyncJobAlreadyRunningException(user_id)
        job = SyncJob(
            user_id=user_id,
            status=SyncJobStatus.PENDING.value,
            job_type=job_type.value,
            total_accounts=total_accounts,
            status_message=status_message,
            started_at=utc_now(),
        )
        try:
            job = await self.create(job)
        except IntegrityError as e:
            logger.info("Concurrent sync start rejected for user %s", user_id)
            raise SyncJobAlreadyRunningException(user_id) from e
        return _to_result(job)

    async def get_job(self, job_id: str) -> SyncJobResult | None:
        """Return a snapshot of the job, or None."""
        job = await self.get_by_id(job_id)
        return _to_result(job) if job else None

    async def get_status(self, job_id: str) -> SyncJobStatus | None:
        """Return only the job's status (used for cancellation polling)."""
        result = await self.db.execute(select(SyncJob.status).where(SyncJob.id == job_id))
        value = result.scalar_one_or_none()
        return SyncJobStatus(value) if value is not None else None

    async def exists_by_user_id_and_status(
        self, user_id: str, statuses: Iterable[SyncJobStatus]
    ) -> bool:
        """Return True if the user has a job in any of the statuses."""
        stmt = select(
            exists().where(
                SyncJob.user_id == user_id,
                SyncJob.status.in_(_status_values(statuses)),
            )
        )
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def find_latest_for_user(
        self, user_id: str, statuses: Iterable[SyncJobStatus] | None = None
    ) -> SyncJobResult | None:
        """Return the most recently started job, optionally restricted to statuses."""
        stmt = select(SyncJob).where(SyncJob.user_id == user_id)
        if statuses is not None:
            stmt = stmt.where(SyncJob.status.in_(_status_values(statuses)))
        stmt = stmt.order_by(SyncJob.started_at.desc()).limit(1)
        result = await self.db.execute(stmt)
        job = result.scalar_one_or_none()
        return _to_result(job) if job else None

    async def transition(
        self,
        job_id: str,
        from_statuses: Iterable[SyncJobStatus],
        to_status: SyncJobStatus,
        **fields: Any,
    ) -> bool:
        """Move the job to to_status if it is currently in one of from_statuses.

        Raises:
            InvalidJobTransitionException: If a from -> to pair breaks the lifecycle.
        """
        sources = list(from_statuses)
        for source in sources:
            SyncJobEntity(id=job_id, status=source).transition_to(to_status)
        stmt = (
            update(SyncJob)
            .where(SyncJob.id == job_id, SyncJob.status.in_(_status_values(sources)))
            .values(status=to_status.value, **fields)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount > 0

    async def update_fields(
        self, job_id: str, require_status: SyncJobStatus, **fields: Any
    ) -> bool:
        """Set live fields (current account, messages) while the job is in require_status."""
        stmt = (
            update(SyncJob)
            .where(SyncJob.id == job_id, SyncJob.status == require_status.value)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount > 0

    async def update_progress(self, job_id: str, progress: SyncProgressUpdate) -> bool:
        """Append one page's counters and replace the live fields in one statement."""
        stmt = (
            update(SyncJob)
            .where(SyncJob.id == job_id, SyncJob.status == SyncJobStatus.RUNNING.value)
            .values(
                total_emails_synced=SyncJob.total_emails_synced + progress.synced_delta,
                total_emails_skipped=SyncJob.total_emails_skipped + progress.skipped_delta,
                total_emails_processed=(
                    SyncJob.total_emails_processed + progress.processed_delta
                ),
                current_page=progress.current_page,
                emails_per_second=progress.emails_per_second,
                estimated_seconds_remaining=progress.estimated_seconds_remaining,
                status_message=progress.status_message,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount > 0

    async def fail_active_jobs(self, message: str, completed_at: datetime) -> int:
        """Mark every PENDING/RUNNING job FAILED; returns how many were changed."""
        stmt = (
            update(SyncJob)
            .where(SyncJob.status.in_(_status_values(ACTIVE_JOB_STATUSES)))
            .values(
                status=SyncJobStatus.FAILED.value,
                error_message=message,
                status_message=f"Sync failed: {message}",
                completed_at=completed_at,
                current_account=None,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount
