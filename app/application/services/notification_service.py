"""Notification service: records the user-facing outcome of a sync job."""

from __future__ import annotations

from app.application.dtos.sync_job import SyncJobResult
from app.application.interfaces.repositories import ITransactionScope
from app.domain.enums import NotificationType
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

SYNC_RESULTS_URL = "/analytics"


class NotificationService:
    """Writes SYNC_COMPLETE / SYNC_FAILED notifications. Implements INotificationService."""

    def __init__(self, scope: ITransactionScope) -> None:
        self._scope = scope

    async def notify_sync_complete(self, job: SyncJobResult) -> None:
        message = (
            f"Successfully synced {job.total_emails_synced} emails from "
            f"{job.total_accounts} accounts. "
            f"{job.total_emails_skipped} emails were already synced."
        )
        async with self._scope() as repos:
            await repos.notifications.save(
                user_id=job.user_id,
                notification_type=NotificationType.SYNC_COMPLETE,
                title="Sync Complete",
                message=message,
                related_job_id=job.id,
                action_url=SYNC_RESULTS_URL,
            )
        logger.info("Sync complete notification for job %s", job.id)

    async def notify_sync_failed(self, job: SyncJobResult, error: str) -> None:
        async with self._scope() as repos:
            await repos.notifications.save(
                user_id=job.user_id,
                notification_type=NotificationType.SYNC_FAILED,
                title="Sync Failed",
                message=f"Sync failed: {error}",
                related_job_id=job.id,
                action_url=SYNC_RESULTS_URL,
            )
        logger.info("Sync failed notification for job %s", job.id)
