"""Unit tests for NotificationService with a mocked notification repository."""

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from app.application.dtos.sync_job import SyncJobResult
from app.application.services.notification_service import NotificationService
from app.domain.enums import NotificationType, SyncJobStatus, SyncJobType


def _job(**overrides) -> SyncJobResult:
    values = {
        "id": "job-1",
        "user_id": "user-1",
        "status": SyncJobStatus.COMPLETED,
        "job_type": SyncJobType.FULL_SYNC,
        "total_accounts": 3,
        "processed_accounts": 3,
        "total_emails_synced": 420,
        "total_emails_skipped": 80,
        "total_emails_processed": 500,
        "estimated_total_emails": 500,
        "current_account": None,
        "current_page": 2,
        "status_message": "Sync completed successfully",
        "emails_per_second": 25.0,
        "estimated_seconds_remaining": None,
        "started_at": datetime(2024, 1, 15, 10, 0, tzinfo=UTC),
        "completed_at": datetime(2024, 1, 15, 10, 5, tzinfo=UTC),
        "error_message": None,
    }
    values.update(overrides)
    return SyncJobResult(**values)


@pytest.fixture
def notifications() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(notifications) -> NotificationService:
    @asynccontextmanager
    async def scope():
        yield SimpleNamespace(notifications=notifications)

    return NotificationService(scope)


async def test_sync_complete_message(service, notifications) -> None:
    await service.notify_sync_complete(_job())

    notifications.save.assert_awaited_once_with(
        user_id="user-1",
        notification_type=NotificationType.SYNC_COMPLETE,
        title="Sync Complete",
        message="Successfully synced 420 emails from 3 accounts. 80 emails were already synced.",
        related_job_id="job-1",
        action_url="/analytics",
    )


async def test_sync_failed_message(service, notifications) -> None:
    job = _job(status=SyncJobStatus.FAILED, error_message="boom")

    await service.notify_sync_failed(job, "boom")

    notifications.save.assert_awaited_once_with(
        user_id="user-1",
        notification_type=NotificationType.SYNC_FAILED,
        title="Sync Failed",
        message="Sync failed: boom",
        related_job_id="job-1",
        action_url="/analytics",
    )
