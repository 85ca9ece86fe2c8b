"""Persistence repositories. Re-exports for dependency injection."""

from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.persistence.repositories.email_account_repo import (
    EmailAccountRepository,
)
from app.infrastructure.persistence.repositories.email_metadata_repo import (
    EmailMetadataRepository,
)
from app.infrastructure.persistence.repositories.notification_repo import (
    NotificationRepository,
)
from app.infrastructure.persistence.repositories.sync_job_repo import SyncJobRepository

__all__ = [
    "BaseRepository",
    "EmailAccountRepository",
    "EmailMetadataRepository",
    "NotificationRepository",
    "SyncJobRepository",
]
