"""Persistence models: ORM entities and mixins."""

from app.infrastructure.persistence.models.email_account import EmailAccount
from app.infrastructure.persistence.models.email_metadata import EmailMetadata
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    TimestampMixin,
    UserOwnedMixin,
    UserOwnedModel,
)
from app.infrastructure.persistence.models.notification import Notification
from app.infrastructure.persistence.models.sync_job import SyncJob

__all__ = [
    "CreatedAtMixin",
    "CuidMixin",
    "EmailAccount",
    "EmailMetadata",
    "Notification",
    "SyncJob",
    "TimestampMixin",
    "UserOwnedMixin",
    "UserOwnedModel",
]
