"""Domain layer: entities, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.entities import SyncJobEntity
from app.domain.enums import (
    AccountSyncStatus,
    NotificationType,
    ProviderKind,
    SyncJobStatus,
    SyncJobType,
)
from app.domain.exceptions import (
    MailSyncException,
    ProviderAuthenticationException,
    ResourceNotFoundException,
    SyncJobAlreadyRunningException,
    TokenRefreshException,
    ValidationException,
)

__all__ = [
    # Entities
    "SyncJobEntity",
    # Enums
    "AccountSyncStatus",
    "NotificationType",
    "ProviderKind",
    "SyncJobStatus",
    "SyncJobType",
    # Exceptions
    "MailSyncException",
    "ProviderAuthenticationException",
    "ResourceNotFoundException",
    "SyncJobAlreadyRunningException",
    "TokenRefreshException",
    "ValidationException",
]
