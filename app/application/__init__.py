"""Application layer: interfaces, DTOs, services.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repositories, provider clients).
"""

from app.application.interfaces import (
    IEmailAccountRepository,
    IEmailMetadataRepository,
    IMailProviderClient,
    IMailProviderClientFactory,
    INotificationRepository,
    INotificationService,
    ISyncJobRepository,
    ITransactionScope,
)
from app.application.services import NotificationService, SyncEngine

__all__ = [
    "IEmailAccountRepository",
    "IEmailMetadataRepository",
    "IMailProviderClient",
    "IMailProviderClientFactory",
    "INotificationRepository",
    "INotificationService",
    "ISyncJobRepository",
    "ITransactionScope",
    "NotificationService",
    "SyncEngine",
]
