"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure.
"""

from app.application.interfaces.repositories import (
    IEmailAccountRepository,
    IEmailMetadataRepository,
    INotificationRepository,
    ISyncJobRepository,
    ITransactionScope,
    SyncRepositories,
)
from app.application.interfaces.services import (
    IMailProviderClient,
    IMailProviderClientFactory,
    INotificationService,
)

__all__ = [
    "IEmailAccountRepository",
    "IEmailMetadataRepository",
    "IMailProviderClient",
    "IMailProviderClientFactory",
    "INotificationRepository",
    "INotificationService",
    "ISyncJobRepository",
    "ITransactionScope",
    "SyncRepositories",
]
