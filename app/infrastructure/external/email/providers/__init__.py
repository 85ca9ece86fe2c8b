"""Mail provider clients: Gmail, Outlook."""

from app.infrastructure.external.email.providers.base import (
    BaseMailProviderClient,
    ProviderUnauthorized,
)
from app.infrastructure.external.email.providers.gmail_provider import GmailClient
from app.infrastructure.external.email.providers.outlook_provider import OutlookClient

__all__ = [
    "BaseMailProviderClient",
    "GmailClient",
    "OutlookClient",
    "ProviderUnauthorized",
]
