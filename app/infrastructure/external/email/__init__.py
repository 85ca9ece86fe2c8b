"""Email integration: provider clients, factory, credential encryption, OAuth drivers."""

from app.infrastructure.external.email.encryption import (
    CredentialEncryptor,
    get_credential_encryptor,
)
from app.infrastructure.external.email.factory import MailProviderClientFactory
from app.infrastructure.external.email.oauth_drivers import (
    GmailDriver,
    OAuthDriver,
    OAuthDriverRegistry,
    OAuthTokens,
    OutlookDriver,
    TokenRefreshError,
)

__all__ = [
    "CredentialEncryptor",
    "GmailDriver",
    "MailProviderClientFactory",
    "OAuthDriver",
    "OAuthDriverRegistry",
    "OAuthTokens",
    "OutlookDriver",
    "TokenRefreshError",
    "get_credential_encryptor",
]
