"""Token encryption for stored OAuth credentials (Fernet)."""

import base64
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from app.core.config import get_settings

DECRYPTION_ERROR_MSG = "Failed to decrypt credentials - invalid or corrupted data"


class CredentialEncryptor:
    """Encrypt/decrypt OAuth tokens using Fernet (key derived from app secret)."""

    def __init__(self, secret_key: str | None = None, salt: str | None = None) -> None:
        self._fernet = Fernet(self._derive_key(secret_key, salt))

    @staticmethod
    def _derive_key(secret_key: str | None, salt: str | None) -> bytes:
        """Derive 32-byte key from secret_key + encryption_salt via PBKDF2-HMAC-SHA256."""
        if secret_key is None or salt is None:
            settings = get_settings()
            secret_key = secret_key or settings.secret_key.get_secret_value()
            salt = salt or settings.encryption_salt.get_secret_value()
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt.encode(),
            iterations=100_000,
        )
        derived = kdf.derive(secret_key.encode())
        return base64.urlsafe_b64encode(derived)

    def encrypt(self, value: str) -> str:
        """Encrypt a token string to a string safe for storage."""
        return self._fernet.encrypt(value.encode()).decode()

    def decrypt(self, encrypted: str) -> str:
        """Decrypt a stored token string.

        Raises:
            ValueError: If the data was not produced with this key.
        """
        try:
            return self._fernet.decrypt(encrypted.encode()).decode()
        except InvalidToken as e:
            raise ValueError(DECRYPTION_ERROR_MSG) from e


@lru_cache
def get_credential_encryptor() -> CredentialEncryptor:
    """Return the process-wide encryptor (PBKDF2 runs once per process)."""
    return CredentialEncryptor()
