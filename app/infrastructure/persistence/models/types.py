"""Custom column types."""

from typing import Any

from sqlalchemy import String
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator

from app.infrastructure.external.email.encryption import get_credential_encryptor


class EncryptedString(TypeDecorator[str]):
    """String column stored Fernet-encrypted; plain text on the Python side."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return None
        return get_credential_encryptor().encrypt(str(value))

    def process_result_value(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return None
        return get_credential_encryptor().decrypt(value)
