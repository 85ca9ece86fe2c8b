"""Tests for OAuth token encryption at rest."""

import pytest
from sqlalchemy import text

from app.infrastructure.external.email.encryption import CredentialEncryptor


def test_encrypted_value_is_not_plain_text() -> None:
    encryptor = CredentialEncryptor("secret", "salt")
    encrypted = encryptor.encrypt("ya29.access-token")
    assert "ya29" not in encrypted
    assert encryptor.decrypt(encrypted) == "ya29.access-token"


def test_decrypt_with_other_key_fails() -> None:
    encrypted = CredentialEncryptor("secret", "salt").encrypt("token")
    with pytest.raises(ValueError, match="Failed to decrypt"):
        CredentialEncryptor("other-secret", "salt").decrypt(encrypted)


def test_settings_key_is_used_by_default() -> None:
    encrypted = CredentialEncryptor().encrypt("token")
    assert CredentialEncryptor().decrypt(encrypted) == "token"


async def test_token_columns_are_encrypted_in_database(db_session, create_account) -> None:
    account = await create_account(access_token="plain-access", refresh_token="plain-refresh")
    row = (
        await db_session.execute(
            text("SELECT access_token, refresh_token FROM email_account WHERE id = :id"),
            {"id": account.id},
        )
    ).one()
    assert row.access_token != "plain-access"
    assert CredentialEncryptor().decrypt(row.refresh_token) == "plain-refresh"
