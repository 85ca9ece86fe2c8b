"""Email account repository. Read by user, persist token and sync state."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.email_account import MailboxAccount
from app.domain.enums import AccountSyncStatus, ProviderKind
from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.persistence.models.email_account import EmailAccount
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.utils.datetime import ensure_utc

# Columns a provider client may change on an existing account.
_MUTABLE_FIELDS = (
    "access_token",
    "refresh_token",
    "token_expires_at",
    "sync_status",
    "last_sync_at",
    "sync_error",
    "token_last_refreshed_at",
    "token_refresh_count",
    "token_refresh_failures",
)


def _to_account(a: EmailAccount) -> MailboxAccount:
    """Map EmailAccount ORM to MailboxAccount DTO (datetimes normalized to UTC)."""
    return MailboxAccount(
        id=a.id,
        user_id=a.user_id,
        provider=ProviderKind(a.provider),
        email_address=a.email_address,
        access_token=a.access_token,
        refresh_token=a.refresh_token,
        token_expires_at=ensure_utc(a.token_expires_at),
        sync_status=AccountSyncStatus(a.sync_status),
        last_sync_at=ensure_utc(a.last_sync_at),
        sync_error=a.sync_error,
        token_last_refreshed_at=ensure_utc(a.token_last_refreshed_at),
        token_refresh_count=a.token_refresh_count,
        token_refresh_failures=a.token_refresh_failures,
    )


class EmailAccountRepository(BaseRepository[EmailAccount]):
    """Email account repository. Implements IEmailAccountRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, EmailAccount)

    async def create_account(
        self,
        user_id: str,
        provider: ProviderKind,
        email_address: str,
        access_token: str | None,
        refresh_token: str | None,
        token_expires_at: datetime | None = None,
    ) -> MailboxAccount:
        """Create an account (used by the OAuth callback flow and seeding)."""
        account = EmailAccount(
            user_id=user_id,
            provider=provider.value,
            email_address=email_address.strip(),
            access_token=access_token,
            refresh_token=refresh_token,
            token_expires_at=token_expires_at,
            sync_status=AccountSyncStatus.PENDING.value,
        )
        return _to_account(await self.create(account))

    async def find_by_user_id(self, user_id: str) -> list[MailboxAccount]:
        """Return the user's accounts, oldest first."""
        result = await self.db.execute(
            select(EmailAccount)
            .where(EmailAccount.user_id == user_id)
            .order_by(EmailAccount.created_at, EmailAccount.id)
        )
        return [_to_account(a) for a in result.scalars().all()]

    async def count_by_user_id(self, user_id: str) -> int:
        """Return how many accounts the user has connected."""
        result = await self.db.execute(
            select(func.count()).select_from(EmailAccount).where(
                EmailAccount.user_id == user_id
            )
        )
        return int(result.scalar_one())

    async def get_account(self, account_id: str) -> MailboxAccount | None:
        """Return account by id, or None."""
        account = await self.get_by_id(account_id)
        return _to_account(account) if account else None

    async def get_by_id_and_user(
        self, account_id: str, user_id: str
    ) -> MailboxAccount | None:
        """Return account by id if it belongs to the user."""
        result = await self.db.execute(
            select(EmailAccount).where(
                EmailAccount.id == account_id,
                EmailAccount.user_id == user_id,
            )
        )
        account = result.scalar_one_or_none()
        return _to_account(account) if account else None

    async def save(self, account: MailboxAccount) -> None:
        """Copy token and sync fields onto the stored row.

        Raises:
            ResourceNotFoundException: If the account no longer exists.
        """
        row = await self.get_by_id(account.id)
        if row is None:
            raise ResourceNotFoundException("email_account", account.id)
        for name in _MUTABLE_FIELDS:
            value = getattr(account, name)
            if name == "sync_status":
                value = AccountSyncStatus(value).value
            setattr(row, name, value)
        await self.db.flush()
