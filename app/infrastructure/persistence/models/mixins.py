"""Column mixins shared by the mailbox sync tables.

Jobs and accounts are user-owned rows with both timestamps; notifications are
append-only (created_at only); synced metadata carries just a CUID key.
"""

from datetime import datetime

from cuid2 import cuid_wrapper
from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

new_row_id = cuid_wrapper()


class CuidMixin:
    """CUID2 string primary key, generated client-side on insert."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=new_row_id)


class UserOwnedMixin:
    """Owner column. Users live in the identity service, so no FK."""

    @declared_attr
    def user_id(cls) -> Mapped[str]:
        return mapped_column(String, nullable=False, index=True)


class CreatedAtMixin:
    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )


class TimestampMixin(CreatedAtMixin):
    """created_at plus an updated_at bumped by every ORM or Core UPDATE."""

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )


class UserOwnedModel(CuidMixin, UserOwnedMixin, TimestampMixin):
    """Base columns for sync jobs and email accounts."""

    __abstract__ = True
