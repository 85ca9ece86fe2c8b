"""Email account API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.domain.enums import AccountSyncStatus, FolderKind, ProviderKind


class EmailAccountResponse(BaseModel):
    """Connected mailbox (tokens are never returned)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    provider: ProviderKind
    email_address: str
    sync_status: AccountSyncStatus
    last_sync_at: datetime | None = None
    sync_error: str | None = None
    token_expires_at: datetime | None = None
    token_last_refreshed_at: datetime | None = None
    token_refresh_count: int = 0
    token_refresh_failures: int = 0


class FolderResponse(BaseModel):
    """Gmail label or Outlook mail folder."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    kind: FolderKind
    total_count: int = 0
    unread_count: int = 0


class FolderCreateRequest(BaseModel):
    """Request body for POST /email-accounts/{id}/folders."""

    name: str = Field(..., min_length=1, max_length=255)
    parent_id: str | None = Field(default=None, description="Parent folder (Outlook only)")


class MoveMessagesRequest(BaseModel):
    """Move messages, or everything from some senders, into a folder.

    The folder is looked up by name and created when missing.
    """

    folder_name: str = Field(..., min_length=1, max_length=255)
    message_ids: list[str] = Field(default_factory=list)
    senders: list[str] = Field(default_factory=list)
    remove_folder_id: str | None = Field(
        default=None, description="Label to remove while moving (Gmail only)"
    )

    @model_validator(mode="after")
    def require_messages_or_senders(self) -> "MoveMessagesRequest":
        if not self.message_ids and not self.senders:
            raise ValueError("Provide message_ids or senders")
        return self


class MoveMessagesResponse(BaseModel):
    """Response for POST /email-accounts/{id}/move."""

    folder: FolderResponse
    moved: int
