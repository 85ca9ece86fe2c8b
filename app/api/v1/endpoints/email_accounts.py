"""Email accounts API: list the caller's mailboxes and organize their messages.

Folder and move operations go straight to the provider through the account's
mail provider client (token refresh included).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from app.api.v1.dependencies import (
    get_client_factory,
    get_email_account_repo,
    get_user_id,
)
from app.application.dtos.email_account import MailboxAccount
from app.application.interfaces.services import IMailProviderClientFactory
from app.infrastructure.persistence.repositories import EmailAccountRepository
from app.schemas.email_account import (
    EmailAccountResponse,
    FolderCreateRequest,
    FolderResponse,
    MoveMessagesRequest,
    MoveMessagesResponse,
)

router = APIRouter()


async def _get_owned_account(
    account_id: str, user_id: str, email_account_repo: EmailAccountRepository
) -> MailboxAccount:
    account = await email_account_repo.get_by_id_and_user(account_id, user_id)
    if not account:
        raise HTTPException(status_code=404, detail="Email account not found")
    return account


@router.get("", response_model=list[EmailAccountResponse])
async def list_email_accounts(
    user_id: Annotated[str, Depends(get_user_id)],
    email_account_repo: Annotated[
        EmailAccountRepository, Depends(get_email_account_repo)
    ],
):
    """List the caller's connected mailboxes with their sync status."""
    accounts = await email_account_repo.find_by_user_id(user_id)
    return [EmailAccountResponse.model_validate(a) for a in accounts]


@router.get("/{account_id}/folders", response_model=list[FolderResponse])
async def list_folders(
    account_id: str,
    user_id: Annotated[str, Depends(get_user_id)],
    email_account_repo: Annotated[
        EmailAccountRepository, Depends(get_email_account_repo)
    ],
    client_factory: Annotated[IMailProviderClientFactory, Depends(get_client_factory)],
):
    """List Gmail labels or Outlook mail folders."""
    account = await _get_owned_account(account_id, user_id, email_account_repo)
    folders = await client_factory.for_account(account).list_folders(account)
    return [FolderResponse.model_validate(f) for f in folders]


@router.post("/{account_id}/folders", response_model=FolderResponse, status_code=201)
async def create_folder(
    account_id: str,
    body: FolderCreateRequest,
    user_id: Annotated[str, Depends(get_user_id)],
    email_account_repo: Annotated[
        EmailAccountRepository, Depends(get_email_account_repo)
    ],
    client_factory: Annotated[IMailProviderClientFactory, Depends(get_client_factory)],
):
    account = await _get_owned_account(account_id, user_id, email_account_repo)
    folder = await client_factory.for_account(account).create_folder(
        account, body.name, body.parent_id
    )
    return FolderResponse.model_validate(folder)


@router.post("/{account_id}/move", response_model=MoveMessagesResponse)
async def move_messages(
    account_id: str,
    body: MoveMessagesRequest,
    user_id: Annotated[str, Depends(get_user_id)],
    email_account_repo: Annotated[
        EmailAccountRepository, Depends(get_email_account_repo)
    ],
    client_factory: Annotated[IMailProviderClientFactory, Depends(get_client_factory)],
):
    """Move messages and/or everything from some senders into a folder (created on demand)."""
    account = await _get_owned_account(account_id, user_id, email_account_repo)
    client = client_factory.for_account(account)
    folder = await client.get_or_create_folder(account, body.folder_name)
    moved = await client.move_messages(
        account, body.message_ids, folder.id, body.remove_folder_id
    )
    moved += await client.move_messages_by_senders(account, body.senders, folder.id)
    return MoveMessagesResponse(folder=FolderResponse.model_validate(folder), moved=moved)
