"""Outlook/Office 365 client using Microsoft Graph API (httpx)."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx

from app.application.dtos.mail import ListFilter, MailFolder, MessageSummary, PageResult
from app.application.interfaces.repositories import ITransactionScope
from app.domain.enums import FolderKind, ProviderKind
from app.domain.exceptions import ProviderRequestException
from app.infrastructure.external.email.oauth_drivers import OutlookDriver
from app.infrastructure.external.email.providers.base import (
    BaseMailProviderClient,
    ProviderUnauthorized,
)
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import to_iso_z

logger = get_logger(__name__)

GRAPH_URL = "https://graph.microsoft.com/v1.0/me"
MESSAGE_SELECT = (
    "id,subject,from,toRecipients,receivedDateTime,bodyPreview,"
    "isRead,conversationId,parentFolderId"
)
FOLDER_PAGE_SIZE = 50
SENDER_SEARCH_PAGE_SIZE = 100
COUNT_HEADERS = {"ConsistencyLevel": "eventual"}
SYSTEM_FOLDER_NAMES = frozenset(
    {
        "Inbox",
        "Drafts",
        "Sent Items",
        "Deleted Items",
        "Junk Email",
        "Archive",
        "Outbox",
        "Conversation History",
    }
)


def _odata_string(value: str) -> str:
    """Quote a string literal for an OData $filter (single quotes doubled)."""
    return "'" + value.replace("'", "''") + "'"


def _date_filter(list_filter: ListFilter) -> str | None:
    clauses = []
    if list_filter.before is not None:
        clauses.append(f"receivedDateTime lt {to_iso_z(list_filter.before)}")
    if list_filter.after is not None:
        clauses.append(f"receivedDateTime ge {to_iso_z(list_filter.after)}")
    return " and ".join(clauses) or None


def _to_summary(msg: dict[str, Any]) -> MessageSummary:
    """Map a Graph message to MessageSummary ("Name <address>" sender like an RFC header)."""
    sender = ""
    email_address = (msg.get("from") or {}).get("emailAddress") or {}
    address = email_address.get("address") or ""
    name = email_address.get("name") or ""
    if address:
        sender = f"{name} <{address}>" if name else address
    recipients = msg.get("toRecipients") or []
    recipient = ""
    if recipients:
        recipient = (recipients[0].get("emailAddress") or {}).get("address") or ""
    return MessageSummary(
        id=msg["id"],
        thread_id=msg.get("conversationId"),
        sender=sender,
        recipient=recipient,
        subject=msg.get("subject") or "",
        date=msg.get("receivedDateTime") or "",
        is_unread=not msg.get("isRead", False),
    )


def _to_folder(folder: dict[str, Any]) -> MailFolder:
    name = folder.get("displayName") or folder["id"]
    return MailFolder(
        id=folder["id"],
        name=name,
        kind=FolderKind.SYSTEM if name in SYSTEM_FOLDER_NAMES else FolderKind.USER,
        total_count=int(folder.get("totalItemCount") or 0),
        unread_count=int(folder.get("unreadItemCount") or 0),
    )


class OutlookClient(BaseMailProviderClient):
    """IMailProviderClient for Outlook/Office 365 via Microsoft Graph.

    The page cursor is Graph's full @odata.nextLink URL.
    """

    PROVIDER_KIND = ProviderKind.OUTLOOK

    def __init__(
        self,
        driver: OutlookDriver,
        scope: ITransactionScope,
        *,
        page_size: int = 100,
        refresh_window_seconds: int = 300,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(
            driver,
            scope,
            page_size=page_size,
            refresh_window_seconds=refresh_window_seconds,
        )
        self._shared_http = http_client
        self._timeout = timeout

    @asynccontextmanager
    async def _http_cm(self):
        """Yield shared HTTP client or a short-lived one (connection reuse when shared)."""
        if self._shared_http is not None:
            yield self._shared_http
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def _request(
        self,
        token: str,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Send one Graph request; 401 becomes ProviderUnauthorized, other errors ProviderRequestException."""
        async with self._http_cm() as client:
            try:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers={"Authorization": f"Bearer {token}", **(headers or {})},
                )
            except httpx.HTTPError as e:
                raise ProviderRequestException(f"Graph request failed: {e}") from e
        if response.status_code == 401:
            raise ProviderUnauthorized()
        if response.is_error:
            raise ProviderRequestException(
                f"Graph API error {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        return response.json()

    async def _fetch_page(
        self, token: str, page_cursor: str | None, list_filter: ListFilter
    ) -> PageResult:
        if page_cursor:
            data = await self._request(token, "GET", page_cursor, headers=COUNT_HEADERS)
        else:
            url = (
                f"{GRAPH_URL}/mailFolders/inbox/messages"
                if list_filter.inbox_only
                else f"{GRAPH_URL}/messages"
            )
            params: dict[str, Any] = {
                "$top": self._page_size,
                "$select": MESSAGE_SELECT,
                "$orderby": "receivedDateTime desc",
                "$count": "true",
            }
            odata_filter = _date_filter(list_filter)
            if odata_filter:
                params["$filter"] = odata_filter
            # $count with $filter or $orderby is an advanced query.
            data = await self._request(
                token, "GET", url, params=params, headers=COUNT_HEADERS
            )
        summaries = [_to_summary(m) for m in data.get("value", [])]
        return PageResult(
            messages=summaries,
            next_page_cursor=data.get("@odata.nextLink"),
            total_estimate=int(data.get("@odata.count", len(summaries))),
        )

    async def _fetch_folders(self, token: str) -> list[MailFolder]:
        data = await self._request(
            token, "GET", f"{GRAPH_URL}/mailFolders", params={"$top": FOLDER_PAGE_SIZE}
        )
        return [_to_folder(f) for f in data.get("value", [])]

    async def _create_folder(
        self, token: str, name: str, parent_id: str | None
    ) -> MailFolder:
        url = (
            f"{GRAPH_URL}/mailFolders/{parent_id}/childFolders"
            if parent_id
            else f"{GRAPH_URL}/mailFolders"
        )
        folder = await self._request(token, "POST", url, json={"displayName": name})
        return _to_folder(folder)

    async def _find_folder(self, token: str, name: str) -> MailFolder | None:
        data = await self._request(
            token,
            "GET",
            f"{GRAPH_URL}/mailFolders",
            params={"$filter": f"displayName eq {_odata_string(name)}"},
        )
        folders = data.get("value", [])
        return _to_folder(folders[0]) if folders else None

    async def _move_messages(
        self,
        token: str,
        message_ids: list[str],
        folder_id: str,
        remove_folder_id: str | None,
    ) -> int:
        # A Graph move already removes the message from its current folder.
        moved = 0
        for message_id in message_ids:
            await self._request(
                token,
                "POST",
                f"{GRAPH_URL}/messages/{message_id}/move",
                json={"destinationId": folder_id},
            )
            moved += 1
        return moved

    async def _move_by_senders(self, token: str, senders: list[str], folder_id: str) -> int:
        moved = 0
        for sender in senders:
            odata_filter = (
                f"from/emailAddress/address eq {_odata_string(sender)} "
                f"and parentFolderId ne {_odata_string(folder_id)}"
            )
            message_ids: list[str] = []
            data = await self._request(
                token,
                "GET",
                f"{GRAPH_URL}/messages",
                params={
                    "$filter": odata_filter,
                    "$select": "id",
                    "$top": SENDER_SEARCH_PAGE_SIZE,
                },
            )
            while True:
                message_ids.extend(m["id"] for m in data.get("value", []))
                next_link = data.get("@odata.nextLink")
                if not next_link:
                    break
                data = await self._request(token, "GET", next_link)
            logger.debug("Moving %d Outlook messages from %s", len(message_ids), sender)
            moved += await self._move_messages(token, message_ids, folder_id, None)
        return moved
