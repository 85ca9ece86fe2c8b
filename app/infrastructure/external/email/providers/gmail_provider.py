"""Gmail client using the Gmail API (google-api-python-client) with batch metadata fetch."""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.application.dtos.mail import ListFilter, MailFolder, MessageSummary, PageResult
from app.application.interfaces.repositories import ITransactionScope
from app.domain.enums import FolderKind, ProviderKind
from app.domain.exceptions import ProviderRequestException
from app.infrastructure.external.email.oauth_drivers import GmailDriver
from app.infrastructure.external.email.providers.base import (
    BaseMailProviderClient,
    ProviderUnauthorized,
)
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import to_epoch_seconds

logger = get_logger(__name__)

BATCH_SIZE = 100
BATCH_MODIFY_LIMIT = 1000
SENDER_SEARCH_PAGE_SIZE = 500
METADATA_HEADERS = ["From", "To", "Subject", "Date", "In-Reply-To"]
# Built services kept per access token (one per concurrently syncing account).
SERVICE_CACHE_SIZE = 16


def _build_gmail_service(credentials: Credentials) -> Any:
    return build("gmail", "v1", credentials=credentials, cache_discovery=False)


def _date_query(list_filter: ListFilter) -> str:
    """Gmail search terms for the date window (epoch seconds)."""
    terms = []
    if list_filter.before is not None:
        terms.append(f"before:{to_epoch_seconds(list_filter.before)}")
    if list_filter.after is not None:
        terms.append(f"after:{to_epoch_seconds(list_filter.after)}")
    return " ".join(terms)


def _to_summary(msg: dict[str, Any]) -> MessageSummary:
    """Map a format=metadata Gmail message to MessageSummary."""
    headers = {
        h["name"].lower(): h["value"]
        for h in msg.get("payload", {}).get("headers", [])
    }
    return MessageSummary(
        id=msg["id"],
        thread_id=msg.get("threadId"),
        sender=headers.get("from", ""),
        recipient=headers.get("to", ""),
        subject=headers.get("subject", ""),
        date=headers.get("date", ""),
        is_unread="UNREAD" in msg.get("labelIds", []),
        in_reply_to=headers.get("in-reply-to"),
    )


def _to_folder(label: dict[str, Any]) -> MailFolder:
    return MailFolder(
        id=label["id"],
        name=label.get("name", label["id"]),
        kind=FolderKind.SYSTEM if label.get("type") == "system" else FolderKind.USER,
        total_count=int(label.get("messagesTotal", 0)),
        unread_count=int(label.get("messagesUnread", 0)),
    )


class GmailClient(BaseMailProviderClient):
    """IMailProviderClient for Gmail.

    A Gmail API service is built per access token and kept in a small LRU, so
    jobs for different accounts can share one client. Blocking client calls
    run in a worker thread.
    """

    PROVIDER_KIND = ProviderKind.GMAIL

    def __init__(
        self,
        driver: GmailDriver,
        scope: ITransactionScope,
        *,
        page_size: int = 100,
        refresh_window_seconds: int = 300,
        service_factory: Callable[[Credentials], Any] | None = None,
    ) -> None:
        super().__init__(
            driver,
            scope,
            page_size=page_size,
            refresh_window_seconds=refresh_window_seconds,
        )
        self._service_factory = service_factory or _build_gmail_service
        self._services: OrderedDict[str, Any] = OrderedDict()

    async def _get_service(self, token: str) -> Any:
        service = self._services.get(token)
        if service is not None:
            self._services.move_to_end(token)
            return service
        service = await asyncio.to_thread(self._service_factory, Credentials(token=token))
        self._services[token] = service
        while len(self._services) > SERVICE_CACHE_SIZE:
            self._services.popitem(last=False)
        return service

    @staticmethod
    async def _execute(request: Any) -> Any:
        """Execute a Gmail API request in a thread, mapping HTTP errors."""
        try:
            return await asyncio.to_thread(request.execute)
        except HttpError as e:
            if e.resp.status == 401:
                raise ProviderUnauthorized() from e
            raise ProviderRequestException(
                f"Gmail API error {e.resp.status}: {e.reason}",
                status_code=e.resp.status,
            ) from e
        except OSError as e:
            raise ProviderRequestException(f"Gmail API request failed: {e}") from e

    async def _fetch_page(
        self, token: str, page_cursor: str | None, list_filter: ListFilter
    ) -> PageResult:
        service = await self._get_service(token)
        params: dict[str, Any] = {"userId": "me", "maxResults": self._page_size}
        if page_cursor:
            params["pageToken"] = page_cursor
        if list_filter.inbox_only:
            params["labelIds"] = ["INBOX"]
        query = _date_query(list_filter)
        if query:
            params["q"] = query
        listing = await self._execute(service.users().messages().list(**params))
        message_ids = [m["id"] for m in listing.get("messages", [])]
        summaries = await self._fetch_summaries(service, message_ids)
        return PageResult(
            messages=summaries,
            next_page_cursor=listing.get("nextPageToken"),
            total_estimate=int(listing.get("resultSizeEstimate", len(summaries))),
        )

    async def _fetch_summaries(
        self, service: Any, message_ids: list[str]
    ) -> list[MessageSummary]:
        """Fetch header metadata via the batch API; failed items are logged and dropped."""
        summaries: list[MessageSummary] = []
        for batch_start in range(0, len(message_ids), BATCH_SIZE):
            batch_ids = message_ids[batch_start : batch_start + BATCH_SIZE]
            batch_results: dict[str, dict[str, Any]] = {}

            def add_callback(msg_id: str):
                def cb(
                    request_id: str,
                    response: dict[str, Any],
                    exception: Exception | None,
                ) -> None:
                    if exception:
                        logger.warning("Gmail batch item %s: %s", msg_id, exception)
                    else:
                        batch_results[msg_id] = response

                return cb

            batch = service.new_batch_http_request()
            for msg_id in batch_ids:
                batch.add(
                    service.users().messages().get(
                        userId="me",
                        id=msg_id,
                        format="metadata",
                        metadataHeaders=METADATA_HEADERS,
                    ),
                    callback=add_callback(msg_id),
                )
            await self._execute(batch)
            # Keep provider order.
            for msg_id in batch_ids:
                if msg_id in batch_results:
                    summaries.append(_to_summary(batch_results[msg_id]))
        return summaries

    async def _list_labels(self, token: str) -> list[dict[str, Any]]:
        service = await self._get_service(token)
        response = await self._execute(service.users().labels().list(userId="me"))
        return response.get("labels", [])

    async def _fetch_folders(self, token: str) -> list[MailFolder]:
        return [_to_folder(label) for label in await self._list_labels(token)]

    async def _create_folder(
        self, token: str, name: str, parent_id: str | None
    ) -> MailFolder:
        # Gmail nests labels by name ("Parent/Child"), not by id.
        service = await self._get_service(token)
        body = {
            "name": name,
            "labelListVisibility": "labelShow",
            "messageListVisibility": "show",
        }
        label = await self._execute(service.users().labels().create(userId="me", body=body))
        return _to_folder(label)

    async def _find_folder(self, token: str, name: str) -> MailFolder | None:
        for label in await self._list_labels(token):
            if label.get("name") == name:
                return _to_folder(label)
        return None

    async def _batch_modify(
        self,
        service: Any,
        message_ids: list[str],
        folder_id: str,
        remove_folder_id: str | None,
    ) -> None:
        for start in range(0, len(message_ids), BATCH_MODIFY_LIMIT):
            body: dict[str, Any] = {
                "ids": message_ids[start : start + BATCH_MODIFY_LIMIT],
                "addLabelIds": [folder_id],
            }
            if remove_folder_id:
                body["removeLabelIds"] = [remove_folder_id]
            await self._execute(
                service.users().messages().batchModify(userId="me", body=body)
            )

    async def _move_messages(
        self,
        token: str,
        message_ids: list[str],
        folder_id: str,
        remove_folder_id: str | None,
    ) -> int:
        service = await self._get_service(token)
        await self._batch_modify(service, message_ids, folder_id, remove_folder_id)
        return len(message_ids)

    async def _move_by_senders(self, token: str, senders: list[str], folder_id: str) -> int:
        labels = await self._list_labels(token)
        label_name = next((lb.get("name") for lb in labels if lb["id"] == folder_id), None)
        if label_name is None:
            raise ProviderRequestException(f"Gmail label not found: {folder_id}")
        service = await self._get_service(token)
        moved = 0
        for sender in senders:
            query = f'from:{sender} -label:"{label_name}"'
            message_ids: list[str] = []
            page_token: str | None = None
            while True:
                params: dict[str, Any] = {
                    "userId": "me",
                    "q": query,
                    "maxResults": SENDER_SEARCH_PAGE_SIZE,
                }
                if page_token:
                    params["pageToken"] = page_token
                listing = await self._execute(service.users().messages().list(**params))
                message_ids.extend(m["id"] for m in listing.get("messages", []))
                page_token = listing.get("nextPageToken")
                if not page_token:
                    break
            if message_ids:
                await self._batch_modify(service, message_ids, folder_id, None)
                moved += len(message_ids)
        return moved
