"""Tests for the Outlook client against a mocked Microsoft Graph (httpx MockTransport)."""

import json
from collections.abc import Callable
from datetime import UTC, datetime

import httpx
import pytest

from app.application.dtos.mail import ListFilter
from app.domain.enums import FolderKind, ProviderKind
from app.domain.exceptions import ProviderAuthenticationException, ProviderRequestException
from app.infrastructure.external.email.providers.outlook_provider import GRAPH_URL, OutlookClient
from tests.fakes import FakeTokenDriver

Handler = Callable[[httpx.Request], httpx.Response]


def _graph_message(msg_id: str, address: str, name: str = "", *, is_read: bool = True) -> dict:
    return {
        "id": msg_id,
        "conversationId": f"conv-{msg_id}",
        "subject": f"About {msg_id}",
        "from": {"emailAddress": {"address": address, "name": name}},
        "toRecipients": [{"emailAddress": {"address": "me@contoso.com"}}],
        "receivedDateTime": "2024-01-15T10:30:00Z",
        "isRead": is_read,
    }


@pytest.fixture
def graph() -> dict:
    """Routes (method, path) to a handler; every request is recorded."""
    return {"routes": {}, "requests": []}


@pytest.fixture
async def outlook(scope, graph):
    def dispatch(request: httpx.Request) -> httpx.Response:
        graph["requests"].append(request)
        handler = graph["routes"].get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": {"code": "ErrorItemNotFound"}})
        return handler(request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(dispatch)) as http:
        yield OutlookClient(FakeTokenDriver(), scope, page_size=25, http_client=http)


async def test_list_page_maps_graph_messages(outlook, graph, create_account) -> None:
    account = await create_account("me@contoso.com", provider=ProviderKind.OUTLOOK)
    next_link = f"{GRAPH_URL}/messages?$skip=25"
    graph["routes"][("GET", "/v1.0/me/messages")] = lambda r: httpx.Response(
        200,
        json={
            "value": [
                _graph_message("o1", "alice@example.com", "Alice", is_read=False),
                _graph_message("o2", "bob@example.com"),
            ],
            "@odata.nextLink": next_link,
            "@odata.count": 310,
        },
    )

    page = await outlook.list_page(account)

    assert page.next_page_cursor == next_link
    assert page.total_estimate == 310
    first, second = page.messages
    assert first.sender == "Alice <alice@example.com>"
    assert first.recipient == "me@contoso.com"
    assert first.thread_id == "conv-o1"
    assert first.date == "2024-01-15T10:30:00Z"
    assert first.is_unread
    assert second.sender == "bob@example.com"
    assert not second.is_unread
    request = graph["requests"][0]
    assert request.headers["Authorization"] == "Bearer access-token"
    assert request.url.params["$top"] == "25"
    assert request.url.params["$orderby"] == "receivedDateTime desc"
    assert request.url.params["$count"] == "true"
    assert request.headers["ConsistencyLevel"] == "eventual"
    assert "$filter" not in request.url.params


async def test_total_estimate_falls_back_to_page_length(outlook, graph, create_account) -> None:
    account = await create_account("me@contoso.com", provider=ProviderKind.OUTLOOK)
    graph["routes"][("GET", "/v1.0/me/messages")] = lambda r: httpx.Response(
        200, json={"value": [_graph_message("o1", "a@example.com")]}
    )

    page = await outlook.list_page(account)

    assert page.total_estimate == 1
    assert page.next_page_cursor is None


async def test_list_page_inbox_and_date_window(outlook, graph, create_account) -> None:
    account = await create_account("me@contoso.com", provider=ProviderKind.OUTLOOK)
    graph["routes"][("GET", "/v1.0/me/mailFolders/inbox/messages")] = lambda r: httpx.Response(
        200, json={"value": []}
    )
    list_filter = ListFilter(
        inbox_only=True,
        after=datetime(2024, 1, 1, tzinfo=UTC),
        before=datetime(2024, 2, 1, tzinfo=UTC),
    )

    page = await outlook.list_page(account, None, list_filter)

    assert page.messages == []
    assert graph["requests"][0].url.params["$filter"] == (
        "receivedDateTime lt 2024-02-01T00:00:00Z and receivedDateTime ge 2024-01-01T00:00:00Z"
    )


async def test_cursor_is_followed_verbatim(outlook, graph, create_account) -> None:
    account = await create_account("me@contoso.com", provider=ProviderKind.OUTLOOK)
    graph["routes"][("GET", "/v1.0/me/messages")] = lambda r: httpx.Response(
        200, json={"value": []}
    )

    await outlook.list_page(account, f"{GRAPH_URL}/messages?$skip=50")

    assert graph["requests"][0].url.params["$skip"] == "50"
    assert "$top" not in graph["requests"][0].url.params
    assert graph["requests"][0].headers["ConsistencyLevel"] == "eventual"


async def test_unauthorized_twice_raises_authentication_error(
    outlook, graph, create_account
) -> None:
    account = await create_account("me@contoso.com", provider=ProviderKind.OUTLOOK)
    graph["routes"][("GET", "/v1.0/me/messages")] = lambda r: httpx.Response(401)

    with pytest.raises(ProviderAuthenticationException):
        await outlook.list_page(account)

    tokens = [r.headers["Authorization"] for r in graph["requests"]]
    assert tokens == ["Bearer access-token", "Bearer fresh-1"]


async def test_graph_error_becomes_provider_error(outlook, graph, create_account) -> None:
    account = await create_account("me@contoso.com", provider=ProviderKind.OUTLOOK)
    graph["routes"][("GET", "/v1.0/me/mailFolders")] = lambda r: httpx.Response(
        503, text="Service Unavailable"
    )

    with pytest.raises(ProviderRequestException) as exc_info:
        await outlook.list_folders(account)

    assert exc_info.value.status_code == 503


async def test_list_folders_marks_well_known_names_system(outlook, graph, create_account) -> None:
    account = await create_account("me@contoso.com", provider=ProviderKind.OUTLOOK)
    graph["routes"][("GET", "/v1.0/me/mailFolders")] = lambda r: httpx.Response(
        200,
        json={
            "value": [
                {"id": "f-inbox", "displayName": "Inbox", "totalItemCount": 40, "unreadItemCount": 2},
                {"id": "f-receipts", "displayName": "Receipts"},
            ]
        },
    )

    folders = await outlook.list_folders(account)

    assert [(f.name, f.kind) for f in folders] == [
        ("Inbox", FolderKind.SYSTEM),
        ("Receipts", FolderKind.USER),
    ]
    assert folders[0].total_count == 40


async def test_create_child_folder(outlook, graph, create_account) -> None:
    account = await create_account("me@contoso.com", provider=ProviderKind.OUTLOOK)
    graph["routes"][("POST", "/v1.0/me/mailFolders/f-parent/childFolders")] = (
        lambda r: httpx.Response(201, json={"id": "f-child", **json.loads(r.content)})
    )

    folder = await outlook.create_folder(account, "Child", parent_id="f-parent")

    assert folder.id == "f-child"
    assert folder.name == "Child"


async def test_find_folder_quotes_name(outlook, graph, create_account) -> None:
    account = await create_account("me@contoso.com", provider=ProviderKind.OUTLOOK)
    graph["routes"][("GET", "/v1.0/me/mailFolders")] = lambda r: httpx.Response(
        200, json={"value": [{"id": "f-1", "displayName": "Bob's Mail"}]}
    )

    folder = await outlook.get_or_create_folder(account, "Bob's Mail")

    assert folder.id == "f-1"
    assert graph["requests"][0].url.params["$filter"] == "displayName eq 'Bob''s Mail'"


async def test_move_by_senders_follows_next_links(outlook, graph, create_account) -> None:
    account = await create_account("me@contoso.com", provider=ProviderKind.OUTLOOK)
    second_page = f"{GRAPH_URL}/messages?$skiptoken=abc"

    def search(request: httpx.Request) -> httpx.Response:
        if "$skiptoken" in request.url.params:
            return httpx.Response(200, json={"value": [{"id": "o3"}]})
        return httpx.Response(
            200,
            json={"value": [{"id": "o1"}, {"id": "o2"}], "@odata.nextLink": second_page},
        )

    graph["routes"][("GET", "/v1.0/me/messages")] = search
    for msg_id in ("o1", "o2", "o3"):
        graph["routes"][("POST", f"/v1.0/me/messages/{msg_id}/move")] = lambda r: httpx.Response(
            201, json={"id": "moved"}
        )

    moved = await outlook.move_messages_by_senders(account, ["News@Example.com"], "f-news")

    assert moved == 3
    first = graph["requests"][0]
    assert first.url.params["$filter"] == (
        "from/emailAddress/address eq 'news@example.com' and parentFolderId ne 'f-news'"
    )
    moves = [r for r in graph["requests"] if r.method == "POST"]
    assert [json.loads(r.content) for r in moves] == [{"destinationId": "f-news"}] * 3
