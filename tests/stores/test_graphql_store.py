from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from tallysheet.contracts.exceptions import AuthenticationError, StoreError
from tallysheet.contracts.records import RecordModel, eq_filter
from tallysheet.stores.graphql import GraphQLStore

ENDPOINT = "https://api.example.test/graphql"


def _store(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> GraphQLStore:
    return GraphQLStore(endpoint=ENDPOINT, transport=httpx.MockTransport(handler), max_retries=0, **kwargs)


def _body(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content)


@pytest.mark.asyncio
async def test_create_sends_mutation_with_input_and_auth_header() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": {"createLineItem": {"id": "li-1", "minutes": 30}}})

    async with _store(handler, token="secret") as store:
        response = await store.create(RecordModel.LINE_ITEM, {"timesheetId": "ts-1", "minutes": 30})

    assert response == {"createLineItem": {"id": "li-1", "minutes": 30}}
    body = _body(seen[0])
    assert "createLineItem(input: $input)" in body["query"]
    assert "CreateLineItemInput!" in body["query"]
    assert body["variables"] == {"input": {"timesheetId": "ts-1", "minutes": 30}}
    assert seen[0].headers["Authorization"] == "secret"


@pytest.mark.asyncio
async def test_update_and_delete_carry_record_id() -> None:
    bodies: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(_body(request))
        return httpx.Response(200, json={"data": {"result": {"id": "ts-1"}}})

    async with _store(handler) as store:
        await store.update(RecordModel.TIMESHEET, "ts-1", {"rate": 2})
        await store.delete(RecordModel.TIMESHEET, "ts-1")

    assert "updateTimesheet" in bodies[0]["query"]
    assert bodies[0]["variables"] == {"input": {"rate": 2, "id": "ts-1"}}
    assert "deleteTimesheet" in bodies[1]["query"]
    assert bodies[1]["variables"] == {"input": {"id": "ts-1"}}


@pytest.mark.asyncio
async def test_list_follows_next_token_pages() -> None:
    bodies: list[dict[str, Any]] = []
    pages = [
        {"items": [{"id": "a"}, None], "nextToken": "page-2"},
        {"items": [{"id": "b"}], "nextToken": None},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(_body(request))
        return httpx.Response(200, json={"data": {"listLineItems": pages[len(bodies) - 1]}})

    async with _store(handler) as store:
        response = await store.list(RecordModel.LINE_ITEM, eq_filter("timesheetId", "ts-1"))

    assert response == {"data": [{"id": "a"}, {"id": "b"}], "nextToken": None}
    assert [body["variables"]["nextToken"] for body in bodies] == [None, "page-2"]
    assert bodies[0]["variables"]["filter"] == {"timesheetId": {"eq": "ts-1"}}


@pytest.mark.asyncio
async def test_graphql_errors_raise_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"errors": [{"message": "boom"}]})

    async with _store(handler) as store:
        with pytest.raises(StoreError, match="boom") as exc_info:
            await store.delete(RecordModel.LINE_ITEM, "li-1")

    assert exc_info.value.operation == "delete"


@pytest.mark.parametrize("status_code", [401, 403])
@pytest.mark.asyncio
async def test_rejected_credentials_raise_authentication_error(status_code: int) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code)

    async with _store(handler) as store:
        with pytest.raises(AuthenticationError):
            await store.list(RecordModel.TIMESHEET)


@pytest.mark.asyncio
async def test_server_error_and_invalid_json_raise_store_error() -> None:
    responses = [httpx.Response(500), httpx.Response(200, text="not json"), httpx.Response(200, json={"data": None})]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    async with _store(handler) as store:
        with pytest.raises(StoreError, match="HTTP 500"):
            await store.create(RecordModel.TIMESHEET, {})
        with pytest.raises(StoreError, match="invalid JSON"):
            await store.create(RecordModel.TIMESHEET, {})
        with pytest.raises(StoreError, match="missing data"):
            await store.create(RecordModel.TIMESHEET, {})


@pytest.mark.asyncio
async def test_transport_failure_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _store(handler) as store:
        with pytest.raises(StoreError, match="request failed"):
            await store.list(RecordModel.TIMESHEET)


@pytest.mark.asyncio
async def test_requires_context_manager() -> None:
    store = GraphQLStore(endpoint=ENDPOINT)

    with pytest.raises(StoreError, match="not initialized"):
        await store.list(RecordModel.TIMESHEET)


@pytest.mark.asyncio
async def test_observe_polls_and_emits_only_changes() -> None:
    results = [
        [{"id": "a"}],
        [{"id": "a"}],
        [{"id": "a"}, {"id": "b"}],
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        items = results.pop(0) if results else [{"id": "a"}, {"id": "b"}]
        return httpx.Response(200, json={"data": {"listTimesheets": {"items": items, "nextToken": None}}})

    async with _store(handler, poll_interval=0.001) as store:
        stream = store.observe(RecordModel.TIMESHEET)
        first = await anext(stream)
        second = await anext(stream)
        await stream.aclose()

    assert [record["id"] for record in first.items] == ["a"]
    assert [record["id"] for record in second.items] == ["a", "b"]
    assert results == []


@pytest.mark.asyncio
async def test_observe_survives_transient_errors_but_not_auth_failures() -> None:
    responses = [
        httpx.Response(500),
        httpx.Response(200, json={"data": {"listTimesheets": {"items": [{"id": "a"}], "nextToken": None}}}),
        httpx.Response(401),
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    async with _store(handler, poll_interval=0.001) as store:
        stream = store.observe(RecordModel.TIMESHEET)
        snapshot = await anext(stream)
        with pytest.raises(AuthenticationError):
            await anext(stream)

    assert [record["id"] for record in snapshot.items] == ["a"]


@pytest.mark.asyncio
async def test_selections_request_the_wire_fields() -> None:
    bodies: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(_body(request))
        return httpx.Response(200, json={"data": {"result": {"id": "x"}}})

    async with _store(handler) as store:
        await store.update(RecordModel.TIMESHEET, "ts-1", {"rate": 2})
        await store.update(RecordModel.LINE_ITEM, "li-1", {"minutes": 5})

    assert "{ id owner createdAt updatedAt description rate }" in bodies[0]["query"]
    assert "{ id owner createdAt updatedAt timesheetId date minutes }" in bodies[1]["query"]
