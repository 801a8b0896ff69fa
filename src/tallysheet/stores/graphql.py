"""Hosted GraphQL record store adapter."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from types import TracebackType
from typing import Any

import httpx

from tallysheet.contracts.exceptions import AuthenticationError, StoreError
from tallysheet.contracts.records import LINE_ITEM_FIELDS, SYSTEM_FIELDS, TIMESHEET_FIELDS, RecordModel, Snapshot
from tallysheet.contracts.store import RemoteStore
from tallysheet.stores._retrying_transport import RetryingTransport

_LOG = logging.getLogger(__name__)

_SELECTIONS: dict[RecordModel, str] = {
    RecordModel.TIMESHEET: " ".join((*SYSTEM_FIELDS, *TIMESHEET_FIELDS)),
    RecordModel.LINE_ITEM: " ".join((*SYSTEM_FIELDS, *LINE_ITEM_FIELDS)),
}
_MAX_PAGES = 50
_PAGE_SIZE = 100


def _mutation(action: str, model: RecordModel) -> str:
    name = f"{action}{model.value}"
    return (
        f"mutation {name[0].upper()}{name[1:]}($input: {name[0].upper()}{name[1:]}Input!) "
        f"{{ {name}(input: $input) {{ {_SELECTIONS[model]} }} }}"
    )


def _list_query(model: RecordModel) -> str:
    return (
        f"query List{model.value}s($filter: Model{model.value}FilterInput, $limit: Int, $nextToken: String) "
        f"{{ list{model.value}s(filter: $filter, limit: $limit, nextToken: $nextToken) "
        f"{{ items {{ {_SELECTIONS[model]} }} nextToken }} }}"
    )


class GraphQLStore(RemoteStore):
    """Store backed by a hosted GraphQL data API with owner-scoped models.

    Live queries are emulated by polling ``list`` and emitting a snapshot
    whenever the visible record set changes.
    """

    def __init__(
        self,
        *,
        endpoint: str,
        token: str | None = None,
        poll_interval: float = 2.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._token = token
        self._poll_interval = poll_interval
        self._max_retries = max_retries
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> GraphQLStore:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = self._token
        self._client = httpx.AsyncClient(
            base_url=self._endpoint,
            headers=headers,
            timeout=30.0,
            transport=RetryingTransport(transport=self._transport, max_retries=self._max_retries),
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def create(self, model: RecordModel, fields: Mapping[str, Any]) -> Mapping[str, Any]:
        return await self._graphql(_mutation("create", model), {"input": dict(fields)}, operation="create")

    async def update(self, model: RecordModel, record_id: str, fields: Mapping[str, Any]) -> Mapping[str, Any]:
        return await self._graphql(
            _mutation("update", model), {"input": {**fields, "id": record_id}}, operation="update"
        )

    async def delete(self, model: RecordModel, record_id: str) -> Mapping[str, Any]:
        return await self._graphql(_mutation("delete", model), {"input": {"id": record_id}}, operation="delete")

    async def list(self, model: RecordModel, filters: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
        query = _list_query(model)
        field = f"list{model.value}s"
        items: list[dict[str, Any]] = []
        next_token: str | None = None
        for _ in range(_MAX_PAGES):
            data = await self._graphql(
                query,
                {"filter": dict(filters) if filters else None, "limit": _PAGE_SIZE, "nextToken": next_token},
                operation="list",
            )
            page = data.get(field)
            if not isinstance(page, dict):
                raise StoreError(f"GraphQL response missing {field}", operation="list")
            items.extend(item for item in page.get("items") or [] if isinstance(item, dict))
            next_token = page.get("nextToken")
            if not next_token:
                return {"data": items, "nextToken": None}
        raise StoreError(f"{field} pagination exceeded safety budget", operation="list")

    async def observe(self, model: RecordModel) -> AsyncIterator[Snapshot]:
        last: list[dict[str, Any]] | None = None
        while True:
            try:
                response = await self.list(model)
            except StoreError as exc:
                # Authentication failures end the live query; anything else is retried next poll.
                if isinstance(exc, AuthenticationError):
                    raise
                _LOG.warning("Polling %s failed: %s", model.value, exc)
            else:
                items = list(response["data"])
                if items != last:
                    last = items
                    yield Snapshot(items=items)
            await asyncio.sleep(self._poll_interval)

    async def _graphql(self, query: str, variables: dict[str, Any], *, operation: str) -> dict[str, Any]:
        if self._client is None:
            raise StoreError("Store is not initialized. Use 'async with'.", operation=operation)

        _LOG.debug("GraphQL %s", operation)
        try:
            response = await self._client.post("", json={"query": query, "variables": variables})
        except httpx.HTTPError as exc:
            raise StoreError(f"{operation} request failed: {exc}", operation=operation) from exc

        if response.status_code in {401, 403}:
            raise AuthenticationError(f"{operation} rejected with HTTP {response.status_code}", operation=operation)
        if response.is_error:
            raise StoreError(f"{operation} failed with HTTP {response.status_code}", operation=operation)

        try:
            payload = response.json()
        except ValueError as exc:
            raise StoreError(f"{operation} returned invalid JSON", operation=operation) from exc
        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            raise StoreError(f"GraphQL returned errors: {errors}", operation=operation)

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise StoreError("GraphQL response missing data payload", operation=operation)
        return data
