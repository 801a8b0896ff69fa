"""In-memory record store."""

from __future__ import annotations

import asyncio
import copy
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from types import TracebackType
from typing import Any

from tallysheet.contracts.exceptions import StoreError
from tallysheet.contracts.records import RecordModel, Snapshot
from tallysheet.contracts.store import RemoteStore


@dataclass(frozen=True)
class StoreOperation:
    """Deterministic operation log entry."""

    sequence: int
    name: str
    model: RecordModel
    record_id: str | None
    payload: dict[str, Any]


def _matches(record: Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
    for field, condition in (filters or {}).items():
        expected = condition.get("eq") if isinstance(condition, Mapping) else condition
        if record.get(field) != expected:
            return False
    return True


class InMemoryStore(RemoteStore):
    """Store that keeps records in process, with deterministic ids and live snapshots.

    Responses use the ``{"data": ...}`` envelope of the generated data client.
    """

    def __init__(self, *, owner: str = "local") -> None:
        self._owner = owner
        self._counters: dict[RecordModel, int] = {model: 0 for model in RecordModel}
        self._records: dict[RecordModel, dict[str, dict[str, Any]]] = {model: {} for model in RecordModel}
        self._subscribers: dict[RecordModel, list[asyncio.Queue[Snapshot]]] = {model: [] for model in RecordModel}
        self._operation_counter = 0
        self._operations: list[StoreOperation] = []

    @property
    def operations(self) -> tuple[StoreOperation, ...]:
        return tuple(self._operations)

    def operations_named(self, name: str) -> list[StoreOperation]:
        return [operation for operation in self._operations if operation.name == name]

    def records(self, model: RecordModel) -> list[dict[str, Any]]:
        return [copy.deepcopy(record) for record in self._records[model].values()]

    def seed(self, model: RecordModel, record: Mapping[str, Any]) -> dict[str, Any]:
        """Insert a record directly, as if written by another client."""
        stored = self._store_record(model, dict(record))
        self._publish(model)
        return copy.deepcopy(stored)

    def _record_operation(
        self,
        name: str,
        model: RecordModel,
        record_id: str | None,
        payload: Mapping[str, Any] | None = None,
    ) -> None:
        self._operation_counter += 1
        self._operations.append(
            StoreOperation(
                sequence=self._operation_counter,
                name=name,
                model=model,
                record_id=record_id,
                payload=dict(payload or {}),
            )
        )

    async def __aenter__(self) -> InMemoryStore:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        return None

    async def create(self, model: RecordModel, fields: Mapping[str, Any]) -> Mapping[str, Any]:
        stored = self._store_record(model, dict(fields))
        self._record_operation("create", model, stored["id"], fields)
        self._publish(model)
        return {"data": copy.deepcopy(stored)}

    async def update(self, model: RecordModel, record_id: str, fields: Mapping[str, Any]) -> Mapping[str, Any]:
        self._record_operation("update", model, record_id, fields)
        record = self._records[model].get(record_id)
        if record is None:
            raise StoreError(f"{model.value} not found: {record_id}", operation="update")
        record.update({key: value for key, value in fields.items() if key != "id"})
        self._publish(model)
        return {"data": copy.deepcopy(record)}

    async def delete(self, model: RecordModel, record_id: str) -> Mapping[str, Any]:
        self._record_operation("delete", model, record_id)
        record = self._records[model].pop(record_id, None)
        if record is not None:
            self._publish(model)
        return {"data": copy.deepcopy(record)}

    async def list(self, model: RecordModel, filters: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
        self._record_operation("list", model, None, filters)
        matched = [copy.deepcopy(record) for record in self._records[model].values() if _matches(record, filters)]
        return {"data": matched, "nextToken": None}

    async def observe(self, model: RecordModel) -> AsyncIterator[Snapshot]:
        queue: asyncio.Queue[Snapshot] = asyncio.Queue()
        self._subscribers[model].append(queue)
        try:
            yield self._snapshot(model)
            while True:
                yield await queue.get()
        finally:
            self._subscribers[model].remove(queue)

    def _store_record(self, model: RecordModel, fields: dict[str, Any]) -> dict[str, Any]:
        record_id = fields.get("id")
        if not record_id:
            self._counters[model] += 1
            record_id = f"{model.value.lower()}-{self._counters[model]}"
        record = {**fields, "id": record_id, "owner": fields.get("owner", self._owner)}
        self._records[model][record_id] = record
        return record

    def _snapshot(self, model: RecordModel) -> Snapshot:
        return Snapshot(items=self.records(model))

    def _publish(self, model: RecordModel) -> None:
        for queue in self._subscribers[model]:
            queue.put_nowait(self._snapshot(model))
