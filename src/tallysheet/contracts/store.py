"""Remote store adapter contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping
from types import TracebackType
from typing import Any

from tallysheet.contracts.records import RecordModel, Snapshot


class RemoteStore(ABC):
    """Hosted record store with per-owner authorization.

    Response envelopes are not normalized: callers extract ids with
    ``tallysheet.engine.identifiers``.
    """

    @abstractmethod
    async def __aenter__(self) -> RemoteStore: ...  # pragma: no cover

    @abstractmethod
    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None: ...  # pragma: no cover

    @abstractmethod
    async def create(self, model: RecordModel, fields: Mapping[str, Any]) -> Mapping[str, Any]: ...  # pragma: no cover

    @abstractmethod
    async def update(
        self, model: RecordModel, record_id: str, fields: Mapping[str, Any]
    ) -> Mapping[str, Any]: ...  # pragma: no cover

    @abstractmethod
    async def delete(self, model: RecordModel, record_id: str) -> Mapping[str, Any]: ...  # pragma: no cover

    @abstractmethod
    async def list(
        self, model: RecordModel, filters: Mapping[str, Any] | None = None
    ) -> Mapping[str, Any]: ...  # pragma: no cover

    @abstractmethod
    def observe(self, model: RecordModel) -> AsyncIterator[Snapshot]: ...  # pragma: no cover
