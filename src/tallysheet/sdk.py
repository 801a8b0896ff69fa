"""SDK composition root."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from tallysheet.auth import create_token_resolver
from tallysheet.config import TallysheetConfig
from tallysheet.contracts.store import RemoteStore
from tallysheet.engine.controller import TimesheetController
from tallysheet.engine.observer import StateObserver
from tallysheet.stores import create_store


@asynccontextmanager
async def open_controller(
    config: TallysheetConfig,
    *,
    observer: StateObserver | None = None,
    store: RemoteStore | None = None,
    refresh: bool = True,
) -> AsyncIterator[TimesheetController]:
    """Open the configured store and yield a controller bound to it.

    Pending writes are flushed before the store is closed.
    """
    if store is None:
        token = await create_token_resolver(config).resolve()
        store = create_store(config, token)

    async with store:
        controller = TimesheetController(store, debounce_ms=config.debounce_ms, observer=observer)
        if refresh:
            await controller.refresh()
        try:
            yield controller
            await controller.drain()
        finally:
            await controller.aclose()
