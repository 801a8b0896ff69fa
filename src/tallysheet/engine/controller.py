"""Timesheet controller: optimistic local state over a remote store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from tallysheet.contracts.exceptions import StoreError
from tallysheet.contracts.records import (
    TIMESHEET_ID,
    RecordModel,
    Snapshot,
    eq_filter,
    line_item_fields,
    timesheet_fields,
)
from tallysheet.contracts.state import SaveResult, TimesheetState
from tallysheet.contracts.store import RemoteStore
from tallysheet.engine.editing import EditingTracker
from tallysheet.engine.identifiers import (
    extract_id_from_response,
    extract_items_from_response,
    is_temporary_id,
    new_temporary_id,
    normalize_line_items,
)
from tallysheet.engine.observer import NullStateObserver, StateObserver
from tallysheet.engine.reconcile import (
    DESCRIPTION,
    RATE,
    TIMESHEET,
    apply_line_item_snapshot,
    apply_local_edit,
    apply_server_snapshot,
    apply_write_settled,
    coerce_non_negative,
    remove_line_item,
    select_primary_timesheet,
)
from tallysheet.engine.scheduler import DEFAULT_DELAY_MS, DebouncedScheduler

logger = logging.getLogger(__name__)


class TimesheetController:
    """Owns the timesheet state and reconciles it with the remote store.

    User input handlers are synchronous and must be called from the running
    event loop: they update local state immediately, flag the edited key and
    schedule a debounced write. Snapshot handlers merge server data, leaving
    flagged keys untouched until their write settles.
    """

    def __init__(
        self,
        store: RemoteStore,
        *,
        debounce_ms: int = DEFAULT_DELAY_MS,
        observer: StateObserver | None = None,
        state: TimesheetState | None = None,
    ) -> None:
        self._store = store
        self._observer: StateObserver = observer or NullStateObserver()
        self._state = state or TimesheetState()
        self._tracker = EditingTracker()
        self._scheduler = DebouncedScheduler(self._tracker, delay_ms=debounce_ms, on_failure=self._write_failed)
        self._timesheet_lock = asyncio.Lock()
        self._aliases: dict[str, str] = {}
        self._creates: dict[str, asyncio.Future[str | None]] = {}

    @property
    def state(self) -> TimesheetState:
        return self._state

    @property
    def tracker(self) -> EditingTracker:
        return self._tracker

    @property
    def scheduler(self) -> DebouncedScheduler:
        return self._scheduler

    def resolve_key(self, key: str) -> str:
        """Map a temporary line item key to its canonical id once created."""
        return self._aliases.get(key, key)

    # ------------------------------------------------------------------
    # User input
    # ------------------------------------------------------------------

    def edit_description(self, text: str) -> None:
        self._edit(DESCRIPTION, {"description": text})
        self._scheduler.schedule(DESCRIPTION, lambda: self._write_timesheet_field(DESCRIPTION))

    def edit_rate(self, value: Any) -> None:
        self._edit(RATE, {"rate": coerce_non_negative(value)})
        self._scheduler.schedule(RATE, lambda: self._write_timesheet_field(RATE))

    def edit_draft(self, *, date: str | None = None, minutes: Any = None) -> None:
        changes: dict[str, Any] = {}
        if date is not None:
            changes["date"] = date
        if minutes is not None:
            changes["minutes_count"] = coerce_non_negative(minutes)
        if changes:
            self._commit(self._state.model_copy(update={"draft": self._state.draft.model_copy(update=changes)}))

    def add_line_item(self) -> str:
        key = new_temporary_id()
        draft = self._state.draft
        self._edit(key, {"date": draft.date, "minutes_count": draft.minutes_count})
        self._scheduler.schedule(key, lambda: self._write_line_item(key))
        return key

    def edit_line_item_date(self, key: str, date: str) -> None:
        self._edit_line_item(key, {"date": date})

    def edit_line_item_minutes(self, key: str, minutes: Any) -> None:
        self._edit_line_item(key, {"minutes_count": coerce_non_negative(minutes)})

    def remove_line_item(self, key: str) -> None:
        key = self.resolve_key(key)
        for alias in self._aliases_of(key):
            self._scheduler.cancel(alias)
        self._scheduler.cancel(key)
        self._tracker.clear(key)
        if key not in self._state.line_items:
            return
        self._commit(remove_line_item(self._state, key))
        if is_temporary_id(key):
            # Never persisted; an in-flight create cleans up after itself.
            return

        # Keeps snapshots from re-adding the item until the delete settles.
        self._tracker.mark_editing(key)
        self._scheduler.submit(key, lambda: self._store.delete(RecordModel.LINE_ITEM, key))

    def _edit_line_item(self, key: str, changes: Mapping[str, Any]) -> None:
        key = self.resolve_key(key)
        if key not in self._state.line_items:
            logger.debug("Ignoring edit for unknown line item %s", key)
            return
        self._edit(key, changes)
        self._scheduler.schedule(key, lambda: self._write_line_item(key))

    def _edit(self, key: str, changes: Mapping[str, Any]) -> None:
        self._tracker.mark_editing(key)
        self._commit(apply_local_edit(self._state, key, changes))

    # ------------------------------------------------------------------
    # Server input
    # ------------------------------------------------------------------

    async def apply_timesheet_snapshot(self, snapshot: Snapshot) -> None:
        primary, duplicates = select_primary_timesheet(snapshot.items)
        previous_id = self._state.timesheet_id
        self._commit(apply_server_snapshot(self._state, primary, self._is_editing))

        if duplicates:
            logger.warning("Found %d duplicate timesheets; keeping %s", len(duplicates), self._state.timesheet_id)
        for duplicate in duplicates:
            duplicate_id = extract_id_from_response(duplicate)
            if duplicate_id is None or duplicate_id == self._state.timesheet_id:
                continue
            try:
                await self._store.delete(RecordModel.TIMESHEET, duplicate_id)
            except StoreError as exc:
                logger.warning("Failed to delete duplicate timesheet %s: %s", duplicate_id, exc)

        if self._state.timesheet_id and self._state.timesheet_id != previous_id:
            await self.refresh_line_items()

    def apply_line_item_snapshot(self, snapshot: Snapshot) -> None:
        timesheet_id = self._state.timesheet_id
        if not timesheet_id:
            return
        records = [record for record in snapshot.items if record and record.get(TIMESHEET_ID) == timesheet_id]
        incoming = normalize_line_items(records)
        self._commit(apply_line_item_snapshot(self._state, incoming, self._is_editing))

    async def refresh(self) -> None:
        """Load the timesheet and its line items once."""
        try:
            response = await self._store.list(RecordModel.TIMESHEET)
        except StoreError as exc:
            logger.warning("Failed to list timesheets: %s", exc)
            return
        previous_id = self._state.timesheet_id
        await self.apply_timesheet_snapshot(Snapshot(items=_records(response)))
        # A changed id already reloaded its line items.
        if self._state.timesheet_id and self._state.timesheet_id == previous_id:
            await self.refresh_line_items()

    async def refresh_line_items(self) -> None:
        timesheet_id = self._state.timesheet_id
        if not timesheet_id:
            return
        try:
            response = await self._store.list(RecordModel.LINE_ITEM, eq_filter(TIMESHEET_ID, timesheet_id))
        except StoreError as exc:
            logger.warning("Failed to list line items for %s: %s", timesheet_id, exc)
            return
        if timesheet_id != self._state.timesheet_id:
            return
        self.apply_line_item_snapshot(Snapshot(items=_records(response)))

    async def run(self) -> None:
        """Follow live snapshots of both record types until cancelled."""
        async with asyncio.TaskGroup() as tg:
            tg.create_task(self._watch_timesheets())
            tg.create_task(self._watch_line_items())

    async def _watch_timesheets(self) -> None:
        try:
            async for snapshot in self._store.observe(RecordModel.TIMESHEET):
                await self.apply_timesheet_snapshot(snapshot)
        except StoreError as exc:
            logger.warning("Timesheet subscription ended: %s", exc)

    async def _watch_line_items(self) -> None:
        try:
            async for snapshot in self._store.observe(RecordModel.LINE_ITEM):
                self.apply_line_item_snapshot(snapshot)
        except StoreError as exc:
            logger.warning("Line item subscription ended: %s", exc)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_all(self) -> SaveResult:
        """Cancel pending writes and persist everything immediately."""
        self._scheduler.cancel_all()
        result = SaveResult()

        try:
            timesheet_id, created = await self._ensure_timesheet()
            if not created:
                await self._store.update(
                    RecordModel.TIMESHEET,
                    timesheet_id,
                    timesheet_fields(self._state.description, self._state.rate),
                )
            result.timesheet_id = timesheet_id
        except Exception as exc:
            logger.warning("Save failed for timesheet: %s", exc)
            self._write_failed(TIMESHEET, exc)
            result.failed.append(TIMESHEET)
            return result
        finally:
            self._scheduler.release(DESCRIPTION)
            self._scheduler.release(RATE)

        for key in list(self._state.line_items):
            if key not in self._state.line_items:
                continue
            try:
                if is_temporary_id(key):
                    awaited_create = key in self._creates
                    canonical_id = await self._create_line_item(key)
                    if canonical_id is not None:
                        if awaited_create:
                            await self._update_line_item(canonical_id)
                        result.created.append(canonical_id)
                else:
                    await self._update_line_item(key)
                    result.updated.append(key)
            except Exception as exc:
                logger.warning("Save failed for line item %s: %s", key, exc)
                self._write_failed(key, exc)
                result.failed.append(key)
            finally:
                self._scheduler.release(key)

        return result

    async def drain(self) -> None:
        await self._scheduler.drain()

    async def aclose(self) -> None:
        await self._scheduler.aclose()

    async def _ensure_timesheet(self) -> tuple[str, bool]:
        """Return the timesheet id, creating the record on first use."""
        async with self._timesheet_lock:
            if self._state.timesheet_id:
                return self._state.timesheet_id, False
            response = await self._store.create(
                RecordModel.TIMESHEET,
                timesheet_fields(self._state.description, self._state.rate),
            )
            timesheet_id = extract_id_from_response(response)
            if timesheet_id is None:
                raise StoreError("Timesheet create returned no id", operation="create")
            logger.debug("Created timesheet %s", timesheet_id)
            self._commit(apply_write_settled(self._state, TIMESHEET, timesheet_id))
            return timesheet_id, True

    async def _write_timesheet_field(self, field: str) -> None:
        timesheet_id, created = await self._ensure_timesheet()
        if created:
            return
        await self._store.update(RecordModel.TIMESHEET, timesheet_id, {field: getattr(self._state, field)})

    async def _write_line_item(self, key: str) -> None:
        if is_temporary_id(key) and key not in self._aliases:
            awaited_create = key in self._creates
            canonical_id = await self._create_line_item(key)
            # A fresh create already carried the latest values.
            if canonical_id is None or not awaited_create:
                return
        await self._update_line_item(self.resolve_key(key))

    async def _update_line_item(self, key: str) -> None:
        details = self._state.line_items.get(key)
        if details is None:
            return
        await self._store.update(RecordModel.LINE_ITEM, key, line_item_fields(details))

    async def _create_line_item(self, key: str) -> str | None:
        """Create the record behind a temporary key; at most one create per key runs."""
        pending = self._creates.get(key)
        if pending is not None:
            return await asyncio.shield(pending)
        if key in self._aliases:
            return self._aliases[key]

        future: asyncio.Future[str | None] = asyncio.get_running_loop().create_future()
        self._creates[key] = future
        canonical_id: str | None = None
        try:
            canonical_id = await self._create_line_item_record(key)
        finally:
            del self._creates[key]
            future.set_result(canonical_id)
        return canonical_id

    async def _create_line_item_record(self, key: str) -> str | None:
        timesheet_id, _ = await self._ensure_timesheet()
        details = self._state.line_items.get(key)
        if details is None:
            return None

        response = await self._store.create(RecordModel.LINE_ITEM, line_item_fields(details, timesheet_id))
        canonical_id = extract_id_from_response(response)
        if canonical_id is None:
            logger.warning("Line item create for %s returned no id; keeping temporary key", key)
            return None

        logger.debug("Line item %s is now %s", key, canonical_id)
        self._aliases[key] = canonical_id
        if key in self._state.line_items:
            self._commit(apply_write_settled(self._state, key, canonical_id))
            return canonical_id

        # Removed locally while the create was in flight.
        self._commit(remove_line_item(self._state, canonical_id))
        await self._store.delete(RecordModel.LINE_ITEM, canonical_id)
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _is_editing(self, key: str) -> bool:
        if self._tracker.is_editing(key):
            return True
        return any(self._tracker.is_editing(alias) for alias in self._aliases_of(key))

    def _aliases_of(self, key: str) -> list[str]:
        return [temporary for temporary, canonical in self._aliases.items() if canonical == key]

    def _commit(self, state: TimesheetState) -> None:
        if state is self._state:
            return
        self._state = state
        self._observer.state_changed(state)

    def _write_failed(self, key: str, error: BaseException) -> None:
        self._observer.write_failed(key, error)


def _records(response: Mapping[str, Any]) -> list[dict[str, Any]]:
    return [dict(record) for record in extract_items_from_response(response) if isinstance(record, Mapping)]
