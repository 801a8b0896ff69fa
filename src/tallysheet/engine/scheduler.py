"""Debounced per-key write scheduling."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from tallysheet.engine.editing import EditingTracker

logger = logging.getLogger(__name__)

DEFAULT_DELAY_MS = 700

WriteFn = Callable[[], Awaitable[object]]
FailureHandler = Callable[[str, BaseException], None]


class DebouncedScheduler:
    """Coalesces rapid edits into one delayed write per key.

    Scheduling a key replaces any write for that key still waiting out its
    delay. Writes already in flight, and writes started with ``submit``, are
    never cancelled. Failed writes are logged and dropped, not retried; either
    way the editing flag for the key is cleared once the last write for that
    key settles.
    """

    def __init__(
        self,
        tracker: EditingTracker,
        *,
        delay_ms: int = DEFAULT_DELAY_MS,
        on_failure: FailureHandler | None = None,
    ) -> None:
        self._tracker = tracker
        self._delay_ms = delay_ms
        self._on_failure = on_failure
        self._pending: dict[str, asyncio.Task[None]] = {}
        self._in_flight: dict[asyncio.Task[None], str] = {}

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    @property
    def pending_keys(self) -> frozenset[str]:
        return frozenset(self._pending)

    def schedule(self, key: str, write_fn: WriteFn, delay_ms: int | None = None) -> None:
        self.cancel(key)
        delay = self._delay_ms if delay_ms is None else delay_ms
        task = asyncio.get_running_loop().create_task(self._run(key, write_fn, delay), name=f"write:{key}")
        self._pending[key] = task

    def submit(self, key: str, write_fn: WriteFn) -> None:
        """Start a write for *key* now; unlike scheduled writes it cannot be cancelled."""
        task = asyncio.get_running_loop().create_task(self._run(key, write_fn, None), name=f"write:{key}")
        self._in_flight[task] = key

    def cancel(self, key: str) -> None:
        task = self._pending.pop(key, None)
        if task is not None:
            task.cancel()

    def cancel_all(self) -> None:
        for key in list(self._pending):
            self.cancel(key)

    def is_busy(self, key: str) -> bool:
        return key in self._pending or key in self._in_flight.values()

    def release(self, key: str) -> None:
        """Clear the editing flag for *key* unless a write for it is still pending or in flight."""
        if not self.is_busy(key):
            self._tracker.clear(key)

    async def drain(self) -> None:
        """Wait for every pending and in-flight write to settle."""
        while self._pending or self._in_flight:
            await asyncio.wait({*self._pending.values(), *self._in_flight})

    async def aclose(self) -> None:
        self.cancel_all()
        if self._in_flight:
            await asyncio.wait(set(self._in_flight))

    async def _run(self, key: str, write_fn: WriteFn, delay_ms: int | None) -> None:
        if delay_ms is not None:
            await asyncio.sleep(delay_ms / 1000)

        task = asyncio.current_task()
        if task is None:
            raise RuntimeError("scheduled writes must run inside a task")
        if self._pending.get(key) is task:
            del self._pending[key]
        self._in_flight[task] = key
        try:
            logger.debug("Writing %s", key)
            await write_fn()
        except Exception as exc:
            logger.warning("Dropped write for %s: %s", key, exc)
            if self._on_failure is not None:
                self._on_failure(key, exc)
        finally:
            del self._in_flight[task]
            self.release(key)
