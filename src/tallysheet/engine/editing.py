"""Per-key editing flags."""

from __future__ import annotations


class EditingTracker:
    """Records which fields and line items hold unsaved local edits.

    A key flagged here is never overwritten by an incoming snapshot. All
    methods are synchronous so that a flag read and the merge it guards run
    without an intervening suspension point.
    """

    def __init__(self) -> None:
        self._keys: set[str] = set()

    def mark_editing(self, key: str) -> None:
        self._keys.add(key)

    def is_editing(self, key: str) -> bool:
        return key in self._keys

    def clear(self, key: str) -> None:
        self._keys.discard(key)

    def clear_all(self) -> None:
        self._keys.clear()

    @property
    def keys(self) -> frozenset[str]:
        return frozenset(self._keys)
