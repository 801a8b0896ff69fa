"""Identifier and record normalization helpers for store responses."""

from __future__ import annotations

import itertools
import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from tallysheet.contracts.state import LineDetails

TEMPORARY_ID_PREFIX = "lineItem_"
_MAX_SEARCH_DEPTH = 6

_temporary_ids = itertools.count(1)


def new_temporary_id() -> str:
    """Return a process-unique local key for a record not yet created remotely."""
    return f"{TEMPORARY_ID_PREFIX}{next(_temporary_ids)}"


def is_temporary_id(key: str) -> bool:
    return key.startswith(TEMPORARY_ID_PREFIX)


def _is_container(value: Any) -> bool:
    if isinstance(value, Mapping):
        return True
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def extract_id_from_response(obj: Any, depth: int = 0) -> str | None:
    """Find the first string ``id`` in a response envelope of unknown shape.

    A direct ``id`` wins; otherwise a truthy ``data`` entry is searched and its
    result returned as-is; otherwise every nested container is searched in
    iteration order. The search stops below depth 6.
    """
    if not obj or depth > _MAX_SEARCH_DEPTH:
        return None
    if isinstance(obj, Mapping):
        candidate = obj.get("id")
        if isinstance(candidate, str):
            return candidate
        if obj.get("data"):
            return extract_id_from_response(obj["data"], depth + 1)
        values: Iterable[Any] = obj.values()
    elif _is_container(obj):
        values = obj
    else:
        return None

    for value in values:
        if value and _is_container(value):
            found = extract_id_from_response(value, depth + 1)
            if found:
                return found
    return None


def extract_items_from_response(response: Any) -> list[Any]:
    """Return the record list carried by a ``list`` response, or an empty list."""
    if not isinstance(response, Mapping):
        return []
    data = response.get("data")
    if isinstance(data, list):
        return data
    if isinstance(data, Mapping):
        # GraphQL nests the page under the query name: {"listLineItems": {"items": [...]}}
        for candidate in (data, *data.values()):
            if isinstance(candidate, Mapping) and isinstance(candidate.get("items"), list):
                return candidate["items"]
        return []
    items = response.get("items")
    if isinstance(items, list):
        return items
    return []


def _field(record: Any, *names: str) -> Any:
    for name in names:
        if isinstance(record, Mapping):
            value = record.get(name)
        else:
            value = getattr(record, name, None)
        if value is not None:
            return value
    return None


def coerce_number(value: Any) -> float:
    """Coerce user or server input to a number; anything unparseable is 0."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def normalize_line_items(items: Iterable[Any] | None) -> dict[str, LineDetails]:
    """Key server-shaped line item records by id.

    Records without an id get a temporary key, so they are treated as not yet
    persisted.
    """
    normalized: dict[str, LineDetails] = {}
    for item in items or ():
        if item is None:
            continue
        item_id = _field(item, "id", "ID")
        key = str(item_id) if item_id is not None else new_temporary_id()
        normalized[key] = LineDetails(
            date=str(_field(item, "date", "Date") or ""),
            minutes_count=coerce_number(_field(item, "minutes", "minutesCount")),
        )
    return normalized
