from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from tallysheet.contracts.state import LineDetails
from tallysheet.engine.identifiers import (
    coerce_number,
    extract_id_from_response,
    extract_items_from_response,
    is_temporary_id,
    new_temporary_id,
    normalize_line_items,
)


def _nested(depth: int) -> dict[str, Any]:
    """Build a response whose ``id`` sits *depth* levels below the root."""
    node: dict[str, Any] = {"id": "deep"}
    for _ in range(depth):
        node = {"wrapper": node}
    return node


@pytest.mark.parametrize(
    ("response", "expected"),
    [
        ({"data": {"id": "x"}}, "x"),
        ({"foo": {"bar": {"id": "y"}}}, "y"),
        ({}, None),
        ({"id": "direct", "data": {"id": "nested"}}, "direct"),
        ({"data": {"createLineItem": {"id": "gql"}}}, "gql"),
        ({"items": [{"name": "no id"}, {"id": "second"}]}, "second"),
        ([{"id": "in-list"}], "in-list"),
        ({"id": 42, "data": {"id": "string-wins"}}, "string-wins"),
        ("plain-string", None),
        (None, None),
        (17, None),
    ],
)
def test_extract_id_from_response(response: Any, expected: str | None) -> None:
    assert extract_id_from_response(response) == expected


def test_extract_id_returns_data_result_without_searching_siblings() -> None:
    response = {"data": {"unrelated": 1}, "other": {"id": "sibling"}}

    assert extract_id_from_response(response) is None


def test_extract_id_search_depth_is_bounded() -> None:
    assert extract_id_from_response(_nested(6)) == "deep"
    assert extract_id_from_response(_nested(7)) is None


def test_normalize_line_items_matches_server_shapes() -> None:
    normalized = normalize_line_items(
        [
            {"id": "a", "date": "2024-06-01", "minutes": 30},
            None,
            {"id": "b", "minutes": "45"},
        ]
    )

    assert normalized == {
        "a": LineDetails(date="2024-06-01", minutes_count=30),
        "b": LineDetails(date="", minutes_count=45),
    }


def test_normalize_line_items_uses_case_variants_and_attribute_objects() -> None:
    normalized = normalize_line_items(
        [
            {"ID": "upper", "Date": "2024-01-02", "minutesCount": 15},
            SimpleNamespace(id="attr", date="2024-01-03", minutes=20),
        ]
    )

    assert normalized["upper"] == LineDetails(date="2024-01-02", minutes_count=15)
    assert normalized["attr"] == LineDetails(date="2024-01-03", minutes_count=20)


def test_normalize_line_items_coerces_bad_minutes_to_zero() -> None:
    normalized = normalize_line_items([{"id": "a", "minutes": "lots"}, {"id": "b"}, {"id": "c", "minutes": None}])

    assert [details.minutes_count for details in normalized.values()] == [0, 0, 0]


def test_normalize_line_items_synthesizes_distinct_temporary_keys() -> None:
    normalized = normalize_line_items([{"date": "2024-06-01"}, {"date": "2024-06-02"}])

    keys = list(normalized)
    assert len(keys) == 2
    assert all(is_temporary_id(key) for key in keys)
    assert keys[0] != keys[1]


def test_normalize_line_items_accepts_none() -> None:
    assert normalize_line_items(None) == {}


def test_new_temporary_id_is_monotonic() -> None:
    first = new_temporary_id()
    second = new_temporary_id()

    assert first.startswith("lineItem_")
    assert int(second.removeprefix("lineItem_")) > int(first.removeprefix("lineItem_"))
    assert not is_temporary_id("lineitem-1")


@pytest.mark.parametrize(
    ("value", "expected"),
    [("12.5", 12.5), (3, 3.0), ("abc", 0.0), (None, 0.0), (float("nan"), 0.0), ("-4", -4.0)],
)
def test_coerce_number(value: Any, expected: float) -> None:
    assert coerce_number(value) == expected


@pytest.mark.parametrize(
    ("response", "expected"),
    [
        ({"data": [{"id": "a"}]}, [{"id": "a"}]),
        ({"data": {"items": [{"id": "b"}]}}, [{"id": "b"}]),
        ({"data": {"listLineItems": {"items": [{"id": "c"}], "nextToken": None}}}, [{"id": "c"}]),
        ({"items": [{"id": "d"}]}, [{"id": "d"}]),
        ({"data": None}, []),
        ("nope", []),
    ],
)
def test_extract_items_from_response(response: Any, expected: list[dict[str, str]]) -> None:
    assert extract_items_from_response(response) == expected
