"""Unit tests for date-scoped filtering."""

from __future__ import annotations

import pytest

from audit_core.filters import ALL, FilterState, filter_by_date, normalize_filters
from tests.factories import make_record


@pytest.fixture
def records():
    return [
        make_record(id="a", location="Downtown", section="Fitting Rooms", submitted_date="2024-01-15"),
        make_record(id="b", location="Downtown", section="Cash Desk", submitted_date="2024-01-15"),
        make_record(id="c", location="Mall", section="Cash Desk", submitted_date="2024-01-15"),
        make_record(id="d", location="Downtown", section="Fitting Rooms", submitted_date="2024-02-15"),
    ]


def _ids(records):
    return [r.id for r in records]


def test_empty_target_date_returns_nothing(records) -> None:
    filters = FilterState(location=ALL, section=ALL)

    assert filter_by_date(records, filters, "") == []


def test_filters_by_location_and_date(records) -> None:
    filters = FilterState(location="Downtown")

    assert _ids(filter_by_date(records, filters, "2024-01-15")) == ["a", "b"]


@pytest.mark.parametrize("location", ["", ALL])
def test_location_wildcards(records, location: str) -> None:
    filters = FilterState(location=location)

    assert _ids(filter_by_date(records, filters, "2024-01-15")) == ["a", "b", "c"]


def test_filters_by_section(records) -> None:
    filters = FilterState(location=ALL, section="Cash Desk")

    assert _ids(filter_by_date(records, filters, "2024-01-15")) == ["b", "c"]


def test_search_matches_location_or_section_case_insensitively(records) -> None:
    assert _ids(filter_by_date(records, FilterState(location=ALL, search_query="MALL"), "2024-01-15")) == ["c"]
    assert _ids(filter_by_date(records, FilterState(location=ALL, search_query="fitting"), "2024-01-15")) == ["a"]


def test_normalize_filters_cleans_loose_input() -> None:
    raw = {"location": " Downtown ", "section": None, "search_query": None, "audit2_date": "2024-01-15"}

    filters = normalize_filters(raw)

    assert filters == FilterState(location="Downtown", section=ALL, audit2_date="2024-01-15")


def test_normalize_filters_drops_unavailable_dates() -> None:
    raw = {"audit1_date": "2024-01-15", "audit2_date": "2030-01-01"}

    filters = normalize_filters(raw, available_dates=["2024-01-15"])

    assert filters.audit1_date == "2024-01-15"
    assert filters.audit2_date == ""
