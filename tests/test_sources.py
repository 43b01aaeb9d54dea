"""Unit tests for spreadsheet loaders and the published-sheet fetcher."""

from __future__ import annotations

import io
from unittest.mock import Mock

import pandas as pd
import pytest
import requests

from audit_core.errors import AuditError, SheetFetchError, UnreadableFileError
from audit_core.sources import fetch_sheet_rows, read_rows, resolve_sheet_url, upload_fingerprint

CSV_BODY = b"Store,Question ID,Answer,Submitted On\nDowntown,Fitting Rooms,Good,2024-01-15\n,,,\nMall,Cash Desk,Poor,2024-01-16\n"


def _session(content: bytes = CSV_BODY, content_type: str = "text/csv") -> Mock:
    response = Mock()
    response.content = content
    response.headers = {"Content-Type": content_type}
    session = Mock()
    session.get.return_value = response
    return session


def test_resolve_sheet_url_rewrites_share_link() -> None:
    url = "https://docs.google.com/spreadsheets/d/abc_DEF-123/edit#gid=0"

    assert resolve_sheet_url(url) == "https://docs.google.com/spreadsheets/d/abc_DEF-123/export?format=csv"


def test_resolve_sheet_url_leaves_other_urls_alone() -> None:
    assert resolve_sheet_url(" https://example.com/audit.xlsx ") == "https://example.com/audit.xlsx"
    assert resolve_sheet_url("") == ""


def test_read_rows_csv_drops_blank_rows() -> None:
    rows = read_rows(CSV_BODY, "audit.csv")

    assert len(rows) == 2
    assert rows[0]["Store"] == "Downtown"
    assert rows[1]["Answer"] == "Poor"


def test_read_rows_blank_cells_become_none() -> None:
    rows = read_rows(b"Store,Answer,Comments\nDowntown,Good,\n", "audit.csv")

    assert rows == [{"Store": "Downtown", "Answer": "Good", "Comments": None}]


def test_read_rows_excel_reads_first_sheet() -> None:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer) as writer:
        pd.DataFrame([{"Store": "Mall", "Answer": "Fair"}]).to_excel(writer, sheet_name="Audit", index=False)
        pd.DataFrame([{"Other": 1}]).to_excel(writer, sheet_name="Notes", index=False)

    rows = read_rows(buffer.getvalue(), "audit.xlsx")

    assert rows == [{"Store": "Mall", "Answer": "Fair"}]


def test_read_rows_corrupt_workbook_raises_domain_error() -> None:
    with pytest.raises(UnreadableFileError) as excinfo:
        read_rows(b"PK\x03\x04garbage", "bad.xlsx")

    assert isinstance(excinfo.value, AuditError)
    assert "bad.xlsx" in str(excinfo.value)


def test_read_rows_empty_csv_raises_domain_error() -> None:
    with pytest.raises(UnreadableFileError):
        read_rows(b"", "empty.csv")


def test_upload_fingerprint_tracks_content_not_just_name() -> None:
    first = upload_fingerprint(b"Store,Answer\nA,Good\n", "audit.csv")

    assert first == upload_fingerprint(b"Store,Answer\nA,Good\n", "audit.csv")
    assert first != upload_fingerprint(b"Store,Answer\nA,Poor\n", "audit.csv")
    assert first != upload_fingerprint(b"Store,Answer\nA,Good\n", "other.csv")


def test_fetch_sheet_rows_parses_csv_response() -> None:
    session = _session()

    rows = fetch_sheet_rows("https://docs.google.com/spreadsheets/d/abc/edit", session=session)

    assert [r["Store"] for r in rows] == ["Downtown", "Mall"]
    session.get.assert_called_once_with("https://docs.google.com/spreadsheets/d/abc/export?format=csv", timeout=30)
    session.close.assert_not_called()


def test_fetch_sheet_rows_requires_url() -> None:
    with pytest.raises(SheetFetchError, match="No sheet URL"):
        fetch_sheet_rows("   ")


def test_fetch_sheet_rows_wraps_connection_errors() -> None:
    session = Mock()
    session.get.side_effect = requests.ConnectionError("unreachable")

    with pytest.raises(SheetFetchError, match="Ensure Sheet is public"):
        fetch_sheet_rows("https://example.com/audit.csv", session=session)


def test_fetch_sheet_rows_wraps_http_errors() -> None:
    session = _session()
    session.get.return_value.raise_for_status.side_effect = requests.HTTPError("403 Forbidden")

    with pytest.raises(SheetFetchError):
        fetch_sheet_rows("https://example.com/audit.csv", session=session)


def test_fetch_sheet_rows_wraps_unparseable_workbook() -> None:
    session = _session(content=b"not a workbook", content_type="application/octet-stream")

    with pytest.raises(SheetFetchError, match="Could not parse"):
        fetch_sheet_rows("https://example.com/export", session=session)
