from __future__ import annotations

import math
import numbers
import re
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from audit_core.records import DEFAULT_MAX_POINTS, DEFAULT_SECTION, UNKNOWN_LOCATION, AuditRecord


# Canonical field -> accepted header aliases, highest priority first.
# Aliases are stored in header-key form (see header_key).
COLUMN_ALIASES: Dict[str, List[str]] = {
    "location": ["store", "location", "sitename", "site", "branch", "storename", "unit"],
    "section": ["questionid", "section", "category", "department", "area", "auditsection", "module"],
    "points": ["points", "score", "totalscore", "pointsscored", "result", "obtainedpoints", "actualpoints"],
    "max_points": ["totalpoints", "maxpoints", "maxscore", "maximumpoints", "targetscore", "possiblepoints"],
    "date": ["submittedon", "auditdate", "submitteddate", "date", "day", "timestamp", "createdat", "submitted"],
    "comment": ["comment", "comments", "notes", "remarks", "feedback", "auditcomments"],
    "question": ["questiontext", "question", "item", "audititem", "criteria"],
    "answer": ["answer", "result", "response", "status", "rating", "outcome", "scoretext"],
}

ANSWER_POINTS: Dict[str, int] = {
    "excellent": 4,
    "good": 3,
    "fair": 2,
    "poor": 1,
}

ANSWER_PATTERN = re.compile(r"fair|good|excellent|poor")

SERIAL_EPOCH_OFFSET = 25569
UNIX_EPOCH = pd.Timestamp("1970-01-01")


def header_key(value: object) -> str:
    return re.sub(r"[\s_-]+", "", str(value).strip().lower())


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def resolve_key(row: Mapping[Any, Any], field: str) -> Optional[Any]:
    """Return the row key that supplies ``field``, trying aliases in priority order."""
    keyed: Dict[str, Any] = {}
    for key in row.keys():
        keyed.setdefault(header_key(key), key)
    for alias in COLUMN_ALIASES[field]:
        if alias in keyed:
            return keyed[alias]
    return None


def resolve_value(row: Mapping[Any, Any], field: str) -> Any:
    key = resolve_key(row, field)
    if key is None:
        return None
    return row[key]


def as_text(value: object) -> str:
    if _is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def match_answer(value: object) -> Optional[str]:
    """Return the earliest rating keyword inside an answer cell, if any."""
    text = as_text(value).lower()
    if not text:
        return None
    match = ANSWER_PATTERN.search(text)
    return match.group(0) if match else None


def _to_number(value: object) -> Optional[float]:
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        num = pd.to_numeric(value, errors="coerce")
    except (TypeError, ValueError):
        return None
    if _is_missing(num):
        return None
    num = float(num)
    if not math.isfinite(num):
        return None
    return num


def serial_to_iso(serial: float) -> str:
    """Spreadsheet serial day count -> YYYY-MM-DD (UTC calendar day)."""
    try:
        ts = UNIX_EPOCH + pd.to_timedelta(float(serial) - SERIAL_EPOCH_OFFSET, unit="D")
    except (OverflowError, ValueError):
        return ""
    if pd.isna(ts):
        return ""
    return ts.date().isoformat()


def coerce_date(value: object) -> str:
    if _is_missing(value) or isinstance(value, bool):
        return ""
    if isinstance(value, datetime):
        ts = pd.Timestamp(value)
        if ts.tzinfo is not None:
            ts = ts.tz_convert("UTC")
        return ts.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, numbers.Real):
        if not math.isfinite(float(value)):
            return ""
        return serial_to_iso(float(value))
    text = str(value).strip()
    if not text:
        return ""
    # CSV readers hand serials over as text when the column also holds dates.
    serial = _to_number(text)
    if serial is not None:
        return serial_to_iso(serial)
    try:
        ts = pd.to_datetime(text, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return ""
    if pd.isna(ts):
        return ""
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC")
    return ts.date().isoformat()


def resolve_points(row: Mapping[Any, Any], keyword: Optional[str]) -> Tuple[float, float]:
    points = _to_number(resolve_value(row, "points"))
    if points is None or points < 0:
        points = float(ANSWER_POINTS[keyword]) if keyword in ANSWER_POINTS else 0.0

    max_points = _to_number(resolve_value(row, "max_points"))
    if max_points is None or max_points <= 0:
        max_points = DEFAULT_MAX_POINTS
    return points, max_points


def normalize_row(row: Mapping[Any, Any], index: int) -> Optional[AuditRecord]:
    """Map one raw spreadsheet row to an AuditRecord.

    Returns None when the row has no recognizable rating keyword in its
    answer column. A record whose date cannot be resolved is still returned
    with an empty ``submitted_date``; the ingest step discards it.
    """
    keyword = match_answer(resolve_value(row, "answer"))
    if keyword is None:
        return None

    points, max_points = resolve_points(row, keyword)
    return AuditRecord(
        id=f"audit-{index}",
        location=as_text(resolve_value(row, "location")) or UNKNOWN_LOCATION,
        section=as_text(resolve_value(row, "section")) or DEFAULT_SECTION,
        points=points,
        max_points=max_points,
        submitted_date=coerce_date(resolve_value(row, "date")),
        comment=as_text(resolve_value(row, "comment")),
        question_text=as_text(resolve_value(row, "question")),
    )
