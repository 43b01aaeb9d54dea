from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from audit_core.compare import compare, select_snapshots
from audit_core.filters import FilterState, filter_by_date, is_wildcard, normalize_filters
from audit_core.records import AuditRecord


ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def distinct_locations(records: Iterable[AuditRecord]) -> List[str]:
    return sorted({r.location for r in records})


def distinct_sections(records: Iterable[AuditRecord]) -> List[str]:
    return sorted({r.section for r in records})


def location_dates(records: Iterable[AuditRecord], location: str) -> List[str]:
    """Snapshot dates available for one concrete location (none for the wildcard)."""
    if is_wildcard(location):
        return []
    return sorted({r.submitted_date for r in records if r.location == location})


def default_location(records: Sequence[AuditRecord]) -> str:
    locations = distinct_locations(records)
    return locations[0] if locations else ""


def format_date(value: Optional[str]) -> str:
    """YYYY-MM-DD -> DD-MM-YYYY for display; unparseable input is returned as-is."""
    if not value:
        return ""
    match = ISO_DATE.match(value)
    if match:
        return f"{match.group(3)}-{match.group(2)}-{match.group(1)}"
    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return value
    return parsed.strftime("%d-%m-%Y")


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def round_int(value: object) -> int:
    out = round_half_up(value)
    return int(out) if out is not None else 0


def prepare_context(filters: dict | FilterState, records: Sequence[AuditRecord]) -> Dict[str, object]:
    filt = filters
    if not isinstance(filt, FilterState):
        filt = normalize_filters(filters or {})

    audit1 = filter_by_date(records, filt, filt.audit1_date)
    audit2 = filter_by_date(records, filt, filt.audit2_date)
    audit3 = filter_by_date(records, filt, filt.audit3_date)

    selection = select_snapshots(filt, audit1, audit2, audit3)
    comparison = compare(selection.current, selection.previous)

    return {
        "filters": filt,
        "records": list(records),
        "audit1_records": audit1,
        "audit2_records": audit2,
        "audit3_records": audit3,
        "audit_records": {1: audit1, 2: audit2, 3: audit3},
        "audit_dates": {1: filt.audit1_date, 2: filt.audit2_date, 3: filt.audit3_date},
        "selection": selection,
        "comparison": comparison,
        "has_data_but_empty_filter": bool(records) and not audit1 and not audit2,
    }


def parse_view(view: object) -> Optional[int]:
    """'merged'/'all'/None -> None, otherwise an audit slot number 1-3."""
    if view is None:
        return None
    text = str(view).strip().lower()
    if text in {"", "merged", "all"}:
        return None
    try:
        slot = int(text)
    except ValueError:
        return None
    return slot if slot in (1, 2, 3) else None


def records_for_view(ctx: Dict[str, object], view: object) -> List[AuditRecord]:
    audits: Dict[int, List[AuditRecord]] = ctx.get("audit_records", {})  # type: ignore[assignment]
    slot = parse_view(view)
    if slot is None:
        return [r for s in (1, 2, 3) for r in audits.get(s, [])]
    return list(audits.get(slot, []))
