from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from audit_core.records import AuditRecord


ALL = "All"


@dataclass(frozen=True)
class FilterState:
    location: str = ""
    section: str = ALL
    search_query: str = ""
    audit1_date: str = ""
    audit2_date: str = ""
    audit3_date: str = ""

    @property
    def audit_dates(self) -> List[str]:
        return [self.audit1_date, self.audit2_date, self.audit3_date]


def is_wildcard(value: str) -> bool:
    return not value or value == ALL


def _as_str(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_filters(raw: dict, *, available_dates: Optional[List[str]] = None) -> FilterState:
    available = set(available_dates) if available_dates is not None else None

    def _date(key: str) -> str:
        value = _as_str(raw.get(key))
        if available is not None and value not in available:
            return ""
        return value

    return FilterState(
        location=_as_str(raw.get("location")),
        section=_as_str(raw.get("section")) or ALL,
        search_query=_as_str(raw.get("search_query")),
        audit1_date=_date("audit1_date"),
        audit2_date=_date("audit2_date"),
        audit3_date=_date("audit3_date"),
    )


def filter_by_date(records: Iterable[AuditRecord], filters: FilterState, target_date: str) -> List[AuditRecord]:
    """Records for one snapshot date under the location/section/search filters.

    An unselected snapshot (empty ``target_date``) yields nothing.
    """
    if not target_date:
        return []
    query = (filters.search_query or "").lower()
    out: List[AuditRecord] = []
    for r in records:
        if not is_wildcard(filters.location) and r.location != filters.location:
            continue
        if not is_wildcard(filters.section) and r.section != filters.section:
            continue
        if r.submitted_date != target_date:
            continue
        if query and query not in r.location.lower() and query not in r.section.lower():
            continue
        out.append(r)
    return out
