from __future__ import annotations

import math
from dataclasses import asdict
from typing import Any, Dict, List

from audit_core.data import format_date, parse_view, records_for_view
from audit_core.filters import ALL, FilterState, is_wildcard
from audit_core.ratings import is_critical, record_percentage, record_rating
from audit_core.records import AuditRecord


DEFAULT_AUDIT_SLOT = 2
CRITICAL_PREVIEW = 5
COMMENTS_PAGE_SIZE = 10


def _slot(audit: object) -> int:
    return parse_view(audit) or DEFAULT_AUDIT_SLOT


def _comment_row(r: AuditRecord) -> Dict[str, Any]:
    pct = record_percentage(r)
    return {
        "id": r.id,
        "location": r.location,
        "section": r.section,
        "question_text": r.question_text,
        "comment": r.comment,
        "points": r.points,
        "max_points": r.max_points,
        "percentage": pct,
        "rating": record_rating(r).value,
        "submitted_date": r.submitted_date,
        "display_date": format_date(r.submitted_date),
    }


def compute_critical_comments(filters: FilterState, ctx: Dict[str, Any], *, audit: object = DEFAULT_AUDIT_SLOT, show_all: bool = False) -> Dict[str, Any]:
    slot = _slot(audit)
    audits: Dict[int, List[AuditRecord]] = ctx.get("audit_records", {})
    counts = {str(s): sum(1 for r in audits.get(s, []) if is_critical(r)) for s in (1, 2, 3)}

    critical = [r for r in audits.get(slot, []) if is_critical(r)]
    shown = critical if show_all else critical[:CRITICAL_PREVIEW]
    return {
        "filters": asdict(filters),
        "audit": slot,
        "date": format_date(ctx.get("audit_dates", {}).get(slot, "")),
        "counts": counts,
        "total": len(critical),
        "has_more": len(critical) > len(shown),
        "comments": [_comment_row(r) for r in shown],
    }


def compute_comments(
    filters: FilterState,
    ctx: Dict[str, Any],
    *,
    audit: object = DEFAULT_AUDIT_SLOT,
    section: str = ALL,
    answer: str = ALL,
    q: str = "",
    page: int = 1,
    page_size: int = COMMENTS_PAGE_SIZE,
) -> Dict[str, Any]:
    slot = _slot(audit)
    query = (q or "").strip().lower()
    answer = (answer or ALL).strip()

    matched: List[AuditRecord] = []
    for r in records_for_view(ctx, slot):
        if not r.comment.strip():
            continue
        if not is_wildcard(section) and r.section != section:
            continue
        if not is_wildcard(answer) and record_rating(r).value.lower() != answer.lower():
            continue
        if query and query not in f"{r.comment} {r.section} {r.question_text}".lower():
            continue
        matched.append(r)

    page_size = max(1, int(page_size))
    total_pages = max(1, math.ceil(len(matched) / page_size))
    page = min(max(1, int(page)), total_pages)
    start = (page - 1) * page_size

    return {
        "filters": asdict(filters),
        "audit": slot,
        "date": format_date(ctx.get("audit_dates", {}).get(slot, "")),
        "section": section or ALL,
        "answer": answer,
        "q": q or "",
        "page": page,
        "page_size": page_size,
        "total": len(matched),
        "total_pages": total_pages,
        "comments": [_comment_row(r) for r in matched[start : start + page_size]],
    }
