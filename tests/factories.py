"""Shared record builders for tests."""

from __future__ import annotations

from itertools import count

from audit_core.records import AuditRecord

_ids = count()


def make_record(**overrides) -> AuditRecord:
    fields = {
        "id": f"audit-{next(_ids)}",
        "location": "Downtown",
        "section": "Fitting Rooms",
        "points": 3.0,
        "max_points": 4.0,
        "submitted_date": "2024-01-15",
        "comment": "",
        "question_text": "",
    }
    fields.update(overrides)
    return AuditRecord(**fields)


def raw_row(**overrides) -> dict:
    row = {
        "Store": "Downtown",
        "Question ID": "Fitting Rooms",
        "Answer": "Good",
        "Submitted On": "2024-01-15",
    }
    row.update(overrides)
    return row
