from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from audit_core.compare import ComparisonData, SnapshotSelection
from audit_core.data import format_date
from audit_core.filters import FilterState


def compute_overview(filters: FilterState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    selection: SnapshotSelection = ctx["selection"]
    comparison: ComparisonData = ctx["comparison"]
    dates: Dict[int, str] = ctx.get("audit_dates", {})

    current_date = dates.get(selection.current_slot, "") if selection.current_slot else ""
    previous_date = dates.get(selection.previous_slot, "") if selection.previous_slot else ""

    return {
        "filters": asdict(filters),
        "current_label": selection.label,
        "is_first_audit_only": selection.label == "Audit 1",
        "current_date": format_date(current_date),
        "previous_date": format_date(previous_date),
        "has_data_but_empty_filter": bool(ctx.get("has_data_but_empty_filter", False)),
        "kpis": {
            "current_score": comparison.current_score,
            "previous_score": comparison.previous_score,
            "current_points": comparison.current_points,
            "previous_points": comparison.previous_points,
            "current_max_points": comparison.current_max_points,
            "previous_max_points": comparison.previous_max_points,
            "difference": comparison.difference,
            "percentage_change": comparison.percentage_change,
            "rating": comparison.rating.value,
            "is_improving": comparison.difference >= 0,
        },
        "record_counts": {
            "current": len(selection.current),
            "previous": len(selection.previous),
        },
    }
