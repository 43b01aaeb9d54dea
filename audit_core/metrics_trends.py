from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from audit_core.charts import AUDIT_COLORS, to_vega_spec
from audit_core.compare import aggregate
from audit_core.data import format_date, round_int
from audit_core.filters import FilterState, is_wildcard
from audit_core.records import AuditRecord


LABEL_MAX_LENGTH = 18
SLOTS = (1, 2, 3)


def truncate_label(label: str, length: int = LABEL_MAX_LENGTH) -> str:
    if len(label) <= length:
        return label
    return label[:length] + "..."


def _slot_totals(records: List[AuditRecord]) -> Dict[str, int]:
    agg = aggregate(records)
    score = round_int(agg.points / agg.max_points * 100) if agg.max_points > 0 else 0
    return {"points": round_int(agg.points), "max_points": round_int(agg.max_points), "score": score}


def _group_stats(records: List[AuditRecord]) -> Dict[str, Optional[int]]:
    if not records:
        return {"score": None, "points": 0, "max": 0}
    agg = aggregate(records)
    return {
        "score": round_int(agg.points / agg.max_points * 100) if agg.max_points > 0 else None,
        "points": round_int(agg.points),
        "max": round_int(agg.max_points),
    }


def compute_trends(filters: FilterState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    audits: Dict[int, List[AuditRecord]] = ctx.get("audit_records", {})
    dates: Dict[int, str] = ctx.get("audit_dates", {})
    group_key = "section" if is_wildcard(filters.section) else "location"

    groups = sorted({getattr(r, group_key) for slot in SLOTS for r in audits.get(slot, [])})
    rows: List[Dict[str, Any]] = []
    for name in groups:
        row: Dict[str, Any] = {"name": name, "display_name": truncate_label(name)}
        for slot in SLOTS:
            stats = _group_stats([r for r in audits.get(slot, []) if getattr(r, group_key) == name])
            row[f"audit{slot}"] = stats["score"]
            row[f"audit{slot}_points"] = stats["points"]
            row[f"audit{slot}_max"] = stats["max"]
        rows.append(row)

    selected = [slot for slot in SLOTS if dates.get(slot)]
    totals = {
        f"audit{slot}": {**_slot_totals(audits.get(slot, [])), "date": format_date(dates.get(slot, ""))}
        for slot in selected
    }

    charts: Dict[str, Any] = {}
    if rows and selected:
        long_df = pd.DataFrame(
            [
                {
                    "name": row["name"],
                    "display_name": row["display_name"],
                    "audit": f"Audit {slot}",
                    "score": row[f"audit{slot}"],
                    "points": row[f"audit{slot}_points"],
                    "max_points": row[f"audit{slot}_max"],
                }
                for row in rows
                for slot in selected
            ]
        )
        long_df = long_df.dropna(subset=["score"])
        if not long_df.empty:
            audits_present = [f"Audit {slot}" for slot in selected]
            hover = alt.selection_point(fields=["audit"], on="mouseover", empty="all")
            line = (
                alt.Chart(long_df)
                .mark_line(point={"filled": True, "size": 60})
                .encode(
                    x=alt.X("display_name:N", title=group_key.title(), sort=list(dict.fromkeys(truncate_label(g) for g in groups)), axis=alt.Axis(labelAngle=-45, grid=False)),
                    y=alt.Y("score:Q", title="Score %", scale=alt.Scale(domain=[0, 100]), axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
                    color=alt.Color(
                        "audit:N",
                        title="Audit",
                        scale=alt.Scale(domain=audits_present, range=[AUDIT_COLORS[a] for a in audits_present]),
                    ),
                    opacity=alt.condition(hover, alt.value(1), alt.value(0.2)),
                    tooltip=[
                        alt.Tooltip("name:N", title=group_key.title()),
                        alt.Tooltip("audit:N", title="Audit"),
                        alt.Tooltip("score:Q", title="Score %"),
                        alt.Tooltip("points:Q", title="Points"),
                        alt.Tooltip("max_points:Q", title="Max"),
                    ],
                )
                .add_params(hover)
                .properties(height=320)
            )
            charts["score_trend"] = to_vega_spec(line)

    return {
        "filters": asdict(filters),
        "group_by": group_key,
        "rows": rows,
        "totals": totals,
        "charts": charts,
    }
