from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from audit_core.data import parse_view, round_int
from audit_core.filters import FilterState
from audit_core.records import DEFAULT_SECTION, AuditRecord


def _direction(current: int, previous: int) -> Optional[str]:
    if current > previous:
        return "up"
    if current < previous:
        return "down"
    return None


def _section_sums(records: List[AuditRecord], section: str) -> Dict[str, int]:
    subset = [r for r in records if (r.section or DEFAULT_SECTION) == section]
    return {
        "points": round_int(sum(r.points for r in subset)),
        "max_points": round_int(sum(r.max_points for r in subset)),
    }


def compute_section_points(filters: FilterState, ctx: Dict[str, Any], *, view: object = "merged") -> Dict[str, Any]:
    """Per-section point totals for each audit slot, with movement arrows vs the prior slot."""
    audits: Dict[int, List[AuditRecord]] = ctx.get("audit_records", {})
    dates: Dict[int, str] = ctx.get("audit_dates", {})
    slot = parse_view(view)

    sections = sorted({r.section or DEFAULT_SECTION for s in (1, 2, 3) for r in audits.get(s, [])})
    rows: List[Dict[str, Any]] = []
    for section in sections:
        sums = {s: _section_sums(audits.get(s, []), section) for s in (1, 2, 3)}
        if slot is None:
            rows.append(
                {
                    "section": section,
                    "audit1": sums[1],
                    "audit2": {**sums[2], "direction": _direction(sums[2]["points"], sums[1]["points"])},
                    "audit3": {**sums[3], "direction": _direction(sums[3]["points"], sums[2]["points"])},
                }
            )
            continue
        sel = sums[slot]
        prev = sums.get(slot - 1) if slot > 1 else None
        rows.append(
            {
                "section": section,
                "points": sel["points"],
                "max_points": sel["max_points"],
                "percentage": round_int(sel["points"] / sel["max_points"] * 100) if sel["max_points"] > 0 else 0,
                "direction": _direction(sel["points"], prev["points"]) if prev is not None else None,
            }
        )

    return {
        "filters": asdict(filters),
        "view": "merged" if slot is None else slot,
        "available_views": ["merged"] + [s for s in (1, 2, 3) if dates.get(s)],
        "rows": rows,
    }


def section_points_frame(payload: Dict[str, Any]) -> pd.DataFrame:
    """Flatten a section points payload into a display table."""
    rows = payload.get("rows", [])
    if not rows:
        return pd.DataFrame()
    if payload.get("view") == "merged":
        arrows = {"up": " ▲", "down": " ▼", None: ""}
        return pd.DataFrame(
            [
                {
                    "Section": row["section"],
                    "Audit 1 (pts / max)": f"{row['audit1']['points']} / {row['audit1']['max_points']}",
                    "Audit 2 (pts / max)": f"{row['audit2']['points']} / {row['audit2']['max_points']}{arrows[row['audit2']['direction']]}",
                    "Audit 3 (pts / max)": f"{row['audit3']['points']} / {row['audit3']['max_points']}{arrows[row['audit3']['direction']]}",
                }
                for row in rows
            ]
        )
    return pd.DataFrame(
        [
            {
                "Section": row["section"],
                "Points Earned": row["points"],
                "Total Points": row["max_points"],
                "%": f"{row['percentage']}%",
            }
            for row in rows
        ]
    )
