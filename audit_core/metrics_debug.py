from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

from audit_core.filters import FilterState
from audit_core.ingest import IngestReport
from audit_core.records import DEFAULT_SECTION, UNKNOWN_LOCATION, records_to_frame


def compute_debug(filters: FilterState, ctx: Dict[str, Any], *, report: Optional[IngestReport] = None, source: str = "") -> Dict[str, Any]:
    records = ctx.get("records", [])
    frame = records_to_frame(records)
    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "source": source,
        "ingest_report": asdict(report) if report is not None else None,
        "row_counts": {
            "records": int(len(frame)),
            "audit1_records": len(ctx.get("audit1_records", [])),
            "audit2_records": len(ctx.get("audit2_records", [])),
            "audit3_records": len(ctx.get("audit3_records", [])),
        },
        "cleaning_checks": {
            "unknown_location_rows": 0,
            "default_section_rows": 0,
            "blank_comment_rows": 0,
        },
        "date_coverage": [],
        "sample": [],
    }
    if frame.empty:
        return payload

    payload["cleaning_checks"] = {
        "unknown_location_rows": int((frame["location"] == UNKNOWN_LOCATION).sum()),
        "default_section_rows": int((frame["section"] == DEFAULT_SECTION).sum()),
        "blank_comment_rows": int(frame["comment"].str.strip().eq("").sum()),
    }
    coverage = (
        frame.groupby("location")["submitted_date"]
        .agg(["min", "max", "nunique"])
        .reset_index()
        .rename(columns={"min": "first_date", "max": "last_date", "nunique": "dates_present"})
    )
    payload["date_coverage"] = coverage.to_dict(orient="records")
    payload["sample"] = frame.head(3).to_dict(orient="records")
    return payload
