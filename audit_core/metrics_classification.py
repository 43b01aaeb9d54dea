from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import altair as alt
import pandas as pd

from audit_core.charts import RATING_COLORS, to_vega_spec
from audit_core.data import format_date, parse_view, records_for_view, round_int
from audit_core.filters import FilterState
from audit_core.ratings import RATING_BANDS, RATING_ORDER, record_rating


def compute_classification(filters: FilterState, ctx: Dict[str, Any], *, view: object = "merged") -> Dict[str, Any]:
    slot = parse_view(view)
    records = records_for_view(ctx, slot)

    counts = {rating: 0 for rating in RATING_ORDER}
    for r in records:
        counts[record_rating(r)] += 1
    total = len(records) or 1

    buckets: List[Dict[str, Any]] = [
        {
            "label": rating.value,
            "count": counts[rating],
            "percentage": round_int(counts[rating] / total * 100),
            "range": RATING_BANDS[rating],
        }
        for rating in reversed(RATING_ORDER)
    ]

    if slot is None:
        caption = "all selected audits"
    else:
        caption = f"Audit {slot} ({format_date(ctx.get('audit_dates', {}).get(slot, ''))})"

    charts: Dict[str, Any] = {}
    if records:
        df = pd.DataFrame(buckets)
        bar = (
            alt.Chart(df)
            .mark_bar(cornerRadiusEnd=4)
            .encode(
                y=alt.Y("label:N", title=None, sort=[b["label"] for b in buckets]),
                x=alt.X("percentage:Q", title="Share of items (%)", scale=alt.Scale(domain=[0, 100])),
                color=alt.Color(
                    "label:N",
                    legend=None,
                    scale=alt.Scale(domain=list(RATING_COLORS), range=list(RATING_COLORS.values())),
                ),
                tooltip=["label", "range", "count", alt.Tooltip("percentage:Q", title="%")],
            )
            .properties(height=180)
        )
        charts["distribution"] = to_vega_spec(bar)

    return {
        "filters": asdict(filters),
        "view": "merged" if slot is None else slot,
        "caption": caption,
        "total_records": len(records),
        "buckets": buckets,
        "charts": charts,
    }
