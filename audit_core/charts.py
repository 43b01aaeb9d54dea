from __future__ import annotations

from typing import Any, Dict

import altair as alt

alt.data_transformers.disable_max_rows()

AUDIT_COLORS = {
    "Audit 1": "#94a3b8",
    "Audit 2": "#6366f1",
    "Audit 3": "#10b981",
}

RATING_COLORS = {
    "Excellent": "#10b981",
    "Good": "#3b82f6",
    "Fair": "#f59e0b",
    "Poor": "#f43f5e",
}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()
