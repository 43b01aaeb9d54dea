import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Dict, List, Optional

from audit_core.data import (
    default_location,
    distinct_locations,
    distinct_sections,
    format_date,
    location_dates,
    prepare_context,
)
from audit_core.errors import AuditError
from audit_core.filters import ALL, FilterState
from audit_core.ingest import AuditStore
from audit_core.metrics_classification import compute_classification
from audit_core.metrics_comments import compute_comments, compute_critical_comments
from audit_core.metrics_debug import compute_debug
from audit_core.metrics_overview import compute_overview
from audit_core.metrics_sections import compute_section_points, section_points_frame
from audit_core.metrics_trends import compute_trends
from audit_core.records import records_to_frame
from audit_core.sources import DEFAULT_SHEET_URL, fetch_sheet_rows, read_rows, upload_fingerprint

alt.data_transformers.disable_max_rows()
# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .card-actions {font-size: 0.9rem;color: #2563eb;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: FilterState) -> str:
    loc_chip = f"Location: {filters.location or 'All'}"
    sec_chip = f"Section: {filters.section or ALL}"
    date_chips = [
        f"Audit {slot}: {format_date(d)}" for slot, d in enumerate(filters.audit_dates, start=1) if d
    ] or ["Audits: none selected"]
    search_chip = [f"Search: {filters.search_query}"] if filters.search_query else []
    return "".join([f"<span class='chip'>{txt}</span>" for txt in [loc_chip, sec_chip, *date_chips, *search_chip]])


def render_page_header(title: str, breadcrumb: str, filter_summary_html: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    top = st.container()
    c1, c2 = top.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


def get_store() -> AuditStore:
    if "audit_store" not in st.session_state:
        st.session_state["audit_store"] = AuditStore()
    return st.session_state["audit_store"]


def clear_dates():
    for key in ["audit1_date", "audit2_date", "audit3_date"]:
        st.session_state[key] = ""


def load_into_store(store: AuditStore, loader, source: str) -> bool:
    token = store.begin_load()
    try:
        report = store.load_rows(loader(), source=source, token=token)
    except AuditError as exc:
        st.error(str(exc))
        return False
    st.session_state["location"] = default_location(store.records)
    clear_dates()
    st.success(f"Loaded {report.accepted} of {report.total_rows} rows from {source}.")
    return True


# ---------- UI setup ----------
st.set_page_config(page_title="Store Audit Dashboard", layout="wide")
inject_base_styles()
st.title("Store Audit Dashboard")
st.caption("Compare up to three audits per store location.")

store = get_store()
if DEFAULT_SHEET_URL and not st.session_state.get("_auto_synced"):
    st.session_state["_auto_synced"] = True
    load_into_store(store, lambda: fetch_sheet_rows(DEFAULT_SHEET_URL), "Live Sync")

# ----- Sidebar: data source + navigation + filters -----
with st.sidebar:
    st.markdown("### Data")
    uploaded = st.file_uploader("Upload audit spreadsheet", type=["xlsx", "xls", "csv"])
    if uploaded is not None:
        fingerprint = upload_fingerprint(uploaded.getvalue(), uploaded.name)
        if st.session_state.get("_last_upload") != fingerprint:
            st.session_state["_last_upload"] = fingerprint
            load_into_store(store, lambda: read_rows(uploaded.getvalue(), uploaded.name), uploaded.name)
    sheet_url = st.text_input("Published Google Sheet URL", value=DEFAULT_SHEET_URL)
    if st.button("Sync sheet") and sheet_url:
        load_into_store(store, lambda: fetch_sheet_rows(sheet_url), "Live Sync")
    if store.source:
        st.caption(f"Source: {store.source} ({len(store.records)} records)")

records = store.records
if not records:
    st.info("Connect your data: upload an audit spreadsheet or link a public Google Sheet.")
    st.stop()

locations = distinct_locations(records)
sections = distinct_sections(records)
if st.session_state.get("location") not in locations:
    st.session_state["location"] = locations[0]

with st.sidebar:
    st.markdown("---")
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["Overview", "Comments", "Data Quality / Debug"], index=0)

    st.markdown("---")
    st.markdown("### Filters")
    location = st.selectbox("Location", options=locations, key="location", on_change=clear_dates)
    section = st.selectbox("Section", options=[ALL] + sections, index=0)
    search_query = st.text_input("Search location / section", "")
    date_options = [""] + location_dates(records, location)
    audit_dates: List[str] = []
    for slot in (1, 2, 3):
        key = f"audit{slot}_date"
        if st.session_state.get(key) not in date_options:
            st.session_state[key] = ""
        audit_dates.append(
            st.selectbox(
                f"Audit {slot} date",
                options=date_options,
                key=key,
                format_func=lambda d: format_date(d) if d else "Not selected",
            )
        )

filters = FilterState(
    location=location,
    section=section,
    search_query=search_query.strip(),
    audit1_date=audit_dates[0],
    audit2_date=audit_dates[1],
    audit3_date=audit_dates[2],
)
ctx = prepare_context(filters, records)
filter_summary_html = format_filter_summary(filters)


def render_summary_cards(payload: Dict):
    kpis = payload["kpis"]
    label = payload["current_label"]
    cols = st.columns(4)
    delta = None if payload["is_first_audit_only"] else f"{kpis['difference']:+.1f} pts"
    cols[0].metric(f"{label} Score", f"{kpis['current_score']:.1f}%", delta=delta)
    cols[1].metric(
        "Change",
        f"{kpis['percentage_change']:+.1f}%" if not payload["is_first_audit_only"] else "N/A",
        help="Relative change vs the previous audit score; 0 when there is no previous score.",
    )
    cols[2].metric(
        "Points",
        f"{kpis['current_points']:,.0f} / {kpis['current_max_points']:,.0f}",
        delta=None if payload["is_first_audit_only"] else f"prev {kpis['previous_points']:,.0f} / {kpis['previous_max_points']:,.0f}",
        delta_color="off",
    )
    cols[3].metric("Rating", kpis["rating"], help="Most common item rating in the current audit; ties go to the better rating.")


def render_trends(payload: Dict):
    chart = payload["charts"].get("score_trend")
    if not chart:
        st.info("Select at least one audit date to see scores.")
        return
    st.vega_lite_chart(chart, use_container_width=True)
    totals = payload["totals"]
    cols = st.columns(max(1, len(totals)))
    for col, (key, t) in zip(cols, totals.items()):
        col.metric(f"{key.replace('audit', 'Audit ')} ({t['date']})", f"{t['score']}%", help=f"{t['points']} / {t['max_points']} points")


def render_classification():
    view = st.radio("Classification view", ["merged"] + [s for s in (1, 2, 3) if filters.audit_dates[s - 1]], horizontal=True, format_func=lambda v: "Merged" if v == "merged" else f"Audit {v}")
    payload = compute_classification(filters, ctx, view=view)
    chart = payload["charts"].get("distribution")
    if chart:
        st.vega_lite_chart(chart, use_container_width=True)
    st.dataframe(pd.DataFrame(payload["buckets"]), hide_index=True, use_container_width=True)
    st.caption(f"Viewing distribution for {payload['caption']}")


def render_critical_comments():
    audit = st.radio("Critical comments audit", [1, 2, 3], index=1, horizontal=True, format_func=lambda s: f"Audit {s}")
    show_all = st.checkbox("Show all", value=False)
    payload = compute_critical_comments(filters, ctx, audit=audit, show_all=show_all)
    st.caption(" | ".join(f"Audit {k}: {v}" for k, v in payload["counts"].items()))
    if not payload["comments"]:
        st.success("No critical comments for this audit.")
        return
    for c in payload["comments"]:
        st.warning(f"**{c['section']}** ({c['percentage']:.0f}%) {c['question_text']}  \n{c['comment']}")


def render_overview_page():
    export_df = records_to_frame(ctx["selection"].current)
    render_page_header("Overview", "Home / Overview", filter_summary_html, export_df=export_df, export_name="current_audit.csv")
    if ctx["has_data_but_empty_filter"]:
        st.warning("No matching audits found.")
        return
    with card("Summary"):
        render_summary_cards(compute_overview(filters, ctx))
    with card("Scores by " + ("Section" if section == ALL else "Location")):
        render_trends(compute_trends(filters, ctx))
    left, right = st.columns(2)
    with left:
        with card("Classification"):
            render_classification()
    with right:
        with card("Critical Comments"):
            render_critical_comments()
    with card("Sections - Points Overview"):
        view = st.radio("Section points view", ["merged"] + [s for s in (1, 2, 3) if filters.audit_dates[s - 1]], horizontal=True, format_func=lambda v: "All" if v == "merged" else f"Audit {v}")
        table = section_points_frame(compute_section_points(filters, ctx, view=view))
        if table.empty:
            st.info("No section data for the selected audits.")
        else:
            st.dataframe(table, hide_index=True, use_container_width=True)


def render_comments_page():
    render_page_header("Comments", "Home / Comments", filter_summary_html)
    c1, c2, c3 = st.columns(3)
    audit = c1.selectbox("Audit", [1, 2, 3], index=1, format_func=lambda s: f"Audit {s}")
    section_filter = c2.selectbox("Section", [ALL] + sections, key="comments_section")
    answer = c3.selectbox("Rating", [ALL, "Excellent", "Good", "Fair", "Poor"])
    q = st.text_input("Search comments", "")
    page = st.number_input("Page", min_value=1, value=1, step=1)
    payload = compute_comments(filters, ctx, audit=audit, section=section_filter, answer=answer, q=q, page=int(page))
    st.caption(f"Audit {payload['audit']} {payload['date'] or 'No date selected'} | {payload['total']} comments | page {payload['page']} of {payload['total_pages']}")
    if not payload["comments"]:
        st.info("No comments match these filters.")
        return
    table = pd.DataFrame(payload["comments"])[["section", "question_text", "comment", "rating", "points", "max_points", "display_date"]]
    st.dataframe(table, hide_index=True, use_container_width=True)


def render_debug_page():
    render_page_header("Data Quality / Debug", "Home / Debug", filter_summary_html)
    payload = compute_debug(filters, ctx, report=store.last_report, source=store.source)
    with card("Data Quality"):
        st.markdown("**Ingest report**")
        st.write(payload["ingest_report"] or {})
        st.markdown("**Row counts**")
        st.write(payload["row_counts"])
        st.markdown("**Cleaning checks**")
        st.write(payload["cleaning_checks"])
        st.markdown("**Date coverage by location**")
        st.dataframe(pd.DataFrame(payload["date_coverage"]), hide_index=True)
        st.markdown("**Sample records**")
        st.dataframe(pd.DataFrame(payload["sample"]), hide_index=True)


if nav_choice == "Overview":
    render_overview_page()
elif nav_choice == "Comments":
    render_comments_page()
else:
    render_debug_page()
