from __future__ import annotations

from dataclasses import asdict
import logging
import math
from typing import Literal, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, File, Query, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from audit_api.schemas import FilterStateModel, IngestReportModel, IngestResponse, SheetRequest
from audit_core.data import distinct_locations, distinct_sections, location_dates, prepare_context
from audit_core.errors import AuditError, IngestError, SheetFetchError
from audit_core.filters import FilterState, is_wildcard, normalize_filters
from audit_core.ingest import AuditStore, IngestReport, ingest_with_report
from audit_core.metrics_classification import compute_classification
from audit_core.metrics_comments import compute_comments, compute_critical_comments
from audit_core.metrics_debug import compute_debug
from audit_core.metrics_overview import compute_overview
from audit_core.metrics_sections import compute_section_points
from audit_core.metrics_trends import compute_trends
from audit_core.records import records_to_frame
from audit_core.sources import fetch_sheet_rows, read_rows


app = FastAPI(title="Store Audit Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

STORE = AuditStore()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8501"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: FilterStateModel) -> FilterState:
    raw = model.model_dump()
    location = (raw.get("location") or "").strip()
    available = None if is_wildcard(location) else location_dates(STORE.records, location)
    return normalize_filters(raw, available_dates=available)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _ingest_response(report: IngestReport, source: str, applied: bool) -> JSONResponse:
    body = IngestResponse(
        records=report.accepted,
        source=source,
        applied=applied,
        report=IngestReportModel(**asdict(report)),
    )
    return _json(body.model_dump())


@app.post("/ingest/upload")
def ingest_upload(file: UploadFile = File(...)):
    token = STORE.begin_load()
    source = file.filename or "upload"
    try:
        content = file.file.read()
        rows = read_rows(content, source)
        records, report = ingest_with_report(rows)
    except IngestError as exc:
        logger.info("ingest_upload rejected source=%s: %s", source, exc)
        return _error(422, exc)
    except Exception as exc:
        logger.exception("ingest_upload failed")
        return _error(500, exc)
    applied = STORE.commit(token, records, source, report=report)
    return _ingest_response(report, source, applied)


@app.post("/ingest/sheet")
def ingest_sheet(body: SheetRequest):
    token = STORE.begin_load()
    source = "Live Sync"
    try:
        rows = fetch_sheet_rows(body.url)
        records, report = ingest_with_report(rows)
    except IngestError as exc:
        logger.info("ingest_sheet rejected url=%s: %s", body.url, exc)
        return _error(422, exc)
    except SheetFetchError as exc:
        logger.warning("ingest_sheet fetch failed url=%s: %s", body.url, exc)
        return _error(502, exc)
    except Exception as exc:
        logger.exception("ingest_sheet failed")
        return _error(500, exc)
    applied = STORE.commit(token, records, source, report=report)
    return _ingest_response(report, source, applied)


@app.get("/meta/locations")
def meta_locations():
    return _json({"values": distinct_locations(STORE.records)})


@app.get("/meta/sections")
def meta_sections():
    return _json({"values": distinct_sections(STORE.records)})


@app.get("/meta/dates")
def meta_dates(location: str = Query(default="")):
    return _json({"values": location_dates(STORE.records, location)})


@app.post("/overview")
def overview(filters: FilterStateModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, STORE.records)
        return _json(compute_overview(f, ctx))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(500, exc)


@app.post("/trends")
def trends(filters: FilterStateModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, STORE.records)
        return _json(compute_trends(f, ctx))
    except Exception as exc:
        logger.exception("trends failed")
        return _error(500, exc)


@app.post("/classification")
def classification(filters: FilterStateModel, view: str = Query(default="merged")):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, STORE.records)
        return _json(compute_classification(f, ctx, view=view))
    except Exception as exc:
        logger.exception("classification failed")
        return _error(500, exc)


@app.post("/critical-comments")
def critical_comments(
    filters: FilterStateModel,
    audit: int = Query(default=2, ge=1, le=3),
    show_all: bool = Query(default=False),
):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, STORE.records)
        return _json(compute_critical_comments(f, ctx, audit=audit, show_all=show_all))
    except Exception as exc:
        logger.exception("critical_comments failed")
        return _error(500, exc)


@app.post("/section-points")
def section_points(filters: FilterStateModel, view: str = Query(default="merged")):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, STORE.records)
        return _json(compute_section_points(f, ctx, view=view))
    except Exception as exc:
        logger.exception("section_points failed")
        return _error(500, exc)


@app.post("/comments")
def comments(
    filters: FilterStateModel,
    audit: int = Query(default=2, ge=1, le=3),
    section: str = Query(default="All"),
    answer: Literal["All", "Excellent", "Good", "Fair", "Poor"] = Query(default="All"),
    q: str = Query(default=""),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=200),
):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, STORE.records)
        return _json(compute_comments(f, ctx, audit=audit, section=section, answer=answer, q=q, page=page, page_size=page_size))
    except Exception as exc:
        logger.exception("comments failed")
        return _error(500, exc)


@app.post("/debug")
def debug(filters: FilterStateModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, STORE.records)
        return _json(compute_debug(f, ctx, report=STORE.last_report, source=STORE.source))
    except Exception as exc:
        logger.exception("debug failed")
        return _error(500, exc)


@app.post("/export")
def export_current(filters: FilterStateModel, slot: Optional[int] = Query(default=None, ge=1, le=3)):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, STORE.records)
        if slot is None:
            records = ctx["selection"].current
            filename = "current_audit.csv"
        else:
            records = ctx["audit_records"][slot]
            filename = f"audit{slot}.csv"
        csv_bytes = records_to_frame(records).to_csv(index=False).encode("utf-8")
    except Exception as exc:
        logger.exception("export failed")
        return _error(500, exc)
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})


@app.exception_handler(AuditError)
async def audit_error_handler(_request, exc: AuditError):
    return _error(400, exc)
