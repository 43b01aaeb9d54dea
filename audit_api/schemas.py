from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class FilterStateModel(BaseModel):
    location: str = ""
    section: str = "All"
    search_query: str = ""
    audit1_date: str = ""
    audit2_date: str = ""
    audit3_date: str = ""


class SheetRequest(BaseModel):
    url: str = Field(min_length=1)


class IngestReportModel(BaseModel):
    total_rows: int
    accepted: int
    rejected_answer: int
    rejected_date: int


class IngestResponse(BaseModel):
    records: int
    source: str
    applied: bool = True
    report: Optional[IngestReportModel] = None
