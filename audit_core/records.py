from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, List

import pandas as pd


UNKNOWN_LOCATION = "Unknown Location"
DEFAULT_SECTION = "General"
DEFAULT_MAX_POINTS = 4.0

RECORD_COLUMNS = [
    "id",
    "location",
    "section",
    "points",
    "max_points",
    "submitted_date",
    "comment",
    "question_text",
]


@dataclass(frozen=True)
class AuditRecord:
    id: str
    location: str
    section: str
    points: float
    max_points: float
    submitted_date: str
    comment: str = ""
    question_text: str = ""


def records_to_frame(records: Iterable[AuditRecord]) -> pd.DataFrame:
    rows: List[dict] = [asdict(r) for r in records]
    if not rows:
        return pd.DataFrame(columns=RECORD_COLUMNS)
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)
