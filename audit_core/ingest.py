from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from audit_core.errors import EmptyBatchError, NoMappableRowsError
from audit_core.normalize import normalize_row
from audit_core.records import AuditRecord


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestReport:
    total_rows: int
    accepted: int
    rejected_answer: int
    rejected_date: int


def is_valid_iso_date(value: str) -> bool:
    if not value:
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _as_rows(rows: Iterable[Mapping[Any, Any]] | pd.DataFrame) -> List[Mapping[Any, Any]]:
    if isinstance(rows, pd.DataFrame):
        return rows.to_dict(orient="records")
    return list(rows)


def ingest_with_report(rows: Iterable[Mapping[Any, Any]] | pd.DataFrame) -> Tuple[List[AuditRecord], IngestReport]:
    batch = _as_rows(rows)
    if not batch:
        raise EmptyBatchError()

    records: List[AuditRecord] = []
    rejected_answer = 0
    rejected_date = 0
    for index, row in enumerate(batch):
        record = normalize_row(row, index)
        if record is None:
            rejected_answer += 1
            continue
        if not is_valid_iso_date(record.submitted_date):
            rejected_date += 1
            continue
        records.append(record)

    report = IngestReport(
        total_rows=len(batch),
        accepted=len(records),
        rejected_answer=rejected_answer,
        rejected_date=rejected_date,
    )
    logger.debug(
        "ingest rows=%d accepted=%d rejected_answer=%d rejected_date=%d",
        report.total_rows,
        report.accepted,
        report.rejected_answer,
        report.rejected_date,
    )
    if not records:
        raise NoMappableRowsError(total_rows=len(batch))
    return records, report


def ingest(rows: Iterable[Mapping[Any, Any]] | pd.DataFrame) -> List[AuditRecord]:
    """Normalize a batch of raw rows into audit records.

    Raises EmptyBatchError for an empty batch and NoMappableRowsError when no
    row survives normalization and date validation.
    """
    records, _ = ingest_with_report(rows)
    return records


class AuditStore:
    """In-memory holder of the live record collection.

    Readers always get a complete immutable tuple. Overlapping loads are
    last-writer-wins: only the most recently started load may commit.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state: Tuple[Tuple[AuditRecord, ...], str] = ((), "")
        self._generation = 0
        self.last_report: Optional[IngestReport] = None

    @property
    def records(self) -> Tuple[AuditRecord, ...]:
        return self._state[0]

    @property
    def source(self) -> str:
        return self._state[1]

    def begin_load(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def commit(self, token: int, records: Iterable[AuditRecord], source: str = "", report: Optional[IngestReport] = None) -> bool:
        with self._lock:
            if token != self._generation:
                logger.info("discarding superseded load token=%d latest=%d source=%s", token, self._generation, source)
                return False
            self._state = (tuple(records), source)
            self.last_report = report
        logger.info("record store replaced records=%d source=%s", len(self._state[0]), source)
        return True

    def load_rows(self, rows: Iterable[Mapping[Any, Any]] | pd.DataFrame, source: str = "", token: Optional[int] = None) -> IngestReport:
        """Ingest ``rows`` and swap them in; the store is untouched on failure."""
        if token is None:
            token = self.begin_load()
        records, report = ingest_with_report(rows)
        self.commit(token, records, source, report=report)
        return report
