"""Audit dashboard exception hierarchy.

Whole-batch failures are raised; individual malformed rows are dropped
during normalization and never reach this module.
"""

from __future__ import annotations


class AuditError(Exception):
    """Base exception for all audit dashboard failures."""


class IngestError(AuditError):
    """Raised when a batch of raw rows cannot become an audit record set."""


class EmptyBatchError(IngestError):
    """Raised when the input batch holds no rows at all."""

    def __init__(self, message: str = "No data found.") -> None:
        super().__init__(message)


class NoMappableRowsError(IngestError):
    """Raised when rows were supplied but none normalized to a dated record."""

    def __init__(self, total_rows: int = 0, message: str | None = None) -> None:
        self.total_rows = total_rows
        super().__init__(
            message
            or (
                "Could not map data columns automatically. "
                "Ensure headers: Store, Question ID, Points, Total Points, Submitted On."
            )
        )


class SheetFetchError(AuditError):
    """Raised when a published spreadsheet cannot be fetched or parsed."""


class UnreadableFileError(IngestError):
    """Raised when uploaded bytes cannot be parsed as CSV or a workbook."""
